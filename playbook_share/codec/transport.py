"""
Transport encoding: JSON -> deflate -> Base64 text, and back.

The pipeline is content agnostic. Links use the URL-safe Base64 alphabet
without padding; older links used standard Base64, which is still accepted.
"""

import base64
import binascii
import json
import logging
import zlib
from typing import Any, Union

from pydantic import ValidationError

from ..core.errors import DecodeError
from ..core.ids import generate_id
from ..core.models import Playbook, Play, now_ms
from .minify import minify_playbook, unminify_playbook, is_minified

logger = logging.getLogger("playbook_share.transport")

LEGACY_PLAYBOOK_NAME = "Imported Playbook"


# ============================================================================
# Binary strings and Base64
# ============================================================================

def encode_binary_string(data: bytes) -> str:
    """One character per byte (code points 0-255)."""
    return data.decode("latin-1")


def decode_binary_string(binary: str) -> bytes:
    try:
        return binary.encode("latin-1")
    except UnicodeEncodeError as e:
        raise DecodeError("Binary string holds characters above U+00FF") from e


def to_base64url(binary: str) -> str:
    """Base64 of a binary string with +/ swapped for -_ and padding stripped."""
    encoded = base64.b64encode(decode_binary_string(binary)).decode("ascii")
    return encoded.replace("+", "-").replace("/", "_").rstrip("=")


def _restore_padding(text: str) -> str:
    while len(text) % 4 != 0:
        text += "="
    return text


def from_base64url(base64url: str) -> str:
    """Inverse of to_base64url. Returns a binary string."""
    text = _restore_padding(base64url.replace("-", "+").replace("_", "/"))
    try:
        return encode_binary_string(base64.b64decode(text, validate=True))
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid Base64 payload: {e}") from e


def _payload_bytes(text: str) -> bytes:
    """Decode either alphabet; URL-safe is recognised by '-' or '_'."""
    # Query-string decoding turns a literal '+' into a space.
    text = text.strip().replace(" ", "+")
    if "-" in text or "_" in text:
        return decode_binary_string(from_base64url(text))
    try:
        return base64.b64decode(_restore_padding(text.rstrip("=")), validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid Base64 payload: {e}") from e


# ============================================================================
# Compression
# ============================================================================

def compress(data: bytes) -> bytes:
    return zlib.compress(data, 9)


def decompress(data: bytes) -> bytes:
    try:
        return zlib.decompress(data)
    except zlib.error as e:
        raise DecodeError(f"Payload is not a valid deflate stream: {e}") from e


# ============================================================================
# Pipeline
# ============================================================================

def encode_share_data(obj: Any, url_safe: bool = True) -> str:
    """Serialize, compress and Base64 a JSON-ready value."""
    text = json.dumps(obj, separators=(",", ":"), ensure_ascii=False)
    packed = compress(text.encode("utf-8"))
    if url_safe:
        return to_base64url(encode_binary_string(packed))
    return base64.b64encode(packed).decode("ascii")


def decode_share_payload(text: str) -> Any:
    """Base64 -> inflate -> UTF-8 -> JSON. Raises DecodeError."""
    if not isinstance(text, str) or not text.strip():
        raise DecodeError("Empty share payload")
    raw = decompress(_payload_bytes(text))
    try:
        return json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise DecodeError(f"Payload is not UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise DecodeError(f"Payload is not JSON: {e}") from e
    except RecursionError as e:
        raise DecodeError("Payload nests too deeply") from e


def decode_share_data(text: str) -> Any:
    """Decode a payload; compact arrays are expanded, anything else passes through."""
    data = decode_share_payload(text)
    if is_minified(data):
        return unminify_playbook(data)
    return data


# ============================================================================
# Playbook level
# ============================================================================

def coerce_playbook(data: Union[Playbook, dict, list, tuple]) -> Playbook:
    """
    Turn any accepted import shape into a Playbook:
    a Playbook, a compact array, a full-fidelity playbook document, or a
    bare list of plays as written by the old JSON export.
    """
    if isinstance(data, Playbook):
        return data
    if is_minified(data):
        data = unminify_playbook(data)
        if isinstance(data, Playbook):
            return data
    try:
        if isinstance(data, dict):
            return Playbook.model_validate(data)
        if isinstance(data, (list, tuple)) and all(isinstance(p, dict) for p in data):
            stamp = now_ms()
            logger.info(f"Wrapping legacy list of {len(data)} plays into a new playbook")
            return Playbook(
                id=generate_id(),
                name=LEGACY_PLAYBOOK_NAME,
                plays=[Play.model_validate(p) for p in data],
                created_at=stamp,
                updated_at=stamp,
            )
    except ValidationError as e:
        raise DecodeError(f"Payload is not a valid playbook: {e.error_count()} error(s)") from e
    raise DecodeError(f"Unrecognised payload shape: {type(data).__name__}")


def export_playbook(playbook: Playbook) -> str:
    """Compact, compressed, URL-safe text for a playbook."""
    return encode_share_data(minify_playbook(playbook))


def import_share_data(text: str) -> Playbook:
    """Decode payload text into a Playbook. Raises DecodeError."""
    return coerce_playbook(decode_share_data(text))
