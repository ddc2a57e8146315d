"""Test the JSON -> deflate -> Base64 transport encoding."""

import base64
import json
import zlib

import pytest
import sys
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))

from playbook_share.codec.minify import minify_playbook, PlayFields, PlayerFields
from playbook_share.codec.transport import (
    encode_binary_string, decode_binary_string, to_base64url, from_base64url,
    encode_share_data, decode_share_payload, decode_share_data, export_playbook,
    import_share_data, coerce_playbook, LEGACY_PLAYBOOK_NAME
)
from playbook_share.core.errors import DecodeError
from playbook_share.core.models import Playbook


def test_base64url_symmetry():
    """50 random buffers survive the URL-safe alphabet."""
    rng = np.random.Generator(np.random.PCG64(42))
    for _ in range(50):
        size = int(rng.integers(0, 300))
        data = rng.integers(0, 256, size=size, dtype=np.uint8).tobytes()
        binary = encode_binary_string(data)

        encoded = to_base64url(binary)

        assert from_base64url(encoded) == binary
        assert decode_binary_string(binary) == data
        assert "+" not in encoded and "/" not in encoded and "=" not in encoded


def test_base64url_alphabet():
    binary = encode_binary_string(bytes([0xfb, 0xff, 0xfe]))
    assert base64.b64encode(bytes([0xfb, 0xff, 0xfe])).decode() == "+//+"
    assert to_base64url(binary) == "-__-"


def test_payload_is_url_safe(playbook):
    encoded = export_playbook(playbook)
    assert set(encoded) <= set("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_")


def test_compact_form_is_smaller(playbook):
    compact = export_playbook(playbook)
    full = encode_share_data(playbook.to_document())
    assert len(compact) < len(full)


def test_export_import_round_trip(playbook):
    decoded = import_share_data(export_playbook(playbook))
    assert decoded.model_dump(exclude={"created_at", "updated_at"}) == \
        playbook.model_dump(exclude={"created_at", "updated_at"})


def test_legacy_standard_base64_accepted(playbook):
    """Older links used padded standard Base64."""
    minified = minify_playbook(playbook)
    legacy = encode_share_data(minified, url_safe=False)

    assert decode_share_payload(legacy) == minified
    # '+' read back as a space after query-string decoding
    assert decode_share_payload(legacy.replace("+", " ")) == minified


def test_legacy_full_document_passes_through(playbook):
    document = playbook.to_document()
    payload = encode_share_data(document)

    assert decode_share_data(payload) == document
    assert import_share_data(payload) == playbook


def test_unicode_names_survive(playbook):
    playbook.name = "Défense Équipe 🏈"
    assert import_share_data(export_playbook(playbook)).name == "Défense Équipe 🏈"


def test_legacy_list_of_plays(playbook):
    plays = [p.model_dump(mode="json", by_alias=True) for p in playbook.plays]
    imported = coerce_playbook(plays)

    assert imported.name == LEGACY_PLAYBOOK_NAME
    assert [p.id for p in imported.plays] == ["play-flood", "play-quick"]
    assert imported.id != playbook.id


def test_coerce_accepts_playbook_and_minified(playbook):
    assert coerce_playbook(playbook) is playbook
    assert isinstance(coerce_playbook(minify_playbook(playbook)), Playbook)


@pytest.mark.parametrize("payload", [
    "",
    "   ",
    "not base64 at all!",
    "abcde",
    base64.urlsafe_b64encode(b"plain text, not deflate").decode().rstrip("="),
    base64.urlsafe_b64encode(zlib.compress(b"{not json")).decode().rstrip("="),
    base64.urlsafe_b64encode(zlib.compress(b"\xff\xfe\xfd")).decode().rstrip("="),
])
def test_malformed_payloads(payload):
    with pytest.raises(DecodeError):
        import_share_data(payload)


def test_wrong_shape_is_decode_error():
    payload = encode_share_data({"id": "x"})
    with pytest.raises(DecodeError):
        import_share_data(payload)

    payload = encode_share_data(42)
    assert decode_share_data(payload) == 42
    with pytest.raises(DecodeError):
        import_share_data(payload)


def test_binary_string_rejects_wide_characters():
    with pytest.raises(DecodeError):
        decode_binary_string("Ā")


def test_encoding_is_deflate_of_compact_json(playbook):
    minified = minify_playbook(playbook)
    raw = zlib.decompress(decode_binary_string(from_base64url(export_playbook(playbook))))
    assert json.loads(raw) == minified
    assert b": " not in raw and b", " not in raw


def test_deeply_nested_json_is_decode_error():
    payload = to_base64url(encode_binary_string(zlib.compress(b"[" * 200000)))
    with pytest.raises(DecodeError):
        decode_share_payload(payload)


@pytest.mark.parametrize("coordinate", [10**400, float("inf"), float("nan")])
def test_unrepresentable_coordinates_are_decode_errors(playbook, coordinate):
    data = minify_playbook(playbook)
    data[4][1][PlayFields.PLAYERS][0][PlayerFields.POSITION] = [coordinate, 1]
    with pytest.raises(DecodeError):
        import_share_data(encode_share_data(data))


def test_non_finite_document_point_is_decode_error(playbook):
    document = playbook.to_document()
    document["plays"][1]["players"][0]["position"]["x"] = float("inf")
    with pytest.raises(DecodeError):
        import_share_data(encode_share_data(document))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
