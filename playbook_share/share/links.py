"""Share links: `?share=<payload>` and the legacy `#share=<payload>`."""

from typing import Optional, Tuple
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlsplit, urlunsplit

SHARE_PARAM = "share"


def build_share_url(app_url: str, encoded: str, fragment: bool = False) -> str:
    """Application URL carrying a payload in the query string or the fragment."""
    parts = urlsplit(app_url)
    value = quote(encoded, safe="")
    if fragment:
        return urlunsplit((parts.scheme, parts.netloc, parts.path, parts.query, f"{SHARE_PARAM}={value}"))
    query = f"{parts.query}&" if parts.query else ""
    return urlunsplit((parts.scheme, parts.netloc, parts.path, f"{query}{SHARE_PARAM}={value}", ""))


def _fragment_payload(fragment: str) -> Optional[str]:
    for item in fragment.split("&"):
        key, sep, value = item.partition("=")
        if sep and key == SHARE_PARAM and value:
            return unquote(value)
    return None


def extract_share_payload(url: str) -> Optional[Tuple[str, str]]:
    """
    Find a share payload in a URL.

    Returns (payload, "query" | "fragment") or None. The query parameter
    wins when both are present. Values are percent-decoded.
    """
    parts = urlsplit(url)
    for key, value in parse_qsl(parts.query, keep_blank_values=False):
        if key == SHARE_PARAM and value:
            return value, "query"
    payload = _fragment_payload(parts.fragment)
    if payload:
        return payload, "fragment"
    return None


def clean_share_url(url: str) -> str:
    """The same URL without the share parameter and share fragment."""
    parts = urlsplit(url)
    query = urlencode([
        (k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != SHARE_PARAM
    ])
    fragment = parts.fragment
    if _fragment_payload(fragment) is not None:
        fragment = "&".join(
            item for item in fragment.split("&") if item.partition("=")[0] != SHARE_PARAM
        )
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, fragment))
