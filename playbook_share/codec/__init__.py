"""Compact codec and transport encoding for shared playbooks."""

from .minify import FORMAT_VERSION, minify_playbook, unminify_playbook, is_minified
from .transport import export_playbook, import_share_data, decode_share_data, encode_share_data

__all__ = [
    "FORMAT_VERSION", "minify_playbook", "unminify_playbook", "is_minified",
    "export_playbook", "import_share_data", "decode_share_data", "encode_share_data",
]
