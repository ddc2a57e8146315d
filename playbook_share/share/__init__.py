"""Share transport: links, redirector documents, window handshake, import/export."""

from .export import ShareExporter, ExportResult
from .handshake import SenderHandshake, ReceiverHandshake, HandshakeState
from .session import ShareImporter, ImportState

__all__ = [
    "ShareExporter", "ExportResult",
    "SenderHandshake", "ReceiverHandshake", "HandshakeState",
    "ShareImporter", "ImportState",
]
