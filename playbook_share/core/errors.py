"""Error taxonomy for playbook editing and sharing."""

from typing import Optional, Tuple


class PlaybookShareError(Exception):
    """Base exception for the package."""


class DecodeError(PlaybookShareError):
    """Shared payload is malformed: bad Base64, bad deflate stream, bad JSON or bad shape."""

    user_message = "link invalid or corrupted"


class UnsupportedVersion(PlaybookShareError):
    """Compact payload carries a version marker no codec is registered for."""

    def __init__(self, version) -> None:
        super().__init__(f"No codec registered for payload version {version!r}")
        self.version = version


class CellOccupiedConflict(PlaybookShareError):
    """Another play already sits on the requested grid cell."""

    def __init__(self, cell: Tuple[int, int], occupant_id: str) -> None:
        row, column = cell
        super().__init__(f"Grid cell ({row}, {column}) is occupied by play {occupant_id}")
        self.cell = cell
        self.occupant_id = occupant_id


class HandshakeTimeout(PlaybookShareError):
    """The peer window never acknowledged within the handshake window."""

    def __init__(self, timeout_s: float) -> None:
        super().__init__(f"No handshake acknowledgment within {timeout_s:g}s")
        self.timeout_s = timeout_s


class ShareSheetUnavailable(PlaybookShareError):
    """Native file sharing is unsupported, failed, or was dismissed by the user."""

    def __init__(self, reason: Optional[str] = None, cancelled: bool = False) -> None:
        super().__init__(reason or ("Share cancelled" if cancelled else "Share sheet unavailable"))
        self.cancelled = cancelled
