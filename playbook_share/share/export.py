"""Export side of sharing: payload text, links, redirector files and delivery."""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..codec.transport import export_playbook
from ..config import ShareSettings, load_settings
from ..core.errors import ShareSheetUnavailable
from ..core.models import Playbook
from .links import build_share_url
from .redirector import generate_redirect_html

logger = logging.getLogger("playbook_share.export")

HTML_MIME_TYPE = "text/html"


class ShareSheet(ABC):
    """Platform file sharing (e.g. a native share sheet)."""

    @abstractmethod
    async def share_file(self, filename: str, content: bytes, mime_type: str) -> None:
        """Offer a file to the platform; raise ShareSheetUnavailable on failure or cancel."""


class UnavailableShareSheet(ShareSheet):
    """Platform without file sharing."""

    async def share_file(self, filename: str, content: bytes, mime_type: str) -> None:
        raise ShareSheetUnavailable("File sharing is not supported here")


class Downloader(ABC):
    """Direct file download."""

    @abstractmethod
    def save(self, filename: str, content: bytes) -> str:
        """Store the file; return where it went."""


class DirectoryDownloader(Downloader):
    """Saves downloads into a folder, never overwriting an existing file."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def save(self, filename: str, content: bytes) -> str:
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.directory / filename
        stem, suffix = target.stem, target.suffix
        n = 1
        while target.exists():
            target = self.directory / f"{stem} ({n}){suffix}"
            n += 1
        target.write_bytes(content)
        return str(target)


@dataclass
class ExportResult:
    """How an exported redirector reached the user."""
    method: str  # "share_sheet" or "download"
    filename: str
    location: Optional[str] = None


def redirector_filename(playbook_name: str) -> str:
    """File name for a playbook's redirector: whitespace runs become '_'."""
    stem = re.sub(r"\s+", "_", playbook_name.strip())
    stem = re.sub(r'[\\/:*?"<>|]', "", stem)
    return f"{stem or 'playbook'}.html"


class ShareExporter:
    """Turns playbooks into shareable text, links and redirector documents."""

    def __init__(self, settings: Optional[ShareSettings] = None):
        self.settings = settings or load_settings()

    def encode(self, playbook: Playbook) -> str:
        return export_playbook(playbook)

    def share_url(self, playbook: Playbook, encoded: Optional[str] = None) -> str:
        encoded = encoded or self.encode(playbook)
        return build_share_url(self.settings.app_url, encoded, fragment=self.settings.use_fragment_links)

    def redirector(self, playbook: Playbook, encoded: Optional[str] = None) -> str:
        return generate_redirect_html(
            playbook.name,
            encoded or self.encode(playbook),
            self.settings.app_url,
            ping_interval_ms=self.settings.ping_interval_ms,
            timeout_ms=self.settings.handshake_timeout_ms,
        )

    async def deliver(
        self,
        playbook: Playbook,
        share_sheet: Optional[ShareSheet] = None,
        downloader: Optional[Downloader] = None
    ) -> ExportResult:
        """
        Hand the redirector document to the platform share sheet, falling
        back to a direct download when sharing is unavailable or dismissed.
        """
        filename = redirector_filename(playbook.name)
        content = self.redirector(playbook).encode("utf-8")
        share_sheet = share_sheet or UnavailableShareSheet()

        try:
            await share_sheet.share_file(filename, content, HTML_MIME_TYPE)
            logger.info(f"Shared '{filename}' through the share sheet")
            return ExportResult(method="share_sheet", filename=filename)
        except ShareSheetUnavailable as e:
            reason = "cancelled" if e.cancelled else str(e)
            logger.info(f"Share sheet not used ({reason}), falling back to download")

        if downloader is None:
            raise RuntimeError("No downloader available for the export fallback")
        location = downloader.save(filename, content)
        return ExportResult(method="download", filename=filename, location=location)
