"""
Import side of sharing: link import-on-load, handshake payloads, and the
confirm-then-store state machine.

    IDLE -> AWAITING_USER_CONFIRM -> IMPORTING -> IMPORTED | IMPORT_FAILED
                                  -> CANCELLED
    (decode failures go straight to IMPORT_FAILED)

Every terminal state returns to IDLE. Imports are all-or-nothing: the
collection is only touched by a single validated create.
"""

import asyncio
import hashlib
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Set

from ..codec.transport import coerce_playbook, import_share_data
from ..core.errors import DecodeError
from ..core.ids import generate_id
from ..core.models import Playbook
from ..core.registry import Registry
from ..core.validation import ValidationError, validate_playbook
from .channel import MessageChannel
from .handshake import ReceiverHandshake, PING_INTERVAL_S, HANDSHAKE_TIMEOUT_S
from .links import clean_share_url, extract_share_payload
from .messages import ImportPlaybookMessage, parse_message
from .redirector import extract_redirect_payload
from .scheduler import Scheduler

logger = logging.getLogger("playbook_share.session")

ConfirmCallback = Callable[[Playbook], Awaitable[bool]]


class ImportState(str, Enum):
    IDLE = "IDLE"
    AWAITING_USER_CONFIRM = "AWAITING_USER_CONFIRM"
    IMPORTING = "IMPORTING"
    IMPORTED = "IMPORTED"
    IMPORT_FAILED = "IMPORT_FAILED"
    CANCELLED = "CANCELLED"


class Location(ABC):
    """The context's address bar."""

    @property
    @abstractmethod
    def href(self) -> str:
        """Current URL."""

    @abstractmethod
    def replace(self, url: str) -> None:
        """Swap the current URL without a new history entry."""


class MemoryLocation(Location):
    """Location held in memory, recording every replacement."""

    def __init__(self, href: str):
        self._href = href
        self.history: List[str] = [href]

    @property
    def href(self) -> str:
        return self._href

    def navigate(self, url: str) -> None:
        self._href = url
        self.history.append(url)

    def replace(self, url: str) -> None:
        self._href = url
        self.history[-1] = url


async def auto_confirm(playbook: Playbook) -> bool:
    """Confirmation that always accepts (non-interactive callers)."""
    return True


def payload_fingerprint(payload: str) -> str:
    """Identity of a raw payload string for duplicate suppression."""
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def load_shared_playbook(obj: Any) -> Playbook:
    """
    Decode anything the import path accepts: a Playbook, a decoded document,
    an encoded payload, a share link, or a redirector document.
    """
    if isinstance(obj, str):
        text = obj.strip()
        embedded = extract_redirect_payload(text)
        if embedded is not None:
            return import_share_data(embedded)
        found = extract_share_payload(text) if "://" in text else None
        if found is not None:
            return import_share_data(found[0])
        return import_share_data(text)
    return coerce_playbook(obj)


class ShareImporter:
    """Imports shared playbooks into a collection, one confirmation at a time."""

    def __init__(
        self,
        collection: Registry[Playbook],
        confirm: ConfirmCallback = auto_confirm,
        location: Optional[Location] = None,
        notify: Optional[Callable[[str], None]] = None
    ):
        self.collection = collection
        self.confirm = confirm
        self.location = location
        self.notify = notify
        self.state = ImportState.IDLE
        self.transitions: List[ImportState] = []
        self.last_error: Optional[Exception] = None
        self.last_imported: Optional[Playbook] = None
        self._seen: Set[str] = set()
        self._lock = asyncio.Lock()
        self._tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def handle_url(self, url: Optional[str] = None) -> bool:
        """
        Import-on-load / hash-change handler.

        A payload already being handled or handled this session is ignored.
        After a successful import the URL is replaced by its clean form and
        the fingerprint is forgotten, so a later visit to the same link
        prompts again.
        """
        if url is None:
            if self.location is None:
                return False
            url = self.location.href
        found = extract_share_payload(url)
        if found is None:
            return False
        payload, source = found

        key = payload_fingerprint(payload)
        if key in self._seen:
            logger.debug(f"Ignoring repeated {source} share event")
            return False
        self._seen.add(key)

        imported = await self._import(lambda: import_share_data(payload), f"url {source}")
        if imported and self.location is not None:
            self.location.replace(clean_share_url(url))
            self._seen.discard(key)
        return imported

    async def handle_message(self, raw: Any) -> bool:
        """Window message handler. Only IMPORT_PLAYBOOK messages are acted on."""
        message = parse_message(raw)
        if not isinstance(message, ImportPlaybookMessage):
            return False
        key = payload_fingerprint(message.data)
        if key in self._seen:
            logger.debug("Ignoring repeated IMPORT_PLAYBOOK message")
            return False
        self._seen.add(key)
        return await self._import(lambda: import_share_data(message.data), "message")

    async def import_playbook(self, playbook_or_raw: Any) -> bool:
        """
        Import a Playbook, a decoded document, or raw text: an encoded
        payload, a share link, or a redirector document.
        """
        return await self._import(lambda: load_shared_playbook(playbook_or_raw), "direct")

    def receive_payload(self, data: str) -> asyncio.Task:
        """Synchronous hook for ReceiverHandshake; runs the import as a task."""
        task = asyncio.get_running_loop().create_task(
            self.handle_message(ImportPlaybookMessage(data=data).model_dump())
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def open_handshake(
        self,
        channel: MessageChannel,
        scheduler: Scheduler,
        has_opener: bool = True,
        interval: float = PING_INTERVAL_S,
        timeout: float = HANDSHAKE_TIMEOUT_S
    ) -> Optional[ReceiverHandshake]:
        """Start signalling readiness to the opening window, if there is one."""
        if not has_opener:
            return None
        receiver = ReceiverHandshake(
            channel, scheduler, self.receive_payload, interval=interval, timeout=timeout
        )
        return receiver.start()

    async def drain(self) -> None:
        """Wait for imports started from handshake callbacks."""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _set(self, state: ImportState) -> None:
        self.state = state
        self.transitions.append(state)

    @staticmethod
    def _decode(load: Callable[[], Playbook]) -> Playbook:
        playbook = load()
        try:
            validate_playbook(playbook)
        except ValidationError as e:
            raise DecodeError(str(e)) from e
        return playbook

    def _fail(self, error: Exception) -> None:
        self.last_error = error
        self._set(ImportState.IMPORT_FAILED)
        logger.warning(f"Playbook import failed: {error}")
        if self.notify is not None:
            self.notify(DecodeError.user_message)

    async def _import(self, load: Callable[[], Playbook], origin: str) -> bool:
        async with self._lock:
            try:
                try:
                    playbook = self._decode(load)
                except DecodeError as e:
                    self._fail(e)
                    return False

                self._set(ImportState.AWAITING_USER_CONFIRM)
                if not await self.confirm(playbook):
                    self._set(ImportState.CANCELLED)
                    logger.info(f"Import of '{playbook.name}' from {origin} cancelled")
                    return False

                self._set(ImportState.IMPORTING)
                try:
                    stored = self._store(playbook)
                except (ValidationError, ValueError) as e:
                    self._fail(e)
                    return False

                self.last_imported = stored
                self._set(ImportState.IMPORTED)
                logger.info(
                    f"Imported playbook '{stored.name}' ({len(stored.plays)} plays) from {origin}"
                )
                return True
            finally:
                self._set(ImportState.IDLE)

    def _store(self, playbook: Playbook) -> Playbook:
        if self.collection.exists(playbook.id):
            new_id = generate_id()
            logger.info(f"Playbook {playbook.id} already exists, importing as {new_id}")
            playbook = playbook.model_copy(update={"id": new_id})
        return self.collection.create(playbook.id, playbook)
