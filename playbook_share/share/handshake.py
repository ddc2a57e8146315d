"""
Symmetric ready/transfer handshake between two windows.

Both sides post HANDSHAKE_READY immediately and then at a fixed interval.
Whichever ping is observed first triggers the transfer: a sender that
observes a ping posts IMPORT_PLAYBOOK once; a receiver that observes a ping
answers with one of its own. A side that sees nothing within the timeout
stops signalling silently.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Optional

from ..core.errors import HandshakeTimeout
from .channel import MessageChannel
from .messages import HANDSHAKE_READY, ImportPlaybookMessage, import_message, parse_message
from .scheduler import Scheduler, TimerHandle

logger = logging.getLogger("playbook_share.handshake")

PING_INTERVAL_S = 0.5
HANDSHAKE_TIMEOUT_S = 10.0


class HandshakeState(str, Enum):
    IDLE = "IDLE"
    SIGNALLING = "SIGNALLING"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    TRANSFERRED = "TRANSFERRED"
    TIMED_OUT = "TIMED_OUT"
    CLOSED = "CLOSED"


TERMINAL_STATES = {HandshakeState.TRANSFERRED, HandshakeState.TIMED_OUT, HandshakeState.CLOSED}


class HandshakeSession(ABC):
    """Owns the ping interval and the timeout of one side of the handshake."""

    role = "session"

    def __init__(
        self,
        channel: MessageChannel,
        scheduler: Scheduler,
        interval: float = PING_INTERVAL_S,
        timeout: float = HANDSHAKE_TIMEOUT_S
    ):
        self.channel = channel
        self.scheduler = scheduler
        self.interval = interval
        self.timeout = timeout
        self.state = HandshakeState.IDLE
        self.pings_sent = 0
        self._pinger: Optional[TimerHandle] = None
        self._deadline: Optional[TimerHandle] = None
        self._waiters = []

    @property
    def active(self) -> bool:
        """True while a ping interval or timeout is scheduled."""
        return self._pinger is not None or self._deadline is not None

    def start(self) -> "HandshakeSession":
        """Begin signalling readiness."""
        if self.state != HandshakeState.IDLE:
            raise RuntimeError(f"{self.role} handshake already started ({self.state.value})")
        self.state = HandshakeState.SIGNALLING
        self.channel.add_listener(self._on_message)
        self._ping()
        self._pinger = self.scheduler.call_every(self.interval, self._ping)
        self._deadline = self.scheduler.call_later(self.timeout, self._on_timeout)
        logger.debug(f"{self.role}: signalling every {self.interval}s for up to {self.timeout}s")
        return self

    def close(self) -> None:
        """Context teardown: cancel timers and stop listening."""
        self._stop_timers()
        self.channel.remove_listener(self._on_message)
        if self.state not in TERMINAL_STATES:
            self._finish(HandshakeState.CLOSED)

    async def wait(self, raise_on_timeout: bool = False) -> HandshakeState:
        """Resolve once the handshake reaches a terminal state."""
        if self.state not in TERMINAL_STATES:
            future = asyncio.get_running_loop().create_future()
            self._waiters.append(future)
            await future
        if raise_on_timeout and self.state == HandshakeState.TIMED_OUT:
            raise HandshakeTimeout(self.timeout)
        return self.state

    def _ping(self) -> None:
        self.pings_sent += 1
        self.channel.post_message(HANDSHAKE_READY)

    def _stop_timers(self) -> None:
        if self._pinger is not None:
            self._pinger.cancel()
            self._pinger = None
        if self._deadline is not None:
            self._deadline.cancel()
            self._deadline = None

    def _finish(self, state: HandshakeState) -> None:
        self.state = state
        waiters, self._waiters = self._waiters, []
        for future in waiters:
            if not future.done():
                future.set_result(state)

    def _on_timeout(self) -> None:
        self._deadline = None
        self._stop_timers()
        logger.info(f"{self.role}: no handshake within {self.timeout}s, giving up")
        self._finish(HandshakeState.TIMED_OUT)

    @abstractmethod
    def _on_message(self, raw: Any) -> None:
        """React to a message from the peer."""


class SenderHandshake(HandshakeSession):
    """The window holding the payload (the redirector document)."""

    role = "sender"

    def __init__(
        self,
        channel: MessageChannel,
        payload: str,
        scheduler: Scheduler,
        interval: float = PING_INTERVAL_S,
        timeout: float = HANDSHAKE_TIMEOUT_S
    ):
        super().__init__(channel, scheduler, interval, timeout)
        self.payload = payload

    def _on_timeout(self) -> None:
        super()._on_timeout()
        self.channel.remove_listener(self._on_message)

    def _on_message(self, raw: Any) -> None:
        if parse_message(raw) != HANDSHAKE_READY or self.state != HandshakeState.SIGNALLING:
            return
        self.state = HandshakeState.ACKNOWLEDGED
        self._stop_timers()
        self.channel.post_message(import_message(self.payload))
        self.channel.remove_listener(self._on_message)
        logger.info(f"sender: peer ready after {self.pings_sent} ping(s), payload sent")
        self._finish(HandshakeState.TRANSFERRED)


class ReceiverHandshake(HandshakeSession):
    """
    The freshly opened application window.

    Keeps listening after the transfer so a re-delivered payload still
    reaches on_payload, where duplicates are filtered.
    """

    role = "receiver"

    def __init__(
        self,
        channel: MessageChannel,
        scheduler: Scheduler,
        on_payload: Callable[[str], None],
        interval: float = PING_INTERVAL_S,
        timeout: float = HANDSHAKE_TIMEOUT_S
    ):
        super().__init__(channel, scheduler, interval, timeout)
        self.on_payload = on_payload
        self._answered = False

    def _on_message(self, raw: Any) -> None:
        message = parse_message(raw)
        if message is None:
            return

        if message == HANDSHAKE_READY:
            if self.state == HandshakeState.SIGNALLING and not self._answered:
                self._answered = True
                self.state = HandshakeState.ACKNOWLEDGED
                self.channel.post_message(HANDSHAKE_READY)
            return

        if isinstance(message, ImportPlaybookMessage):
            if self.state not in TERMINAL_STATES:
                self._stop_timers()
                logger.info("receiver: payload received")
                self._finish(HandshakeState.TRANSFERRED)
            self.on_payload(message.data)
