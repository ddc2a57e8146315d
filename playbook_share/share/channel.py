"""Cross-context message channel and an in-process implementation."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Tuple

from .scheduler import Scheduler

logger = logging.getLogger("playbook_share.channel")

Listener = Callable[[Any], None]


class MessageChannel(ABC):
    """One end of a duplex window-messaging link."""

    @abstractmethod
    def post_message(self, message: Any) -> None:
        """Send a message to the peer. Fire-and-forget, no delivery guarantee."""

    @abstractmethod
    def add_listener(self, listener: Listener) -> None:
        """Receive messages posted by the peer."""

    @abstractmethod
    def remove_listener(self, listener: Listener) -> None:
        """Stop receiving messages on a listener."""


class InProcessEndpoint(MessageChannel):
    """
    Endpoint of an in-process channel.

    Delivery is scheduled, never synchronous. Messages are copied through
    JSON so the two sides share no objects. A message reaching an endpoint
    with no listeners is dropped, like a post to a window that has not
    loaded yet.
    """

    def __init__(self, scheduler: Scheduler, name: str = ""):
        self.name = name
        self._scheduler = scheduler
        self._listeners: List[Listener] = []
        self._peer: Optional["InProcessEndpoint"] = None
        self.sent: List[Any] = []
        self.closed = False

    def connect(self, peer: "InProcessEndpoint") -> None:
        self._peer = peer
        peer._peer = self

    def post_message(self, message: Any) -> None:
        if self.closed or self._peer is None:
            return
        wire = json.dumps(message)
        self.sent.append(json.loads(wire))
        peer = self._peer
        self._scheduler.call_soon(lambda: peer._deliver(json.loads(wire)))

    def add_listener(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def close(self) -> None:
        """Tear the context down: drop listeners and stop delivery."""
        self.closed = True
        self._listeners.clear()

    def _deliver(self, message: Any) -> None:
        if self.closed:
            return
        if not self._listeners:
            logger.debug(f"{self.name or 'endpoint'}: dropped message with no listener")
            return
        for listener in list(self._listeners):
            listener(message)


def create_channel_pair(
    scheduler: Scheduler,
    names: Tuple[str, str] = ("sender", "receiver")
) -> Tuple[InProcessEndpoint, InProcessEndpoint]:
    """Two connected endpoints sharing one scheduler."""
    a = InProcessEndpoint(scheduler, names[0])
    b = InProcessEndpoint(scheduler, names[1])
    a.connect(b)
    return a, b
