"""Window-messaging vocabulary: a ready ping and a payload delivery."""

import logging
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ValidationError

logger = logging.getLogger("playbook_share.messages")

HANDSHAKE_READY = "HANDSHAKE_READY"
IMPORT_PLAYBOOK = "IMPORT_PLAYBOOK"


class ImportPlaybookMessage(BaseModel):
    """Payload delivery from the sending window."""
    type: Literal["IMPORT_PLAYBOOK"] = IMPORT_PLAYBOOK
    data: str


Message = Union[str, ImportPlaybookMessage]


def import_message(data: str) -> dict:
    """Wire form of a payload delivery."""
    return ImportPlaybookMessage(data=data).model_dump()


def parse_message(raw: Any) -> Optional[Message]:
    """
    Classify an incoming message.

    Returns HANDSHAKE_READY, an ImportPlaybookMessage, or None for anything
    else. Unknown shapes are ignored, never treated as errors.
    """
    if raw == HANDSHAKE_READY:
        return HANDSHAKE_READY
    if isinstance(raw, dict) and raw.get("type") == IMPORT_PLAYBOOK:
        try:
            return ImportPlaybookMessage.model_validate(raw)
        except ValidationError:
            logger.debug("Ignoring malformed IMPORT_PLAYBOOK message")
            return None
    return None
