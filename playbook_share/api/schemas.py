"""API request/response schemas."""

from typing import Optional
from pydantic import BaseModel, Field

from ..core.models import Playbook


# ============================================================================
# Health
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = True
    version: str = "0.1.0"


# ============================================================================
# Playbooks
# ============================================================================

class CreatePlaybookRequest(BaseModel):
    """Create playbook request: a full document or just a name."""
    playbook: Optional[Playbook] = None
    name: Optional[str] = None


class AssignCellRequest(BaseModel):
    """Place a play on a grid cell."""
    play_id: str
    evict: bool = False


# ============================================================================
# Sharing
# ============================================================================

class ShareResponse(BaseModel):
    """Encoded payload and link for a playbook."""
    playbook_id: str
    encoded: str
    share_url: str
    length: int


class ImportRequest(BaseModel):
    """Payload text, share link or redirector document to import."""
    payload: str = Field(min_length=1)
    preview: bool = False
