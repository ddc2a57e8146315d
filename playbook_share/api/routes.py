"""API route handlers."""

import logging
from typing import List

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import HTMLResponse

from . import schemas
from ..config import load_settings
from ..core.editing import new_playbook
from ..core.errors import CellOccupiedConflict, DecodeError
from ..core.grid import assign_to_cell, clear_cell, move_to_cell
from ..core.models import Playbook
from ..core.registry import registry
from ..core.validation import ValidationError, validate_playbook
from ..share.export import ShareExporter, redirector_filename
from ..share.session import ShareImporter, load_shared_playbook

logger = logging.getLogger("playbook_share.api")

router = APIRouter()


def _get_playbook(playbook_id: str) -> Playbook:
    playbook = registry.playbooks.get(playbook_id)
    if playbook is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Playbook {playbook_id} not found"
        )
    return playbook


def _exporter() -> ShareExporter:
    return ShareExporter(load_settings())


# ============================================================================
# Health
# ============================================================================

@router.get("/health", response_model=schemas.HealthResponse)
async def health_check():
    """Health check endpoint."""
    return schemas.HealthResponse(ok=True, version="0.1.0")


# ============================================================================
# Playbooks CRUD
# ============================================================================

@router.get("/playbooks")
async def list_playbooks() -> List[dict]:
    """List all playbooks."""
    return [pb.to_document() for pb in registry.playbooks.list()]


@router.post("/playbooks", status_code=status.HTTP_201_CREATED)
async def create_playbook(request: schemas.CreatePlaybookRequest):
    """Create a playbook from a document, or an empty one from a name."""
    if request.playbook is not None:
        playbook = request.playbook
    elif request.name:
        playbook = new_playbook(request.name)
    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide a playbook or a name"
        )
    try:
        registry.playbooks.create(playbook.id, playbook)
    except (ValidationError, ValueError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return playbook.to_document()


@router.get("/playbooks/{playbook_id}")
async def get_playbook(playbook_id: str):
    """Get a specific playbook."""
    return _get_playbook(playbook_id).to_document()


@router.delete("/playbooks/{playbook_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_playbook(playbook_id: str):
    """Delete a playbook and all of its plays."""
    if not registry.playbooks.delete(playbook_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Playbook {playbook_id} not found"
        )


# ============================================================================
# Grid
# ============================================================================

@router.put("/playbooks/{playbook_id}/grid/{row}/{column}")
async def assign_cell(playbook_id: str, row: int, column: int, request: schemas.AssignCellRequest):
    """Place a play on a cell. 409 when occupied unless evict is set."""
    playbook = _get_playbook(playbook_id)
    play = playbook.play(request.play_id)
    if play is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Play {request.play_id} not found"
        )
    try:
        if request.evict:
            move_to_cell(playbook, play, row, column)
        else:
            assign_to_cell(playbook, play, row, column)
    except CellOccupiedConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return playbook.to_document()


@router.delete("/playbooks/{playbook_id}/grid/{row}/{column}")
async def clear_grid_cell(playbook_id: str, row: int, column: int):
    """Take whatever play sits on a cell off the grid."""
    playbook = _get_playbook(playbook_id)
    evicted = clear_cell(playbook, row, column)
    return {"cleared": evicted.id if evicted else None}


# ============================================================================
# Sharing
# ============================================================================

@router.post("/playbooks/{playbook_id}/share", response_model=schemas.ShareResponse)
async def share_playbook(playbook_id: str):
    """Encode a playbook and build its share link."""
    playbook = _get_playbook(playbook_id)
    exporter = _exporter()
    encoded = exporter.encode(playbook)
    return schemas.ShareResponse(
        playbook_id=playbook.id,
        encoded=encoded,
        share_url=exporter.share_url(playbook, encoded),
        length=len(encoded),
    )


@router.get("/playbooks/{playbook_id}/redirector", response_class=HTMLResponse)
async def download_redirector(playbook_id: str):
    """Self-contained redirector document as a download."""
    playbook = _get_playbook(playbook_id)
    filename = redirector_filename(playbook.name)
    return HTMLResponse(
        content=_exporter().redirector(playbook),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import", status_code=status.HTTP_201_CREATED)
async def import_payload(request: schemas.ImportRequest):
    """Decode a shared payload; store it unless previewing."""
    if request.preview:
        try:
            playbook = load_shared_playbook(request.payload)
            validate_playbook(playbook)
        except (DecodeError, ValidationError) as e:
            logger.info(f"Rejected preview payload: {e}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=DecodeError.user_message
            )
        return playbook.to_document()

    importer = ShareImporter(registry.playbooks)
    if not await importer.import_playbook(request.payload):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=DecodeError.user_message
        )
    return importer.last_imported.to_document()
