"""FastAPI application entry point."""

import json
import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import router
from ..codec.transport import coerce_playbook
from ..core.errors import DecodeError
from ..core.registry import registry

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("playbook_share")

# Create FastAPI app
app = FastAPI(
    title="Playbook Share",
    description="Playbook document model, compact share codec and share transport",
    version="0.1.0"
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routes
app.include_router(router)


def load_playbooks(data_dir: Optional[Path] = None) -> int:
    """Load saved playbook documents (*.json) into the registry."""
    data_dir = data_dir or Path(__file__).parent.parent / "data" / "playbooks"

    if not data_dir.exists():
        logger.warning(f"Playbook directory not found: {data_dir}")
        return 0

    loaded = 0
    for path in sorted(data_dir.glob("*.json")):
        try:
            with open(path) as f:
                playbook = coerce_playbook(json.load(f))
            registry.playbooks.create(playbook.id, playbook)
            loaded += 1
        except (OSError, json.JSONDecodeError, DecodeError, ValueError) as e:
            logger.error(f"Failed to load playbook {path.name}: {e}")

    logger.info(f"Playbooks loaded: {loaded} ({registry.playbooks.count()} in collection)")
    return loaded


@app.on_event("startup")
async def startup_event():
    """Startup tasks."""
    logger.info("Playbook Share starting up...")
    load_playbooks()
    logger.info("API documentation available at http://localhost:8000/docs")


@app.on_event("shutdown")
async def shutdown_event():
    """Shutdown tasks."""
    logger.info("Playbook Share shutting down...")
