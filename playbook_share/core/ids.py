"""ID generation utilities."""

import uuid


def generate_id(prefix: str = "") -> str:
    """Generate a unique ID with optional prefix."""
    unique = str(uuid.uuid4())
    return f"{prefix}_{unique}" if prefix else unique
