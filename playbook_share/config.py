"""Runtime settings for sharing."""

import os
from typing import Optional

from pydantic import BaseModel, Field

ENV_PREFIX = "PLAYBOOK_SHARE_"


class ShareSettings(BaseModel):
    """Canonical app URL and handshake timing."""
    app_url: str = "http://localhost:8000/"
    ping_interval_s: float = Field(default=0.5, gt=0.0)
    handshake_timeout_s: float = Field(default=10.0, gt=0.0)
    use_fragment_links: bool = False

    @property
    def ping_interval_ms(self) -> int:
        return int(round(self.ping_interval_s * 1000))

    @property
    def handshake_timeout_ms(self) -> int:
        return int(round(self.handshake_timeout_s * 1000))


def load_settings(environ: Optional[dict] = None) -> ShareSettings:
    """Defaults overridden by PLAYBOOK_SHARE_* environment variables."""
    environ = os.environ if environ is None else environ
    overrides = {}
    for name in ShareSettings.model_fields:
        value = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value is not None:
            overrides[name] = value
    return ShareSettings.model_validate(overrides)
