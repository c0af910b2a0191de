"""Runtime settings for the sync client."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class SyncSettings(BaseSettings):
    """Client configuration loaded from environment variables.

    Every field can be overridden with an ``RMSYNC_`` prefixed variable,
    e.g. ``RMSYNC_SYNC_HOST=https://sync.example.com``.
    """

    auth_host: str = "https://webapp-prod.cloud.remarkable.engineering"
    sync_host: str = "https://internal.cloud.remarkable.com"
    device_desc: str = "desktop-linux"
    request_timeout: float = 30.0
    blob_timeout: float = 300.0  # 5 minutes for blob transfers

    model_config = {
        "env_file": [".env"],
        "env_prefix": "RMSYNC_",
        "extra": "ignore",
    }
