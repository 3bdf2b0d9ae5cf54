"""Configuration model for the Ghost Admin API."""

import os

from pydantic import BaseModel


class GhostConfig(BaseModel):
    """Connection settings for a Ghost site."""

    url: str = ""
    admin_api_key: str = ""
    api_version: str = "v5.0"
    timeout: int = 30

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.admin_api_key)

    @property
    def admin_url(self) -> str:
        return f"{self.url.rstrip('/')}/ghost/api/admin"

    @classmethod
    def from_env(cls) -> "GhostConfig":
        """Create config from environment variables.

        GitHub Action inputs (``INPUT_*``) take precedence over the plain
        ``GHOST_*`` variables.
        """
        return cls(
            url=os.environ.get("INPUT_GHOST_API_URL") or os.environ.get("GHOST_URL", ""),
            admin_api_key=(
                os.environ.get("INPUT_GHOST_ADMIN_API_KEY")
                or os.environ.get("GHOST_ADMIN_API_KEY", "")
            ),
            api_version=os.environ.get("GHOST_API_VERSION", "v5.0"),
        )
