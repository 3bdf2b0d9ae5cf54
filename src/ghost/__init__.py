"""Ghost Admin API integration."""

from ghostdraft.ghost.client import GhostAPIClient, GhostAPIError
from ghostdraft.ghost.config import GhostConfig

__all__ = ["GhostAPIClient", "GhostAPIError", "GhostConfig"]
