"""Image upload boundary between the rewriter and the CMS client."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from ghostdraft.errors import UploadError
from ghostdraft.ghost.client import GhostAPIClient, GhostAPIError

logger = logging.getLogger(__name__)


class ImageUploader(Protocol):
    """Anything that turns a repo-relative image path into a remote URL."""

    def upload(self, path: str) -> str:
        """Upload the image at *path* and return its URL.

        Raises:
            UploadError: If the upload fails for any reason.
        """
        ...


class GhostImageUploader:
    """Uploads repository images through a :class:`GhostAPIClient`."""

    def __init__(self, client: GhostAPIClient, repo_root: Path | str = ".") -> None:
        self._client = client
        self._repo_root = Path(repo_root)

    def upload(self, path: str) -> str:
        local = self._repo_root / path
        if not local.is_file():
            raise UploadError(path, f"Image not found: {local}")

        try:
            image = self._client.upload_image(local)
        except GhostAPIError as exc:
            raise UploadError(path, f"Ghost rejected image {path}: {exc}") from exc
        except OSError as exc:
            raise UploadError(path, f"Could not read image {local}: {exc}") from exc
        except ValueError as exc:
            raise UploadError(path, f"Could not upload image {path}: {exc}") from exc

        url = str(image["url"])
        logger.info("Uploaded %s -> %s", path, url)
        return url
