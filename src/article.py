"""Article loading: the Markdown body plus its sibling JSON metadata."""

from __future__ import annotations

import json
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, Field

from ghostdraft.errors import MetadataError, MissingFileError
from ghostdraft.references import article_directory

METADATA_SUFFIX = ".json"


class Article(BaseModel):
    """A Markdown article and the post fields that accompany it."""

    path: str
    body: str
    metadata: dict[str, object] = Field(default_factory=dict)

    @property
    def directory(self) -> str:
        """Directory of the article relative to the repository root."""
        return article_directory(self.path)

    @property
    def metadata_path(self) -> str:
        return metadata_path_for(self.path)


def metadata_path_for(article_path: str) -> str:
    """Return the metadata file path: same basename, ``.json`` extension."""
    return str(PurePosixPath(article_path.replace("\\", "/")).with_suffix(METADATA_SUFFIX))


def load_article(article_path: str, repo_root: Path | str = ".") -> Article:
    """Read an article and its metadata from the repository checkout.

    Raises:
        MissingFileError: If either file does not exist.
        MetadataError: If the metadata is not a JSON object.
    """
    root = Path(repo_root)
    body_file = root / article_path
    meta_rel = metadata_path_for(article_path)
    meta_file = root / meta_rel

    if not body_file.is_file():
        raise MissingFileError(f"Article not found: {body_file}")
    if not meta_file.is_file():
        raise MissingFileError(f"Metadata file not found: {meta_file}")

    try:
        body = body_file.read_text(encoding="utf-8")
        metadata = json.loads(meta_file.read_text(encoding="utf-8"))
    except OSError as exc:
        raise MissingFileError(f"Could not read {article_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise MetadataError(f"Invalid JSON in {meta_rel}: {exc}") from exc

    if not isinstance(metadata, dict):
        raise MetadataError(f"{meta_rel} must contain a JSON object")

    return Article(path=article_path.replace("\\", "/"), body=body, metadata=metadata)
