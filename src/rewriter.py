"""Rewrite local image references into uploaded URLs.

The rewriter never mutates its inputs.  If any upload fails the exception
propagates and the caller is left with its original, untouched document,
so a half-rewritten article can never reach the CMS.
"""

from __future__ import annotations

import copy
import logging
import re

from pydantic import BaseModel

from ghostdraft.references import IMAGE_PATTERN, is_remote, resolve_reference
from ghostdraft.uploader import ImageUploader

logger = logging.getLogger(__name__)

FEATURE_IMAGE_FIELD = "feature_image"


class UploadRecord(BaseModel):
    """One successful upload: the reference as written and where it went."""

    reference: str
    resolved_path: str
    url: str


class ImageRewriter:
    """Resolves, uploads and substitutes image references for one article.

    Args:
        uploader: Where local images are sent.
        dedupe: Upload each distinct local reference once and point every
            image that uses it at the same URL.  Off by default, in which
            case every image occurrence is uploaded on its own.
        feature_image_field: Metadata key holding the feature image.
    """

    def __init__(
        self,
        uploader: ImageUploader,
        *,
        dedupe: bool = False,
        feature_image_field: str = FEATURE_IMAGE_FIELD,
    ) -> None:
        self._uploader = uploader
        self._dedupe = dedupe
        self._feature_image_field = feature_image_field
        self.uploads: list[UploadRecord] = []

    def _upload(self, ref: str, resolved: str) -> str:
        url = self._uploader.upload(resolved)
        self.uploads.append(UploadRecord(reference=ref, resolved_path=resolved, url=url))
        return url

    def rewrite_images(self, markdown: str, article_dir: str) -> str:
        """Return *markdown* with every local image replaced by its upload URL.

        Only the target of each ``![alt](target)`` match is rewritten, so
        prose mentioning a filename and URLs already written for earlier
        images are never touched.
        """
        seen: dict[str, str] = {}

        def substitute(match: re.Match[str]) -> str:
            ref = match.group(1)
            resolved = resolve_reference(ref, article_dir)
            if is_remote(resolved):
                logger.debug("Skipping remote image %s", ref)
                return match.group(0)

            if self._dedupe and ref in seen:
                url = seen[ref]
            else:
                url = seen[ref] = self._upload(ref, resolved)

            start, end = match.span(1)
            offset = match.start(0)
            whole = match.group(0)
            return f"{whole[: start - offset]}{url}{whole[end - offset:]}"

        return IMAGE_PATTERN.sub(substitute, markdown)

    def rewrite_feature_image(
        self, metadata: dict[str, object], article_dir: str
    ) -> dict[str, object]:
        """Return a copy of *metadata* with its feature image uploaded."""
        updated = copy.deepcopy(metadata)
        ref = updated.get(self._feature_image_field)
        if not ref:
            return updated

        ref = str(ref)
        resolved = resolve_reference(ref, article_dir)
        if is_remote(resolved):
            logger.debug("Feature image already remote: %s", ref)
            return updated

        updated[self._feature_image_field] = self._upload(ref, resolved)
        return updated


def rewrite_images(markdown: str, article_dir: str, uploader: ImageUploader) -> str:
    """Rewrite the images of a Markdown body, one upload per occurrence."""
    return ImageRewriter(uploader).rewrite_images(markdown, article_dir)


def rewrite_feature_image(
    metadata: dict[str, object], article_dir: str, uploader: ImageUploader
) -> dict[str, object]:
    """Rewrite the ``feature_image`` field of a metadata object."""
    return ImageRewriter(uploader).rewrite_feature_image(metadata, article_dir)
