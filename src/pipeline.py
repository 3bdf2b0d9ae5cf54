"""Publish pipeline: latest article -> uploaded images -> Ghost draft."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, Field

from ghostdraft.article import Article, load_article
from ghostdraft.discovery import LatestFileFinder
from ghostdraft.errors import (
    DiscoveryError,
    PipelineReport,
    PublishError,
    RemoteSubmissionError,
    RenderError,
)
from ghostdraft.ghost.client import GhostAPIError
from ghostdraft.render import render_markdown
from ghostdraft.rewriter import FEATURE_IMAGE_FIELD, ImageRewriter, UploadRecord
from ghostdraft.uploader import ImageUploader

logger = logging.getLogger(__name__)

POST_STATUS = "draft"


class PostPublisher(Protocol):
    def create_post(
        self, fields: dict[str, object], *, source: str = "html"
    ) -> dict[str, object]: ...


class PublishStatus(StrEnum):
    PUBLISHED = "published"
    NOTHING = "nothing"


class PublishResult(BaseModel):
    """Outcome of one pipeline run."""

    status: PublishStatus
    article_path: str | None = None
    post_url: str | None = None
    uploads: list[UploadRecord] = Field(default_factory=list)


class PublishPipeline:
    """Turns the article touched by HEAD into a Ghost draft.

    Every collaborator is injected, so the pipeline can run against fakes
    in tests and against git + Ghost in CI.
    """

    def __init__(
        self,
        *,
        finder: LatestFileFinder,
        uploader: ImageUploader,
        publisher: PostPublisher,
        renderer: Callable[[str], str] = render_markdown,
        repo_root: Path | str = ".",
        extension: str = ".md",
        feature_image_field: str = FEATURE_IMAGE_FIELD,
        dedupe_uploads: bool = False,
        report: PipelineReport | None = None,
    ) -> None:
        self._finder = finder
        self._uploader = uploader
        self._publisher = publisher
        self._renderer = renderer
        self._repo_root = Path(repo_root)
        self._extension = extension
        self._feature_image_field = feature_image_field
        self._dedupe_uploads = dedupe_uploads
        self.report = report or PipelineReport()

    def run(self) -> PublishResult:
        """Publish the latest article, or do nothing if there is none.

        Raises:
            PublishError: On any unrecoverable failure.  The error is also
                recorded in :attr:`report`.
        """
        try:
            article_path = self._finder.find_latest_file(self._extension)
        except DiscoveryError as exc:
            logger.warning("Could not determine the latest article: %s", exc)
            self.report.add_exception(exc, recoverable=True)
            self.report.finish()
            return PublishResult(status=PublishStatus.NOTHING)

        self.report.mark_stage_complete("discover")
        if not article_path:
            logger.info("No %s file in HEAD commit, nothing to publish", self._extension)
            self.report.finish()
            return PublishResult(status=PublishStatus.NOTHING)

        logger.info("Found article %s", article_path)
        return self.publish_file(article_path)

    def publish_file(self, article_path: str) -> PublishResult:
        """Publish a specific repo-relative article as a draft."""
        self.report.article = article_path
        try:
            result = self._publish(article_path)
        except PublishError as exc:
            logger.error("Publishing %s failed at %s: %s", article_path, exc.stage, exc)
            self.report.add_exception(exc)
            raise
        finally:
            self.report.finish()
        return result

    def _publish(self, article_path: str) -> PublishResult:
        article = load_article(article_path, self._repo_root)
        self.report.mark_stage_complete("load")

        rewriter = ImageRewriter(
            self._uploader,
            dedupe=self._dedupe_uploads,
            feature_image_field=self._feature_image_field,
        )
        body = rewriter.rewrite_images(article.body, article.directory)
        metadata = article.metadata
        if metadata.get(self._feature_image_field) is not None:
            metadata = rewriter.rewrite_feature_image(metadata, article.directory)
        self.report.uploads = [u.model_dump() for u in rewriter.uploads]
        self.report.mark_stage_complete("upload")

        try:
            html = self._renderer(body)
        except RenderError:
            raise
        except Exception as exc:
            raise RenderError(f"Could not render {article.path}: {exc}") from exc
        self.report.mark_stage_complete("render")

        post = self._submit(Article(path=article.path, body=html, metadata=metadata))
        self.report.mark_stage_complete("submit")

        post_url = str(post.get("url") or "") or None
        self.report.post_url = post_url
        logger.info("Post created: %s", post_url)
        return PublishResult(
            status=PublishStatus.PUBLISHED,
            article_path=article.path,
            post_url=post_url,
            uploads=rewriter.uploads,
        )

    def _submit(self, rendered: Article) -> dict[str, object]:
        fields = {**rendered.metadata, "html": rendered.body, "status": POST_STATUS}
        try:
            return self._publisher.create_post(fields, source="html")
        except GhostAPIError as exc:
            raise RemoteSubmissionError(f"Ghost rejected {rendered.path}: {exc}") from exc
        except ValueError as exc:
            raise RemoteSubmissionError(f"Could not submit {rendered.path}: {exc}") from exc
