"""Error types and structured run reporting for the publish pipeline."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

REPORT_FILENAME = ".ghostdraft-last-run.json"


class PublishError(Exception):
    """Base class for every failure the pipeline knows how to report."""

    stage = "publish"


class DiscoveryError(PublishError):
    """The version-control query for the latest article failed."""

    stage = "discover"


class MissingFileError(PublishError):
    """The article or its metadata file does not exist."""

    stage = "load"


class MetadataError(PublishError):
    """The metadata file exists but is not a JSON object."""

    stage = "load"


class PathResolutionError(PublishError):
    """An image reference points above the repository root."""

    stage = "resolve"


class UploadError(PublishError):
    """A local image could not be uploaded."""

    stage = "upload"

    def __init__(self, path: str, message: str = "") -> None:
        self.path = path
        super().__init__(message or f"Failed to upload image {path}")


class RenderError(PublishError):
    """The Markdown renderer raised."""

    stage = "render"


class RemoteSubmissionError(PublishError):
    """Ghost rejected the post."""

    stage = "submit"


class RunError(BaseModel):
    """A single error captured during a pipeline run."""

    stage: str
    source: str = ""
    error_type: str = "unknown"
    message: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)
    recoverable: bool = False


class PipelineReport(BaseModel):
    """Summary report of a publish run."""

    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: datetime | None = None
    article: str | None = None
    stages_completed: list[str] = Field(default_factory=list)
    errors: list[RunError] = Field(default_factory=list)
    uploads: list[dict[str, str]] = Field(default_factory=list)
    post_url: str | None = None

    def add_error(
        self,
        stage: str,
        message: str,
        *,
        source: str = "",
        error_type: str = "unknown",
        recoverable: bool = False,
    ) -> None:
        """Record an error during pipeline execution."""
        self.errors.append(
            RunError(
                stage=stage,
                source=source,
                error_type=error_type,
                message=message,
                recoverable=recoverable,
            )
        )

    def add_exception(self, exc: PublishError, *, recoverable: bool = False) -> None:
        """Record a pipeline exception under the stage it belongs to."""
        cause = exc.__cause__
        message = str(exc)
        if cause is not None:
            message = f"{message} ({cause})"
        self.add_error(
            exc.stage,
            message,
            source=getattr(exc, "path", ""),
            error_type=type(exc).__name__,
            recoverable=recoverable,
        )

    def mark_stage_complete(self, stage: str) -> None:
        """Record that a pipeline stage completed."""
        if stage not in self.stages_completed:
            self.stages_completed.append(stage)

    def finish(self) -> None:
        """Mark the report as finished."""
        self.finished_at = datetime.now()

    @property
    def success(self) -> bool:
        """True if no unrecoverable errors occurred."""
        return not any(not e.recoverable for e in self.errors)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def summary_text(self) -> str:
        """Human-readable summary of the run."""
        duration = ""
        if self.finished_at and self.started_at:
            secs = (self.finished_at - self.started_at).total_seconds()
            duration = f" in {secs:.0f}s" if secs < 60 else f" in {secs / 60:.1f}m"

        status = "completed" if self.success else "failed"
        lines = [f"Publish {status}{duration}"]

        if self.article:
            lines.append(f"Article: {self.article}")

        if self.stages_completed:
            lines.append(f"Stages: {', '.join(self.stages_completed)}")

        if self.uploads:
            lines.append(f"Images uploaded: {len(self.uploads)}")

        if self.post_url:
            lines.append(f"Draft: {self.post_url}")

        if self.errors:
            lines.append(f"Errors: {len(self.errors)}")
            for err in self.errors[:5]:
                prefix = "[recoverable]" if err.recoverable else "[FATAL]"
                lines.append(f"  {prefix} {err.stage}: {err.message}")
            if len(self.errors) > 5:
                lines.append(f"  ... and {len(self.errors) - 5} more")

        return "\n".join(lines)


def save_report(report: PipelineReport, path: Path) -> Path:
    """Save the report as JSON.

    ``path`` may be a directory, in which case the default report
    filename is used inside it.
    """
    report_path = path / REPORT_FILENAME if path.is_dir() else path
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
    return report_path


def load_report(path: Path) -> PipelineReport | None:
    """Load a previously saved report, or ``None`` if absent or corrupt."""
    report_path = path / REPORT_FILENAME if path.is_dir() else path
    if not report_path.exists():
        return None
    try:
        data = json.loads(report_path.read_text(encoding="utf-8"))
        return PipelineReport.model_validate(data)
    except (json.JSONDecodeError, ValueError):
        logger.warning("Corrupt report at %s", report_path)
        return None
