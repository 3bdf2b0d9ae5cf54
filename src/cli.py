"""CLI interface for ghostdraft."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ghostdraft.article import load_article
from ghostdraft.config import GhostdraftConfig, load_config, merge_cli_overrides
from ghostdraft.discovery import GitLatestFileFinder
from ghostdraft.errors import PathResolutionError, PipelineReport, PublishError, save_report
from ghostdraft.ghost.client import GhostAPIClient, GhostAPIError
from ghostdraft.pipeline import PublishPipeline, PublishStatus
from ghostdraft.references import extract_references, is_remote, resolve_reference
from ghostdraft.uploader import GhostImageUploader

app = typer.Typer(
    name="ghostdraft",
    help="Publish the Markdown article of the latest commit as a Ghost draft.",
)

console = Console()
_stderr_console = Console(stderr=True)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_stderr_console, show_path=False)],
        force=True,
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from ghostdraft import __version__

        console.print(f"ghostdraft {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """ghostdraft - Markdown articles to Ghost drafts, images included."""
    pass


def _load(config_file: Path | None, **overrides: object) -> GhostdraftConfig:
    config = load_config(config_file)
    return merge_cli_overrides(config, **overrides)


@app.command(name="publish")
def publish_cmd(
    file: Annotated[
        Optional[str],
        typer.Option(
            "--file",
            "-f",
            help="Repo-relative article to publish instead of the one in HEAD.",
        ),
    ] = None,
    repo_root: Annotated[
        Optional[str],
        typer.Option("--repo-root", help="Repository checkout to publish from."),
    ] = None,
    config_file: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a .ghostdraft.toml file."),
    ] = None,
    ghost_url: Annotated[
        Optional[str],
        typer.Option("--ghost-url", help="Ghost site URL."),
    ] = None,
    ghost_key: Annotated[
        Optional[str],
        typer.Option("--ghost-key", help="Ghost Admin API key (id:secret)."),
    ] = None,
    dedupe: Annotated[
        Optional[bool],
        typer.Option(
            "--dedupe/--no-dedupe",
            help="Upload each distinct image once and replace every occurrence.",
        ),
    ] = None,
    report_path: Annotated[
        Optional[Path],
        typer.Option("--report", help="Write a JSON run report to this path."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable debug logging."),
    ] = False,
) -> None:
    """Upload the article's local images and create a Ghost draft.

    Without --file, the article is the Markdown file added or modified
    by the HEAD commit.  A commit without one is not an error.
    """
    config = _load(
        config_file,
        ghost_url=ghost_url,
        ghost_key=ghost_key,
        repo_root=repo_root,
        dedupe=dedupe,
        log_level="DEBUG" if verbose else None,
    )
    _setup_logging(config.logging.level)

    ghost_config = config.to_ghost_config()
    if not ghost_config.is_configured:
        console.print(
            "[red]Error:[/red] Ghost is not configured "
            "(set GHOST_URL and GHOST_ADMIN_API_KEY, or pass --ghost-url/--ghost-key)."
        )
        raise typer.Exit(1)

    report = PipelineReport()
    try:
        client = GhostAPIClient(ghost_config)
    except (GhostAPIError, ValueError) as exc:
        _stderr_console.print(f"[red]Error:[/red] {exc}")
        report.add_error("configure", str(exc), error_type=type(exc).__name__)
        report.finish()
        _finish_report(report, report_path)
        raise typer.Exit(1)

    root = config.publish.repo_root
    pipeline = PublishPipeline(
        finder=GitLatestFileFinder(root),
        uploader=GhostImageUploader(client, root),
        publisher=client,
        repo_root=root,
        extension=config.publish.extension,
        feature_image_field=config.publish.feature_image_field,
        dedupe_uploads=config.publish.dedupe_uploads,
        report=report,
    )

    try:
        result = pipeline.publish_file(file) if file else pipeline.run()
    except PublishError as exc:
        _stderr_console.print(f"[red]Failed to create post:[/red] {exc}")
        if exc.__cause__ is not None:
            _stderr_console.print(f"  caused by: {exc.__cause__}")
        _finish_report(report, report_path)
        raise typer.Exit(1)

    _finish_report(report, report_path)

    if result.status == PublishStatus.NOTHING:
        console.print(f"[yellow]No {config.publish.extension} file in HEAD commit.[/yellow]")
        return

    console.print(f"[bold green]Post created:[/bold green] {result.post_url}")
    for upload in result.uploads:
        console.print(f"  {upload.reference} -> {upload.url}")


def _finish_report(report: PipelineReport, report_path: Path | None) -> None:
    if report_path is None:
        return
    written = save_report(report, report_path)
    console.print(f"Report written to {written}")
    console.print(report.summary_text())


@app.command(name="images")
def images_cmd(
    file: Annotated[
        str,
        typer.Argument(help="Repo-relative path of the article to inspect."),
    ],
    repo_root: Annotated[
        Optional[str],
        typer.Option("--repo-root", help="Repository checkout the path is relative to."),
    ] = None,
    feature_image_field: Annotated[
        Optional[str],
        typer.Option("--feature-field", help="Metadata key holding the feature image."),
    ] = None,
    config_file: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a .ghostdraft.toml file."),
    ] = None,
) -> None:
    """List an article's images and where they resolve, without uploading.

    Exits 1 if a local image is missing or cannot be resolved.
    """
    config = _load(config_file, repo_root=repo_root, feature_image_field=feature_image_field)
    _setup_logging(config.logging.level)
    root = config.publish.repo_root
    field = config.publish.feature_image_field

    try:
        article = load_article(file, root)
    except PublishError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    refs = [("body", ref) for ref in extract_references(article.body)]
    feature = article.metadata.get(field)
    if feature:
        refs.append((field, str(feature)))

    if not refs:
        console.print("No images referenced.")
        return

    table = Table(title=article.path)
    table.add_column("Where")
    table.add_column("Reference")
    table.add_column("Resolved")
    table.add_column("Status")

    problems = 0
    for where, ref in refs:
        try:
            resolved = resolve_reference(ref, article.directory)
        except PathResolutionError as exc:
            table.add_row(where, ref, "-", f"[red]{exc}[/red]")
            problems += 1
            continue

        if is_remote(resolved):
            status = "remote"
        elif (Path(root) / resolved).is_file():
            status = "[green]ok[/green]"
        else:
            status = "[red]missing[/red]"
            problems += 1
        table.add_row(where, ref, resolved, status)

    console.print(table)
    if problems:
        console.print(f"[red]{problems} image(s) cannot be published.[/red]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
