"""Image reference extraction and path resolution.

Both functions are pure: they never touch the filesystem.  Resolution maps
an image reference, as written in an article, to a path relative to the
repository root.  Existence is only checked when the image is uploaded.
"""

from __future__ import annotations

import posixpath
import re

from ghostdraft.errors import PathResolutionError

IMAGE_PATTERN = re.compile(r"!\[.*?\]\((.*?)\)")
PARENT_PREFIX = re.compile(r"^(?:\.\./)+")
REMOTE_PREFIX = "http"


def extract_references(markdown: str) -> list[str]:
    """Return every image target in *markdown*, in order, repeats included.

    >>> extract_references("![a](x.png) text ![b](x.png)")
    ['x.png', 'x.png']
    """
    return [match.group(1) for match in IMAGE_PATTERN.finditer(markdown)]


def is_remote(ref: str) -> bool:
    """True if *ref* is already a remote URL and must not be uploaded."""
    return ref.startswith(REMOTE_PREFIX)


def resolve_reference(ref: str, article_dir: str) -> str:
    """Resolve *ref* against the directory of the article that contains it.

    Args:
        ref: Image reference as written in the Markdown or metadata.
        article_dir: Directory of the article, relative to the repository
            root, with ``/`` separators (``""`` for the root itself).

    Returns:
        The reference unchanged if it is a remote URL, otherwise a path
        relative to the repository root.

    Raises:
        PathResolutionError: If the reference climbs above the root.
    """
    if is_remote(ref):
        return ref

    if ref.startswith("/"):
        return ref[1:]

    article_dir = article_dir.strip("/")

    prefix = PARENT_PREFIX.match(ref)
    if prefix:
        levels = prefix.group(0).count("../")
        segments = article_dir.split("/") if article_dir else []
        if levels > len(segments):
            raise PathResolutionError(
                f"{ref!r} climbs {levels} level(s) above {article_dir or '<root>'!r}"
            )
        parent = "/".join(segments[: len(segments) - levels])
        rest = ref[prefix.end():]
        return f"{parent}/{rest}" if parent else rest

    if not ref:
        return posixpath.join(article_dir, ref)

    resolved = posixpath.normpath(posixpath.join(article_dir, ref))
    if resolved == ".." or resolved.startswith("../"):
        raise PathResolutionError(f"{ref!r} resolves outside the repository root")
    return resolved


def article_directory(article_path: str) -> str:
    """Return the POSIX directory part of a repo-relative article path."""
    return article_path.replace("\\", "/").rpartition("/")[0]
