"""Path and wildcard resolution with display-path formatting."""

from __future__ import annotations

import glob
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .exceptions import TargetNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TargetPath:
    """A concrete file to edit and the name to show for it."""

    path: Path
    display: str


def has_wildcards(pattern: str) -> bool:
    return glob.has_magic(pattern)


def display_path(path: str | Path, cwd: str | Path | None = None) -> str:
    """Shorter of the path relative to ``cwd`` and the absolute path."""
    absolute = os.path.abspath(path)
    try:
        relative = os.path.relpath(absolute, cwd or os.getcwd())
    except ValueError:
        # Different drives on Windows
        return absolute
    return relative if len(relative) < len(absolute) else absolute


def resolve_targets(
    pattern: str, *, allow_missing: bool = False, cwd: str | Path | None = None
) -> list[TargetPath]:
    """Expand one user-supplied path or wildcard pattern into files.

    Wildcard matches are shown as the pattern's directory joined with the
    matched file name, so the caller recognises what they asked for.

    Args:
        pattern: File path or glob pattern (``~`` expanded)
        allow_missing: Accept a non-wildcard path that does not exist yet
        cwd: Directory relative paths are resolved against

    Raises:
        TargetNotFoundError: If nothing matches
    """
    base = Path(cwd) if cwd else Path.cwd()
    expanded = os.path.expanduser(pattern)

    if has_wildcards(expanded):
        search = expanded if os.path.isabs(expanded) else str(base / expanded)
        matches = sorted(p for p in glob.glob(search) if os.path.isfile(p))
        if not matches:
            raise TargetNotFoundError(pattern)
        pattern_dir = os.path.dirname(pattern)
        logger.debug(f"Pattern {pattern!r} matched {len(matches)} file(s)")
        return [
            TargetPath(Path(match), os.path.join(pattern_dir, os.path.basename(match)))
            for match in matches
        ]

    path = Path(expanded)
    if not path.is_absolute():
        path = base / path
    if path.is_dir():
        raise TargetNotFoundError(f"{pattern} (is a directory)")
    if not path.exists() and not allow_missing:
        raise TargetNotFoundError(pattern)
    return [TargetPath(path, display_path(path, base))]
