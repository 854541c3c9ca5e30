"""Batch line-editing operations.

Each operation builds one EditSpec (validated before any I/O), then applies
it to every file its path patterns resolve to. Files are processed one at
a time; a failing file becomes a failed FileOutcome and processing moves on
to the next one. Validation errors are raised immediately.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from typing import Any

from .config import EditorConfig
from .content import ContentAccumulator
from .exceptions import EditIOError, LineOutOfBoundsError, TargetNotFoundError
from .line_range import LineRange
from .metadata import FileMetadata, detect_metadata, resolve_encoding
from .models import EditKind, EditSpec, MatchCriterion
from .paths import TargetPath, resolve_targets
from .result import FileOutcome
from .transform import apply_edit

logger = logging.getLogger(__name__)

ContentInput = str | Iterable[Any] | None
RangeInput = int | Sequence[int] | None

# Per-file failures; anything else propagates
_FILE_ERRORS = (TargetNotFoundError, LineOutOfBoundsError, EditIOError)


def _optional_range(values: RangeInput) -> LineRange | None:
    if values is None or (not isinstance(values, int) and len(values) == 0):
        return None
    return LineRange.parse(values)


def _criterion(
    contains: str | None, pattern: str | None, replacement: str | None = None
) -> MatchCriterion | None:
    if contains is None and pattern is None:
        return None
    return MatchCriterion(literal=contains, pattern=pattern, replacement=replacement)


def _metadata_for(
    target: TargetPath, encoding: str | None, config: EditorConfig
) -> FileMetadata:
    if target.path.exists():
        return detect_metadata(
            target.path,
            encoding,
            sample_bytes=config.detection_sample_bytes,
            default_newline=config.default_newline,
        )
    return FileMetadata.for_new_file(
        encoding=encoding,
        newline=config.default_newline,
        trailing_newline=config.new_file_trailing_newline,
    )


def iter_outcomes(
    paths: Sequence[str],
    spec: EditSpec,
    *,
    encoding: str | None = None,
    config: EditorConfig | None = None,
    dry_run: bool = False,
    backup: bool | None = None,
) -> Iterator[FileOutcome]:
    """Apply ``spec`` to every file matched by ``paths``, one file at a time.

    Raises:
        EditValidationError: If the encoding name is unknown
    """
    config = config or EditorConfig()
    if encoding:
        resolve_encoding(encoding)
    allow_missing = spec.kind.creates_files and not (
        spec.kind is EditKind.REPLACE and spec.target_range is not None
    )

    for pattern in paths:
        try:
            targets = resolve_targets(pattern, allow_missing=allow_missing)
        except TargetNotFoundError as e:
            logger.warning(str(e))
            yield FileOutcome.failure(pattern, e)
            continue

        for target in targets:
            try:
                metadata = _metadata_for(target, encoding, config)
                result = apply_edit(
                    target.path,
                    metadata,
                    spec,
                    config=config,
                    display_path=target.display,
                    dry_run=dry_run,
                    backup=backup,
                    explicit_encoding=bool(encoding),
                )
            except _FILE_ERRORS as e:
                logger.warning(f"{target.display}: {e}")
                yield FileOutcome.failure(target.display, e)
            except OSError as e:
                error = EditIOError(target.display, "read", e)
                logger.warning(str(error))
                yield FileOutcome.failure(target.display, error)
            else:
                yield FileOutcome.success(target.display, result)


def run_batch(paths: Sequence[str], spec: EditSpec, **options: Any) -> list[FileOutcome]:
    """Apply ``spec`` to every file matched by ``paths`` and collect the outcomes."""
    return list(iter_outcomes(paths, spec, **options))


# =============================================================================
# Operations
# =============================================================================


def add_lines(
    paths: Sequence[str],
    content: ContentInput,
    *,
    line_number: int | None = None,
    **options: Any,
) -> list[FileOutcome]:
    """Insert content before ``line_number``, or append when it is omitted.

    Missing files are created.
    """
    spec = ContentAccumulator().collect(content).finalize(
        EditKind.INSERT, _optional_range(line_number)
    )
    return run_batch(paths, spec, **options)


def set_file_content(
    paths: Sequence[str], content: ContentInput, **options: Any
) -> list[FileOutcome]:
    """Replace the whole file with ``content``, creating it if needed."""
    spec = ContentAccumulator().collect(content if content is not None else []).finalize(
        EditKind.REPLACE
    )
    return run_batch(paths, spec, **options)


def update_lines(
    paths: Sequence[str],
    line_range: RangeInput = None,
    content: ContentInput = None,
    **options: Any,
) -> list[FileOutcome]:
    """Replace a range with ``content``; no content deletes the range.

    Without a range the whole file is replaced (and created if missing).
    """
    spec = ContentAccumulator().collect(content).finalize(
        EditKind.REPLACE, _optional_range(line_range)
    )
    return run_batch(paths, spec, **options)


def remove_lines(
    paths: Sequence[str],
    line_range: RangeInput = None,
    *,
    contains: str | None = None,
    pattern: str | None = None,
    **options: Any,
) -> list[FileOutcome]:
    """Remove lines by range, literal match, regex, or a combination (AND)."""
    spec = EditSpec(
        kind=EditKind.DELETE,
        target_range=_optional_range(line_range),
        match=_criterion(contains, pattern),
    )
    return run_batch(paths, spec, **options)


def update_match(
    paths: Sequence[str],
    replacement: str,
    *,
    contains: str | None = None,
    pattern: str | None = None,
    line_range: RangeInput = None,
    **options: Any,
) -> list[FileOutcome]:
    """Replace every literal or regex match, optionally only within a range."""
    spec = EditSpec(
        kind=EditKind.SUBSTITUTE,
        target_range=_optional_range(line_range),
        match=_criterion(contains, pattern, replacement),
    )
    return run_batch(paths, spec, **options)


def show_text_file(
    paths: Sequence[str],
    line_range: RangeInput = None,
    *,
    contains: str | None = None,
    pattern: str | None = None,
    encoding: str | None = None,
    config: EditorConfig | None = None,
) -> list[FileOutcome]:
    """Numbered view of a range, or grep-style matches with context."""
    spec = EditSpec(
        kind=EditKind.SHOW,
        target_range=_optional_range(line_range),
        match=_criterion(contains, pattern),
    )
    return run_batch(paths, spec, encoding=encoding, config=config)


def test_contains(
    paths: Sequence[str],
    *,
    contains: str | None = None,
    pattern: str | None = None,
    line_range: RangeInput = None,
    encoding: str | None = None,
    config: EditorConfig | None = None,
) -> bool:
    """True if any file has a matching line. Stops at the first match."""
    spec = EditSpec(
        kind=EditKind.TEST,
        target_range=_optional_range(line_range),
        match=_criterion(contains, pattern),
    )
    for outcome in iter_outcomes(paths, spec, encoding=encoding, config=config):
        if outcome.is_success and outcome.unwrap().matched:
            return True
    return False


# Not a pytest test function
test_contains.__test__ = False  # type: ignore[attr-defined]
