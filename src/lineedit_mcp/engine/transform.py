"""Single-pass streaming edit engine.

``apply_edit`` is the one entry point behind every operation. It reads the
file once, front to back, decides per line whether to keep, remove, replace
or insert before it, writes the result to a temporary sibling, feeds the
ContextRenderer as it goes, and finally swaps the temporary file into place.

Memory use is bounded by the context window, the tail length of an
end-relative range, the omission threshold and the size of the new content;
never by the size of the file.

Newline discipline: the newline sequence is written between every pair of
output lines and after the last line only when the file had a trailing
newline. LineSink enforces this structurally.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from contextlib import closing
from pathlib import Path
from typing import TextIO

from .ansi import Palette
from .atomic import atomic_replace, create_backup, staged_file
from .config import EditorConfig
from .exceptions import (
    EditIOError,
    EditWarning,
    LineEditError,
    NoMatchWarning,
    RangeClampedWarning,
    TargetNotFoundError,
)
from .line_range import LineRange, ResolvedRange
from .metadata import (
    BOM_CHAR,
    FileMetadata,
    detect_metadata,
    read_lines,
    upgrade_encoding_for_content,
)
from .models import EditKind, EditResult, EditSpec
from .report import ChangeReport, ContextRenderer, summarize
from .rotate_buffer import RotateBuffer

logger = logging.getLogger(__name__)

# Edits whose changed blocks are abbreviated when long
_OMITTING_KINDS = (EditKind.INSERT, EditKind.REPLACE, EditKind.DELETE)


class LineSink:
    """Writes lines with exactly one newline sequence between them.

    A sink without a handle only counts lines (dry runs and read-only edits).
    """

    def __init__(self, handle: TextIO | None, metadata: FileMetadata):
        self._handle = handle
        self._newline = metadata.newline
        self._bom = metadata.has_bom
        self._trailing_newline = metadata.has_trailing_newline
        self.count = 0

    @classmethod
    def discard(cls, metadata: FileMetadata) -> LineSink:
        return cls(None, metadata)

    def write(self, line: str) -> None:
        if self._handle is not None:
            if self.count:
                self._handle.write(self._newline)
            elif self._bom:
                self._handle.write(BOM_CHAR)
            self._handle.write(line)
        self.count += 1

    def finish(self) -> None:
        """Terminate the last line if, and only if, the file had a trailing newline."""
        if self._handle is not None and self._trailing_newline and self.count:
            self._handle.write(self._newline)


class StreamingTransform:
    """Per-file edit state for one forward pass.

    Counters and warnings are read by ``apply_edit`` once ``run`` returns.
    """

    def __init__(
        self,
        spec: EditSpec,
        renderer: ContextRenderer,
        palette: Palette,
        *,
        dry_run: bool = False,
    ):
        self.spec = spec
        self.renderer = renderer
        self.palette = palette
        self.dry_run = dry_run

        self.lines_removed = 0
        self.lines_inserted = 0
        self.replacements = 0
        self.matched_lines = 0
        self.total_lines = 0
        self.insert_position: int | None = None
        self.warnings: list[EditWarning] = []

        self._written = 0
        self._content_written = False
        self._output_numbering = (
            spec.kind in (EditKind.INSERT, EditKind.REPLACE) and not spec.is_delete_like
        )
        self._steps: dict[EditKind, Callable[[int, str, bool, LineSink], bool]] = {
            EditKind.REPLACE: self._step_replace,
            EditKind.DELETE: self._step_delete,
            EditKind.SUBSTITUTE: self._step_substitute,
            EditKind.TEST: self._step_test,
            EditKind.SHOW: self._step_show,
        }

    @property
    def should_commit(self) -> bool:
        kind = self.spec.kind
        if not kind.modifies_file:
            return False
        if kind is EditKind.DELETE:
            return self.lines_removed > 0
        if kind is EditKind.SUBSTITUTE:
            return self.replacements > 0
        return True

    def run(self, lines: Iterable[str], sink: LineSink) -> None:
        if self.spec.kind is EditKind.INSERT:
            self._run_insert(lines, sink)
        else:
            step = self._steps[self.spec.kind]
            for number, text, in_range in self._select(lines):
                if step(number, text, in_range, sink):
                    break
            self._finish(sink)
        self.renderer.close()

    # -------------------------------------------------------------------------
    # Line selection
    # -------------------------------------------------------------------------

    def _select(self, lines: Iterable[str]) -> Iterator[tuple[int, str, bool]]:
        """Yield ``(line number, text, in range)`` in document order.

        End-relative ranges are decided by delaying lines through a
        RotateBuffer of the tail length: a line evicted from the buffer cannot
        be in the range, and the lines still buffered at end of stream are
        decided once the total is known.
        """
        line_range = self.spec.target_range
        if line_range is None:
            for number, text in enumerate(lines, 1):
                self.total_lines = number
                yield number, text, True
            return

        if not line_range.from_end:
            for number, text in enumerate(lines, 1):
                self.total_lines = number
                yield number, text, line_range.contains(number)
            self._resolve(line_range)
            return

        delayed: RotateBuffer[tuple[int, str]] = RotateBuffer(line_range.tail_length)
        for number, text in enumerate(lines, 1):
            self.total_lines = number
            if delayed.is_full:
                oldest_number, oldest_text = delayed.oldest
                yield oldest_number, oldest_text, False
            delayed.add((number, text))
        resolved = self._resolve(line_range)
        for number, text in delayed:
            yield number, text, resolved is not None and number in resolved

    def _resolve(self, line_range: LineRange) -> ResolvedRange | None:
        # An empty file is reported through the no-match rules, except for
        # range replacement which needs the lines to exist.
        if self.total_lines == 0 and self.spec.kind is not EditKind.REPLACE:
            return None
        resolved = line_range.resolve(self.total_lines)
        self.warnings.extend(resolved.warnings)
        return resolved

    # -------------------------------------------------------------------------
    # Per-line decisions
    # -------------------------------------------------------------------------

    def _run_insert(self, lines: Iterable[str], sink: LineSink) -> None:
        target = self.spec.target_range
        position = target.start if target is not None else None
        for number, text in enumerate(lines, 1):
            self.total_lines = number
            if number == position:
                self.insert_position = position
                self._write_content(sink)
            self._keep(number, text, sink)

        if not self._content_written:
            if position is not None and position > self.total_lines + 1:
                self.warnings.append(
                    RangeClampedWarning(
                        f"Line {position} is beyond end of file ({self.total_lines} lines). "
                        "Appending at end."
                    )
                )
            self._write_content(sink)

    def _step_replace(self, number: int, text: str, in_range: bool, sink: LineSink) -> bool:
        if not in_range:
            self._keep(number, text, sink)
            return False
        self.lines_removed += 1
        if self.spec.content:
            if not self._content_written:
                self._write_content(sink)
        else:
            self.renderer.changed(number, self.palette.removed_line(text))
        return False

    def _step_delete(self, number: int, text: str, in_range: bool, sink: LineSink) -> bool:
        match = self.spec.match
        if in_range and (match is None or match.matches(text)):
            self.lines_removed += 1
            self.renderer.changed(number, self.palette.removed_line(text))
        else:
            self._keep(number, text, sink)
        return False

    def _step_substitute(self, number: int, text: str, in_range: bool, sink: LineSink) -> bool:
        match = self.spec.match
        assert match is not None
        if in_range and match.matches(text):
            new_text, count = match.substitute(text)
            self.replacements += count
            self.matched_lines += 1
            sink.write(new_text)
            self._written += 1
            self.renderer.changed(number, self._styled_substitution(text))
        else:
            self._keep(number, text, sink)
        return False

    def _step_test(self, number: int, text: str, in_range: bool, sink: LineSink) -> bool:
        match = self.spec.match
        assert match is not None
        if in_range and match.matches(text):
            self.matched_lines += 1
            self.renderer.changed(number, self._highlighted(text))
            return True
        self._keep(number, text, sink)
        return False

    def _step_show(self, number: int, text: str, in_range: bool, sink: LineSink) -> bool:
        match = self.spec.match
        if in_range and (match is None or match.matches(text)):
            self.matched_lines += 1
            self.renderer.changed(number, self._highlighted(text) if match else text)
        else:
            self._keep(number, text, sink)
        return False

    def _finish(self, sink: LineSink) -> None:
        kind = self.spec.kind
        if kind is EditKind.REPLACE and self.spec.content and not self._content_written:
            self._write_content(sink)

        if kind in (EditKind.DELETE, EditKind.SUBSTITUTE) and not self.should_commit:
            if self.total_lines == 0:
                message = "File is empty. Nothing to change."
                if kind is EditKind.DELETE:
                    message = "File is empty. Nothing to remove."
                self.warnings.append(NoMatchWarning(message))
            else:
                self.warnings.append(NoMatchWarning("No lines matched. File not modified."))
        elif kind is EditKind.SHOW and self.spec.match is not None and not self.matched_lines:
            self.warnings.append(NoMatchWarning("No lines matched."))

    # -------------------------------------------------------------------------
    # Output helpers
    # -------------------------------------------------------------------------

    def _keep(self, number: int, text: str, sink: LineSink) -> None:
        sink.write(text)
        self._written += 1
        self.renderer.context(self._written if self._output_numbering else number, text)

    def _write_content(self, sink: LineSink) -> None:
        for line in self.spec.content or []:
            sink.write(line)
            self._written += 1
            self.lines_inserted += 1
            self.renderer.changed(self._written, self.palette.inserted(line))
        self.renderer.end_block()
        self._content_written = True

    def _styled_substitution(self, text: str) -> str:
        match = self.spec.match
        assert match is not None
        parts: list[str] = []
        position = 0
        for found in match.finditer(text):
            parts.append(text[position : found.start()])
            new = self.palette.inserted(match.expand(found))
            if self.dry_run and self.palette.enabled:
                new = self.palette.deleted(found.group()) + new
            parts.append(new)
            position = found.end()
        parts.append(text[position:])
        return "".join(parts)

    def _highlighted(self, text: str) -> str:
        match = self.spec.match
        if match is None or not self.palette.enabled:
            return text
        parts: list[str] = []
        position = 0
        for found in match.finditer(text):
            parts.append(text[position : found.start()])
            parts.append(self.palette.highlight(found.group()))
            position = found.end()
        parts.append(text[position:])
        return "".join(parts)


# =============================================================================
# Entry point
# =============================================================================


def _new_text(spec: EditSpec) -> list[str]:
    """Text the edit writes that did not come from the file itself."""
    if spec.kind is EditKind.SUBSTITUTE and spec.match is not None:
        return [spec.match.replacement or ""]
    return spec.content or []


def _source(path: Path, metadata: FileMetadata, exists: bool) -> Iterator[str]:
    if exists:
        yield from read_lines(path, metadata)


def _write_through(
    path: Path,
    metadata: FileMetadata,
    transform: StreamingTransform,
    *,
    exists: bool,
    backup: bool,
) -> tuple[Path | None, bool]:
    """Run the pass into a staged temp file and commit it when warranted."""
    with staged_file(path) as temp:
        with (
            open(temp, "w", encoding=metadata.encoding, newline="") as handle,
            closing(_source(path, metadata, exists)) as lines,
        ):
            sink = LineSink(handle, metadata)
            transform.run(lines, sink)
            sink.finish()

        if not transform.should_commit:
            logger.debug(f"Nothing to commit for {path}; discarding temp file")
            return None, False

        backup_path = create_backup(path) if backup and exists else None
        atomic_replace(path, temp)
        return backup_path, True


def apply_edit(
    path: str | Path,
    metadata: FileMetadata | None,
    spec: EditSpec,
    *,
    config: EditorConfig | None = None,
    display_path: str | None = None,
    dry_run: bool = False,
    backup: bool | None = None,
    explicit_encoding: bool = False,
) -> EditResult:
    """Apply one edit to one file in a single streaming pass.

    Args:
        path: File to edit (INSERT and whole-file REPLACE may create it)
        metadata: Encoding/newline snapshot; detected when ``None``
        spec: Validated edit request
        config: Editor configuration (defaults when ``None``)
        display_path: Path shown in the report header and summary
        dry_run: Build the report but leave the file untouched
        backup: Write a ``.bak`` copy before committing (config default when ``None``)
        explicit_encoding: The caller chose the encoding; never upgrade it

    Returns:
        EditResult with counts, warnings and the change report

    Raises:
        TargetNotFoundError: If the file is missing and the edit cannot create it
        LineOutOfBoundsError: If the range starts past end of file
        EditIOError: On any read, encode, write or rename failure
    """
    config = config or EditorConfig()
    path = Path(path)
    display = display_path or str(path)
    exists = path.is_file()

    if not exists and (
        not spec.kind.creates_files
        or (spec.kind is EditKind.REPLACE and spec.target_range is not None)
    ):
        raise TargetNotFoundError(display)

    try:
        if metadata is None:
            if exists:
                metadata = detect_metadata(
                    path,
                    sample_bytes=config.detection_sample_bytes,
                    default_newline=config.default_newline,
                )
            else:
                metadata = FileMetadata.for_new_file(
                    newline=config.default_newline,
                    trailing_newline=config.new_file_trailing_newline,
                )
    except OSError as e:
        raise EditIOError(display, "read", e) from e

    warnings: list[EditWarning] = []
    new_text = _new_text(spec)
    if new_text and not explicit_encoding:
        metadata, upgrade = upgrade_encoding_for_content(metadata, new_text)
        if upgrade is not None:
            warnings.append(upgrade)

    # A plain range view shows only the requested lines
    context_lines = config.context_lines
    if spec.kind is EditKind.SHOW and spec.match is None:
        context_lines = 0
    omission_threshold = config.omission_threshold if spec.kind in _OMITTING_KINDS else None

    palette = Palette(enabled=config.color)
    report = ChangeReport(header=palette.header(display))
    renderer = ContextRenderer(
        report,
        palette,
        context_lines=context_lines,
        omission_threshold=omission_threshold,
    )
    transform = StreamingTransform(spec, renderer, palette, dry_run=dry_run)
    transform.warnings.extend(warnings)

    result = EditResult(
        path=path, kind=spec.kind, dry_run=dry_run, report=report, created=not exists
    )
    logger.debug(f"Applying {spec.kind.value} to {path} ({metadata})")

    try:
        if spec.kind.modifies_file and not dry_run:
            result.backup_path, result.committed = _write_through(
                path,
                metadata,
                transform,
                exists=exists,
                backup=config.backup if backup is None else backup,
            )
        else:
            with closing(_source(path, metadata, exists)) as lines:
                transform.run(lines, LineSink.discard(metadata))
    except LineEditError:
        raise
    except UnicodeError as e:
        raise EditIOError(display, "transcode", e) from e
    except OSError as e:
        raise EditIOError(display, "write" if spec.kind.modifies_file else "read", e) from e

    result.lines_removed = transform.lines_removed
    result.lines_inserted = transform.lines_inserted
    result.replacements = transform.replacements
    result.matched = transform.matched_lines > 0
    result.warnings = transform.warnings

    for warning in result.warnings:
        logger.warning(f"{display}: {warning}")

    if transform.should_commit:
        summary = summarize(result, display, transform.insert_position)
        if summary:
            logger.info(summary)
            report.summary = palette.what_if(summary) if dry_run else palette.success(summary)

    return result
