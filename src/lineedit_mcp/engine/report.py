"""Grep-style change reports built during the edit pass.

ContextRenderer is fed one line at a time by the streaming engine: either
an unchanged line (``context``) or a changed/matched line (``changed``).
It keeps the last few unchanged lines in a RotateBuffer for leading
context, counts down trailing context after each changed block, and uses a
watermark (last line number written to the report) to suppress duplicates
and place gap separators.

Report line formats:
    ``NNN- text``   context line
    ``NNN: text``   changed or matched line
    ``   : ... (K lines omitted) ...``   middle of a long changed block
    blank line      gap of two or more lines between shown regions
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .ansi import Palette
from .models import EditKind, EditResult
from .rotate_buffer import RotateBuffer


@dataclass
class ChangeReport:
    """Header, body lines and summary for one file."""

    header: str
    lines: list[str] = field(default_factory=list)
    summary: str | None = None

    def add(self, line: str) -> None:
        self.lines.append(line)

    def render(self) -> str:
        parts = [self.header, *self.lines]
        if self.summary:
            parts.append(self.summary)
        return "\n".join(parts)

    def __str__(self) -> str:
        return self.render()


def format_context(number: int, text: str) -> str:
    return f"{number:>3}- {text}"


def format_changed(number: int, text: str) -> str:
    return f"{number:>3}: {text}"


class ContextRenderer:
    """Incremental context/diff renderer.

    Args:
        report: Report receiving the rendered lines
        palette: Styling for omission markers
        context_lines: Leading and trailing context around each changed block
        omission_threshold: Changed blocks longer than this are abbreviated to
            their first 2 and last 2 lines; ``None`` never abbreviates
    """

    def __init__(
        self,
        report: ChangeReport,
        palette: Palette,
        *,
        context_lines: int = 2,
        omission_threshold: int | None = 5,
    ):
        self._report = report
        self._palette = palette
        self._context_lines = context_lines
        self._threshold = omission_threshold
        self._leading: RotateBuffer[tuple[int, str]] | None = (
            RotateBuffer(context_lines) if context_lines > 0 else None
        )
        self._trailing = 0
        self._watermark = 0
        self._gap_line: tuple[int, str] | None = None

        self._block_count = 0
        self._block_last = 0
        self._block_tail: RotateBuffer[str] | None = (
            RotateBuffer(omission_threshold - 2) if omission_threshold is not None else None
        )

    def context(self, number: int, text: str) -> None:
        """Feed an unchanged line."""
        self.end_block()
        if self._trailing > 0:
            self._emit_context(number, text)
            self._trailing -= 1
            return
        if self._watermark and number == self._watermark + 1:
            self._gap_line = (number, text)
        if self._leading is not None:
            self._leading.add((number, text))

    def changed(self, number: int, text: str) -> None:
        """Feed a changed or matched line; ``text`` is already styled."""
        if self._block_count == 0:
            self._flush_leading(number)
        self._block_count += 1
        self._block_last = number
        line = format_changed(number, text)
        if self._block_tail is None or self._block_count <= 2:
            self._report.add(line)
        else:
            self._block_tail.add(line)

    def end_block(self) -> None:
        """Close the current changed block and start trailing context."""
        if self._block_count == 0:
            return
        tail = self._block_tail
        if tail is not None and len(tail):
            assert self._threshold is not None
            if self._block_count > self._threshold:
                omitted = self._block_count - 4
                self._report.add(
                    "   : " + self._palette.reverse(f"... ({omitted} lines omitted) ...")
                )
                self._report.add(tail.from_end(1))
                self._report.add(tail.from_end(0))
            else:
                for line in tail:
                    self._report.add(line)
            tail.clear()
        self._watermark = max(self._watermark, self._block_last)
        self._block_count = 0
        self._trailing = self._context_lines
        self._gap_line = None
        if self._leading is not None:
            self._leading.clear()

    close = end_block

    def _flush_leading(self, first_changed: int) -> None:
        pending = (
            [item for item in self._leading if item[0] > self._watermark]
            if self._leading is not None
            else []
        )
        first = pending[0][0] if pending else first_changed
        if self._watermark:
            gap = self._gap_line
            if first == self._watermark + 2 and gap is not None and gap[0] == self._watermark + 1:
                self._emit_context(*gap)
            elif first > self._watermark + 1:
                self._report.add("")
        for number, text in pending:
            self._emit_context(number, text)
        if self._leading is not None:
            self._leading.clear()
        self._gap_line = None

    def _emit_context(self, number: int, text: str) -> None:
        if number <= self._watermark:
            return
        self._report.add(format_context(number, text))
        self._watermark = number


# =============================================================================
# Summary lines
# =============================================================================


def _phrase(dry_run: bool, past: str, base: str, rest: str) -> str:
    if dry_run:
        return f"What if: Would {base}{rest}"
    return f"{past}{rest}"


def summarize(result: EditResult, display_path: str, position: int | None = None) -> str | None:
    """Summary line for a modifying edit; ``None`` for read-only edits."""
    dry = result.dry_run
    removed, inserted, net = result.lines_removed, result.lines_inserted, result.net
    kind = result.kind

    if kind in (EditKind.TEST, EditKind.SHOW):
        return None

    if result.created:
        rest = f" {display_path}: {inserted} line(s) (net: +{inserted})"
        return _phrase(dry, "Created", "create", rest)

    if kind is EditKind.INSERT:
        where = f"at line {position}" if position is not None else "at end"
        return _phrase(
            dry, "Added", "add", f" {inserted} line(s) to {display_path} {where} (net: +{inserted})"
        )

    if kind is EditKind.SUBSTITUTE:
        if dry:
            return f"What if: Would update {display_path}: {result.replacements} replacement(s)"
        return f"Updated {display_path}: {result.replacements} replacement(s) made"

    if kind is EditKind.DELETE or (kind is EditKind.REPLACE and inserted == 0):
        rest = f" {removed} line(s) from {display_path} (net: -{removed})"
        return _phrase(dry, "Removed", "remove", rest)

    if dry:
        return (
            f"What if: Would update {display_path}: replace {removed} line(s) "
            f"with {inserted} line(s) (net: {net:+d})"
        )
    return (
        f"Updated {display_path}: Replaced {removed} line(s) "
        f"with {inserted} line(s) (net: {net:+d})"
    )
