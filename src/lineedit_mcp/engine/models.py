"""Edit request and result types.

EditSpec is validated at construction, so a malformed request fails before
any file is opened. All seven operations are EditSpec shapes handed to the
single streaming entry point.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from .exceptions import ConflictingSelectorsError, EditValidationError, EditWarning
from .line_range import LineRange

if TYPE_CHECKING:
    from .report import ChangeReport


class EditKind(str, Enum):
    """Shape of an edit request."""

    INSERT = "insert"
    REPLACE = "replace"
    DELETE = "delete"
    SUBSTITUTE = "substitute"
    TEST = "test"
    SHOW = "show"

    @property
    def modifies_file(self) -> bool:
        return self not in (EditKind.TEST, EditKind.SHOW)

    @property
    def creates_files(self) -> bool:
        """Whether the edit may run against a file that does not exist yet."""
        return self in (EditKind.INSERT, EditKind.REPLACE)


@dataclass(frozen=True)
class MatchCriterion:
    """Literal-substring or regex selector, with an optional replacement.

    Literal selectors match anywhere in the line. Regex selectors use Python
    ``re`` syntax, and so do their replacements (``\\1``, ``\\g<name>``).
    """

    literal: str | None = None
    pattern: str | None = None
    replacement: str | None = None
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.literal is not None and self.pattern is not None:
            raise ConflictingSelectorsError(self.literal, self.pattern)
        if self.literal is None and self.pattern is None:
            raise EditValidationError("A literal or a regex pattern is required")

        if self.literal is not None:
            if not self.literal:
                raise EditValidationError("Literal match text must not be empty")
            if "\n" in self.literal or "\r" in self.literal:
                raise EditValidationError("Literal match text must fit on a single line")
            regex = re.compile(re.escape(self.literal))
        else:
            if "\n" in (self.pattern or "") or "\r" in (self.pattern or ""):
                raise EditValidationError("Regex pattern must not contain line breaks")
            try:
                regex = re.compile(self.pattern or "")
            except re.error as e:
                raise EditValidationError(
                    f"Invalid regular expression {self.pattern!r}: {e}"
                ) from e
            if self.replacement is not None:
                try:
                    regex.sub(self.replacement, "")
                except re.error as e:
                    raise EditValidationError(
                        f"Invalid replacement {self.replacement!r}: {e}"
                    ) from e
        object.__setattr__(self, "_regex", regex)

    def matches(self, line: str) -> bool:
        return self._regex.search(line) is not None

    def finditer(self, line: str) -> Iterator[re.Match[str]]:
        return self._regex.finditer(line)

    def expand(self, match: re.Match[str]) -> str:
        """Replacement text for one match."""
        if self.literal is not None:
            return self.replacement or ""
        return match.expand(self.replacement or "")

    def substitute(self, line: str) -> tuple[str, int]:
        """Replace every match in ``line``; returns the new line and the count."""
        return self._regex.subn(self.expand, line)


@dataclass(frozen=True)
class EditSpec:
    """One edit request.

    Attributes:
        kind: Operation shape
        target_range: Lines to act on (insert: the line to insert before)
        content: New lines; ``None`` or empty for REPLACE means delete
        match: Literal or regex selector
    """

    kind: EditKind
    target_range: LineRange | None = None
    content: list[str] | None = None
    match: MatchCriterion | None = None

    def __post_init__(self) -> None:
        kind = self.kind
        if kind is EditKind.INSERT:
            if not self.content:
                raise EditValidationError("Insert requires at least one line of content")
            if self.match is not None:
                raise EditValidationError("Insert does not take a match selector")
            if self.target_range is not None and not (
                self.target_range.start > 0 and self.target_range.end == self.target_range.start
            ):
                raise EditValidationError(
                    "Insert position must be a single positive line number, "
                    f"got {self.target_range}"
                )
        elif kind is EditKind.REPLACE:
            if self.match is not None:
                raise EditValidationError("Replace selects lines by range, not by match")
        elif kind is EditKind.DELETE:
            if self.content is not None:
                raise EditValidationError("Delete does not take content")
            if self.target_range is None and self.match is None:
                raise EditValidationError("Delete requires a line range or a match selector")
        elif kind is EditKind.SUBSTITUTE:
            if self.match is None or self.match.replacement is None:
                raise EditValidationError("Substitute requires a match selector and a replacement")
            if self.content is not None:
                raise EditValidationError("Substitute does not take content")
        elif kind is EditKind.TEST:
            if self.match is None:
                raise EditValidationError("Content test requires a match selector")
        elif kind is EditKind.SHOW:
            if self.content is not None:
                raise EditValidationError("Show does not take content")

        if kind is not EditKind.SUBSTITUTE and self.match is not None and self.match.replacement:
            raise EditValidationError(f"A replacement only applies to substitute, not {kind.value}")

    @property
    def is_delete_like(self) -> bool:
        """Whether this edit only removes lines (REPLACE without content included)."""
        return self.kind is EditKind.DELETE or (self.kind is EditKind.REPLACE and not self.content)


@dataclass
class EditResult:
    """Outcome of one edit against one file.

    ``committed`` is False for dry runs, read-only edits and no-op edits;
    the file on disk is untouched in all three cases.
    """

    path: Path
    kind: EditKind
    lines_removed: int = 0
    lines_inserted: int = 0
    replacements: int = 0
    matched: bool = False
    warnings: list[EditWarning] = field(default_factory=list)
    report: ChangeReport | None = None
    committed: bool = False
    created: bool = False
    dry_run: bool = False
    backup_path: Path | None = None

    @property
    def net(self) -> int:
        return self.lines_inserted - self.lines_removed

    @property
    def warning_messages(self) -> list[str]:
        return [str(w) for w in self.warnings]
