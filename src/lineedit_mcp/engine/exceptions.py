"""Error and warning taxonomy for line editing.

Errors are raised; warnings are values. An edit that produces warnings still
returns a result, with the warnings attached to it.

Errors:
- EditValidationError: malformed request, detected before any file I/O
- TargetNotFoundError: file missing when the operation requires it
- LineOutOfBoundsError: range start past end of file (fatal for that file)
- EditIOError: read/write/rename failure (fatal for that file)

Warnings:
- RangeClampedWarning: range end past end of file, clamped
- NoMatchWarning: selector matched nothing, file left untouched
- EncodingUpgradeWarning: ASCII file upgraded to UTF-8 for new content
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class LineEditError(Exception):
    """Base class for all line editing errors."""


class EditValidationError(LineEditError, ValueError):
    """Edit request is malformed. Raised before any file is opened."""


class InvalidLineRangeError(EditValidationError):
    """Line range values do not describe a valid range.

    Attributes:
        values: The raw range values supplied by the caller
        reason: Why the values were rejected
    """

    def __init__(self, values: Sequence[int], reason: str):
        self.values = list(values)
        self.reason = reason
        rendered = ",".join(str(v) for v in self.values)
        super().__init__(f"Invalid line range '{rendered}': {reason}")

    def __repr__(self) -> str:
        return f"InvalidLineRangeError(values={self.values!r}, reason={self.reason!r})"


class ConflictingSelectorsError(EditValidationError):
    """Both a literal and a regex selector were supplied."""

    def __init__(self, literal: str, pattern: str):
        self.literal = literal
        self.pattern = pattern
        super().__init__(
            "Specify either a literal match or a regex pattern, not both "
            f"(literal={literal!r}, pattern={pattern!r})"
        )


class TargetNotFoundError(LineEditError, FileNotFoundError):
    """Target file does not exist and the operation cannot create it."""

    def __init__(self, path: str | Path):
        self.path = str(path)
        super().__init__(f"File not found: {self.path}")

    def __str__(self) -> str:
        return self.args[0]

    def __repr__(self) -> str:
        return f"TargetNotFoundError(path={self.path!r})"


class LineOutOfBoundsError(LineEditError, IndexError):
    """Requested range starts beyond the last line of the file.

    Attributes:
        start: Resolved first line of the requested range
        end: Resolved last line of the requested range
        total: Number of lines actually in the file
    """

    def __init__(self, start: int, end: int, total: int):
        self.start = start
        self.end = end
        self.total = total
        span = f"{start}" if start == end else f"{start}-{end}"
        super().__init__(f"Line range {span} is out of bounds. File has only {total} line(s).")

    def __repr__(self) -> str:
        return f"LineOutOfBoundsError(start={self.start}, end={self.end}, total={self.total})"


class EditIOError(LineEditError, OSError):
    """I/O failure while reading, writing or replacing a file.

    The original file is never left partially written when this is raised,
    and any temporary file has already been removed.

    Attributes:
        path: File being edited
        operation: Short name of the failing step (read, write, replace, ...)
        cause: Underlying exception
    """

    def __init__(self, path: str | Path, operation: str, cause: BaseException):
        self.path = str(path)
        self.operation = operation
        self.cause = cause
        super().__init__(f"Failed to {operation} {self.path}: {cause}")

    def __str__(self) -> str:
        return self.args[0]

    def __repr__(self) -> str:
        return (
            f"EditIOError(path={self.path!r}, operation={self.operation!r}, "
            f"cause={type(self.cause).__name__})"
        )


class EditWarning(UserWarning):
    """Non-fatal condition reported alongside a successful result."""


class RangeClampedWarning(EditWarning):
    """Range was adjusted to fit the file."""


class NoMatchWarning(EditWarning):
    """Selector matched no lines; nothing was changed."""


class EncodingUpgradeWarning(EditWarning):
    """File encoding was upgraded so new content can be written."""
