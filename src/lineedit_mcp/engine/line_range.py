"""Line range parsing and resolution.

A range is given as zero, one or two integers over 1-based line numbers:

- ``None`` / ``[]``: whole file
- ``[n]`` with n > 0: the single line n
- ``[-n]``: the last n lines
- ``[a, b]`` with 0 < a <= b: lines a through b
- ``[a, 0]`` or ``[a, -k]`` with a > 0: line a through end of file
- ``[-a, -b]`` with -a <= -b: counted from the end (-1 is the last line)

Parsing validates shape only and never touches the file. Resolution against
the real line count happens once the count is known, which for end-relative
ranges is at end of stream.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .exceptions import InvalidLineRangeError, LineOutOfBoundsError, RangeClampedWarning


@dataclass(frozen=True)
class ResolvedRange:
    """Concrete inclusive span of line numbers plus any clamping warnings."""

    start: int
    end: int
    warnings: list[RangeClampedWarning] = field(default_factory=list, compare=False)

    def __contains__(self, line_number: int) -> bool:
        return self.start <= line_number <= self.end

    @property
    def count(self) -> int:
        return self.end - self.start + 1


@dataclass(frozen=True)
class LineRange:
    """Validated range descriptor.

    ``start`` is never 0. ``end`` is ``None`` for an open range running to
    end of file. End-relative ranges always have a negative start and a
    negative end.
    """

    start: int
    end: int | None

    @classmethod
    def parse(cls, values: int | Sequence[int] | None) -> LineRange:
        """Build a range from raw caller values.

        Raises:
            InvalidLineRangeError: If the values do not form a valid range
        """
        if values is None:
            return cls(1, None)
        if isinstance(values, int):
            values = [values]
        values = list(values)

        if not values:
            return cls(1, None)
        if len(values) > 2:
            raise InvalidLineRangeError(values, "expected at most two values (start, end)")

        start = values[0]
        if start == 0:
            raise InvalidLineRangeError(values, "line numbers start at 1")

        if len(values) == 1:
            if start > 0:
                return cls(start, start)
            return cls(start, -1)

        end = values[1]
        if start > 0:
            if end <= 0:
                return cls(start, None)
            if start > end:
                raise InvalidLineRangeError(values, f"start {start} is after end {end}")
            return cls(start, end)

        if end > 0:
            raise InvalidLineRangeError(
                values,
                "a range counted from the end cannot finish at a line counted from the start",
            )
        if end == 0:
            return cls(start, -1)
        if start > end:
            raise InvalidLineRangeError(values, f"start {start} is after end {end}")
        return cls(start, end)

    @property
    def from_end(self) -> bool:
        """True when resolution needs the total line count."""
        return self.start < 0

    @property
    def tail_length(self) -> int:
        """Number of trailing lines that must be buffered to resolve this range."""
        return -self.start if self.start < 0 else 0

    def contains(self, line_number: int) -> bool:
        """Membership test for ranges counted from the start of the file."""
        if self.from_end:
            raise ValueError("End-relative ranges must be resolved before membership tests")
        return line_number >= self.start and (self.end is None or line_number <= self.end)

    def resolve(self, total: int) -> ResolvedRange:
        """Concretize the range against the file's real line count.

        An end past the last line is clamped with a warning. A start past the
        last line is fatal. An end-relative start before line 1 is clamped to
        line 1 with a warning.

        Raises:
            LineOutOfBoundsError: If no line of the range exists in the file
        """
        warnings: list[RangeClampedWarning] = []

        if self.from_end:
            assert self.end is not None
            start = total + self.start + 1
            end = total + self.end + 1
            if end < 1:
                raise LineOutOfBoundsError(start, end, total)
            if start < 1:
                warnings.append(
                    RangeClampedWarning(
                        f"Range start {self.start} is before line 1 (file has {total} lines). "
                        "Starting at line 1."
                    )
                )
                start = 1
            return ResolvedRange(start, end, warnings)

        end = total if self.end is None else self.end
        if self.start > total:
            raise LineOutOfBoundsError(self.start, max(self.start, end), total)
        if end > total:
            warnings.append(
                RangeClampedWarning(
                    f"End line {end} exceeds file length ({total} lines). "
                    f"Will process up to line {total}."
                )
            )
            end = total
        return ResolvedRange(self.start, end, warnings)

    def __str__(self) -> str:
        if self.end is None:
            return f"{self.start}-EOF"
        if self.start == self.end:
            return str(self.start)
        return f"{self.start},{self.end}"
