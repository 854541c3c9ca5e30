"""Content normalisation and two-phase edit assembly.

Callers hand over content as a string, a list of strings, or any iterable
of values. It is normalised once, here, into ``list[str]`` with no embedded
line breaks; the streaming engine never sees any other shape.

Edits whose content arrives in pieces are assembled with an explicit
two-phase protocol: ``collect()`` any number of times, then ``finalize()``.
Each call returns a new accumulator; nothing is mutated.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .line_range import LineRange
from .models import EditKind, EditSpec, MatchCriterion

_LINE_BREAK = re.compile(r"\r\n|\n")


def split_text(text: str) -> list[str]:
    """Split a block of text into lines.

    A single terminating line break belongs to the last line rather than
    starting a new empty one, so ``"a\\nb\\n"`` gives ``["a", "b"]``.
    """
    lines = _LINE_BREAK.split(text)
    if len(lines) > 1 and lines[-1] == "":
        lines.pop()
    return lines


def normalize_content(value: str | Iterable[Any] | None) -> list[str] | None:
    """Normalise caller content into lines. ``None`` stays ``None`` (no content)."""
    if value is None:
        return None
    if isinstance(value, str):
        return split_text(value)
    lines: list[str] = []
    for item in value:
        if item is None:
            continue
        lines.extend(split_text(item if isinstance(item, str) else str(item)))
    return lines


@dataclass(frozen=True)
class ContentAccumulator:
    """Immutable collection of content pieces awaiting finalisation."""

    lines: tuple[str, ...] = ()
    received: bool = False

    def collect(self, items: str | Iterable[Any] | None) -> ContentAccumulator:
        """Return a new accumulator with ``items`` appended."""
        lines = normalize_content(items)
        if lines is None:
            return self
        return ContentAccumulator(self.lines + tuple(lines), True)

    def finalize(
        self,
        kind: EditKind,
        target_range: LineRange | None = None,
        match: MatchCriterion | None = None,
    ) -> EditSpec:
        """Build the validated EditSpec. Content is absent if nothing was collected."""
        content = list(self.lines) if self.received else None
        return EditSpec(kind=kind, target_range=target_range, content=content, match=match)
