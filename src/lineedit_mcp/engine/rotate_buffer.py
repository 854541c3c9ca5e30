"""Fixed-capacity ring buffer.

Retains the most recent N items so the editor can show leading context,
delay lines for end-relative ranges, and keep the tail of long changed
blocks without ever seeking backward in the input stream.
"""

from collections.abc import Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class RotateBuffer(Generic[T]):  # noqa: UP046
    """Circular buffer that overwrites its oldest slot once full.

    Index 0 is the oldest retained item and ``len(buffer) - 1`` the newest.
    Negative indexes are not supported: anything outside ``[0, len)`` raises
    ``IndexError``.

    Usage:
        buffer = RotateBuffer[str](2)
        for line in lines:
            buffer.add(line)
        previous, current = buffer.to_list()
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"RotateBuffer capacity must be at least 1, got {capacity}")
        self._slots: list[T | None] = [None] * capacity
        self._head = 0  # slot holding the oldest item
        self._count = 0

    @property
    def capacity(self) -> int:
        return len(self._slots)

    @property
    def is_full(self) -> bool:
        return self._count == len(self._slots)

    def __len__(self) -> int:
        return self._count

    def add(self, item: T) -> None:
        """Append an item, evicting the oldest one when the buffer is full."""
        capacity = len(self._slots)
        if self._count < capacity:
            self._slots[(self._head + self._count) % capacity] = item
            self._count += 1
        else:
            self._slots[self._head] = item
            self._head = (self._head + 1) % capacity

    def __getitem__(self, index: int) -> T:
        if not 0 <= index < self._count:
            raise IndexError(f"RotateBuffer index {index} out of range [0, {self._count})")
        return self._slots[(self._head + index) % len(self._slots)]  # type: ignore[return-value]

    def from_end(self, offset: int) -> T:
        """Return the item ``offset`` positions before the newest (0 = newest)."""
        return self[self._count - 1 - offset]

    @property
    def newest(self) -> T:
        if self._count == 0:
            raise IndexError("RotateBuffer is empty")
        return self.from_end(0)

    @property
    def oldest(self) -> T:
        if self._count == 0:
            raise IndexError("RotateBuffer is empty")
        return self[0]

    def clear(self) -> None:
        self._slots = [None] * len(self._slots)
        self._head = 0
        self._count = 0

    def to_list(self) -> list[T]:
        return list(self)

    def __iter__(self) -> Iterator[T]:
        for index in range(self._count):
            yield self[index]

    def __repr__(self) -> str:
        return f"RotateBuffer(capacity={self.capacity}, items={self.to_list()!r})"
