"""
Tape VM — Input Queue and Output Log

The VM's only I/O surface, modelled on a serial port:

  InputQueue   FIFO of pending input values. When it runs dry the VM asks
               the host for more through a zero-argument pull callback that
               returns text. Text is UTF-8 encoded and every byte becomes one
               queued value, so ASCII input is one value per character.
  OutputLog    Append-only record of every byte the ``.`` operator emitted.
               Always exposed in full, never truncated.

The pull callback is a reentrant boundary: it may block on a prompt. An
empty (or None) result means "no more input" and the ``,`` operator then
stores 0.
"""

from __future__ import annotations
from collections import deque
from typing import Callable, Iterable, Optional, Union

InputSource = Union[str, bytes, bytearray, Iterable[int]]
PullCallback = Callable[[], Optional[str]]


def _values(data: InputSource) -> Iterable[int]:
    if isinstance(data, str):
        # iterating bytes yields ints 0-255
        return data.encode("utf-8")
    return (int(v) for v in data)


class InputQueue:
    """Pending input values, oldest first."""

    def __init__(self, data: InputSource = ""):
        self._queue: deque = deque()
        self.feed(data)

    def feed(self, data: InputSource):
        """Append values. ``str`` is queued as its UTF-8 bytes."""
        self._queue.extend(_values(data))

    def pop(self) -> Optional[int]:
        """Oldest pending value, or None when empty."""
        if self._queue:
            return self._queue.popleft()
        return None

    def pull(self, callback: Optional[PullCallback]) -> int:
        """Refill from the host callback. Returns how many values arrived."""
        if callback is None:
            return 0
        text = callback()
        if not text:
            return 0
        before = len(self._queue)
        self.feed(text)
        return len(self._queue) - before

    def next_value(self, callback: Optional[PullCallback]) -> Optional[int]:
        """Pop a value, pulling from ``callback`` first if the queue is dry."""
        if not self._queue:
            self.pull(callback)
        return self.pop()

    def clear(self):
        self._queue.clear()

    def __len__(self) -> int:
        return len(self._queue)


class OutputLog:
    """Every byte emitted by ``.``, in order."""

    def __init__(self):
        self._buffer = bytearray()

    def append(self, value: int):
        self._buffer.append(value & 0xFF)

    @property
    def data(self) -> bytes:
        return bytes(self._buffer)

    def text(self) -> str:
        # latin-1 maps every byte 0-255 to exactly one character
        return self._buffer.decode("latin-1")

    def clear(self):
        self._buffer.clear()

    def __len__(self) -> int:
        return len(self._buffer)
