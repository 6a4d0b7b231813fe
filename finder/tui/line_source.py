#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Background reader for the input line stream.

A daemon thread reads lines from a text stream and pushes them onto a
queue. The UI thread drains the queue on each tick, so the engine is only
ever touched from one thread.

End of stream and read errors travel through the same queue, after the
lines that preceded them.
"""

import threading
from dataclasses import dataclass, field
from queue import Empty, Queue
from typing import List, Optional, TextIO

# Upper bound on lines handed over per drain, so one tick stays short
DEFAULT_DRAIN_LIMIT = 50_000


class _EndOfStream:
    pass


_END = _EndOfStream()


@dataclass
class _StreamFailed:
    error: BaseException


@dataclass
class Batch:
    """
    Lines drained from the queue in one go.

    Attributes:
        lines: Lines in arrival order, without trailing newlines
        closed: True exactly once, when end of stream was reached
        error: Read error that ended the stream, if any
    """

    lines: List[str] = field(default_factory=list)
    closed: bool = False
    error: Optional[BaseException] = None


def strip_newline(raw: str) -> str:
    if raw.endswith("\r\n"):
        return raw[:-2]
    if raw.endswith("\n"):
        return raw[:-1]
    return raw


class LineSource:
    """
    Lines read from a text stream on a background thread.

    Attributes:
        name: Label for logs (e.g. "stdin" or a file path)
        finished: Set once end of stream or an error has been drained
    """

    def __init__(self, stream: TextIO, name: str = "stdin") -> None:
        self.name = name
        self.finished = False
        self._stream = stream
        self._queue: Queue = Queue()
        self._thread: Optional[threading.Thread] = None

    @property
    def started(self) -> bool:
        return self._thread is not None

    def start(self) -> None:
        """Start the reader thread. Calling twice is a no-op."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._pump, name="finder-lines", daemon=True)
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _pump(self) -> None:
        """Reader thread: push every line, then an end or failure marker."""
        try:
            for raw in self._stream:
                self._queue.put(strip_newline(raw))
        except (OSError, UnicodeDecodeError, ValueError) as e:
            self._queue.put(_StreamFailed(e))
            return
        self._queue.put(_END)

    def drain(self, limit: int = DEFAULT_DRAIN_LIMIT) -> Batch:
        """Take up to `limit` queued lines without blocking."""
        batch = Batch()
        if self.finished:
            return batch
        while len(batch.lines) < limit:
            try:
                item = self._queue.get_nowait()
            except Empty:
                break
            if item is _END:
                batch.closed = True
                self.finished = True
                break
            if isinstance(item, _StreamFailed):
                batch.error = item.error
                self.finished = True
                break
            batch.lines.append(item)
        return batch
