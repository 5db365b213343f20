"""Line sinks for the runner's stdout and stderr.

Each OutputWriter belongs to exactly one drain thread, so no locking is done
here.
"""

import logging
from pathlib import Path
from typing import Optional, Protocol, TextIO

from ..errors import StreamWriteError

logger = logging.getLogger(__name__)


class Sink(Protocol):
    def append_line(self, line: str) -> None: ...

    def close(self) -> None: ...


class FileSink:
    """Truncates the file on open, then appends and flushes line by line."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._file: Optional[TextIO] = open(self.path, "w", encoding="utf-8")

    def append_line(self, line: str) -> None:
        if self._file is None:
            raise ValueError(f"Sink for {self.path} is closed")
        self._file.write(line + "\n")
        self._file.flush()

    def close(self) -> None:
        if self._file is not None:
            f, self._file = self._file, None
            f.close()


class NullSink:
    """Discards everything."""

    def append_line(self, line: str) -> None:
        pass

    def close(self) -> None:
        pass


class OutputWriter:
    """Writes captured lines to a file, degrading to a NullSink on failure.

    Construction never fails: if the file cannot be opened, a warning is
    logged and lines are discarded. The first write failure is logged
    likewise and all later lines are dropped. At most one warning is
    logged per writer.
    """

    def __init__(self, path: Path, name: str = "output"):
        self.path = Path(path)
        self.name = name
        self._warned = False
        self._closed = False
        try:
            self._sink: Sink = FileSink(self.path)
        except OSError as e:
            self._warn(StreamWriteError(f"Cannot open {name} log {self.path}: {e}"))
            self._sink = NullSink()

    @property
    def degraded(self) -> bool:
        """Whether lines are being discarded."""
        return isinstance(self._sink, NullSink)

    def consume_line(self, line: str) -> None:
        try:
            self._sink.append_line(line)
        except (OSError, ValueError) as e:
            self._warn(StreamWriteError(f"Cannot write {self.name} log {self.path}: {e}"))
            self._discard()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._sink.close()
        except OSError as e:
            self._warn(StreamWriteError(f"Cannot close {self.name} log {self.path}: {e}"))
        self._sink = NullSink()

    def _discard(self) -> None:
        sink, self._sink = self._sink, NullSink()
        try:
            sink.close()
        except OSError:
            # already reported the write failure for this writer
            pass

    def _warn(self, error: StreamWriteError) -> None:
        if not self._warned:
            self._warned = True
            logger.warning("%s; further output will be discarded", error)
