"""Log output sink that cooperates with the live indicator display."""

from __future__ import annotations

import sys
from typing import IO, Any

from tracebar.progress.multibar import MultiBar


class IndicatorWriter:
    """File-like sink that suspends the indicators around every write.

    Hand it to whatever emits log lines, e.g.::

        logging.StreamHandler(layer.get_writer())

    Each ``write`` hides the indicator region, writes the data in one call to
    the underlying stream, then redraws. Redraw ticks block until the write
    finishes, so log lines and indicator frames never interleave.

    Args:
        multibar: Display shared with the indicator layer
        stream: Target stream; defaults to whatever ``sys.stderr`` is at
            write time
    """

    def __init__(self, multibar: MultiBar, stream: IO[Any] | None = None) -> None:
        self._multibar = multibar
        self._stream = stream

    @property
    def stream(self) -> IO[Any]:
        return self._stream if self._stream is not None else sys.stderr

    @property
    def encoding(self) -> str:
        return getattr(self.stream, "encoding", None) or "utf-8"

    def write(self, data: str | bytes) -> int:
        with self._multibar.suspend():
            stream = self.stream
            if isinstance(data, bytes):
                buffer = getattr(stream, "buffer", None)
                if buffer is not None:
                    stream.flush()
                    written = buffer.write(data)
                    buffer.flush()
                    return written
                stream.write(data.decode(self.encoding, errors="replace"))
                stream.flush()
                return len(data)
            stream.write(data)
            stream.flush()
            return len(data)

    def flush(self) -> None:
        with self._multibar.suspend():
            self.stream.flush()

    def writable(self) -> bool:
        return True

    def isatty(self) -> bool:
        return False
