"""Tests for the log sink that shares the terminal with the indicators."""

import io
import logging
import sys
import threading
import time

from rich.console import Console

from tracebar.foundation.logging import configure_logging
from tracebar.progress import IndicatorLayer, IndicatorWriter, MultiBar
from tracebar.progress.multibar import Indicator
from tracebar.tracing import Tracer


class DrawStateStream(io.StringIO):
    """Stream remembering whether the display was drawing during each write."""

    def __init__(self, multibar: MultiBar) -> None:
        super().__init__()
        self.multibar = multibar
        self.drawing_during_write: list[bool] = []

    def write(self, s: str) -> int:
        self.drawing_during_write.append(self.multibar.is_drawing)
        return super().write(s)


class LogStream(io.StringIO):
    """Slow log stream that flags when a write is in flight."""

    def __init__(self) -> None:
        super().__init__()
        self.busy = False
        self.writes: list[str] = []

    def write(self, s: str) -> int:
        self.busy = True
        try:
            time.sleep(0.001)
            self.writes.append(s)
            return super().write(s)
        finally:
            self.busy = False


class TerminalStream(io.StringIO):
    """Console target recording redraws that overlap a log write."""

    def __init__(self, log_stream: LogStream) -> None:
        super().__init__()
        self.log_stream = log_stream
        self.redraws = 0
        self.overlaps = 0

    def write(self, s: str) -> int:
        self.redraws += 1
        if self.log_stream.busy:
            self.overlaps += 1
        return super().write(s)


class TestWrite:
    """Tests for writing through the sink."""

    def test_text_reaches_stream(self, console: Console) -> None:
        stream = io.StringIO()
        writer = IndicatorWriter(MultiBar(console=console), stream)

        assert writer.write("hello\n") == 6
        writer.flush()

        assert stream.getvalue() == "hello\n"

    def test_bytes_go_to_binary_buffer(self, console: Console) -> None:
        raw = io.BytesIO()
        stream = io.TextIOWrapper(raw, encoding="utf-8")
        writer = IndicatorWriter(MultiBar(console=console), stream)

        writer.write("text ")
        writer.write("bytes\n".encode())

        assert raw.getvalue() == b"text bytes\n"

    def test_bytes_decoded_for_text_only_stream(self, console: Console) -> None:
        stream = io.StringIO()
        writer = IndicatorWriter(MultiBar(console=console), stream)

        data = "↳ done\n".encode()

        assert writer.write(data) == len(data)
        assert stream.getvalue() == "↳ done\n"

    def test_defaults_to_current_stderr(self, console: Console, monkeypatch) -> None:
        replacement = io.StringIO()
        writer = IndicatorWriter(MultiBar(console=console))
        monkeypatch.setattr(sys, "stderr", replacement)

        writer.write("late binding\n")

        assert replacement.getvalue() == "late binding\n"


class TestSuspension:
    """Tests for hiding the display around writes."""

    def test_display_hidden_during_write(self, console: Console) -> None:
        bars = MultiBar(console=console)
        stream = DrawStateStream(bars)
        writer = IndicatorWriter(bars, stream)
        indicator = bars.add(Indicator())

        writer.write("line\n")

        assert stream.drawing_during_write == [False]
        assert bars.is_drawing
        bars.remove(indicator)

    def test_writers_share_layer_display(self, layer: IndicatorLayer) -> None:
        first = layer.get_writer()
        second = layer.get_writer(io.StringIO())

        assert first._multibar is layer.multibar
        assert second._multibar is layer.multibar

    def test_log_writes_never_overlap_redraws(self) -> None:
        log_stream = LogStream()
        terminal = TerminalStream(log_stream)
        console = Console(file=terminal, force_terminal=True, width=80, color_system=None)
        layer = IndicatorLayer(console=console, tick_interval=0.001)
        configure_logging(level=logging.INFO, stream=layer.get_writer(log_stream))
        tracer = Tracer(layer)
        logger = logging.getLogger("tracebar.test.interleave")

        def work(index: int) -> None:
            for n in range(25):
                with tracer.span(f"worker{index}", n=n):
                    logger.info("worker %d line %d", index, n)

        try:
            with tracer.span("root"):
                threads = [threading.Thread(target=work, args=(i,)) for i in range(4)]
                for thread in threads:
                    thread.start()
                for thread in threads:
                    thread.join(timeout=10)
        finally:
            logging.getLogger().handlers.clear()
            layer.multibar.stop()

        assert terminal.redraws > 0
        assert terminal.overlaps == 0
        assert len(log_stream.writes) == 100
        assert all(w.startswith("INFO ") and w.endswith("\n") for w in log_stream.writes)


class TestLoggingIntegration:
    """Tests for wiring the writer into stdlib logging."""

    def test_log_records_reach_writer_stream(self, layer: IndicatorLayer, tracer: Tracer) -> None:
        stream = io.StringIO()
        configure_logging(level="INFO", stream=layer.get_writer(stream))
        try:
            with tracer.span("task"):
                logging.getLogger("tracebar.test").info("inside span")
        finally:
            logging.getLogger().handlers.clear()

        assert "INFO tracebar.test: inside span" in stream.getvalue()
