"""Multi-line indicator display.

``MultiBar`` keeps an ordered list of ``Indicator`` slots and draws them as
one rich ``Live`` region. All structural changes (add, insert, remove),
redraws and output suspension serialise on a single re-entrant lock, so the
visible order is always consistent no matter which threads add or remove
indicators.

Redraws are driven by a background ticker thread rather than rich's own
auto-refresh, so every call into ``Live`` happens while holding the
container lock.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.text import Text

from tracebar.foundation.config import DEFAULT_TICK_INTERVAL
from tracebar.foundation.errors import ErrorCode, progress_error
from tracebar.progress.style import IndicatorState, ProgressStyle

logger = logging.getLogger(__name__)


class Indicator:
    """One animated, indeterminate spinner line."""

    def __init__(self, style: ProgressStyle | None = None, *, name: str = "") -> None:
        self.name = name
        self._style = style or ProgressStyle()
        self._spinner = self._style.make_spinner()
        self._created_at = time.monotonic()
        self._tick_interval: float | None = None
        self._finished = False

    def __repr__(self) -> str:
        return f"Indicator(name={self.name!r}, finished={self._finished})"

    @property
    def style(self) -> ProgressStyle:
        return self._style

    @property
    def is_finished(self) -> bool:
        return self._finished

    @property
    def tick_interval(self) -> float | None:
        """Seconds between redraws, or None if not ticking."""
        return None if self._finished else self._tick_interval

    def enable_steady_tick(self, interval: float = DEFAULT_TICK_INTERVAL) -> None:
        """Keep this indicator animating every ``interval`` seconds."""
        self._tick_interval = interval

    def finish(self) -> None:
        """Stop animating. The owning container drops finished indicators."""
        self._finished = True

    def render(self, now: float | None = None) -> Text:
        now = time.monotonic() if now is None else now
        frame = self._spinner.render(now)
        glyph = frame.plain if isinstance(frame, Text) else str(frame)
        state = IndicatorState(glyph=glyph, elapsed=now - self._created_at)
        return self._style.render(state)


class _Ticker(threading.Thread):
    """A thread that redraws a MultiBar while any indicator is ticking."""

    def __init__(self, multibar: MultiBar) -> None:
        self.multibar = multibar
        self.done = threading.Event()
        super().__init__(daemon=True, name="tracebar-ticker")

    def stop(self) -> None:
        self.done.set()

    def run(self) -> None:
        logger.debug("Indicator ticker started")
        while not self.done.wait(self.multibar.next_tick_interval()):
            self.multibar.refresh()
        logger.debug("Indicator ticker stopped")


class MultiBar:
    """Ordered, thread-safe collection of indicators drawn as one region.

    Example:
        >>> bars = MultiBar()
        >>> parent = bars.add(Indicator(name="parent"))
        >>> child = bars.insert_after(parent, Indicator(name="child"))
        >>> bars.remove(child)
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True)
        self._lock = threading.RLock()
        self._slots: list[Indicator] = []
        self._live: Live | None = None
        self._ticker: _Ticker | None = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)

    def __contains__(self, indicator: object) -> bool:
        with self._lock:
            return any(slot is indicator for slot in self._slots)

    def __rich__(self) -> RenderableType:
        with self._lock:
            now = time.monotonic()
            return Group(*(slot.render(now) for slot in self._slots))

    @property
    def console(self) -> Console:
        return self._console

    @property
    def lock(self) -> threading.RLock:
        """The container lock; hold it to make several operations atomic."""
        return self._lock

    @property
    def is_drawing(self) -> bool:
        with self._lock:
            return self._live is not None and self._live.is_started

    def indicators(self) -> list[Indicator]:
        """Snapshot of the indicators in display order."""
        with self._lock:
            return list(self._slots)

    def rendered_lines(self, now: float | None = None) -> list[str]:
        """Plain text of each indicator line, top to bottom."""
        with self._lock:
            return [slot.render(now).plain for slot in self._slots]

    def add(self, indicator: Indicator) -> Indicator:
        """Append an indicator below everything currently shown."""
        with self._lock:
            self._slots.append(indicator)
            self._changed()
        return indicator

    def insert_after(self, anchor: Indicator, indicator: Indicator) -> Indicator:
        """Place an indicator directly below ``anchor``.

        Raises:
            TracebarError: ``anchor`` is not in the display
        """
        with self._lock:
            index = self._index(anchor)
            if index is None:
                raise progress_error(ErrorCode.ANCHOR_MISSING, name=anchor.name)
            self._slots.insert(index + 1, indicator)
            self._changed()
        return indicator

    def remove(self, indicator: Indicator) -> None:
        """Finish an indicator and drop its line. Unknown indicators are ignored."""
        with self._lock:
            indicator.finish()
            index = self._index(indicator)
            if index is None:
                return
            del self._slots[index]
            self._changed()

    def refresh(self) -> None:
        """Redraw the display now."""
        with self._lock:
            if self._live is not None and self._live.is_started:
                self._live.refresh()

    def next_tick_interval(self) -> float:
        """Shortest tick interval among ticking indicators."""
        with self._lock:
            intervals = [s.tick_interval for s in self._slots if s.tick_interval]
        return min(intervals, default=DEFAULT_TICK_INTERVAL)

    @contextmanager
    def suspend(self) -> Iterator[None]:
        """Hide the display and block redraws for the duration of the block.

        Anything written to the terminal inside the block lands above the
        indicators, which are redrawn when the block exits.
        """
        with self._lock:
            live = self._live
            hidden = live is not None and live.is_started
            if hidden:
                live.stop()
            try:
                yield
            finally:
                if hidden and self._live is live:
                    live.vertical_overflow = "ellipsis"
                    live.start(refresh=True)

    def stop(self) -> None:
        """Clear the display and stop redrawing. Indicators are kept."""
        with self._lock:
            self._stop_ticker()
            if self._live is not None:
                self._live.stop()
                self._live = None

    # -------------------------------------------------------------------------
    # Internal (caller holds the lock; nothing here may log)
    # -------------------------------------------------------------------------

    def _index(self, indicator: Indicator) -> int | None:
        for index, slot in enumerate(self._slots):
            if slot is indicator:
                return index
        return None

    def _changed(self) -> None:
        if not self._slots:
            self.stop()
            return

        if self._live is None:
            self._live = Live(
                self,
                console=self._console,
                auto_refresh=False,
                transient=True,
                redirect_stdout=False,
                redirect_stderr=False,
            )
            self._live.start(refresh=True)
        else:
            self._live.refresh()

        if self._ticker is None or not self._ticker.is_alive():
            self._ticker = _Ticker(self)
            self._ticker.start()

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.stop()
            self._ticker = None
