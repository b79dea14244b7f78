"""Tests for the multi-line indicator display."""

import time

import pytest
from rich.console import Console
from rich.spinner import Spinner

from tracebar.foundation.errors import ErrorCode, TracebarError
from tracebar.progress.multibar import Indicator, MultiBar
from tracebar.progress.style import FixedKey, ProgressStyle


def named(name: str) -> Indicator:
    return Indicator(ProgressStyle("{name}").with_key("name", FixedKey(name)), name=name)


@pytest.fixture
def bars(console: Console):
    bars = MultiBar(console=console)
    yield bars
    bars.stop()


class TestOrdering:
    """Tests for slot placement."""

    def test_add_appends(self, bars: MultiBar) -> None:
        bars.add(named("a"))
        bars.add(named("b"))

        assert bars.rendered_lines() == ["a", "b"]

    def test_insert_after_places_directly_below_anchor(self, bars: MultiBar) -> None:
        a = bars.add(named("a"))
        bars.add(named("b"))
        bars.insert_after(a, named("a1"))

        assert bars.rendered_lines() == ["a", "a1", "b"]

    def test_later_insert_after_same_anchor_goes_first(self, bars: MultiBar) -> None:
        a = bars.add(named("a"))
        a1 = bars.insert_after(a, named("a1"))
        bars.insert_after(a1, named("a1x"))
        bars.insert_after(a, named("a2"))

        assert bars.rendered_lines() == ["a", "a2", "a1", "a1x"]

    def test_insert_after_missing_anchor_raises(self, bars: MultiBar) -> None:
        with pytest.raises(TracebarError) as exc_info:
            bars.insert_after(named("ghost"), named("x"))

        assert exc_info.value.code == ErrorCode.ANCHOR_MISSING
        assert len(bars) == 0

    def test_equal_looking_indicators_are_distinct(self, bars: MultiBar) -> None:
        """Slots are tracked by identity, not by content."""
        first = bars.add(named("same"))
        second = bars.add(named("same"))
        bars.remove(second)

        assert bars.indicators() == [first]


class TestRemoval:
    """Tests for removing slots."""

    def test_remove_shifts_following_slots_up(self, bars: MultiBar) -> None:
        a = bars.add(named("a"))
        b = bars.add(named("b"))
        bars.add(named("c"))
        bars.remove(b)

        assert bars.rendered_lines() == ["a", "c"]
        assert b not in bars
        assert a in bars

    def test_remove_finishes_indicator(self, bars: MultiBar) -> None:
        a = bars.add(named("a"))
        a.enable_steady_tick(0.05)
        bars.remove(a)

        assert a.is_finished
        assert a.tick_interval is None

    def test_remove_unknown_is_noop(self, bars: MultiBar) -> None:
        bars.add(named("a"))
        bars.remove(named("b"))

        assert bars.rendered_lines() == ["a"]


class TestDrawing:
    """Tests for the live region and ticker lifecycle."""

    def test_drawing_follows_slot_count(self, bars: MultiBar) -> None:
        assert not bars.is_drawing

        a = bars.add(named("a"))
        assert bars.is_drawing

        bars.remove(a)
        assert not bars.is_drawing

    def test_suspend_hides_and_restores(self, bars: MultiBar) -> None:
        bars.add(named("a"))

        with bars.suspend():
            assert not bars.is_drawing

        assert bars.is_drawing

    def test_restart_uses_ellipsis_overflow(self, bars: MultiBar, monkeypatch) -> None:
        bars.add(named("a"))
        live = bars._live
        overflow_at_start = []
        start = live.start

        def recording_start(refresh: bool = False) -> None:
            overflow_at_start.append(live.vertical_overflow)
            start(refresh=refresh)

        monkeypatch.setattr(live, "start", recording_start)
        with bars.suspend():
            pass

        assert overflow_at_start == ["ellipsis"]

    def test_suspend_without_display_is_harmless(self, bars: MultiBar) -> None:
        with bars.suspend():
            pass

        assert not bars.is_drawing

    def test_next_tick_interval_is_shortest(self, bars: MultiBar) -> None:
        slow = bars.add(named("slow"))
        fast = bars.add(named("fast"))
        slow.enable_steady_tick(0.5)
        fast.enable_steady_tick(0.02)

        assert bars.next_tick_interval() == 0.02

    def test_ticker_redraws(self, bars: MultiBar, monkeypatch) -> None:
        calls = []
        original = bars.refresh

        def counting_refresh() -> None:
            calls.append(1)
            original()

        monkeypatch.setattr(bars, "refresh", counting_refresh)
        a = bars.add(named("a"))
        a.enable_steady_tick(0.01)

        deadline = time.monotonic() + 2
        while len(calls) < 3 and time.monotonic() < deadline:
            time.sleep(0.01)

        assert len(calls) >= 3

    def test_rich_render_contains_all_lines(self, console: Console, bars: MultiBar) -> None:
        bars.add(named("alpha"))
        bars.add(named("beta"))

        with console.capture() as capture:
            console.print(bars)

        assert capture.get().splitlines() == ["alpha", "beta"]


class TestIndicator:
    """Tests for a single indicator line."""

    def test_spinner_glyph_is_a_frame(self) -> None:
        indicator = Indicator(ProgressStyle("{spinner}"))

        assert indicator.render().plain in Spinner("dots").frames

    def test_glyph_animates_over_time(self) -> None:
        indicator = Indicator(ProgressStyle("{spinner}"))
        start = time.monotonic()
        frames = {indicator.render(start + step * 0.08).plain for step in range(10)}

        assert len(frames) > 1
