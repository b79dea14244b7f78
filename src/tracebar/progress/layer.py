"""Indicator layer: one live spinner per entered span, nested under its parent.

Lifecycle per span:
- created: fields are formatted once and stored
- first entry: an indicator is inserted directly below the nearest ancestor
  that already has one (or appended as a root), indented one level deeper
- re-entry and exit: nothing changes, the spinner keeps animating
- closed: the indicator is removed

Usage:
    layer = IndicatorLayer()
    configure_logging(stream=layer.get_writer())
    tracer = Tracer().with_layer(layer)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import IO, Any

from rich.console import Console

from tracebar.foundation.config import (
    DEFAULT_CHILD_PREFIX_SPACING,
    DEFAULT_CHILD_PREFIX_SYMBOL,
    DEFAULT_TICK_INTERVAL,
    TracebarConfig,
    get_config,
)
from tracebar.foundation.errors import ErrorCode, progress_error
from tracebar.progress.context import SpanContextStore, SpanProgressContext
from tracebar.progress.fields import DefaultFields, FieldFormatterLike, format_fields
from tracebar.progress.multibar import Indicator, MultiBar
from tracebar.progress.style import FixedKey, ProgressStyle
from tracebar.progress.writer import IndicatorWriter
from tracebar.tracing import Context, Layer, SpanId

logger = logging.getLogger(__name__)


class IndicatorLayer(Layer):
    """Layer that renders a spinner for every active span.

    Template keys available to ``progress_style``:
    * ``span_name`` - the name of the span
    * ``span_fields`` - the formatted string of this span's fields
    * ``span_child_prefix`` - indentation that grows with the number of
      visible ancestors

    Args:
        field_formatter: Formats span attributes for ``span_fields``
        progress_style: Line template and spinner
        child_prefix_spacing: Repeated once per nesting level
        child_prefix_symbol: Placed after the spacing for child spans
        tick_interval: Seconds between spinner redraws
        console: Console to draw on (default: stderr)
        multibar: Share an existing display instead of creating one
    """

    def __init__(
        self,
        *,
        field_formatter: FieldFormatterLike | None = None,
        progress_style: ProgressStyle | None = None,
        child_prefix_spacing: str = DEFAULT_CHILD_PREFIX_SPACING,
        child_prefix_symbol: str = DEFAULT_CHILD_PREFIX_SYMBOL,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        console: Console | None = None,
        multibar: MultiBar | None = None,
    ) -> None:
        self._multibar = multibar or MultiBar(console=console)
        self._contexts = SpanContextStore()
        self._field_formatter: FieldFormatterLike = field_formatter or DefaultFields()
        self._progress_style = progress_style or ProgressStyle()
        self._child_prefix_spacing = child_prefix_spacing
        self._child_prefix_symbol = child_prefix_symbol
        self._tick_interval = tick_interval

    @classmethod
    def from_config(cls, config: TracebarConfig | None = None, **kwargs: Any) -> IndicatorLayer:
        """Build a layer from configuration; keyword arguments win."""
        progress = (config or get_config()).progress
        options: dict[str, Any] = {
            "progress_style": ProgressStyle(progress.template, spinner=progress.spinner),
            "child_prefix_spacing": progress.child_prefix_spacing,
            "child_prefix_symbol": progress.child_prefix_symbol,
            "tick_interval": progress.tick_interval,
        }
        options.update(kwargs)
        return cls(**options)

    @property
    def multibar(self) -> MultiBar:
        return self._multibar

    @property
    def contexts(self) -> SpanContextStore:
        return self._contexts

    def get_writer(self, stream: IO[Any] | None = None) -> IndicatorWriter:
        """Writer for log output that does not tear the indicators.

        All writers share this layer's display. Output goes to ``stream``,
        or to ``sys.stderr`` when omitted.
        """
        return IndicatorWriter(self._multibar, stream)

    # -------------------------------------------------------------------------
    # Builder
    # -------------------------------------------------------------------------

    def with_field_formatter(self, formatter: FieldFormatterLike) -> IndicatorLayer:
        """Set the formatter whose output becomes ``span_fields``. Returns self."""
        self._field_formatter = formatter
        return self

    def with_progress_style(self, style: ProgressStyle) -> IndicatorLayer:
        """Override the style used for new indicators. Returns self."""
        self._progress_style = style
        return self

    def with_child_prefix_spacing(self, spacing: str) -> IndicatorLayer:
        self._child_prefix_spacing = spacing
        return self

    def with_child_prefix_symbol(self, symbol: str) -> IndicatorLayer:
        self._child_prefix_symbol = symbol
        return self

    def with_tick_interval(self, interval: float) -> IndicatorLayer:
        self._tick_interval = interval
        return self

    # -------------------------------------------------------------------------
    # Layer hooks
    # -------------------------------------------------------------------------

    def on_new_span(self, attributes: Mapping[str, Any], span_id: SpanId, ctx: Context) -> None:
        fields = format_fields(self._field_formatter, attributes)
        self._contexts.create(span_id, fields)

    def on_enter(self, span_id: SpanId, ctx: Context) -> None:
        context = self._contexts.get(span_id)

        # Indicators are created on first entry only
        if context.indicator is not None:
            return

        span = ctx.span(span_id)
        name = span.name if span is not None else ""

        with self._multibar.lock:
            # Same span entered concurrently on another thread
            if context.indicator is not None:
                return

            parent = self._nearest_visible_ancestor(span_id, ctx)

            if parent is not None:
                depth = parent.depth + 1
                prefix = self._child_prefix_spacing * depth + self._child_prefix_symbol
            else:
                depth = 0
                prefix = ""

            indicator = Indicator(
                self._progress_style
                .with_key("span_name", FixedKey(name))
                .with_key("span_fields", FixedKey(context.fields))
                .with_key("span_child_prefix", FixedKey(prefix)),
                name=name,
            )

            if parent is not None:
                # The resolver only returns ancestors with an indicator
                if parent.indicator is None:
                    raise progress_error(ErrorCode.PARENT_INDICATOR_MISSING, span_id=span_id)
                self._multibar.insert_after(parent.indicator, indicator)
            else:
                self._multibar.add(indicator)

            indicator.enable_steady_tick(self._tick_interval)
            context.depth = depth
            context.indicator = indicator

        logger.debug("Indicator created for span %s (id=%d, depth=%d)", name, span_id, depth)

    def on_exit(self, span_id: SpanId, ctx: Context) -> None:
        # Indicators stay visible while a span is suspended.
        pass

    def on_close(self, span_id: SpanId, ctx: Context) -> None:
        context = self._contexts.pop(span_id)
        if context is None:
            return

        with self._multibar.lock:
            indicator = context.indicator
            context.indicator = None
            if indicator is not None:
                self._multibar.remove(indicator)

        if indicator is not None:
            logger.debug("Indicator removed for span id=%d", span_id)

    def _nearest_visible_ancestor(self, span_id: SpanId, ctx: Context) -> SpanProgressContext | None:
        """Closest ancestor (excluding the span itself) that has an indicator."""
        for ancestor in ctx.span_scope(span_id):
            if ancestor.id == span_id:
                continue
            context = self._contexts.find(ancestor.id)
            if context is not None and context.indicator is not None:
                return context
        return None
