"""Live span indicators for the terminal.

Provides:
- IndicatorLayer: tracer layer drawing one spinner per active span
- MultiBar / Indicator: ordered multi-line spinner display
- IndicatorWriter: log sink that pauses the display while writing
- ProgressStyle: indicator line template
- DefaultFields: default span field formatter

Usage:
    from tracebar.progress import IndicatorLayer
    from tracebar.tracing import Tracer

    layer = IndicatorLayer()
    tracer = Tracer().with_layer(layer)

    with tracer.span("download", url=url):
        with tracer.span("unpack"):
            ...
"""

from tracebar.progress.context import SpanContextStore, SpanProgressContext
from tracebar.progress.fields import DefaultFields, FieldFormatter, format_fields
from tracebar.progress.layer import IndicatorLayer
from tracebar.progress.multibar import Indicator, MultiBar
from tracebar.progress.style import FixedKey, IndicatorState, ProgressStyle
from tracebar.progress.writer import IndicatorWriter

__all__ = [
    "DefaultFields",
    "FieldFormatter",
    "FixedKey",
    "Indicator",
    "IndicatorLayer",
    "IndicatorState",
    "IndicatorWriter",
    "MultiBar",
    "ProgressStyle",
    "SpanContextStore",
    "SpanProgressContext",
    "format_fields",
]
