"""Tracebar - live terminal spinners for nested spans.

Each active span gets a spinner line, indented under the nearest ancestor
that has one, and log output is routed around the live display.
"""

from tracebar.foundation.errors import ErrorCode, TracebarError
from tracebar.foundation.logging import configure_logging
from tracebar.progress import (
    DefaultFields,
    Indicator,
    IndicatorLayer,
    IndicatorWriter,
    MultiBar,
    ProgressStyle,
)
from tracebar.tracing import Layer, Span, Tracer

__version__ = "0.1.0"

__all__ = [
    # Errors
    "ErrorCode",
    "TracebarError",
    # Logging
    "configure_logging",
    # Progress
    "DefaultFields",
    "Indicator",
    "IndicatorLayer",
    "IndicatorWriter",
    "MultiBar",
    "ProgressStyle",
    # Tracing
    "Layer",
    "Span",
    "Tracer",
]
