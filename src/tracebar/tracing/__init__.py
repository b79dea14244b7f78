"""In-process instrumentation host.

Provides:
- Tracer: creates spans, tracks the current span, dispatches to layers
- Span: handle with entered()/in_scope()/close()
- Layer: base class for lifecycle observers
- Context: registry view layers use for span and ancestor lookups

Usage:
    from tracebar.tracing import Tracer

    tracer = Tracer().with_layer(my_layer)
    with tracer.span("fetch", url=url):
        ...
"""

from tracebar.tracing.layer import Layer
from tracebar.tracing.registry import Context, Registry, SpanData, SpanId
from tracebar.tracing.tracer import Span, Tracer

__all__ = [
    "Context",
    "Layer",
    "Registry",
    "Span",
    "SpanData",
    "SpanId",
    "Tracer",
]
