"""Layer base class: the notification surface a tracer dispatches to."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from tracebar.tracing.registry import Context, SpanId


class Layer:
    """Receives span lifecycle notifications from a ``Tracer``.

    Per span, the tracer guarantees ``on_new_span`` fires first, then any
    number of ``on_enter``/``on_exit`` pairs, then ``on_close`` exactly once.
    Notifications for different spans may arrive concurrently from any thread.

    All hooks are no-ops by default; override the ones you need.
    """

    def on_new_span(self, attributes: Mapping[str, Any], span_id: SpanId, ctx: Context) -> None:
        pass

    def on_enter(self, span_id: SpanId, ctx: Context) -> None:
        pass

    def on_exit(self, span_id: SpanId, ctx: Context) -> None:
        pass

    def on_close(self, span_id: SpanId, ctx: Context) -> None:
        pass
