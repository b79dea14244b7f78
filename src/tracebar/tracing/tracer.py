"""Tracer: creates spans and dispatches their lifecycle to layers.

Usage:
    tracer = Tracer().with_layer(IndicatorLayer())

    with tracer.span("build", target="wheel"):
        with tracer.span("compile"):
            ...

The current span is tracked per execution context (``contextvars``), so
spans opened inside a ``with tracer.span(...)`` block become its children.
Threads start with an empty context; pass ``parent=`` to link work running
on another thread back to the span that spawned it.
"""

from __future__ import annotations

import functools
import logging
import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, TypeVar

from tracebar.foundation.errors import ErrorCode, span_error
from tracebar.tracing.layer import Layer
from tracebar.tracing.registry import Context, Registry, SpanData, SpanId

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

# Sentinel: "use the current span of the calling context as parent"
_CURRENT: Any = object()


class Span:
    """Handle to one span owned by a ``Tracer``.

    A span can be entered many times (re-entrant activation) but closed only
    once. After ``close()`` the handle is dead.
    """

    def __init__(self, tracer: Tracer, data: SpanData) -> None:
        self._tracer = tracer
        self._data = data

    def __repr__(self) -> str:
        return f"Span(id={self.id}, name={self.name!r}, parent_id={self.parent_id})"

    @property
    def id(self) -> SpanId:
        return self._data.id

    @property
    def name(self) -> str:
        return self._data.name

    @property
    def attributes(self) -> Mapping[str, Any]:
        return self._data.attributes

    @property
    def parent_id(self) -> SpanId | None:
        return self._data.parent_id

    @property
    def closed(self) -> bool:
        return self._data.closed

    def enter(self) -> None:
        """Enter the span. Does not make it the current span."""
        self._tracer._enter(self._data)

    def exit(self) -> None:
        self._tracer._exit(self._data)

    @contextmanager
    def entered(self) -> Iterator[Span]:
        """Enter the span for the duration of the block."""
        self._tracer._enter(self._data)
        token = self._tracer._current.set(self)
        try:
            yield self
        finally:
            self._tracer._current.reset(token)
            self._tracer._exit(self._data)

    def in_scope(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Call ``fn`` with this span entered."""
        with self.entered():
            return fn(*args, **kwargs)

    def close(self) -> None:
        """Close the span. No notification for it is valid afterwards."""
        self._tracer._close(self._data)


class Tracer:
    """Span factory and notification dispatcher.

    Layers are notified in registration order. Exceptions raised by a layer
    propagate to the caller that triggered the notification.
    """

    def __init__(self, *layers: Layer) -> None:
        self._registry = Registry()
        self._context = Context(self._registry)
        self._layers: list[Layer] = list(layers)
        self._layers_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._current: ContextVar[Span | None] = ContextVar(
            f"tracebar_current_span_{id(self)}", default=None
        )

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def context(self) -> Context:
        return self._context

    def with_layer(self, layer: Layer) -> Tracer:
        """Register a layer. Returns self for chaining."""
        with self._layers_lock:
            self._layers.append(layer)
        return self

    def current_span(self) -> Span | None:
        """The innermost span entered in the calling context."""
        return self._current.get()

    def new_span(self, name: str, *, parent: Span | None = _CURRENT, **fields: Any) -> Span:
        """Create a span without entering it.

        Args:
            name: Span name
            parent: Parent span; defaults to the current span, ``None`` for a root
            **fields: Span attributes

        Returns:
            Handle to the new span
        """
        if parent is _CURRENT:
            parent = self.current_span()
        parent_id = parent.id if parent is not None else None

        data = self._registry.new_span(name, fields, parent_id)
        logger.debug("span created: %s (id=%d, parent=%s)", name, data.id, parent_id)
        for layer in self._snapshot_layers():
            layer.on_new_span(data.attributes, data.id, self._context)
        return Span(self, data)

    @contextmanager
    def span(self, name: str, *, parent: Span | None = _CURRENT, **fields: Any) -> Iterator[Span]:
        """Create, enter, exit and close a span around the block."""
        handle = self.new_span(name, parent=parent, **fields)
        try:
            with handle.entered():
                yield handle
        finally:
            handle.close()

    def instrument(self, name: str | None = None, **fields: Any) -> Callable[[F], F]:
        """Decorator running each call of the function inside a new span.

        Args:
            name: Span name (defaults to the function's qualified name)
            **fields: Static span attributes
        """

        def decorator(fn: F) -> F:
            span_name = name or fn.__qualname__

            @functools.wraps(fn)
            def wrapper(*args: Any, **kwargs: Any) -> Any:
                with self.span(span_name, **fields):
                    return fn(*args, **kwargs)

            return wrapper  # type: ignore[return-value]

        return decorator

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def _snapshot_layers(self) -> list[Layer]:
        with self._layers_lock:
            return list(self._layers)

    def _enter(self, data: SpanData) -> None:
        with self._state_lock:
            if data.closed:
                raise span_error(ErrorCode.SPAN_CLOSED, data.id, data.name)
            data.enter_count += 1
        for layer in self._snapshot_layers():
            layer.on_enter(data.id, self._context)

    def _exit(self, data: SpanData) -> None:
        with self._state_lock:
            if data.enter_count <= 0:
                raise span_error(ErrorCode.SPAN_NOT_ENTERED, data.id, data.name)
            data.enter_count -= 1
        for layer in self._snapshot_layers():
            layer.on_exit(data.id, self._context)

    def _close(self, data: SpanData) -> None:
        with self._state_lock:
            if data.closed:
                raise span_error(ErrorCode.SPAN_CLOSED, data.id, data.name)
            data.closed = True
        try:
            for layer in self._snapshot_layers():
                layer.on_close(data.id, self._context)
        finally:
            self._registry.remove(data.id)
        logger.debug("span closed: %s (id=%d)", data.name, data.id)
