"""Span registry: identity and parent links for live spans.

The registry hands out span ids and keeps one ``SpanData`` record per
live span. Each record holds a strong reference to its parent record, so
an ancestor chain stays walkable even after an ancestor has been closed
and dropped from the registry.
"""

from __future__ import annotations

import itertools
import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from tracebar.foundation.errors import ErrorCode, span_error

SpanId = int


@dataclass
class SpanData:
    """Registry record for one span."""

    id: SpanId
    name: str
    attributes: Mapping[str, Any]
    parent: SpanData | None = None
    closed: bool = False
    enter_count: int = field(default=0, compare=False)

    @property
    def parent_id(self) -> SpanId | None:
        return self.parent.id if self.parent is not None else None

    def scope(self) -> Iterator[SpanData]:
        """Yield this span, then each ancestor, nearest first."""
        current: SpanData | None = self
        while current is not None:
            yield current
            current = current.parent


class Registry:
    """Thread-safe store of live span records."""

    def __init__(self) -> None:
        self._spans: dict[SpanId, SpanData] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._spans)

    def __contains__(self, span_id: object) -> bool:
        with self._lock:
            return span_id in self._spans

    def new_span(
        self,
        name: str,
        attributes: Mapping[str, Any],
        parent_id: SpanId | None = None,
    ) -> SpanData:
        """Register a new span under an optional live parent."""
        with self._lock:
            parent = None
            if parent_id is not None:
                parent = self._spans.get(parent_id)
                if parent is None:
                    raise span_error(ErrorCode.SPAN_NOT_FOUND, parent_id)
            data = SpanData(
                id=next(self._ids),
                name=name,
                attributes=dict(attributes),
                parent=parent,
            )
            self._spans[data.id] = data
            return data

    def get(self, span_id: SpanId) -> SpanData | None:
        with self._lock:
            return self._spans.get(span_id)

    def remove(self, span_id: SpanId) -> SpanData | None:
        """Drop a span record, marking it closed."""
        with self._lock:
            data = self._spans.pop(span_id, None)
        if data is not None:
            data.closed = True
        return data


class Context:
    """Read-only view of the registry handed to layers.

    Mirrors the lookups a layer needs inside a notification: the record for
    a span id, and its ancestor chain.
    """

    def __init__(self, registry: Registry) -> None:
        self._registry = registry

    def span(self, span_id: SpanId) -> SpanData | None:
        return self._registry.get(span_id)

    def span_scope(self, span_id: SpanId) -> Iterator[SpanData]:
        """Ancestor chain of ``span_id``, starting with the span itself.

        Empty if the span is unknown.
        """
        data = self._registry.get(span_id)
        if data is None:
            return iter(())
        return data.scope()
