"""Per-span progress state.

One ``SpanProgressContext`` exists per span between its creation and its
closure. The ``SpanContextStore`` owns the mapping from span id to context;
each context is only mutated by notifications for its own span.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from tracebar.foundation.errors import ErrorCode, progress_error
from tracebar.progress.multibar import Indicator
from tracebar.tracing import SpanId


@dataclass
class SpanProgressContext:
    """Progress state attached to one span.

    Attributes:
        fields: Formatted span fields, captured once at creation
        depth: Count of visible ancestors; set on first entry
        indicator: Live indicator; set on first entry, cleared on close
    """

    fields: str = ""
    depth: int = 0
    indicator: Indicator | None = None

    @property
    def is_visible(self) -> bool:
        return self.indicator is not None


class SpanContextStore:
    """Thread-safe span id → ``SpanProgressContext`` mapping."""

    def __init__(self) -> None:
        self._contexts: dict[SpanId, SpanProgressContext] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._contexts)

    def __contains__(self, span_id: object) -> bool:
        with self._lock:
            return span_id in self._contexts

    def create(self, span_id: SpanId, fields: str) -> SpanProgressContext:
        context = SpanProgressContext(fields=fields)
        with self._lock:
            self._contexts[span_id] = context
        return context

    def get(self, span_id: SpanId) -> SpanProgressContext:
        """Context for a span that must exist.

        Raises:
            TracebarError: No context was created for ``span_id``
        """
        with self._lock:
            context = self._contexts.get(span_id)
        if context is None:
            raise progress_error(ErrorCode.CONTEXT_MISSING, span_id=span_id)
        return context

    def find(self, span_id: SpanId) -> SpanProgressContext | None:
        with self._lock:
            return self._contexts.get(span_id)

    def pop(self, span_id: SpanId) -> SpanProgressContext | None:
        with self._lock:
            return self._contexts.pop(span_id, None)
