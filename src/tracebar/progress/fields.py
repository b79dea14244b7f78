"""Span field formatting for indicator lines."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class FieldFormatter(Protocol):
    """Turns a span's attributes into a display string."""

    def format(self, attributes: Mapping[str, Any]) -> str: ...


FieldFormatterLike = FieldFormatter | Callable[[Mapping[str, Any]], str]


@dataclass(frozen=True)
class DefaultFields:
    """``key=value`` pairs, a ``message`` field first and unlabelled.

    Example:
        >>> DefaultFields().format({"message": "hi", "url": "/a", "n": 3})
        "hi url='/a' n=3"
    """

    separator: str = " "

    def format(self, attributes: Mapping[str, Any]) -> str:
        parts = []
        if "message" in attributes:
            parts.append(str(attributes["message"]))
        for key, value in attributes.items():
            if key == "message":
                continue
            if isinstance(value, str):
                parts.append(f"{key}={value!r}")
            else:
                parts.append(f"{key}={value}")
        return self.separator.join(parts)


def format_fields(formatter: FieldFormatterLike, attributes: Mapping[str, Any]) -> str:
    """Format attributes, falling back to ``""`` if the formatter fails.

    Accepts a ``FieldFormatter`` or any plain callable.
    """
    try:
        if isinstance(formatter, FieldFormatter):
            result = formatter.format(attributes)
        else:
            result = formatter(attributes)
    except Exception as e:
        logger.debug("Span field formatter failed: %s", e)
        return ""
    return "" if result is None else str(result)
