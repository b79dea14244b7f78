"""Tracebar Error System.

Provides structured error handling with:
- Numeric error codes for programmatic handling
- User-friendly messages
- Context for debugging

Most errors raised here are contract violations between the host
instrumentation framework and the progress layer. They are deliberately
non-recoverable: a corrupted indicator tree is worse than a crash.
"""


from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Numeric error codes organized by category.

    Format: XYYY where X = category, YYY = specific error

    Categories:
        1xxx - Span/host framework errors
        2xxx - Progress display errors
        5xxx - Configuration errors
    """

    # 1xxx - Span Errors
    SPAN_NOT_FOUND = 1001
    SPAN_CLOSED = 1002
    SPAN_NOT_ENTERED = 1003

    # 2xxx - Progress Errors
    CONTEXT_MISSING = 2001
    PARENT_INDICATOR_MISSING = 2002
    ANCHOR_MISSING = 2003
    TEMPLATE_INVALID = 2004

    # 5xxx - Configuration Errors
    CONFIG_INVALID = 5002

    @property
    def category(self) -> str:
        """Get the error category name."""
        prefix = self.value // 1000
        return {
            1: "span",
            2: "progress",
            5: "config",
        }.get(prefix, "unknown")

    @property
    def is_recoverable(self) -> bool:
        """Whether this error type is typically recoverable."""
        non_recoverable = {
            ErrorCode.SPAN_NOT_FOUND,
            ErrorCode.CONTEXT_MISSING,
            ErrorCode.PARENT_INDICATOR_MISSING,
            ErrorCode.ANCHOR_MISSING,
        }
        return self not in non_recoverable


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    # Span errors
    ErrorCode.SPAN_NOT_FOUND: "Span {span_id} not found in registry, this is a bug.",
    ErrorCode.SPAN_CLOSED: "Span {span_id} ('{name}') is already closed.",
    ErrorCode.SPAN_NOT_ENTERED: "Span {span_id} ('{name}') exited without being entered.",

    # Progress errors
    ErrorCode.CONTEXT_MISSING: "No progress context for span {span_id}, this is a bug.",
    ErrorCode.PARENT_INDICATOR_MISSING: (
        "Parent span {span_id} should have an indicator, this is a bug."
    ),
    ErrorCode.ANCHOR_MISSING: "Anchor indicator '{name}' is not in the display.",
    ErrorCode.TEMPLATE_INVALID: "Invalid progress template {template!r}: {detail}",

    # Config errors
    ErrorCode.CONFIG_INVALID: "Invalid configuration for '{key}': {detail}",
}


class TracebarError(Exception):
    """Base error type for all Tracebar errors.

    Example:
        >>> err = TracebarError(
        ...     code=ErrorCode.CONTEXT_MISSING,
        ...     context={"span_id": 7},
        ... )
        >>> print(err)
        [TB-2001] No progress context for span 7, this is a bug.
    """

    def __init__(
        self,
        code: ErrorCode,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.code = code
        self.context = context or {}
        self.cause = cause
        super().__init__(str(self))

    @property
    def message(self) -> str:
        """Get the formatted user-friendly message."""
        template = ERROR_MESSAGES.get(self.code, "An error occurred: {detail}")
        try:
            return template.format(**self.context)
        except KeyError:
            # Fallback if context doesn't have all keys
            return template

    @property
    def is_recoverable(self) -> bool:
        """Whether this error is typically recoverable."""
        return self.code.is_recoverable

    @property
    def category(self) -> str:
        """Get the error category."""
        return self.code.category

    @property
    def error_id(self) -> str:
        """Get the error ID string (e.g., 'TB-2001')."""
        return f"TB-{self.code.value}"

    def __str__(self) -> str:
        return f"[{self.error_id}] {self.message}"

    def __repr__(self) -> str:
        return f"TracebarError(code={self.code!r}, context={self.context!r})"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict for logging."""
        data: dict[str, Any] = {
            "error_id": self.error_id,
            "code": self.code.value,
            "category": self.category,
            "message": self.message,
            "recoverable": self.is_recoverable,
            "context": self.context,
        }
        if self.cause is not None:
            data["cause"] = repr(self.cause)
        return data


# Convenience factory functions

def span_error(
    code: ErrorCode,
    span_id: int,
    name: str = "",
    cause: Exception | None = None,
) -> TracebarError:
    """Create a span-related error."""
    return TracebarError(
        code=code,
        context={"span_id": span_id, "name": name},
        cause=cause,
    )


def progress_error(
    code: ErrorCode,
    span_id: int | None = None,
    name: str = "",
    detail: str = "",
    **extra: Any,
) -> TracebarError:
    """Create a progress-display error."""
    return TracebarError(
        code=code,
        context={"span_id": span_id, "name": name, "detail": detail, **extra},
    )


def config_error(key: str, detail: str = "", cause: Exception | None = None) -> TracebarError:
    """Create a CONFIG_INVALID error."""
    return TracebarError(
        code=ErrorCode.CONFIG_INVALID,
        context={"key": key, "detail": detail},
        cause=cause,
    )
