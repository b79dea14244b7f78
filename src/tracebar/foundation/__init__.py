"""Foundation domain - base config, errors and logging.

Everything else imports from here; nothing here imports the rest of tracebar.
"""

from tracebar.foundation.config import (
    ProgressConfig,
    TracebarConfig,
    get_config,
    load_config,
    reset_config,
)
from tracebar.foundation.errors import (
    ERROR_MESSAGES,
    ErrorCode,
    TracebarError,
    config_error,
    progress_error,
    span_error,
)
from tracebar.foundation.logging import configure_logging

__all__ = [
    # Config
    "ProgressConfig",
    "TracebarConfig",
    "get_config",
    "load_config",
    "reset_config",
    # Errors
    "ERROR_MESSAGES",
    "ErrorCode",
    "TracebarError",
    "config_error",
    "progress_error",
    "span_error",
    # Logging
    "configure_logging",
]
