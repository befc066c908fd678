"""
Structured logging for ccring.

Every log line is a JSON ``LogEvent`` (or a plain text line when
``observability.log_format`` is ``text``), tagged with the layer that emitted
it and the operation it belongs to.
"""

from __future__ import annotations

import json
import logging
import sys
import time
import traceback
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar

from ccring.config import get_config


class LogLevel(Enum):
    """Log severity levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class RingLayer(Enum):
    """ccring layers for categorization."""
    TREEHASH = "treehash"
    IDENTITY = "identity"
    LINEAGE = "lineage"
    RING = "ring"
    PUZZLE = "puzzle"
    SCHEMA = "schema"
    CONFIG = "config"


@dataclass
class LogEvent:
    """Structured log event."""
    timestamp: str
    level: str
    logger: str
    message: str
    layer: str = ""
    operation: str = ""
    duration_ms: Optional[float] = None
    error_code: str = ""
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding empty values."""
        d = asdict(self)
        return {k: v for k, v in d.items() if v is not None and v != "" and v != {}}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def to_text(self) -> str:
        extras = " ".join(f"{k}={v}" for k, v in self.context.items())
        line = f"{self.timestamp} {self.level.upper()} {self.logger}: {self.message}"
        return f"{line} {extras}" if extras else line


class StructuredHandler(logging.Handler):
    """Logging handler that outputs structured events.

    With no explicit ``fmt`` the format is read from config on every record.
    """

    def __init__(self, stream: Any = None, fmt: Optional[str] = None):
        super().__init__()
        self.stream = stream or sys.stderr
        self.fmt = fmt

    def emit(self, record: logging.LogRecord) -> None:
        try:
            event = LogEvent(
                timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                level=record.levelname.lower(),
                logger=record.name,
                message=record.getMessage(),
                layer=getattr(record, "layer", ""),
                operation=getattr(record, "operation", ""),
                duration_ms=getattr(record, "duration_ms", None),
                error_code=getattr(record, "error_code", ""),
                context=getattr(record, "context", {}),
            )

            if record.exc_info:
                event.exception = "".join(traceback.format_exception(*record.exc_info))

            fmt = self.fmt or get_config().observability.log_format.get()
            line = event.to_text() if fmt == "text" else event.to_json()
            self.stream.write(line + "\n")
            self.stream.flush()
        except Exception:
            self.handleError(record)


def _hexify(value: Any) -> Any:
    return value.hex() if isinstance(value, (bytes, bytearray)) else value


class RingLogger:
    """
    Structured logger for ccring components.

    Level and output format follow the observability config section at the
    time each record is logged, unless a level is pinned at construction.
    """

    def __init__(self, name: str, layer: RingLayer, level: Optional[LogLevel] = None):
        self.name = name
        self.layer = layer
        self._fixed_level = level
        self._logger = logging.getLogger(f"ccring.{layer.value}.{name}")
        self._sync_level()

        if not any(isinstance(h, StructuredHandler) for h in self._logger.handlers):
            self._logger.addHandler(StructuredHandler())

    def _sync_level(self) -> None:
        level = self._fixed_level
        if level is None:
            level = LogLevel(get_config().observability.log_level.get())
        self._logger.setLevel(getattr(logging, level.value.upper()))

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def _log(
        self,
        level: int,
        message: str,
        operation: str = "",
        error_code: str = "",
        duration_ms: Optional[float] = None,
        exc_info: bool = False,
        **context: Any,
    ) -> None:
        self._sync_level()
        extra = {
            "layer": self.layer.value,
            "operation": operation,
            "error_code": error_code,
            "duration_ms": duration_ms,
            "context": {k: _hexify(v) for k, v in context.items()},
        }
        self._logger.log(level, message, extra=extra, exc_info=exc_info)

    def debug(self, message: str, **context: Any) -> None:
        self._log(logging.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        self._log(logging.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(logging.WARNING, message, **context)

    def error(
        self,
        message: str,
        error_code: str = "",
        exc_info: bool = False,
        **context: Any,
    ) -> None:
        self._log(logging.ERROR, message, error_code=error_code, exc_info=exc_info, **context)

    def operation(
        self,
        name: str,
        duration_ms: float,
        success: bool = True,
        **context: Any,
    ) -> None:
        """Log an operation completion."""
        level = logging.DEBUG if success else logging.WARNING
        status = "completed" if success else "failed"
        self._log(
            level,
            f"Operation {name} {status}",
            operation=name,
            duration_ms=duration_ms,
            **context,
        )


def get_logger(name: str, layer: RingLayer) -> RingLogger:
    """Get a logger for a ccring component."""
    return RingLogger(name, layer)


T = TypeVar("T")


def timed_operation(
    logger: RingLogger,
    operation_name: str,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator for timing and logging operations."""
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            start = time.monotonic()
            success = True
            try:
                return func(*args, **kwargs)
            except Exception:
                success = False
                raise
            finally:
                duration_ms = (time.monotonic() - start) * 1000
                logger.operation(operation_name, duration_ms, success)
        return wrapper
    return decorator
