"""
Observability helpers: structured log formatting and operation timing.
"""

import time
from typing import Callable, Any
from functools import wraps
import logging
import json
from datetime import datetime, timezone
import inspect

logger = logging.getLogger(__name__)


# ============================================================================
# STRUCTURED LOGGING
# ============================================================================

class JSONFormatter(logging.Formatter):
    """One JSON object per log line (enabled with LOG_FORMAT=json)."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        for key in ("operation", "duration_ms"):
            value = getattr(record, key, None)
            if value is not None:
                log_data[key] = value
        return json.dumps(log_data, default=str)


# ============================================================================
# PERFORMANCE TRACKING
# ============================================================================

def track_performance(operation_name: str):
    """Decorator that logs how long an operation took, and whether it failed."""
    def decorator(func: Callable) -> Callable:
        def _log(start: float, error: Exception = None) -> None:
            elapsed = round((time.perf_counter() - start) * 1000)
            extra = {"operation": operation_name, "duration_ms": elapsed}
            if error is None:
                logger.info(f"{operation_name} completed in {elapsed}ms", extra=extra)
            else:
                logger.error(f"{operation_name} failed after {elapsed}ms: {error!r}", extra=extra)

        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                _log(start, e)
                raise
            _log(start)
            return result

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _log(start, e)
                raise
            _log(start)
            return result

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
