"""Structured logging for request handlers and store calls.

Adds the request correlation id to every record, times store operations and
keeps owner contacts and keys out of the logs.
"""

import logging
import time
import uuid
import re
import hashlib
import inspect
from contextvars import ContextVar
from typing import Any, Optional, Dict, Callable
from contextlib import contextmanager
from functools import wraps
from datetime import datetime, timezone

from src.utils.logging_config import LoggingConfig, get_logger


_correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

# Applied in order; tokens before JWTs so `token=<jwt>` keeps its key name
_SENSITIVE_PATTERNS = (
    (re.compile(r'[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}', re.IGNORECASE), '[REDACTED_EMAIL]'),
    (re.compile(r'\+?\d[\d\s-]{8,}\d'), '[REDACTED_PHONE]'),
    (re.compile(r'(?i)(api[_-]?key|token|secret|password|auth)[\s:=]+([A-Za-z0-9_.-]{20,})'), r'\1=[REDACTED]'),
    (re.compile(r'eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+'), '[REDACTED_JWT]'),
)


def generate_correlation_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> Optional[str]:
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: Optional[str]) -> None:
    _correlation_id_var.set(correlation_id)


@contextmanager
def correlation_context(correlation_id: Optional[str] = None):
    """Bind a correlation id (the request header value, or a new one) for the block."""
    token = _correlation_id_var.set(correlation_id or generate_correlation_id())
    try:
        yield _correlation_id_var.get()
    finally:
        _correlation_id_var.reset(token)


def mask_sensitive_data(text: str) -> str:
    """Redact emails, phone numbers, keys and JWTs from pasted text."""
    if not text or not LoggingConfig.LOG_MASK_SENSITIVE:
        return text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def mask_user_id(user_id: str) -> str:
    """Shorten a Supabase user id to a prefix plus a stable hash."""
    if not LoggingConfig.LOG_MASK_SENSITIVE or not user_id or len(user_id) <= 12:
        return user_id
    digest = hashlib.sha256(user_id.encode()).hexdigest()[:8]
    return f"{user_id[:4]}...{digest}"


def sanitize_message_text(text: str, max_length: int = 500) -> Optional[str]:
    """Pasted listing text as it may appear in logs, or None when content logging is off."""
    if not LoggingConfig.LOG_MESSAGE_CONTENT or not text:
        return None
    if len(text) > max_length:
        text = f"{text[:max_length]}..."
    return mask_sensitive_data(text)


class StructuredLogger:
    """Logger wrapper; keyword arguments become fields on the record."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _fields(self, **kwargs: Any) -> Dict[str, Any]:
        fields: Dict[str, Any] = {"timestamp": datetime.now(timezone.utc).isoformat()}
        correlation_id = get_correlation_id()
        if correlation_id:
            fields["correlation_id"] = correlation_id
        fields.update(kwargs)
        return fields

    def _log(self, level: int, message: str, exc_info: Any = False, **kwargs: Any) -> None:
        if self.logger.isEnabledFor(level):
            self.logger.log(level, message, extra=self._fields(**kwargs), exc_info=exc_info)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, exc_info=exc_info, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, exc_info=True, **kwargs)


def get_structured_logger(name: str) -> StructuredLogger:
    return StructuredLogger(get_logger(name))


@contextmanager
def log_timing(operation_name: str, logger: Optional[StructuredLogger] = None, **context: Any):
    """Log the duration of the block, with a warning past the slow threshold."""
    log = logger or get_structured_logger(__name__)
    log.debug(f"Starting {operation_name}", operation=operation_name, **context)
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        fields = dict(context, operation=operation_name, processing_time_ms=elapsed_ms)
        log.info(f"Completed {operation_name}", **fields)
        threshold = LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS
        if elapsed_ms > threshold:
            log.warning(f"Slow operation detected: {operation_name}", threshold_ms=threshold, **fields)


def timed(operation_name: Optional[str] = None, logger: Optional[StructuredLogger] = None):
    """Decorator form of `log_timing` for plain and async functions."""
    def decorator(func: Callable) -> Callable:
        name = operation_name or f"{func.__module__}.{func.__name__}"
        log = logger or get_structured_logger(func.__module__)

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                with log_timing(name, logger=log):
                    return await func(*args, **kwargs)
            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            with log_timing(name, logger=log):
                return func(*args, **kwargs)
        return wrapper

    return decorator
