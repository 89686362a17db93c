"""
Structured logging for Repoverse.

API, worker and CLI processes call configure_logging() once at startup.
Events are snake_case names with keyword fields. Run-scoped fields
(request_id, user_id, cluster, facet, task_id) live in structlog
contextvars, so nested code picks them up without passing them along:

    with LogContext(cluster="frontend"):
        logger.info("query_fetched", query=query)  # carries cluster=frontend
"""

import inspect
import logging
import os
import re
import sys
import time
import uuid
from collections.abc import Callable, Iterator, MutableMapping
from contextlib import contextmanager
from functools import lru_cache, wraps
from typing import Any, TypeVar

import structlog
from structlog.types import Processor

F = TypeVar("F", bound=Callable[..., Any])

REQUEST_ID_HEADER = "x-request-id"

# Task arguments worth promoting to log context when a Celery task starts
_TASK_CONTEXT_ARGS = ("cluster_name", "kind", "value", "horizon_days", "top_k")

_TOKEN_PATTERN = re.compile(r"\b(?:gh[pousr]_[A-Za-z0-9]{16,}|github_pat_[A-Za-z0-9_]{16,})")
_SECRET_FIELDS = frozenset({"token", "github_token", "authorization"})


def mask_token(token: str) -> str:
    """Mask a credential down to its last 4 characters."""
    if not token or len(token) <= 4:
        return "****"
    return f"****{token[-4:]}"


def _scrub_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask GitHub tokens in secret-named fields and inside any string value."""
    for key, value in event_dict.items():
        if not isinstance(value, str):
            continue
        if key in _SECRET_FIELDS:
            event_dict[key] = mask_token(value)
        else:
            event_dict[key] = _TOKEN_PATTERN.sub(lambda m: mask_token(m.group(0)), value)
    return event_dict


def _service_context(role: str) -> Processor:
    def add(
        logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        event_dict["app"] = "repoverse"
        event_dict.setdefault("role", role)
        return event_dict

    return add


def _use_console_renderer() -> bool:
    from .config import get_settings

    if os.getenv("LOG_JSON", "").lower() in ("1", "true", "yes"):
        return False
    return get_settings().debug or os.getenv("ENV", "development") == "development"


def get_processors(role: str = "app") -> list[Processor]:
    """Processor chain; JSON lines outside development."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _service_context(role),
        _scrub_secrets,
    ]

    if _use_console_renderer():
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    else:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return processors


@lru_cache(maxsize=1)
def configure_logging(level: str = "INFO", role: str = "app") -> None:
    """Configure structlog over stdlib logging. Repeated calls are no-ops."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )
    # urllib3 logs every GitHub request at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    structlog.configure(
        processors=get_processors(role),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(name)  # type: ignore[no-any-return]


class LogContext:
    """
    Bind fields for the duration of a block, restoring whatever the same
    keys held before on exit.

    Usage:
        with LogContext(user_id="user-1"):
            with LogContext(cluster="frontend"):
                logger.debug("pool_tier")  # user_id and cluster
            logger.info("feed_built")  # user_id only
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self._tokens: dict[str, Any] = {}

    def __enter__(self):
        self._tokens = structlog.contextvars.bind_contextvars(**self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        structlog.contextvars.reset_contextvars(**self._tokens)
        return False


@contextmanager
def timed(
    operation: str, logger: structlog.stdlib.BoundLogger | None = None, **fields: Any
) -> Iterator[None]:
    """Log operation_complete / operation_failed with the block's duration."""
    log = logger or get_logger("timing")
    start = time.perf_counter()
    try:
        yield
    except Exception as e:
        log.error(
            "operation_failed",
            operation=operation,
            duration_seconds=round(time.perf_counter() - start, 3),
            error=str(e),
            **fields,
        )
        raise
    log.info(
        "operation_complete",
        operation=operation,
        duration_seconds=round(time.perf_counter() - start, 3),
        **fields,
    )


def log_timing(
    operation: str, logger: structlog.stdlib.BoundLogger | None = None
) -> Callable[[F], F]:
    """
    Decorator form of timed().

    Usage:
        @log_timing("curation_run_all")
        def run_all(self):
            ...
    """

    def decorator(func: F) -> F:
        log = logger or get_logger(func.__module__)

        @wraps(func)
        def wrapper(*args, **kwargs):
            with timed(operation, log):
                return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator


# =============================================================================
# FastAPI Integration
# =============================================================================


class RequestLoggingMiddleware:
    """
    ASGI middleware: one request_started / request_complete pair per request.

    An incoming X-Request-ID is reused (so a caller can correlate its own
    logs), otherwise a short id is generated. Either way it is echoed back
    in the response headers.
    """

    def __init__(self, app):
        self.app = app
        self._logger: structlog.stdlib.BoundLogger | None = None

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        if self._logger is None:
            self._logger = get_logger("http")
        return self._logger

    @staticmethod
    def _request_id(scope) -> str:
        for name, value in scope.get("headers") or []:
            if name.decode("latin-1").lower() == REQUEST_ID_HEADER:
                incoming = value.decode("latin-1").strip()
                if incoming:
                    return incoming[:64]
        return uuid.uuid4().hex[:8]

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = self._request_id(scope)
        method = scope.get("method", "")
        path = scope.get("path", "")
        start = time.perf_counter()
        status_code = 500

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        self.logger.info("request_started", method=method, path=path)

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 500)
                headers = list(message.get("headers") or [])
                headers.append((REQUEST_ID_HEADER.encode(), request_id.encode()))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            if status_code >= 500:
                log_method = self.logger.error
            elif status_code >= 400:
                log_method = self.logger.warning
            else:
                log_method = self.logger.info
            log_method(
                "request_complete",
                method=method,
                path=path,
                status_code=status_code,
                duration_seconds=round(time.perf_counter() - start, 3),
            )
            structlog.contextvars.clear_contextvars()


# =============================================================================
# Celery Integration
# =============================================================================


def task_context(task: Any, args: tuple, kwargs: dict) -> dict[str, Any]:
    """Log fields for one task run: its name plus any curation arguments it was given."""
    fields: dict[str, Any] = {"task_name": task.name}
    try:
        bound = inspect.signature(task.run).bind_partial(*(args or ()), **(kwargs or {}))
    except (TypeError, ValueError):
        bound = None
    values = dict(bound.arguments) if bound else dict(kwargs or {})
    for name in _TASK_CONTEXT_ARGS:
        if values.get(name) is not None:
            fields["cluster" if name == "cluster_name" else name] = values[name]
    return fields


def configure_celery_logging():
    """Bind task_id, task_name and curation arguments around every task run."""
    from celery.signals import task_failure, task_postrun, task_prerun

    logger = get_logger("celery.tasks")

    @task_prerun.connect(weak=False)
    def task_prerun_handler(task_id, task, args, kwargs, **kw):
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(task_id=task_id, **task_context(task, args, kwargs))
        logger.info("task_started")

    @task_postrun.connect(weak=False)
    def task_postrun_handler(task_id, task, args, kwargs, retval, state, **kw):
        logger.info("task_completed", state=state)
        structlog.contextvars.clear_contextvars()

    @task_failure.connect(weak=False)
    def task_failure_handler(task_id, exception, args, kwargs, traceback, einfo, **kw):
        logger.error("task_failed", error=str(exception), error_type=type(exception).__name__)


__all__ = [
    "configure_logging",
    "get_logger",
    "mask_token",
    "LogContext",
    "timed",
    "log_timing",
    "RequestLoggingMiddleware",
    "task_context",
    "configure_celery_logging",
]
