from __future__ import annotations

import logging
import sys
import time
import uuid
from typing import Any, Dict, Optional

import structlog
from fastapi import Request


def _add_log_level(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    event_dict["level"] = method_name
    return event_dict


def configure_logging(env: str = "development", debug: bool = False) -> None:
    """Configure structlog for readable console logs to stdout.

    Development gets colored output and DEBUG level; other environments log at
    INFO without colors. ``debug`` lowers the level to DEBUG everywhere.
    """
    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _add_log_level,
        timestamper,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    is_dev = env == "development"
    level = logging.DEBUG if (debug or is_dev) else logging.INFO
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    # basicConfig leaves an already configured root logger alone
    logging.getLogger().setLevel(level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=is_dev),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _session_id_from_path(path: str) -> Optional[str]:
    parts = path.strip("/").split("/")
    if len(parts) >= 2 and parts[0] == "sessions":
        return parts[1]
    return None


async def request_id_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Bind request_id (and session_id on session routes) into log context.

    Debounced cycles scheduled while handling a request inherit this context,
    so their log lines carry the ids of the keystroke that triggered them.
    """
    start = time.perf_counter()
    path = str(request.url.path)

    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    context = {"request_id": request_id, "path": path}
    session_id = _session_id_from_path(path)
    if session_id:
        context["session_id"] = session_id
    structlog.contextvars.bind_contextvars(**context)

    response = None
    try:
        response = await call_next(request)
    finally:
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        logger = structlog.get_logger("request")
        logger.info(
            "request.completed",
            method=request.method,
            status=getattr(response, "status_code", 0) if response else 500,
            duration_ms=duration_ms,
        )
        structlog.contextvars.clear_contextvars()

    if response:
        response.headers["x-request-id"] = request_id
    return response
