import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Callable

from fastapi import Request, Response

from .metrics import inc_http_request, observe_latency_ms


logger = logging.getLogger("relay")


def configure_logging(level: str) -> None:
    logger.setLevel(level)
    if not logger.handlers:
        logger.addHandler(logging.StreamHandler())
    for handler in logger.handlers:
        handler.setLevel(level)


def iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def log_extra(request: Request, **fields) -> None:
    """Attach fields to the access-log line of the current request."""
    extra = getattr(request.state, "log_extra", None)
    if not isinstance(extra, dict):
        extra = request.state.log_extra = {}
    extra.update(fields)


async def logging_middleware(request: Request, call_next: Callable) -> Response:
    request_id = str(uuid.uuid4())
    start = time.perf_counter()

    # store request_id in state so handlers can use it if needed
    request.state.request_id = request_id
    request.state.log_extra = {}

    response: Response
    try:
        response = await call_next(request)
    except Exception:
        latency_ms = (time.perf_counter() - start) * 1000.0
        inc_http_request(request.url.path, 500)
        log = {
            "ts": iso_now(),
            "level": "error",
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": 500,
            "latency_ms": round(latency_ms, 2),
        }
        logger.exception(json.dumps(log))
        raise

    latency_ms = (time.perf_counter() - start) * 1000.0
    status_code = response.status_code

    inc_http_request(request.url.path, status_code)
    observe_latency_ms(latency_ms)

    log = {
        "ts": iso_now(),
        "level": "info" if status_code < 400 else "warning",
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "status": status_code,
        "latency_ms": round(latency_ms, 2),
    }

    # add extra fields from handlers (e.g. publish result)
    if isinstance(getattr(request.state, "log_extra", None), dict):
        log.update(request.state.log_extra)

    if status_code < 400:
        logger.info(json.dumps(log))
    else:
        logger.warning(json.dumps(log))
    return response
