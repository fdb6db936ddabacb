"""Structured logging setup and per-request logging middleware.

Every request gets a request id, and analytics requests scoped to a single
production unit also carry that unit's id in the log context, so all lines
emitted while one report is assembled can be grepped together.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from farmledger.config import LogFormat, get_settings

_configured = False

_UNIT_PATH = re.compile(r"/analytics/units/(?P<unit_id>[0-9a-fA-F-]{36})/")
_QUIET_PATHS = frozenset({"/health", "/health/ready"})


def _renderer(log_format: LogFormat) -> Any:
	if log_format == LogFormat.json:
		return structlog.processors.JSONRenderer(sort_keys=True)
	return structlog.dev.ConsoleRenderer()


def configure_structured_logging() -> None:
	"""Route stdlib logging and structlog through one renderer; idempotent."""
	global _configured
	if _configured:
		return

	settings = get_settings()
	log_level = logging.getLevelName(settings.log_level.upper())
	if not isinstance(log_level, int):
		log_level = logging.INFO
	logging.basicConfig(level=log_level, format="%(message)s")

	structlog.configure(
		processors=[
			structlog.contextvars.merge_contextvars,
			structlog.processors.add_log_level,
			structlog.processors.TimeStamper(fmt="iso", utc=True),
			structlog.processors.StackInfoRenderer(),
			structlog.processors.format_exc_info,
			_renderer(settings.log_format),
		],
		wrapper_class=structlog.make_filtering_bound_logger(log_level),
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


def request_context(method: str, path: str, request_id: str) -> dict[str, str]:
	"""Log context for one request; unit-scoped analytics paths add ``unit_id``."""
	context = {"request_id": request_id, "method": method, "path": path}
	match = _UNIT_PATH.search(path)
	if match is not None:
		context["unit_id"] = match.group("unit_id").lower()
	return context


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Bind request context, echo ``x-request-id`` and report timing in ``x-response-time-ms``."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
		request.state.request_id = request_id
		path = request.url.path

		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(**request_context(request.method, path, request_id))

		logger = structlog.get_logger("farmledger.request")
		start = time.perf_counter()

		try:
			response = await call_next(request)
		except Exception as exc:
			logger.exception(
				"http_request_failed",
				duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
				error=str(exc),
			)
			raise

		duration_ms = round((time.perf_counter() - start) * 1000.0, 2)
		response.headers["x-request-id"] = request_id
		response.headers["x-response-time-ms"] = f"{duration_ms:.2f}"

		# health probes poll constantly
		log = logger.debug if path in _QUIET_PATHS else logger.info
		log("http_request", status_code=response.status_code, duration_ms=duration_ms)
		return response
