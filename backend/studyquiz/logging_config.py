"""
Logging setup.

- JSON lines when LOG_FORMAT=json, readable text otherwise
- Request id per request (taken from X-Request-ID when the caller sends one), echoed back in the response header
- One access line per request
"""

from __future__ import annotations

import json
import logging
import time
import uuid

from fastapi import FastAPI, Request

from .settings import Settings

access_logger = logging.getLogger("studyquiz.access")


class JSONFormatter(logging.Formatter):
	"""Emit log records as single-line JSON."""

	def format(self, record: logging.LogRecord) -> str:
		entry = {
			"timestamp": self.formatTime(record, self.datefmt),
			"level": record.levelname,
			"logger": record.name,
			"message": record.getMessage(),
		}
		if hasattr(record, "request_id"):
			entry["request_id"] = record.request_id
		if record.exc_info and record.exc_info[0]:
			entry["exception"] = self.formatException(record.exc_info)
		return json.dumps(entry, default=str)


def configure_logging(settings: Settings) -> None:
	root = logging.getLogger()
	root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
	root.handlers.clear()

	handler = logging.StreamHandler()
	if settings.log_format == "json":
		handler.setFormatter(JSONFormatter())
	else:
		handler.setFormatter(logging.Formatter(
			"%(asctime)s [%(levelname)s] %(name)s: %(message)s",
			datefmt="%Y-%m-%d %H:%M:%S",
		))
	root.addHandler(handler)

	# passlib complains about newer bcrypt builds on every hash
	logging.getLogger("passlib").setLevel(logging.ERROR)
	logging.getLogger("httpx").setLevel(logging.WARNING)


def install_request_logging(app: FastAPI) -> None:
	@app.middleware("http")
	async def _log_request(request: Request, call_next):
		request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
		request.state.request_id = request_id
		start = time.perf_counter()
		response = await call_next(request)
		duration_ms = (time.perf_counter() - start) * 1000
		response.headers["X-Request-ID"] = request_id
		access_logger.info(
			"%s %s %s %.0fms",
			request.method,
			request.url.path,
			response.status_code,
			duration_ms,
			extra={"request_id": request_id},
		)
		return response
