from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class UpstreamError(RuntimeError):
	"""A dependency (LLM, database) failed or answered with something unusable.

	``message`` is safe to show to clients; the chained cause is only exposed outside
	production.
	"""

	def __init__(self, message: str, *, detail: Optional[str] = None) -> None:
		super().__init__(detail or message)
		self.message = message
		self.detail = detail


def error_body(message: str, *, errors: Optional[List[Dict[str, Any]]] = None, error: Optional[str] = None) -> Dict[str, Any]:
	body: Dict[str, Any] = {"status": "error", "message": message}
	if errors:
		body["errors"] = errors
	if error:
		body["error"] = error
	return body


def _field_name(loc) -> str:
	# Drop the "body"/"query" prefix FastAPI puts in front
	parts = [str(p) for p in loc if p not in ("body", "query", "path", "form")]
	return ".".join(parts) or "body"


def install_error_handlers(app: FastAPI) -> None:
	def _debug() -> bool:
		return not app.state.ctx.settings.is_production

	@app.exception_handler(StarletteHTTPException)
	async def _http_error(request: Request, exc: StarletteHTTPException):
		return JSONResponse(
			status_code=exc.status_code,
			content=error_body(str(exc.detail)),
			headers=getattr(exc, "headers", None),
		)

	@app.exception_handler(RequestValidationError)
	async def _validation_error(request: Request, exc: RequestValidationError):
		errors = [{"field": _field_name(e.get("loc", ())), "message": e.get("msg", "")} for e in exc.errors()]
		return JSONResponse(status_code=400, content=error_body("Validation failed", errors=errors))

	@app.exception_handler(UpstreamError)
	async def _upstream_error(request: Request, exc: UpstreamError):
		logger.error("upstream failure on %s %s: %s", request.method, request.url.path, exc, exc_info=exc.__cause__)
		cause = exc.detail or (str(exc.__cause__) if exc.__cause__ else None)
		return JSONResponse(status_code=500, content=error_body(exc.message, error=cause if _debug() else None))

	@app.exception_handler(Exception)
	async def _unhandled(request: Request, exc: Exception):
		logger.exception("unhandled error on %s %s", request.method, request.url.path)
		return JSONResponse(status_code=500, content=error_body("Internal server error", error=str(exc) if _debug() else None))
