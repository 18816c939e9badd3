import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db import get_context, get_db
from ..schemas import ok

router = APIRouter(prefix="/api", tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health")
def health(db: Session = Depends(get_db), ctx=Depends(get_context)):
	try:
		db.execute(text("SELECT 1"))
		database = "connected"
	except SQLAlchemyError as err:
		logger.error("database health check failed: %s", err)
		database = "unavailable"
	return ok({"database": database, "llmConfigured": ctx.llm is not None})
