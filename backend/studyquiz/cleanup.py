from __future__ import annotations
from datetime import timedelta
from sqlalchemy import delete
from sqlalchemy.orm import Session

from .db import utcnow
from .models import AuthSession


def purge_stale_sessions(db: Session, max_age_minutes: int) -> int:
	# A session idle for longer than a token lives can no longer be presented
	threshold = utcnow() - timedelta(minutes=max_age_minutes)
	res = db.execute(delete(AuthSession).where(AuthSession.last_activity_at < threshold))
	db.commit()
	return res.rowcount or 0
