from __future__ import annotations
import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from .. import catalog
from ..db import get_db
from ..models import Account, Subject
from ..schemas import QuestionRequest, ok, preferences_of
from .auth import get_current_account

router = APIRouter(prefix="/api/subjects", tags=["subjects"], dependencies=[Depends(get_current_account)])

# Minutes budgeted per requested question
MINUTES_PER_QUESTION = 2


def _active_subject(db: Session, subject_id: int) -> Subject:
	subject = db.get(Subject, subject_id)
	if subject is None:
		raise HTTPException(status_code=404, detail="Subject not found")
	if not subject.is_active:
		raise HTTPException(status_code=404, detail="Subject is not available")
	return subject


@router.get("")
async def list_subjects(
	category: Optional[str] = None,
	search: Optional[str] = None,
	limit: int = Query(default=20, ge=1, le=100),
	page: int = Query(default=1, ge=1),
	db: Session = Depends(get_db),
):
	subjects, total = catalog.list_subjects(db, category=category, search=search, page=page, limit=limit)
	return ok({
		"subjects": [catalog.subject_payload(s, with_topics=False) for s in subjects],
		"pagination": {
			"currentPage": page,
			"totalPages": math.ceil(total / limit),
			"totalItems": total,
			"itemsPerPage": limit,
		},
	})


@router.get("/popular")
async def popular(limit: int = Query(default=10, ge=1, le=100), db: Session = Depends(get_db)):
	subjects = catalog.popular_subjects(db, limit)
	return ok({"subjects": [catalog.subject_payload(s, with_topics=False) for s in subjects]})


@router.get("/categories")
async def categories(db: Session = Depends(get_db)):
	return ok({"categories": catalog.active_categories(db)})


@router.get("/recommended")
async def recommended(
	limit: int = Query(default=10, ge=1, le=100),
	account: Account = Depends(get_current_account),
	db: Session = Depends(get_db),
):
	subjects = catalog.recommended_subjects(db, account, limit)
	return ok({
		"subjects": [catalog.subject_payload(s, with_topics=False) for s in subjects],
		"userPreferences": preferences_of(account),
	})


@router.get("/{subject_id}")
async def get_subject(subject_id: int, db: Session = Depends(get_db)):
	subject = _active_subject(db, subject_id)
	return ok({"subject": catalog.subject_payload(subject)})


@router.get("/{subject_id}/topics")
async def get_topics(subject_id: int, db: Session = Depends(get_db)):
	subject = _active_subject(db, subject_id)
	return ok({
		"topics": [catalog.topic_payload(t) for t in catalog.active_topics(subject)],
		"subject": catalog.subject_summary(subject),
	})


@router.get("/{subject_id}/topics/{topic_id}")
async def get_topic(subject_id: int, topic_id: int, db: Session = Depends(get_db)):
	subject = _active_subject(db, subject_id)
	topic = catalog.get_topic(subject, topic_id)
	if topic is None:
		raise HTTPException(status_code=404, detail="Topic not found")
	if not topic.is_active:
		raise HTTPException(status_code=404, detail="Topic is not available")
	return ok({"topic": catalog.topic_payload(topic), "subject": catalog.subject_summary(subject)})


@router.post("/{subject_id}/request-questions")
async def request_questions(subject_id: int, req: QuestionRequest, db: Session = Depends(get_db)):
	subject = _active_subject(db, subject_id)
	topic = None
	if req.topic_id is not None:
		topic = catalog.get_topic(subject, req.topic_id)
		if topic is None or not topic.is_active:
			raise HTTPException(status_code=404, detail="Topic not found or not available")
	return ok({
		"subjectId": subject.id,
		"subjectName": subject.name,
		"topicId": topic.id if topic else None,
		"topicName": topic.name if topic else None,
		"questionType": req.question_type,
		"difficulty": req.difficulty,
		"count": req.count,
		"estimatedTime": req.count * MINUTES_PER_QUESTION,
	}, "Question request received")
