"""Subject and topic queries.

Topics have no life of their own: every change goes through the owning subject.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from .models import Account, Subject, Topic

TOPIC_FIELDS = ("name", "description", "difficulty_level", "estimated_time", "is_active", "question_count", "tags")


class TopicNotFound(LookupError):
	pass


def add_topic(db: Session, subject: Subject, **data: Any) -> Topic:
	topic = Topic(**{k: v for k, v in data.items() if k in TOPIC_FIELDS})
	subject.topics.append(topic)
	db.commit()
	db.refresh(topic)
	return topic


def get_topic(subject: Subject, topic_id: int) -> Optional[Topic]:
	for topic in subject.topics:
		if topic.id == topic_id:
			return topic
	return None


def update_topic(db: Session, subject: Subject, topic_id: int, **data: Any) -> Topic:
	topic = get_topic(subject, topic_id)
	if topic is None:
		raise TopicNotFound(topic_id)
	for key, value in data.items():
		if key in TOPIC_FIELDS:
			setattr(topic, key, value)
	db.commit()
	return topic


def remove_topic(db: Session, subject: Subject, topic_id: int) -> None:
	topic = get_topic(subject, topic_id)
	if topic is None:
		raise TopicNotFound(topic_id)
	subject.topics.remove(topic)
	db.commit()


def active_topics(subject: Subject) -> List[Topic]:
	return [t for t in subject.topics if t.is_active]


def refresh_question_count(db: Session, subject: Subject) -> int:
	subject.total_questions = sum(t.question_count for t in subject.topics)
	db.commit()
	return subject.total_questions


def list_subjects(
	db: Session,
	*,
	category: Optional[str] = None,
	search: Optional[str] = None,
	page: int = 1,
	limit: int = 20,
) -> Tuple[List[Subject], int]:
	stmt = select(Subject).where(Subject.is_active.is_(True))
	if category:
		stmt = stmt.where(Subject.category == category)
	if search:
		pattern = f"%{search}%"
		stmt = stmt.where(or_(Subject.name.ilike(pattern), Subject.description.ilike(pattern)))
	total = db.scalar(select(func.count()).select_from(stmt.subquery()))
	rows = db.scalars(
		stmt.order_by(Subject.popularity.desc(), Subject.name.asc())
		.offset((page - 1) * limit)
		.limit(limit)
	).all()
	return list(rows), total or 0


def popular_subjects(db: Session, limit: int = 10) -> List[Subject]:
	stmt = (
		select(Subject)
		.where(Subject.is_active.is_(True))
		.order_by(Subject.popularity.desc())
		.limit(limit)
	)
	return list(db.scalars(stmt).all())


def subjects_by_category(db: Session, category: str) -> List[Subject]:
	stmt = (
		select(Subject)
		.where(Subject.is_active.is_(True), Subject.category == category)
		.order_by(Subject.name.asc())
	)
	return list(db.scalars(stmt).all())


def active_categories(db: Session) -> List[str]:
	stmt = select(Subject.category).where(Subject.is_active.is_(True)).distinct().order_by(Subject.category)
	return list(db.scalars(stmt).all())


def recommended_subjects(db: Session, account: Account, limit: int = 10) -> List[Subject]:
	stmt = select(Subject).where(Subject.is_active.is_(True))
	if account.pref_subjects:
		stmt = stmt.where(Subject.name.in_(account.pref_subjects))
	rows = db.scalars(stmt.order_by(Subject.popularity.desc(), Subject.name.asc())).all()
	# difficulty_levels is a JSON list, filtered here rather than in SQL
	level = account.difficulty_level
	if level:
		rows = [s for s in rows if level in (s.difficulty_levels or [])]
	return list(rows)[:limit]


def subject_summary(subject: Subject) -> Dict[str, Any]:
	return {
		"id": subject.id,
		"name": subject.name,
		"description": subject.description,
		"icon": subject.icon,
		"color": subject.color,
	}


def topic_payload(topic: Topic) -> Dict[str, Any]:
	return {
		"id": topic.id,
		"name": topic.name,
		"description": topic.description,
		"difficultyLevel": topic.difficulty_level,
		"estimatedTime": topic.estimated_time,
		"isActive": topic.is_active,
		"questionCount": topic.question_count,
		"tags": list(topic.tags or []),
	}


def subject_payload(subject: Subject, *, with_topics: bool = True) -> Dict[str, Any]:
	data = {
		**subject_summary(subject),
		"category": subject.category,
		"isActive": subject.is_active,
		"difficultyLevels": list(subject.difficulty_levels or []),
		"questionTypes": list(subject.question_types or []),
		"totalQuestions": subject.total_questions,
		"popularity": subject.popularity,
		"prerequisites": [p.id for p in subject.prerequisites],
		"activeTopicsCount": subject.active_topics_count,
		"totalEstimatedTime": subject.total_estimated_time,
	}
	if with_topics:
		data["topics"] = [topic_payload(t) for t in subject.topics]
	return data
