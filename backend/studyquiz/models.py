from __future__ import annotations
import math
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Table, Text
from sqlalchemy.orm import relationship, validates
from .db import Base, utcnow


SUBJECT_CATEGORIES = ["Science", "Mathematics", "Technology", "Language", "Social Studies", "Arts"]
DIFFICULTY_LEVELS = ["beginner", "intermediate", "advanced"]
QUESTION_TYPES = ["MCQ", "coding", "network", "sql", "chatbot"]

FACE_DESCRIPTOR_LENGTH = 128


class Account(Base):
	__tablename__ = "accounts"
	id = Column(Integer, primary_key=True, autoincrement=True)
	# Stored lower-cased; uniqueness is therefore case-insensitive
	email = Column(String(256), unique=True, index=True, nullable=False)
	password_hash = Column(String(256), nullable=False)
	first_name = Column(String(50), nullable=False)
	last_name = Column(String(50), nullable=False)
	avatar = Column(String(512), nullable=True)
	face_descriptor = Column(JSON(none_as_null=True), nullable=True)

	# Preferences
	pref_subjects = Column(JSON, default=list, nullable=False)
	learning_pace = Column(String(16), default="moderate", nullable=False)
	difficulty_level = Column(String(16), default="beginner", nullable=False)
	preferred_question_types = Column(JSON, default=list, nullable=False)
	daily_goal = Column(Integer, default=10, nullable=False)

	# Progress
	total_questions = Column(Integer, default=0, nullable=False)
	correct_answers = Column(Integer, default=0, nullable=False)
	streak_days = Column(Integer, default=0, nullable=False)
	last_active_date = Column(DateTime, nullable=True)
	points = Column(Integer, default=0, nullable=False, index=True)

	is_active = Column(Boolean, default=True, nullable=False)
	is_email_verified = Column(Boolean, default=False, nullable=False)
	last_login = Column(DateTime, nullable=True)
	last_login_method = Column(String(16), default="password", nullable=False)
	created_at = Column(DateTime, default=utcnow, nullable=False)
	updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

	sessions = relationship("AuthSession", back_populates="account", cascade="all, delete-orphan")

	@property
	def full_name(self) -> str:
		return f"{self.first_name} {self.last_name}"

	@property
	def accuracy_percentage(self) -> int:
		if not self.total_questions:
			return 0
		# Halves round up
		return math.floor((self.correct_answers or 0) / self.total_questions * 100 + 0.5)


class AuthSession(Base):
	__tablename__ = "auth_sessions"
	# Token id (jti) of an issued access token
	session_id = Column(String(64), primary_key=True)
	account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), index=True, nullable=False)
	created_at = Column(DateTime, default=utcnow, nullable=False)
	last_activity_at = Column(DateTime, default=utcnow, nullable=False)

	account = relationship("Account", back_populates="sessions")


subject_prerequisites = Table(
	"subject_prerequisites",
	Base.metadata,
	Column("subject_id", Integer, ForeignKey("subjects.id", ondelete="CASCADE"), primary_key=True),
	Column("prerequisite_id", Integer, ForeignKey("subjects.id", ondelete="CASCADE"), primary_key=True),
)


class Subject(Base):
	__tablename__ = "subjects"
	id = Column(Integer, primary_key=True, autoincrement=True)
	name = Column(String(50), unique=True, index=True, nullable=False)
	description = Column(String(300), nullable=False)
	icon = Column(String(16), default="📚", nullable=False)
	color = Column(String(16), default="#3B82F6", nullable=False)
	category = Column(String(32), index=True, nullable=False)
	is_active = Column(Boolean, default=True, index=True, nullable=False)
	difficulty_levels = Column(JSON, default=list, nullable=False)
	question_types = Column(JSON, default=list, nullable=False)
	total_questions = Column(Integer, default=0, nullable=False)
	popularity = Column(Integer, default=0, index=True, nullable=False)
	created_at = Column(DateTime, default=utcnow, nullable=False)
	updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

	topics = relationship(
		"Topic",
		back_populates="subject",
		cascade="all, delete-orphan",
		order_by="Topic.id",
	)
	prerequisites = relationship(
		"Subject",
		secondary=subject_prerequisites,
		primaryjoin=id == subject_prerequisites.c.subject_id,
		secondaryjoin=id == subject_prerequisites.c.prerequisite_id,
	)

	@validates("category")
	def _check_category(self, key, value):
		if value not in SUBJECT_CATEGORIES:
			raise ValueError(f"category must be one of {', '.join(SUBJECT_CATEGORIES)}")
		return value

	@validates("difficulty_levels", "question_types")
	def _check_tags(self, key, value):
		allowed = DIFFICULTY_LEVELS if key == "difficulty_levels" else QUESTION_TYPES
		unknown = [v for v in value or [] if v not in allowed]
		if unknown:
			raise ValueError(f"{key} has unknown values: {', '.join(map(str, unknown))}")
		return value

	@property
	def active_topics_count(self) -> int:
		return sum(1 for t in self.topics if t.is_active)

	@property
	def total_estimated_time(self) -> int:
		return sum(t.estimated_time for t in self.topics if t.is_active)


class Topic(Base):
	__tablename__ = "topics"
	id = Column(Integer, primary_key=True, autoincrement=True)
	subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), index=True, nullable=False)
	name = Column(String(100), nullable=False)
	description = Column(Text, nullable=False)
	difficulty_level = Column(String(16), default="beginner", nullable=False)
	# Minutes
	estimated_time = Column(Integer, default=30, nullable=False)
	is_active = Column(Boolean, default=True, nullable=False)
	question_count = Column(Integer, default=0, nullable=False)
	tags = Column(JSON, default=list, nullable=False)
	created_at = Column(DateTime, default=utcnow, nullable=False)
	updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

	subject = relationship("Subject", back_populates="topics")

	@validates("estimated_time")
	def _check_estimated_time(self, key, value):
		if value is not None and not 5 <= value <= 300:
			raise ValueError("estimated_time must be between 5 and 300 minutes")
		return value

	@validates("difficulty_level")
	def _check_difficulty(self, key, value):
		if value not in DIFFICULTY_LEVELS:
			raise ValueError(f"difficulty_level must be one of {', '.join(DIFFICULTY_LEVELS)}")
		return value
