"""Request bodies and account serialisation.

Wire names are camelCase for the browser client; attributes stay snake_case.
"""
from __future__ import annotations
import re
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import AfterValidator, AnyHttpUrl, BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

from .models import FACE_DESCRIPTOR_LENGTH, Account

EMAIL_RE = re.compile(r"^[\w.+-]+@[\w-]+(\.[\w-]+)*\.\w{2,}$")
PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")

QuestionType = Literal["MCQ", "coding", "network", "sql", "chatbot"]
Difficulty = Literal["beginner", "intermediate", "advanced"]
LearningPace = Literal["slow", "moderate", "fast"]
PreferredSubject = Literal["Mathematics", "Physics", "Chemistry", "Biology", "Computer Science", "English", "History", "Geography"]


class CamelModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _normalise_email(value: str) -> str:
	value = (value or "").strip().lower()
	if not EMAIL_RE.match(value):
		raise ValueError("Please provide a valid email")
	return value


def _check_password(value: str) -> str:
	if len(value) < 6:
		raise ValueError("Password must be at least 6 characters long")
	if not PASSWORD_RE.match(value):
		raise ValueError("Password must contain at least one uppercase letter, one lowercase letter, and one number")
	return value


def _check_descriptor(value: Optional[List[float]]) -> Optional[List[float]]:
	if value is not None and len(value) != FACE_DESCRIPTOR_LENGTH:
		raise ValueError(f"Face descriptor must have exactly {FACE_DESCRIPTOR_LENGTH} numbers")
	return value


Email = Annotated[str, StringConstraints(max_length=254), AfterValidator(_normalise_email)]
NewPassword = Annotated[str, AfterValidator(_check_password)]
# Real JSON numbers only: no numeric strings, NaN or Infinity
Component = Annotated[float, Field(strict=True, allow_inf_nan=False)]
Descriptor = Annotated[List[Component], AfterValidator(_check_descriptor)]
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]


class PreferencesIn(CamelModel):
	subjects: Optional[List[PreferredSubject]] = None
	learning_pace: Optional[LearningPace] = None
	difficulty_level: Optional[Difficulty] = None
	preferred_question_types: Optional[List[QuestionType]] = None
	daily_goal: Optional[int] = Field(default=None, ge=1, le=100)


class RegisterRequest(CamelModel):
	first_name: Name
	last_name: Name
	email: Email
	password: NewPassword
	preferences: Optional[PreferencesIn] = None
	face_descriptor: Optional[Descriptor] = None


class LoginRequest(CamelModel):
	email: Email
	password: str = Field(min_length=1)


class FaceLoginRequest(CamelModel):
	face_descriptor: List[Component] = Field(min_length=1)


class FaceDescriptorRequest(CamelModel):
	face_descriptor: Descriptor


class ProfileUpdate(CamelModel):
	first_name: Optional[Name] = None
	last_name: Optional[Name] = None
	avatar: Optional[AnyHttpUrl] = None


class PasswordChange(CamelModel):
	current_password: str = Field(min_length=1)
	new_password: NewPassword


class CompareRequest(BaseModel):
	descriptor1: List[float]
	descriptor2: List[float]


class GenerateRequest(CamelModel):
	subject: str = Field(min_length=1)
	topic: str = Field(min_length=1)
	question_type: QuestionType
	difficulty: Difficulty
	count: int = Field(default=5, ge=1, le=20)


class ValidateAnswerRequest(CamelModel):
	question_id: str = Field(min_length=1)
	answer: str = Field(min_length=1)
	question_type: QuestionType
	question: Optional[str] = None
	correct_answer: Optional[str] = None


class QuestionRequest(CamelModel):
	topic_id: Optional[int] = None
	question_type: QuestionType = "MCQ"
	difficulty: Difficulty = "beginner"
	count: int = Field(default=5, ge=1, le=20)


class PreferencesOut(CamelModel):
	subjects: List[str]
	learning_pace: str
	difficulty_level: str
	preferred_question_types: List[str]
	daily_goal: int


class ProgressOut(CamelModel):
	total_questions: int
	correct_answers: int
	streak_days: int
	last_active_date: Optional[datetime]
	points: int


class AccountOut(CamelModel):
	id: int
	first_name: str
	last_name: str
	email: str
	avatar: Optional[str]
	preferences: PreferencesOut
	progress: ProgressOut
	last_login: Optional[datetime] = None
	created_at: Optional[datetime] = None


def preferences_of(account: Account) -> Dict[str, Any]:
	return PreferencesOut(
		subjects=list(account.pref_subjects or []),
		learning_pace=account.learning_pace,
		difficulty_level=account.difficulty_level,
		preferred_question_types=list(account.preferred_question_types or []),
		daily_goal=account.daily_goal,
	).model_dump(by_alias=True, mode="json")


def progress_of(account: Account) -> Dict[str, Any]:
	return ProgressOut(
		total_questions=account.total_questions or 0,
		correct_answers=account.correct_answers or 0,
		streak_days=account.streak_days or 0,
		last_active_date=account.last_active_date,
		points=account.points or 0,
	).model_dump(by_alias=True, mode="json")


def account_payload(account: Account, *, with_login: bool = False, with_created: bool = False) -> Dict[str, Any]:
	exclude = set()
	if not with_login:
		exclude.add("last_login")
	if not with_created:
		exclude.add("created_at")
	return AccountOut(
		id=account.id,
		first_name=account.first_name,
		last_name=account.last_name,
		email=account.email,
		avatar=account.avatar,
		preferences=preferences_of(account),
		progress=progress_of(account),
		last_login=account.last_login,
		created_at=account.created_at,
	).model_dump(by_alias=True, mode="json", exclude=exclude)


def account_brief(account: Account) -> Dict[str, Any]:
	return {
		"id": account.id,
		"firstName": account.first_name,
		"lastName": account.last_name,
		"email": account.email,
		"avatar": account.avatar,
	}


def ok(data: Optional[Dict[str, Any]] = None, message: Optional[str] = None) -> Dict[str, Any]:
	body: Dict[str, Any] = {"status": "success"}
	if message:
		body["message"] = message
	if data is not None:
		body["data"] = data
	return body
