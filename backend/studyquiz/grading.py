from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from .db import utcnow
from .errors import UpstreamError
from .gemini_client import TextGenerator
from .models import Account
from .parsing import StructuredResponseError, extract_json_object

logger = logging.getLogger(__name__)

POINTS_PER_CORRECT = 10


@dataclass
class GradeResult:
	is_correct: bool
	feedback: str
	explanation: str = ""


def _evaluation_prompt(kind: str, question: Optional[str], answer: str, correct_answer: Optional[str]) -> str:
	return (
		f"Evaluate the following {kind} answer:\n\n"
		f"Question: {question or ''}\n"
		f"User's Answer: {answer}\n"
		f"Correct Answer: {correct_answer or ''}\n\n"
		"Decide whether the user's answer is correct (it does not have to match the reference "
		"answer character for character) and provide:\n"
		"1. Is the answer correct? (true/false)\n"
		"2. Feedback for the user\n"
		"3. Explanation of the solution\n\n"
		"Format your response as JSON:\n"
		'{\n  "isCorrect": true/false,\n  "feedback": "Your feedback here",\n  "explanation": "Detailed explanation here"\n}'
	)


def parse_evaluation(text: str) -> GradeResult:
	try:
		data: Dict[str, Any] = extract_json_object(text)
	except StructuredResponseError:
		logger.warning("could not parse answer evaluation from model output")
		return GradeResult(False, "Unable to evaluate answer", "Evaluation failed")
	feedback = data.get("feedback")
	explanation = data.get("explanation")
	return GradeResult(
		is_correct=data.get("isCorrect") is True,
		feedback=feedback if isinstance(feedback, str) and feedback else "No feedback provided",
		explanation=explanation if isinstance(explanation, str) and explanation else "No explanation provided",
	)


async def grade_answer(
	question_type: str,
	answer: str,
	correct_answer: Optional[str],
	question: Optional[str] = None,
	llm: Optional[TextGenerator] = None,
) -> GradeResult:
	if question_type == "MCQ":
		is_correct = answer == correct_answer
		return GradeResult(is_correct, "Correct!" if is_correct else "Incorrect.")
	if question_type in ("coding", "sql"):
		if llm is None:
			raise UpstreamError("Answer evaluation is not configured")
		kind = "coding" if question_type == "coding" else "SQL"
		raw = await llm.generate(_evaluation_prompt(kind, question, answer, correct_answer))
		return parse_evaluation(raw)
	return GradeResult(False, "Answer validation not implemented for this question type.")


def record_answer(account: Account, is_correct: bool, now: Optional[datetime] = None) -> Account:
	"""Apply one graded answer to the account's progress counters.

	Streaks count UTC calendar days: same day keeps the streak, the next day extends it,
	anything later (or no previous activity) starts over at 1. The caller commits.
	"""
	now = now or utcnow()
	account.total_questions = (account.total_questions or 0) + 1
	if is_correct:
		account.correct_answers = (account.correct_answers or 0) + 1
		account.points = (account.points or 0) + POINTS_PER_CORRECT

	last = account.last_active_date
	if last is None:
		account.streak_days = 1
	else:
		gap = (now.date() - last.date()).days
		if gap == 1:
			account.streak_days = (account.streak_days or 0) + 1
		elif gap != 0:
			account.streak_days = 1
	account.last_active_date = now
	return account


def account_stats(account: Account) -> Dict[str, Any]:
	return {
		"totalQuestions": account.total_questions or 0,
		"correctAnswers": account.correct_answers or 0,
		"accuracy": account.accuracy_percentage,
		"streakDays": account.streak_days or 0,
		"points": account.points or 0,
		"lastActive": account.last_active_date.isoformat() if account.last_active_date else None,
	}
