from __future__ import annotations
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_context, get_db
from ..errors import UpstreamError
from ..grading import account_stats, grade_answer, record_answer
from ..models import Account
from ..question_gen import QuestionParseError, build_generation_prompt, parse_generated_questions
from ..schemas import GenerateRequest, ValidateAnswerRequest, ok
from .auth import get_current_account

router = APIRouter(prefix="/api/questions", tags=["questions"])
logger = logging.getLogger(__name__)


@router.post("/generate")
async def generate(req: GenerateRequest, account: Account = Depends(get_current_account), ctx=Depends(get_context)):
	if ctx.llm is None:
		raise UpstreamError("Failed to generate questions. Please try again.", detail="GEMINI_API_KEY is not configured")
	prompt = build_generation_prompt(req.subject, req.topic, req.question_type, req.difficulty, req.count)
	try:
		text = await ctx.llm.generate(prompt)
	except UpstreamError as err:
		raise UpstreamError("Failed to generate questions. Please try again.", detail=err.detail or err.message) from err
	try:
		questions = parse_generated_questions(text, req.question_type)
	except QuestionParseError as err:
		raise UpstreamError("Failed to generate questions. Please try again.", detail=str(err)) from err
	logger.info("generated %d %s questions for account %s", len(questions), req.question_type, account.id)
	return ok({
		"questions": questions,
		"metadata": {
			"subject": req.subject,
			"topic": req.topic,
			"questionType": req.question_type,
			"difficulty": req.difficulty,
			"count": len(questions),
			"generatedAt": datetime.now(timezone.utc).isoformat(),
			"userId": account.id,
		},
	}, "Questions generated successfully")


@router.post("/validate-answer")
async def validate_answer(
	req: ValidateAnswerRequest,
	account: Account = Depends(get_current_account),
	db: Session = Depends(get_db),
	ctx=Depends(get_context),
):
	try:
		result = await grade_answer(req.question_type, req.answer, req.correct_answer, req.question, ctx.llm)
	except UpstreamError as err:
		raise UpstreamError("Failed to validate answer", detail=err.detail or err.message) from err
	record_answer(account, result.is_correct)
	db.commit()
	db.refresh(account)
	return ok({
		"isCorrect": result.is_correct,
		"feedback": result.feedback,
		"explanation": result.explanation,
		"userStats": account_stats(account),
	})
