import asyncio
from datetime import datetime, timedelta

import pytest

from conftest import FakeLLM
from studyquiz.errors import UpstreamError
from studyquiz.grading import POINTS_PER_CORRECT, grade_answer, parse_evaluation, record_answer
from studyquiz.models import Account


def run(coro):
    return asyncio.run(coro)


def fresh_account():
    return Account(
        email="p@example.com",
        password_hash="x",
        first_name="Pat",
        last_name="Doe",
        total_questions=0,
        correct_answers=0,
        streak_days=0,
        points=0,
        last_active_date=None,
    )


class TestGradeAnswer:
    def test_mcq_exact_match(self):
        result = run(grade_answer("MCQ", "A", "A"))
        assert result.is_correct is True
        assert result.feedback == "Correct!"

    def test_mcq_mismatch(self):
        result = run(grade_answer("MCQ", "B", "A"))
        assert result.is_correct is False
        assert result.feedback == "Incorrect."

    def test_mcq_is_case_sensitive(self):
        assert run(grade_answer("MCQ", "a", "A")).is_correct is False

    def test_mcq_never_calls_llm(self):
        llm = FakeLLM()
        run(grade_answer("MCQ", "A", "A", llm=llm))
        assert llm.prompts == []

    def test_coding_delegates_to_llm(self):
        llm = FakeLLM(['{"isCorrect": true, "feedback": "Nice", "explanation": "Loops fine"}'])
        result = run(grade_answer("coding", "print(1)", "print(1)", "Print one", llm))
        assert result.is_correct is True
        assert result.feedback == "Nice"
        assert result.explanation == "Loops fine"
        assert "Print one" in llm.prompts[0]
        assert "print(1)" in llm.prompts[0]

    def test_sql_prompt_mentions_sql(self):
        llm = FakeLLM(['```json\n{"isCorrect": false, "feedback": "Missing WHERE", "explanation": "Filter rows"}\n```'])
        result = run(grade_answer("sql", "SELECT * FROM t", "SELECT * FROM t WHERE x=1", "Filter t", llm))
        assert result.is_correct is False
        assert result.feedback == "Missing WHERE"
        assert "SQL" in llm.prompts[0]

    def test_unparsable_evaluation_is_negative(self):
        llm = FakeLLM(["The answer looks right to me!"])
        result = run(grade_answer("coding", "x", "y", "q", llm))
        assert result.is_correct is False
        assert result.explanation == "Evaluation failed"

    def test_coding_without_llm_is_upstream_error(self):
        with pytest.raises(UpstreamError):
            run(grade_answer("coding", "x", "y", "q", None))

    @pytest.mark.parametrize("question_type", ["network", "chatbot", "essay"])
    def test_unsupported_types_are_incorrect(self, question_type):
        result = run(grade_answer(question_type, "anything", "anything"))
        assert result.is_correct is False
        assert "not implemented" in result.feedback


class TestParseEvaluation:
    def test_string_true_is_not_correct(self):
        assert parse_evaluation('{"isCorrect": "true"}').is_correct is False

    def test_defaults_for_missing_fields(self):
        result = parse_evaluation('{"isCorrect": true}')
        assert result.feedback == "No feedback provided"
        assert result.explanation == "No explanation provided"


class TestRecordAnswer:
    def test_counts_and_points(self):
        account = fresh_account()
        now = datetime(2026, 3, 1, 9, 0)
        outcomes = [True, False, True, True, False]
        for ok in outcomes:
            record_answer(account, ok, now)
        assert account.total_questions == 5
        assert account.correct_answers == 3
        assert account.points == 3 * POINTS_PER_CORRECT == 30

    def test_first_answer_starts_streak(self):
        account = fresh_account()
        record_answer(account, True, datetime(2026, 3, 1, 9, 0))
        assert account.streak_days == 1

    def test_same_day_keeps_streak(self):
        account = fresh_account()
        account.streak_days = 4
        account.last_active_date = datetime(2026, 3, 1, 0, 5)
        record_answer(account, False, datetime(2026, 3, 1, 23, 55))
        assert account.streak_days == 4

    def test_next_calendar_day_extends_streak(self):
        account = fresh_account()
        account.streak_days = 4
        account.last_active_date = datetime(2026, 3, 1, 23, 50)
        # Only 20 minutes later, but a new day
        record_answer(account, False, datetime(2026, 3, 2, 0, 10))
        assert account.streak_days == 5

    def test_next_day_more_than_24h_later_still_extends(self):
        account = fresh_account()
        account.streak_days = 2
        account.last_active_date = datetime(2026, 3, 1, 0, 10)
        record_answer(account, False, datetime(2026, 3, 2, 23, 50))
        assert account.streak_days == 3

    def test_gap_resets_streak(self):
        account = fresh_account()
        account.streak_days = 9
        account.last_active_date = datetime(2026, 3, 1, 12, 0)
        record_answer(account, True, datetime(2026, 3, 1, 12, 0) + timedelta(days=2))
        assert account.streak_days == 1

    def test_updates_last_active(self):
        account = fresh_account()
        now = datetime(2026, 3, 5, 8, 0)
        record_answer(account, True, now)
        assert account.last_active_date == now
