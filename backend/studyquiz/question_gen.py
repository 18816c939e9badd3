from __future__ import annotations
import time
from typing import Any, Dict, List

from .parsing import StructuredResponseError, extract_json_array


class QuestionParseError(ValueError):
	pass


_MCQ_SHAPE = """{
  "id": "unique_id",
  "question": "Question text",
  "options": ["A", "B", "C", "D"],
  "correctAnswer": "A",
  "explanation": "Explanation of the correct answer"
}"""

_CODING_SHAPE = """{
  "id": "unique_id",
  "question": "Coding problem description",
  "language": "python or c",
  "starterCode": "// Starter code here",
  "testCases": [
    {"input": "test_input", "output": "expected_output"}
  ],
  "correctAnswer": "Complete solution code",
  "explanation": "Explanation of the solution"
}"""

_SQL_SHAPE = """{
  "id": "unique_id",
  "question": "SQL problem description with table schema",
  "correctAnswer": "SELECT statement",
  "explanation": "Explanation of the SQL query"
}"""

_NETWORK_SHAPE = """{
  "id": "unique_id",
  "question": "Network design problem",
  "correctAnswer": "Network configuration or design",
  "explanation": "Explanation of the network design"
}"""

SHAPES: Dict[str, str] = {
	"MCQ": _MCQ_SHAPE,
	"coding": _CODING_SHAPE,
	"sql": _SQL_SHAPE,
	"network": _NETWORK_SHAPE,
}


def build_generation_prompt(subject: str, topic: str, question_type: str, difficulty: str, count: int) -> str:
	base = f'Generate {count} {difficulty} level {question_type} questions for the subject "{subject}" on the topic "{topic}".'
	shape = SHAPES.get(question_type)
	if shape is None:
		return base
	return (
		f"{base}\n\n"
		f"Format each question as:\n{shape}\n\n"
		"Return only a valid JSON array of these objects, with no commentary."
	)


def _is_question_list(value: List[Any]) -> bool:
	return bool(value) and all(isinstance(item, dict) for item in value)


def parse_generated_questions(text: str, question_type: str) -> List[Dict[str, Any]]:
	try:
		items = extract_json_array(text, accept=_is_question_list)
	except StructuredResponseError as err:
		raise QuestionParseError("Failed to parse generated questions") from err

	stamp = int(time.time() * 1000)
	questions: List[Dict[str, Any]] = []
	for index, item in enumerate(items):
		question_text = item.get("question")
		if not isinstance(question_text, str) or not question_text.strip():
			raise QuestionParseError(f"Generated question {index + 1} has no question text")
		questions.append({
			"id": str(item.get("id") or f"q_{stamp}_{index}"),
			"question": question_text.strip(),
			"options": item.get("options") or [],
			"correctAnswer": item.get("correctAnswer"),
			"explanation": item.get("explanation") or "",
			"language": item.get("language") or "python",
			"starterCode": item.get("starterCode") or "",
			"testCases": item.get("testCases") or [],
			"type": question_type,
		})
	return questions
