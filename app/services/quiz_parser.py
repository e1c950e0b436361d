"""
Turns a model's quiz reply into a validated QuizSet, and scores submissions.

The reply is untrusted text: it is parsed as JSON and validated question by
question. Any defect rejects the whole quiz.
"""

import json
import re

from pydantic import ValidationError

from app.core.exceptions import IncompleteQuizSubmission, InvalidQuizSchema, QuizParseError
from app.core.logging_config import get_logger
from app.schemas.study import QuestionResult, QuizGradeResponse, QuizQuestion, QuizSet

logger = get_logger(__name__)


def strip_json_fences(text: str) -> str:
    """Strip markdown code fences (```json ... ```) from AI responses."""
    stripped = re.sub(r"^```(?:json)?\s*\n?", "", text.strip(), flags=re.IGNORECASE)
    stripped = re.sub(r"\n?```\s*$", "", stripped)
    return stripped.strip()


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}" if location else first["msg"]


def parse_quiz(raw_response: str) -> QuizSet:
    """
    Parse and validate a quiz reply.

    Raises:
        QuizParseError: the reply is not valid JSON
        InvalidQuizSchema: the JSON does not describe a complete quiz
    """
    cleaned = strip_json_fences(raw_response)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"Quiz JSON parse failed | error={e} | snippet={cleaned[:80]!r}")
        raise QuizParseError(raw_response) from e

    if not isinstance(data, dict):
        raise InvalidQuizSchema(f"expected a JSON object, got {type(data).__name__}")
    if "questions" not in data:
        raise InvalidQuizSchema("missing 'questions' field")
    if not isinstance(data["questions"], list):
        raise InvalidQuizSchema("'questions' must be a list")

    try:
        quiz = QuizSet.model_validate({"questions": data["questions"]})
    except ValidationError as e:
        logger.warning(f"Quiz schema validation failed | errors={e.error_count()}")
        raise InvalidQuizSchema(_describe(e)) from e

    logger.debug(f"Parsed quiz with {len(quiz)} questions")
    return quiz


def grade_message(percentage: int) -> str:
    if percentage >= 80:
        return "Excellent work!"
    if percentage >= 60:
        return "Good job!"
    return "Keep studying!"


def grade_quiz(questions: list[QuizQuestion], answers: list[int | None]) -> QuizGradeResponse:
    """Score one selected option index per question."""
    if not questions:
        raise IncompleteQuizSubmission("There are no questions to grade.")
    if len(answers) != len(questions) or any(a is None for a in answers):
        raise IncompleteQuizSubmission()

    results = [
        QuestionResult(
            index=i,
            selected=selected,
            correct_answer=q.correct_answer,
            is_correct=selected == q.correct_answer,
        )
        for i, (q, selected) in enumerate(zip(questions, answers))
    ]
    score = sum(r.is_correct for r in results)
    total = len(questions)
    percentage = round(score / total * 100)

    return QuizGradeResponse(
        score=score,
        total=total,
        percentage=percentage,
        message=grade_message(percentage),
        results=results,
    )
