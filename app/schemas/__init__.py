from app.schemas.study import (
    ChatRequest,
    ChatResponse,
    QuizGenerateRequest,
    QuizGradeRequest,
    QuizGradeResponse,
    QuizQuestion,
    QuizSet,
    SummaryResponse,
)

__all__ = [
    "ChatRequest", "ChatResponse",
    "QuizGenerateRequest", "QuizGradeRequest", "QuizGradeResponse",
    "QuizQuestion", "QuizSet",
    "SummaryResponse",
]
