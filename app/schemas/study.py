from pydantic import BaseModel, Field, field_validator

OPTIONS_PER_QUESTION = 4


class SummaryResponse(BaseModel):
    """Summary generated from one or more uploaded files."""
    filenames: list[str]
    summary: str
    original_length: int  # characters in the aggregated corpus
    summary_length: int


class ExtractedTextResponse(BaseModel):
    """Text pulled from a single upload, without AI processing."""
    filename: str
    text: str
    character_count: int
    word_count: int


class ChatRequest(BaseModel):
    """Question about the current notes."""
    question: str
    note_text: str | None = None  # Optional explicit notes for stateless clients


class ChatResponse(BaseModel):
    """A single question/answer exchange."""
    question: str
    answer: str


class QuizGenerateRequest(BaseModel):
    """Request to generate a quiz from the current notes."""
    note_text: str | None = None


class QuizQuestion(BaseModel):
    """A single multiple choice question with exactly four options."""
    question: str = Field(min_length=1)
    options: list[str]
    correct_answer: int = Field(alias="correctAnswer", ge=0, le=OPTIONS_PER_QUESTION - 1)

    model_config = {"populate_by_name": True, "strict": True}

    @field_validator("question")
    @classmethod
    def question_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("question text is blank")
        return v.strip()

    @field_validator("options")
    @classmethod
    def four_non_blank_options(cls, v: list[str]) -> list[str]:
        if len(v) != OPTIONS_PER_QUESTION:
            raise ValueError(f"expected {OPTIONS_PER_QUESTION} options, got {len(v)}")
        if any(not option.strip() for option in v):
            raise ValueError("options must not be blank")
        return [option.strip() for option in v]


class QuizSet(BaseModel):
    """Validated quiz returned to the client."""
    questions: list[QuizQuestion] = Field(min_length=1)

    def __len__(self) -> int:
        return len(self.questions)


class QuizGradeRequest(BaseModel):
    """Answers selected by the student, one option index per question."""
    questions: list[QuizQuestion]
    answers: list[int | None]


class QuestionResult(BaseModel):
    index: int
    selected: int | None
    correct_answer: int = Field(alias="correctAnswer")
    is_correct: bool

    model_config = {"populate_by_name": True}


class QuizGradeResponse(BaseModel):
    """Score for a submitted quiz."""
    score: int
    total: int
    percentage: int
    message: str
    results: list[QuestionResult]


class SessionResponse(BaseModel):
    """State of the caller's study session."""
    session_id: str
    has_notes: bool
    note_length: int
