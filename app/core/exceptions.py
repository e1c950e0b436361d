"""
Error taxonomy for the study pipeline.

Every failure a core operation can report is one of these classes. Each
carries the HTTP status and the user-facing message the API returns for it.
"""


class StudyAssistantError(Exception):
    """Base class for all recoverable study pipeline failures."""

    status_code: int = 500
    default_message: str = "An error occurred while processing your request"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return type(self).__name__


# ============================================
# Extraction
# ============================================


class ExtractionError(StudyAssistantError):
    """Raised when text cannot be extracted from an uploaded document."""

    status_code = 422


class UnsupportedFormat(ExtractionError):
    status_code = 415

    def __init__(self, extension: str, allowed: set[str] | None = None):
        self.extension = extension
        message = f"Unsupported file type: {extension or '(none)'}."
        if allowed:
            message += f" Supported: {', '.join(sorted(allowed))}"
        super().__init__(message)


class ExtractionFailed(ExtractionError):
    def __init__(self, file_format: str, reason: str):
        self.file_format = file_format
        self.reason = reason
        super().__init__(f"Failed to extract text from {file_format.upper()} file: {reason}")


class EmptyContent(ExtractionError):
    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(
            f"Could not extract text from {filename}. File may be empty or corrupted."
        )


# ============================================
# Session / request preconditions
# ============================================


class NoContextAvailable(StudyAssistantError):
    status_code = 409
    default_message = "No notes available yet. Please generate a summary first."


class EmptyQuestion(StudyAssistantError):
    status_code = 400
    default_message = "Please enter a question about your notes."


class IncompleteQuizSubmission(StudyAssistantError):
    status_code = 400
    default_message = "Please answer all questions before submitting."


# ============================================
# AI provider
# ============================================


class AIError(StudyAssistantError):
    """Raised when the AI provider call fails or returns nothing usable."""

    status_code = 502

    def __init__(self, stage: str, cause: Exception | str):
        self.stage = stage
        self.cause = cause
        super().__init__(f"AI service failed during {stage}: {cause}")


class QuizError(StudyAssistantError):
    """Raised when a model reply cannot be turned into a valid quiz."""

    status_code = 502


class QuizParseError(QuizError):
    SNIPPET_LENGTH = 200

    def __init__(self, raw_response: str):
        self.raw_snippet = raw_response[: self.SNIPPET_LENGTH]
        super().__init__("Failed to parse quiz response from the AI. Please try again.")


class InvalidQuizSchema(QuizError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"The AI returned a quiz in an unexpected format: {reason}")
