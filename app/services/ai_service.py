"""
AI Service for generating study material using Anthropic Claude.
"""
import time
import anthropic
from app.core.config import settings
from app.core.exceptions import AIError, EmptyQuestion, NoContextAvailable
from app.core.logging_config import get_logger
from app.schemas.study import QuizSet
from app.services.quiz_parser import parse_quiz

logger = get_logger(__name__)

# One client (and connection pool) per process, rebuilt if its settings change
_client: anthropic.AsyncAnthropic | None = None
_client_key: tuple[str, float] | None = None


def get_anthropic_client() -> anthropic.AsyncAnthropic:
    """Get configured Anthropic client."""
    global _client, _client_key
    if not settings.anthropic_api_key:
        logger.error("Anthropic API key not configured")
        raise ValueError("ANTHROPIC_API_KEY not configured")

    key = (settings.anthropic_api_key, settings.ai_timeout_seconds)
    if _client is None or _client_key != key:
        _client = anthropic.AsyncAnthropic(
            api_key=settings.anthropic_api_key,
            timeout=settings.ai_timeout_seconds,
            max_retries=0,  # single attempt per call
        )
        _client_key = key
    return _client


async def close_anthropic_client() -> None:
    """Release the shared client's connections."""
    global _client, _client_key
    if _client is not None:
        await _client.close()
        logger.debug("Anthropic client closed")
    _client, _client_key = None, None


async def generate_content(
    prompt: str,
    system_prompt: str = "You are a helpful study assistant helping students learn effectively.",
    max_tokens: int = 2000,
    temperature: float = 0.7,
) -> str:
    """
    Generate content using Anthropic Claude API.

    Args:
        prompt: The user prompt/question
        system_prompt: The system context for the AI
        max_tokens: Maximum tokens in response
        temperature: Creativity level (0-1)

    Returns:
        Generated text content
    """
    start_time = time.time()
    logger.info(f"Starting AI content generation | model={settings.claude_model} | max_tokens={max_tokens}")
    logger.debug(f"Prompt length: {len(prompt)} chars")

    try:
        client = get_anthropic_client()

        message = await client.messages.create(
            model=settings.claude_model,
            max_tokens=max_tokens,
            system=system_prompt,
            messages=[
                {"role": "user", "content": prompt}
            ],
            temperature=temperature,
        )

        duration_ms = (time.time() - start_time) * 1000
        content = "".join(block.text for block in message.content if block.type == "text")

        logger.info(
            f"AI generation completed | duration={duration_ms:.2f}ms | "
            f"input_tokens={message.usage.input_tokens} | output_tokens={message.usage.output_tokens}"
        )

        return content

    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(f"AI generation failed | duration={duration_ms:.2f}ms | error={str(e)}")
        raise


async def _invoke(stage: str, prompt: str, system_prompt: str, max_tokens: int, temperature: float) -> str:
    """Call the model once and label any failure with the pipeline stage."""
    try:
        response = await generate_content(prompt, system_prompt, max_tokens=max_tokens, temperature=temperature)
    except Exception as e:
        raise AIError(stage, e) from e
    if not response or not response.strip():
        raise AIError(stage, "empty response from model")
    return response


def build_summary_prompt(corpus: str) -> str:
    return f"""Please provide a clear, concise summary of the following study notes.
Focus on the main concepts, key points, and important details.
Format the summary with bullet points for easy reading.

Study Notes:
{corpus}

Summary:"""


def build_chat_prompt(note: str, question: str) -> str:
    return f"""Answer the student's question using ONLY the study notes below.

If the notes do not contain the answer, say "This is not found in your notes, but..."
and then give a short, general explanation.

Format the answer for readability: short paragraphs, bullet points where helpful.

Study Notes:
{note}

Question: {question}

Answer:"""


def build_quiz_prompt(note: str, num_questions: int) -> str:
    return f"""Create exactly {num_questions} multiple choice questions that test understanding of the study notes below.

Each question must have exactly 4 options and one correct answer.
"correctAnswer" is the zero-based index (0-3) of the correct option.

Return a single JSON object with this structure:
{{
  "questions": [
    {{
      "question": "Question text here?",
      "options": ["First option", "Second option", "Third option", "Fourth option"],
      "correctAnswer": 0
    }}
  ]
}}

Return ONLY the JSON object. Do not add any other text and do not wrap it in ``` code fences.

Study Notes:
{note}"""


async def summarize_notes(corpus: str) -> str:
    """
    Summarize the aggregated text of the uploaded documents.

    Returns:
        Bullet point summary, trimmed
    """
    logger.info(f"Generating summary | corpus_length={len(corpus)}")

    system_prompt = """You are a helpful study assistant. Summarize study material clearly and accurately.
Use bullet points and do not add information that is not in the notes."""

    summary = await _invoke(
        "summarize",
        build_summary_prompt(corpus),
        system_prompt,
        max_tokens=settings.summary_max_tokens,
        temperature=0.3,
    )
    return summary.strip()


async def answer_question(note: str, question: str) -> str:
    """
    Answer a question grounded in the student's notes.

    Each call stands alone; earlier questions are not replayed to the model.
    """
    if not note or not note.strip():
        raise NoContextAvailable()
    question = (question or "").strip()
    if not question:
        raise EmptyQuestion()

    logger.info(f"Answering question | question_length={len(question)} | note_length={len(note)}")

    system_prompt = """You are a friendly study tutor. Answer strictly from the student's notes.
Be clear and encouraging, and keep answers focused on the question."""

    answer = await _invoke(
        "chat",
        build_chat_prompt(note, question),
        system_prompt,
        max_tokens=settings.chat_max_tokens,
        temperature=0.5,
    )
    return answer.strip()


async def generate_quiz(note: str, num_questions: int | None = None) -> QuizSet:
    """
    Generate a multiple choice quiz from the student's notes.

    Raises:
        NoContextAvailable: no notes to quiz on
        AIError: the provider call failed
        QuizParseError / InvalidQuizSchema: the reply is not a valid quiz
    """
    if not note or not note.strip():
        raise NoContextAvailable()

    num_questions = num_questions or settings.quiz_num_questions
    logger.info(f"Generating quiz | num_questions={num_questions} | note_length={len(note)}")

    system_prompt = """You are an expert quiz creator. Create clear, educational questions that test
understanding, not just memorization. Make wrong answers plausible but clearly incorrect.
Always return valid JSON."""

    raw = await _invoke(
        "quiz",
        build_quiz_prompt(note, num_questions),
        system_prompt,
        max_tokens=settings.quiz_max_tokens,
        temperature=0.5,
    )
    quiz = parse_quiz(raw)
    if len(quiz) != num_questions:
        logger.warning(f"Quiz question count mismatch | requested={num_questions} | received={len(quiz)}")
    return quiz
