from pathlib import Path

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from app.api.deps import get_study_session
from app.core.logging_config import get_logger
from app.schemas.study import (
    ChatRequest,
    ChatResponse,
    ExtractedTextResponse,
    QuizGenerateRequest,
    QuizGradeRequest,
    QuizGradeResponse,
    QuizSet,
    SessionResponse,
    SummaryResponse,
)
from app.services import study_pipeline
from app.services.file_processor import (
    MAX_FILE_SIZE,
    SUPPORTED_EXTENSIONS,
    SUPPORTED_MIME_TYPES,
    UploadedDocument,
    get_supported_formats,
)
from app.services.quiz_parser import grade_quiz
from app.services.session_store import StudySession, session_store

logger = get_logger(__name__)

router = APIRouter(prefix="/study", tags=["Study Tools"])


# ============================================
# Helper Functions
# ============================================


async def read_upload(file: UploadFile) -> bytes:
    """Read an upload after checking its type; enforce the per-file size cap."""
    filename = file.filename or "unknown"
    ext = Path(filename).suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS or file.content_type not in SUPPORTED_MIME_TYPES:
        logger.warning(f"Rejected upload | file={filename} | content_type={file.content_type}")
        raise HTTPException(
            status_code=400,
            detail="Invalid file type. Only PDF, DOCX, PPTX, and TXT files are allowed.",
        )

    try:
        content = await file.read()
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Failed to read file: {str(e)}")

    if len(content) > MAX_FILE_SIZE:
        raise HTTPException(
            status_code=413,
            detail=f"File size exceeds maximum allowed size of {MAX_FILE_SIZE // (1024*1024)} MB",
        )
    return content


async def store_uploads(files: list[UploadFile]) -> list[UploadedDocument]:
    """Validate every upload first, then write them all to the upload directory."""
    contents = [(f, await read_upload(f)) for f in files]

    documents: list[UploadedDocument] = []
    try:
        for file, content in contents:
            documents.append(
                study_pipeline.store_upload(file.filename or "unknown", file.content_type, content)
            )
    except OSError as e:
        for document in documents:
            study_pipeline.discard_upload(document)
        logger.error(f"Failed to store uploads: {e}")
        raise HTTPException(status_code=500, detail="Failed to store uploaded file")
    return documents


# ============================================
# Upload / Summarize
# ============================================


@router.get("/upload/formats")
def get_upload_formats():
    """Get information about supported file upload formats."""
    return get_supported_formats()


@router.post("/upload/extract-text", response_model=ExtractedTextResponse)
async def extract_text_from_upload(file: UploadFile = File(...)):
    """Extract text from an uploaded file without generating study material."""
    [document] = await store_uploads([file])
    text = await study_pipeline.extract_document(document)
    return ExtractedTextResponse(
        filename=document.original_name,
        text=text,
        character_count=len(text),
        word_count=len(text.split()),
    )


@router.post("/summarize", response_model=SummaryResponse)
async def summarize_upload(
    files: list[UploadFile] = File(...),
    session: StudySession = Depends(get_study_session),
):
    """
    Summarize one or more uploaded files.

    Supports: PDF, DOCX, PPTX and TXT. Maximum file size: 10 MB each.
    The summary becomes the session's notes for chat and quiz.
    """
    if not files:
        raise HTTPException(status_code=400, detail="No file uploaded. Please upload a file.")

    documents = await store_uploads(files)
    logger.info(f"Files uploaded: {', '.join(d.original_name for d in documents)}")
    return await study_pipeline.summarize_documents(documents, session)


# ============================================
# Chat / Quiz
# ============================================


@router.post("/chat", response_model=ChatResponse)
async def chat_about_notes(
    request: ChatRequest,
    session: StudySession = Depends(get_study_session),
):
    """Answer a question grounded in the current notes."""
    return await study_pipeline.chat(session, request.question, request.note_text)


@router.post("/quiz/generate", response_model=QuizSet)
async def generate_quiz_endpoint(
    request: QuizGenerateRequest | None = None,
    session: StudySession = Depends(get_study_session),
):
    """Generate a multiple choice quiz from the current notes."""
    note_text = request.note_text if request else None
    return await study_pipeline.quiz(session, note_text)


@router.post("/quiz/grade", response_model=QuizGradeResponse)
def grade_quiz_endpoint(request: QuizGradeRequest):
    """Score a completed quiz."""
    return grade_quiz(request.questions, request.answers)


# ============================================
# Session
# ============================================


@router.get("/session", response_model=SessionResponse)
def get_session(session: StudySession = Depends(get_study_session)):
    return SessionResponse(
        session_id=session.session_id,
        has_notes=session.has_note,
        note_length=len(session.working_note),
    )


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
def end_session(session: StudySession = Depends(get_study_session)):
    """Forget the session and its notes."""
    session_store.end(session.session_id)
