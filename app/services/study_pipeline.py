"""
Study pipeline: uploaded documents -> working note -> chat answers and quizzes.
"""

import asyncio
import time
import uuid
from pathlib import Path
from typing import Sequence

from app.core.config import settings
from app.core.logging_config import get_logger
from app.schemas.study import ChatResponse, QuizSet, SummaryResponse
from app.services import ai_service
from app.services.corpus import aggregate
from app.services.file_processor import UploadedDocument, extract_text
from app.services.session_store import StudySession

logger = get_logger(__name__)


def store_upload(filename: str, mime_type: str, content: bytes) -> UploadedDocument:
    """Write an upload to the transient upload directory."""
    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    # Keep only the base name; never trust client paths
    safe_name = Path(filename).name or "upload"
    path = upload_dir / f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{safe_name}"
    path.write_bytes(content)
    return UploadedDocument(
        original_name=safe_name,
        storage_path=path,
        mime_type=mime_type,
        size_bytes=len(content),
    )


def discard_upload(document: UploadedDocument) -> None:
    try:
        Path(document.storage_path).unlink(missing_ok=True)
        logger.debug(f"Temporary file deleted: {document.storage_path}")
    except OSError as e:
        logger.error(f"Error deleting temporary file {document.storage_path}: {e}")


async def extract_document(document: UploadedDocument) -> str:
    """Extract one document off the event loop, then delete its file."""
    try:
        return await asyncio.to_thread(extract_text, document)
    finally:
        discard_upload(document)


async def extract_documents(documents: Sequence[UploadedDocument]) -> list[tuple[str, str]]:
    """
    Extract every document in upload order.

    Each temporary file is deleted once it has been read. If one document
    fails, the files not yet reached are deleted before the error propagates.
    """
    texts = []
    try:
        for document in documents:
            texts.append((document.original_name, await extract_document(document)))
    finally:
        for document in documents[len(texts):]:
            discard_upload(document)
    return texts


async def summarize_documents(
    documents: Sequence[UploadedDocument],
    session: StudySession,
) -> SummaryResponse:
    """Extract, aggregate and summarize; the summary becomes the working note."""
    texts = await extract_documents(documents)
    corpus = aggregate(texts)
    logger.info(f"Corpus built | documents={len(texts)} | length={len(corpus)}")

    summary = await ai_service.summarize_notes(corpus)
    session.set_note(summary)

    return SummaryResponse(
        filenames=[name for name, _ in texts],
        summary=summary,
        original_length=len(corpus),
        summary_length=len(summary),
    )


def _resolve_note(session: StudySession, note_override: str | None) -> str:
    if note_override and note_override.strip():
        session.touch()
        return note_override
    return session.require_note()


async def chat(session: StudySession, question: str, note_override: str | None = None) -> ChatResponse:
    answer = await ai_service.answer_question(_resolve_note(session, note_override), question)
    return ChatResponse(question=question.strip(), answer=answer)


async def quiz(session: StudySession, note_override: str | None = None) -> QuizSet:
    return await ai_service.generate_quiz(_resolve_note(session, note_override))
