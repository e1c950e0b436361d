"""
File processor service for extracting text from uploaded study documents.
Supports: PDF, Word (.docx), PowerPoint (.pptx) and plain text.
"""

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from app.core.config import settings
from app.core.exceptions import EmptyContent, ExtractionFailed, UnsupportedFormat
from app.core.logging_config import get_logger

# Document processing
import PyPDF2
from docx import Document as WordDocument
from pptx import Presentation

# Constants
MAX_FILE_SIZE = settings.max_upload_size_mb * 1024 * 1024
SUPPORTED_EXTENSIONS = {'.pdf', '.docx', '.pptx', '.txt'}
SUPPORTED_MIME_TYPES = {
    'application/pdf',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'application/vnd.openxmlformats-officedocument.presentationml.presentation',
    'text/plain',
}

logger = get_logger(__name__)


@dataclass(frozen=True)
class UploadedDocument:
    """A file saved by the upload handler, readable for one request only."""
    original_name: str
    storage_path: Path
    mime_type: str
    size_bytes: int

    @property
    def extension(self) -> str:
        return Path(self.original_name).suffix.lower()


def extract_text_from_pdf(file_content: bytes) -> str:
    """Extract text from PDF file."""
    pdf_reader = PyPDF2.PdfReader(io.BytesIO(file_content))
    text_parts = []
    logger.debug(f"Processing PDF with {len(pdf_reader.pages)} pages")
    for page in pdf_reader.pages:
        text = page.extract_text()
        if text:
            text_parts.append(text)
    logger.debug(f"Extracted text from {len(text_parts)} pages")
    return "\n\n".join(text_parts)


def extract_text_from_docx(file_content: bytes) -> str:
    """Extract text from Word document (.docx)."""
    doc = WordDocument(io.BytesIO(file_content))
    text_parts = [p.text for p in doc.paragraphs if p.text.strip()]
    # Also extract from tables
    for table in doc.tables:
        for row in table.rows:
            row_text = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if row_text:
                text_parts.append(" | ".join(row_text))
    return "\n\n".join(text_parts)


def extract_text_from_pptx(file_content: bytes) -> str:
    """Extract text from PowerPoint presentation (.pptx)."""
    prs = Presentation(io.BytesIO(file_content))
    text_parts = []
    for slide_num, slide in enumerate(prs.slides, 1):
        slide_text = [f"--- Slide {slide_num} ---"]
        for shape in slide.shapes:
            if getattr(shape, "has_text_frame", False) and shape.text_frame.text.strip():
                slide_text.append(shape.text_frame.text)
        if len(slide_text) > 1:  # More than just the slide header
            text_parts.append("\n".join(slide_text))
    return "\n\n".join(text_parts)


def extract_text_from_text_file(file_content: bytes) -> str:
    """Read a plain text file as UTF-8."""
    return file_content.decode("utf-8-sig")


EXTRACTORS: dict[str, Callable[[bytes], str]] = {
    '.pdf': extract_text_from_pdf,
    '.docx': extract_text_from_docx,
    '.pptx': extract_text_from_pptx,
    '.txt': extract_text_from_text_file,
}


def extract_text(document: UploadedDocument) -> str:
    """
    Extract the plain text of an uploaded document.

    The caller owns the file at ``document.storage_path`` and must delete it
    afterwards, whatever the outcome.

    Raises:
        UnsupportedFormat: extension is not in the allow-list
        ExtractionFailed: the file could not be read or parsed
        EmptyContent: the document holds no text
    """
    ext = document.extension
    if ext not in SUPPORTED_EXTENSIONS:
        logger.warning(f"Unsupported file type: {ext} for file {document.original_name}")
        raise UnsupportedFormat(ext, SUPPORTED_EXTENSIONS)

    extractor = EXTRACTORS[ext]
    file_format = ext.lstrip('.')
    logger.info(f"Extracting text | file={document.original_name} | format={file_format} | size={document.size_bytes}")

    try:
        file_content = Path(document.storage_path).read_bytes()
        text = extractor(file_content)
    except Exception as e:
        logger.error(f"{file_format.upper()} extraction failed | file={document.original_name} | error={str(e)}")
        raise ExtractionFailed(file_format, str(e) or type(e).__name__) from e

    if not text or not text.strip():
        logger.warning(f"No text extracted from {document.original_name}")
        raise EmptyContent(document.original_name)

    logger.debug(f"Extracted {len(text)} chars from {document.original_name}")
    return text


def get_supported_formats() -> dict:
    """Return information about supported file formats."""
    return {
        "documents": [".pdf", ".docx", ".txt"],
        "presentations": [".pptx"],
        "mime_types": sorted(SUPPORTED_MIME_TYPES),
        "max_file_size_mb": MAX_FILE_SIZE // (1024 * 1024),
    }
