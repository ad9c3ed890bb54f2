from __future__ import annotations

import codecs
import logging
from io import BytesIO
from typing import Literal

from pydantic import BaseModel, Field

from resumefit.services.analysis_llm import IMAGE_MIME_TYPES, vision_extract_text

logger = logging.getLogger(__name__)

SourceType = Literal["text", "pdf", "word", "image"]

TEXT_EXTENSIONS = {"txt", "md"}
ALLOWED_EXTENSIONS = TEXT_EXTENSIONS | {"pdf", "docx", "doc"} | set(IMAGE_MIME_TYPES)


class ExtractionError(ValueError):
    pass


class ExtractedText(BaseModel):
    filename: str
    source_type: SourceType
    text: str
    warnings: list[str] = Field(default_factory=list)


def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def _decode_text(content: bytes) -> str:
    encodings = ["utf-8", "latin-1"]
    # Without a BOM, utf-16 would accept almost any even-length byte string.
    if content.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        encodings.insert(1, "utf-16")
    for encoding in encodings:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    return content.decode("utf-8", errors="replace")


def _extract_pdf(content: bytes) -> str:
    from pypdf import PdfReader

    reader = PdfReader(BytesIO(content))
    page_chunks: list[str] = []
    for page in reader.pages:
        page_text = page.extract_text() or ""
        if page_text.strip():
            page_chunks.append(page_text)
    return "\n".join(page_chunks)


def _extract_docx(content: bytes) -> str:
    from docx import Document

    document = Document(BytesIO(content))
    return "\n".join(p.text for p in document.paragraphs if p.text and p.text.strip())


def extract_text_from_file(filename: str, content: bytes) -> ExtractedText:
    ext = file_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise ExtractionError(
            f"Unsupported file type '.{ext}'. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}."
        )
    if not content:
        raise ExtractionError("The uploaded file is empty.")

    warnings: list[str] = []
    if ext in TEXT_EXTENSIONS:
        source_type: SourceType = "text"
        text = _decode_text(content)
    elif ext == "pdf":
        source_type = "pdf"
        try:
            text = _extract_pdf(content)
        except Exception as exc:
            raise ExtractionError("Unable to extract text from this PDF file.") from exc
    elif ext == "docx":
        source_type = "word"
        try:
            text = _extract_docx(content)
        except Exception as exc:
            raise ExtractionError("Unable to extract text from this Word document.") from exc
    elif ext == "doc":
        raise ExtractionError("Legacy .doc is not supported. Convert to .docx.")
    else:
        source_type = "image"
        text = vision_extract_text(content=content, filename=filename) or ""
        if not text:
            warnings.append("Image text extraction is unavailable; paste the resume text instead.")

    text = text.strip()
    if not text and not warnings:
        warnings.append("No extractable text found in the uploaded file.")
    logger.info("resume_text_extracted ext=%s chars=%s warnings=%s", ext, len(text), len(warnings))
    return ExtractedText(filename=filename, source_type=source_type, text=text, warnings=warnings)
