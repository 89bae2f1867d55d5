from __future__ import annotations

import asyncio
import logging
import math
import re
import time
from io import BytesIO
from typing import Callable

from docx import Document
from pypdf import PdfReader
from pypdf.errors import FileNotDecryptedError, PdfReadError

from swipehire.core.config import settings
from swipehire.core.scoring import round_half_up

from .file_security import is_word_package, signature_error
from .models import FileInfo, FileValidationResult, ParsedFileMetadata, ParsedFileResult, ParsingProgress

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ParsingProgress], None]

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
DOC_MIME = "application/msword"
TEXT_MIME = "text/plain"

DOCUMENT_TYPES = {PDF_MIME: "pdf", DOCX_MIME: "docx", DOC_MIME: "doc"}
DOCUMENT_EXTENSIONS = {".pdf": "pdf", ".docx": "docx", ".doc": "doc"}

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_HORIZONTAL_SPACE_RE = re.compile(r"[ \t\u00a0]+")
_BLANK_LINES_RE = re.compile(r"\n\s*\n\s*\n+")


class FileParsingError(Exception):
    def __init__(self, message: str, code: str):
        super().__init__(message)
        self.code = code


def _extension(filename: str) -> str:
    name = (filename or "").lower()
    if "." not in name:
        return ""
    return name[name.rfind(".") :]


def _max_upload_bytes() -> int:
    return settings.max_upload_mb * 1024 * 1024


def _resolve_source_type(filename: str, content_type: str, allow_text: bool) -> str | None:
    mime = (content_type or "").split(";")[0].strip().lower()
    ext = _extension(filename)
    # pdf wins over docx, docx over doc, whichever of MIME type or extension names it
    for source_type in ("pdf", "docx", "doc"):
        if DOCUMENT_TYPES.get(mime) == source_type or DOCUMENT_EXTENSIONS.get(ext) == source_type:
            return source_type
    if allow_text and (mime == TEXT_MIME or ext == ".txt"):
        return "txt"
    return None


def validate_upload(
    filename: str,
    content_type: str,
    size: int,
    *,
    allow_text: bool = False,
) -> FileValidationResult:
    if _resolve_source_type(filename, content_type, allow_text) is None:
        allowed = "a PDF, DOC, DOCX, or TXT file" if allow_text else "a PDF, DOC, or DOCX file"
        return FileValidationResult(is_valid=False, error=f"Please upload {allowed} only.")

    max_bytes = _max_upload_bytes()
    if size > max_bytes:
        return FileValidationResult(
            is_valid=False,
            error=f"File size must be less than {settings.max_upload_mb}MB.",
        )

    if size == 0:
        return FileValidationResult(is_valid=False, error="The selected file appears to be empty.")

    return FileValidationResult(
        is_valid=True,
        file_info=FileInfo(name=filename, size=size, type=content_type or ""),
    )


def clean_extracted_text(text: str | None) -> str:
    if not text:
        return ""
    value = text.replace("\r\n", "\n").replace("\r", "\n")
    value = _CONTROL_CHARS_RE.sub("", value)
    lines = [_HORIZONTAL_SPACE_RE.sub(" ", line).strip() for line in value.split("\n")]
    value = "\n".join(lines)
    value = _BLANK_LINES_RE.sub("\n\n", value)
    return value.strip()


def count_words(text: str | None) -> int:
    if not text:
        return 0
    return len(text.split())


def format_file_size(size_bytes: int) -> str:
    if size_bytes <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    index = min(int(math.floor(math.log(size_bytes) / math.log(1024))), len(units) - 1)
    value = f"{size_bytes / (1024 ** index):.2f}".rstrip("0").rstrip(".")
    return f"{value} {units[index]}"


def file_type_label(filename: str) -> str:
    ext = _extension(filename)
    if ext == ".pdf":
        return "PDF document"
    if ext in {".docx", ".doc"}:
        return "Word document"
    if ext == ".txt":
        return "Text file"
    return "File"


def _emit(on_progress: ProgressCallback | None, stage: str, progress: int, message: str) -> None:
    if not on_progress:
        return
    on_progress(ParsingProgress(stage=stage, progress=progress, message=message))


def _page_text(page) -> str:
    text = page.extract_text() or ""
    if text.strip():
        return text
    # Layout mode recovers text from some PDFs whose content streams confuse plain mode.
    try:
        return page.extract_text(extraction_mode="layout") or ""
    except Exception as exc:  # noqa: BLE001 - plain mode already succeeded with no text
        logger.debug("pdf_layout_extract_failed: %s", exc)
        return ""


def _classify_pdf_error(exc: Exception) -> FileParsingError:
    if isinstance(exc, FileNotDecryptedError):
        return FileParsingError(
            "This PDF is password-protected. Please remove the password and try again.",
            "PDF_PASSWORD_PROTECTED",
        )
    message = str(exc).lower()
    if "password" in message or "encrypt" in message:
        return FileParsingError(
            "This PDF is password-protected. Please remove the password and try again.",
            "PDF_PASSWORD_PROTECTED",
        )
    if isinstance(exc, PdfReadError) or "invalid" in message or "corrupt" in message:
        return FileParsingError(
            "This PDF file appears to be corrupted or invalid. Please try with a different file.",
            "PDF_CORRUPTED",
        )
    if isinstance(exc, MemoryError) or "memory" in message:
        return FileParsingError(
            "This PDF file is too large or complex to process. Please try with a smaller file.",
            "PDF_TOO_LARGE",
        )
    return FileParsingError("Failed to parse PDF file.", "PDF_PARSE_ERROR")


def _parse_pdf(content: bytes, on_progress: ProgressCallback | None) -> tuple[str, int, list[str]]:
    warnings: list[str] = []
    _emit(on_progress, "extracting", 10, "Loading PDF document...")
    try:
        reader = PdfReader(BytesIO(content))
        if reader.is_encrypted and not reader.decrypt(""):
            raise FileParsingError(
                "This PDF is password-protected. Please remove the password and try again.",
                "PDF_PASSWORD_PROTECTED",
            )

        _emit(on_progress, "extracting", 30, "Parsing PDF structure...")
        num_pages = len(reader.pages)
        if num_pages == 0:
            raise FileParsingError("This PDF appears to be empty or corrupted.", "PDF_EMPTY")

        parts: list[str] = []
        for page_num in range(1, num_pages + 1):
            _emit(
                on_progress,
                "extracting",
                round_half_up(30 + (page_num / num_pages) * 60),
                f"Extracting text from page {page_num} of {num_pages}...",
            )
            try:
                page_text = _page_text(reader.pages[page_num - 1])
            except Exception as exc:  # noqa: BLE001 - one bad page must not sink the document
                logger.warning("pdf_page_extract_failed page=%s: %s", page_num, exc)
                warnings.append(f"Page {page_num} could not be extracted.")
                parts.append(f"[Page {page_num}: Text extraction failed]")
                continue
            if page_text.strip():
                parts.append(page_text)
    except FileParsingError:
        raise
    except Exception as exc:
        logger.warning("pdf_parse_failed: %s", exc)
        raise _classify_pdf_error(exc) from exc

    _emit(on_progress, "processing", 95, "Finalizing text extraction...")
    text = clean_extracted_text("\n\n".join(parts))
    if not text:
        raise FileParsingError(
            "No text content could be extracted from this PDF. It may be an image-based PDF or corrupted.",
            "PDF_NO_TEXT",
        )
    return text, num_pages, warnings


def _docx_text(content: bytes) -> str:
    document = Document(BytesIO(content))
    lines = [p.text for p in document.paragraphs if p.text and p.text.strip()]
    for table in document.tables:
        for row in table.rows:
            cells: list[str] = []
            for cell in row.cells:
                value = cell.text.strip()
                # Merged cells repeat the same text across the row.
                if value and value not in cells:
                    cells.append(value)
            if cells:
                lines.append(" | ".join(cells))
    return "\n".join(lines)


def _parse_docx(content: bytes, on_progress: ProgressCallback | None) -> str:
    _emit(on_progress, "extracting", 20, "Loading DOCX document...")
    try:
        _emit(on_progress, "extracting", 50, "Extracting text content...")
        raw = _docx_text(content)
    except Exception as exc:
        logger.warning("docx_parse_failed: %s", exc)
        raise FileParsingError(
            "Failed to parse DOCX file. The file may be corrupted.",
            "DOCX_PARSE_ERROR",
        ) from exc

    _emit(on_progress, "processing", 90, "Processing extracted text...")
    text = clean_extracted_text(raw)
    if not text:
        raise FileParsingError("No text content could be extracted from this DOCX file.", "DOCX_NO_TEXT")
    return text


def _parse_doc(content: bytes, on_progress: ProgressCallback | None) -> str:
    _emit(on_progress, "extracting", 20, "Loading DOC document...")
    if not is_word_package(content):
        raise FileParsingError(
            "Unable to parse this DOC file. Please convert it to DOCX format or PDF for better compatibility.",
            "DOC_PARSE_ERROR",
        )

    _emit(on_progress, "extracting", 50, "Attempting to extract text...")
    try:
        raw = _docx_text(content)
    except Exception as exc:
        logger.warning("doc_parse_failed: %s", exc)
        raise FileParsingError(
            "Unable to parse this DOC file. Please convert it to DOCX format or PDF for better compatibility.",
            "DOC_PARSE_ERROR",
        ) from exc

    text = clean_extracted_text(raw)
    if not text:
        raise FileParsingError(
            "No text content could be extracted from this DOC file. "
            "Please convert it to DOCX format for better compatibility.",
            "DOC_NO_TEXT",
        )
    return text


def _parse_txt(content: bytes, on_progress: ProgressCallback | None) -> str:
    _emit(on_progress, "extracting", 50, "Reading text file...")
    text = clean_extracted_text(content.decode("utf-8-sig", errors="replace"))
    if not text:
        raise FileParsingError("The selected file appears to be empty.", "TXT_NO_TEXT")
    return text


_SIGNATURE_ERROR_CODES = {
    "pdf": "PDF_CORRUPTED",
    "docx": "DOCX_PARSE_ERROR",
    "doc": "DOC_PARSE_ERROR",
    "txt": "VALIDATION_ERROR",
}


def parse_bytes(
    filename: str,
    content: bytes,
    *,
    content_type: str = "",
    on_progress: ProgressCallback | None = None,
    allow_text: bool = False,
) -> ParsedFileResult:
    validation = validate_upload(filename, content_type, len(content), allow_text=allow_text)
    if not validation.is_valid:
        raise FileParsingError(validation.error or "Invalid file", "VALIDATION_ERROR")

    started = time.perf_counter()
    _emit(on_progress, "uploading", 5, "Starting file processing...")

    source_type = _resolve_source_type(filename, content_type, allow_text)
    if source_type is None:
        raise FileParsingError("Unsupported file type. Please upload a PDF, DOC, or DOCX file.", "UNSUPPORTED_TYPE")

    mismatch = signature_error(source_type=source_type, content=content)
    if mismatch:
        raise FileParsingError(mismatch, _SIGNATURE_ERROR_CODES[source_type])

    page_count: int | None = None
    warnings: list[str] = []
    try:
        if source_type == "pdf":
            text, page_count, warnings = _parse_pdf(content, on_progress)
        elif source_type == "docx":
            text = _parse_docx(content, on_progress)
        elif source_type == "doc":
            text = _parse_doc(content, on_progress)
        else:
            text = _parse_txt(content, on_progress)
    except FileParsingError:
        raise
    except Exception as exc:
        logger.exception("file_parse_unexpected_error file=%s", filename)
        raise FileParsingError("An unexpected error occurred while parsing the file.", "UNKNOWN_ERROR") from exc

    extraction_ms = int((time.perf_counter() - started) * 1000)
    _emit(on_progress, "complete", 100, "File processing complete!")
    logger.info(
        "file_parsed type=%s pages=%s words=%s size=%s ms=%s",
        source_type,
        page_count,
        count_words(text),
        len(content),
        extraction_ms,
    )
    return ParsedFileResult(
        text=text,
        metadata=ParsedFileMetadata(
            file_name=filename,
            file_size=len(content),
            file_type=content_type or "",
            source_type=source_type,
            page_count=page_count,
            word_count=count_words(text),
            character_count=len(text),
            extraction_time_ms=extraction_ms,
            warnings=warnings,
        ),
    )


async def parse_file(
    filename: str,
    content: bytes,
    *,
    content_type: str = "",
    on_progress: ProgressCallback | None = None,
    timeout: float | None = None,
    allow_text: bool = False,
) -> ParsedFileResult:
    """Parse in a worker thread, raising TIMEOUT_ERROR when the parser runs past the deadline.

    The worker thread is not interrupted on timeout; its result is discarded.
    """
    limit = settings.parse_timeout_s if timeout is None else timeout
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(
                parse_bytes,
                filename,
                content,
                content_type=content_type,
                on_progress=on_progress,
                allow_text=allow_text,
            ),
            timeout=limit,
        )
    except asyncio.TimeoutError as exc:
        logger.warning("file_parse_timeout file=%s timeout_s=%s", filename, limit)
        raise FileParsingError("File parsing timed out. Please try with a smaller file.", "TIMEOUT_ERROR") from exc
