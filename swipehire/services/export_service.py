from __future__ import annotations

import html
import logging
import re
import time
from dataclasses import dataclass
from io import BytesIO

from docx import Document
from docx.shared import Pt, RGBColor
from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("pdf", "docx", "txt", "md")
AVAILABLE_TEMPLATES = ("modern", "classic", "creative")
MAX_FILE_SIZE_LABEL = "10MB"

MEDIA_TYPES = {
    "pdf": "application/pdf",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "txt": "text/plain; charset=utf-8",
    "md": "text/markdown; charset=utf-8",
}

# font, body size, heading hex colour
_TEMPLATE_STYLES: dict[str, tuple[str, int, str]] = {
    "modern": ("Helvetica", 10, "1F4E79"),
    "classic": ("Times-Roman", 11, "000000"),
    "creative": ("Helvetica", 10, "6B2FA0"),
}
_DOCX_FONTS = {"Helvetica": "Calibri", "Times-Roman": "Times New Roman"}

_HEADING_WORDS = {
    "summary",
    "professional summary",
    "profile",
    "objective",
    "experience",
    "work experience",
    "professional experience",
    "education",
    "skills",
    "technical skills",
    "projects",
    "certifications",
    "achievements",
    "awards",
    "publications",
    "languages",
    "volunteer",
}

_BRACKET_NOTE = re.compile(r"\[.*?\]")
_EXTRA_BREAKS = re.compile(r"\n\s*\n\s*\n")
_SAFE_NAME = re.compile(r"[^A-Za-z0-9._-]+")


class ExportError(ValueError):
    def __init__(self, message: str, *, code: str = "EXPORT_ERROR"):
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class ExportedFile:
    content: bytes
    media_type: str
    file_name: str


def clean_resume_text(text: str) -> str:
    cleaned = _BRACKET_NOTE.sub("", text or "")
    cleaned = _EXTRA_BREAKS.sub("\n\n", cleaned)
    return cleaned.strip()


def _is_heading(line: str) -> bool:
    stripped = line.strip().rstrip(":")
    if not stripped or len(stripped) > 40:
        return False
    if stripped.lower() in _HEADING_WORDS:
        return True
    letters = [ch for ch in stripped if ch.isalpha()]
    return len(letters) >= 4 and all(ch.isupper() for ch in letters)


def _is_bullet(line: str) -> bool:
    return line.lstrip().startswith(("-", "*", "•"))


def _bullet_text(line: str) -> str:
    return line.lstrip().lstrip("-*•").strip()


def _safe_file_name(file_name: str | None, extension: str) -> str:
    base = _SAFE_NAME.sub("_", (file_name or "resume_optimized").strip()).strip("._") or "resume_optimized"
    return f"{base[:80]}_{int(time.time() * 1000)}.{extension}"


def _to_markdown(text: str) -> str:
    lines: list[str] = []
    for line in text.splitlines():
        if _is_heading(line):
            lines.append(f"## {line.strip().rstrip(':').title()}")
        elif _is_bullet(line):
            lines.append(f"- {_bullet_text(line)}")
        else:
            lines.append(line.rstrip())
    return "\n".join(lines).strip() + "\n"


def _to_docx(text: str, template: str) -> bytes:
    font_name, body_size, heading_hex = _TEMPLATE_STYLES[template]
    document = Document()
    normal = document.styles["Normal"]
    normal.font.name = _DOCX_FONTS.get(font_name, "Calibri")
    normal.font.size = Pt(body_size + 1)

    for line in text.splitlines():
        if not line.strip():
            continue
        if _is_heading(line):
            paragraph = document.add_paragraph()
            run = paragraph.add_run(line.strip().rstrip(":").upper())
            run.bold = True
            run.font.size = Pt(body_size + 3)
            run.font.color.rgb = RGBColor.from_string(heading_hex)
        elif _is_bullet(line):
            document.add_paragraph(_bullet_text(line), style="List Bullet")
        else:
            document.add_paragraph(line.strip())

    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def _to_pdf(text: str, template: str) -> bytes:
    font_name, body_size, heading_hex = _TEMPLATE_STYLES[template]
    bold_font = "Times-Bold" if font_name == "Times-Roman" else "Helvetica-Bold"
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        topMargin=0.8 * inch,
        bottomMargin=0.8 * inch,
        leftMargin=0.9 * inch,
        rightMargin=0.9 * inch,
    )
    styles = getSampleStyleSheet()
    body_style = ParagraphStyle(
        "ResumeBody",
        parent=styles["Normal"],
        fontName=font_name,
        fontSize=body_size,
        leading=body_size + 4,
        alignment=TA_LEFT,
        spaceAfter=4,
    )
    bullet_style = ParagraphStyle("ResumeBullet", parent=body_style, leftIndent=14, bulletIndent=4)
    heading_style = ParagraphStyle(
        "ResumeHeading",
        parent=body_style,
        fontName=bold_font,
        fontSize=body_size + 3,
        leading=body_size + 8,
        textColor=colors.HexColor(f"#{heading_hex}"),
        spaceBefore=8,
    )

    story = []
    for line in text.splitlines():
        if not line.strip():
            story.append(Spacer(1, 6))
            continue
        if _is_heading(line):
            story.append(Paragraph(html.escape(line.strip().rstrip(":").upper()), heading_style))
        elif _is_bullet(line):
            story.append(Paragraph(html.escape(_bullet_text(line)), bullet_style, bulletText="•"))
        else:
            story.append(Paragraph(html.escape(line.strip()), body_style))
    if not story:
        story.append(Spacer(1, 12))

    doc.build(story)
    return buffer.getvalue()


def export_resume(resume_text: str, export_format: str = "pdf", *, template: str | None = None, file_name: str | None = None) -> ExportedFile:
    if not (resume_text or "").strip():
        raise ExportError("Resume text is required for export", code="MISSING_TEXT")
    export_format = (export_format or "pdf").lower()
    if export_format not in SUPPORTED_FORMATS:
        raise ExportError(
            f"Unsupported format. Supported formats: {', '.join(SUPPORTED_FORMATS)}",
            code="UNSUPPORTED_FORMAT",
        )
    template = (template or "modern").lower()
    if template not in _TEMPLATE_STYLES:
        raise ExportError(
            f"Unknown template. Available templates: {', '.join(AVAILABLE_TEMPLATES)}",
            code="UNKNOWN_TEMPLATE",
        )

    started = time.perf_counter()
    text = clean_resume_text(resume_text)
    if export_format == "txt":
        content = (text + "\n").encode("utf-8")
    elif export_format == "md":
        content = _to_markdown(text).encode("utf-8")
    elif export_format == "docx":
        content = _to_docx(text, template)
    else:
        content = _to_pdf(text, template)

    logger.info(
        "resume_exported format=%s template=%s bytes=%s duration_ms=%s",
        export_format,
        template,
        len(content),
        int((time.perf_counter() - started) * 1000),
    )
    return ExportedFile(
        content=content,
        media_type=MEDIA_TYPES[export_format],
        file_name=_safe_file_name(file_name, export_format),
    )
