import asyncio
import unittest
from io import BytesIO
from unittest.mock import patch

import _env  # noqa: F401

from docx import Document  # noqa: E402
from pypdf import PdfReader, PdfWriter  # noqa: E402
from reportlab.pdfgen import canvas  # noqa: E402

from swipehire.parsing import parse as parse_module  # noqa: E402
from swipehire.parsing.parse import (  # noqa: E402
    FileParsingError,
    clean_extracted_text,
    count_words,
    file_type_label,
    format_file_size,
    parse_bytes,
    parse_file,
    validate_upload,
)

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _pdf_bytes(*pages: str) -> bytes:
    buffer = BytesIO()
    pdf = canvas.Canvas(buffer)
    for text in pages:
        if text:
            pdf.drawString(72, 720, text)
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def _docx_bytes(*paragraphs: str, table: list[list[str]] | None = None) -> bytes:
    document = Document()
    for text in paragraphs:
        document.add_paragraph(text)
    if table:
        grid = document.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                grid.cell(r, c).text = value
    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


class UploadValidationTests(unittest.TestCase):
    def test_accepts_by_mime_type_or_extension(self):
        self.assertTrue(validate_upload("resume", "application/pdf", 100).is_valid)
        self.assertTrue(validate_upload("resume.docx", "application/octet-stream", 100).is_valid)
        self.assertTrue(validate_upload("resume.DOC", "", 100).is_valid)

    def test_docx_extension_wins_over_doc_mime_type(self):
        self.assertEqual(parse_module._resolve_source_type("cv.docx", "application/msword", False), "docx")
        self.assertEqual(parse_module._resolve_source_type("cv.doc", DOCX_MIME, False), "docx")

    def test_rejects_unsupported_types(self):
        result = validate_upload("resume.png", "image/png", 100)
        self.assertFalse(result.is_valid)
        self.assertEqual(result.error, "Please upload a PDF, DOC, or DOCX file only.")

    def test_text_files_only_when_allowed(self):
        self.assertFalse(validate_upload("notes.txt", "text/plain", 10).is_valid)
        self.assertTrue(validate_upload("notes.txt", "text/plain", 10, allow_text=True).is_valid)

    def test_size_limits(self):
        too_big = validate_upload("resume.pdf", "application/pdf", 10 * 1024 * 1024 + 1)
        self.assertFalse(too_big.is_valid)
        self.assertEqual(too_big.error, "File size must be less than 10MB.")

        empty = validate_upload("resume.pdf", "application/pdf", 0)
        self.assertFalse(empty.is_valid)
        self.assertEqual(empty.error, "The selected file appears to be empty.")

    def test_valid_result_carries_file_info(self):
        result = validate_upload("cv.pdf", "application/pdf", 2048)
        self.assertEqual(result.file_info.name, "cv.pdf")
        self.assertEqual(result.file_info.size, 2048)


class TextUtilityTests(unittest.TestCase):
    def test_format_file_size(self):
        self.assertEqual(format_file_size(0), "0 Bytes")
        self.assertEqual(format_file_size(512), "512 Bytes")
        self.assertEqual(format_file_size(1536), "1.5 KB")
        self.assertEqual(format_file_size(1024 * 1024), "1 MB")

    def test_count_words(self):
        self.assertEqual(count_words(""), 0)
        self.assertEqual(count_words("  Senior   Python\nengineer "), 3)

    def test_clean_extracted_text(self):
        raw = "Name\x00\r\n\tJane   Doe\n\n\n\n\nSkills"
        self.assertEqual(clean_extracted_text(raw), "Name\nJane Doe\n\nSkills")

    def test_file_type_label(self):
        self.assertEqual(file_type_label("a.pdf"), "PDF document")
        self.assertEqual(file_type_label("a.docx"), "Word document")
        self.assertEqual(file_type_label("a.txt"), "Text file")
        self.assertEqual(file_type_label("a"), "File")


class ParseBytesTests(unittest.TestCase):
    def test_parse_txt_reports_progress_and_metadata(self):
        stages = []
        result = parse_bytes(
            "resume.txt",
            b"Jane Doe\nPython developer",
            content_type="text/plain",
            on_progress=lambda progress: stages.append((progress.stage, progress.progress)),
            allow_text=True,
        )
        self.assertEqual(result.text, "Jane Doe\nPython developer")
        self.assertEqual(result.metadata.source_type, "txt")
        self.assertEqual(result.metadata.word_count, 4)
        self.assertEqual(result.metadata.character_count, len(result.text))
        self.assertEqual(stages[0], ("uploading", 5))
        self.assertEqual(stages[-1], ("complete", 100))

    def test_parse_docx_reads_paragraphs_and_tables(self):
        content = _docx_bytes("Jane Doe", "Experience", table=[["Python", "SQL"]])
        result = parse_bytes("resume.docx", content, content_type=DOCX_MIME)
        self.assertIn("Jane Doe", result.text)
        self.assertIn("Python | SQL", result.text)
        self.assertIsNone(result.metadata.page_count)

    def test_docx_without_text(self):
        with self.assertRaises(FileParsingError) as ctx:
            parse_bytes("resume.docx", _docx_bytes(), content_type=DOCX_MIME)
        self.assertEqual(ctx.exception.code, "DOCX_NO_TEXT")

    def test_signature_mismatch_is_rejected(self):
        with self.assertRaises(FileParsingError) as ctx:
            parse_bytes("resume.pdf", b"not really a pdf", content_type="application/pdf")
        self.assertEqual(ctx.exception.code, "PDF_CORRUPTED")

    def test_parse_pdf_extracts_every_page(self):
        stages = []
        result = parse_bytes(
            "resume.pdf",
            _pdf_bytes("Jane Doe Resume", "Experience Python developer"),
            content_type="application/pdf",
            on_progress=lambda progress: stages.append((progress.stage, progress.progress)),
        )
        self.assertIn("Jane Doe Resume", result.text)
        self.assertIn("Experience Python developer", result.text)
        self.assertEqual(result.metadata.source_type, "pdf")
        self.assertEqual(result.metadata.page_count, 2)
        self.assertEqual(result.metadata.warnings, [])
        self.assertIn(("extracting", 60), stages)
        self.assertIn(("extracting", 90), stages)

    def test_pdf_extension_wins_over_word_mime_type(self):
        content = _pdf_bytes("Jane Doe Resume")
        for content_type in ("application/msword", DOCX_MIME, "application/octet-stream"):
            with self.subTest(content_type=content_type):
                result = parse_bytes("resume.pdf", content, content_type=content_type)
                self.assertEqual(result.metadata.source_type, "pdf")
                self.assertIn("Jane Doe Resume", result.text)

    def test_password_protected_pdf(self):
        writer = PdfWriter()
        writer.append(PdfReader(BytesIO(_pdf_bytes("Confidential resume"))))
        writer.encrypt("secret")
        buffer = BytesIO()
        writer.write(buffer)

        with self.assertRaises(FileParsingError) as ctx:
            parse_bytes("resume.pdf", buffer.getvalue(), content_type="application/pdf")
        self.assertEqual(ctx.exception.code, "PDF_PASSWORD_PROTECTED")

    def test_pdf_without_text(self):
        with self.assertRaises(FileParsingError) as ctx:
            parse_bytes("scan.pdf", _pdf_bytes(""), content_type="application/pdf")
        self.assertEqual(ctx.exception.code, "PDF_NO_TEXT")

    def test_failed_page_is_replaced_by_placeholder(self):
        with patch.object(parse_module, "_page_text", side_effect=["Jane Doe Resume", RuntimeError("bad stream")]):
            result = parse_bytes("resume.pdf", _pdf_bytes("one", "two"), content_type="application/pdf")
        self.assertIn("Jane Doe Resume", result.text)
        self.assertIn("[Page 2: Text extraction failed]", result.text)
        self.assertEqual(result.metadata.warnings, ["Page 2 could not be extracted."])
        self.assertEqual(result.metadata.page_count, 2)

    def test_legacy_doc_that_is_not_ooxml(self):
        ole = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 64
        with self.assertRaises(FileParsingError) as ctx:
            parse_bytes("resume.doc", ole, content_type="application/msword")
        self.assertEqual(ctx.exception.code, "DOC_PARSE_ERROR")

    def test_invalid_upload_raises_validation_error(self):
        with self.assertRaises(FileParsingError) as ctx:
            parse_bytes("photo.png", b"\x89PNG", content_type="image/png")
        self.assertEqual(ctx.exception.code, "VALIDATION_ERROR")


class ParseFileTimeoutTests(unittest.TestCase):
    def test_timeout_maps_to_timeout_error(self):
        def slow_parse(*args, **kwargs):
            import time

            time.sleep(0.3)

        with patch.object(parse_module, "parse_bytes", side_effect=slow_parse):
            with self.assertRaises(FileParsingError) as ctx:
                asyncio.run(parse_file("resume.txt", b"hello", allow_text=True, timeout=0.05))
        self.assertEqual(ctx.exception.code, "TIMEOUT_ERROR")


if __name__ == "__main__":
    unittest.main()
