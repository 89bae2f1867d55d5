import unittest
from datetime import datetime, timedelta, timezone
from io import BytesIO
from unittest.mock import patch

import _env  # noqa: F401

from docx import Document

from swipehire.core import analysis_store
from swipehire.services.export_service import ExportError, clean_resume_text, export_resume

RESUME = """Jane Doe [add photo]

EXPERIENCE
- Built payment APIs in Python
* Reduced latency by 35%



Skills:
Python, SQL
"""


def _save(analysis_id: str, user_id: str = "user-1", score: float = 80) -> None:
    analysis_store.save_analysis(
        analysis_id=analysis_id,
        user_id=user_id,
        overall_score=score,
        ats_score=70,
        target_job_title="Backend Engineer",
        analysis_result={"id": analysis_id, "overall_score": score},
    )


class SavedAnalysisStoreTests(unittest.TestCase):
    def setUp(self):
        analysis_store.clear_saved_analyses()

    def test_save_get_and_replace(self):
        _save("analysis_1", score=60)
        _save("analysis_1", score=85)
        record = analysis_store.get_analysis("analysis_1")
        self.assertEqual(record["overall_score"], 85)
        self.assertEqual(record["analysis_result"], {"id": "analysis_1", "overall_score": 85})
        self.assertEqual(record["target_job_title"], "Backend Engineer")
        self.assertIsNone(analysis_store.get_analysis("missing"))

    def test_list_is_scoped_to_user(self):
        _save("analysis_1")
        _save("analysis_2")
        _save("analysis_3", user_id="user-2")
        ids = {record["analysis_id"] for record in analysis_store.list_analyses("user-1")}
        self.assertEqual(ids, {"analysis_1", "analysis_2"})

    def test_delete_checks_owner_when_given(self):
        _save("analysis_1")
        self.assertFalse(analysis_store.delete_analysis("analysis_1", "user-2"))
        self.assertTrue(analysis_store.delete_analysis("analysis_1", "user-1"))
        self.assertFalse(analysis_store.delete_analysis("analysis_1"))

    def test_purge_removes_expired(self):
        old = datetime.now(timezone.utc) - timedelta(days=400)
        with patch.object(analysis_store, "_utc_now", return_value=old):
            _save("analysis_old")
        _save("analysis_new")
        self.assertEqual(analysis_store.purge_expired_analyses(), 1)
        self.assertIsNone(analysis_store.get_analysis("analysis_old"))
        self.assertIsNotNone(analysis_store.get_analysis("analysis_new"))


class ExportTests(unittest.TestCase):
    def test_clean_text_drops_notes_and_blank_runs(self):
        self.assertEqual(clean_resume_text("A [note]\n\n\n\nB"), "A \n\nB")

    def test_txt_and_markdown(self):
        txt = export_resume(RESUME, "txt")
        self.assertEqual(txt.media_type, "text/plain; charset=utf-8")
        self.assertNotIn(b"[add photo]", txt.content)
        self.assertTrue(txt.file_name.endswith(".txt"))

        md = export_resume(RESUME, "md").content.decode("utf-8")
        self.assertIn("## Experience", md)
        self.assertIn("## Skills", md)
        self.assertIn("- Reduced latency by 35%", md)

    def test_docx_uses_bullets_and_headings(self):
        exported = export_resume(RESUME, "docx", template="classic")
        document = Document(BytesIO(exported.content))
        texts = [paragraph.text for paragraph in document.paragraphs]
        self.assertIn("EXPERIENCE", texts)
        self.assertIn("Built payment APIs in Python", texts)
        self.assertEqual(document.styles["Normal"].font.name, "Times New Roman")

    def test_pdf(self):
        exported = export_resume(RESUME, "PDF", file_name="my resume!")
        self.assertTrue(exported.content.startswith(b"%PDF"))
        self.assertEqual(exported.media_type, "application/pdf")
        self.assertRegex(exported.file_name, r"^my_resume_\d+\.pdf$")

    def test_rejections(self):
        for args, kwargs, code in (
            (("   ", "pdf"), {}, "MISSING_TEXT"),
            ((RESUME, "rtf"), {}, "UNSUPPORTED_FORMAT"),
            ((RESUME, "pdf"), {"template": "neon"}, "UNKNOWN_TEMPLATE"),
        ):
            with self.subTest(code=code):
                with self.assertRaises(ExportError) as ctx:
                    export_resume(*args, **kwargs)
                self.assertEqual(ctx.exception.code, code)


if __name__ == "__main__":
    unittest.main()
