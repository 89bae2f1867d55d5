import unittest

import _env  # noqa: F401

from swipehire.schemas.resume import TargetJob
from swipehire.services.resume_analysis import (
    ResumeAnalysisError,
    analyze_resume,
    match_keywords,
    parse_keywords,
    reanalyze_resume,
    summarize_for_storage,
)

RESUME = (
    "Jane Doe\n"
    "Email jane.doe@example.com | Phone 555-123-4567\n"
    "Experience\n"
    "- Python developer at Acme, reduced costs by 20%\n"
    "Education\n"
    "BSc Computer Science\n"
    "Skills\n"
    "Python, SQL, Docker\n"
)


class KeywordTests(unittest.TestCase):
    def test_parse_keywords_dedupes_and_lowercases(self):
        self.assertEqual(parse_keywords(" Python, sql ,python,, Docker "), ["python", "sql", "docker"])
        self.assertEqual(parse_keywords(None), [])

    def test_match_keywords_scores_share_of_matches(self):
        matched, missing, score = match_keywords(RESUME, ["python", "sql", "kubernetes"])
        self.assertEqual([item.keyword for item in matched], ["python", "sql"])
        self.assertEqual(missing, ["kubernetes"])
        self.assertAlmostEqual(score, 200 / 3)

    def test_no_keywords_uses_default_score(self):
        matched, missing, score = match_keywords(RESUME, [])
        self.assertEqual((matched, missing), ([], []))
        self.assertEqual(score, 75)


class AnalyzeResumeTests(unittest.TestCase):
    def test_weighted_scores(self):
        result = analyze_resume(RESUME, TargetJob(title="Backend Engineer", keywords="python, sql, kubernetes"))
        # contact 15 + experience 25 + education 15 + skills 20 + keywords 15; too short for the length bonus
        self.assertEqual(result.overall_score, 90)
        self.assertEqual(result.ats_score, 100)
        self.assertTrue(result.id.startswith("analysis_"))
        self.assertEqual(result.metadata.target_job_title, "Backend Engineer")
        self.assertEqual(result.keyword_analysis.total_keywords, 3)
        self.assertTrue(result.section_analysis.contact.present)
        self.assertFalse(result.section_analysis.summary.present)

    def test_ats_score_rounds_half_up(self):
        job = TargetJob(title="Platform Engineer", keywords="python, kubernetes, terraform, golang")
        result = analyze_resume("email me. skills: python", job)
        # contact 15 + skills 20; ats = 35 + 10 + 25 * 0.3 = 52.5
        self.assertEqual(result.overall_score, 35)
        self.assertEqual(result.ats_score, 53)

    def test_analysis_is_deterministic(self):
        job = TargetJob(title="Backend Engineer", keywords="python")
        first = analyze_resume(RESUME, job)
        second = analyze_resume(RESUME, job)
        self.assertEqual(first.overall_score, second.overall_score)
        self.assertEqual(first.ats_score, second.ats_score)
        self.assertEqual(first.strengths, second.strengths)

    def test_reanalysis_adds_bonus_and_links_original(self):
        job = TargetJob(title="Backend Engineer", keywords="python, sql, kubernetes")
        result = reanalyze_resume("Professional Summary\n" + RESUME, job, original_analysis_id="analysis_abc")
        # summary 10 and the +5 re-analysis bonus, capped at 100
        self.assertEqual(result.overall_score, 100)
        self.assertTrue(result.id.startswith("reanalysis_"))
        self.assertEqual(result.metadata.original_analysis_id, "analysis_abc")

    def test_missing_inputs(self):
        with self.assertRaises(ResumeAnalysisError) as ctx:
            analyze_resume("", TargetJob(title="Engineer"))
        self.assertEqual(ctx.exception.code, "MISSING_INPUT")

        with self.assertRaises(ResumeAnalysisError):
            analyze_resume(RESUME, None)

        with self.assertRaises(ResumeAnalysisError) as ctx:
            analyze_resume(RESUME, TargetJob(title="  "))
        self.assertEqual(ctx.exception.code, "MISSING_JOB_TITLE")

    def test_summarize_for_storage(self):
        result = analyze_resume(RESUME, TargetJob(title="Backend Engineer"))
        summary = summarize_for_storage(result.model_dump(mode="json"))
        self.assertEqual(summary["analysis_id"], result.id)
        self.assertEqual(summary["overall_score"], result.overall_score)
        self.assertEqual(summary["target_job_title"], "Backend Engineer")


if __name__ == "__main__":
    unittest.main()
