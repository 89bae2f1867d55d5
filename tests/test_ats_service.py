import unittest
from unittest.mock import patch

import _env  # noqa: F401

from swipehire.schemas.ats import ATSAnalysisRequest, ATSSections
from swipehire.services import ats_service
from swipehire.services.ats_service import (
    analyze_ats_compatibility,
    analyze_contact,
    calculate_overall_score,
    heuristic_keywords,
    industry_compliance,
    _section,
)

RESUME = """Jane Doe
jane.doe@example.com | 555-123-4567 | linkedin.com/in/janedoe | Austin, TX city center

Summary
Backend engineer building cloud software and API platforms.

Experience
- Developed payment APIs in Python, reduced latency by 35%
- Led migration of the database layer to managed cloud services
- Implemented agile delivery for a team of six engineers
- Improved test coverage to 90% across services
- Managed on-call rotation and achieved 99.9% uptime

Education
BSc Computer Science, State University, 2015

Skills
Python, SQL, Docker, AWS, programming, development
"""


class ContactSectionTests(unittest.TestCase):
    def test_complete_contact_block_scores_full_marks(self):
        section = analyze_contact(RESUME)
        self.assertEqual(section.score, 100)
        self.assertEqual(section.impact, "low")

    def test_missing_contact_details_are_penalised(self):
        section = analyze_contact("Experienced engineer")
        self.assertEqual(section.score, 40)
        self.assertEqual(section.impact, "high")
        self.assertEqual(len(section.issues), 3)


class OverallScoreTests(unittest.TestCase):
    def test_weighted_sum(self):
        sections = ATSSections(
            formatting=_section(80, [], []),
            keywords=_section(60, [], []),
            structure=_section(100, [], []),
            readability=_section(90, [], []),
            contact=_section(50, [], []),
        )
        # 80*.25 + 60*.30 + 100*.20 + 90*.15 + 50*.10 = 76.5, rounded half up
        self.assertEqual(calculate_overall_score(sections), 77)

    def test_half_point_rounds_up(self):
        zero = _section(0, [], [])
        sections = ATSSections(formatting=zero, keywords=zero, structure=zero, readability=zero, contact=_section(25, [], []))
        self.assertEqual(calculate_overall_score(sections), 3)


class KeywordHeuristicTests(unittest.TestCase):
    def test_reports_missing_target_terms(self):
        section = heuristic_keywords(RESUME, "Kubernetes engineer", None)
        self.assertLess(section.score, 100)
        self.assertTrue(any("kubernetes" in issue for issue in section.issues))

    def test_without_target_falls_back(self):
        section = heuristic_keywords(RESUME, None, None)
        self.assertEqual(section.score, 70)
        self.assertEqual(section.issues, ["No target role or job description provided for keyword comparison"])


class IndustryComplianceTests(unittest.TestCase):
    def test_only_with_target_industry(self):
        self.assertEqual(industry_compliance(RESUME, None), [])

    def test_sorted_by_score(self):
        results = industry_compliance(RESUME, "Technology")
        self.assertEqual(len(results), 5)
        self.assertEqual(results[0].industry, "Technology")
        scores = [item.score for item in results]
        self.assertEqual(scores, sorted(scores, reverse=True))


class AnalyzeCompatibilityTests(unittest.TestCase):
    def test_heuristic_analysis_without_llm(self):
        result = analyze_ats_compatibility(
            ATSAnalysisRequest(resume_text=RESUME, target_role="Backend engineer", target_industry="Technology")
        )
        self.assertFalse(result.fallback)
        self.assertEqual(result.sections.contact.score, 100)
        self.assertIn("Contact information present", result.passed_checks)
        self.assertIn("Action verb usage", result.passed_checks)
        self.assertEqual(len(result.optimization_tips), 5)
        self.assertTrue(result.suggestions)
        self.assertEqual(result.industry_compliance[0].industry, "Technology")

    def test_unexpected_failure_returns_fallback(self):
        with patch.object(ats_service, "analyze_structure", side_effect=RuntimeError("boom")):
            result = analyze_ats_compatibility(ATSAnalysisRequest(resume_text=RESUME))
        self.assertTrue(result.fallback)
        self.assertEqual(result.overall_score, 75)
        self.assertEqual(result.failed_checks, ["Analysis incomplete due to service error"])


if __name__ == "__main__":
    unittest.main()
