import unittest

import _env  # noqa: F401

from swipehire.schemas.templates import TemplateCreateRequest, TemplatePreferences, UserProfile
from swipehire.services import template_service
from swipehire.services.template_service import (
    compatibility_score,
    generate_recommendations,
    search_templates,
    trending_recommendations,
    validate_recommendations,
)

PROFILE = UserProfile(id="user-1", name="Jane Doe", email="jane@example.com", role="Engineer", skills=["python"])


class CatalogSearchTests(unittest.TestCase):
    def setUp(self):
        template_service.catalog.reset()

    def test_default_ordering_and_facets(self):
        items, total, facets, suggestions = search_templates()
        self.assertEqual(total, 8)
        self.assertEqual(items[0].id, "consulting-strategy-premium")
        self.assertEqual(facets.layouts[0].value, "professional")
        self.assertEqual(suggestions, [])

    def test_filters(self):
        items, total, _, _ = search_templates(category="creative")
        self.assertEqual({t.id for t in items}, {"marketing-creative-modern", "design-ux-creative"})

        items, total, _, _ = search_templates(min_ats_score=95)
        self.assertEqual({t.id for t in items}, {"consulting-strategy-premium", "tech-swe-modern"})

        items, total, _, suggestions = search_templates(search="python")
        self.assertEqual([t.id for t in items], ["tech-swe-modern"])
        self.assertEqual(suggestions, ["python"])

    def test_pagination(self):
        items, total, _, _ = search_templates(page=2, limit=5)
        self.assertEqual(total, 8)
        self.assertEqual(len(items), 3)

    def test_created_template_is_searchable(self):
        created = template_service.create_template(
            TemplateCreateRequest(name="Data Scientist", industry="technology", category="engineering")
        )
        self.assertTrue(created.id.startswith("template_"))
        self.assertEqual(created.experience_level, ["entry", "mid"])
        self.assertEqual(template_service.catalog.get(created.id), created)
        categories = {c.id: c.count for c in template_service.list_categories()}
        self.assertEqual(categories["engineering"], 2)


class CompatibilityTests(unittest.TestCase):
    def setUp(self):
        template_service.catalog.reset()
        self.template = template_service.catalog.get("tech-swe-modern")

    def test_exact_match(self):
        # industry 30 + experience 25 + ats 19 + features 0 + popularity 9.6
        self.assertEqual(compatibility_score(self.template, "Software Engineer", "technology", "mid"), 83.6)

    def test_experience_distance_penalty(self):
        self.assertEqual(compatibility_score(self.template, "Software Engineer", "technology", "entry"), 75.6)

    def test_other_industry_scores_lower(self):
        exact = compatibility_score(self.template, "Software Engineer", "technology", "mid")
        other = compatibility_score(self.template, "Software Engineer", "healthcare", "mid")
        self.assertAlmostEqual(exact - other, 30)


class RecommendationTests(unittest.TestCase):
    def setUp(self):
        template_service.catalog.reset()
        self.templates = template_service.catalog.all()

    def test_validation_drops_unknown_and_low_confidence(self):
        raw = [
            {"template_id": "unknown", "confidence": 0.9},
            {"template_id": "tech-swe-modern", "confidence": 0.3},
            {"template_id": "finance-analyst-executive", "confidence": 0.7, "expected_improvements": {"ats_score": 99}},
            {"template_id": "tech-swe-modern", "confidence": 0.95},
        ]
        output = validate_recommendations(raw, self.templates)
        self.assertEqual([item.template_id for item in output], ["tech-swe-modern", "finance-analyst-executive"])
        self.assertEqual(output[1].expected_improvements.ats_score, 30)
        self.assertTrue(output[0].customization_suggestions)

    def test_trending_uses_popularity_and_usage(self):
        trending = trending_recommendations("technology", "mid", self.templates)
        self.assertEqual(
            [item.template_id for item in trending],
            ["finance-analyst-executive", "tech-swe-modern", "healthcare-nurse-professional"],
        )

    def test_recommendations_without_llm_use_rules(self):
        profile = PROFILE.model_copy(update={"preferences": TemplatePreferences(layouts=["creative"])})
        result = generate_recommendations(profile, "Software Engineer", "technology", "mid")
        self.assertEqual(
            [item.template_id for item in result.primary],
            ["consulting-strategy-premium", "tech-swe-modern", "finance-analyst-executive"],
        )
        self.assertEqual([item.confidence for item in result.primary], [0.7, 0.6, 0.5])
        self.assertEqual(
            [item.template_id for item in result.personalized],
            ["marketing-creative-modern", "design-ux-creative"],
        )
        self.assertEqual([item.template_id for item in result.industry_specific], ["tech-swe-modern"])

    def test_job_description_fallback(self):
        result = template_service.analyze_job_description("Senior Python engineer", self.templates)
        self.assertEqual(len(result), 3)


if __name__ == "__main__":
    unittest.main()
