import unittest

import _env  # noqa: F401

from swipehire.schemas.analytics import (
    AnalyticsFilter,
    ResumeAnalysisSnapshot,
    SessionCreateRequest,
    SessionUpdateRequest,
)
from swipehire.services.analytics_service import (
    ResumeAnalyticsStore,
    SessionNotFoundError,
    calculate_improvement_score,
    calculate_rank,
    fallback_prediction,
    filter_for_time_range,
    top_quartile,
)

BEFORE = ResumeAnalysisSnapshot(overall_score=60, ats_score=50, keyword_score=40)
AFTER = ResumeAnalysisSnapshot(overall_score=80, ats_score=70, keyword_score=60)


def _create_request(user_id: str = "user-1", industry: str = "Technology") -> SessionCreateRequest:
    return SessionCreateRequest(
        user_id=user_id,
        before_analysis=BEFORE,
        suggestions_total=8,
        target_role="Backend Engineer",
        target_industry=industry,
        template_used="modern",
    )


class ScoringHelperTests(unittest.TestCase):
    def test_improvement_score_weights(self):
        self.assertEqual(calculate_improvement_score(BEFORE, AFTER), 20)
        self.assertEqual(calculate_improvement_score(AFTER, BEFORE), -20)

    def test_improvement_score_rounds_half_up(self):
        # only ats moves: 15 * 0.3 = 4.5
        before = ResumeAnalysisSnapshot(overall_score=60, ats_score=50, keyword_score=40)
        after = ResumeAnalysisSnapshot(overall_score=60, ats_score=65, keyword_score=40)
        self.assertEqual(calculate_improvement_score(before, after), 5)
        self.assertEqual(calculate_improvement_score(after, before), -4)

    def test_top_quartile(self):
        self.assertEqual(top_quartile([10, 40, 20, 30]), 30)
        self.assertEqual(top_quartile([]), 0)

    def test_rank(self):
        values = [50, 40, 30, 20]
        self.assertEqual(calculate_rank(45, values), 2)
        self.assertEqual(calculate_rank(60, values), 1)
        self.assertEqual(calculate_rank(5, values), 5)

    def test_time_range_filter(self):
        week = filter_for_time_range("week")
        self.assertEqual((week.end - week.start).days, 7)
        unknown = filter_for_time_range("decade")
        self.assertEqual((unknown.end - unknown.start).days, 30)

    def test_fallback_prediction_uses_headroom(self):
        prediction = fallback_prediction(BEFORE)
        self.assertEqual(prediction.predicted_improvement, 24.0)
        self.assertEqual(prediction.confidence, 0.7)
        self.assertEqual(prediction.timeline.short_term, 25)


class SessionStoreTests(unittest.TestCase):
    def setUp(self):
        self.store = ResumeAnalyticsStore()

    def test_session_lifecycle_emits_events(self):
        updates = []
        self.store.subscribe(updates.append)

        session_id = self.store.track_session(_create_request())
        updated = self.store.update_session(
            SessionUpdateRequest(session_id=session_id, after_analysis=AFTER, suggestions_applied=5, status="completed")
        )

        self.assertEqual(updated.improvement_score, 20)
        self.assertEqual(updated.suggestions_applied, 5)
        self.assertIsNotNone(updated.session_end)
        event_types = [event.event_type for event in self.store.events(session_id=session_id)]
        self.assertEqual(event_types, ["session_start", "analysis_completed"])
        self.assertIn("session_update", [update["type"] for update in updates])

    def test_unknown_session(self):
        with self.assertRaises(SessionNotFoundError):
            self.store.update_session(SessionUpdateRequest(session_id="missing", status="completed"))

    def test_list_sessions_filters_and_paginates(self):
        for _ in range(3):
            self.store.track_session(_create_request("user-1"))
        self.store.track_session(_create_request("user-2"))

        items, total = self.store.list_sessions(user_id="user-1", limit=2)
        self.assertEqual(total, 3)
        self.assertEqual(len(items), 2)
        items, total = self.store.list_sessions(status="completed")
        self.assertEqual((items, total), ([], 0))

    def test_dashboard_aggregates_completed_sessions(self):
        first = self.store.track_session(_create_request("user-1"))
        self.store.track_session(_create_request("user-2", industry="Finance"))
        self.store.update_session(SessionUpdateRequest(session_id=first, after_analysis=AFTER, status="completed"))

        dashboard = self.store.dashboard("user-1", AnalyticsFilter())
        self.assertEqual(dashboard.overview.total_sessions, 1)
        self.assertEqual(dashboard.overview.average_improvement, 20)
        self.assertEqual(dashboard.overview.success_rate, 100)
        self.assertEqual(dashboard.top_performing_templates[0].template_id, "modern")
        self.assertEqual(dashboard.benchmarks[0].category, "overall")
        self.assertEqual(dashboard.benchmarks[0].total_participants, 2)
        self.assertEqual([b.label for b in dashboard.benchmarks[1:]], ["Technology Industry"])
        # Without an LLM the insights fall back to the completion nudge.
        self.assertEqual(dashboard.insights[0].title, "Increase Session Completion Rate")
        skills = {item.skill: item.improvement_score for item in dashboard.skills_analysis}
        self.assertEqual(skills["ATS Compatibility"], 20)

    def test_real_time_metrics(self):
        self.store.track_session(_create_request())
        metrics = {metric.id: metric for metric in self.store.real_time_metrics()}
        self.assertEqual(metrics["active_sessions"].value, 1)
        self.assertEqual(metrics["active_sessions"].change_type, "increase")

    def test_custom_report_includes_template_section(self):
        self.store.track_session(_create_request())
        report = self.store.report("custom", filter_for_time_range("month"))
        names = [section.name for section in report.sections]
        self.assertEqual(names[-1], "Template Performance")
        self.assertEqual(report.report_type, "custom")


if __name__ == "__main__":
    unittest.main()
