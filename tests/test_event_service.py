import unittest
from datetime import datetime, timezone

import _env  # noqa: F401

from swipehire.schemas.events import EventInterests, EventSearchParams
from swipehire.services.event_service import EventNotFoundError, event_catalog


def _ids(events):
    return [event.id for event in events]


class EventSearchTests(unittest.TestCase):
    def setUp(self):
        event_catalog.reset()

    def test_default_search_sorts_by_relevance(self):
        result = event_catalog.search(EventSearchParams())
        self.assertEqual(result.total_count, 12)
        self.assertFalse(result.has_more)
        self.assertEqual(_ids(result.events)[:3], ["8", "1", "4"])

    def test_filters_combine(self):
        result = event_catalog.search(EventSearchParams(is_free=True, sort_by="date", sort_order="asc"))
        self.assertEqual(_ids(result.events), ["7", "9", "2", "3"])

        result = event_catalog.search(EventSearchParams(formats=["virtual"]))
        self.assertEqual(set(_ids(result.events)), {"2", "5", "7", "10"})

        result = event_catalog.search(EventSearchParams(search_query="kubernetes"))
        self.assertEqual(_ids(result.events), ["9"])

        result = event_catalog.search(EventSearchParams(cities=["Denver"]))
        self.assertEqual(_ids(result.events), ["9"])

        result = event_catalog.search(EventSearchParams(min_price=300, sort_by="price", sort_order="asc"))
        self.assertEqual(_ids(result.events), ["10", "8", "5", "12"])

    def test_date_window(self):
        params = EventSearchParams(
            start_date=datetime(2027, 7, 24, tzinfo=timezone.utc),
            end_date=datetime(2027, 7, 31),
            sort_by="date",
            sort_order="asc",
        )
        self.assertEqual(_ids(event_catalog.search(params).events), ["7", "5", "9"])

    def test_popularity_and_pagination(self):
        result = event_catalog.search(EventSearchParams(sort_by="popularity", limit=5))
        self.assertEqual(_ids(result.events)[0], "10")
        self.assertTrue(result.has_more)

        last = event_catalog.search(EventSearchParams(page=3, limit=5))
        self.assertEqual(len(last.events), 2)
        self.assertFalse(last.has_more)

    def test_desc_lists_highest_relevance_and_popularity_first(self):
        fields = {"relevance": "recommendation_score", "popularity": "registered_count"}
        for sort_by, field in fields.items():
            with self.subTest(sort_by=sort_by):
                desc = event_catalog.search(EventSearchParams(sort_by=sort_by, sort_order="desc", limit=50))
                values = [getattr(event, field) for event in desc.events]
                self.assertEqual(values, sorted(values, reverse=True))

                asc = event_catalog.search(EventSearchParams(sort_by=sort_by, sort_order="asc", limit=50))
                values = [getattr(event, field) for event in asc.events]
                self.assertEqual(values, sorted(values))


class EventInteractionTests(unittest.TestCase):
    def setUp(self):
        event_catalog.reset()

    def test_save_and_unsave(self):
        saved = event_catalog.save("user-1", "2")
        self.assertTrue(saved.is_saved)
        self.assertEqual(_ids(event_catalog.saved_events("user-1")), ["2"])
        self.assertTrue(event_catalog.get("2", "user-1").is_saved)
        self.assertFalse(event_catalog.get("2", "user-2").is_saved)

        self.assertTrue(event_catalog.unsave("user-1", "2"))
        self.assertFalse(event_catalog.unsave("user-1", "2"))
        self.assertEqual(event_catalog.saved_events("user-1"), [])

    def test_register_counts_each_user_once(self):
        first = event_catalog.register("user-1", "9")
        again = event_catalog.register("user-1", "9")
        self.assertEqual(first.registered_count, 68)
        self.assertEqual(again.registered_count, 68)
        self.assertTrue(again.is_registered)

        event_catalog.register("user-1", "7")
        self.assertEqual(_ids(event_catalog.registered_events("user-1")), ["7", "9"])

    def test_unknown_event(self):
        with self.assertRaises(EventNotFoundError):
            event_catalog.get("missing")
        with self.assertRaises(EventNotFoundError):
            event_catalog.save("user-1", "missing")
        with self.assertRaises(EventNotFoundError):
            event_catalog.register("user-1", "missing")


class EventDiscoveryTests(unittest.TestCase):
    def setUp(self):
        event_catalog.reset()

    def test_upcoming_window(self):
        now = datetime(2027, 7, 25, 10, 0, tzinfo=timezone.utc)
        self.assertEqual(_ids(event_catalog.upcoming(now=now, time_frame="1day")), ["7"])
        self.assertEqual(event_catalog.upcoming(now=now, time_frame="1hour"), [])

    def test_recommendations_rank_by_interest_overlap(self):
        interests = EventInterests(industries=["technology"], skills=["kubernetes"], city="Denver", limit=3)
        picks = event_catalog.recommend("user-1", interests, now=datetime(2027, 7, 1, tzinfo=timezone.utc))
        self.assertEqual(_ids(picks), ["2", "9", "8"])
        self.assertEqual(picks[0].recommendation_reasons, ["Based on your industry", "Online event"])
        self.assertEqual(picks[1].recommendation_reasons, ["Matches your skills", "Near your location"])

    def test_recommendations_skip_past_events(self):
        picks = event_catalog.recommend(
            "user-1", EventInterests(limit=50), now=datetime(2027, 9, 6, tzinfo=timezone.utc)
        )
        self.assertEqual(_ids(picks), ["8"])
        self.assertEqual(picks[0].recommendation_reasons, ["Popular in your field"])

    def test_statistics(self):
        stats = event_catalog.statistics()
        self.assertEqual(stats.industries[0].value, "Technology")
        self.assertEqual(stats.industries[0].count, 6)
        self.assertEqual(stats.event_types[0].value, "conference")
        self.assertEqual(sum(bucket.count for bucket in stats.formats), 12)


if __name__ == "__main__":
    unittest.main()
