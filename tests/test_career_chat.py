import asyncio
import unittest
from unittest.mock import patch

import _env  # noqa: F401

from swipehire.schemas.chat import CareerChatMessage, CareerGoal, CareerProfile
from swipehire.services import career_chat_service
from swipehire.services.career_chat_service import (
    MAX_HISTORY_MESSAGES,
    PROFILE_CONTEXT_MAX_CHARS,
    build_messages,
    stream_career_chat,
    summarize_profile,
)
from swipehire.utils.sse import sse


class _FakeClient:
    def __init__(self, tokens, error=None):
        self.tokens = tokens
        self.error = error
        self.seen = None

    async def stream(self, messages):
        self.seen = list(messages)
        for token in self.tokens:
            yield token
        if self.error is not None:
            raise self.error


def _collect(generator) -> list[str]:
    async def run():
        return [frame async for frame in generator]

    return asyncio.run(run())


class ProfileSummaryTests(unittest.TestCase):
    def test_defaults(self):
        summary = summarize_profile(CareerProfile())
        self.assertIn("Assessed Career Stage: Unspecified / Exploring.", summary)
        self.assertIn("Skills: Not specified.", summary)
        self.assertIn("Current Goals: Not specified.", summary)

    def test_goals_take_precedence_and_are_capped(self):
        profile = CareerProfile(
            skills=["Python", "SQL"],
            goals=[CareerGoal(text="Lead a team"), CareerGoal(text="Ship ML"), CareerGoal(text="Third")],
            career_goals="Become CTO",
            suggested_paths=["Staff Engineer", "Engineering Manager", "Architect"],
        )
        summary = summarize_profile(profile)
        self.assertIn("Current Goals: Lead a team; Ship ML.", summary)
        self.assertNotIn("Third", summary)
        self.assertNotIn("Become CTO", summary)
        self.assertIn("AI Suggested Paths: Staff Engineer; Engineering Manager.", summary)

    def test_summary_is_truncated(self):
        profile = CareerProfile(skills=["x" * 90] * 40)
        self.assertEqual(len(summarize_profile(profile)), PROFILE_CONTEXT_MAX_CHARS)


class BuildMessagesTests(unittest.TestCase):
    def test_history_window_and_roles(self):
        history = [CareerChatMessage(role="model", text=f"reply {i}") for i in range(15)]
        history.append(CareerChatMessage(role="user", text="   "))
        messages = build_messages("  What next?  ", history, CareerProfile())

        self.assertEqual(messages[0].role, "system")
        self.assertIn("User Profile & Plan Context:", messages[0].content)
        # blank entries inside the window are dropped
        self.assertEqual(len(messages), 1 + MAX_HISTORY_MESSAGES - 1 + 1)
        self.assertEqual(messages[1].content, "reply 6")
        self.assertTrue(all(m.role == "assistant" for m in messages[1:-1]))
        self.assertEqual((messages[-1].role, messages[-1].content), ("user", "What next?"))


class StreamTests(unittest.TestCase):
    def test_streams_tokens_then_done(self):
        client = _FakeClient(["Hello", " there"])
        with patch.object(career_chat_service, "get_ai_client", return_value=client):
            frames = _collect(stream_career_chat("Hi", user_id="user-1"))

        self.assertEqual(
            frames,
            [
                sse("trace", "Thinking..."),
                sse("chunk", "Hello"),
                sse("chunk", " there"),
                sse("done", "[DONE]"),
            ],
        )
        self.assertEqual(client.seen[-1].content, "Hi")

    def test_empty_stream_uses_fallback_reply(self):
        with patch.object(career_chat_service, "get_ai_client", return_value=_FakeClient([])):
            frames = _collect(stream_career_chat("Hi", user_id="user-1"))
        self.assertIn(sse("chunk", career_chat_service.FALLBACK_REPLY), frames)

    def test_blank_message_short_circuits(self):
        with patch.object(career_chat_service, "get_ai_client") as factory:
            frames = _collect(stream_career_chat("   ", user_id="user-1"))
        factory.assert_not_called()
        self.assertEqual(frames[1], sse("chunk", "Please type a message."))

    def test_provider_failure_emits_error_event(self):
        client = _FakeClient(["partial"], error=RuntimeError("upstream"))
        with patch.object(career_chat_service, "get_ai_client", return_value=client):
            frames = _collect(stream_career_chat("Hi", user_id="user-1"))
        self.assertEqual(frames[-2], sse("error", "The career advisor is unavailable right now."))
        self.assertEqual(frames[-1], sse("done", "[DONE]"))


if __name__ == "__main__":
    unittest.main()
