import json
import os
import unittest
from types import SimpleNamespace
from unittest.mock import patch

import _env  # noqa: F401

from swipehire.analytics.db import get_latest
from swipehire.services import llm
from swipehire.services.llm import LLMServiceError, clamp_int, json_completion, json_completion_required, safe_str_list


def _fake_client(content):
    response = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])
    create = lambda **kwargs: response  # noqa: E731
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


class LLMEnabledTests(unittest.TestCase):
    def test_requires_flag_and_real_key(self):
        with patch.dict(os.environ, {"LLM_ENABLED": "1", "OPENAI_API_KEY": "sk-live-123", "AI_PROVIDER": "openai"}):
            self.assertTrue(llm.llm_enabled())
        with patch.dict(os.environ, {"LLM_ENABLED": "1", "OPENAI_API_KEY": "your_openai_key"}):
            self.assertFalse(llm.llm_enabled())
        with patch.dict(os.environ, {"LLM_ENABLED": "0", "OPENAI_API_KEY": "sk-live-123"}):
            self.assertFalse(llm.llm_enabled())
        with patch.dict(os.environ, {"LLM_ENABLED": "1", "OPENAI_API_KEY": "sk-live-123", "AI_PROVIDER": "gemini"}):
            self.assertFalse(llm.llm_enabled())


class JsonCompletionTests(unittest.TestCase):
    def _run(self, content, **kwargs):
        with patch.object(llm, "llm_enabled", return_value=True), patch.object(
            llm, "_client", return_value=_fake_client(content)
        ):
            return json_completion(system_prompt="sys", user_prompt="user", feature="test_feature", **kwargs)

    def test_returns_object_with_required_keys(self):
        self.assertEqual(self._run(json.dumps({"score": 80}), required_keys=("score",)), {"score": 80})
        self.assertEqual(get_latest(1)[0]["status"], "success")

    def test_missing_key_or_bad_json_returns_none(self):
        self.assertIsNone(self._run(json.dumps({"issues": []}), required_keys=("score",)))
        self.assertEqual(get_latest(1)[0]["status"], "invalid_schema")
        self.assertIsNone(self._run("[1, 2]"))
        self.assertIsNone(self._run("not json"))
        self.assertEqual(get_latest(1)[0]["error_code"], "llm_exception")
        self.assertIsNone(self._run(""))

    def test_disabled_is_skipped(self):
        self.assertIsNone(json_completion(system_prompt="s", user_prompt="u", feature="test_feature"))
        self.assertEqual(get_latest(1)[0]["error_code"], "llm_disabled")
        with self.assertRaises(LLMServiceError) as ctx:
            json_completion_required(system_prompt="s", user_prompt="u")
        self.assertEqual(ctx.exception.code, "llm_disabled")


class CoercionTests(unittest.TestCase):
    def test_helpers(self):
        self.assertEqual(safe_str_list(["  a  b ", 3, "", "c"], max_items=5), ["a b", "c"])
        self.assertEqual(safe_str_list("nope", max_items=5), [])
        self.assertEqual(clamp_int("87.6", 50, 0, 100), 87)
        self.assertEqual(clamp_int(250, 50, 0, 100), 100)
        self.assertEqual(clamp_int(None, 50, 0, 100), 50)


if __name__ == "__main__":
    unittest.main()
