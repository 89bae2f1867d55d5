from __future__ import annotations

import logging
import os
from typing import AsyncGenerator, Sequence

from openai import AsyncOpenAI

from swipehire.ai.types import ChatMessage

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """Streams advisor replies from the chat completions API."""

    def __init__(
        self,
        model: str,
        *,
        temperature: float,
        max_output_tokens: int,
        timeout_s: float,
        api_key: str | None = None,
    ):
        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key:
            raise RuntimeError("OPENAI_API_KEY is missing")

        self._model = model
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        self._client = AsyncOpenAI(
            api_key=key,
            base_url=os.getenv("OPENAI_BASE_URL") or None,
            timeout=timeout_s,
            max_retries=int(os.getenv("OPENAI_MAX_RETRIES", "2")),
        )

    async def stream(self, messages: Sequence[ChatMessage]) -> AsyncGenerator[str, None]:
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=[message.as_payload() for message in messages],
            temperature=self._temperature,
            max_tokens=self._max_output_tokens,
            stream=True,
        )

        chunks = 0
        async for chunk in response:
            if not chunk.choices:
                continue
            text = chunk.choices[0].delta.content
            if text:
                chunks += 1
                yield text
        logger.debug("openai_stream_finished model=%s chunks=%d", self._model, chunks)
