from __future__ import annotations

from dataclasses import dataclass
from typing import AsyncGenerator, Literal, Protocol, Sequence

Role = Literal["system", "user", "assistant"]

# The web client labels advisor turns as "model".
_HISTORY_ROLES: dict[str, Role] = {"user": "user", "model": "assistant", "assistant": "assistant"}


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str

    @classmethod
    def from_history(cls, role: str, text: str) -> "ChatMessage | None":
        content = (text or "").strip()
        if not content:
            return None
        return cls(role=_HISTORY_ROLES.get(role, "assistant"), content=content)

    def as_payload(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class AIClient(Protocol):
    async def stream(self, messages: Sequence[ChatMessage]) -> AsyncGenerator[str, None]: ...
