import os
from dataclasses import dataclass

SUPPORTED_PROVIDERS = ("openai",)


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str
    temperature: float
    max_output_tokens: int
    timeout_s: float


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def load_ai_config() -> AIConfig:
    """Settings for the streaming career advisor, read per call so tests can patch env."""
    provider = os.getenv("AI_PROVIDER", "openai").strip().lower()
    model = (os.getenv("AI_MODEL") or os.getenv("OPENAI_MODEL") or "gpt-4o-mini").strip()
    return AIConfig(
        provider=provider,
        model=model,
        temperature=_float_env("CHAT_TEMPERATURE", 0.4),
        max_output_tokens=int(_float_env("CHAT_MAX_OUTPUT_TOKENS", 700)),
        timeout_s=_float_env("LLM_TIMEOUT_S", 30.0),
    )
