from swipehire.ai.config import SUPPORTED_PROVIDERS, load_ai_config
from swipehire.ai.types import AIClient

from swipehire.ai.providers.openai_provider import OpenAIProvider


def get_ai_client() -> AIClient:
    cfg = load_ai_config()
    if cfg.provider not in SUPPORTED_PROVIDERS:
        raise ValueError(f"Unsupported AI_PROVIDER='{cfg.provider}'")

    return OpenAIProvider(
        model=cfg.model,
        temperature=cfg.temperature,
        max_output_tokens=cfg.max_output_tokens,
        timeout_s=cfg.timeout_s,
    )
