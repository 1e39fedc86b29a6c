import os
from dataclasses import dataclass

DEFAULT_MODELS = {
    "gemini": "gemini-2.0-flash",
    "openai": "gpt-4o-mini",
}


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str


def load_ai_config() -> AIConfig:
    provider = (os.getenv("AI_PROVIDER") or "gemini").strip().lower()
    model = (os.getenv("AI_MODEL") or "").strip() or DEFAULT_MODELS.get(provider, "")
    return AIConfig(provider=provider, model=model)
