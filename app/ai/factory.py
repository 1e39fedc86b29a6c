from app.ai.config import load_ai_config
from app.ai.types import AIClient
from app.core.errors import ConfigurationError

from app.ai.providers.gemini_provider import GeminiProvider
from app.ai.providers.openai_provider import OpenAIProvider


def get_ai_client() -> AIClient:
    cfg = load_ai_config()

    if cfg.provider == "gemini":
        return GeminiProvider(model=cfg.model)

    if cfg.provider == "openai":
        return OpenAIProvider(model=cfg.model)

    raise ConfigurationError(f"Unsupported AI_PROVIDER='{cfg.provider}' in configuration")
