from __future__ import annotations

import os
from typing import Optional

from google import genai
from google.genai import types

from app.core.errors import ConfigurationError


class GeminiProvider:
    def __init__(self, model: str, api_key: Optional[str] = None, temperature: float = 0.2):
        key = (api_key or os.getenv("GEMINI_API_KEY") or "").strip()
        if not key:
            raise ConfigurationError("GEMINI_API_KEY is missing. Set it in the environment variable configuration.")
        self._model = model
        self._config = types.GenerateContentConfig(temperature=temperature)
        self._client = genai.Client(api_key=key)

    async def generate_text(self, prompt: str) -> str:
        response = await self._client.aio.models.generate_content(
            model=self._model,
            contents=prompt,
            config=self._config,
        )
        return response.text or ""
