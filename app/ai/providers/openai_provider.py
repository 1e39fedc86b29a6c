from __future__ import annotations

import os
from typing import Optional

from openai import AsyncOpenAI

from app.core.errors import ConfigurationError


class OpenAIProvider:
    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        max_retries: int = 2,
        temperature: float = 0.2,
    ):
        self._model = model
        self._temperature = temperature
        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key:
            raise ConfigurationError("OPENAI_API_KEY is missing. Set it in the environment variable configuration.")

        self._client = AsyncOpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            max_retries=int(os.getenv("OPENAI_MAX_RETRIES", str(max_retries))),
        )

    async def generate_text(self, prompt: str) -> str:
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self._temperature,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
