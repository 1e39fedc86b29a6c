from typing import Protocol


class AIClient(Protocol):
    async def generate_text(self, prompt: str) -> str: ...
