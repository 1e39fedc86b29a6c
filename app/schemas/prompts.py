from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class CustomPrompt(BaseModel):
    id: str
    name: str = Field(max_length=120)
    prompt: str
    created_at: datetime


class CustomPromptInput(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    prompt: str = Field(default="", max_length=10000)


class CustomPromptList(BaseModel):
    prompts: list[CustomPrompt] = Field(default_factory=list)


class DefaultPromptResponse(BaseModel):
    name: str
    prompt: str
    placeholders: list[str] = Field(default_factory=list)
