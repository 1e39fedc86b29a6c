from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

SUPPORTED_SOURCE_TYPES = ("pdf", "doc", "docx", "txt")


class ParsedBlock(BaseModel):
    page: int | None = None
    text: str


class ParsedDoc(BaseModel):
    """Plain text pulled out of an uploaded resume, with per-page or per-paragraph blocks."""

    doc_id: str
    source_type: str
    text: str
    blocks: list[ParsedBlock] = Field(default_factory=list)
    parsing_warnings: list[str] = Field(default_factory=list)

    @field_validator("source_type")
    @classmethod
    def _validate_source_type(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in SUPPORTED_SOURCE_TYPES:
            raise ValueError(f"source_type must be one of: {', '.join(SUPPORTED_SOURCE_TYPES)}")
        return normalized

    @property
    def source_label(self) -> str:
        # Shown to the model as the document kind, e.g. "PDF".
        return self.source_type.upper()

    @property
    def page_count(self) -> int:
        pages = {block.page for block in self.blocks if block.page is not None}
        return len(pages)
