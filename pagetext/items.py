"""Result types and the pydantic schema used for JSON output."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NamedTuple

from bs4 import Tag
from pydantic import BaseModel, Field, field_validator

# ---------------------------------------------------------------------------
# Locator output
# ---------------------------------------------------------------------------

class Candidate(NamedTuple):
    """A node proposed as the content root, and why it was proposed."""

    node: Tag
    score: float
    tier: str
    text_length: int = 0


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

class Metadata(BaseModel):
    title: str | None = None
    author: str | None = None
    date: str | None = None
    description: str | None = None
    sitename: str | None = None
    categories: list[str] = Field(default_factory=list)

    @field_validator("title", "author", "date", "description", "sitename", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            return " ".join(v.split()) or None
        return v


# ---------------------------------------------------------------------------
# Pipeline result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ExtractionResult:
    """Cleaned content tree plus metadata for one document.

    ``content`` is a tree owned by this result; it never shares nodes with
    the parsed document it was built from.
    """

    content: Tag
    raw_text: str
    title: str | None = None
    author: str | None = None
    date: str | None = None
    description: str | None = None
    url: str | None = None
    sitename: str | None = None
    categories: list[str] = field(default_factory=list)
    tier: str = ""
    score: float = 0.0

    @property
    def word_count(self) -> int:
        return len(self.raw_text.split())


# ---------------------------------------------------------------------------
# JSON output schema
# ---------------------------------------------------------------------------

class DocumentSchema(BaseModel):
    """Fixed key set of the JSON serialization.

    Field order is the key order of the output; absent values dump as null.
    """

    title: str | None = None
    author: str | None = None
    date: str | None = None
    description: str | None = None
    content: str = ""
    url: str | None = None

    @classmethod
    def from_result(cls, result: ExtractionResult) -> DocumentSchema:
        return cls(
            title=result.title,
            author=result.author,
            date=result.date,
            description=result.description,
            content=result.raw_text,
            url=result.url,
        )
