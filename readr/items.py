"""Pydantic models for extractor output."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, model_validator


class FailureReason(StrEnum):
    NO_BODY = "no_body"
    NO_CONTENT = "no_content"
    TOO_LARGE = "too_large"


class ArticleMetadata(BaseModel):
    """Document-level metadata gathered before content extraction."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    byline: str | None = None
    excerpt: str | None = None
    site_name: str | None = None
    published_time: str | None = None


class Article(BaseModel):
    """Canonical output record for one extracted article."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    byline: str | None = None
    dir: str | None = None
    lang: str | None = None

    # Content
    content: str = ""
    text_content: str = ""
    length: int = 0

    excerpt: str | None = None
    site_name: str | None = None
    published_time: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _derive_length(cls, data: object) -> object:
        if isinstance(data, dict) and "length" not in data:
            data = {**data, "length": len(data.get("text_content") or "")}
        return data

    @model_validator(mode="after")
    def _check_length(self) -> Article:
        if self.length != len(self.text_content):
            raise ValueError("length must equal len(text_content)")
        return self
