"""Search data models.

The artifact models mirror the JSON written at build time field for field, so
``SearchArtifact.model_dump(by_alias=True)`` is the wire format.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


ARTIFACT_VERSION = 2


class SearchDocument(BaseModel):
    """A single indexed page."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=0)
    title: str
    description: str = ""
    slug: str
    content: str = ""
    headings: str = ""
    category: str = "general"

    @field_validator("slug")
    @classmethod
    def _slug_is_absolute(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError(f"slug must begin with '/': {value!r}")
        return value


class SearchArtifact(BaseModel):
    """Serialized document collection produced by the index builder."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: int = ARTIFACT_VERSION
    generated: str
    total_docs: int = Field(alias="totalDocs", ge=0)
    docs: list[SearchDocument] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_collection(self) -> SearchArtifact:
        if self.total_docs != len(self.docs):
            raise ValueError(f"totalDocs={self.total_docs} does not match {len(self.docs)} documents")
        ids = [doc.id for doc in self.docs]
        if len(set(ids)) != len(ids):
            raise ValueError("document ids must be unique")
        return self


class Highlights(BaseModel):
    """Per-field HTML fragments with query terms wrapped in the highlight marker."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str = ""
    content: str = ""


class SearchResult(SearchDocument):
    """A document scored against one query, with highlighted fragments."""

    score: int
    highlights: Highlights = Field(default_factory=Highlights)

    @property
    def category_label(self) -> str:
        return self.category.replace("-", " ")
