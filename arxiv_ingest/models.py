from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


def normalize_arxiv_id(arxiv_id: str) -> str:
    """Return the canonical short id: everything after the last ``/``.

    ``http://arxiv.org/abs/2101.00001v1`` and ``2101.00001v1`` both normalize to
    ``2101.00001v1``. Applying it twice is a no-op.
    """
    return arxiv_id.rsplit("/", 1)[-1]


def pdf_filename(arxiv_id: str) -> str:
    # colons (old-style "oai:" ids) are not valid on every filesystem
    return f"{normalize_arxiv_id(arxiv_id).replace(':', '_')}.pdf"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PaperRecord(BaseModel):
    """A single paper as parsed from one feed entry."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    authors: List[str] = []
    abstract: str = ""
    published: datetime = Field(default_factory=_utcnow)
    updated: datetime = Field(default_factory=_utcnow)
    pdf_url: str = ""
    categories: List[str] = []

    @property
    def arxiv_id(self) -> str:
        return normalize_arxiv_id(self.id)


class PaperMetadata(BaseModel):
    """Persisted metadata for an arXiv paper, including download provenance."""

    arxiv_id: str
    title: str = ""
    authors: List[str] = []
    abstract: str = ""
    published: datetime = Field(default_factory=_utcnow)
    updated: datetime = Field(default_factory=_utcnow)
    categories: List[str] = []
    pdf_path: Optional[str] = None
    downloaded_at: Optional[datetime] = None
    file_size: Optional[int] = None

    @model_validator(mode="after")
    def _download_fields_together(self) -> "PaperMetadata":
        present = [v is not None for v in (self.pdf_path, self.downloaded_at, self.file_size)]
        if any(present) and not all(present):
            raise ValueError("pdf_path, downloaded_at and file_size must be set together")
        return self

    @classmethod
    def from_record(cls, record: PaperRecord) -> "PaperMetadata":
        return cls(
            arxiv_id=normalize_arxiv_id(record.id),
            title=record.title,
            authors=list(record.authors),
            abstract=record.abstract,
            published=record.published,
            updated=record.updated,
            categories=list(record.categories),
        )

    @property
    def is_downloaded(self) -> bool:
        return bool(self.pdf_path)


class IngestResult(BaseModel):
    """Result of ingesting a single paper."""

    record: PaperRecord
    pdf_path: Optional[str] = None
    text_path: Optional[str] = None
    success: bool = True
    error: Optional[str] = None
