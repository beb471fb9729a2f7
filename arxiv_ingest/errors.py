"""Typed failures raised by the ingestion pipeline.

Every error carries enough context (URL, HTTP status, file path) to diagnose a
failure without retrying it.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional


class ArxivIngestError(Exception):
    """Base class for all arxiv_ingest failures."""


class ArxivRequestError(ArxivIngestError):
    """A request to arXiv failed at the transport level or returned non-2xx."""

    def __init__(self, message: str, url: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class DownloadError(ArxivRequestError):
    """A PDF could not be fetched."""


class FeedParseError(ArxivIngestError):
    """The feed response is not well-formed XML."""

    def __init__(self, message: str, position: Optional[tuple[int, int]] = None) -> None:
        super().__init__(message)
        self.position = position


class MetadataStoreError(ArxivIngestError):
    """The backing metadata document could not be decoded."""

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(f"{message} ({path})")
        self.path = path


class PdfExtractionError(ArxivIngestError):
    def __init__(self, message: str, path: Path) -> None:
        super().__init__(f"{message}: {path}")
        self.path = path
