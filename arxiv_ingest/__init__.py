"""arxiv_ingest package

Public importable API for programmatic usage. Prefer importing the
high-level helpers from the package root::

    from arxiv_ingest import ArxivClient, MetadataStore, download_paper

Use ``asyncio.run`` to call the async helpers from synchronous code, or the
``*_sync`` wrappers below.
"""

from .models import IngestResult, PaperMetadata, PaperRecord, normalize_arxiv_id
from .errors import (
    ArxivIngestError,
    ArxivRequestError,
    DownloadError,
    FeedParseError,
    MetadataStoreError,
    PdfExtractionError,
)
from .feed import FeedParser, parse_feed
from .store import MetadataStore
from .client import ArxivClient
from .downloader import download_paper
from .ingest import ingest_query
from .pdf_text import extract_text, text_stats

__all__ = [
    "ArxivClient",
    "ArxivIngestError",
    "ArxivRequestError",
    "DownloadError",
    "FeedParseError",
    "FeedParser",
    "IngestResult",
    "MetadataStore",
    "MetadataStoreError",
    "PaperMetadata",
    "PaperRecord",
    "PdfExtractionError",
    "download_paper",
    "extract_text",
    "ingest_query",
    "normalize_arxiv_id",
    "parse_feed",
    "text_stats",
]

__version__ = "0.1.0"


def search_sync(query: str, max_results: int = 10, start: int = 0, **client_kwargs):
    """Synchronous wrapper for `ArxivClient.search`.

    Example: search_sync("cat:cs.LG", max_results=5, rate_limit_delay=0)
    """
    import asyncio

    async def _run():
        async with ArxivClient(**client_kwargs) as client:
            return await client.search(query, max_results=max_results, start=start)

    return asyncio.run(_run())


def ingest_query_sync(*args, **kwargs):
    """Synchronous wrapper for `ingest_query`.

    Example: ingest_query_sync("all:graphene", MetadataStore("data/metadata.json"), max_results=2)
    """
    import asyncio

    return asyncio.run(ingest_query(*args, **kwargs))
