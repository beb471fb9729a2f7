"""Rate-limited async client for the arXiv search API."""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, List, Optional
from urllib.parse import quote

import httpx
from loguru import logger

from .config import DEFAULT_BASE_URL, IngestSettings
from .downloader import download_paper
from .errors import ArxivRequestError
from .feed import parse_feed
from .models import PaperMetadata, PaperRecord
from .store import MetadataStore

Sleep = Callable[[float], Awaitable[None]]

USER_AGENT = "arxiv-ingest/0.1.0"


class ArxivClient:
    """Search arXiv and fetch documents, pausing after every successful call.

    The pause (``rate_limit_delay`` seconds, 3 by default) is the only rate
    limiting: it is unconditional and ignores any server rate-limit headers.
    Pass ``sleep`` to replace ``asyncio.sleep``, e.g. with a no-op in tests.

    Examples:
        async with ArxivClient() as client:
            records = await client.search("all:electron", max_results=5)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        rate_limit_delay: float = 3.0,
        timeout: float = 30.0,
        sleep: Sleep = asyncio.sleep,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url
        self.rate_limit_delay = rate_limit_delay
        self._sleep = sleep
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout, headers={"User-Agent": USER_AGENT})

    @classmethod
    def from_settings(cls, settings: IngestSettings, **kwargs) -> "ArxivClient":
        return cls(
            base_url=settings.base_url,
            rate_limit_delay=settings.rate_limit_delay,
            timeout=settings.timeout,
            **kwargs,
        )

    async def __aenter__(self) -> "ArxivClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def search_url(self, query: str, max_results: int = 10, start: int = 0) -> str:
        return f"{self.base_url}?search_query={quote(query, safe='')}&start={start}&max_results={max_results}"

    async def pause(self) -> None:
        await self._sleep(self.rate_limit_delay)

    async def _get(self, url: str) -> httpx.Response:
        try:
            resp = await self._http.get(url, follow_redirects=True)
        except httpx.HTTPError as exc:
            raise ArxivRequestError(f"request failed: {url}: {exc}", url) from exc
        if not resp.is_success:
            raise ArxivRequestError(f"HTTP {resp.status_code}: {url}", url, resp.status_code)
        return resp

    async def get_bytes(self, url: str) -> bytes:
        """GET ``url`` and return the body. Does not pause; callers do."""
        resp = await self._get(url)
        return resp.content

    async def search(self, query: str, max_results: int = 10, start: int = 0) -> List[PaperRecord]:
        """Run one page of a search and return the parsed records in feed order.

        Raises ArxivRequestError on transport failure or a non-2xx status and
        FeedParseError if the body is not well-formed XML.
        """
        logger.info("Searching arXiv: query='{}', max_results={}, start={}", query, max_results, start)
        url = self.search_url(query, max_results=max_results, start=start)
        logger.debug("arXiv API URL: {}", url)

        resp = await self._get(url)
        logger.debug("Received XML response: {} bytes", len(resp.content))

        records = parse_feed(resp.content)
        logger.info("Parsed {} papers from arXiv response", len(records))

        await self.pause()
        return records

    async def search_and_store(
        self, query: str, max_results: int, start: int, store: MetadataStore
    ) -> List[PaperRecord]:
        """Search and persist every result in ``store``.

        Records are added one at a time; if the store fails part-way, earlier
        records stay persisted and the rest are skipped.
        """
        records = await self.search(query, max_results=max_results, start=start)
        for record in records:
            store.add_paper(PaperMetadata.from_record(record))
        return records

    async def download_pdf(
        self, record: PaperRecord, output_dir: str | Path, store: Optional[MetadataStore] = None
    ) -> Path:
        return await download_paper(record, output_dir, self, store=store)
