"""End-to-end ingestion: search -> store metadata -> download PDFs -> (extract text).

Papers are processed one after another; the client's rate-limit pause after
each call keeps the run polite towards arXiv.
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from loguru import logger

from .client import ArxivClient
from .downloader import download_paper
from .errors import ArxivIngestError
from .models import IngestResult, PaperRecord
from .pdf_text import extract_text
from .store import MetadataStore


async def ingest_query(
    query: str,
    store: MetadataStore,
    max_results: int = 10,
    start: int = 0,
    output_dir: Path | str = "downloads",
    client: Optional[ArxivClient] = None,
    extract: bool = False,
) -> List[IngestResult]:
    """Search, persist every result in ``store`` and download each PDF.

    A failed search propagates. A failed download (or text extraction) is
    recorded on that paper's result and the remaining papers are still
    processed. With ``extract=True`` the PDF text is written to
    ``<output_dir>/texts/<arxiv_id>.txt``.
    """
    output_dir = Path(output_dir)
    close_client = False
    if client is None:
        client = ArxivClient()
        close_client = True

    try:
        records = await client.search_and_store(query, max_results, start, store)

        # Deduplicate by arXiv id to avoid downloading the same paper twice.
        seen: set[str] = set()
        unique: List[PaperRecord] = []
        for r in records:
            if r.arxiv_id not in seen:
                seen.add(r.arxiv_id)
                unique.append(r)

        results = []
        for record in unique:
            results.append(await _ingest_one(record, output_dir, client, store, extract))
    finally:
        if close_client:
            await client.aclose()

    ok = sum(1 for r in results if r.success)
    logger.info("Ingested {}/{} papers for query '{}'", ok, len(results), query)
    return results


async def _ingest_one(
    record: PaperRecord, output_dir: Path, client: ArxivClient, store: MetadataStore, extract: bool
) -> IngestResult:
    pdf_path = None
    try:
        pdf_path = await download_paper(record, output_dir, client, store=store)
        text_path = None
        if extract:
            text = await extract_text(pdf_path)
            text_path = output_dir / "texts" / f"{pdf_path.stem}.txt"
            text_path.parent.mkdir(parents=True, exist_ok=True)
            text_path.write_text(text, encoding="utf-8")
        return IngestResult(
            record=record,
            pdf_path=str(pdf_path),
            text_path=str(text_path) if text_path else None,
        )
    except (ArxivIngestError, OSError) as exc:
        logger.warning("Failed to ingest {}: {}", record.arxiv_id, exc)
        return IngestResult(
            record=record,
            pdf_path=str(pdf_path) if pdf_path else None,
            success=False,
            error=str(exc),
        )
