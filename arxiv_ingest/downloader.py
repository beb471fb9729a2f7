"""PDF downloader for arxiv_ingest.

Downloads are idempotent on the filesystem: a PDF already present in the
output directory is returned as-is without touching the network or the
metadata store.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import aiofiles
from loguru import logger

from .errors import ArxivRequestError, DownloadError
from .models import PaperRecord, normalize_arxiv_id, pdf_filename

if TYPE_CHECKING:
    from .client import ArxivClient
    from .store import MetadataStore


async def download_paper(
    record: PaperRecord,
    output_dir: str | Path,
    client: "ArxivClient",
    store: Optional["MetadataStore"] = None,
) -> Path:
    """Download ``record``'s PDF into ``output_dir`` and return the file path.

    - Returns immediately when the target file already exists (no request, no
      pause, no store update).
    - Writes to a temporary ``.part`` file and replaces the destination on success.
    - Marks the paper downloaded in ``store`` when one is given.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    arxiv_id = normalize_arxiv_id(record.id)
    dest = output_dir / pdf_filename(arxiv_id)

    # check-then-write is not atomic; concurrent downloads of one id both write
    if dest.exists():
        logger.info("PDF already exists: {}", dest)
        return dest

    logger.info("Downloading PDF: {} -> {}", record.pdf_url, dest)
    try:
        data = await client.get_bytes(record.pdf_url)
    except ArxivRequestError as exc:
        raise DownloadError(f"failed to download {record.pdf_url}: {exc}", record.pdf_url, exc.status_code) from exc

    tmp = dest.with_suffix(dest.suffix + ".part")
    try:
        async with aiofiles.open(tmp, "wb") as f:
            await f.write(data)
        os.replace(str(tmp), str(dest))
    except OSError:
        tmp.unlink(missing_ok=True)
        raise
    logger.info("Downloaded PDF: {} ({} bytes)", dest, len(data))

    if store is not None:
        store.mark_downloaded(arxiv_id, str(dest), len(data))

    await client.pause()
    return dest
