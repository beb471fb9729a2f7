"""JSON-file backed metadata store.

The whole mapping of normalized arXiv id -> :class:`PaperMetadata` lives in
memory and is rewritten to disk after every mutation. There is no locking: two
stores pointed at the same file will overwrite each other (last save wins).
"""
from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from .errors import MetadataStoreError
from .models import PaperMetadata, normalize_arxiv_id

_MAPPING = TypeAdapter(Dict[str, PaperMetadata])


class MetadataStore:
    def __init__(self, metadata_path: str | Path) -> None:
        self.metadata_path = Path(metadata_path)
        self._papers: Dict[str, PaperMetadata] = {}
        self.load()

    def load(self) -> None:
        """Replace the in-memory mapping with the backing file's contents.

        A missing file means an empty store. Invalid JSON, or JSON that does not
        describe paper metadata, raises :class:`MetadataStoreError`.
        """
        if not self.metadata_path.exists():
            logger.debug("Metadata file {} does not exist, starting fresh", self.metadata_path)
            self._papers = {}
            return

        contents = self.metadata_path.read_text(encoding="utf-8")
        try:
            raw = json.loads(contents)
            self._papers = _MAPPING.validate_python(raw)
        except json.JSONDecodeError as exc:
            raise MetadataStoreError(f"malformed metadata JSON: {exc}", self.metadata_path) from exc
        except ValidationError as exc:
            raise MetadataStoreError(f"invalid paper metadata: {exc}", self.metadata_path) from exc
        logger.info("Loaded {} papers from metadata store", len(self._papers))

    def save(self) -> None:
        """Rewrite the backing file through a ``.part`` sibling so a failed write keeps the old document."""
        self.metadata_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {key: meta.model_dump(mode="json") for key, meta in self._papers.items()}
        tmp = self.metadata_path.with_suffix(self.metadata_path.suffix + ".part")
        try:
            tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(str(tmp), str(self.metadata_path))
        except OSError:
            tmp.unlink(missing_ok=True)
            raise
        logger.debug("Saved metadata for {} papers", len(self._papers))

    def add_paper(self, metadata: PaperMetadata) -> None:
        """Insert or replace a paper, keeping any download provenance already recorded.

        Title, abstract and the other descriptive fields always take the incoming
        values; only ``pdf_path``, ``downloaded_at`` and ``file_size`` survive
        from an entry that was previously marked downloaded.
        """
        arxiv_id = normalize_arxiv_id(metadata.arxiv_id)
        update = {"arxiv_id": arxiv_id}

        existing = self._papers.get(arxiv_id)
        if existing is not None and existing.is_downloaded:
            update.update(
                pdf_path=existing.pdf_path,
                downloaded_at=existing.downloaded_at,
                file_size=existing.file_size,
            )

        self._papers[arxiv_id] = metadata.model_copy(update=update)
        self.save()

    def mark_downloaded(self, arxiv_id: str, pdf_path: str | Path, file_size: int) -> bool:
        """Record a completed download. Returns False if the paper is unknown.

        An unknown id is not an error: nothing is inserted and the mark is lost,
        so metadata has to be ingested before the PDF is fetched.
        """
        normalized = normalize_arxiv_id(arxiv_id)
        metadata = self._papers.get(normalized)
        if metadata is None:
            logger.warning("Cannot mark {} as downloaded: paper not in metadata store", normalized)
            return False

        self._papers[normalized] = metadata.model_copy(
            update={
                "pdf_path": str(pdf_path),
                "downloaded_at": datetime.now(timezone.utc),
                "file_size": file_size,
            }
        )
        self.save()
        logger.info("Marked paper as downloaded: {}", normalized)
        return True

    def get_paper(self, arxiv_id: str) -> Optional[PaperMetadata]:
        return self._papers.get(normalize_arxiv_id(arxiv_id))

    def is_downloaded(self, arxiv_id: str) -> bool:
        metadata = self.get_paper(arxiv_id)
        return metadata is not None and metadata.is_downloaded

    def list_papers(self) -> List[PaperMetadata]:
        return list(self._papers.values())

    def count(self) -> int:
        return len(self._papers)

    def count_downloaded(self) -> int:
        return sum(1 for p in self._papers.values() if p.is_downloaded)

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, arxiv_id: object) -> bool:
        return isinstance(arxiv_id, str) and self.get_paper(arxiv_id) is not None
