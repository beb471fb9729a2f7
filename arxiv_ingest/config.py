"""Runtime settings for the ingestion pipeline."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, Field

ENV_PREFIX = "ARXIV_INGEST_"

DEFAULT_BASE_URL = "https://export.arxiv.org/api/query"


class IngestSettings(BaseModel):
    """Settings shared by the CLI and the programmatic helpers."""

    base_url: str = Field(DEFAULT_BASE_URL, description="arXiv Atom search endpoint")
    rate_limit_delay: float = Field(3.0, description="Pause after every network call (seconds)", ge=0)
    timeout: float = Field(30.0, description="Per-request transport timeout (seconds)", gt=0)
    output_dir: Path = Field(Path("downloads"), description="Directory for downloaded PDFs")
    metadata_path: Path = Field(Path("data/metadata.json"), description="JSON metadata document")
    log_level: str = Field("INFO", description="Minimum log level")
    log_file: Optional[Path] = Field(None, description="Optional log file in addition to stderr")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "IngestSettings":
        """Build settings from ``ARXIV_INGEST_*`` variables, falling back to defaults.

        ``ARXIV_INGEST_RATE_LIMIT_DELAY=0`` for example disables the courtesy pause.
        """
        env = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = env.get(f"{ENV_PREFIX}{name.upper()}")
            if raw:
                values[name] = raw
        return cls(**values)
