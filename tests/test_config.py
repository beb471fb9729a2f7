from pathlib import Path

import pytest
from pydantic import ValidationError

from arxiv_ingest.__main__ import build_parser, resolve_settings, run
from arxiv_ingest.config import DEFAULT_BASE_URL, IngestSettings
from arxiv_ingest.models import PaperMetadata
from arxiv_ingest.store import MetadataStore


def test_defaults():
    settings = IngestSettings.from_env({})
    assert settings.base_url == DEFAULT_BASE_URL
    assert settings.rate_limit_delay == 3.0
    assert settings.log_file is None


def test_env_overrides():
    settings = IngestSettings.from_env(
        {"ARXIV_INGEST_RATE_LIMIT_DELAY": "0", "ARXIV_INGEST_METADATA_PATH": "/tmp/meta.json", "UNRELATED": "x"}
    )
    assert settings.rate_limit_delay == 0.0
    assert settings.metadata_path == Path("/tmp/meta.json")


def test_negative_delay_rejected():
    with pytest.raises(ValidationError):
        IngestSettings.from_env({"ARXIV_INGEST_RATE_LIMIT_DELAY": "-1"})


def test_cli_flags_override_env(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("ARXIV_INGEST_OUTPUT_DIR", str(tmp_path / "from-env"))
    monkeypatch.setenv("ARXIV_INGEST_RATE_LIMIT_DELAY", "7")
    args = build_parser().parse_args(["--delay", "0", "search", "all:test", "--max-results", "2"])
    settings = resolve_settings(args)
    assert settings.rate_limit_delay == 0.0
    assert settings.output_dir == tmp_path / "from-env"
    assert args.max_results == 2


@pytest.mark.asyncio
async def test_status_command(tmp_path: Path, capsys):
    store = MetadataStore(tmp_path / "m.json")
    store.add_paper(PaperMetadata(arxiv_id="2101.00001", title="Listed"))
    store.mark_downloaded("2101.00001", "/pdfs/2101.00001.pdf", 12)
    store.add_paper(PaperMetadata(arxiv_id="2101.00002", title="Pending"))

    args = build_parser().parse_args(["--metadata", str(tmp_path / "m.json"), "status"])
    code = await run(args, resolve_settings(args))
    assert code == 0
    out = capsys.readouterr().out
    assert "Papers: 2" in out
    assert "Downloaded: 1" in out


@pytest.mark.asyncio
async def test_dry_run_does_not_touch_network(tmp_path: Path, capsys):
    args = build_parser().parse_args(["--dry-run", "--output", str(tmp_path), "download", "2101.00001"])
    assert await run(args, resolve_settings(args)) == 0
    assert "Dry run" in capsys.readouterr().out


def test_configure_logging_writes_file(tmp_path: Path):
    import sys

    from loguru import logger

    from arxiv_ingest.log import configure_logging

    log_file = tmp_path / "logs" / "run.log"
    configure_logging("debug", log_file)
    logger.debug("hello {}", "file")
    logger.remove()
    logger.add(sys.stderr)
    assert "hello file" in log_file.read_text(encoding="utf-8")
