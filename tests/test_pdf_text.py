from pathlib import Path

import fitz
import pytest

from arxiv_ingest.errors import PdfExtractionError
from arxiv_ingest.pdf_text import extract_text, extract_text_sync, text_stats


def _make_pdf(path: Path, lines: list[str]) -> Path:
    doc = fitz.open()
    page = doc.new_page()
    for i, line in enumerate(lines):
        page.insert_text((72, 72 + 20 * i), line)
    doc.save(str(path))
    doc.close()
    return path


@pytest.mark.asyncio
async def test_extract_text_from_pdf(tmp_path: Path):
    pdf = _make_pdf(tmp_path / "paper.pdf", ["Consensus in Practice", "Abstract"])
    text = await extract_text(pdf)
    assert "Consensus in Practice" in text
    assert "Abstract" in text


def test_extract_missing_file(tmp_path: Path):
    with pytest.raises(PdfExtractionError) as excinfo:
        extract_text_sync(tmp_path / "nope.pdf")
    assert excinfo.value.path == tmp_path / "nope.pdf"


def test_extract_not_a_pdf(tmp_path: Path):
    bogus = tmp_path / "bogus.pdf"
    bogus.write_bytes(b"")
    with pytest.raises(PdfExtractionError):
        extract_text_sync(bogus)


def test_text_stats():
    stats = text_stats("one two\nthree\n\nfour")
    assert stats.char_count == 19
    assert stats.word_count == 4
    assert stats.line_count == 4
