"""Plain-text extraction from downloaded PDFs using PyMuPDF."""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List

import fitz  # PyMuPDF
from loguru import logger
from pydantic import BaseModel

from .errors import PdfExtractionError


class TextStats(BaseModel):
    char_count: int
    word_count: int
    line_count: int


def extract_text_sync(pdf_path: Path) -> str:
    """Extract plain text from a PDF file (synchronous)."""
    pdf_path = Path(pdf_path)
    if not pdf_path.exists():
        raise PdfExtractionError("PDF file not found", pdf_path)

    logger.info("Extracting text from PDF: {}", pdf_path)
    try:
        doc = fitz.open(str(pdf_path))
    except RuntimeError as exc:  # includes fitz.FileDataError
        raise PdfExtractionError(f"cannot open PDF ({exc})", pdf_path) from exc

    parts: List[str] = []
    with doc:
        for page in doc:
            parts.append(page.get_text("text"))
    text = "\n".join(parts)

    logger.debug("Extracted {} characters from PDF", len(text))
    if not text.strip():
        logger.warning("PDF appears to be empty or text extraction failed: {}", pdf_path)
    return text


async def extract_text(pdf_path: Path) -> str:
    return await asyncio.to_thread(extract_text_sync, pdf_path)


def text_stats(text: str) -> TextStats:
    return TextStats(
        char_count=len(text),
        word_count=len(text.split()),
        line_count=len(text.splitlines()),
    )
