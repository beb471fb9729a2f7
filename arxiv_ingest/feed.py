"""Streaming parser for the arXiv Atom search feed.

The feed is read as a flat sequence of start/text/end tokens. A small state
machine maps the text that precedes a close tag onto the field named by the
most recently opened tag, so the mapping is order-dependent rather than
tree-aware: any ``<name>`` inside an ``<entry>`` is taken as an author, and a
nested tag opened inside a field redirects that field's text.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, auto
from typing import List, Optional, Union
from xml.etree import ElementTree as ET

from loguru import logger

from .errors import FeedParseError
from .models import PaperRecord


class ParserState(Enum):
    IDLE = auto()
    IN_ENTRY = auto()
    IN_FIELD = auto()


class EntryField(str, Enum):
    ID = "id"
    TITLE = "title"
    SUMMARY = "summary"
    PUBLISHED = "published"
    UPDATED = "updated"
    NAME = "name"


_FIELDS_BY_TAG = {f.value: f for f in EntryField}


def _local_name(tag: str) -> str:
    # "{http://www.w3.org/2005/Atom}entry" -> "entry"
    return tag.rsplit("}", 1)[-1]


_RFC3339_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[Tt ](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d+))?(?P<offset>[Zz]|[+-]\d{2}:\d{2})$"
)


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp into an aware UTC datetime, or return None.

    The string is rebuilt into the subset ``datetime.fromisoformat`` accepts on
    every supported Python: upper-case ``T``, six fraction digits, numeric offset.
    """
    m = _RFC3339_RE.match(value.strip())
    if m is None:
        return None
    frac = (m.group("frac") or "0")[:6].ljust(6, "0")
    offset = m.group("offset")
    if offset in ("Z", "z"):
        offset = "+00:00"
    try:
        parsed = datetime.fromisoformat(f"{m.group('date')}T{m.group('time')}.{frac}{offset}")
    except ValueError:
        return None
    return parsed.astimezone(timezone.utc)


def pdf_url_for(entry_id: str) -> str:
    """Derive the PDF link from an entry id (``/abs/`` view -> ``/pdf/`` view)."""
    return f"{entry_id.replace('/abs/', '/pdf/')}.pdf"


@dataclass
class _RecordBuilder:
    started_at: datetime
    id: str = ""
    title: str = ""
    abstract: str = ""
    authors: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    published: Optional[datetime] = None
    updated: Optional[datetime] = None

    def commit(self, kind: EntryField, text: str) -> None:
        if kind is EntryField.ID:
            self.id = text
        elif kind is EntryField.TITLE:
            self.title = text
        elif kind is EntryField.SUMMARY:
            self.abstract = text
        elif kind is EntryField.PUBLISHED:
            self.published = parse_timestamp(text) or self.published
        elif kind is EntryField.UPDATED:
            self.updated = parse_timestamp(text) or self.updated
        elif kind is EntryField.NAME:
            self.authors.append(text)

    def build(self) -> PaperRecord:
        return PaperRecord(
            id=self.id,
            title=self.title,
            authors=self.authors,
            abstract=self.abstract,
            published=self.published or self.started_at,
            updated=self.updated or self.started_at,
            pdf_url=pdf_url_for(self.id),
            categories=self.categories,
        )


class FeedParser:
    """Incremental Atom feed parser producing :class:`PaperRecord` objects.

    Call :meth:`feed` with chunks of the response and :meth:`close` at the end;
    ``close`` returns every record in feed order. Malformed XML raises
    :class:`FeedParseError` and no records are returned.
    """

    def __init__(self) -> None:
        self._xml = ET.XMLPullParser(events=("start", "end"))
        self._state = ParserState.IDLE
        self._field: Optional[EntryField] = None
        self._builder: Optional[_RecordBuilder] = None
        self._records: List[PaperRecord] = []
        self._error: Optional[FeedParseError] = None

    @property
    def state(self) -> ParserState:
        return self._state

    def feed(self, data: Union[str, bytes]) -> None:
        self._raise_if_failed()
        try:
            self._xml.feed(data)
            self._drain()
        except ET.ParseError as exc:
            raise self._fail(exc) from exc

    def close(self) -> List[PaperRecord]:
        self._raise_if_failed()
        try:
            self._xml.close()
            self._drain()
        except ET.ParseError as exc:
            raise self._fail(exc) from exc
        return list(self._records)

    def _raise_if_failed(self) -> None:
        if self._error is not None:
            raise self._error

    def _fail(self, exc: ET.ParseError) -> FeedParseError:
        logger.warning("XML parsing error: {}", exc)
        self._records.clear()
        self._builder = None
        self._enter(ParserState.IDLE)
        self._error = FeedParseError(f"malformed feed XML: {exc}", position=getattr(exc, "position", None))
        return self._error

    def _drain(self) -> None:
        # syntax errors are queued by XMLPullParser and raised from read_events()
        for event, elem in self._xml.read_events():
            if event == "start":
                self._on_start(elem)
            else:
                self._on_end(elem)

    def _on_start(self, elem: ET.Element) -> None:
        name = _local_name(elem.tag)
        if name == "entry":
            self._builder = _RecordBuilder(started_at=datetime.now(timezone.utc))
            self._enter(ParserState.IN_ENTRY)
            return
        if self._state is ParserState.IDLE:
            return

        kind = _FIELDS_BY_TAG.get(name)
        if kind is None:
            self._enter(ParserState.IN_ENTRY)
            if name == "category" and self._builder is not None:
                term = elem.get("term")
                if term:
                    self._builder.categories.append(term)
        else:
            self._enter(ParserState.IN_FIELD, kind)

    def _on_end(self, elem: ET.Element) -> None:
        if self._state is ParserState.IDLE:
            return

        if self._state is ParserState.IN_FIELD and self._builder is not None:
            self._builder.commit(self._field, _pending_text(elem))
            self._enter(ParserState.IN_ENTRY)

        if _local_name(elem.tag) == "entry" and self._builder is not None:
            self._records.append(self._builder.build())
            self._builder = None
            self._enter(ParserState.IDLE)
            elem.clear()

    def _enter(self, state: ParserState, kind: Optional[EntryField] = None) -> None:
        self._state = state
        self._field = kind if state is ParserState.IN_FIELD else None


def _pending_text(elem: ET.Element) -> str:
    """Return the last text token seen before ``elem`` closed.

    Text is consumed by every close tag, so only what follows the last child's
    close tag (its tail) or, for a leaf, the element's own text can still be
    pending.
    """
    children = list(elem)
    raw = children[-1].tail if children else elem.text
    return (raw or "").strip()


def parse_feed(xml_text: Union[str, bytes]) -> List[PaperRecord]:
    """Parse a complete feed response into records, preserving feed order."""
    parser = FeedParser()
    parser.feed(xml_text)
    records = parser.close()
    logger.debug("Parsed {} entries from feed", len(records))
    return records
