from __future__ import annotations

from typing import Iterable

import pytest

FEED_HEAD = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom"
      xmlns:opensearch="http://a9.com/-/spec/opensearch/1.1/"
      xmlns:arxiv="http://arxiv.org/schemas/atom">
  <link href="http://arxiv.org/api/query?search_query%3Dall%3Atest" rel="self" type="application/atom+xml"/>
  <title type="html">ArXiv Query: search_query=all:test</title>
  <id>http://arxiv.org/api/cHxbiOdZaP56ODnBPIenZhzg5f8</id>
  <updated>2024-05-01T00:00:00-04:00</updated>
  <opensearch:totalResults>3</opensearch:totalResults>
  <opensearch:startIndex>0</opensearch:startIndex>
  <opensearch:itemsPerPage>3</opensearch:itemsPerPage>
"""

ENTRY = """  <entry>
    <id>http://arxiv.org/abs/{arxiv_id}</id>
    <updated>{updated}</updated>
    <published>{published}</published>
    <title>{title}</title>
    <summary>  Abstract of {title}.
    </summary>
    <author>
      <name>Alice Smith</name>
    </author>
    <author>
      <name>Bob Jones</name>
      <arxiv:affiliation>Somewhere University</arxiv:affiliation>
    </author>
    <link href="http://arxiv.org/abs/{arxiv_id}" rel="alternate" type="text/html"/>
    <link title="pdf" href="http://arxiv.org/pdf/{arxiv_id}" rel="related" type="application/pdf"/>
    <arxiv:primary_category term="cs.LG" scheme="http://arxiv.org/schemas/atom"/>
    <category term="cs.LG" scheme="http://arxiv.org/schemas/atom"/>
    <category term="stat.ML" scheme="http://arxiv.org/schemas/atom"/>
  </entry>
"""


def make_entry(
    arxiv_id: str,
    title: str = "A Paper",
    published: str = "2021-01-01T10:00:00Z",
    updated: str = "2021-01-02T10:00:00Z",
) -> str:
    return ENTRY.format(arxiv_id=arxiv_id, title=title, published=published, updated=updated)


def make_feed(entries: Iterable[str]) -> str:
    return FEED_HEAD + "".join(entries) + "</feed>\n"


class RecordingSleep:
    """Stand-in for asyncio.sleep that returns immediately and records delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def three_paper_feed() -> str:
    return make_feed(
        [
            make_entry("2101.00001v1", title="First Paper"),
            make_entry("2101.00002v2", title="Second Paper"),
            make_entry("2101.00003v1", title="Third Paper"),
        ]
    )


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
