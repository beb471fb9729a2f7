"""CLI entrypoint for arxiv-ingest.

Subcommands: search, download, ingest, status. Settings come from
``ARXIV_INGEST_*`` environment variables, overridden by explicit flags.
"""
import argparse
import asyncio
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .client import ArxivClient
from .config import IngestSettings
from .errors import ArxivIngestError
from .feed import pdf_url_for
from .ingest import ingest_query
from .log import configure_logging
from .models import PaperRecord, normalize_arxiv_id
from .store import MetadataStore

console = Console()


async def _search_mode(settings: IngestSettings, query: str, max_results: int, start: int, persist: bool, dry_run: bool) -> int:
    if dry_run:
        console.print(f"[yellow]Dry run:[/yellow] would search query='{query}' max_results={max_results} start={start}")
        return 0

    async with ArxivClient.from_settings(settings) as client:
        if persist:
            store = MetadataStore(settings.metadata_path)
            records = await client.search_and_store(query, max_results, start, store)
        else:
            records = await client.search(query, max_results=max_results, start=start)

    for r in records:
        console.print(f"- {r.arxiv_id}: {r.title}")
    if persist:
        console.print(f"[green]Stored {len(records)} papers in[/green] {settings.metadata_path}")
    return 0


def _record_for_id(arxiv_id: str) -> PaperRecord:
    # old-style ids keep their archive prefix (hep-th/9901001) in the URL
    entry_id = arxiv_id if "://" in arxiv_id else f"http://arxiv.org/abs/{arxiv_id}"
    return PaperRecord(id=entry_id, pdf_url=pdf_url_for(entry_id))


async def _download_mode(settings: IngestSettings, arxiv_id: str, dry_run: bool) -> int:
    record = _record_for_id(arxiv_id.strip())
    if dry_run:
        console.print(f"[yellow]Dry run:[/yellow] would fetch {record.pdf_url} and save to {settings.output_dir}")
        return 0

    store = MetadataStore(settings.metadata_path)
    known = normalize_arxiv_id(record.id) in store
    async with ArxivClient.from_settings(settings) as client:
        dest = await client.download_pdf(record, settings.output_dir, store=store if known else None)
    console.print(f"[green]Downloaded:[/green] {dest}")
    return 0


async def _ingest_mode(settings: IngestSettings, query: str, max_results: int, start: int, extract: bool, dry_run: bool) -> int:
    if dry_run:
        console.print(f"[yellow]Dry run:[/yellow] would ingest query='{query}' max_results={max_results} -> {settings.output_dir}")
        return 0

    store = MetadataStore(settings.metadata_path)
    async with ArxivClient.from_settings(settings) as client:
        results = await ingest_query(
            query, store, max_results=max_results, start=start, output_dir=settings.output_dir, client=client, extract=extract
        )

    console.print(f"[green]Ingested {sum(r.success for r in results)}/{len(results)} papers into[/green] {settings.output_dir}")
    for r in results:
        mark = "[green]ok[/green]" if r.success else f"[red]failed: {r.error}[/red]"
        console.print(f"- {r.record.arxiv_id}: {r.record.title} ({mark})")
    return 0 if all(r.success for r in results) else 1


def _status_mode(settings: IngestSettings) -> int:
    store = MetadataStore(settings.metadata_path)
    console.print(f"Papers: {store.count()}  Downloaded: {store.count_downloaded()}")

    table = Table("arXiv id", "title", "pdf", "bytes")
    for p in store.list_papers():
        if p.is_downloaded:
            table.add_row(p.arxiv_id, p.title, p.pdf_path, str(p.file_size))
    if table.row_count:
        console.print(table)
    return 0


async def run(args: argparse.Namespace, settings: IngestSettings) -> int:
    try:
        if args.command == "search":
            return await _search_mode(settings, args.query, args.max_results, args.start, args.store, args.dry_run)
        if args.command == "download":
            return await _download_mode(settings, args.id, args.dry_run)
        if args.command == "ingest":
            return await _ingest_mode(settings, args.query, args.max_results, args.start, args.extract, args.dry_run)
        return _status_mode(settings)
    except ArxivIngestError as exc:
        console.print(f"[red]{args.command} failed:[/red] {exc}")
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="arxiv-ingest")
    parser.add_argument("--dry-run", action="store_true", help="Show actions without touching the network")
    parser.add_argument("--metadata", default=None, help="Path to the JSON metadata store")
    parser.add_argument("--output", default=None, help="Output directory for PDFs")
    parser.add_argument("--delay", type=float, default=None, help="Seconds to pause after each arXiv request")
    parser.add_argument("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ...)")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")

    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Search arXiv and print the results")
    search.add_argument("query")
    search.add_argument("--max-results", type=int, default=10)
    search.add_argument("--start", type=int, default=0, help="Zero-based result offset")
    search.add_argument("--store", action="store_true", help="Persist the results in the metadata store")

    download = sub.add_parser("download", help="Download one paper's PDF")
    download.add_argument("id", help="arXiv id (e.g., 2101.00001)")

    ingest = sub.add_parser("ingest", help="Search, store metadata and download PDFs")
    ingest.add_argument("query")
    ingest.add_argument("--max-results", type=int, default=10)
    ingest.add_argument("--start", type=int, default=0, help="Zero-based result offset")
    ingest.add_argument("--extract", action="store_true", help="Also extract PDF text to <output>/texts")

    sub.add_parser("status", help="Show metadata store counts")
    return parser


def resolve_settings(args: argparse.Namespace) -> IngestSettings:
    overrides = {
        "metadata_path": Path(args.metadata) if args.metadata else None,
        "output_dir": Path(args.output) if args.output else None,
        "rate_limit_delay": args.delay,
        "log_level": args.log_level,
        "log_file": Path(args.log_file) if args.log_file else None,
    }
    settings = IngestSettings.from_env()
    return settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    if getattr(args, "max_results", 1) < 1:
        console.print("[red]--max-results must be at least 1.[/red]")
        sys.exit(2)

    settings = resolve_settings(args)
    configure_logging(settings.log_level, settings.log_file)

    exit_code = asyncio.run(run(args, settings))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
