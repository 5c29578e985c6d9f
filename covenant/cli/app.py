"""
CLI application for the crawl, format and sync pipeline
"""

import asyncio
import json
import os
from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..content.db_setup import check_database_status, reset_database, setup_database
from ..content.loader import ContentLoader
from ..content.store import open_store
from ..content.sync import ContentSync
from ..core.logger import Logger
from ..crawl.config import CrawlConfig, env_flag
from ..crawl.crawler import PageCrawler
from ..exceptions import ContentSourceError, ExportFormatError, StoreError
from ..formatter.exporter import ExportFormatter
from ..formatter.options import FormatOptions
from .display import Display
from .pipeline import PipelineRunner, summarize_export_file

app = typer.Typer(
    name="covenant",
    help="🕷️ The Covenant content pipeline: crawl, format and sync",
    rich_markup_mode="rich",
    no_args_is_help=True,
)

console = Console()

RAW_EXPORT_FILES = (
    os.path.join("data", "thecovenant-export.json"),
    os.path.join("data", "thecovenant-export-formatted.json"),
)


async def _crawl_site(config: CrawlConfig) -> dict:
    # The crawler's Event and Semaphore must bind to the loop asyncio.run starts
    return await PageCrawler(config).crawl()


def _crawl_config(
    start_url: Optional[str],
    output: Optional[Path],
    max_pages: Optional[int],
    concurrency: Optional[int],
    include_sitemaps: Optional[bool],
    download_images: Optional[bool],
) -> CrawlConfig:
    overrides = {
        "start_url": start_url,
        "output_file": str(output) if output else None,
        "max_pages": max_pages,
        "concurrency": concurrency,
        "include_sitemaps": include_sitemaps,
        "download_images": download_images,
    }
    return replace(CrawlConfig.from_env(), **{name: value for name, value in overrides.items() if value is not None})


@app.command()
def crawl(
    start_url: Optional[str] = typer.Option(None, help="Start URL (SCRAPE_START_URL)"),
    output: Optional[Path] = typer.Option(None, help="Raw export path (SCRAPE_OUTPUT)"),
    max_pages: Optional[int] = typer.Option(None, help="Page budget (SCRAPE_MAX_PAGES)"),
    concurrency: Optional[int] = typer.Option(None, help="Concurrent fetches (SCRAPE_CONCURRENCY)"),
    include_sitemaps: Optional[bool] = typer.Option(None, "--include-sitemaps/--no-include-sitemaps"),
    download_images: Optional[bool] = typer.Option(None, "--download-images/--no-download-images"),
    log_level: str = "INFO",
):
    """Crawl the site and write the raw export"""
    Logger.setup_logging(log_level, "crawl.log")
    config = _crawl_config(start_url, output, max_pages, concurrency, include_sitemaps, download_images)
    Display.show_crawl_config(config)

    report = asyncio.run(_crawl_site(config))
    Display.show_crawl_report(report)
    console.print("✅ Crawl completed!", style="green")


@app.command("format")
def format_export(
    input_path: Optional[Path] = typer.Option(None, "--input", help="Raw export (SCRAPE_EXPORT_INPUT)"),
    output_path: Optional[Path] = typer.Option(None, "--output", help="Formatted export (SCRAPE_EXPORT_OUTPUT)"),
    out_dir: Optional[Path] = typer.Option(None, help="Generic collection directory (SCRAPE_EXPORT_OUT_DIR)"),
    ndjson: Optional[bool] = typer.Option(None, "--ndjson/--no-ndjson", help="Per-type NDJSON files"),
    split_json: Optional[bool] = typer.Option(None, "--split-json/--no-split-json", help="Per-type JSON files"),
    min_words: Optional[int] = typer.Option(None, help="Skip pages with fewer words (SCRAPE_EXPORT_MIN_WORDS)"),
    types: Optional[str] = typer.Option(None, help="Comma-separated type filter (SCRAPE_EXPORT_TYPES)"),
    log_level: str = "INFO",
):
    """Reconcile the raw export into the formatted export and generic collections"""
    Logger.setup_logging(log_level, "format.log")
    options = FormatOptions.from_env().override(
        input_path=input_path,
        output_path=output_path,
        out_dir=out_dir,
        emit_ndjson=ndjson,
        split_json=split_json,
        min_words=min_words,
        types=types,
    )

    try:
        summary = ExportFormatter(options).run()
    except ExportFormatError as e:
        console.print(f"❌ {e}", style="red")
        raise typer.Exit(1)

    Display.show_format_summary(summary)
    console.print("✅ Format completed!", style="green")


@app.command()
def sync(
    export: Optional[Path] = typer.Option(None, help="Formatted export (CONTENT_EXPORT_PATH)"),
    database_url: Optional[str] = typer.Option(None, help="Target database (DATABASE_URL)"),
    log_level: str = "INFO",
):
    """Mirror the formatted export into the database"""
    Logger.setup_logging(log_level, "sync.log")
    loader = ContentLoader(export_path=str(export) if export else os.getenv("CONTENT_EXPORT_PATH"))

    try:
        raw = loader.read_local_export()
        with open_store(database_url or os.getenv("DATABASE_URL")) as store:
            report = ContentSync(store).sync_export(raw)
    except (ContentSourceError, StoreError) as e:
        console.print(f"❌ Sync failed: {e}", style="red")
        raise typer.Exit(1)

    Display.show_sync_report(report.to_dict())
    console.print(f"✅ Sync completed: {report.upserts} upserts, {len(report.deleted)} deleted", style="green")


@app.command()
def full(
    sync_to_db: Optional[bool] = typer.Option(None, "--sync/--no-sync", help="Sync to database (SCRAPE_SYNC_TO_DB)"),
    database_url: Optional[str] = typer.Option(None, help="Target database (DATABASE_URL)"),
    log_level: str = "INFO",
):
    """Run crawl, format and (optionally) database sync, then print a summary"""
    Logger.setup_logging(log_level, "pipeline.log")
    runner = PipelineRunner(
        CrawlConfig.from_env(),
        FormatOptions.from_env(),
        sync_to_db=sync_to_db if sync_to_db is not None else env_flag("SCRAPE_SYNC_TO_DB", False),
        database_url=database_url or os.getenv("DATABASE_URL"),
    )
    if not asyncio.run(runner.run()):
        raise typer.Exit(1)


@app.command("db-setup")
def db_setup(
    reset: bool = typer.Option(False, "--reset", help="Drop and recreate all tables"),
    confirm: bool = typer.Option(False, "--confirm", help="Confirm a reset"),
    database_url: Optional[str] = typer.Option(None, help="Target database (DATABASE_URL)"),
    log_level: str = "INFO",
):
    """Create (or reset) the articles, article_revisions and site_settings tables"""
    Logger.setup_logging(log_level, "db.log")
    if reset and not confirm:
        console.print("❌ Database reset requires confirmation. Use --confirm flag.", style="red")
        raise typer.Exit(1)

    try:
        if reset:
            reset_database(database_url)
        else:
            setup_database(database_url)
    except (StoreError, ValueError) as e:
        console.print(f"❌ Database setup failed: {e}", style="red")
        raise typer.Exit(1)
    console.print("✅ Database ready!", style="green")


@app.command("db-status")
def db_status(
    database_url: Optional[str] = typer.Option(None, help="Target database (DATABASE_URL)"),
    log_level: str = "INFO",
):
    """Show connection and table status"""
    Logger.setup_logging(log_level, "db.log")
    status = check_database_status(database_url)
    Display.show_db_status(status)
    if not status["connected"]:
        raise typer.Exit(1)


@app.command()
def validate(
    database_url: Optional[str] = typer.Option(None, help="Target database (DATABASE_URL)"),
    log_level: str = "INFO",
):
    """Check the database, the export files and the schema before syncing"""
    Logger.setup_logging(log_level, "validate.log")
    url = database_url or os.getenv("DATABASE_URL")
    results = {
        "Database connection": False,
        "Export files": all(Path(path).exists() for path in RAW_EXPORT_FILES),
        "Schema": False,
        "No duplicate slugs": False,
    }
    latest = None

    for path in RAW_EXPORT_FILES:
        if Path(path).exists():
            console.print(f"  📄 {path} ({Path(path).stat().st_size / 1024:.2f} KB)", style="dim")
        else:
            console.print(f"  ⚠️ {path} not found", style="yellow")

    try:
        with open_store(url) as store:
            results["Database connection"] = store.ping()
            counts = store.table_counts()
            results["Schema"] = all(count is not None for count in counts.values())
            if results["Schema"]:
                duplicates = store.duplicate_slugs()
                results["No duplicate slugs"] = not duplicates
                for duplicate in duplicates:
                    console.print(f"  ❌ \"{duplicate['slug']}\": {duplicate['count']} entries", style="red")
                latest = store.latest_articles(5)
            else:
                console.print("  💡 Run: python scripts/run.py db-setup", style="yellow")
    except StoreError as e:
        console.print(f"❌ {e}", style="red")

    Display.show_validation(results, latest)
    if not all(results.values()):
        raise typer.Exit(1)


@app.command("summary")
def summary(
    export: Path = typer.Option(Path(RAW_EXPORT_FILES[0]), help="Raw export to summarize"),
    as_json: bool = typer.Option(False, "--json", help="Print the summary as JSON"),
):
    """Summarize a raw crawl export"""
    result = summarize_export_file(export)
    if result is None:
        Display.show_export_summary(result)
        raise typer.Exit(1)
    if as_json:
        console.print_json(json.dumps(result))
        return
    Display.show_export_summary(result)
