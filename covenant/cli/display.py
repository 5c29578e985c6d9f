from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()


def _bool(value: bool) -> str:
    return "✅" if value else "❌"


class Display:
    @staticmethod
    def show_crawl_config(config):
        table = Table(title="⚙️ Crawl Configuration", show_header=False)
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Start URL", config.start_url)
        table.add_row("Output", config.output_file)
        table.add_row("Max pages", str(config.max_pages))
        table.add_row("Concurrency", str(config.concurrency))
        table.add_row("Timeout", f"{config.timeout:.1f}s")
        table.add_row("Sitemaps", _bool(config.include_sitemaps))
        table.add_row("Download images", _bool(config.download_images))
        if config.extra_seeds:
            table.add_row("Extra seeds", ", ".join(config.extra_seeds))

        console.print(table)
        console.print()

    @staticmethod
    def show_crawl_report(report: Dict[str, Any]):
        summary = report.get("crawl_summary", {})
        table = Table(title="🕷️ Crawl Report", show_header=True, header_style="bold blue")
        table.add_column("Metric", style="cyan", no_wrap=True)
        table.add_column("Value", style="green")

        table.add_row("Pages recorded", str(summary.get("total_pages", 0)))
        table.add_row("Pages crawled", str(summary.get("pages_crawled", 0)))
        table.add_row("Errors", str(summary.get("errors", 0)))
        table.add_row("Dropped over budget", str(summary.get("dropped_over_budget", 0)))
        table.add_row("Duration", f"{summary.get('duration_seconds', 0):.1f}s")
        images = report.get("image_stats")
        if images:
            table.add_row(
                "Images",
                f"{images['downloaded']} downloaded | {images['failed']} failed | {images['skipped']} skipped",
            )
        table.add_row("Output", report.get("output_file", ""))
        console.print(table)

    @staticmethod
    def show_format_summary(summary: Dict[str, Any]):
        table = Table(title="🧹 Format Summary", show_header=True, header_style="bold blue")
        table.add_column("Metric", style="cyan", no_wrap=True)
        table.add_column("Value", style="green")

        table.add_row("Pages", str(summary["pages"]))
        table.add_row("Assets", str(summary["assets"]))
        table.add_row("Generic entries", str(summary["entries"]))
        for page_type, count in sorted(summary["types"].items()):
            table.add_row(f"  {page_type}", str(count))
        console.print(table)
        for path in summary["files"]:
            console.print(f"  📄 {path}", style="dim")

    @staticmethod
    def show_sync_report(report: Dict[str, Any]):
        table = Table(title="🗄️ Sync Report", show_header=True, header_style="bold blue")
        table.add_column("Metric", style="cyan", no_wrap=True)
        table.add_column("Value", style="green")

        table.add_row("Created", str(len(report["created"])))
        table.add_row("Updated", str(len(report["updated"])))
        table.add_row("Unchanged", str(len(report["unchanged"])))
        table.add_row("Deleted", str(len(report["deleted"])))
        table.add_row("Site settings updated", _bool(report["settings_updated"]))
        console.print(table)

    @staticmethod
    def show_export_summary(summary: Optional[Dict[str, Any]]):
        if summary is None:
            console.print("⚠️ Raw export not found, no summary available", style="yellow")
            return

        lines = [
            f"Pages crawled: {summary['total_pages']}",
            f"Errors detected: {summary['errors']}",
        ]
        images = summary.get("image_stats")
        if images:
            lines.append(
                f"Images downloaded: {images.get('downloaded', 0)} | failed: {images.get('failed', 0)} "
                f"| skipped: {images.get('skipped', 0)}"
            )
        if summary.get("crawled_at"):
            lines.append(f"Crawled at: {summary['crawled_at']}")
        if summary["content_types"]:
            lines.append("Top content-types:")
            lines.extend(f"  {name}: {count}" for name, count in summary["content_types"])
        if summary["hosts"]:
            lines.append("Top hosts:")
            lines.extend(f"  {name}: {count}" for name, count in summary["hosts"])

        console.print(Panel("\n".join(lines), title="📈 Crawl Summary", border_style="bold green", padding=(1, 2)))

    @staticmethod
    def show_db_status(status: Dict[str, Any]):
        table = Table(title="🗄️ Database Status", show_header=True, header_style="bold blue")
        table.add_column("Table", style="cyan", no_wrap=True)
        table.add_column("Status", justify="center")
        table.add_column("Rows", style="green")

        if not status["connected"]:
            console.print(f"❌ Connection failed: {status['error']}", style="red")
            return
        for table_name, count in status["tables"].items():
            table.add_row(table_name, "✅ Exists" if count is not None else "❌ Missing", "" if count is None else str(count))
        console.print(table)

    @staticmethod
    def show_validation(results: Dict[str, bool], latest=None):
        table = Table(title="🔍 Sync Setup Validation", show_header=True, header_style="bold blue")
        table.add_column("Check", style="cyan", no_wrap=True)
        table.add_column("Result", justify="center")
        for name, ok in results.items():
            table.add_row(name, "✅" if ok else "❌")
        console.print(table)

        if latest:
            sample = Table(title="📄 Latest updated articles", show_header=True, header_style="bold magenta")
            sample.add_column("Slug", style="cyan")
            sample.add_column("Title")
            sample.add_column("Category", style="dim")
            sample.add_column("Updated", style="dim")
            for row in latest:
                sample.add_row(
                    str(row.get("slug")),
                    str(row.get("title")),
                    row.get("category") or "-",
                    str(row.get("updatedAt") or ""),
                )
            console.print(sample)
