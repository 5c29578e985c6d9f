"""
Export formatter: raw crawl export -> formatted export + generic collections
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from ..exceptions import ExportFormatError
from .generic import build_generic_entry, entry_sort_key, group_by_type
from .options import FormatOptions
from .reconcile import PageReconciler
from .text import prune_empty

FORMATTED_FILENAME = "thecovenant-export-formatted.json"
GENERIC_FILENAME = "generic.json"


def write_json(path: Path, payload) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
        f.write("\n")
    return path


def write_ndjson(path: Path, records: List[Dict]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for record in records:
            f.write(json.dumps(record, ensure_ascii=False))
            f.write("\n")
    return path


def load_raw_export(path: Path) -> Dict:
    """Read the raw crawl export, failing on anything the formatter cannot use"""
    path = Path(path)
    if not path.exists():
        raise ExportFormatError(f"Export file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except ValueError as e:
        raise ExportFormatError(f"Export file is not valid JSON: {path} ({e})") from e
    if not isinstance(data, dict) or not isinstance(data.get("pages"), list):
        raise ExportFormatError(f'Export file has no "pages" array: {path}')
    return data


class ExportFormatter:
    """Runs the formatting step and writes every output file"""

    def __init__(self, options: Optional[FormatOptions] = None):
        self.options = options or FormatOptions.from_env()
        self.logger = logging.getLogger(__name__)

    def format_export(self, raw: Dict) -> Dict:
        """Build the formatted export document from a raw export"""
        primary_url = raw.get("startUrl")
        pages, assets = PageReconciler(primary_url).reconcile(raw["pages"])
        formatted = {
            "source": prune_empty({
                "startUrl": primary_url,
                "crawledAt": raw.get("crawledAt"),
                "totalPages": raw.get("totalPages"),
                "settings": raw.get("settings"),
            }),
            "generatedAt": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "pages": pages,
        }
        if assets:
            formatted["assets"] = assets
        return formatted

    def generic_entries(self, pages: List[Dict]) -> List[Dict]:
        """Min-words filter before projection, type filter after classification"""
        min_words = self.options.min_words
        if min_words > 0:
            pages = [page for page in pages if (page.get("wordCount") or 0) >= min_words]
        entries = []
        for page in pages:
            entry = build_generic_entry(page, self.options.include_types)
            if entry:
                entries.append(entry)
        return sorted(entries, key=entry_sort_key)

    def write_generic(self, entries: List[Dict], formatted: Dict) -> List[Path]:
        out_dir = Path(self.options.out_dir)
        base = {"generatedAt": formatted["generatedAt"], "source": formatted["source"]}
        written = [write_json(out_dir / GENERIC_FILENAME, {**base, "total": len(entries), "entries": entries})]
        self.logger.info(f"Generic collection exported ({len(entries)} entries) to {out_dir / GENERIC_FILENAME}")

        groups = group_by_type(entries)
        if self.options.split_json:
            for page_type, items in groups.items():
                path = write_json(out_dir / f"{page_type}.json", {**base, "total": len(items), "entries": items})
                written.append(path)
                self.logger.info(f"Collection {page_type} exported ({len(items)} entries) to {path}")
        if self.options.emit_ndjson:
            for page_type, items in groups.items():
                path = write_ndjson(out_dir / f"{page_type}.ndjson", items)
                written.append(path)
                self.logger.info(f"Collection {page_type} exported as NDJSON ({len(items)} lines) to {path}")
        return written

    def run(self) -> Dict:
        """Format the raw export on disk; raises ``ExportFormatError`` on bad input"""
        raw = load_raw_export(self.options.input_path)
        formatted = self.format_export(raw)
        write_json(Path(self.options.output_path), formatted)
        self.logger.info(f"Formatted export saved to {self.options.output_path}")

        entries = self.generic_entries(formatted["pages"])
        written = self.write_generic(entries, formatted)
        return {
            "pages": len(formatted["pages"]),
            "assets": len(formatted.get("assets", [])),
            "entries": len(entries),
            "types": {page_type: len(items) for page_type, items in group_by_type(entries).items()},
            "files": [str(path) for path in [Path(self.options.output_path), *written]],
        }
