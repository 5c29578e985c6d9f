"""
Format step options: environment defaults, CLI flags override
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import FrozenSet, Optional

from dotenv import load_dotenv

from ..crawl.config import env_flag, env_int

load_dotenv()

DEFAULT_INPUT = os.path.join("data", "thecovenant-export.json")
DEFAULT_OUTPUT = os.path.join("data", "thecovenant-export-formatted.json")
DEFAULT_EXPORT_DIR = os.path.join("data", "exports")


def parse_types(value: Optional[str]) -> Optional[FrozenSet[str]]:
    """Comma-separated, case-insensitive type filter; empty means no filter"""
    if not value:
        return None
    items = frozenset(item.strip().lower() for item in value.split(",") if item.strip())
    return items or None


@dataclass(frozen=True)
class FormatOptions:
    input_path: Path = Path(DEFAULT_INPUT)
    output_path: Path = Path(DEFAULT_OUTPUT)
    out_dir: Path = Path(DEFAULT_EXPORT_DIR)
    emit_ndjson: bool = False
    split_json: bool = False
    min_words: int = 0
    include_types: Optional[FrozenSet[str]] = None

    @classmethod
    def from_env(cls) -> "FormatOptions":
        return cls(
            input_path=Path(os.getenv("SCRAPE_EXPORT_INPUT") or DEFAULT_INPUT),
            output_path=Path(os.getenv("SCRAPE_EXPORT_OUTPUT") or DEFAULT_OUTPUT),
            out_dir=Path(os.getenv("SCRAPE_EXPORT_OUT_DIR") or DEFAULT_EXPORT_DIR),
            emit_ndjson=env_flag("SCRAPE_EXPORT_NDJSON", False),
            split_json=env_flag("SCRAPE_EXPORT_SPLIT_JSON", False),
            min_words=env_int("SCRAPE_EXPORT_MIN_WORDS", 0) or 0,
            include_types=parse_types(os.getenv("SCRAPE_EXPORT_TYPES")),
        )

    def override(
        self,
        input_path: Optional[Path] = None,
        output_path: Optional[Path] = None,
        out_dir: Optional[Path] = None,
        emit_ndjson: Optional[bool] = None,
        split_json: Optional[bool] = None,
        min_words: Optional[int] = None,
        types: Optional[str] = None,
    ) -> "FormatOptions":
        """Return a copy where every non-``None`` flag wins over the current value"""
        changes = {}
        if input_path is not None:
            changes["input_path"] = Path(input_path)
        if output_path is not None:
            changes["output_path"] = Path(output_path)
        if out_dir is not None:
            changes["out_dir"] = Path(out_dir)
        if emit_ndjson is not None:
            changes["emit_ndjson"] = emit_ndjson
        if split_json is not None:
            changes["split_json"] = split_json
        if min_words is not None:
            changes["min_words"] = min_words
        if types is not None:
            changes["include_types"] = parse_types(types)
        return replace(self, **changes)
