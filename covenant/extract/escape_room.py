"""
Escape-room table extractors

Review pages carry two tables: a "datos generales" table with category,
province, duration, players and booking link, and a "puntuación" table whose
scores are drawn as star widgets. The score lives in the widget's
``--rating`` custom property, not in the visible text.
"""

import re
import unicodedata
from typing import Dict, Optional

from ..crawl.url_utils import to_absolute_url
from .dom import Document, Node, collapse

RATING_MAX = 5

SCORING_KEYS = {
    "dificultad": "difficulty",
    "terror": "terror",
    "miedo": "terror",
    "inmersion": "immersion",
    "ambientacion": "immersion",
    "diversion": "fun",
    "enigmas": "puzzles",
    "puzzles": "puzzles",
    "pruebas": "puzzles",
    "gmaster": "gameMaster",
    "gamemaster": "gameMaster",
    "global": "global",
}

_RATING_STYLE = re.compile(r"--rating\s*:\s*([0-9]+(?:[.,][0-9]+)?)")
_HOURS = re.compile(r"(\d+)\s*(hora|horas)")
_MINUTES = re.compile(r"(\d+)\s*(minuto|minutos|min)")
_BARE_NUMBER = re.compile(r"(?:^|\D)(\d+)(?:\D|$)")
_PLAYER_RANGE = re.compile(r"(\d+)\s*-\s*(\d+)")
_SINGLE_NUMBER = re.compile(r"(\d+)")


def strip_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _comparable(value: Optional[str]) -> str:
    return strip_accents(collapse(value)).lower()


def _header_text(table: Node) -> str:
    header_cells = table.select("thead th") or table.select("th")
    return _comparable(" ".join(cell.raw_text() for cell in header_cells))


def _data_rows(table: Node):
    return table.select("tbody tr") or table.select("tr")


def find_general_table(doc: Node) -> Optional[Node]:
    for table in doc.select("table"):
        header = _header_text(table)
        if "datos generales" in header and "escape room" in header:
            return table
    return None


def find_scoring_table(doc: Node) -> Optional[Node]:
    """Header match first, else the first table with at least three star widgets.

    The widget-count fallback is an approximation: an unrelated table that
    happens to hold three or more star widgets is taken as the scoring table.
    """
    general = find_general_table(doc)
    tables = doc.select("table")
    for table in tables:
        if "puntuacion escape room" in _header_text(table):
            return table
    for table in tables:
        if general is not None and table == general:
            continue
        if len(table.select('[style*="--rating"]')) >= 3:
            return table
    return None


def parse_duration_minutes(text: Optional[str]) -> Optional[int]:
    """``2 horas`` -> 120, ``45 minutos`` -> 45, ``80 min`` -> 80, ``80`` -> 80"""
    value = (text or "").lower()
    match = _HOURS.search(value)
    if match:
        return int(match.group(1)) * 60
    match = _MINUTES.search(value)
    if match:
        return int(match.group(1))
    match = _BARE_NUMBER.search(value)
    if match:
        return int(match.group(1))
    return None


def parse_players(text: Optional[str]):
    """Return ``(min, max)``; a single number is both bounds"""
    value = (text or "").lower()
    match = _PLAYER_RANGE.search(value)
    if match:
        return int(match.group(1)), int(match.group(2))
    match = _SINGLE_NUMBER.search(value)
    if match:
        number = int(match.group(1))
        return number, number
    return None, None


def extract_general_data(doc: Document, page_url: Optional[str]) -> Optional[Dict]:
    """Parse the general-data table, or ``None`` when absent or empty"""
    table = find_general_table(doc)
    if table is None:
        return None
    rows = _data_rows(table)
    if not rows:
        return None

    info = {
        "category": None,
        "province": None,
        "durationText": None,
        "durationMinutes": None,
        "playersText": None,
        "minPlayers": None,
        "maxPlayers": None,
        "webLink": None,
        "raw": None,
    }
    for row in rows:
        cells = row.select("td")
        if len(cells) < 2:
            continue
        label = _comparable(cells[0].raw_text())
        if not label:
            continue
        value_cell = cells[1]
        value = value_cell.text() or None

        if "categoria" in label:
            info["category"] = value
        elif "provincia" in label:
            info["province"] = value
        elif "duracion" in label:
            info["durationText"] = value
            info["durationMinutes"] = parse_duration_minutes(value)
        elif "jugadores" in label:
            info["playersText"] = value
            info["minPlayers"], info["maxPlayers"] = parse_players(value)
        elif "web" in label:
            anchor = value_cell.select_one("a[href]")
            if anchor is not None:
                info["webLink"] = to_absolute_url(anchor.attr("href"), page_url)

    info["raw"] = table.inner_html()
    meaningful = any(info[key] for key in ("category", "province", "durationText", "playersText", "webLink"))
    return info if meaningful else None


def scoring_key(label: Optional[str]) -> Optional[str]:
    """Map a row label to its category key, exact lookup then containment"""
    compact = re.sub(r"[^a-z0-9]", "", _comparable(label))
    if not compact:
        return None
    if compact in SCORING_KEYS:
        return SCORING_KEYS[compact]
    for needle, key in SCORING_KEYS.items():
        if needle in compact:
            return key
    return None


def rating_value(node: Node) -> Optional[float]:
    """Read ``--rating`` from the first star widget under ``node``"""
    candidates = node.select('[style*="--rating"]')
    if node.attr("style") and "--rating" in node.attr("style"):
        candidates.insert(0, node)
    for candidate in candidates:
        match = _RATING_STYLE.search(candidate.attr("style") or "")
        if match:
            try:
                return float(match.group(1).replace(",", "."))
            except ValueError:
                continue
    return None


def extract_scoring(doc: Document) -> Optional[Dict]:
    """Parse the star-widget scoring table.

    Returns a flat mapping of category key to ``{value, max, ratio, label}``
    plus ``rawHtml``, or ``None`` when no category yields a value.
    """
    table = find_scoring_table(doc)
    if table is None:
        return None

    scoring: Dict = {}
    for row in _data_rows(table):
        cells = row.select("td, th")
        if len(cells) < 2:
            continue
        label = cells[0].text()
        key = scoring_key(label)
        if key is None or key in scoring:
            continue
        value = None
        for cell in cells[1:]:
            value = rating_value(cell)
            if value is not None:
                break
        if value is None:
            continue
        scoring[key] = {
            "value": value,
            "max": RATING_MAX,
            "ratio": value / RATING_MAX,
            "label": label,
        }

    if not scoring:
        return None
    scoring["rawHtml"] = table.inner_html()
    return scoring


def overall_score(scoring: Optional[Dict]) -> Optional[Dict]:
    """The category whose label reads as "global", regardless of row order"""
    if not scoring:
        return None
    for key, value in scoring.items():
        if key == "rawHtml" or not isinstance(value, dict):
            continue
        if "global" in _comparable(value.get("label")):
            return value
    return None
