"""
Parsers for the historical HKDSE cut-off documents.

Three layouts are recognised:

    compulsory  ``## 1. 中國語文`` sections holding ``| 2023 | 100 | 71 (85%) | ... |`` rows
    elective    ``### Physics 物理`` sections holding the same row layout
    legacy      ``## Physics (PHY)`` sections holding ``| 5** | 88 |`` rows

Every parser scans line by line and skips whatever it does not recognise.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from dseplannr.core.cutoff_store import LEGACY_YEAR, CutoffStore
from dseplannr.core.levels import LEVEL_COLUMNS, CutoffRow, DseLevel, normalize_rows

logger = logging.getLogger(__name__)

MIN_YEAR = 2012
MAX_YEAR = 2030

SECTION_TO_CODE: Dict[int, str] = {
    1: "CHI",
    2: "ENG",
    3: "MATH",
    4: "CHEM",
    5: "BIO",
}

# Longer names first so "CHINESE HISTORY" is not taken for "HISTORY".
ELECTIVE_HEADING_TO_CODE: Tuple[Tuple[str, str], ...] = (
    ("CHINESE HISTORY", "CHIST"),
    ("CHINESE LITERATURE", "CHILIT"),
    ("PHYSICS", "PHY"),
    ("ECONOMICS", "ECON"),
    ("BAFS", "BAFS"),
    ("HISTORY", "HIST"),
    ("GEOGRAPHY", "GEOG"),
    ("ICT", "ICT"),
    ("M1", "M1"),
    ("M2", "M2"),
)

MISSING_TOKENS = {"", "-", "—", "–", "N/A", "NA"}

_COMPULSORY_HEADING = re.compile(r"^##\s+(\d+)\.\s+.+")
_ELECTIVE_HEADING = re.compile(r"^###\s+(.+)$")
_LEGACY_HEADING = re.compile(r"^##\s+.+\(([^)]+)\)\s*$")
_YEAR_ROW = re.compile(r"^\|\s*(\d{4})\s*\|")
_LEGACY_ROW = re.compile(r"^\|\s*(5\*\*|5\*|5|4|3|2|1)\s*\|\s*([0-9]+(?:\.[0-9]+)?)\s*\|")
_PERCENTAGE = re.compile(r"\(\s*(\d+(?:\.\d+)?)\s*%\s*\)")
_CJK = re.compile("[\u4e00-\u9fff]")
_TRAILING_PARENTHETICAL = re.compile(r"\s*\([^)]*\)\s*$")

_COMPULSORY_SIGNATURE = re.compile(r"^# HKDSE 歷年 Cut-Off|^##\s+1\.\s+中國語文", re.MULTILINE)
_ELECTIVE_SIGNATURE = re.compile(r"HKDSE Historical Cut-Off|### Physics")


def _lines(text: str):
    for raw in text.splitlines():
        yield raw.strip()


def parse_percentage_cell(cell: str) -> Optional[float]:
    """Return the percentage from a cell such as ``470 (71%)``, or None."""
    trimmed = cell.strip()
    if trimmed.upper() in MISSING_TOKENS:
        return None
    match = _PERCENTAGE.search(trimmed)
    if not match:
        return None
    return float(match.group(1))


def _parse_year_row(line: str) -> Optional[Tuple[int, List[CutoffRow]]]:
    if not _YEAR_ROW.match(line):
        return None

    parts = [part.strip() for part in line.split("|")]
    if len(parts) < 3:
        return None

    year = int(parts[1])
    if year < MIN_YEAR or year > MAX_YEAR:
        logger.debug("Skipping row with out-of-range year %s", year)
        return None

    rows: List[CutoffRow] = []
    for offset, level in enumerate(LEVEL_COLUMNS):
        index = offset + 3
        cell = parts[index] if index < len(parts) else ""
        percentage = parse_percentage_cell(cell)
        if percentage is not None:
            rows.append(CutoffRow(level, percentage))

    if not rows:
        logger.debug("Skipping %s row without any percentage", year)
        return None
    return year, normalize_rows(rows)


def parse_compulsory_cutoffs(text: str) -> CutoffStore:
    data: CutoffStore = {}
    current_code: Optional[str] = None

    for line in _lines(text):
        heading = _COMPULSORY_HEADING.match(line)
        if heading:
            current_code = SECTION_TO_CODE.get(int(heading.group(1)))
            if current_code is None:
                logger.debug("Ignoring unknown compulsory section: %s", line)
            else:
                data.setdefault(current_code, {})
            continue

        if current_code is None:
            continue

        parsed = _parse_year_row(line)
        if parsed:
            year, rows = parsed
            data[current_code][year] = rows

    return {code: by_year for code, by_year in data.items() if by_year}


def elective_code_for_heading(heading: str) -> Optional[str]:
    before_chinese = _CJK.split(heading, maxsplit=1)[0].strip()
    normalized = _TRAILING_PARENTHETICAL.sub("", before_chinese).strip().upper()
    for name, code in ELECTIVE_HEADING_TO_CODE:
        if normalized == name or normalized.startswith(name + " "):
            return code
    return None


def parse_elective_cutoffs(text: str) -> CutoffStore:
    data: CutoffStore = {}
    current_code: Optional[str] = None

    for line in _lines(text):
        heading = _ELECTIVE_HEADING.match(line)
        if heading:
            current_code = elective_code_for_heading(heading.group(1))
            if current_code is None:
                logger.debug("Ignoring unknown elective heading: %s", line)
            else:
                data.setdefault(current_code, {})
            continue

        if current_code is None:
            continue

        parsed = _parse_year_row(line)
        if parsed:
            year, rows = parsed
            data[current_code][year] = rows

    return {code: by_year for code, by_year in data.items() if by_year}


def parse_legacy_cutoffs(text: str) -> CutoffStore:
    flat: Dict[str, List[CutoffRow]] = {}
    current_code: Optional[str] = None

    for line in _lines(text):
        heading = _LEGACY_HEADING.match(line)
        if heading:
            current_code = heading.group(1).strip().upper()
            flat.setdefault(current_code, [])
            continue

        if current_code is None:
            continue

        row = _LEGACY_ROW.match(line)
        if row:
            flat[current_code].append(CutoffRow(DseLevel(row.group(1)), float(row.group(2))))

    return {code: {LEGACY_YEAR: normalize_rows(rows)} for code, rows in flat.items() if rows}


def looks_like_compulsory_document(text: str) -> bool:
    return bool(_COMPULSORY_SIGNATURE.search(text))


def looks_like_elective_document(text: str) -> bool:
    return bool(_ELECTIVE_SIGNATURE.search(text))


def parse_primary_document(text: str) -> CutoffStore:
    if looks_like_compulsory_document(text):
        return parse_compulsory_cutoffs(text)
    return parse_legacy_cutoffs(text)
