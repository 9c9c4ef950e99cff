"""
In-memory grade-boundary store and the queries answered against it.

The store is always year-keyed: subject code -> exam year -> cutoff rows.
Year-independent (legacy) tables are filed under LEGACY_YEAR when parsed,
so every query goes through the same lookup path.
"""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from dseplannr.core.levels import GENERIC_CUTOFFS, UNCLASSIFIED, CutoffRow

logger = logging.getLogger(__name__)

SubjectCutoffs = Dict[int, List[CutoffRow]]
CutoffStore = Dict[str, SubjectCutoffs]

LEGACY_YEAR = 0


def normalize_subject_code(subject_code: str) -> str:
    return subject_code.strip().upper()


def _default_year(exam_year: Optional[int]) -> int:
    return exam_year if exam_year is not None else date.today().year


def merge_cutoff_data(base: CutoffStore, extra: CutoffStore) -> CutoffStore:
    """Union of both stores; where a subject and year collide, `extra` wins."""
    merged: CutoffStore = {code: dict(by_year) for code, by_year in base.items()}
    for code, by_year in extra.items():
        target = merged.setdefault(code, {})
        for year, rows in by_year.items():
            target[int(year)] = rows
    return merged


def merge_all(stores: Iterable[CutoffStore]) -> CutoffStore:
    merged: CutoffStore = {}
    for store in stores:
        merged = merge_cutoff_data(merged, store)
    return merged


def has_subject_cutoff_data(
    store: CutoffStore,
    subject_code: str,
    exam_year: Optional[int] = None,
) -> bool:
    if not store:
        return False
    by_year = store.get(normalize_subject_code(subject_code))
    if not by_year:
        return False
    return _default_year(exam_year) in by_year


def cutoff_rows_for_year(
    store: CutoffStore,
    subject_code: str,
    exam_year: int,
) -> Optional[List[CutoffRow]]:
    by_year = store.get(normalize_subject_code(subject_code))
    if not by_year:
        return None

    if exam_year in by_year:
        return by_year[exam_year]

    years = sorted(by_year.keys(), reverse=True)
    nearest = years[0]
    for year in years[1:]:
        # Strict improvement only: on a tie the higher year, seen first, is kept.
        if abs(year - exam_year) < abs(nearest - exam_year):
            nearest = year
    logger.debug("No %s cutoffs for %s; using %s", subject_code, exam_year, nearest)
    return by_year[nearest]


def _first_matching_level(percentage: float, rows: Iterable[CutoffRow]) -> str:
    for row in rows:
        if percentage >= row.minimum_percentage:
            return row.level.value
    return UNCLASSIFIED


def estimate_dse_level(
    subject_code: str,
    percentage: float,
    store: CutoffStore,
    exam_year: Optional[int] = None,
) -> str:
    rows = cutoff_rows_for_year(store, subject_code, _default_year(exam_year))
    if rows is None:
        return _first_matching_level(percentage, GENERIC_CUTOFFS)
    return _first_matching_level(percentage, rows)
