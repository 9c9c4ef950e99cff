from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from dseplannr.core.cutoff_store import (
    CutoffStore,
    estimate_dse_level,
    has_subject_cutoff_data,
    normalize_subject_code,
)
from dseplannr.core.levels import is_valid_level, level_rank


SORT_KEYS = ("date", "exam_year", "percentage")


class AttemptPayload(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    subject_code: str = Field(min_length=1)
    exam_year: int = Field(ge=1900, le=2100)
    paper_label: str = Field(min_length=1)
    attempt_date: date
    score: float = Field(ge=0)
    total: float = Field(gt=0)
    is_dse: bool = True
    manual_grade: Optional[str] = None
    tag: str = ""
    notes: str = ""

    @model_validator(mode="after")
    def _score_within_total(self) -> "AttemptPayload":
        if self.score > self.total:
            raise ValueError("Score cannot be greater than total marks.")
        return self


@dataclass(frozen=True)
class PastPaperAttempt:
    id: str
    subject_code: str
    exam_year: int
    paper_label: str
    attempt_date: date
    score: float
    total: float
    percentage: float
    estimated_level: str
    is_dse: bool = True
    tag: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class AttemptSummary:
    average_percentage: float
    total_attempts: int
    top_level: str


def calc_percentage(score: float, total: float) -> float:
    if total <= 0:
        raise ValueError("Total marks must be greater than 0")
    return (score / total) * 100


def requires_manual_grade(store: CutoffStore, subject_code: str, exam_year: int, is_dse: bool = True) -> bool:
    """Non-DSE papers and years without subject cut-offs need a grade typed in."""
    return not is_dse or not has_subject_cutoff_data(store, subject_code, exam_year)


def build_attempt(
    payload: AttemptPayload,
    store: CutoffStore,
    *,
    attempt_id: Optional[str] = None,
) -> PastPaperAttempt:
    code = normalize_subject_code(payload.subject_code)
    percentage = calc_percentage(payload.score, payload.total)

    if requires_manual_grade(store, code, payload.exam_year, payload.is_dse):
        level = (payload.manual_grade or "").strip()
        if not is_valid_level(level):
            raise ValueError(f"A valid grade is required for {code} {payload.exam_year}")
    else:
        level = estimate_dse_level(code, percentage, store, payload.exam_year)

    return PastPaperAttempt(
        id=attempt_id or uuid4().hex,
        subject_code=code,
        exam_year=payload.exam_year,
        paper_label=payload.paper_label,
        attempt_date=payload.attempt_date,
        score=payload.score,
        total=payload.total,
        percentage=percentage,
        estimated_level=level,
        is_dse=payload.is_dse,
        tag=payload.tag or None,
        notes=payload.notes or None,
    )


def filter_attempts(attempts: Iterable[PastPaperAttempt], subject_code: Optional[str] = None) -> List[PastPaperAttempt]:
    if subject_code is None:
        return list(attempts)
    code = normalize_subject_code(subject_code)
    return [a for a in attempts if a.subject_code == code]


def summarize_attempts(
    attempts: Iterable[PastPaperAttempt],
    subject_code: Optional[str] = None,
) -> Optional[AttemptSummary]:
    items = filter_attempts(attempts, subject_code)
    if not items:
        return None
    average = sum(a.percentage for a in items) / len(items)
    top = max(items, key=lambda a: level_rank(a.estimated_level)).estimated_level
    return AttemptSummary(average_percentage=average, total_attempts=len(items), top_level=top)


def sort_attempts(
    attempts: Iterable[PastPaperAttempt],
    key: str = "date",
    *,
    descending: bool = False,
    subject_code: Optional[str] = None,
) -> List[PastPaperAttempt]:
    if key not in SORT_KEYS:
        raise ValueError(f"Unsupported sort key: {key}. Use {', '.join(SORT_KEYS)}.")
    field_name = "attempt_date" if key == "date" else key
    return sorted(filter_attempts(attempts, subject_code), key=lambda a: getattr(a, field_name), reverse=descending)
