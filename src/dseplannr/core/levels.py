from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Tuple


class DseLevel(str, Enum):
    L5_STAR_STAR = "5**"
    L5_STAR = "5*"
    L5 = "5"
    L4 = "4"
    L3 = "3"
    L2 = "2"
    L1 = "1"


LEVEL_ORDER: Tuple[DseLevel, ...] = tuple(DseLevel)

# Grade columns carried by the historical tables (no level 1 column).
LEVEL_COLUMNS: Tuple[DseLevel, ...] = LEVEL_ORDER[:-1]

UNCLASSIFIED = "U"


@dataclass(frozen=True)
class CutoffRow:
    level: DseLevel
    minimum_percentage: float


GENERIC_CUTOFFS: Tuple[CutoffRow, ...] = (
    CutoffRow(DseLevel.L5_STAR_STAR, 90),
    CutoffRow(DseLevel.L5_STAR, 80),
    CutoffRow(DseLevel.L5, 70),
    CutoffRow(DseLevel.L4, 60),
    CutoffRow(DseLevel.L3, 50),
    CutoffRow(DseLevel.L2, 40),
    CutoffRow(DseLevel.L1, 30),
)


def normalize_rows(rows: Iterable[CutoffRow]) -> List[CutoffRow]:
    return sorted(rows, key=lambda row: LEVEL_ORDER.index(row.level))


def level_rank(level: str) -> int:
    """
    Higher is better: 5** ranks 7, 1 ranks 1, U and unknown strings rank 0.
    """
    for index, candidate in enumerate(LEVEL_ORDER):
        if candidate.value == level:
            return len(LEVEL_ORDER) - index
    return 0


def is_valid_level(level: str) -> bool:
    return level == UNCLASSIFIED or level_rank(level) > 0


def generic_cutoffs() -> List[CutoffRow]:
    return list(GENERIC_CUTOFFS)
