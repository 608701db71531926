"""
Report structures produced by the stats aggregator.

Read-only snapshots; nothing here is persisted.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class MaturityBuckets:
    """
    Cards partitioned by growth stage.

    Attributes:
        seeds: repetition == 0.
        sprouts: repetition > 0 and interval < 5.
        trees: 5 <= interval < 21.
        forest: interval >= 21.
    """

    seeds: int = 0
    sprouts: int = 0
    trees: int = 0
    forest: int = 0

    @property
    def total(self) -> int:
        return self.seeds + self.sprouts + self.trees + self.forest


@dataclass(frozen=True)
class LeechEntry:
    card_id: str
    deck_id: str
    question: str
    failures: int
    reviews: int
    easiness: float


@dataclass(frozen=True)
class WorkloadDay:
    """
    Cards coming due within one 24h window.

    Attributes:
        offset: 0 for today (overdue cards included), 1 for tomorrow, ...
        label: Short weekday label for display.
        start: Window start (ms); today's window is open-ended to the past.
        count: Number of cards due in the window.
    """

    offset: int
    label: str
    start: int
    count: int


@dataclass
class StatsReport:
    total: int
    due: int
    new: int
    mastered: int
    maturity: MaturityBuckets
    retention_rate: float  # percent, 0-100
    average_duration_ms: float
    total_reviews: int
    leeches: list[LeechEntry] = field(default_factory=list)
    workload: list[WorkloadDay] = field(default_factory=list)


@dataclass(frozen=True)
class DeckOverview:
    """Per-deck counters shown on the deck screen."""

    deck_id: str
    total: int
    due: int
    new: int
    learning: int
    mastered: int
