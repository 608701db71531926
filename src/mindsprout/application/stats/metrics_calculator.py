"""
Metrics calculator for deriving study insights from the card collection.

This is a pure computation module with no I/O. Reports are recomputed
from scratch whenever the collection changes.
"""

from collections.abc import Iterable
from datetime import datetime, timezone

from mindsprout.domain.constants import (
    DAY_MS,
    EXAM_MASTERY_THRESHOLD,
    LEARNING_MAX_REPETITION,
    LEECH_EASINESS,
    LEECH_FAILURE_COUNT,
    MAX_LEECHES,
    SPROUT_MAX_INTERVAL,
    STANDARD_MASTERY_THRESHOLD,
    TREE_MAX_INTERVAL,
    WORKLOAD_DAYS,
)
from mindsprout.domain.models import Card, Deck, ReviewRecord, Strategy
from mindsprout.domain.stats.models import (
    DeckOverview,
    LeechEntry,
    MaturityBuckets,
    StatsReport,
    WorkloadDay,
)


def mastery_threshold(deck: Deck | None) -> int:
    """Interval (days) at which a card counts as mastered. Orphans use Standard."""
    if deck is not None and deck.strategy is Strategy.EXAM:
        return EXAM_MASTERY_THRESHOLD
    return STANDARD_MASTERY_THRESHOLD


class MetricsCalculator:
    """
    Computes derived metrics from Card and Deck snapshots.

    Stateless and side-effect free.
    """

    def __init__(self, max_leeches: int = MAX_LEECHES, workload_days: int = WORKLOAD_DAYS):
        self.max_leeches = max_leeches
        self.workload_days = workload_days

    def compute(self, cards: Iterable[Card], decks: Iterable[Deck], now: int) -> StatsReport:
        """
        Build the full stats report.
        """
        cards = list(cards)
        by_id = {d.id: d for d in decks}
        reviews = [r for c in cards for r in c.history]

        return StatsReport(
            total=len(cards),
            due=sum(1 for c in cards if c.is_due(now)),
            new=sum(1 for c in cards if c.is_new),
            mastered=self._count_mastered(cards, by_id),
            maturity=self._maturity(cards),
            retention_rate=self._retention_rate(reviews),
            average_duration_ms=self._average_duration(reviews),
            total_reviews=len(reviews),
            leeches=self._leeches(cards),
            workload=self._workload(cards, now),
        )

    def overview(self, deck: Deck, cards: Iterable[Card], now: int) -> DeckOverview:
        """
        Counters for a single deck.
        """
        own = [c for c in cards if c.deck_id == deck.id]
        threshold = mastery_threshold(deck)
        return DeckOverview(
            deck_id=deck.id,
            total=len(own),
            due=sum(1 for c in own if c.is_due(now)),
            new=sum(1 for c in own if c.is_new),
            learning=sum(1 for c in own if 0 < c.repetition < LEARNING_MAX_REPETITION),
            mastered=sum(1 for c in own if c.interval >= threshold),
        )

    def _count_mastered(self, cards: list[Card], decks: dict[str, Deck]) -> int:
        return sum(1 for c in cards if c.interval >= mastery_threshold(decks.get(c.deck_id)))

    def _maturity(self, cards: list[Card]) -> MaturityBuckets:
        """
        Seeds are checked first, so a lapsed card with a stale interval is
        still a seed.
        """
        seeds = sprouts = trees = forest = 0
        for card in cards:
            if card.repetition == 0:
                seeds += 1
            elif card.interval < SPROUT_MAX_INTERVAL:
                sprouts += 1
            elif card.interval < TREE_MAX_INTERVAL:
                trees += 1
            else:
                forest += 1
        return MaturityBuckets(seeds=seeds, sprouts=sprouts, trees=trees, forest=forest)

    def _retention_rate(self, reviews: list[ReviewRecord]) -> float:
        """
        Percentage of reviews graded Easy or VeryEasy.
        """
        if not reviews:
            return 0.0
        passed = sum(1 for r in reviews if r.difficulty.is_pass)
        return passed / len(reviews) * 100

    def _average_duration(self, reviews: list[ReviewRecord]) -> float:
        if not reviews:
            return 0.0
        return sum(r.duration for r in reviews) / len(reviews)

    def _leeches(self, cards: list[Card]) -> list[LeechEntry]:
        """
        Cards failed at least three times or stuck at low easiness,
        most-reviewed first.
        """
        flagged = [
            c
            for c in cards
            if c.history.failure_count() >= LEECH_FAILURE_COUNT or c.easiness <= LEECH_EASINESS
        ]
        flagged.sort(key=lambda c: len(c.history), reverse=True)

        return [
            LeechEntry(
                card_id=c.id,
                deck_id=c.deck_id,
                question=c.content.prompt(),
                failures=c.history.failure_count(),
                reviews=len(c.history),
                easiness=c.easiness,
            )
            for c in flagged[: self.max_leeches]
        ]

    def _workload(self, cards: list[Card], now: int) -> list[WorkloadDay]:
        """
        Cards due per 24h window starting at ``now``. Overdue cards fold
        into today; anything past the last window is ignored.
        """
        counts = [0] * self.workload_days
        for card in cards:
            offset = max(0, (card.next_review - now) // DAY_MS)
            if offset < self.workload_days:
                counts[offset] += 1

        return [
            WorkloadDay(
                offset=i,
                label=self._day_label(now + i * DAY_MS, i),
                start=now + i * DAY_MS,
                count=count,
            )
            for i, count in enumerate(counts)
        ]

    def _day_label(self, start: int, offset: int) -> str:
        if offset == 0:
            return "Today"
        return datetime.fromtimestamp(start / 1000, tz=timezone.utc).strftime("%a")


def compute_stats(cards: Iterable[Card], decks: Iterable[Deck], now: int) -> StatsReport:
    """Convenience wrapper around MetricsCalculator.compute."""
    return MetricsCalculator().compute(cards, decks, now)
