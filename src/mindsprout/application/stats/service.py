"""
Stats Service: Application layer orchestrator.

Coordinates fetching decks and cards from the store and running them
through the metrics calculator.
"""

import logging
from collections.abc import Callable

from mindsprout.application.records import load_cards, load_decks
from mindsprout.application.scheduler import now_ms
from mindsprout.domain.models import Card, Deck
from mindsprout.domain.ports import CARDS, DECKS, RecordStore
from mindsprout.domain.stats.models import DeckOverview, StatsReport

from .metrics_calculator import MetricsCalculator

logger = logging.getLogger(__name__)


class StatsService:
    """
    Application service for study statistics.

    Follows Dependency Inversion: depends on the RecordStore abstraction,
    not concrete adapter implementations.
    """

    def __init__(
        self,
        store: RecordStore,
        calculator: MetricsCalculator | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Args:
            store: The repository (port) for fetching records.
            calculator: Optional custom calculator; uses default if not provided.
            clock: Source of "now" when a call does not pass one.
        """
        self._store = store
        self._calc = calculator or MetricsCalculator()
        self._clock = clock

    async def _snapshot(self) -> tuple[list[Deck], list[Card]]:
        decks = load_decks(await self._store.get_all(DECKS))
        cards = load_cards(await self._store.get_all(CARDS))
        return decks, cards

    async def get_report(self, now: int | None = None) -> StatsReport:
        """
        Compute the collection-wide report from the store's current contents.
        """
        decks, cards = await self._snapshot()
        return self._calc.compute(cards, decks, self._clock() if now is None else now)

    async def get_overviews(self, now: int | None = None) -> list[DeckOverview]:
        """
        Per-deck counters, in deck storage order.
        """
        decks, cards = await self._snapshot()
        now = self._clock() if now is None else now
        return [self._calc.overview(deck, cards, now) for deck in decks]
