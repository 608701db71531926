"""
Session planner for bounded study sessions.

Builds ordered study queues by:
1. Partitioning a deck's cards into due and new
2. Ordering due cards most-overdue first, new cards by creation
3. Truncating the concatenation to the deck's session limit
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from mindsprout.domain.constants import DEFAULT_SESSION_LIMIT
from mindsprout.domain.models import Card, Deck

logger = logging.getLogger(__name__)


@dataclass
class SessionPlan:
    """Result of session planning."""

    deck_id: str
    cards: list[Card]  # Due first, then new, truncated to the limit
    due_count: int  # Due cards available before truncation
    new_count: int  # New (not yet due) cards available before truncation
    dropped: int  # Cards cut by the session limit

    @property
    def is_empty(self) -> bool:
        return not self.cards


def partition(cards: Iterable[Card], now: int) -> tuple[list[Card], list[Card]]:
    """
    Split cards into (due, new).

    A card that is both due and new lands in ``due`` only, so no card is
    presented twice. New cards that are not yet due (e.g. just lapsed) are
    still offered.
    """
    due: list[Card] = []
    new: list[Card] = []
    for card in cards:
        if card.is_due(now):
            due.append(card)
        elif card.is_new:
            new.append(card)

    due.sort(key=lambda c: c.next_review)
    new.sort(key=lambda c: c.created_at)
    return due, new


def plan_session(
    cards: Iterable[Card],
    session_limit: int | None,
    now: int,
) -> list[Card]:
    """
    Select and order the cards for one study session.

    Args:
        cards: Cards of a single deck (snapshot, not mutated).
        session_limit: Maximum cards in the session; falls back to 20 when unset.
        now: Planning time in epoch ms.

    Returns:
        Due cards (ascending next_review) followed by new cards, at most
        ``session_limit`` long. Empty when nothing is due.
    """
    limit = session_limit or DEFAULT_SESSION_LIMIT
    due, new = partition(cards, now)
    return (due + new)[:limit]


def plan_deck_session(deck: Deck, cards: Iterable[Card], now: int) -> SessionPlan:
    """
    Plan a session for one deck out of the full card collection.

    Cards belonging to other decks (or to no deck at all) are never selected.
    """
    own = [c for c in cards if c.deck_id == deck.id]
    due, new = partition(own, now)
    queue = (due + new)[: deck.session_limit]
    dropped = len(due) + len(new) - len(queue)

    logger.debug(
        f"Planned {deck.name!r}: {len(queue)} cards "
        f"(due={len(due)}, new={len(new)}, dropped={dropped})"
    )
    return SessionPlan(
        deck_id=deck.id,
        cards=queue,
        due_count=len(due),
        new_count=len(new),
        dropped=dropped,
    )


@dataclass
class StudySession:
    """
    FIFO queue consumed one grade at a time.

    The head card is presented, graded, persisted, then popped. Abandoning
    the session simply drops the remaining queue.
    """

    deck_id: str
    queue: list[Card] = field(default_factory=list)
    started: int = 0
    done: int = 0

    @classmethod
    def from_plan(cls, plan: SessionPlan) -> "StudySession":
        return cls(deck_id=plan.deck_id, queue=list(plan.cards), started=len(plan.cards))

    @property
    def current(self) -> Card | None:
        return self.queue[0] if self.queue else None

    @property
    def finished(self) -> bool:
        return not self.queue

    @property
    def remaining(self) -> int:
        return len(self.queue)

    @property
    def progress(self) -> float:
        """Fraction of the session completed (0.0-1.0)."""
        if self.started == 0:
            return 1.0
        return self.done / self.started

    def advance(self) -> Card:
        """Pop the head card after it has been durably rescheduled."""
        card = self.queue.pop(0)
        self.done += 1
        return card
