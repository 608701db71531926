"""
Study Service: Application layer orchestrator.

Owns the in-memory snapshot of decks and cards, and keeps it in step with
the record store: every change is written to the store first and only
mirrored in memory once the write has succeeded. Store failures propagate
to the caller untouched.
"""

import logging
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from mindsprout.application.bundle import dumps_bundle, import_bundle
from mindsprout.application.id_service import generate_card_id, generate_deck_id
from mindsprout.application.records import (
    card_to_record,
    deck_to_record,
    load_cards,
    load_decks,
)
from mindsprout.application.scheduler import now_ms, schedule
from mindsprout.application.session_planner import SessionPlan, StudySession, plan_deck_session
from mindsprout.domain.constants import DEFAULT_DECK_COLOR, DEFAULT_SESSION_LIMIT
from mindsprout.domain.content import CardContent, NormalContent, make_cloze
from mindsprout.domain.exceptions import DomainError, NotFoundError, StoreError
from mindsprout.domain.models import Card, Deck, DeckSettings, Difficulty, Strategy
from mindsprout.domain.ports import CARDS, DECKS, RecordStore

logger = logging.getLogger(__name__)


class StudyService:
    """
    Application service for deck/card management and study sessions.

    Depends on the RecordStore abstraction, not a concrete adapter.
    """

    def __init__(self, store: RecordStore, clock: Callable[[], int] = now_ms):
        """
        Args:
            store: The repository (port) for persisting records.
            clock: Source of "now" in epoch ms when a call does not pass one.
        """
        self._store = store
        self._clock = clock
        self._decks: dict[str, Deck] = {}
        self._cards: dict[str, Card] = {}

    # ---------- Snapshot ----------

    async def load(self) -> None:
        """Replace the snapshot with the store's current contents."""
        decks = load_decks(await self._store.get_all(DECKS))
        cards = load_cards(await self._store.get_all(CARDS))
        self._decks = {d.id: d for d in decks}
        self._cards = {c.id: c for c in cards}
        logger.debug(f"Loaded {len(self._decks)} decks, {len(self._cards)} cards")

    @property
    def decks(self) -> list[Deck]:
        return list(self._decks.values())

    @property
    def cards(self) -> list[Card]:
        return list(self._cards.values())

    def get_deck(self, deck_id: str) -> Deck:
        try:
            return self._decks[deck_id]
        except KeyError:
            raise NotFoundError(f"Deck not found: {deck_id}") from None

    def get_card(self, card_id: str) -> Card:
        try:
            return self._cards[card_id]
        except KeyError:
            raise NotFoundError(f"Card not found: {card_id}") from None

    def find_deck(self, key: str) -> Deck:
        """Look a deck up by id, falling back to an exact name match."""
        if key in self._decks:
            return self._decks[key]
        for deck in self._decks.values():
            if deck.name == key:
                return deck
        raise NotFoundError(f"Deck not found: {key}")

    def deck_cards(self, deck_id: str) -> list[Card]:
        return [c for c in self._cards.values() if c.deck_id == deck_id]

    # ---------- Decks ----------

    async def create_deck(
        self,
        name: str,
        color: str = DEFAULT_DECK_COLOR,
        description: str | None = None,
        session_limit: int = DEFAULT_SESSION_LIMIT,
        strategy: Strategy = Strategy.STANDARD,
        now: int | None = None,
    ) -> Deck:
        if not name.strip():
            raise DomainError("Deck name must not be empty")

        deck = Deck(
            id=generate_deck_id(),
            name=name.strip(),
            color=color,
            description=description,
            created_at=self._now(now),
            settings=DeckSettings(session_limit=session_limit, strategy=strategy),
        )
        await self._save_deck(deck)
        logger.info(f"Created deck {deck.name!r} ({deck.id})")
        return deck

    async def update_deck(
        self,
        deck_id: str,
        name: str | None = None,
        color: str | None = None,
        description: str | None = None,
        session_limit: int | None = None,
        strategy: Strategy | None = None,
    ) -> Deck:
        """Edit name, color or settings. Cards are not touched."""
        deck = self.get_deck(deck_id)
        if name is not None and not name.strip():
            raise DomainError("Deck name must not be empty")

        settings = replace(
            deck.settings,
            session_limit=session_limit if session_limit is not None else deck.session_limit,
            strategy=strategy if strategy is not None else deck.strategy,
        )
        updated = replace(
            deck,
            name=name.strip() if name else deck.name,
            color=color or deck.color,
            description=description if description is not None else deck.description,
            settings=settings,
        )
        await self._save_deck(updated)
        return updated

    async def delete_deck(self, deck_id: str) -> int:
        """
        Delete a deck and every card referencing it.

        Cards go first so an interrupted deletion never leaves orphans behind.

        Returns:
            Number of cards removed.
        """
        deck = self.get_deck(deck_id)
        related = self.deck_cards(deck_id)
        for card in related:
            await self._store.delete(CARDS, card.id)
            del self._cards[card.id]

        await self._store.delete(DECKS, deck_id)
        del self._decks[deck_id]
        logger.info(f"Deleted deck {deck.name!r} and {len(related)} cards")
        return len(related)

    # ---------- Cards ----------

    async def add_card(
        self, deck_id: str, question: str, answer: str, now: int | None = None
    ) -> Card:
        if not question.strip():
            raise DomainError("Question must not be empty")
        return await self._add(deck_id, NormalContent(question=question, answer=answer), now)

    async def add_cloze_card(
        self,
        deck_id: str,
        text: str,
        hidden_indices: list[int] | set[int],
        now: int | None = None,
    ) -> Card:
        return await self._add(deck_id, make_cloze(text, hidden_indices), now)

    async def edit_card(self, card_id: str, content: CardContent) -> Card:
        """Change a card's content; scheduling fields stay as they are."""
        card = replace(self.get_card(card_id), content=content)
        await self._save_card(card)
        return card

    async def swap_card(self, card_id: str) -> Card:
        """Exchange question and answer of a normal card."""
        card = self.get_card(card_id)
        if not isinstance(card.content, NormalContent):
            raise DomainError("Only normal cards can be swapped")
        return await self.edit_card(card_id, card.content.swapped())

    async def delete_card(self, card_id: str) -> None:
        self.get_card(card_id)
        await self._store.delete(CARDS, card_id)
        del self._cards[card_id]

    # ---------- Sessions ----------

    def plan(self, deck_id: str, now: int | None = None) -> SessionPlan:
        deck = self.get_deck(deck_id)
        return plan_deck_session(deck, self._cards.values(), self._now(now))

    def start_session(self, deck_id: str, now: int | None = None) -> StudySession:
        return StudySession.from_plan(self.plan(deck_id, now))

    async def grade(
        self,
        session: StudySession,
        difficulty: Difficulty,
        duration: int = 0,
        now: int | None = None,
    ) -> Card:
        """
        Grade the session's head card.

        The rescheduled card is persisted before the snapshot is updated and
        the queue advances; if the write fails neither changes.
        """
        head = session.current
        if head is None:
            raise DomainError("Session is already finished")

        updated = await self.grade_card(head.id, difficulty, duration, now)
        session.advance()
        return updated

    async def grade_card(
        self,
        card_id: str,
        difficulty: Difficulty,
        duration: int = 0,
        now: int | None = None,
    ) -> Card:
        """Reschedule one card under its deck's strategy and persist it."""
        card = self.get_card(card_id)
        deck = self.get_deck(card.deck_id)
        updated = schedule(card, difficulty, deck.strategy, duration, self._now(now))

        await self._save_card(updated)
        return updated

    # ---------- Bundles ----------

    def export_deck(self, deck_id: str) -> str:
        """Bundle a deck and its cards as JSON text."""
        deck = self.get_deck(deck_id)
        return dumps_bundle(deck, self.deck_cards(deck_id))

    async def import_deck(
        self, data: str | bytes | dict[str, Any], now: int | None = None
    ) -> tuple[Deck, list[Card]]:
        """
        Import a bundle as a new deck.

        If the store fails part way, whatever was already written is deleted
        again before the error propagates.
        """
        deck, cards = import_bundle(data, self._now(now))
        written: list[Card] = []
        try:
            await self._save_deck(deck)
            for card in cards:
                await self._save_card(card)
                written.append(card)
        except StoreError:
            logger.warning(f"Import of {deck.name!r} failed, removing {len(written)} written cards")
            await self._discard(deck, written)
            raise
        return deck, cards

    async def _discard(self, deck: Deck, cards: list[Card]) -> None:
        for card in cards:
            await self._store.delete(CARDS, card.id)
            del self._cards[card.id]
        if deck.id in self._decks:
            await self._store.delete(DECKS, deck.id)
            del self._decks[deck.id]

    # ---------- Internals ----------

    async def _add(self, deck_id: str, content: CardContent, now: int | None) -> Card:
        self.get_deck(deck_id)
        card = Card.new(generate_card_id(), deck_id, content, self._now(now))
        await self._save_card(card)
        return card

    async def _save_deck(self, deck: Deck) -> None:
        await self._store.put(DECKS, deck_to_record(deck))
        self._decks[deck.id] = deck

    async def _save_card(self, card: Card) -> None:
        await self._store.put(CARDS, card_to_record(card))
        self._cards[card.id] = card

    def now(self) -> int:
        return self._clock()

    def _now(self, now: int | None) -> int:
        return self._clock() if now is None else now
