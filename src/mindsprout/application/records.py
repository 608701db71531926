"""
Record schemas for the store boundary.

Stored records are plain camelCase dicts. Older records may lack deck
settings or review durations; defaults are merged here, once, at load time
so scheduling code never sees a partial configuration.
"""

import logging
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from mindsprout.domain.constants import DEFAULT_DECK_COLOR, DEFAULT_SESSION_LIMIT, INITIAL_EASINESS
from mindsprout.domain.content import CardType, content_from_fields
from mindsprout.domain.exceptions import DomainError
from mindsprout.domain.models import (
    Card,
    Deck,
    DeckSettings,
    Difficulty,
    ReviewLog,
    ReviewRecord,
    Strategy,
)
from mindsprout.domain.ports import Record

logger = logging.getLogger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_record(self) -> Record:
        return self.model_dump(by_alias=True, mode="json")


class ReviewRecordModel(_CamelModel):
    date: int
    difficulty: str
    interval: int
    duration: int = 0

    @field_validator("duration", mode="before")
    @classmethod
    def default_duration(cls, v: Any) -> int:
        return v or 0


class CardRecordModel(_CamelModel):
    id: str
    deck_id: str = Field(alias="deckId")
    type: CardType = CardType.NORMAL
    question: str
    answer: str = ""
    next_review: int = Field(alias="nextReview")
    last_review: int = Field(default=0, alias="lastReview")
    interval: int = 0
    repetition: int = 0
    easiness: float = INITIAL_EASINESS
    history: list[ReviewRecordModel] = Field(default_factory=list)
    created_at: int = Field(default=0, alias="createdAt")

    @classmethod
    def from_domain(cls, card: Card) -> "CardRecordModel":
        return cls(
            id=card.id,
            deck_id=card.deck_id,
            type=card.type,
            question=card.question,
            answer=card.answer,
            next_review=card.next_review,
            last_review=card.last_review,
            interval=card.interval,
            repetition=card.repetition,
            easiness=card.easiness,
            history=[
                ReviewRecordModel(
                    date=r.date,
                    difficulty=r.difficulty.value,
                    interval=r.interval,
                    duration=r.duration,
                )
                for r in card.history
            ],
            created_at=card.created_at,
        )

    def to_domain(self) -> Card:
        """
        Raises:
            DomainError: an unknown difficulty in history or an easiness
                below the floor.
        """
        history = ReviewLog(
            ReviewRecord(
                date=h.date,
                difficulty=Difficulty.parse(h.difficulty),
                interval=h.interval,
                duration=h.duration,
            )
            for h in self.history
        )
        return Card(
            id=self.id,
            deck_id=self.deck_id,
            content=content_from_fields(self.type, self.question, self.answer),
            next_review=self.next_review,
            last_review=self.last_review,
            interval=self.interval,
            repetition=self.repetition,
            easiness=self.easiness,
            history=history,
            created_at=self.created_at,
        )


class DeckSettingsModel(_CamelModel):
    session_limit: int = Field(default=DEFAULT_SESSION_LIMIT, alias="sessionLimit")
    strategy: Strategy = Strategy.STANDARD

    @field_validator("session_limit", mode="before")
    @classmethod
    def default_limit(cls, v: Any) -> int:
        # 0/None on legacy records means "unset"
        return v or DEFAULT_SESSION_LIMIT

    @field_validator("strategy", mode="before")
    @classmethod
    def default_strategy(cls, v: Any) -> Any:
        return v or Strategy.STANDARD


class DeckRecordModel(_CamelModel):
    id: str
    name: str
    color: str = DEFAULT_DECK_COLOR
    description: str | None = None
    created_at: int = Field(default=0, alias="createdAt")
    settings: DeckSettingsModel = Field(default_factory=DeckSettingsModel)

    @field_validator("settings", mode="before")
    @classmethod
    def default_settings(cls, v: Any) -> Any:
        return v or {}

    @classmethod
    def from_domain(cls, deck: Deck) -> "DeckRecordModel":
        return cls(
            id=deck.id,
            name=deck.name,
            color=deck.color,
            description=deck.description,
            created_at=deck.created_at,
            settings=DeckSettingsModel(
                session_limit=deck.settings.session_limit,
                strategy=deck.settings.strategy,
            ),
        )

    def to_domain(self) -> Deck:
        return Deck(
            id=self.id,
            name=self.name,
            color=self.color,
            description=self.description,
            created_at=self.created_at,
            settings=DeckSettings(
                session_limit=self.settings.session_limit,
                strategy=self.settings.strategy,
            ),
        )


def card_to_record(card: Card) -> Record:
    return CardRecordModel.from_domain(card).to_record()


def deck_to_record(deck: Deck) -> Record:
    return DeckRecordModel.from_domain(deck).to_record()


def card_from_record(record: Record) -> Card:
    return CardRecordModel.model_validate(record).to_domain()


def deck_from_record(record: Record) -> Deck:
    return DeckRecordModel.model_validate(record).to_domain()


def load_decks(records: Iterable[Record]) -> list[Deck]:
    """Parse deck records, skipping (and logging) unreadable ones."""
    decks: list[Deck] = []
    for rec in records:
        try:
            decks.append(deck_from_record(rec))
        except (ValidationError, DomainError) as e:
            logger.warning(f"Skipping unreadable deck record {rec.get('id')!r}: {e}")
    return decks


def load_cards(records: Iterable[Record]) -> list[Card]:
    """Parse card records, skipping (and logging) unreadable ones."""
    cards: list[Card] = []
    for rec in records:
        try:
            cards.append(card_from_record(rec))
        except (ValidationError, DomainError) as e:
            logger.warning(f"Skipping unreadable card record {rec.get('id')!r}: {e}")
    return cards
