"""
Domain models for cards, decks and their review history.

These are pure data structures with no I/O or external dependencies.
All timestamps are integer milliseconds since the epoch.
"""

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum

from .constants import DEFAULT_DECK_COLOR, DEFAULT_SESSION_LIMIT, EASINESS_FLOOR, INITIAL_EASINESS
from .content import CardContent, CardType
from .exceptions import DomainError, InvalidDifficultyError, InvalidStrategyError


class Difficulty(str, Enum):
    """Learner's self-reported recall grade."""

    VERY_HARD = "very-hard"
    HARD = "hard"
    EASY = "easy"
    VERY_EASY = "very-easy"

    @property
    def quality(self) -> int:
        """SM-2 quality score q (0-3)."""
        return _QUALITY[self]

    @property
    def is_pass(self) -> bool:
        return self in (Difficulty.EASY, Difficulty.VERY_EASY)

    @classmethod
    def parse(cls, value: "Difficulty | str") -> "Difficulty":
        try:
            return cls(value)
        except ValueError as e:
            raise InvalidDifficultyError(f"Unknown difficulty: {value!r}") from e


_QUALITY = {
    Difficulty.VERY_HARD: 0,
    Difficulty.HARD: 1,
    Difficulty.EASY: 2,
    Difficulty.VERY_EASY: 3,
}


class Strategy(str, Enum):
    """Scheduling preset: long retention or short cram."""

    STANDARD = "standard"
    EXAM = "exam"

    @classmethod
    def parse(cls, value: "Strategy | str") -> "Strategy":
        try:
            return cls(value)
        except ValueError as e:
            raise InvalidStrategyError(f"Unknown strategy: {value!r}") from e


@dataclass(frozen=True)
class ReviewRecord:
    """
    A single grading event.

    Attributes:
        date: When the card was graded.
        difficulty: The grade given.
        interval: Interval (days) computed as a result of this grading.
        duration: Milliseconds between presentation and grading (0 if unmeasured).
    """

    date: int
    difficulty: Difficulty
    interval: int
    duration: int = 0


class ReviewLog(Sequence[ReviewRecord]):
    """
    Append-only, chronologically ordered review history.

    ``append`` returns a new log; existing entries are never reordered,
    mutated or pruned.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[ReviewRecord] = ()):
        self._entries: tuple[ReviewRecord, ...] = tuple(entries)

    def append(self, record: ReviewRecord) -> "ReviewLog":
        return ReviewLog(self._entries + (record,))

    @property
    def last(self) -> ReviewRecord | None:
        return self._entries[-1] if self._entries else None

    def failure_count(self) -> int:
        """Number of entries graded Hard or VeryHard."""
        return sum(1 for r in self._entries if not r.difficulty.is_pass)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return ReviewLog(self._entries[index])
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ReviewRecord]:
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ReviewLog):
            return self._entries == other._entries
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._entries)

    def __repr__(self) -> str:
        return f"ReviewLog({list(self._entries)!r})"


@dataclass(frozen=True)
class Card:
    """
    A unit of knowledge plus its scheduling state.

    ``repetition == 0`` means new: never passed, or lapsed since the last pass.
    """

    id: str
    deck_id: str
    content: CardContent
    next_review: int
    last_review: int = 0
    interval: int = 0
    repetition: int = 0
    easiness: float = INITIAL_EASINESS
    history: ReviewLog = field(default_factory=ReviewLog)
    created_at: int = 0

    def __post_init__(self):
        if self.easiness < EASINESS_FLOOR:
            raise DomainError(f"Card {self.id}: easiness {self.easiness} below {EASINESS_FLOOR}")
        if self.interval < 0 or self.repetition < 0:
            raise DomainError(f"Card {self.id}: negative interval or repetition")

    @classmethod
    def new(cls, card_id: str, deck_id: str, content: CardContent, now: int) -> "Card":
        """Create a card with fresh scheduling state, due immediately."""
        return cls(id=card_id, deck_id=deck_id, content=content, next_review=now, created_at=now)

    @property
    def type(self) -> CardType:
        return self.content.type

    @property
    def question(self) -> str:
        return self.content.question

    @property
    def answer(self) -> str:
        return self.content.answer

    @property
    def is_new(self) -> bool:
        return self.repetition == 0

    def is_due(self, now: int) -> bool:
        return self.next_review <= now


@dataclass(frozen=True)
class DeckSettings:
    session_limit: int = DEFAULT_SESSION_LIMIT
    strategy: Strategy = Strategy.STANDARD

    def __post_init__(self):
        if self.session_limit < 1:
            raise DomainError(f"session_limit must be positive, got {self.session_limit}")
        if not isinstance(self.strategy, Strategy):
            raise InvalidStrategyError(f"Unknown strategy: {self.strategy!r}")


@dataclass(frozen=True)
class Deck:
    """
    A named collection of cards. Cards reference their deck by ``deck_id``;
    the deck does not hold them.
    """

    id: str
    name: str
    created_at: int
    color: str = DEFAULT_DECK_COLOR
    description: str | None = None
    settings: DeckSettings = field(default_factory=DeckSettings)

    @property
    def strategy(self) -> Strategy:
        return self.settings.strategy

    @property
    def session_limit(self) -> int:
        return self.settings.session_limit
