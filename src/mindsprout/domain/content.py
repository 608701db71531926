"""
Card content variants.

A card is either Normal (independent question and answer text) or Cloze
(a single template whose ``{{...}}`` spans are hidden at study time and
whose answer is derived from those spans). Both expose the same
prompt/reveal/answer surface so callers never sniff strings.
"""

import re
import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from .constants import CLOZE_BLANK, CLOZE_SEPARATOR
from .exceptions import DomainError

CLOZE_PATTERN = re.compile(r"\{\{(.*?)\}\}")
_PUNCTUATION = re.compile(r"[.,/#!$%^&*;:{}=\-_`~()]")


class CardType(str, Enum):
    NORMAL = "normal"
    CLOZE = "cloze"


@dataclass(frozen=True)
class NormalContent:
    question: str
    answer: str

    type: ClassVar[CardType] = CardType.NORMAL

    def prompt(self) -> str:
        return self.question

    def reveal(self) -> str:
        return self.answer

    def expected_answers(self) -> list[str]:
        return [self.answer]

    def swapped(self) -> "NormalContent":
        """Return the same card facing the other way."""
        return NormalContent(question=self.answer, answer=self.question)


@dataclass(frozen=True)
class ClozeContent:
    """
    Cloze template such as ``"The {{mitochondria}} is the {{powerhouse}}"``.

    Attributes:
        template: Text with hidden spans wrapped in double braces.
    """

    template: str

    type: ClassVar[CardType] = CardType.CLOZE

    @property
    def question(self) -> str:
        return self.template

    @property
    def answer(self) -> str:
        return CLOZE_SEPARATOR.join(self.hidden_terms())

    def hidden_terms(self) -> list[str]:
        """Hidden spans in template order."""
        return CLOZE_PATTERN.findall(self.template)

    def prompt(self) -> str:
        return CLOZE_PATTERN.sub(CLOZE_BLANK, self.template)

    def reveal(self) -> str:
        return CLOZE_PATTERN.sub(lambda m: m.group(1), self.template)

    def expected_answers(self) -> list[str]:
        return self.hidden_terms()


CardContent = NormalContent | ClozeContent


def make_cloze(text: str, hidden_indices: list[int] | set[int]) -> ClozeContent:
    """
    Build a cloze template by hiding whitespace-separated tokens.

    Args:
        text: Plain sentence.
        hidden_indices: Zero-based token positions to hide.

    Returns:
        ClozeContent whose template wraps each selected token in ``{{}}``.
    """
    tokens = text.split()
    selected = set(hidden_indices)
    if not selected or not any(0 <= i < len(tokens) for i in selected):
        raise DomainError("A cloze card needs at least one hidden word")

    out = [f"{{{{{tok}}}}}" if i in selected else tok for i, tok in enumerate(tokens)]
    return ClozeContent(template=" ".join(out))


def content_from_fields(card_type: CardType | str, question: str, answer: str = "") -> CardContent:
    """Rebuild the content variant from flat question/answer fields."""
    try:
        card_type = CardType(card_type)
    except ValueError as e:
        raise DomainError(f"Unknown card type: {card_type!r}") from e

    if card_type is CardType.CLOZE:
        return ClozeContent(template=question)
    return NormalContent(question=question, answer=answer)


def normalize_answer(text: str) -> str:
    """Lowercase, strip accents and punctuation for lenient comparison."""
    decomposed = unicodedata.normalize("NFD", text.strip().lower())
    no_marks = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _PUNCTUATION.sub("", no_marks)


def check_typed_answer(content: CardContent, typed: str) -> bool:
    """
    Check a typed answer against the card.

    Cloze cards pass if any hidden term appears in the typed text, or if the
    typed text equals all terms joined by spaces. Normal cards need an exact
    match after normalization.
    """
    guess = normalize_answer(typed)
    expected = content.expected_answers()

    if content.type is CardType.CLOZE:
        if not guess:
            return False
        if any(normalize_answer(term) in guess for term in expected):
            return True
        return guess == normalize_answer(" ".join(expected))

    return guess == normalize_answer(content.answer)
