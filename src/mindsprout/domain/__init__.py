# Domain Package
from .content import CardContent, CardType, ClozeContent, NormalContent, make_cloze
from .models import Card, Deck, DeckSettings, Difficulty, ReviewLog, ReviewRecord, Strategy

__all__ = [
    "Card",
    "CardContent",
    "CardType",
    "ClozeContent",
    "Deck",
    "DeckSettings",
    "Difficulty",
    "NormalContent",
    "ReviewLog",
    "ReviewRecord",
    "Strategy",
    "make_cloze",
]
