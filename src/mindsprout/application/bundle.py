"""
Export/import codec for a deck and its cards.

A bundle is a self-describing JSON document:
    {"version": 1, "deck": {...}, "cards": [{...}, ...]}

Importing always yields brand-new cards: fresh ids and reset scheduling
state, whatever progress the exporting deck had.
"""

import json
import logging
from dataclasses import replace
from typing import Any

from pydantic import BaseModel, ValidationError

from mindsprout.application.id_service import generate_card_id, generate_deck_id
from mindsprout.application.records import CardRecordModel, DeckRecordModel
from mindsprout.domain.constants import BUNDLE_VERSION
from mindsprout.domain.content import content_from_fields
from mindsprout.domain.exceptions import BundleError, DomainError
from mindsprout.domain.models import Card, Deck

logger = logging.getLogger(__name__)


class DeckBundle(BaseModel):
    version: int
    deck: DeckRecordModel
    cards: list[CardRecordModel]


def export_bundle(deck: Deck, cards: list[Card]) -> dict[str, Any]:
    """
    Serialize a deck plus the cards that belong to it.

    Cards of other decks in ``cards`` are ignored.
    """
    own = [c for c in cards if c.deck_id == deck.id]
    bundle = DeckBundle(
        version=BUNDLE_VERSION,
        deck=DeckRecordModel.from_domain(deck),
        cards=[CardRecordModel.from_domain(c) for c in own],
    )
    return bundle.model_dump(by_alias=True, mode="json")


def dumps_bundle(deck: Deck, cards: list[Card]) -> str:
    return json.dumps(export_bundle(deck, cards), indent=2, ensure_ascii=False)


def import_bundle(data: str | bytes | dict[str, Any], now: int) -> tuple[Deck, list[Card]]:
    """
    Rebuild a deck and its cards from a bundle.

    Args:
        data: Bundle as a JSON string or an already-parsed dict.
        now: Import time; becomes every card's next review and creation date.

    Returns:
        (deck, cards) with fresh identifiers, cards pointing at the new deck.

    Raises:
        BundleError: malformed JSON, schema mismatch or unsupported version.
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise BundleError(f"Bundle is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise BundleError("Bundle must be a JSON object")

    version = data.get("version")
    if version != BUNDLE_VERSION:
        raise BundleError(f"Unsupported bundle version: {version!r}")

    try:
        bundle = DeckBundle.model_validate(data)
        deck = replace(bundle.deck.to_domain(), id=generate_deck_id(), created_at=now)
        cards = [
            Card.new(
                card_id=generate_card_id(),
                deck_id=deck.id,
                content=content_from_fields(rec.type, rec.question, rec.answer),
                now=now,
            )
            for rec in bundle.cards
        ]
    except (ValidationError, DomainError) as e:
        raise BundleError(f"Invalid bundle: {e}") from e

    logger.info(f"Imported deck {deck.name!r} with {len(cards)} cards")
    return deck, cards
