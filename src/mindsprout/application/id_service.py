"""Stable identifiers for decks and cards."""

from ulid import ULID


def generate_id(prefix: str) -> str:
    """Generate a sortable unique ID using ULID."""
    return f"{prefix}_{ULID()}"


def generate_deck_id() -> str:
    return generate_id("deck")


def generate_card_id() -> str:
    return generate_id("card")
