import pytest

from mindsprout.application.study_service import StudyService
from mindsprout.domain.content import NormalContent
from mindsprout.domain.models import Card, Deck, DeckSettings, Strategy
from mindsprout.infrastructure.store import MemoryRecordStore

T0 = 1_700_000_000_000  # fixed "now" for deterministic tests


@pytest.fixture
def now():
    return T0


@pytest.fixture
def make_card():
    """Factory for cards with sensible defaults; override any field."""

    def _make(card_id="c1", deck_id="d1", question="Q", answer="A", **kwargs):
        kwargs.setdefault("next_review", T0)
        kwargs.setdefault("created_at", T0)
        return Card(
            id=card_id,
            deck_id=deck_id,
            content=NormalContent(question=question, answer=answer),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_deck():
    def _make(deck_id="d1", name="Deck", strategy=Strategy.STANDARD, session_limit=20):
        return Deck(
            id=deck_id,
            name=name,
            created_at=T0,
            settings=DeckSettings(session_limit=session_limit, strategy=strategy),
        )

    return _make


@pytest.fixture
def store():
    return MemoryRecordStore()


@pytest.fixture
def service(store):
    """StudyService over an in-memory store with a frozen clock."""
    return StudyService(store, clock=lambda: T0)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Isolate config files and data dirs from the real user
    monkeypatch.setenv("HOME", str(home))
    for var in (
        "MINDSPROUT_DATA_DIR",
        "MINDSPROUT_BACKEND",
        "MINDSPROUT_DEFAULT_SESSION_LIMIT",
        "MINDSPROUT_DEFAULT_STRATEGY",
        "MINDSPROUT_VERBOSE",
    ):
        monkeypatch.delenv(var, raising=False)
    return home
