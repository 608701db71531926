import logging
import time
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from mindsprout.application.config import resolve_config
from mindsprout.application.factory import get_record_store
from mindsprout.application.stats.metrics_calculator import compute_stats
from mindsprout.application.study_service import StudyService
from mindsprout.consts import VERSION
from mindsprout.domain.constants import DEFAULT_DECK_COLOR, DEFAULT_SESSION_LIMIT
from mindsprout.domain.exceptions import DomainError, NotFoundError, StoreError
from mindsprout.domain.models import Card, Deck, Difficulty, Strategy

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("mindsprout.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"MindSprout Server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("MindSprout Server shutting down...")


app = FastAPI(
    title="MindSprout Server",
    description="Local API for decks, study sessions and stats.",
    version=VERSION,
    lifespan=lifespan,
)

_service: StudyService | None = None


async def get_study_service() -> StudyService:
    """Lazily build the process-wide service from config."""
    global _service
    if _service is None:
        config = resolve_config()
        logging.getLogger("mindsprout").setLevel(config.log_level)
        service = StudyService(get_record_store(config))
        await service.load()
        _service = service
    return _service


Service = Annotated[StudyService, Depends(get_study_service)]


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class DeckView(BaseModel):
    id: str
    name: str
    color: str
    description: str | None
    session_limit: int
    strategy: Strategy

    @classmethod
    def of(cls, deck: Deck) -> "DeckView":
        return cls(
            id=deck.id,
            name=deck.name,
            color=deck.color,
            description=deck.description,
            session_limit=deck.session_limit,
            strategy=deck.strategy,
        )


class CardView(BaseModel):
    id: str
    deck_id: str
    type: str
    prompt: str
    answer: str
    interval: int
    repetition: int
    easiness: float
    next_review: int

    @classmethod
    def of(cls, card: Card) -> "CardView":
        return cls(
            id=card.id,
            deck_id=card.deck_id,
            type=card.type.value,
            prompt=card.content.prompt(),
            answer=card.answer,
            interval=card.interval,
            repetition=card.repetition,
            easiness=card.easiness,
            next_review=card.next_review,
        )


class CreateDeckRequest(BaseModel):
    name: str
    color: str = DEFAULT_DECK_COLOR
    description: str | None = None
    session_limit: int = Field(default=DEFAULT_SESSION_LIMIT, gt=0)
    strategy: Strategy = Strategy.STANDARD


class SessionResponse(BaseModel):
    deck_id: str
    due: int
    new: int
    dropped: int
    cards: list[CardView]


class GradeRequest(BaseModel):
    difficulty: Difficulty
    duration: int = Field(default=0, ge=0)


start_time = time.time()


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, DomainError):
        return HTTPException(status_code=422, detail=str(e))
    logger.error(f"Store failure: {e}")
    return HTTPException(status_code=500, detail=str(e))


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.get("/decks", response_model=list[DeckView])
async def list_decks(service: Service):
    return [DeckView.of(d) for d in service.decks]


@app.post("/decks", response_model=DeckView, status_code=201)
async def create_deck(req: CreateDeckRequest, service: Service):
    try:
        deck = await service.create_deck(
            req.name,
            color=req.color,
            description=req.description,
            session_limit=req.session_limit,
            strategy=req.strategy,
        )
    except (DomainError, StoreError) as e:
        raise _http_error(e) from e
    return DeckView.of(deck)


@app.delete("/decks/{deck_id}")
async def delete_deck(deck_id: str, service: Service):
    try:
        removed = await service.delete_deck(deck_id)
    except (NotFoundError, StoreError) as e:
        raise _http_error(e) from e
    return {"deleted": deck_id, "cards_removed": removed}


@app.get("/decks/{deck_id}/session", response_model=SessionResponse)
async def plan_session(deck_id: str, service: Service):
    """
    Cards the next study session should present, in order.
    """
    try:
        plan = service.plan(deck_id)
    except NotFoundError as e:
        raise _http_error(e) from e
    return SessionResponse(
        deck_id=plan.deck_id,
        due=plan.due_count,
        new=plan.new_count,
        dropped=plan.dropped,
        cards=[CardView.of(c) for c in plan.cards],
    )


@app.post("/cards/{card_id}/grade", response_model=CardView)
async def grade_card(card_id: str, req: GradeRequest, service: Service):
    """
    Grade a card. The new schedule is saved before it is returned.
    """
    logger.debug(f"Grade requested via API: {card_id} {req.difficulty.value}")
    try:
        card = await service.grade_card(card_id, req.difficulty, duration=req.duration)
    except (NotFoundError, DomainError, StoreError) as e:
        raise _http_error(e) from e
    return CardView.of(card)


@app.get("/stats")
async def get_stats(service: Service):
    report = compute_stats(service.cards, service.decks, service.now())
    return asdict(report)
