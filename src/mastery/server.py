import logging
import time
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from mastery.application.config import resolve_config
from mastery.application.factory import build_service
from mastery.application.service import SchedulingService
from mastery.consts import VERSION
from mastery.domain.cards.models import Card
from mastery.domain.errors import Conflict, InvalidRating, NotFound, SchedulingError

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("mastery.server")

_service: SchedulingService | None = None


def get_service() -> SchedulingService:
    """Service built from the resolved config on first use, then shared."""
    global _service
    if _service is None:
        _service = build_service(resolve_config())
    return _service


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Mastery Server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("Mastery Server shutting down...")


app = FastAPI(
    title="Mastery Server",
    description="Spaced-repetition scheduling API for the mastery dashboard.",
    version=VERSION,
    lifespan=lifespan,
)

ERROR_STATUS = {
    InvalidRating: 422,
    NotFound: 404,
    Conflict: 409,
}


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    status = next((code for kind, code in ERROR_STATUS.items() if isinstance(exc, kind)), 400)
    if status >= 409:
        logger.warning(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class CardResponse(BaseModel):
    problem_id: str
    state: str
    stability: float
    difficulty: float
    due: datetime
    elapsed_days: float
    scheduled_days: float
    reps: int
    lapses: int
    last_review: datetime | None
    version: int

    @classmethod
    def from_card(cls, card: Card) -> "CardResponse":
        return cls(**card.to_dict())


class EnrollRequest(BaseModel):
    problem_id: str = Field(min_length=1)


class ReviewRequest(BaseModel):
    card_id: str
    # Range is checked by the scheduler so the failure carries the typed error
    rating: int
    elapsed_seconds: int = Field(default=0, ge=0)


start_time = time.time()


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.post("/cards", response_model=CardResponse)
async def enroll(req: EnrollRequest, service: SchedulingService = Depends(get_service)):
    """Start scheduling a problem (idempotent)."""
    return CardResponse.from_card(await service.enroll(req.problem_id))


@app.get("/cards/due", response_model=list[CardResponse])
async def due_cards(limit: int | None = None, service: SchedulingService = Depends(get_service)):
    cards = await service.get_due_cards(limit)
    return [CardResponse.from_card(card) for card in cards]


@app.get("/cards/{problem_id}", response_model=CardResponse)
async def get_card(problem_id: str, service: SchedulingService = Depends(get_service)):
    return CardResponse.from_card(await service.get_card(problem_id))


@app.delete("/cards/{problem_id}", status_code=204)
async def delete_card(problem_id: str, service: SchedulingService = Depends(get_service)):
    await service.remove_card(problem_id)


@app.post("/reviews", response_model=CardResponse)
async def process_review(req: ReviewRequest, service: SchedulingService = Depends(get_service)):
    logger.info(f"Review submitted via API: {req}")
    card = await service.process_review(req.card_id, req.rating, req.elapsed_seconds)
    return CardResponse.from_card(card)


@app.get("/stats")
async def get_stats(service: SchedulingService = Depends(get_service)):
    return (await service.get_stats()).to_dict()


@app.get("/stats/weak")
async def get_weak_cards(service: SchedulingService = Depends(get_service)):
    """Reviewed cards with low stability, any lapses, or fading retrievability."""
    return [asdict(m) for m in await service.get_weak_cards()]


@app.get("/phases/queue")
async def get_phase_queue(service: SchedulingService = Depends(get_service)):
    """Waiting count per phase number, plus the recommended focus."""
    return (await service.get_phase_queue()).to_dict()


@app.get("/recommendations")
async def get_recommendations(service: SchedulingService = Depends(get_service)):
    return (await service.get_recommendations()).to_dict()
