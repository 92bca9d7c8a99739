import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from rememberer.application.config import resolve_config
from rememberer.application.factory import get_study_store
from rememberer.application.review_service import ReviewService
from rememberer.application.state_service import TopicStateService
from rememberer.consts import APP_NAME, VERSION
from rememberer.domain.exceptions import (
    FlashcardNotFoundError,
    FlashcardSkippedError,
    InvalidQualityError,
    RemembererError,
)
from rememberer.domain.models import Flashcard

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("rememberer.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"rememberer server v{VERSION} starting up...")
    yield
    logger.info("rememberer server shutting down...")


app = FastAPI(
    title=APP_NAME,
    description="Local API for reviews and topic knowledge states.",
    version=VERSION,
    lifespan=lifespan,
)

start_time = time.time()


def get_review_service() -> ReviewService:
    return ReviewService(get_study_store(resolve_config()))


def get_state_service() -> TopicStateService:
    return TopicStateService(get_study_store(resolve_config()))


def _now(at: datetime | None) -> datetime:
    if at is None:
        return datetime.now(timezone.utc)
    return at if at.tzinfo else at.replace(tzinfo=timezone.utc)


def _http_error(e: RemembererError) -> HTTPException:
    if isinstance(e, InvalidQualityError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, FlashcardNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, FlashcardSkippedError):
        return HTTPException(status_code=409, detail=str(e))
    logger.error(f"Request failed: {e}", exc_info=True)
    return HTTPException(status_code=500, detail=str(e))


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class FlashcardResponse(BaseModel):
    id: str
    source_card_id: str
    study_state: str
    leitner_box: int
    ease_factor: float
    repetitions: int
    interval: int
    next_review_date: datetime | None
    status: str

    @classmethod
    def from_flashcard(cls, fc: Flashcard) -> "FlashcardResponse":
        return cls(
            id=fc.id,
            source_card_id=fc.source_card_id,
            study_state=fc.study_state.value,
            leitner_box=fc.leitner_box,
            ease_factor=fc.ease_factor,
            repetitions=fc.repetitions,
            interval=fc.interval,
            next_review_date=fc.next_review_date,
            status=fc.status.value,
        )


class ReviewRequest(BaseModel):
    # Range checked by the scheduler.
    quality: int
    at: datetime | None = None


class TopicStatesRequest(BaseModel):
    topic_ids: list[str]
    at: datetime | None = None


class TopicStateResponse(BaseModel):
    topic_id: str
    state: str


class TopicStatesResponse(BaseModel):
    states: list[TopicStateResponse]


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.get("/flashcards/due", response_model=list[FlashcardResponse])
def list_due(
    at: datetime | None = None,
    limit: int | None = None,
    reviews: ReviewService = Depends(get_review_service),
):
    """Active cards due for review, most overdue first."""
    try:
        cards = reviews.due_flashcards(_now(at))
    except RemembererError as e:
        raise _http_error(e) from e
    if limit is not None:
        cards = cards[:limit]
    return [FlashcardResponse.from_flashcard(fc) for fc in cards]


@app.post("/flashcards/{flashcard_id}/review", response_model=FlashcardResponse)
def review_flashcard(
    flashcard_id: str,
    req: ReviewRequest,
    reviews: ReviewService = Depends(get_review_service),
):
    try:
        fc = reviews.review(flashcard_id, req.quality, _now(req.at))
    except RemembererError as e:
        raise _http_error(e) from e
    return FlashcardResponse.from_flashcard(fc)


@app.post("/flashcards/{flashcard_id}/skip", response_model=FlashcardResponse)
def skip_flashcard(flashcard_id: str, reviews: ReviewService = Depends(get_review_service)):
    try:
        fc = reviews.skip(flashcard_id)
    except RemembererError as e:
        raise _http_error(e) from e
    return FlashcardResponse.from_flashcard(fc)


@app.post("/topics/states", response_model=TopicStatesResponse)
def topic_states(
    req: TopicStatesRequest,
    states: TopicStateService = Depends(get_state_service),
):
    try:
        result = states.topic_states(req.topic_ids, _now(req.at))
    except RemembererError as e:
        raise _http_error(e) from e
    return TopicStatesResponse(
        states=[TopicStateResponse(topic_id=topic_id, state=s.value) for topic_id, s in result]
    )


@app.get("/topics/{topic_id}/state", response_model=TopicStateResponse)
def topic_state(
    topic_id: str,
    at: datetime | None = None,
    states: TopicStateService = Depends(get_state_service),
):
    try:
        result = states.topic_state(topic_id, _now(at))
    except RemembererError as e:
        raise _http_error(e) from e
    return TopicStateResponse(topic_id=topic_id, state=result.value)
