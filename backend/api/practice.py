"""Practice Session API

Starts sessions from a group selection, accepts answers and timer polls, and
commits each completed session's result to the stats ledger exactly once.
"""

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.database import get_db
from core.errors import raise_result
from core.security import get_current_player_id
from engines.achievements import Achievement, AchievementEvaluator, get_evaluator
from engines.content import ContentCatalog, get_catalog
from engines.questions import DirectionPolicy
from engines.registry import SessionRegistry, get_registry
from engines.session import InputMode, Session, SessionConfig, SessionMode
from engines.stats import StatsLedger, record_completed_session

router = APIRouter()


class SessionCreate(BaseModel):
    groups: list[str]
    mode: SessionMode = "standard"
    input_mode: InputMode = "pick"
    direction: DirectionPolicy = "forward"
    question_cap: int | None = Field(None, ge=1, le=500)
    duration_seconds: float | None = Field(None, gt=0, le=3600)


class AnswerSubmit(BaseModel):
    answer: str = Field(..., max_length=200)


class QuestionResponse(BaseModel):
    prompt: str
    direction: str
    group_id: str
    options: list[str] | None = None


class OutcomeResponse(BaseModel):
    prompt: str
    answer: str
    expected: str
    correct: bool


class UnlockedAchievement(BaseModel):
    id: str
    title: str
    description: str
    points: int


class SessionResponse(BaseModel):
    id: str
    status: str
    mode: str
    input_mode: str
    direction: str
    index: int
    correct_count: int
    incorrect_count: int
    streak: int
    best_streak: int
    item_set_size: int
    question_cap: int | None
    remaining_seconds: float | None
    poll_interval_ms: int | None
    elapsed_ms: int
    question: QuestionResponse | None
    last_outcome: OutcomeResponse | None
    completion_reason: str | None
    committed: bool
    unlocked: list[UnlockedAchievement] = []


def _to_response(
    session: Session,
    now: float,
    unlocked: list[Achievement] | None = None,
) -> SessionResponse:
    remaining = None
    if session.deadline is not None:
        remaining = max(0.0, round(session.deadline - now, 3)) if session.is_active else 0.0

    question = None
    if session.question is not None:
        q = session.question
        question = QuestionResponse(
            prompt=q.prompt,
            direction=q.direction,
            group_id=q.item.group_id,
            options=list(q.options) if session.config.input_mode == "pick" else None,
        )

    outcome = None
    if session.last_outcome is not None:
        o = session.last_outcome
        outcome = OutcomeResponse(prompt=o.prompt, answer=o.answer, expected=o.expected, correct=o.correct)

    return SessionResponse(
        id=session.id,
        status=session.status,
        mode=session.config.mode,
        input_mode=session.config.input_mode,
        direction=session.config.direction,
        index=session.index,
        correct_count=session.correct_count,
        incorrect_count=session.incorrect_count,
        streak=session.streak,
        best_streak=session.best_streak,
        item_set_size=len(session.items),
        question_cap=session.config.question_cap,
        remaining_seconds=remaining,
        poll_interval_ms=settings.BLITZ_POLL_INTERVAL_MS if session.deadline is not None else None,
        elapsed_ms=session.elapsed_ms(now),
        question=question,
        last_outcome=outcome,
        completion_reason=session.completion_reason,
        committed=session.committed,
        unlocked=[
            UnlockedAchievement(id=a.id, title=a.title, description=a.description, points=a.points)
            for a in unlocked or []
        ],
    )


async def _finalize(
    registry: SessionRegistry,
    evaluator: AchievementEvaluator,
    db: AsyncSession,
    session_id: str,
    player_id: str,
) -> list[Achievement]:
    """Commit the session's result if it just completed; no-op otherwise."""
    result = registry.claim_result(session_id)
    if result is None:
        return []

    outcome = await record_completed_session(StatsLedger(db), evaluator, player_id, result)
    if outcome.is_err():
        registry.release_claim(session_id)
        raise_result(outcome)
    return outcome.unwrap().unlocked


async def _respond(
    registry: SessionRegistry,
    evaluator: AchievementEvaluator,
    db: AsyncSession,
    session_id: str,
    player_id: str,
) -> SessionResponse:
    unlocked = await _finalize(registry, evaluator, db, session_id, player_id)
    current = registry.get(session_id, player_id)
    raise_result(current)
    return _to_response(current.unwrap(), registry.now(), unlocked)


@router.post("/sessions", response_model=SessionResponse, status_code=201)
async def start_session(
    payload: SessionCreate,
    player_id: str = Depends(get_current_player_id),
    catalog: ContentCatalog = Depends(get_catalog),
    registry: SessionRegistry = Depends(get_registry),
    evaluator: AchievementEvaluator = Depends(get_evaluator),
    db: AsyncSession = Depends(get_db),
):
    """Resolve the selection and start a session on it."""
    resolved = catalog.resolve(payload.groups)
    raise_result(resolved)

    config = SessionConfig.for_mode(
        payload.mode,
        input_mode=payload.input_mode,
        direction=payload.direction,
        question_cap=payload.question_cap,
        duration_seconds=payload.duration_seconds,
    )
    started = registry.start(player_id, resolved.unwrap(), config)
    raise_result(started)
    return await _respond(registry, evaluator, db, started.unwrap().id, player_id)


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    player_id: str = Depends(get_current_player_id),
    registry: SessionRegistry = Depends(get_registry),
    evaluator: AchievementEvaluator = Depends(get_evaluator),
    db: AsyncSession = Depends(get_db),
):
    """Current session state. Retries a commit that failed earlier."""
    raise_result(registry.get(session_id, player_id))
    return await _respond(registry, evaluator, db, session_id, player_id)


@router.post("/sessions/{session_id}/answer", response_model=SessionResponse)
async def submit_answer(
    session_id: str,
    payload: AnswerSubmit,
    player_id: str = Depends(get_current_player_id),
    registry: SessionRegistry = Depends(get_registry),
    evaluator: AchievementEvaluator = Depends(get_evaluator),
    db: AsyncSession = Depends(get_db),
):
    """Score an answer and advance to the next question."""
    raise_result(registry.submit_answer(session_id, player_id, payload.answer))
    return await _respond(registry, evaluator, db, session_id, player_id)


@router.post("/sessions/{session_id}/tick", response_model=SessionResponse)
async def tick_session(
    session_id: str,
    player_id: str = Depends(get_current_player_id),
    registry: SessionRegistry = Depends(get_registry),
    evaluator: AchievementEvaluator = Depends(get_evaluator),
    db: AsyncSession = Depends(get_db),
):
    """Timer poll: completes a timed session once its deadline has passed."""
    raise_result(registry.tick(session_id, player_id))
    return await _respond(registry, evaluator, db, session_id, player_id)


@router.post("/sessions/{session_id}/stop", response_model=SessionResponse)
async def stop_session(
    session_id: str,
    player_id: str = Depends(get_current_player_id),
    registry: SessionRegistry = Depends(get_registry),
    evaluator: AchievementEvaluator = Depends(get_evaluator),
    db: AsyncSession = Depends(get_db),
):
    """End a standard session early; its result is committed."""
    raise_result(registry.stop(session_id, player_id))
    return await _respond(registry, evaluator, db, session_id, player_id)


@router.delete("/sessions/{session_id}", status_code=204)
async def discard_session(
    session_id: str,
    player_id: str = Depends(get_current_player_id),
    registry: SessionRegistry = Depends(get_registry),
):
    """Abandon a session. Nothing is committed."""
    raise_result(registry.discard(session_id, player_id))
    return Response(status_code=204)
