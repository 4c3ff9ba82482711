"""Practice Session State Machine

A session is an immutable value; `SessionEngine.reduce(session, event)`
returns the next value. States: idle → active → completed.

Modes:
    standard  each item is asked once; ends when the set is exhausted or on Stop
    gauntlet  items repeat; ends after a fixed number of questions
    blitz     items repeat; ends once the wall-clock deadline has passed

Time is passed in on every event (seconds, any monotonic origin), so the
reducer never reads a clock itself.
"""
import random
from dataclasses import dataclass, field, replace
from typing import Literal, Sequence, Union
from uuid import uuid4

from core.config import Settings, settings as default_settings
from core.errors import (
    AppError,
    AppErrorException,
    Ok,
    Result,
    empty_selection,
    out_of_range,
)
from core.logging import session_logger
from engines.answers import is_correct
from engines.content import ContentItem, ItemSet, build_item_set
from engines.distractors import DistractorGenerator
from engines.questions import DirectionPolicy, Question, QuestionGenerator

log = session_logger()

SessionMode = Literal["standard", "gauntlet", "blitz"]
InputMode = Literal["pick", "type"]
SessionStatus = Literal["idle", "active", "completed"]
CompletionReason = Literal["question_cap", "deadline", "exhausted", "stopped", "no_questions"]


@dataclass(frozen=True, slots=True)
class SessionConfig:
    mode: SessionMode = "standard"
    input_mode: InputMode = "pick"
    direction: DirectionPolicy = "forward"
    question_cap: int | None = None
    duration_seconds: float | None = None
    option_count: int = 4
    history_size: int = 5

    @classmethod
    def for_mode(
        cls,
        mode: SessionMode,
        *,
        input_mode: InputMode = "pick",
        direction: DirectionPolicy = "forward",
        question_cap: int | None = None,
        duration_seconds: float | None = None,
        settings: Settings = default_settings,
    ) -> "SessionConfig":
        """Config with the mode's termination policy filled in from settings."""
        if mode == "gauntlet" and question_cap is None:
            question_cap = settings.GAUNTLET_QUESTION_COUNT
        if mode == "blitz" and duration_seconds is None:
            duration_seconds = settings.BLITZ_DURATION_SECONDS
        return cls(
            mode=mode,
            input_mode=input_mode,
            direction=direction,
            question_cap=question_cap if mode == "gauntlet" else None,
            duration_seconds=duration_seconds if mode == "blitz" else None,
            option_count=settings.PICK_OPTION_COUNT,
            history_size=settings.QUESTION_HISTORY_SIZE,
        )

    @property
    def repeats_items(self) -> bool:
        return self.mode != "standard"


@dataclass(frozen=True, slots=True)
class AnswerOutcome:
    """Feedback for the most recently scored answer."""
    prompt: str
    answer: str
    expected: str
    correct: bool


@dataclass(frozen=True, slots=True)
class SessionResult:
    """Terminal snapshot handed to the stats ledger exactly once."""
    session_id: str
    mode: SessionMode
    input_mode: InputMode
    correct_count: int
    incorrect_count: int
    elapsed_ms: int
    item_set_size: int
    best_streak: int
    completion_reason: CompletionReason

    @property
    def total(self) -> int:
        return self.correct_count + self.incorrect_count

    @property
    def accuracy(self) -> float:
        return self.correct_count / self.total if self.total else 0.0


@dataclass(frozen=True, slots=True)
class Session:
    id: str
    config: SessionConfig
    items: ItemSet
    status: SessionStatus = "idle"
    index: int = 0
    correct_count: int = 0
    incorrect_count: int = 0
    streak: int = 0
    best_streak: int = 0
    started_at: float | None = None
    deadline: float | None = None
    completed_at: float | None = None
    completion_reason: CompletionReason | None = None
    question: Question | None = None
    history: tuple[str, ...] = ()
    asked: frozenset[str] = field(default_factory=frozenset)
    last_outcome: AnswerOutcome | None = None
    committed: bool = False

    @property
    def mode(self) -> SessionMode:
        return self.config.mode

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def remaining(self) -> ItemSet:
        """Items not yet asked (everything, in modes that repeat)."""
        if self.config.repeats_items:
            return self.items
        return tuple(item for item in self.items if item.prompt_form not in self.asked)

    def elapsed_ms(self, now: float | None = None) -> int:
        if self.started_at is None:
            return 0
        end = self.completed_at
        if end is None:
            if now is None:
                return 0
            end = now if self.deadline is None else min(now, self.deadline)
        return max(0, round((end - self.started_at) * 1000))

    def result(self) -> SessionResult | None:
        if not self.is_completed:
            return None
        return SessionResult(
            session_id=self.id,
            mode=self.config.mode,
            input_mode=self.config.input_mode,
            correct_count=self.correct_count,
            incorrect_count=self.incorrect_count,
            elapsed_ms=self.elapsed_ms(),
            item_set_size=len(self.items),
            best_streak=self.best_streak,
            completion_reason=self.completion_reason or "stopped",
        )


@dataclass(frozen=True, slots=True)
class Start:
    at: float


@dataclass(frozen=True, slots=True)
class AnswerSubmitted:
    answer: str
    at: float


@dataclass(frozen=True, slots=True)
class TimerTick:
    at: float


@dataclass(frozen=True, slots=True)
class Stop:
    at: float


Event = Union[Start, AnswerSubmitted, TimerTick, Stop]


class SessionEngine:
    """Creates sessions and applies events to them.

    One random source feeds question picks, direction flips, distractor
    sampling and option order, so a seeded engine replays a session exactly.
    """

    __slots__ = ("_rng", "_questions", "_distractors", "_fail_fast")

    def __init__(self, rng: random.Random | None = None, *, fail_fast: bool | None = None):
        self._rng = rng or random.Random()
        self._questions = QuestionGenerator(self._rng)
        self._distractors = DistractorGenerator(self._rng)
        self._fail_fast = default_settings.APP_DEBUG if fail_fast is None else fail_fast

    def create(
        self,
        items: Sequence[ContentItem],
        config: SessionConfig,
        session_id: str | None = None,
    ) -> Result[Session, AppError]:
        """Create an idle session; refuses an empty item set."""
        item_set = build_item_set(items)
        if not item_set:
            log.info("session_rejected", reason="empty_selection", mode=config.mode)
            return empty_selection(origin="session_engine")
        if config.mode == "gauntlet" and (config.question_cap is None or config.question_cap < 1):
            return out_of_range("question_cap", config.question_cap or 0, min_val=1, origin="session_engine")
        if config.mode == "blitz" and (config.duration_seconds is None or config.duration_seconds <= 0):
            return out_of_range("duration_seconds", config.duration_seconds or 0, min_val=0, origin="session_engine")
        if config.option_count < 1:
            return out_of_range("option_count", config.option_count, min_val=1, origin="session_engine")

        return Ok(Session(id=session_id or uuid4().hex, config=config, items=item_set))

    def reduce(self, session: Session, event: Event) -> Session:
        if session.is_completed:
            log.debug("event_ignored", session_id=session.id, event_type=type(event).__name__, status=session.status)
            return session

        match event:
            case Start(at=at):
                return self._start(session, at)
            case AnswerSubmitted(answer=answer, at=at):
                return self._answer(session, answer, at)
            case TimerTick(at=at):
                return self._tick(session, at)
            case Stop(at=at):
                return self._stop(session, at)
        raise TypeError(f"Unknown session event: {event!r}")

    def _start(self, session: Session, at: float) -> Session:
        if session.status != "idle":
            return session
        deadline = None
        if session.config.duration_seconds is not None:
            deadline = at + session.config.duration_seconds

        log.info(
            "session_started",
            session_id=session.id,
            mode=session.config.mode,
            input_mode=session.config.input_mode,
            direction=session.config.direction,
            items=len(session.items),
            question_cap=session.config.question_cap,
            deadline_in=session.config.duration_seconds,
        )
        active = replace(session, status="active", started_at=at, deadline=deadline)
        return self._next_question(active, at)

    def _answer(self, session: Session, answer: str, at: float) -> Session:
        question = session.question
        if not session.is_active or question is None:
            return session

        correct = is_correct(question, answer)
        streak = session.streak + 1 if correct else 0
        history = (*session.history, question.item.prompt_form)[-max(1, session.config.history_size):]
        scored = replace(
            session,
            index=session.index + 1,
            correct_count=session.correct_count + (1 if correct else 0),
            incorrect_count=session.incorrect_count + (0 if correct else 1),
            streak=streak,
            best_streak=max(session.best_streak, streak),
            history=history,
            asked=session.asked | {question.item.prompt_form},
            question=None,
            last_outcome=AnswerOutcome(
                prompt=question.prompt,
                answer=answer,
                expected=question.answer,
                correct=correct,
            ),
        )
        log.debug("answer_recorded", session_id=session.id, index=scored.index, correct=correct)

        # Score first, then look at the clock: a late final answer still counts
        cap = session.config.question_cap
        if cap is not None and scored.index >= cap:
            return self._complete(scored, at, "question_cap")
        if scored.deadline is not None and at >= scored.deadline:
            return self._complete(scored, at, "deadline")
        if not scored.remaining:
            return self._complete(scored, at, "exhausted")
        return self._next_question(scored, at)

    def _tick(self, session: Session, at: float) -> Session:
        if session.is_active and session.deadline is not None and at >= session.deadline:
            # A late poll still ends the session at its deadline
            return self._complete(session, session.deadline, "deadline")
        return session

    def _stop(self, session: Session, at: float) -> Session:
        if not session.is_active:
            return session
        if session.config.mode != "standard":
            log.debug("stop_ignored", session_id=session.id, mode=session.config.mode)
            return session
        return self._complete(session, at, "stopped")

    def _next_question(self, session: Session, at: float) -> Session:
        candidates = list(session.remaining)
        while candidates:
            question = self._questions.next(candidates, session.history, session.config.direction)
            if session.config.input_mode == "type":
                return replace(session, question=question)

            options = self._distractors.options(
                question.item, session.items, question.direction, session.config.option_count
            )
            if options.is_err():
                if self._fail_fast:
                    raise AppErrorException(options.unwrap_err())
                log.error(
                    "question_skipped",
                    session_id=session.id,
                    prompt=question.item.prompt_form,
                    error=options.unwrap_err().message,
                )
                candidates = [c for c in candidates if c != question.item]
                continue

            shuffled = list(options.unwrap())
            self._rng.shuffle(shuffled)
            return replace(session, question=replace(question, options=tuple(shuffled)))

        return self._complete(session, at, "no_questions")

    def _complete(self, session: Session, at: float, reason: CompletionReason) -> Session:
        completed = replace(
            session,
            status="completed",
            question=None,
            completed_at=at,
            completion_reason=reason,
        )
        log.info(
            "session_completed",
            session_id=session.id,
            mode=session.config.mode,
            reason=reason,
            correct=completed.correct_count,
            incorrect=completed.incorrect_count,
            elapsed_ms=completed.elapsed_ms(),
        )
        return completed


def mark_committed(session: Session) -> Session:
    """Flag a completed session's result as handed off to the ledger."""
    return replace(session, committed=True)
