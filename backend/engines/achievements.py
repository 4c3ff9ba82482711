"""Cumulative Stats and Achievements

Achievements are predicates over cumulative stats. The evaluator only
reports which ones newly hold; recording the unlock is the ledger's job.
"""
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Callable, Iterable

from core.logging import stats_logger
from engines.session import SessionResult

log = stats_logger()


@dataclass(frozen=True, slots=True)
class CumulativeStats:
    """All-time totals folded from committed session results."""
    total_sessions: int = 0
    total_correct: int = 0
    total_incorrect: int = 0
    total_elapsed_ms: int = 0
    sessions_by_mode: dict[str, int] = field(default_factory=dict)
    best_streak: int = 0
    best_blitz_score: int = 0
    flawless_gauntlets: int = 0

    @property
    def total_answers(self) -> int:
        return self.total_correct + self.total_incorrect

    @property
    def accuracy(self) -> float:
        return self.total_correct / self.total_answers if self.total_answers else 0.0

    def with_result(self, result: SessionResult) -> "CumulativeStats":
        by_mode = dict(self.sessions_by_mode)
        by_mode[result.mode] = by_mode.get(result.mode, 0) + 1
        flawless = result.mode == "gauntlet" and result.incorrect_count == 0 and result.correct_count > 0
        return CumulativeStats(
            total_sessions=self.total_sessions + 1,
            total_correct=self.total_correct + result.correct_count,
            total_incorrect=self.total_incorrect + result.incorrect_count,
            total_elapsed_ms=self.total_elapsed_ms + result.elapsed_ms,
            sessions_by_mode=by_mode,
            best_streak=max(self.best_streak, result.best_streak),
            best_blitz_score=max(
                self.best_blitz_score,
                result.correct_count if result.mode == "blitz" else 0,
            ),
            flawless_gauntlets=self.flawless_gauntlets + (1 if flawless else 0),
        )


@dataclass(frozen=True, slots=True)
class Achievement:
    id: str
    title: str
    description: str
    points: int
    predicate: Callable[[CumulativeStats], bool] = field(compare=False, repr=False)


ACHIEVEMENTS: tuple[Achievement, ...] = (
    Achievement("first_steps", "First Steps", "Complete your first practice session.", 10,
                lambda s: s.total_sessions >= 1),
    Achievement("dedicated", "Dedicated", "Complete 10 practice sessions.", 25,
                lambda s: s.total_sessions >= 10),
    Achievement("centurion", "Centurion", "Answer 100 questions correctly.", 25,
                lambda s: s.total_correct >= 100),
    Achievement("thousand_cuts", "Thousand Cuts", "Answer 1,000 questions correctly.", 100,
                lambda s: s.total_correct >= 1000),
    Achievement("hot_streak", "Hot Streak", "Get 10 answers right in a row.", 15,
                lambda s: s.best_streak >= 10),
    Achievement("unbroken", "Unbroken", "Get 50 answers right in a row.", 50,
                lambda s: s.best_streak >= 50),
    Achievement("gauntlet_runner", "Gauntlet Runner", "Finish a Gauntlet.", 15,
                lambda s: s.sessions_by_mode.get("gauntlet", 0) >= 1),
    Achievement("flawless", "Flawless", "Finish a Gauntlet without a single mistake.", 50,
                lambda s: s.flawless_gauntlets >= 1),
    Achievement("blitz_rookie", "Blitz Rookie", "Finish a Blitz.", 15,
                lambda s: s.sessions_by_mode.get("blitz", 0) >= 1),
    Achievement("lightning", "Lightning", "Score 30 in a single Blitz.", 50,
                lambda s: s.best_blitz_score >= 30),
    Achievement("sharpshooter", "Sharpshooter", "Keep 90% accuracy over at least 200 answers.", 40,
                lambda s: s.total_answers >= 200 and s.accuracy >= 0.9),
)


class AchievementEvaluator:
    """Finds achievements whose criteria hold and that aren't unlocked yet."""

    __slots__ = ("_catalog",)

    def __init__(self, catalog: Iterable[Achievement] = ACHIEVEMENTS):
        self._catalog = {a.id: a for a in catalog}

    @property
    def catalog(self) -> list[Achievement]:
        return list(self._catalog.values())

    def evaluate(self, stats: CumulativeStats, already_unlocked: set[str] | None = None) -> list[Achievement]:
        already_unlocked = already_unlocked or set()
        unlocked = [
            a for a in self._catalog.values()
            if a.id not in already_unlocked and a.predicate(stats)
        ]
        if unlocked:
            log.info("achievements_unlocked", ids=[a.id for a in unlocked])
        return unlocked


@lru_cache
def get_evaluator() -> AchievementEvaluator:
    return AchievementEvaluator()
