"""Stats Ledger

Append-only store of completed session results, with cumulative stats
aggregated in SQL and achievement unlocks recorded alongside.
"""
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import AppError, Ok, Result, transaction_failed
from core.logging import stats_logger
from engines.achievements import Achievement, AchievementEvaluator, CumulativeStats
from engines.session import SessionResult
from models.progress import AchievementUnlock, SessionResultRecord

log = stats_logger()


@dataclass(slots=True)
class CommitOutcome:
    """What a session's commit produced."""
    result: SessionResult
    stats: CumulativeStats
    unlocked: list[Achievement]


class StatsLedger:
    """Reads and appends a player's progress rows."""

    __slots__ = ("_db",)

    def __init__(self, db: AsyncSession):
        self._db = db

    async def commit(self, player_id: str, result: SessionResult) -> CumulativeStats:
        """Append a session result and return the updated cumulative stats."""
        before = await self.cumulative(player_id)
        self._db.add(SessionResultRecord(
            player_id=player_id,
            session_id=result.session_id,
            mode=result.mode,
            input_mode=result.input_mode,
            correct_count=result.correct_count,
            incorrect_count=result.incorrect_count,
            elapsed_ms=result.elapsed_ms,
            item_set_size=result.item_set_size,
            best_streak=result.best_streak,
            completion_reason=result.completion_reason,
        ))
        await self._db.flush()
        return before.with_result(result)

    async def cumulative(self, player_id: str) -> CumulativeStats:
        R = SessionResultRecord
        totals = (await self._db.execute(
            select(
                func.count(R.id),
                func.coalesce(func.sum(R.correct_count), 0),
                func.coalesce(func.sum(R.incorrect_count), 0),
                func.coalesce(func.sum(R.elapsed_ms), 0),
                func.coalesce(func.max(R.best_streak), 0),
            ).where(R.player_id == player_id)
        )).one()

        by_mode = (await self._db.execute(
            select(R.mode, func.count(R.id))
            .where(R.player_id == player_id)
            .group_by(R.mode)
        )).all()

        best_blitz = (await self._db.execute(
            select(func.coalesce(func.max(R.correct_count), 0))
            .where(R.player_id == player_id, R.mode == "blitz")
        )).scalar_one()

        flawless = (await self._db.execute(
            select(func.count(R.id)).where(
                R.player_id == player_id,
                R.mode == "gauntlet",
                R.incorrect_count == 0,
                R.correct_count > 0,
            )
        )).scalar_one()

        return CumulativeStats(
            total_sessions=totals[0],
            total_correct=int(totals[1]),
            total_incorrect=int(totals[2]),
            total_elapsed_ms=int(totals[3]),
            sessions_by_mode={mode: count for mode, count in by_mode},
            best_streak=int(totals[4]),
            best_blitz_score=int(best_blitz),
            flawless_gauntlets=flawless,
        )

    async def unlocked(self, player_id: str) -> dict[str, datetime]:
        """Achievement id -> unlock time for the player."""
        rows = await self._db.execute(
            select(AchievementUnlock.achievement_id, AchievementUnlock.unlocked_at)
            .where(AchievementUnlock.player_id == player_id)
        )
        return {achievement_id: unlocked_at for achievement_id, unlocked_at in rows.all()}

    async def record_unlocks(self, player_id: str, achievements: list[Achievement]) -> None:
        for achievement in achievements:
            self._db.add(AchievementUnlock(player_id=player_id, achievement_id=achievement.id))
        await self._db.flush()

    async def save(self) -> None:
        await self._db.commit()

    async def rollback(self) -> None:
        await self._db.rollback()


async def record_completed_session(
    ledger: StatsLedger,
    evaluator: AchievementEvaluator,
    player_id: str,
    result: SessionResult,
) -> Result[CommitOutcome, AppError]:
    """Commit a terminal result, then re-evaluate achievements on the new totals.

    Returns:
        Ok(CommitOutcome) once everything is persisted
        Err(transaction_failed) if the database write fails (nothing is kept)
    """
    try:
        stats = await ledger.commit(player_id, result)
        already = await ledger.unlocked(player_id)
        unlocked = evaluator.evaluate(stats, set(already))
        if unlocked:
            await ledger.record_unlocks(player_id, unlocked)
        await ledger.save()
    except SQLAlchemyError as e:
        await ledger.rollback()
        log.error("session_commit_failed", session_id=result.session_id, error=str(e))
        return transaction_failed("could not record session result", origin="stats_ledger", cause=e)

    log.info(
        "session_committed",
        session_id=result.session_id,
        mode=result.mode,
        correct=result.correct_count,
        incorrect=result.incorrect_count,
        accuracy=round(result.accuracy, 3),
        total_sessions=stats.total_sessions,
        unlocked=[a.id for a in unlocked],
    )
    return Ok(CommitOutcome(result=result, stats=stats, unlocked=unlocked))
