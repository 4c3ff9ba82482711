"""Progress API

Cumulative stats and the achievement catalog with the player's unlocks.
"""
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.security import get_current_player_id
from engines.achievements import AchievementEvaluator, get_evaluator
from engines.stats import StatsLedger

router = APIRouter()

POINTS_PER_LEVEL = 100


class StatsResponse(BaseModel):
    total_sessions: int
    total_correct: int
    total_incorrect: int
    total_elapsed_ms: int
    accuracy: float
    sessions_by_mode: dict[str, int]
    best_streak: int
    best_blitz_score: int
    flawless_gauntlets: int


class AchievementResponse(BaseModel):
    id: str
    title: str
    description: str
    points: int
    unlocked_at: datetime | None


class AchievementsResponse(BaseModel):
    total_points: int
    level: int
    unlocked_count: int
    achievements: list[AchievementResponse]


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    player_id: str = Depends(get_current_player_id),
    db: AsyncSession = Depends(get_db),
):
    """All-time stats folded from committed sessions."""
    stats = await StatsLedger(db).cumulative(player_id)
    return StatsResponse(
        total_sessions=stats.total_sessions,
        total_correct=stats.total_correct,
        total_incorrect=stats.total_incorrect,
        total_elapsed_ms=stats.total_elapsed_ms,
        accuracy=round(stats.accuracy, 4),
        sessions_by_mode=stats.sessions_by_mode,
        best_streak=stats.best_streak,
        best_blitz_score=stats.best_blitz_score,
        flawless_gauntlets=stats.flawless_gauntlets,
    )


@router.get("/achievements", response_model=AchievementsResponse)
async def get_achievements(
    player_id: str = Depends(get_current_player_id),
    evaluator: AchievementEvaluator = Depends(get_evaluator),
    db: AsyncSession = Depends(get_db),
):
    """Every achievement, with unlock times for the ones the player has."""
    unlocked = await StatsLedger(db).unlocked(player_id)
    achievements = [
        AchievementResponse(
            id=a.id,
            title=a.title,
            description=a.description,
            points=a.points,
            unlocked_at=unlocked.get(a.id),
        )
        for a in evaluator.catalog
    ]
    total_points = sum(a.points for a in achievements if a.unlocked_at is not None)
    return AchievementsResponse(
        total_points=total_points,
        level=1 + total_points // POINTS_PER_LEVEL,
        unlocked_count=sum(1 for a in achievements if a.unlocked_at is not None),
        achievements=achievements,
    )
