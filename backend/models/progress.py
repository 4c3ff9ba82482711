from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, String, DateTime, Integer, Index, UniqueConstraint

from core.database import Base


class SessionResultRecord(Base):
    """One row per completed practice session. Append-only."""
    __tablename__ = "session_results"

    id = Column(String(32), primary_key=True, default=lambda: uuid4().hex)
    player_id = Column(String(64), nullable=False)
    session_id = Column(String(32), nullable=False, unique=True)
    mode = Column(String(20), nullable=False)  # standard / gauntlet / blitz
    input_mode = Column(String(10), nullable=False)  # pick / type
    correct_count = Column(Integer, nullable=False, default=0)
    incorrect_count = Column(Integer, nullable=False, default=0)
    elapsed_ms = Column(Integer, nullable=False, default=0)
    item_set_size = Column(Integer, nullable=False)
    best_streak = Column(Integer, nullable=False, default=0)
    completion_reason = Column(String(20), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_session_results_player_mode", "player_id", "mode"),
    )


class AchievementUnlock(Base):
    """Achievements a player has unlocked."""
    __tablename__ = "achievement_unlocks"

    id = Column(String(32), primary_key=True, default=lambda: uuid4().hex)
    player_id = Column(String(64), nullable=False)
    achievement_id = Column(String(50), nullable=False)
    unlocked_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("player_id", "achievement_id", name="uq_player_achievement"),
    )
