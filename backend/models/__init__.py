from models.progress import SessionResultRecord, AchievementUnlock

__all__ = [
    "SessionResultRecord",
    "AchievementUnlock",
]
