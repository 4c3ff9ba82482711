from engines.content import ContentCatalog, ContentGroup, ContentItem, build_item_set, get_catalog
from engines.questions import Question, QuestionGenerator
from engines.distractors import DistractorGenerator
from engines.answers import is_correct
from engines.session import Session, SessionConfig, SessionEngine, SessionResult
from engines.achievements import Achievement, AchievementEvaluator, CumulativeStats
from engines.registry import SessionRegistry

__all__ = [
    "ContentCatalog",
    "ContentGroup",
    "ContentItem",
    "build_item_set",
    "get_catalog",
    "Question",
    "QuestionGenerator",
    "DistractorGenerator",
    "is_correct",
    "Session",
    "SessionConfig",
    "SessionEngine",
    "SessionResult",
    "Achievement",
    "AchievementEvaluator",
    "CumulativeStats",
    "SessionRegistry",
]
