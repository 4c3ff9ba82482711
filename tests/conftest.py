import os

# Point the app's default engine at a throwaway in-memory database before
# anything imports core.database.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import random

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from core.database import Base
from engines.content import ContentItem
from engines.session import SessionEngine, SessionResult


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def kana(prompt: str, answer: str, group: str = "hiragana-a") -> ContentItem:
    return ContentItem(prompt_form=prompt, answer_form=answer, group_id=group)


@pytest.fixture
def vowels() -> list[ContentItem]:
    return [kana("あ", "a"), kana("い", "i"), kana("う", "u")]


@pytest.fixture
def ka_row() -> list[ContentItem]:
    return [
        kana("か", "ka", "hiragana-ka"),
        kana("き", "ki", "hiragana-ka"),
        kana("く", "ku", "hiragana-ka"),
        kana("け", "ke", "hiragana-ka"),
        kana("こ", "ko", "hiragana-ka"),
    ]


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def engine(rng) -> SessionEngine:
    return SessionEngine(rng, fail_fast=True)


def make_test_engine():
    return create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


async def create_tables(db_engine) -> None:
    import models  # noqa: F401

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def make_sessionmaker(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


def session_result(mode="standard", correct=5, incorrect=0, best_streak=5, elapsed_ms=1000, session_id="s1"):
    return SessionResult(
        session_id=session_id,
        mode=mode,
        input_mode="pick",
        correct_count=correct,
        incorrect_count=incorrect,
        elapsed_ms=elapsed_ms,
        item_set_size=5,
        best_streak=best_streak,
        completion_reason="exhausted",
    )
