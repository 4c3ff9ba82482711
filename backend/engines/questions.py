"""Question Generator

Draws the next prompt uniformly from the item set. An immediate repeat of the
previous prompt is redrawn once; the second draw is accepted as-is so small
item sets (one or two items) always terminate.
"""
import random
from dataclasses import dataclass
from typing import Literal, Sequence

from core.errors import AppErrorException, empty_selection
from core.logging import engine_logger
from engines.content import ContentItem, Direction

log = engine_logger()

DirectionPolicy = Literal["forward", "reverse", "random"]


@dataclass(frozen=True, slots=True)
class Question:
    """One round of a session. Immutable once presented."""
    item: ContentItem
    direction: Direction
    options: tuple[str, ...] = ()

    @property
    def prompt(self) -> str:
        return self.item.prompt_for(self.direction)

    @property
    def answer(self) -> str:
        return self.item.answer_for(self.direction)


class QuestionGenerator:
    """Picks prompts and directions from an injected random source."""

    __slots__ = ("_rng",)

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def next(
        self,
        items: Sequence[ContentItem],
        history: Sequence[str] = (),
        direction: DirectionPolicy = "forward",
    ) -> Question:
        """Generate the next question.

        Args:
            items: Candidate items; must be non-empty.
            history: Recently prompted `prompt_form`s, most recent last.
            direction: Fixed direction, or "random" for a coin flip per question.
        """
        if not items:
            # Sessions check this before starting; reaching here is a caller bug
            raise AppErrorException(empty_selection(origin="question_generator").error)

        candidate = self._rng.choice(items)
        if len(items) > 1 and history and candidate.prompt_form == history[-1]:
            candidate = self._rng.choice(items)
            log.debug("question_redrawn", previous=history[-1], redrawn=candidate.prompt_form)

        return Question(item=candidate, direction=self.pick_direction(direction))

    def pick_direction(self, policy: DirectionPolicy) -> Direction:
        if policy == "random":
            return "reverse" if self._rng.random() < 0.5 else "forward"
        return policy
