"""Distractor Generator

Builds the option list for pick-mode questions: the correct answer first,
followed by up to `count - 1` wrong answers drawn from the same item set.
Options are unique by answer string, so homophones never show up twice.
"""
import random
from typing import Sequence

from core.errors import AppError, Ok, Result, malformed_question, out_of_range
from core.logging import engine_logger
from engines.content import ContentItem, Direction

log = engine_logger()


class DistractorGenerator:
    """Samples wrong answers with an injected random source."""

    __slots__ = ("_rng",)

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def options(
        self,
        correct: ContentItem,
        items: Sequence[ContentItem],
        direction: Direction,
        count: int,
    ) -> Result[tuple[str, ...], AppError]:
        """Return `(correct_answer, *wrong_answers)`.

        Small item sets yield fewer than `count` options; callers must not
        assume a fixed length. Display order is the caller's concern.
        """
        if count < 1:
            return out_of_range("count", count, min_val=1, origin="distractor_generator")
        if correct not in items:
            return malformed_question(
                correct.prompt_form, "item is not in the item set", origin="distractor_generator"
            )

        answer = correct.answer_for(direction)
        pool = [a for a in (item.answer_for(direction) for item in items) if a != answer]
        self._rng.shuffle(pool)

        seen = {answer}
        wrong: list[str] = []
        for candidate in pool:
            if len(wrong) >= count - 1:
                break
            if candidate in seen:
                continue
            seen.add(candidate)
            wrong.append(candidate)

        if len(wrong) < count - 1:
            log.debug("distractor_pool_short", requested=count - 1, available=len(wrong))
        return Ok((answer, *wrong))
