"""
SM-2 family scheduler with Standard and Exam presets.

Pure computation: maps (card, grade, strategy) to the rescheduled card.
No I/O; the caller persists the result.

Quality mapping:
    3: VeryEasy (optimal response)
    2: Easy (correct after hesitation)
    1: Hard (correct with serious difficulty, counted as a lapse)
    0: VeryHard (incorrect)
"""

import logging
import math
import time
from dataclasses import replace

from mindsprout.domain.constants import (
    DAY_MS,
    EASINESS_FLOOR,
    EXAM_EASINESS_CEILING,
    EXAM_MULTIPLIER_CAP,
    EXAM_SECOND_INTERVAL,
    EXAM_THIRD_INTERVAL,
    FIRST_PASS_INTERVAL,
    LAPSE_INTERVAL,
    PASS_QUALITY,
    STANDARD_SECOND_INTERVAL,
)
from mindsprout.domain.exceptions import DomainError, InvalidDifficultyError, InvalidStrategyError
from mindsprout.domain.models import Card, Difficulty, ReviewRecord, Strategy

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current wall clock in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def next_interval(card: Card, quality: int, strategy: Strategy) -> int:
    """
    Interval (days) after a grade of the given quality.

    A lapse always restarts at one day, however far the card had progressed.
    """
    if quality < PASS_QUALITY:
        return LAPSE_INTERVAL

    if card.repetition == 0:
        return FIRST_PASS_INTERVAL
    if card.repetition == 1:
        return EXAM_SECOND_INTERVAL if strategy is Strategy.EXAM else STANDARD_SECOND_INTERVAL
    if card.repetition == 2 and strategy is Strategy.EXAM:
        return EXAM_THIRD_INTERVAL

    multiplier = card.easiness
    if strategy is Strategy.EXAM:
        multiplier = min(multiplier, EXAM_MULTIPLIER_CAP)
    # half-up, not banker's rounding
    return math.floor(card.interval * multiplier + 0.5)


def next_easiness(easiness: float, quality: int, strategy: Strategy) -> float:
    """
    EF' = EF + (0.1 - (3-q) * (0.08 + (3-q) * 0.02)), floored at 1.3.

    Exam decks are additionally capped at 1.8 after the floor.
    """
    miss = 3 - quality
    easiness = easiness + (0.1 - miss * (0.08 + miss * 0.02))
    easiness = max(easiness, EASINESS_FLOOR)
    if strategy is Strategy.EXAM:
        easiness = min(easiness, EXAM_EASINESS_CEILING)
    return easiness


def schedule(
    card: Card,
    difficulty: Difficulty,
    strategy: Strategy = Strategy.STANDARD,
    duration: int = 0,
    now: int | None = None,
) -> Card:
    """
    Reschedule a card after it has been graded.

    Args:
        card: The card as presented.
        difficulty: Grade given by the learner.
        strategy: Scheduling preset of the owning deck.
        duration: Milliseconds between presentation and grading.
        now: Grading time in epoch ms; read from the clock when omitted.

    Returns:
        A new Card with updated repetition, interval, easiness, review dates
        and one more history entry. The input card is left untouched.

    Raises:
        InvalidDifficultyError: difficulty is not a Difficulty member.
        InvalidStrategyError: strategy is not a Strategy member.
    """
    if not isinstance(difficulty, Difficulty):
        raise InvalidDifficultyError(f"Unknown difficulty: {difficulty!r}")
    if not isinstance(strategy, Strategy):
        raise InvalidStrategyError(f"Unknown strategy: {strategy!r}")
    if duration < 0:
        raise DomainError(f"duration must be >= 0, got {duration}")

    if now is None:
        now = now_ms()

    q = difficulty.quality
    interval = next_interval(card, q, strategy)
    repetition = card.repetition + 1 if q >= PASS_QUALITY else 0
    easiness = next_easiness(card.easiness, q, strategy)

    logger.debug(
        f"Graded {card.id} {difficulty.value} ({strategy.value}): "
        f"interval {card.interval}->{interval}, rep {card.repetition}->{repetition}"
    )

    return replace(
        card,
        repetition=repetition,
        interval=interval,
        easiness=easiness,
        last_review=now,
        next_review=now + interval * DAY_MS,
        history=card.history.append(
            ReviewRecord(date=now, difficulty=difficulty, interval=interval, duration=duration)
        ),
    )
