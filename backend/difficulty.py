"""Adaptive difficulty decisions. Pure functions, no I/O."""

from typing import Iterable

from models import DifficultyLevel

HISTORY_WINDOW = 5


def initial_difficulty(history: Iterable[float], window: int = HISTORY_WINDOW) -> DifficultyLevel:
    """
    Starting difficulty for a new quiz from past scores, most recent first.

    Averages the `window` most recent scores: >=90 EXPERT, >=75 HARD,
    >=50 MEDIUM, otherwise EASY. No history means MEDIUM.
    """
    recent = list(history)[:window]
    if not recent:
        return DifficultyLevel.MEDIUM

    average = sum(recent) / len(recent)
    if average >= 90:
        return DifficultyLevel.EXPERT
    if average >= 75:
        return DifficultyLevel.HARD
    if average >= 50:
        return DifficultyLevel.MEDIUM
    return DifficultyLevel.EASY


def next_difficulty(current: DifficultyLevel, score_percent: float) -> DifficultyLevel:
    """One level up at >=90, one level down below 50, unchanged in between."""
    if score_percent >= 90:
        return current.harder()
    if score_percent < 50:
        return current.easier()
    return current
