"""
kinnikureward/rewards.py

Deterministic reward calculation from workout entries.

Each valid entry earns floor(reps x token_multiplier) tokens and
reps x calories_per_rep calories. Entries whose kind is not in the catalog,
or whose reps are not a positive integer (or too large to price), are
skipped without error. A batch with no valid entry, or whose total does not
fit in one transfer, is rejected as a whole.

Usage:
    from kinnikureward.config import DEFAULT_CATALOG
    from kinnikureward.rewards import WorkoutEntry, calculate_reward

    result = calculate_reward([WorkoutEntry("squats", 50)], DEFAULT_CATALOG)
    result.total_token_amount   # 75
    result.total_calories       # 40.0
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

from .config import ExerciseCatalog, ExerciseProfile
from .errors import InvalidWorkoutError

logger = logging.getLogger("kinnikureward.rewards")

# Largest amount a single mosaic transfer can carry
MAX_TOKEN_AMOUNT = 2 ** 64 - 1


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True)
class WorkoutEntry:
    """One line of the workout form."""
    type: Any
    reps: Any


@dataclass(frozen=True)
class ScoredWorkout:
    """A valid workout entry together with what it earned."""
    type: str
    profile: ExerciseProfile
    reps: int
    tokens: int
    calories: float

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "reps": self.reps,
            "tokens": self.tokens,
            "calories": self.calories,
        }


@dataclass(frozen=True)
class RewardResult:
    """Totals for one reward request."""
    total_token_amount: int
    total_calories: float
    workouts: Tuple[ScoredWorkout, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "total_token_amount": self.total_token_amount,
            "total_calories": self.total_calories,
            "workouts": [w.to_dict() for w in self.workouts],
        }


# ============================================================================
# CALCULATION
# ============================================================================

def _valid_reps(reps: Any) -> bool:
    # bool is an int subclass; True must not count as one rep
    if isinstance(reps, bool) or not isinstance(reps, int):
        return False
    return reps > 0


def score_workout(entry: WorkoutEntry, catalog: ExerciseCatalog):
    """
    Score a single entry.

    Returns:
        ScoredWorkout, or None when the entry is skipped
    """
    profile = catalog.get(entry.type)
    if profile is None or not _valid_reps(entry.reps):
        return None

    try:
        tokens = math.floor(entry.reps * profile.token_multiplier)
        calories = entry.reps * profile.calories_per_rep
    except OverflowError:
        # reps too large to price as a float
        return None
    if not math.isfinite(calories):
        return None

    return ScoredWorkout(
        type=profile.key,
        profile=profile,
        reps=entry.reps,
        tokens=tokens,
        calories=calories,
    )


def calculate_reward(
    entries: Sequence[WorkoutEntry],
    catalog: ExerciseCatalog,
) -> RewardResult:
    """
    Compute the token amount and calorie estimate for a batch of workouts.

    Args:
        entries: Workout entries in submission order
        catalog: Exercise catalog to price entries with

    Returns:
        RewardResult with running totals and the kept entries in order

    Raises:
        InvalidWorkoutError: No entry earned any tokens, or the total is more
            than one transfer can carry
    """
    total_tokens = 0
    total_calories = 0.0
    scored: List[ScoredWorkout] = []

    for entry in entries:
        workout = score_workout(entry, catalog)
        if workout is None:
            logger.debug(f"Skipping workout entry {entry!r}")
            continue
        total_tokens += workout.tokens
        total_calories += workout.calories
        scored.append(workout)

    if total_tokens <= 0:
        raise InvalidWorkoutError("No valid workouts provided to calculate a reward.")
    if total_tokens > MAX_TOKEN_AMOUNT:
        raise InvalidWorkoutError("Total token amount exceeds the maximum transferable amount.")

    return RewardResult(
        total_token_amount=total_tokens,
        total_calories=total_calories,
        workouts=tuple(scored),
    )


def parse_workouts(raw: Any) -> List[WorkoutEntry]:
    """
    Convert a decoded JSON workout list into entries.

    Malformed items are kept as entries the calculator will skip, so a single
    bad row never rejects the whole batch.

    Args:
        raw: Value of the request's "workouts" field

    Returns:
        List of WorkoutEntry in input order
    """
    entries: List[WorkoutEntry] = []
    for item in raw or []:
        if isinstance(item, dict):
            entries.append(WorkoutEntry(type=item.get("type"), reps=_coerce_reps(item.get("reps"))))
        else:
            entries.append(WorkoutEntry(type=None, reps=None))
    return entries


def _coerce_reps(value: Any) -> Any:
    # JSON numbers may arrive as floats (e.g. 20.0); whole floats count as ints
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def summarize(result: RewardResult) -> Dict[str, Any]:
    """Short log-friendly view of a reward result."""
    return {
        "tokens": result.total_token_amount,
        "calories": round(result.total_calories, 1),
        "entries": len(result.workouts),
    }
