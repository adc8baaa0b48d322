"""
Load progression advice for fixed protocols
"""
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from src.database.models import ExerciseSet, Workout, WorkoutExercise
from .protocols import ProgressionPolicy, ProtocolTemplate, parse_rep_range

INCREASE_LOAD = "increase_load"
KEEP_LOAD = "keep_load"


@dataclass
class ProgressionAdvice:
    action: str  # increase_load, keep_load
    suggested_weight_kg: Optional[float]
    rep_range: Tuple[int, int]
    message: str


def snap_to_increment(value: float, increment: float) -> float:
    return round(value / increment) * increment


def format_kg(value: float) -> str:
    value = round(value, 2)
    return str(int(value)) if value == int(value) else f"{value:.1f}"


def rep_range_for(template: ProtocolTemplate, exercise_name: str) -> Tuple[int, int]:
    """Rep floor/ceiling from the template, else the policy's name-based default"""
    policy = template.progression or ProgressionPolicy()
    template_exercise = template.find_exercise(exercise_name)
    if template_exercise is not None:
        parsed = parse_rep_range(template_exercise.target_reps)
        if parsed:
            return parsed

    normalized = exercise_name.strip().lower()
    if any(keyword in normalized for keyword in policy.lower_body_keywords):
        return policy.lower_body_rep_range
    return policy.default_rep_range


def suggested_weight(policy: ProgressionPolicy, current_weight_kg: float) -> float:
    """Next load: max(min increase, percent increase), snapped to the rounding increment"""
    increase = max(policy.min_increase_kg, current_weight_kg * policy.percent_increase)
    return snap_to_increment(current_weight_kg + increase, policy.rounding_increment_kg)


def suggest_progression(
    template: Optional[ProtocolTemplate],
    exercise_name: str,
    last_reps: int,
    last_weight_kg: Optional[float] = None,
) -> Optional[ProgressionAdvice]:
    """
    Advise the next load for one work set of a protocol exercise.

    Args:
        template: Protocol of the active mesocycle (None for custom)
        exercise_name: Catalog name of the exercise
        last_reps: Reps achieved in the last work set
        last_weight_kg: Load of the last work set, if known

    Returns:
        ProgressionAdvice, or None when the protocol has no progression policy
    """
    if template is None or template.progression is None:
        return None

    policy = template.progression
    rep_min, rep_max = rep_range_for(template, exercise_name)

    if last_reps < rep_min:
        return ProgressionAdvice(
            action=KEEP_LOAD,
            suggested_weight_kg=None,
            rep_range=(rep_min, rep_max),
            message=f"Keep load the same and build reps to at least {rep_min}.",
        )

    target = suggested_weight(policy, last_weight_kg) if last_weight_kg and last_weight_kg > 0 else None
    if last_reps > rep_max:
        prefix = f"Reps above {rep_max}; increase load"
    else:
        prefix = f"Met minimum {rep_min} reps; increase load"

    if target is None:
        message = f"{prefix} next session."
    else:
        message = (
            f"{prefix} to {format_kg(target)}kg "
            f"(max +{format_kg(policy.min_increase_kg)}kg or +{policy.percent_increase:.0%}, "
            f"snapped to {policy.rounding_increment_kg}kg)."
        )

    return ProgressionAdvice(
        action=INCREASE_LOAD,
        suggested_weight_kg=target,
        rep_range=(rep_min, rep_max),
        message=message,
    )


def fetch_last_completed_set(db: Session, user_id: int, exercise_id: int) -> Optional[ExerciseSet]:
    """Most recent completed set with reps logged for the exercise"""
    return db.query(ExerciseSet).join(
        WorkoutExercise, ExerciseSet.workout_exercise_id == WorkoutExercise.id
    ).join(
        Workout, WorkoutExercise.workout_id == Workout.id
    ).filter(
        Workout.user_id == user_id,
        WorkoutExercise.exercise_id == exercise_id,
        ExerciseSet.completed.is_(True),
        ExerciseSet.reps.isnot(None),
    ).order_by(
        Workout.created_at.desc(), Workout.id.desc(), ExerciseSet.set_number.desc()
    ).first()
