"""
Workout skeleton instantiation.

Both program sessions and generated ad-hoc workouts start the same way: a
workout row, one workout exercise per planned exercise, and empty uncompleted
sets for the user to fill in.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from src.database.models import Exercise, ExerciseSet, Workout, WorkoutExercise
from .errors import ValidationError
from .protocols import DEFAULT_VARIATION

logger = logging.getLogger(__name__)


@dataclass
class PlannedExercise:
    """Exercise to instantiate with its number of empty sets"""
    exercise: Exercise
    sets: int = 1


def create_workout_skeleton(
    db: Session,
    user_id: int,
    planned: Sequence[PlannedExercise],
    session_focus: Optional[str] = None,
    mesocycle_id: Optional[int] = None,
    mesocycle_session_id: Optional[int] = None,
    started_at: Optional[datetime] = None,
) -> Workout:
    """Insert a workout with empty sets for each planned exercise, in order"""
    workout = Workout(
        user_id=user_id,
        mesocycle_id=mesocycle_id,
        mesocycle_session_id=mesocycle_session_id,
        session_focus=session_focus,
        completed=False,
    )
    if started_at is not None:
        workout.created_at = started_at
    db.add(workout)
    db.flush()

    for order, item in enumerate(planned, start=1):
        workout_exercise = WorkoutExercise(workout_id=workout.id, exercise_id=item.exercise.id, order=order)
        db.add(workout_exercise)
        db.flush()

        for set_number in range(1, max(1, item.sets) + 1):
            db.add(ExerciseSet(
                workout_exercise_id=workout_exercise.id,
                set_number=set_number,
                weight=0,
                reps=None,
                completed=False,
                equipment_type=item.exercise.default_equipment_type,
                variation=DEFAULT_VARIATION,
            ))

    db.flush()
    logger.info(f"Started workout {workout.id} for user {user_id} with {len(planned)} exercises")
    return workout


def start_generated_workout(db: Session, user_id: int, exercises: List[Exercise]) -> Workout:
    """Instantiate an ad-hoc workout from the generator's selection (one set each)"""
    if not exercises:
        raise ValidationError("Cannot start a workout without exercises")
    return create_workout_skeleton(db, user_id, [PlannedExercise(exercise=ex, sets=1) for ex in exercises])
