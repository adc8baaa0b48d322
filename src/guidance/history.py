"""
Read-only loaders feeding the workout generator
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from src.database.models import MovementArchetype, Workout, WorkoutExercise
from src.periodization.catalog import fetch_exercise_catalog
from .workout_generator import AdaptiveWorkoutGenerator


@dataclass
class HistorySet:
    completed: bool


@dataclass
class HistoryExercise:
    exercise_id: int
    sets: List[HistorySet] = field(default_factory=list)


@dataclass
class HistoryWorkout:
    id: int
    date: date
    exercises: List[HistoryExercise] = field(default_factory=list)


def load_workout_history(db: Session, user_id: int, since: Optional[date] = None) -> List[HistoryWorkout]:
    """User's workouts, most recent first, optionally from ``since`` onwards"""
    query = db.query(Workout).options(
        selectinload(Workout.exercises).selectinload(WorkoutExercise.sets)
    ).filter(Workout.user_id == user_id)
    if since is not None:
        query = query.filter(Workout.created_at >= datetime.combine(since, time.min))

    workouts = query.order_by(Workout.created_at.desc(), Workout.id.desc()).all()

    return [
        HistoryWorkout(
            id=w.id,
            date=w.created_at.date(),
            exercises=[
                HistoryExercise(
                    exercise_id=we.exercise_id,
                    sets=[HistorySet(completed=bool(s.completed)) for s in we.sets],
                )
                for we in w.exercises
            ],
        )
        for w in workouts
    ]


def load_archetype_map(db: Session) -> Dict[int, str]:
    return {a.id: a.name for a in db.query(MovementArchetype).all()}


def generate_for_user(
    db: Session,
    user_id: int,
    generator: Optional[AdaptiveWorkoutGenerator] = None,
    today: Optional[date] = None,
) -> list:
    """Load catalog, archetypes and history, then run the generator"""
    generator = generator or AdaptiveWorkoutGenerator()
    return generator.generate(
        catalog=fetch_exercise_catalog(db),
        archetype_map=load_archetype_map(db),
        history=load_workout_history(db, user_id),
        today=today,
    )
