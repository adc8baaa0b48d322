"""
SQLAlchemy models for the training-program engine
"""
from sqlalchemy import (
    Column, Integer, String, Float, Date, DateTime, ForeignKey, Text, Boolean, Index, UniqueConstraint, text,
)
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime

Base = declarative_base()


class User(Base):
    """Account identity supplied by authentication"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String, unique=True, nullable=True)
    name = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    mesocycles = relationship("Mesocycle", back_populates="user")
    workouts = relationship("Workout", back_populates="user")


class MovementArchetype(Base):
    """Canonical movement pattern used to bucket exercises (squat, push_vertical, ...)"""

    __tablename__ = "movement_archetypes"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class Exercise(Base):
    """Global exercise catalog entry, shared by every user"""

    __tablename__ = "exercises"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False, index=True)
    order = Column(Integer, nullable=False, default=0)
    exercise_type = Column(String, default="strength")  # strength, cardio
    archetype_id = Column(Integer, ForeignKey("movement_archetypes.id"), nullable=True)
    default_equipment_type = Column(String, nullable=True)  # Machine, Barbell, Dumbbell, ...
    created_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    is_static = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    archetype = relationship("MovementArchetype")
    variations = relationship("ExerciseVariation", back_populates="exercise")

    def __repr__(self):
        return f"<Exercise(id={self.id}, name={self.name}, order={self.order})>"


class ExerciseVariation(Base):
    """Named variation of an exercise (Incline, Supinated, ...)"""

    __tablename__ = "exercise_variations"
    __table_args__ = (UniqueConstraint("exercise_id", "variation_name", name="uq_exercise_variation"),)

    id = Column(Integer, primary_key=True)
    exercise_id = Column(Integer, ForeignKey("exercises.id"), nullable=False)
    variation_name = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    exercise = relationship("Exercise", back_populates="variations")


class Mesocycle(Base):
    """Multi-week training block with one goal focus and protocol"""

    __tablename__ = "mesocycles"
    __table_args__ = (
        # At most one active block per user
        Index(
            "uq_mesocycles_active_user",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    name = Column(String, nullable=False)
    goal_focus = Column(String, nullable=False)  # strength, hypertrophy, zone2, ...
    protocol = Column(String, nullable=False)  # occams, custom
    start_date = Column(Date, nullable=False)
    duration_weeks = Column(Integer, nullable=False)  # 4-12

    status = Column(String, default="active", nullable=False)  # active, completed, cancelled
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="mesocycles")
    sessions = relationship("MesocycleSession", back_populates="mesocycle", order_by="MesocycleSession.session_order")

    def __repr__(self):
        return f"<Mesocycle(id={self.id}, user_id={self.user_id}, protocol={self.protocol}, status={self.status})>"


class MesocycleSession(Base):
    """One session in a mesocycle's rotation"""

    __tablename__ = "mesocycle_sessions"

    id = Column(Integer, primary_key=True)
    mesocycle_id = Column(Integer, ForeignKey("mesocycles.id"), nullable=False, index=True)

    name = Column(String, nullable=False)
    session_order = Column(Integer, nullable=False)  # 1-indexed
    session_focus = Column(String, nullable=True)

    # Prescription (fixed protocols only)
    sets_per_exercise = Column(Integer, nullable=True)
    rep_range = Column(String, nullable=True)  # "7-12"
    progression_rule = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    mesocycle = relationship("Mesocycle", back_populates="sessions")


class MesocycleSessionExercise(Base):
    """Target exercise within a mesocycle session"""

    __tablename__ = "mesocycle_session_exercises"

    id = Column(Integer, primary_key=True)
    mesocycle_session_id = Column(Integer, ForeignKey("mesocycle_sessions.id"), nullable=False, index=True)
    exercise_id = Column(Integer, ForeignKey("exercises.id"), nullable=False)

    exercise_order = Column(Integer, nullable=False)  # 1-indexed
    target_sets = Column(Integer, nullable=True)
    target_reps = Column(String, nullable=True)  # "7-12" or "10"
    load_increment_kg = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    exercise = relationship("Exercise")


class Workout(Base):
    """Logged workout, optionally performed as a mesocycle session"""

    __tablename__ = "workouts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Link to the program (null for ad-hoc workouts)
    mesocycle_id = Column(Integer, ForeignKey("mesocycles.id"), nullable=True)
    mesocycle_session_id = Column(Integer, ForeignKey("mesocycle_sessions.id"), nullable=True)

    session_focus = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    completed = Column(Boolean, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)  # Workout date

    # Relationships
    user = relationship("User", back_populates="workouts")
    exercises = relationship("WorkoutExercise", back_populates="workout", order_by="WorkoutExercise.order")


class WorkoutExercise(Base):
    """Exercise instance within a logged workout"""

    __tablename__ = "workout_exercises"

    id = Column(Integer, primary_key=True)
    workout_id = Column(Integer, ForeignKey("workouts.id"), nullable=False, index=True)
    exercise_id = Column(Integer, ForeignKey("exercises.id"), nullable=False)
    order = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    workout = relationship("Workout", back_populates="exercises")
    exercise = relationship("Exercise")
    sets = relationship("ExerciseSet", back_populates="workout_exercise", order_by="ExerciseSet.set_number")


class ExerciseSet(Base):
    """Single set of a workout exercise"""

    __tablename__ = "exercise_sets"

    id = Column(Integer, primary_key=True)
    workout_exercise_id = Column(Integer, ForeignKey("workout_exercises.id"), nullable=False, index=True)

    set_number = Column(Integer, nullable=False)
    weight = Column(Float, default=0)  # kg
    reps = Column(Integer, nullable=True)
    completed = Column(Boolean, default=False)

    equipment_type = Column(String, nullable=True)
    variation = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    workout_exercise = relationship("WorkoutExercise", back_populates="sets")
