"""
Mesocycle lifecycle management.

Creates and supersedes mesocycles, keeps fixed-protocol sessions in sync and
composes the "active program" read model the UI renders.

Multi-step writes are plain sequences of flushed steps inside the caller's
session scope. Every step is idempotent on re-entry: a failed synchronization is
healed by the next read of the active program.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Mapping, Optional, Union

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import settings
from src.database.models import Mesocycle, MesocycleSession, MesocycleSessionExercise, Workout
from .errors import (
    BackingStoreUnavailable,
    NotFoundError,
    PeriodizationError,
    ValidationError,
    WriteFailure,
    is_missing_table_error,
)
from .progression import ProgressionAdvice, fetch_last_completed_set, suggest_progression
from .protocols import PROTOCOLS, MesocycleProtocol, MesocycleStatus, ProtocolTemplate, SessionFocus
from .rotation import SessionRotationSelector
from .synchronizer import ProtocolTemplateSynchronizer
from .workouts import PlannedExercise, create_workout_skeleton

logger = logging.getLogger(__name__)


@dataclass
class CreateMesocycleInput:
    name: str
    goal_focus: str
    protocol: str
    start_date: Union[date, str]
    duration_weeks: int
    notes: Optional[str] = None


@dataclass
class SessionTemplateView:
    """A session with its ordered target exercises"""
    session: MesocycleSession
    exercises: List[MesocycleSessionExercise] = field(default_factory=list)
    # Exercise id -> advice from the last completed set (fixed protocols only)
    advice: Dict[int, ProgressionAdvice] = field(default_factory=dict)

    @property
    def id(self) -> int:
        return self.session.id

    @property
    def name(self) -> str:
        return self.session.name


@dataclass
class ActiveMesocycleProgram:
    mesocycle: Mesocycle
    sessions: List[SessionTemplateView]
    current_week: int
    last_completed_session_id: Optional[int]
    next_session_id: Optional[int]
    next_session_name: Optional[str]

    @property
    def next_session(self) -> Optional[SessionTemplateView]:
        return next((s for s in self.sessions if s.id == self.next_session_id), None)


def compute_current_week(start_date: date, duration_weeks: int, today: Optional[date] = None) -> int:
    """1-based training week, capped at the mesocycle length"""
    today = today or date.today()
    elapsed_days = max(0, (today - start_date).days)
    return min(duration_weeks, elapsed_days // 7 + 1)


def _coerce_date(value: Union[date, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid start date: {value!r}")


class MesocycleLifecycleManager:
    """Entry point for the periodization operations exposed to the UI"""

    def __init__(self, db: Session, protocols: Optional[Mapping[str, ProtocolTemplate]] = None):
        self.db = db
        self.protocols = protocols if protocols is not None else PROTOCOLS

    @contextmanager
    def _write_sequence(self, operation: str):
        """Translate store errors raised by a write sequence into engine errors"""
        try:
            yield
        except PeriodizationError:
            raise
        except SQLAlchemyError as e:
            if is_missing_table_error(e):
                raise BackingStoreUnavailable() from e
            logger.error(f"{operation} failed: {e}")
            raise WriteFailure(f"{operation} failed: {e}") from e

    @contextmanager
    def _read_sequence(self):
        """Translate missing-table errors raised by reads"""
        try:
            yield
        except SQLAlchemyError as e:
            if is_missing_table_error(e):
                raise BackingStoreUnavailable() from e
            raise

    def validate_input(self, data: CreateMesocycleInput) -> Dict:
        """Check and normalize creation input. Raises ValidationError."""
        duration = data.duration_weeks
        if isinstance(duration, bool) or not isinstance(duration, int):
            raise ValidationError("Duration must be a whole number of weeks.")
        if duration < settings.min_duration_weeks or duration > settings.max_duration_weeks:
            raise ValidationError(
                f"Mesocycles must be between {settings.min_duration_weeks} "
                f"and {settings.max_duration_weeks} weeks."
            )

        name = (data.name or "").strip()
        if not name:
            raise ValidationError("Mesocycle name is required.")

        if data.goal_focus not in {f.value for f in SessionFocus}:
            raise ValidationError(f"Unknown goal focus: {data.goal_focus!r}")
        if data.protocol not in {p.value for p in MesocycleProtocol}:
            raise ValidationError(f"Unknown protocol: {data.protocol!r}")

        notes = data.notes.strip() if data.notes and data.notes.strip() else None

        return {
            "name": name,
            "goal_focus": data.goal_focus,
            "protocol": data.protocol,
            "start_date": _coerce_date(data.start_date),
            "duration_weeks": duration,
            "notes": notes,
        }

    def create_mesocycle(self, user_id: int, data: CreateMesocycleInput) -> Mesocycle:
        """
        Start a new active mesocycle for the user.

        Any current active mesocycle is marked completed first. Fixed protocols
        get their sessions and target exercises provisioned immediately.
        """
        fields = self.validate_input(data)
        now = datetime.utcnow()

        with self._write_sequence("Create mesocycle"):
            superseded = self.db.query(Mesocycle).filter(
                Mesocycle.user_id == user_id,
                Mesocycle.status == MesocycleStatus.ACTIVE.value,
            ).update(
                {"status": MesocycleStatus.COMPLETED.value, "updated_at": now},
                synchronize_session="fetch",
            )
            if superseded:
                logger.info(f"Completed {superseded} superseded mesocycle(s) for user {user_id}")

            mesocycle = Mesocycle(
                user_id=user_id,
                status=MesocycleStatus.ACTIVE.value,
                updated_at=now,
                **fields,
            )
            self.db.add(mesocycle)
            self.db.flush()
            logger.info(
                f"Created mesocycle {mesocycle.id} '{mesocycle.name}' "
                f"({mesocycle.protocol}, {mesocycle.duration_weeks} weeks) for user {user_id}"
            )

            template = self.protocols.get(mesocycle.protocol)
            if template is not None:
                ProtocolTemplateSynchronizer(self.db, template).synchronize(user_id, mesocycle.id, [])

        return mesocycle

    def get_active_mesocycle(self, user_id: int) -> Optional[Mesocycle]:
        return self.db.query(Mesocycle).filter(
            Mesocycle.user_id == user_id,
            Mesocycle.status == MesocycleStatus.ACTIVE.value,
        ).order_by(Mesocycle.created_at.desc(), Mesocycle.id.desc()).first()

    def sync_protocol_sessions(self, user_id: int, mesocycle: Mesocycle) -> List[MesocycleSession]:
        """Converge a fixed-protocol mesocycle's sessions to its template"""
        if mesocycle.status != MesocycleStatus.ACTIVE.value:
            raise ValidationError("Only active mesocycles can be synchronized.")

        template = self.protocols.get(mesocycle.protocol)
        if template is None:
            return self._fetch_sessions(mesocycle.id)

        with self._write_sequence("Synchronize protocol sessions"):
            ProtocolTemplateSynchronizer(self.db, template).synchronize(
                user_id, mesocycle.id, self._fetch_sessions(mesocycle.id)
            )
        return self._fetch_sessions(mesocycle.id)

    def get_active_program(self, user_id: int, today: Optional[date] = None) -> Optional[ActiveMesocycleProgram]:
        """
        Load the user's active mesocycle as a program view.

        Returns None when there is no active mesocycle, or when the periodization
        tables are not provisioned yet.
        """
        try:
            with self._read_sequence():
                return self._load_program(user_id, today)
        except BackingStoreUnavailable:
            logger.warning(f"Periodization tables missing, no active program for user {user_id}")
            return None

    def _load_program(self, user_id: int, today: Optional[date]) -> Optional[ActiveMesocycleProgram]:
        mesocycle = self.get_active_mesocycle(user_id)
        if mesocycle is None:
            return None

        template = self.protocols.get(mesocycle.protocol)
        if template is not None:
            sessions = self.sync_protocol_sessions(user_id, mesocycle)
        else:
            sessions = self._fetch_sessions(mesocycle.id)

        grouped = self._fetch_session_exercises([s.id for s in sessions])
        views = sorted(
            (SessionTemplateView(session=s, exercises=grouped.get(s.id, [])) for s in sessions),
            key=lambda v: v.session.session_order,
        )
        if template is not None:
            self._attach_progression_advice(user_id, template, views)

        last_completed_session_id = self._fetch_last_completed_session_id(user_id, mesocycle.id)
        upcoming = SessionRotationSelector.next_session(views, last_completed_session_id)

        return ActiveMesocycleProgram(
            mesocycle=mesocycle,
            sessions=views,
            current_week=compute_current_week(mesocycle.start_date, mesocycle.duration_weeks, today),
            last_completed_session_id=last_completed_session_id,
            next_session_id=upcoming.id if upcoming else None,
            next_session_name=upcoming.name if upcoming else None,
        )

    def create_custom_session(
        self,
        user_id: int,
        mesocycle_id: int,
        session_focus: Optional[str] = None,
        name: Optional[str] = None,
        today: Optional[date] = None,
    ) -> MesocycleSession:
        """Append a session to a custom-protocol mesocycle"""
        if session_focus is not None and session_focus not in {f.value for f in SessionFocus}:
            raise ValidationError(f"Unknown session focus: {session_focus!r}")

        with self._write_sequence("Create custom session"):
            mesocycle = self.db.query(Mesocycle).filter(
                Mesocycle.id == mesocycle_id,
                Mesocycle.user_id == user_id,
            ).first()
            if mesocycle is None:
                raise NotFoundError("Mesocycle not found.")
            if mesocycle.protocol != MesocycleProtocol.CUSTOM.value:
                raise ValidationError("Sessions can only be added to custom mesocycles.")
            if mesocycle.status != MesocycleStatus.ACTIVE.value:
                raise ValidationError("Sessions can only be added to the active mesocycle.")

            max_order = self.db.query(func.max(MesocycleSession.session_order)).filter(
                MesocycleSession.mesocycle_id == mesocycle_id
            ).scalar()
            next_order = (max_order or 0) + 1

            if not name or not name.strip():
                name = f"Custom Session {next_order} ({(today or date.today()).isoformat()})"

            session = MesocycleSession(
                mesocycle_id=mesocycle_id,
                name=name.strip(),
                session_order=next_order,
                session_focus=session_focus,
                sets_per_exercise=None,
                rep_range=None,
                progression_rule=None,
            )
            self.db.add(session)
            self.db.flush()

        logger.info(f"Created custom session '{session.name}' (order {next_order}) in mesocycle {mesocycle_id}")
        return session

    def start_session(self, user_id: int, session_id: Optional[int] = None, today: Optional[date] = None) -> Workout:
        """
        Instantiate a workout from a session of the active program.

        Without ``session_id`` the rotation's next session is started.
        """
        program = self.get_active_program(user_id, today)
        if program is None:
            raise NotFoundError("No active mesocycle.")

        if session_id is None:
            view = program.next_session
            if view is None:
                raise ValidationError("The active mesocycle has no sessions yet.")
        else:
            view = next((s for s in program.sessions if s.id == session_id), None)
            if view is None:
                raise NotFoundError("Session not found in the active mesocycle.")

        planned = [
            PlannedExercise(
                exercise=row.exercise,
                sets=row.target_sets or view.session.sets_per_exercise or 1,
            )
            for row in view.exercises
            if row.exercise is not None
        ]

        with self._write_sequence("Start session"):
            workout = create_workout_skeleton(
                self.db,
                user_id,
                planned,
                session_focus=view.session.session_focus or program.mesocycle.goal_focus,
                mesocycle_id=program.mesocycle.id,
                mesocycle_session_id=view.id,
            )

        logger.info(f"Started session '{view.name}' of mesocycle {program.mesocycle.id} as workout {workout.id}")
        return workout

    def _fetch_sessions(self, mesocycle_id: int) -> List[MesocycleSession]:
        return self.db.query(MesocycleSession).filter(
            MesocycleSession.mesocycle_id == mesocycle_id
        ).order_by(MesocycleSession.session_order.asc()).all()

    def _fetch_session_exercises(self, session_ids: List[int]) -> Dict[int, List[MesocycleSessionExercise]]:
        if not session_ids:
            return {}

        rows = self.db.query(MesocycleSessionExercise).filter(
            MesocycleSessionExercise.mesocycle_session_id.in_(session_ids)
        ).order_by(MesocycleSessionExercise.exercise_order.asc()).all()

        grouped: Dict[int, List[MesocycleSessionExercise]] = {}
        for row in rows:
            grouped.setdefault(row.mesocycle_session_id, []).append(row)
        return grouped

    def _fetch_last_completed_session_id(self, user_id: int, mesocycle_id: int) -> Optional[int]:
        row = self.db.query(Workout.mesocycle_session_id).filter(
            Workout.user_id == user_id,
            Workout.mesocycle_id == mesocycle_id,
            Workout.mesocycle_session_id.isnot(None),
        ).order_by(Workout.created_at.desc(), Workout.id.desc()).first()
        return row[0] if row else None

    def _attach_progression_advice(
        self, user_id: int, template: ProtocolTemplate, views: List[SessionTemplateView]
    ) -> None:
        for view in views:
            for row in view.exercises:
                if row.exercise is None:
                    continue
                last_set = fetch_last_completed_set(self.db, user_id, row.exercise_id)
                if last_set is None:
                    continue
                advice = suggest_progression(template, row.exercise.name, last_set.reps, last_set.weight)
                if advice is not None:
                    view.advice[row.exercise_id] = advice
