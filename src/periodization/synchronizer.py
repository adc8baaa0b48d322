"""
Protocol template synchronization.

Converges the persisted sessions and session exercises of a fixed-protocol
mesocycle to its declarative ProtocolTemplate. Runs lazily on every read of the
active program, so it must be a no-op whenever nothing changed.
"""
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from config import settings
from src.database.models import MesocycleSession, MesocycleSessionExercise
from .catalog import ExerciseCatalogResolver, fetch_exercise_catalog, normalize_name
from .protocols import ProtocolTemplate, SessionTemplate

logger = logging.getLogger(__name__)

# Field order of the comparable form of a session exercise row
EXERCISE_ROW_FIELDS = (
    "exercise_id",
    "exercise_order",
    "target_sets",
    "target_reps",
    "load_increment_kg",
    "notes",
)


def canonical_rows(rows: Iterable) -> Tuple[Tuple, ...]:
    """Field-order-stable, comparable form of session exercise rows (dicts or models)"""
    canonical = []
    for row in rows:
        if isinstance(row, dict):
            canonical.append(tuple(row.get(name) for name in EXERCISE_ROW_FIELDS))
        else:
            canonical.append(tuple(getattr(row, name) for name in EXERCISE_ROW_FIELDS))
    return tuple(canonical)


class ProtocolTemplateSynchronizer:
    """Makes a mesocycle's session/exercise rows match a ProtocolTemplate"""

    def __init__(self, db: Session, template: ProtocolTemplate, default_equipment_type: Optional[str] = None):
        self.db = db
        self.template = template
        self.default_equipment_type = default_equipment_type or settings.default_equipment_type

    def synchronize(
        self, user_id: int, mesocycle_id: int, existing_sessions: Iterable[MesocycleSession]
    ) -> List[MesocycleSession]:
        """
        Upsert every template session (1-based order = template index) and
        replace its exercise rows when their content differs from the template.

        Existing sessions are matched by case-insensitive name and keep their
        ids, so workouts already logged against them stay linked.

        Returns:
            The synchronized sessions in template order
        """
        resolver = ExerciseCatalogResolver(self.db, user_id, fetch_exercise_catalog(self.db))
        existing_by_name = {normalize_name(s.name): s for s in existing_sessions}

        synced = []
        for index, definition in enumerate(self.template.sessions, start=1):
            session = self._upsert_session(
                mesocycle_id=mesocycle_id,
                session_order=index,
                definition=definition,
                existing=existing_by_name.get(normalize_name(definition.name)),
            )
            desired = self._desired_rows(session.id, definition, resolver)
            self._replace_exercises_if_changed(session, desired)
            synced.append(session)

        return synced

    def _upsert_session(
        self,
        mesocycle_id: int,
        session_order: int,
        definition: SessionTemplate,
        existing: Optional[MesocycleSession],
    ) -> MesocycleSession:
        payload = {
            "mesocycle_id": mesocycle_id,
            "name": definition.name,
            "session_order": session_order,
            "session_focus": definition.session_focus.value,
            "sets_per_exercise": definition.sets_per_exercise,
            "rep_range": definition.rep_range,
            "progression_rule": definition.progression_rule,
        }

        if existing is None:
            session = MesocycleSession(**payload)
            self.db.add(session)
            self.db.flush()
            logger.info(f"Created protocol session '{definition.name}' (id={session.id}) in mesocycle {mesocycle_id}")
            return session

        # Unconditional; the ORM only emits an UPDATE for changed columns
        for key, value in payload.items():
            setattr(existing, key, value)
        self.db.flush()
        return existing

    def _desired_rows(
        self, session_id: int, definition: SessionTemplate, resolver: ExerciseCatalogResolver
    ) -> List[Dict]:
        rows = []
        for order, template_exercise in enumerate(definition.exercises, start=1):
            exercise = resolver.resolve(
                template_exercise.canonical_name,
                template_exercise.equipment_type or self.default_equipment_type,
                template_exercise.variation,
            )
            rows.append({
                "mesocycle_session_id": session_id,
                "exercise_id": exercise.id,
                "exercise_order": order,
                "target_sets": template_exercise.target_sets,
                "target_reps": template_exercise.target_reps,
                "load_increment_kg": template_exercise.load_increment_kg,
                "notes": template_exercise.notes,
            })
        return rows

    def _replace_exercises_if_changed(self, session: MesocycleSession, desired: List[Dict]) -> bool:
        """Delete-then-insert the session's rows unless they already match. Returns True on write."""
        if not desired:
            return False

        current = self.db.query(MesocycleSessionExercise).filter(
            MesocycleSessionExercise.mesocycle_session_id == session.id
        ).order_by(MesocycleSessionExercise.exercise_order.asc()).all()

        if canonical_rows(current) == canonical_rows(desired):
            logger.debug(f"Session '{session.name}' (id={session.id}) already matches template")
            return False

        self.db.query(MesocycleSessionExercise).filter(
            MesocycleSessionExercise.mesocycle_session_id == session.id
        ).delete(synchronize_session=False)
        for row in current:
            self.db.expunge(row)

        self.db.add_all([MesocycleSessionExercise(**row) for row in desired])
        self.db.flush()

        logger.info(
            f"Replaced exercises of session '{session.name}' (id={session.id}): "
            f"{len(current)} -> {len(desired)} rows"
        )
        return True
