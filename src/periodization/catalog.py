"""
Exercise catalog resolution for protocol provisioning
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from src.database.models import Exercise, ExerciseVariation
from .protocols import DEFAULT_VARIATION

logger = logging.getLogger(__name__)


def normalize_name(value: str) -> str:
    return value.strip().lower()


def fetch_exercise_catalog(db: Session) -> List[Exercise]:
    """Full catalog snapshot in display order"""
    return db.query(Exercise).order_by(Exercise.order.asc(), Exercise.name.asc()).all()


class ExerciseCatalogResolver:
    """
    Resolves canonical exercise names against an in-memory catalog snapshot.

    Missing exercises are created (attributed to the invoking user) and appended
    to the snapshot, so later resolutions in the same pass see them without a
    re-fetch. Existing exercises are never updated or deleted.
    """

    def __init__(self, db: Session, user_id: int, catalog: Optional[List[Exercise]] = None):
        self.db = db
        self.user_id = user_id
        self.catalog = catalog if catalog is not None else fetch_exercise_catalog(db)

    def find(self, canonical_name: str) -> Optional[Exercise]:
        target = normalize_name(canonical_name)
        return next((ex for ex in self.catalog if normalize_name(ex.name) == target), None)

    def next_order(self) -> int:
        return max((ex.order or 0 for ex in self.catalog), default=0) + 1

    def resolve(self, canonical_name: str, default_equipment_type: str, required_variation: str) -> Exercise:
        """
        Return the catalog exercise for ``canonical_name``, creating it if absent,
        and make sure ``required_variation`` exists for it.
        """
        exercise = self.find(canonical_name)

        if exercise is None:
            exercise = Exercise(
                name=canonical_name,
                order=self.next_order(),
                created_by_user_id=self.user_id,
                default_equipment_type=default_equipment_type,
                exercise_type="strength",
                is_static=False,
                archetype_id=None,
            )
            self.db.add(exercise)
            self.db.flush()
            self.catalog.append(exercise)
            logger.info(f"Created protocol exercise '{canonical_name}' (id={exercise.id}) for user {self.user_id}")

        self.ensure_variation(exercise.id, required_variation)
        return exercise

    def ensure_variation(self, exercise_id: int, variation_name: str) -> None:
        """Insert the named variation unless it already exists. "Standard" is implicit."""
        if not variation_name or variation_name == DEFAULT_VARIATION:
            return

        existing = self.db.query(ExerciseVariation.id).filter(
            ExerciseVariation.exercise_id == exercise_id,
            ExerciseVariation.variation_name == variation_name,
        ).first()
        if existing:
            return

        self.db.add(ExerciseVariation(exercise_id=exercise_id, variation_name=variation_name))
        self.db.flush()
        logger.info(f"Created variation '{variation_name}' for exercise {exercise_id}")
