"""
Adaptive workout generator for ad-hoc (non-protocol) sessions
"""
import logging
from datetime import date, datetime
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

logger = logging.getLogger(__name__)

# Weekly completed-set targets per movement archetype.
# Iteration order breaks ties between equal deficits.
DEFAULT_ARCHETYPE_TARGETS: Mapping[str, int] = MappingProxyType({
    "squat": 7,
    "lunge": 7,
    "push_vertical": 5,
    "push_horizontal": 5,
    "pull_vertical": 5,
    "pull_horizontal": 5,
    "bend": 7,
    "twist": 7,
})

DEFAULT_EXERCISE_COUNT = 5
WEEK_DAYS = 7


class WorkoutGenerationError(Exception):
    """No workout can be generated from the available catalog"""


def _day(value) -> date:
    return value.date() if isinstance(value, datetime) else value


class AdaptiveWorkoutGenerator:
    """
    Deterministic exercise selection balancing weekly per-archetype volume.
    Performs no writes; callers instantiate the returned exercises.
    """

    def __init__(self, targets: Optional[Mapping[str, int]] = None):
        self.targets = targets if targets is not None else DEFAULT_ARCHETYPE_TARGETS

    @staticmethod
    def archetype_name(exercise, archetype_map: Mapping[int, str]) -> Optional[str]:
        if exercise.archetype_id is None:
            return None
        name = archetype_map.get(exercise.archetype_id)
        return name.lower() if name else None

    def recovery_sizing(self, history: Sequence, today: Optional[date] = None) -> Tuple[int, Set[int]]:
        """
        Size the workout from the time since the last session.

        Returns:
            (exercise count, exercise ids to exclude). Sessions a day apart get 3
            exercises, up to three days apart 4, both without repeating the last
            workout's exercises; otherwise 5 with no exclusions.
        """
        if not history:
            return DEFAULT_EXERCISE_COUNT, set()

        today = today or date.today()
        latest_day = max(_day(w.date) for w in history)
        latest = next(w for w in history if _day(w.date) == latest_day)
        days_since = (today - latest_day).days

        if days_since <= 1:
            return 3, {ex.exercise_id for ex in latest.exercises}
        if days_since <= 3:
            return 4, {ex.exercise_id for ex in latest.exercises}
        return DEFAULT_EXERCISE_COUNT, set()

    def weekly_sets_per_archetype(
        self,
        history: Iterable,
        catalog: Sequence,
        archetype_map: Mapping[int, str],
        today: Optional[date] = None,
    ) -> Dict[str, int]:
        """Completed sets per archetype name over the trailing week (today inclusive)"""
        today = today or date.today()
        exercises_by_id = {ex.id: ex for ex in catalog}
        weekly_sets: Dict[str, int] = {}

        for workout in history:
            if (today - _day(workout.date)).days >= WEEK_DAYS:
                continue
            for workout_exercise in workout.exercises:
                completed = sum(1 for s in workout_exercise.sets if s.completed)
                if not completed:
                    continue
                exercise = exercises_by_id.get(workout_exercise.exercise_id)
                if exercise is None:
                    continue
                archetype = self.archetype_name(exercise, archetype_map)
                if not archetype:
                    continue
                weekly_sets[archetype] = weekly_sets.get(archetype, 0) + completed

        return weekly_sets

    def rank_deficits(self, weekly_sets: Mapping[str, int]) -> List[Tuple[str, int]]:
        """Archetypes below target, largest shortfall first"""
        deficits = [
            (archetype, target - weekly_sets.get(archetype, 0))
            for archetype, target in self.targets.items()
            if weekly_sets.get(archetype, 0) < target
        ]
        # Stable sort: equal deficits keep table order
        deficits.sort(key=lambda item: item[1], reverse=True)
        return deficits

    def select_exercises(
        self,
        catalog: Sequence,
        weekly_sets: Mapping[str, int],
        archetype_map: Mapping[int, str],
        count: int,
        excluded_ids: Optional[Set[int]] = None,
    ) -> List:
        """
        Greedy coverage of the largest deficits, one exercise per archetype,
        then fill remaining slots in catalog order.
        """
        excluded_ids = excluded_ids or set()
        selected = []
        selected_ids: Set[int] = set()
        covered: Set[str] = set()

        for archetype, _deficit in self.rank_deficits(weekly_sets):
            if len(selected) >= count:
                break
            if archetype in covered:
                continue
            candidate = next(
                (
                    ex for ex in catalog
                    if ex.id not in selected_ids
                    and ex.id not in excluded_ids
                    and self.archetype_name(ex, archetype_map) == archetype
                ),
                None,
            )
            if candidate is not None:
                selected.append(candidate)
                selected_ids.add(candidate.id)
                covered.add(archetype)

        if len(selected) < count:
            fallback = [ex for ex in catalog if ex.id not in selected_ids and ex.id not in excluded_ids]
            selected.extend(fallback[:count - len(selected)])

        return selected

    def generate(
        self,
        catalog: Sequence,
        archetype_map: Mapping[int, str],
        history: Sequence,
        today: Optional[date] = None,
    ) -> List:
        """
        Pick exercises for an ad-hoc workout.

        Args:
            catalog: Exercise catalog in display order (objects with ``id`` and ``archetype_id``)
            archetype_map: Archetype id -> archetype name
            history: Workouts with ``date`` and ``exercises`` (``exercise_id``, ``sets`` with ``completed``)
            today: Reference day, defaults to the current date

        Returns:
            Ordered list of catalog exercises

        Raises:
            WorkoutGenerationError: No archetype-tagged exercise exists, or nothing could be selected
        """
        today = today or date.today()
        tagged = [ex for ex in catalog if ex.archetype_id is not None and ex.archetype_id in archetype_map]
        if not tagged:
            raise WorkoutGenerationError("Exercise data with archetypes is not available. Cannot generate workout.")

        count, excluded_ids = self.recovery_sizing(history, today)
        weekly_sets = self.weekly_sets_per_archetype(history, tagged, archetype_map, today)
        selected = self.select_exercises(tagged, weekly_sets, archetype_map, count, excluded_ids)

        if not selected:
            raise WorkoutGenerationError(
                "Failed to select any exercises based on archetype history. "
                "Please try again later or adjust your activities."
            )

        logger.info(
            f"Generated {len(selected)}/{count} exercises "
            f"(excluded {len(excluded_ids)}, weekly sets {weekly_sets})"
        )
        return selected
