"""
Coaching protocol definitions.

A protocol is declarative, immutable configuration: the fixed set of sessions a
mesocycle rotates through, each with its target exercises. The synchronizer
converges persisted rows to these templates; swapping the registry passed to
MesocycleLifecycleManager changes the coaching policy without touching code.
"""
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


class SessionFocus(str, Enum):
    """Training emphasis of a session or mesocycle"""
    STRENGTH = "strength"        # Heavy lifting, low reps
    HYPERTROPHY = "hypertrophy"  # Muscle building, moderate reps
    ZONE2 = "zone2"              # Aerobic base cardio
    ZONE5 = "zone5"              # VO2max / anaerobic cardio
    SPEED = "speed"              # Power and speed development
    RECOVERY = "recovery"        # Mobility, light movement
    MIXED = "mixed"


class MesocycleProtocol(str, Enum):
    OCCAMS = "occams"
    CUSTOM = "custom"


class MesocycleStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"  # Reserved, nothing transitions here yet


DEFAULT_VARIATION = "Standard"


@dataclass(frozen=True)
class TemplateExercise:
    """Target exercise of a protocol session, identified by canonical catalog name"""
    canonical_name: str
    target_sets: int
    target_reps: str
    equipment_type: str
    variation: str
    load_increment_kg: float
    notes: str = ""


@dataclass(frozen=True)
class SessionTemplate:
    """One session of a fixed protocol"""
    name: str
    session_focus: SessionFocus
    sets_per_exercise: int
    rep_range: str
    progression_rule: str
    exercises: Tuple[TemplateExercise, ...]


@dataclass(frozen=True)
class ProgressionPolicy:
    """Load progression once the rep floor is met"""
    percent_increase: float = 0.10
    min_increase_kg: float = 5.0
    rounding_increment_kg: float = 0.5
    default_rep_range: Tuple[int, int] = (7, 12)
    # Lower-body movements progress on a higher rep floor
    lower_body_rep_range: Tuple[int, int] = (10, 12)
    lower_body_keywords: Tuple[str, ...] = ("leg press", "squat")


@dataclass(frozen=True)
class ProtocolTemplate:
    """Complete fixed protocol: ordered sessions plus progression policy"""
    key: str
    sessions: Tuple[SessionTemplate, ...]
    progression: Optional[ProgressionPolicy] = field(default=None)

    def find_exercise(self, name: str) -> Optional[TemplateExercise]:
        normalized = name.strip().lower()
        for session in self.sessions:
            for exercise in session.exercises:
                if exercise.canonical_name.strip().lower() == normalized:
                    return exercise
        return None


_OCCAMS_TEMPO_NOTE = "5s up / 5s down tempo, one set to technical failure."

OCCAMS_PROTOCOL = ProtocolTemplate(
    key=MesocycleProtocol.OCCAMS.value,
    sessions=(
        SessionTemplate(
            name="Occam A",
            session_focus=SessionFocus.HYPERTROPHY,
            sets_per_exercise=1,
            rep_range="7-12",
            progression_rule=(
                "One all-out work set per exercise to technical failure at 5s up / 5s down. "
                "If you hit >=7 reps with clean tempo, increase next session by about max(10 lb, 10%). "
                "If below minimum reps, keep load and add rest days. "
                "Optional accessories: myotatic crunches or vacuum breathing work."
            ),
            exercises=(
                TemplateExercise(
                    canonical_name="Pulldown",
                    target_sets=1,
                    target_reps="7-12",
                    equipment_type="Machine",
                    variation="Supinated",
                    load_increment_kg=4.54,
                    notes=_OCCAMS_TEMPO_NOTE,
                ),
                TemplateExercise(
                    canonical_name="Shoulder Press",
                    target_sets=1,
                    target_reps="7-12",
                    equipment_type="Machine",
                    variation=DEFAULT_VARIATION,
                    load_increment_kg=4.54,
                    notes=_OCCAMS_TEMPO_NOTE,
                ),
            ),
        ),
        SessionTemplate(
            name="Occam B",
            session_focus=SessionFocus.HYPERTROPHY,
            sets_per_exercise=1,
            rep_range="7-12 (Leg Press: 10-12)",
            progression_rule=(
                "One all-out work set per exercise to technical failure at 5s up / 5s down. "
                "For leg press use 10-12 reps minimum. "
                "Increase load by about max(10 lb, 10%) when minimum reps are met. "
                "Optional posterior-chain finisher: high-rep swings."
            ),
            exercises=(
                TemplateExercise(
                    canonical_name="Chest Press",
                    target_sets=1,
                    target_reps="7-12",
                    equipment_type="Machine",
                    variation="Incline",
                    load_increment_kg=4.54,
                    notes=_OCCAMS_TEMPO_NOTE,
                ),
                TemplateExercise(
                    canonical_name="Leg Press",
                    target_sets=1,
                    target_reps="10-12",
                    equipment_type="Machine",
                    variation=DEFAULT_VARIATION,
                    load_increment_kg=9.07,
                    notes=_OCCAMS_TEMPO_NOTE,
                ),
            ),
        ),
    ),
    progression=ProgressionPolicy(),
)

# Protocol key -> template. "custom" mesocycles have no template.
PROTOCOLS: Mapping[str, ProtocolTemplate] = MappingProxyType({
    OCCAMS_PROTOCOL.key: OCCAMS_PROTOCOL,
})


def parse_rep_range(value: Optional[str]) -> Optional[Tuple[int, int]]:
    """Parse "7-12" -> (7, 12) and "10" -> (10, 10). Returns None when unparseable."""
    if not value:
        return None
    head = value.split("(")[0].strip()
    parts = [p.strip() for p in head.split("-")]
    try:
        if len(parts) == 1:
            reps = int(parts[0])
            return reps, reps
        if len(parts) == 2:
            return int(parts[0]), int(parts[1])
    except ValueError:
        return None
    return None
