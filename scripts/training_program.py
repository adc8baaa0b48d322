"""
Show a user's active training program, or start the next workout
"""
import logging
import sys
from pathlib import Path
import argparse

sys.path.insert(0, str(Path(__file__).parent.parent))

from config import settings
from src.database.database import get_db
from src.guidance.history import generate_for_user
from src.guidance.workout_generator import WorkoutGenerationError
from src.periodization.errors import PeriodizationError
from src.periodization.lifecycle import MesocycleLifecycleManager
from src.periodization.workouts import start_generated_workout


def print_program(program):
    mesocycle = program.mesocycle
    print(f"{mesocycle.name} ({mesocycle.protocol}, {mesocycle.goal_focus})")
    print(f"Week {program.current_week}/{mesocycle.duration_weeks}, started {mesocycle.start_date.isoformat()}")

    for view in program.sessions:
        marker = "->" if view.id == program.next_session_id else "  "
        print(f"\n{marker} {view.session.session_order}. {view.name}")
        for row in view.exercises:
            print(f"     {row.exercise_order}. {row.exercise.name}: {row.target_sets} x {row.target_reps}")
            advice = view.advice.get(row.exercise_id)
            if advice is not None:
                print(f"        {advice.message}")

    if not program.sessions:
        print("\nNo sessions yet.")


def main():
    parser = argparse.ArgumentParser(description='Inspect the active mesocycle or start a workout')
    parser.add_argument('--user-id', type=int, required=True,
                        help='User whose program to load')
    parser.add_argument('--start', action='store_true',
                        help='Start the next session of the active program')
    parser.add_argument('--generate', action='store_true',
                        help='Generate an ad-hoc workout from weekly volume (starts it with --start)')

    args = parser.parse_args()
    logging.basicConfig(level=settings.log_level)

    try:
        with get_db() as db:
            if args.generate:
                selection = generate_for_user(db, args.user_id)
                print("Generated workout:")
                for order, exercise in enumerate(selection, start=1):
                    print(f"  {order}. {exercise.name}")
                if args.start:
                    workout = start_generated_workout(db, args.user_id, selection)
                    print(f"\n✓ Started workout {workout.id}")
                return

            manager = MesocycleLifecycleManager(db)
            if args.start:
                workout = manager.start_session(args.user_id)
                print(f"✓ Started workout {workout.id} with {len(workout.exercises)} exercises")
                return

            program = manager.get_active_program(args.user_id)
            if program is None:
                print("No active mesocycle.")
                return
            print_program(program)
    except (PeriodizationError, WorkoutGenerationError) as e:
        print(f"✗ {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
