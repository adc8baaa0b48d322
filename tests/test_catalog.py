"""
Unit tests for exercise catalog resolution
"""
from src.database.models import Exercise, ExerciseVariation
from src.periodization.catalog import ExerciseCatalogResolver, fetch_exercise_catalog


def _seed(db):
    db.add_all([
        Exercise(name="Back Squat", order=1, default_equipment_type="Barbell"),
        Exercise(name="Pulldown", order=4, default_equipment_type="Cable"),
    ])
    db.commit()


def test_resolves_existing_exercise_case_insensitively(db, user):
    """Trimmed, case-insensitive exact-name match reuses the catalog row"""
    _seed(db)
    resolver = ExerciseCatalogResolver(db, user.id)

    exercise = resolver.resolve("  pulldown ", "Machine", "Standard")

    assert exercise.name == "Pulldown"
    assert exercise.default_equipment_type == "Cable"  # Existing rows are never updated
    assert db.query(Exercise).count() == 2


def test_standard_variation_is_implicit(db, user):
    """No variation row for the default variation"""
    _seed(db)
    ExerciseCatalogResolver(db, user.id).resolve("Pulldown", "Machine", "Standard")

    assert db.query(ExerciseVariation).count() == 0


def test_creates_required_variation_once(db, user):
    """Variation lookup by exercise + name, inserted only if absent"""
    _seed(db)
    resolver = ExerciseCatalogResolver(db, user.id)

    first = resolver.resolve("Pulldown", "Machine", "Supinated")
    resolver.resolve("Pulldown", "Machine", "Supinated")
    resolver.ensure_variation(first.id, "Supinated")

    variations = db.query(ExerciseVariation).all()
    assert len(variations) == 1
    assert variations[0].exercise_id == first.id
    assert variations[0].variation_name == "Supinated"


def test_creates_missing_exercise(db, user):
    """Unknown names become new catalog rows attributed to the user"""
    _seed(db)
    catalog = fetch_exercise_catalog(db)
    resolver = ExerciseCatalogResolver(db, user.id, catalog)

    created = resolver.resolve("Leg Press", "Machine", "Standard")

    assert created.id is not None
    assert created.order == 5
    assert created.created_by_user_id == user.id
    assert created.default_equipment_type == "Machine"
    assert created.exercise_type == "strength"
    assert created.archetype_id is None
    assert created in catalog


def test_created_exercise_visible_to_later_resolutions(db, user):
    """The snapshot is extended in place, so no duplicate is created in the same pass"""
    resolver = ExerciseCatalogResolver(db, user.id)

    first = resolver.resolve("Chest Press", "Machine", "Incline")
    second = resolver.resolve("chest press", "Machine", "Incline")
    third = resolver.resolve("Shoulder Press", "Machine", "Standard")

    assert first is second
    assert first.order == 1
    assert third.order == 2
    assert db.query(Exercise).count() == 2
    assert db.query(ExerciseVariation).count() == 1
