"""
Unit tests for protocol template synchronization
"""
from dataclasses import replace
from datetime import date

from src.database.models import Exercise, ExerciseVariation, Mesocycle, MesocycleSession, MesocycleSessionExercise
from src.periodization.protocols import OCCAMS_PROTOCOL
from src.periodization.synchronizer import ProtocolTemplateSynchronizer, canonical_rows


def _mesocycle(db, user):
    mesocycle = Mesocycle(
        user_id=user.id,
        name="Occam block",
        goal_focus="hypertrophy",
        protocol="occams",
        start_date=date(2026, 10, 1),
        duration_weeks=8,
        status="active",
    )
    db.add(mesocycle)
    db.commit()
    return mesocycle


def _sessions(db, mesocycle):
    return db.query(MesocycleSession).filter(
        MesocycleSession.mesocycle_id == mesocycle.id
    ).order_by(MesocycleSession.session_order).all()


def _rows(db, session):
    return db.query(MesocycleSessionExercise).filter(
        MesocycleSessionExercise.mesocycle_session_id == session.id
    ).order_by(MesocycleSessionExercise.exercise_order).all()


def _with_pulldown_reps(template, reps):
    session_a = template.sessions[0]
    pulldown = replace(session_a.exercises[0], target_reps=reps)
    session_a = replace(session_a, exercises=(pulldown,) + session_a.exercises[1:])
    return replace(template, sessions=(session_a,) + template.sessions[1:])


def test_provisions_protocol_sessions(db, user):
    """Fresh mesocycle gets every template session and exercise"""
    mesocycle = _mesocycle(db, user)

    synced = ProtocolTemplateSynchronizer(db, OCCAMS_PROTOCOL).synchronize(user.id, mesocycle.id, [])
    db.commit()

    sessions = _sessions(db, mesocycle)
    assert [s.name for s in sessions] == ["Occam A", "Occam B"]
    assert [s.session_order for s in sessions] == [1, 2]
    assert [s.id for s in synced] == [s.id for s in sessions]
    assert sessions[0].session_focus == "hypertrophy"
    assert sessions[0].sets_per_exercise == 1
    assert sessions[1].rep_range == "7-12 (Leg Press: 10-12)"

    occam_b = _rows(db, sessions[1])
    assert [r.exercise.name for r in occam_b] == ["Chest Press", "Leg Press"]
    assert [r.exercise_order for r in occam_b] == [1, 2]
    assert occam_b[1].target_reps == "10-12"
    assert occam_b[1].load_increment_kg == 9.07

    variations = {v.variation_name for v in db.query(ExerciseVariation).all()}
    assert variations == {"Supinated", "Incline"}
    assert db.query(Exercise).count() == 4


def test_reuses_existing_catalog_exercises(db, user):
    """Canonical names already in the catalog are not duplicated"""
    db.add(Exercise(name="leg press", order=3, default_equipment_type="Machine"))
    db.commit()
    mesocycle = _mesocycle(db, user)

    ProtocolTemplateSynchronizer(db, OCCAMS_PROTOCOL).synchronize(user.id, mesocycle.id, [])
    db.commit()

    assert db.query(Exercise).filter(Exercise.name.ilike("leg press")).count() == 1
    assert db.query(Exercise).count() == 4


def test_second_sync_writes_nothing(db, user, write_log):
    """Repeated synchronization under an unchanged template is a no-op"""
    mesocycle = _mesocycle(db, user)
    synchronizer = ProtocolTemplateSynchronizer(db, OCCAMS_PROTOCOL)
    synchronizer.synchronize(user.id, mesocycle.id, [])
    db.commit()

    before = [(r.id, r.target_reps) for s in _sessions(db, mesocycle) for r in _rows(db, s)]
    write_log.clear()

    synchronizer.synchronize(user.id, mesocycle.id, _sessions(db, mesocycle))
    db.commit()

    after = [(r.id, r.target_reps) for s in _sessions(db, mesocycle) for r in _rows(db, s)]
    assert before == after
    assert write_log == []


def test_template_change_replaces_session_rows(db, user):
    """A changed target replaces that session's rows; other sessions stay untouched"""
    mesocycle = _mesocycle(db, user)
    ProtocolTemplateSynchronizer(db, OCCAMS_PROTOCOL).synchronize(user.id, mesocycle.id, [])
    db.commit()

    session_a, session_b = _sessions(db, mesocycle)
    a_ids = [r.id for r in _rows(db, session_a)]
    b_ids = [r.id for r in _rows(db, session_b)]

    changed = _with_pulldown_reps(OCCAMS_PROTOCOL, "8-10")
    ProtocolTemplateSynchronizer(db, changed).synchronize(user.id, mesocycle.id, _sessions(db, mesocycle))
    db.commit()

    session_a, session_b = _sessions(db, mesocycle)
    new_a = _rows(db, session_a)
    assert [r.target_reps for r in new_a] == ["8-10", "7-12"]
    assert set(r.id for r in new_a).isdisjoint(a_ids)
    assert [r.id for r in _rows(db, session_b)] == b_ids


def test_existing_session_keeps_its_id(db, user):
    """Sessions are matched by case-insensitive name so logged workouts stay linked"""
    mesocycle = _mesocycle(db, user)
    legacy = MesocycleSession(mesocycle_id=mesocycle.id, name="occam a", session_order=7)
    db.add(legacy)
    db.commit()
    legacy_id = legacy.id

    ProtocolTemplateSynchronizer(db, OCCAMS_PROTOCOL).synchronize(user.id, mesocycle.id, [legacy])
    db.commit()

    sessions = _sessions(db, mesocycle)
    assert sessions[0].id == legacy_id
    assert sessions[0].name == "Occam A"
    assert sessions[0].session_order == 1
    assert len(sessions) == 2


def test_partial_rows_are_healed(db, user):
    """Rows lost mid-replace are restored by the next pass"""
    mesocycle = _mesocycle(db, user)
    synchronizer = ProtocolTemplateSynchronizer(db, OCCAMS_PROTOCOL)
    synchronizer.synchronize(user.id, mesocycle.id, [])
    db.commit()

    session_a = _sessions(db, mesocycle)[0]
    db.query(MesocycleSessionExercise).filter(
        MesocycleSessionExercise.mesocycle_session_id == session_a.id
    ).delete()
    db.commit()
    assert _rows(db, session_a) == []

    synchronizer.synchronize(user.id, mesocycle.id, _sessions(db, mesocycle))
    db.commit()

    assert [r.exercise.name for r in _rows(db, session_a)] == ["Pulldown", "Shoulder Press"]


def test_canonical_rows_ignores_ids_and_timestamps():
    """Comparable form covers content fields only, in a fixed order"""
    row = MesocycleSessionExercise(
        id=5,
        mesocycle_session_id=1,
        exercise_id=2,
        exercise_order=1,
        target_sets=1,
        target_reps="7-12",
        load_increment_kg=4.54,
        notes="n",
    )
    as_dict = {
        "notes": "n",
        "load_increment_kg": 4.54,
        "target_reps": "7-12",
        "target_sets": 1,
        "exercise_order": 1,
        "exercise_id": 2,
        "mesocycle_session_id": 99,
    }
    assert canonical_rows([row]) == canonical_rows([as_dict])
