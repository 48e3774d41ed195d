import pytest

from app.core.errors import ConflictError, NotFound
from app.models.assignment import Assignment
from app.services.assignment_store import AssignmentStore


def seed(db, intern, tasks, statuses):
    store = AssignmentStore(db)
    created = store.create_many(
        [
            {"intern_id": intern.id, "task_id": task.id, "status": status}
            for task, status in zip(tasks, statuses)
        ]
    )
    db.commit()
    return [row.id for row in created]


def test_create_many_starts_at_version_one(db_session, intern, curriculum):
    ids = seed(db_session, intern, curriculum, ["in_progress", "locked", "locked"])

    rows = AssignmentStore(db_session).list_by_intern(intern.id)
    assert [row.id for row in rows] == ids
    assert {row.version for row in rows} == {1}


def test_create_many_is_all_or_nothing(db_session, intern, curriculum):
    t1, t2, _ = curriculum
    store = AssignmentStore(db_session)

    with pytest.raises(ConflictError):
        store.create_many(
            [
                {"intern_id": intern.id, "task_id": t1.id, "status": "in_progress"},
                {"intern_id": intern.id, "task_id": t2.id, "status": "locked"},
                {"intern_id": intern.id, "task_id": t1.id, "status": "locked"},
            ]
        )
    db_session.rollback()

    assert db_session.query(Assignment).count() == 0


def test_create_rejects_existing_pair(db_session, intern, curriculum):
    seed(db_session, intern, curriculum[:1], ["in_progress"])
    with pytest.raises(ConflictError):
        AssignmentStore(db_session).create(
            {"intern_id": intern.id, "task_id": curriculum[0].id, "status": "locked"}
        )
    db_session.rollback()
    assert db_session.query(Assignment).count() == 1


def test_update_applies_patch_and_bumps_version(db_session, intern, curriculum):
    (assignment_id,) = seed(db_session, intern, curriculum[:1], ["in_progress"])

    updated = AssignmentStore(db_session).update(
        assignment_id,
        {"status": "submitted", "submission_content": "entrega"},
        expected_status=["in_progress"],
        expected_version=1,
    )
    db_session.commit()

    assert updated.status == "submitted"
    assert updated.submission_content == "entrega"
    assert updated.version == 2


def test_update_with_unexpected_status_conflicts(db_session, intern, curriculum):
    (assignment_id,) = seed(db_session, intern, curriculum[:1], ["locked"])

    with pytest.raises(ConflictError):
        AssignmentStore(db_session).update(
            assignment_id,
            {"status": "submitted"},
            expected_status=["in_progress", "rejected"],
        )
    db_session.rollback()

    assert AssignmentStore(db_session).get(assignment_id).status == "locked"


def test_update_with_stale_version_conflicts(db_session, intern, curriculum):
    (assignment_id,) = seed(db_session, intern, curriculum[:1], ["in_progress"])
    store = AssignmentStore(db_session)
    store.update(assignment_id, {"status": "submitted"}, expected_version=1)
    db_session.commit()

    with pytest.raises(ConflictError):
        store.update(assignment_id, {"status": "approved"}, expected_version=1)
    db_session.rollback()


def test_update_of_deleted_row_is_not_found(db_session, intern, curriculum):
    (assignment_id,) = seed(db_session, intern, curriculum[:1], ["in_progress"])
    store = AssignmentStore(db_session)
    store.delete_many(intern.id, [curriculum[0].id])
    db_session.commit()

    with pytest.raises(NotFound):
        store.update(assignment_id, {"status": "submitted"}, expected_version=1)
    db_session.rollback()


def test_update_rejects_unknown_fields(db_session, intern, curriculum):
    (assignment_id,) = seed(db_session, intern, curriculum[:1], ["in_progress"])
    with pytest.raises(ValueError):
        AssignmentStore(db_session).update(assignment_id, {"intern_id": "other"})


def test_get_missing_is_not_found(db_session):
    store = AssignmentStore(db_session)
    with pytest.raises(NotFound):
        store.get("missing")
    assert store.get_by_intern_and_task("nobody", "nothing") is None


def test_delete_many_only_touches_the_given_intern(db_session, intern, make_user, curriculum):
    other = make_user("intern")
    seed(db_session, intern, curriculum, ["in_progress", "locked", "locked"])
    seed(db_session, other, curriculum, ["in_progress", "locked", "locked"])
    store = AssignmentStore(db_session)

    removed = store.delete_many(intern.id, [curriculum[0].id, curriculum[2].id])
    db_session.commit()

    assert removed == 2
    assert [row.task_id for row in store.list_by_intern(intern.id)] == [curriculum[1].id]
    assert len(store.list_by_intern(other.id)) == 3
    assert store.delete_many(intern.id, []) == 0


def test_count_by_status(db_session, intern, make_user, curriculum):
    other = make_user("intern")
    seed(db_session, intern, curriculum, ["approved", "in_progress", "locked"])
    seed(db_session, other, curriculum[:1], ["submitted"])
    store = AssignmentStore(db_session)

    assert store.count_by_status(intern.id) == {
        "locked": 1,
        "in_progress": 1,
        "submitted": 0,
        "approved": 1,
        "rejected": 0,
    }
    assert store.count_by_status()["submitted"] == 1
    assert sum(store.count_by_status().values()) == 4
