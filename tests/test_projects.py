from datetime import date

import pytest

from teamplayer import crud, schemas
from teamplayer.exceptions import NotFoundError, ValidationError


def test_project_defaults(db, user, project):
    assert project.user_id == user.id
    assert project.status == "Active"
    assert project.progress == 0
    assert project.priority == "Medium"
    assert project.assigned_members == []


def test_project_progress_bounds(db, user):
    with pytest.raises(ValidationError):
        crud.create_project(db, user.id, {"name": "Over", "progress": 101})
    with pytest.raises(ValidationError):
        crud.create_project(db, user.id, {"description": "no name"})


def test_projects_by_user(db, user, other_user, project):
    crud.create_project(db, other_user.id, {"name": "Gemini"})
    assert [p.name for p in crud.get_projects_by_user(db, user.id)] == ["Apollo"]
    assert crud.get_project(db, project.id, owner_id=other_user.id) is None


def test_update_project_merges_fields(db, project):
    updated = crud.update_project(db, project.id, {"status": "Completed", "progress": 100})
    assert updated.status == "Completed"
    assert updated.progress == 100
    assert updated.name == "Apollo"
    with pytest.raises(NotFoundError):
        crud.update_project(db, 999, {"status": "Completed"})


def test_assign_members_replaces(db, project):
    crud.assign_team_members_to_project(db, project.id, [1, 2])
    assigned = crud.assign_team_members_to_project(db, project.id, [3])
    assert assigned.assigned_members == [3]

    db.expire_all()
    assert crud.get_project(db, project.id).assigned_members == [3]


def test_assign_members_missing_project(db):
    with pytest.raises(NotFoundError):
        crud.assign_team_members_to_project(db, 999, [1])


def test_assign_members_rejects_non_integer_ids(db, project):
    with pytest.raises(ValidationError):
        crud.assign_team_members_to_project(db, project.id, ["abc"])


def test_delete_project_removes_children(db, user, project):
    milestone = crud.create_milestone(db, user.id, project.id, {"name": "Launch", "due_date": "2024-06-01"})
    process = crud.create_process(db, user.id, project.id, {"name": "Review"})
    task = crud.create_task(db, user.id, {"name": "Fuel", "task_type": "Small", "project_id": project.id})

    deleted = crud.delete_project(db, project.id)
    assert deleted.name == "Apollo"
    assert crud.get_project(db, project.id) is None
    assert crud.get_milestone(db, milestone.id) is None
    assert crud.get_process(db, process.id) is None

    db.expire_all()
    orphan = crud.get_task(db, task.id)
    assert orphan is not None
    assert orphan.project_id is None

    with pytest.raises(NotFoundError):
        crud.delete_project(db, project.id)


def test_project_run_rate(db, user):
    project = crud.create_project(
        db, user.id, {"name": "Rate", "start_date": "2024-01-01", "deadline": "2024-01-21"}
    )
    crud.assign_team_members_to_project(db, project.id, [1])
    crud.create_task(db, user.id, {"name": "a", "task_type": "Large", "status": "Completed", "project_id": project.id})
    crud.create_task(db, user.id, {"name": "b", "task_type": "Medium", "project_id": project.id})
    crud.create_task(db, user.id, {"name": "c", "task_type": "Small", "project_id": project.id})

    metrics = crud.get_project_run_rate(db, project.id, today=date(2024, 1, 11))
    assert metrics.total_points == 9
    assert metrics.completed_points == 5
    assert metrics.remaining_points == 4
    assert metrics.status == "Ahead"

    assert crud.get_project_run_rate(db, project.id, developer_count=0).status == "On Track"
    assert crud.get_project_run_rate(db, 999) is None


def test_assign_members_rejects_bare_string(db, project):
    with pytest.raises(ValidationError):
        crud.assign_team_members_to_project(db, project.id, "12")
    db.expire_all()
    assert crud.get_project(db, project.id).assigned_members == []


def test_project_run_rate_is_output_schema(db, user):
    project = crud.create_project(
        db, user.id, {"name": "Rate", "start_date": "2024-01-01", "deadline": "2024-01-21"}
    )
    metrics = crud.get_project_run_rate(db, project.id, developer_count=1, today=date(2024, 1, 11))
    assert isinstance(metrics, schemas.RunRateOut)
    assert metrics.model_dump()["status"] == "On Track"
