from datetime import date, datetime
from typing import Iterable, List, Optional, Union

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.orm import Session

from . import helpers, models, schemas, validators
from .database import storage_operation
from .exceptions import DuplicateEntityError, NotFoundError, ValidationError

logger = structlog.get_logger()

Payload = Union[BaseModel, dict]


def parse_payload(schema_cls, data: Payload):
    """Validate caller input against ``schema_cls``. Only explicitly set fields
    count as set, so update payloads can be merged with ``exclude_unset``."""
    if isinstance(data, schema_cls):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return schema_cls.model_validate(data)
    except SchemaValidationError as exc:
        raise ValidationError(
            f"Invalid {schema_cls.__name__}: {exc.error_count()} error(s)",
            errors=exc.errors(include_url=False),
        ) from exc


def _as_date(value, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise ValidationError(f"{field} is not an ISO-8601 date: {value!r}") from exc


def _apply_changes(obj, changes: dict):
    columns = obj.__table__.columns
    for field, value in changes.items():
        if value is None and field in columns and not columns[field].nullable:
            raise ValidationError(f"{field} cannot be empty")
    for field, value in changes.items():
        setattr(obj, field, value)
    if "updated_at" in columns:
        obj.updated_at = models.utcnow()


def _require_owned(db: Session, model, entity_id: int, owner_id: int, label: str):
    row = db.get(model, entity_id)
    if row is None or row.user_id != owner_id:
        raise ValidationError(f"{label} {entity_id} does not exist for user {owner_id}")
    return row


def _get_owned(db: Session, model, entity_id: int, owner_id: Optional[int]):
    row = db.get(model, entity_id)
    if row is None:
        return None
    if owner_id is not None and row.user_id != owner_id:
        return None
    return row


def _get_for_write(db: Session, model, entity_id: int, label: str):
    row = db.get(model, entity_id)
    if row is None:
        raise NotFoundError(label, entity_id)
    return row


def _delete(db: Session, row):
    db.delete(row)
    db.commit()
    return row


# Users

@storage_operation
def get_user_by_id(db: Session, user_id: int):
    return db.get(models.User, user_id)


@storage_operation
def get_user_by_username(db: Session, username: str):
    return db.query(models.User).filter(models.User.username == username).first()


@storage_operation
def update_user(db: Session, user_id: int, user_update: Payload):
    changes = parse_payload(schemas.UserUpdate, user_update).model_dump(exclude_unset=True)
    user = _get_for_write(db, models.User, user_id, "User")
    _apply_changes(user, changes)
    db.commit()
    db.refresh(user)
    logger.info("user_updated", user_id=user.id, fields=sorted(changes))
    return user


# Team members

def _email_taken(db: Session, owner_id: int, email: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(models.TeamMember).filter(
        models.TeamMember.user_id == owner_id,
        models.TeamMember.email == email,
    )
    if exclude_id is not None:
        q = q.filter(models.TeamMember.id != exclude_id)
    return q.count() > 0


@storage_operation
def create_team_member(db: Session, owner_id: int, member: Payload):
    data = parse_payload(schemas.TeamMemberCreate, member).model_dump()
    if _email_taken(db, owner_id, data["email"]):
        logger.warning("team_member_duplicate_email", user_id=owner_id)
        raise DuplicateEntityError("team member", "email", data["email"])
    db_member = models.TeamMember(**data, user_id=owner_id)
    db.add(db_member)
    db.commit()
    db.refresh(db_member)
    logger.info("team_member_created", user_id=owner_id, member_id=db_member.id)
    return db_member


@storage_operation
def get_team_member(db: Session, member_id: int, owner_id: Optional[int] = None):
    return _get_owned(db, models.TeamMember, member_id, owner_id)


@storage_operation
def get_team_members_by_user(db: Session, owner_id: int):
    return db.query(models.TeamMember).filter(models.TeamMember.user_id == owner_id).all()


@storage_operation
def update_team_member(db: Session, member_id: int, member_update: Payload):
    changes = parse_payload(schemas.TeamMemberUpdate, member_update).model_dump(exclude_unset=True)
    member = _get_for_write(db, models.TeamMember, member_id, "TeamMember")
    if changes.get("email") and _email_taken(db, member.user_id, changes["email"], exclude_id=member.id):
        raise DuplicateEntityError("team member", "email", changes["email"])
    _apply_changes(member, changes)
    db.commit()
    db.refresh(member)
    return member


@storage_operation
def delete_team_member(db: Session, member_id: int):
    member = _get_for_write(db, models.TeamMember, member_id, "TeamMember")
    _delete(db, member)
    logger.info("team_member_deleted", user_id=member.user_id, member_id=member_id)
    return member


@storage_operation
def get_team_members_by_groups(db: Session, owner_id: int, group_ids: Iterable[str]):
    if isinstance(group_ids, (str, bytes)):
        raise ValidationError("group ids must be a collection, not a string")
    wanted = {str(g) for g in group_ids or []}
    if not wanted:
        return []
    members = db.query(models.TeamMember).filter(models.TeamMember.user_id == owner_id).all()
    return [m for m in members if wanted & {str(g) for g in m.group_ids or []}]


@storage_operation
def delete_all_team_members(db: Session, owner_id: int) -> List[models.TeamMember]:
    members = db.query(models.TeamMember).filter(models.TeamMember.user_id == owner_id).all()
    for member in members:
        db.delete(member)
    db.commit()
    logger.info("team_members_purged", user_id=owner_id, count=len(members))
    return members


# Projects

@storage_operation
def create_project(db: Session, owner_id: int, project: Payload):
    data = parse_payload(schemas.ProjectCreate, project).model_dump()
    db_project = models.Project(**data, user_id=owner_id)
    db.add(db_project)
    db.commit()
    db.refresh(db_project)
    logger.info("project_created", user_id=owner_id, project_id=db_project.id)
    return db_project


@storage_operation
def get_project(db: Session, project_id: int, owner_id: Optional[int] = None):
    return _get_owned(db, models.Project, project_id, owner_id)


@storage_operation
def get_projects_by_user(db: Session, owner_id: int):
    return db.query(models.Project).filter(models.Project.user_id == owner_id).all()


@storage_operation
def update_project(db: Session, project_id: int, project_update: Payload):
    changes = parse_payload(schemas.ProjectUpdate, project_update).model_dump(exclude_unset=True)
    project = _get_for_write(db, models.Project, project_id, "Project")
    _apply_changes(project, changes)
    db.commit()
    db.refresh(project)
    return project


@storage_operation
def delete_project(db: Session, project_id: int):
    project = _get_for_write(db, models.Project, project_id, "Project")
    _delete(db, project)
    logger.info("project_deleted", user_id=project.user_id, project_id=project_id)
    return project


@storage_operation
def assign_team_members_to_project(db: Session, project_id: int, member_ids: Iterable[int]):
    """Replace the project's member list with exactly ``member_ids``."""
    if isinstance(member_ids, (str, bytes)):
        raise ValidationError("member ids must be a collection, not a string")
    try:
        ids = [int(m) for m in member_ids]
    except (TypeError, ValueError) as exc:
        raise ValidationError("member ids must be integers") from exc
    project = _get_for_write(db, models.Project, project_id, "Project")
    project.assigned_members = ids
    db.commit()
    db.refresh(project)
    logger.info("project_members_assigned", project_id=project_id, member_ids=ids)
    return project


@storage_operation
def get_project_run_rate(
    db: Session,
    project_id: int,
    developer_count: Optional[int] = None,
    today: Optional[date] = None,
):
    project = db.get(models.Project, project_id)
    if project is None:
        return None
    tasks = db.query(models.PersonalTask).filter(models.PersonalTask.project_id == project_id).all()
    if developer_count is None:
        developer_count = len(project.assigned_members or [])
    metrics = helpers.calculate_run_rate(
        tasks,
        start_date=project.start_date,
        deadline=project.deadline,
        developer_count=developer_count,
        today=today,
    )
    return schemas.RunRateOut.model_validate(metrics)


# Milestones

@storage_operation
def create_milestone(db: Session, owner_id: int, project_id: int, milestone: Payload):
    data = parse_payload(schemas.MilestoneCreate, milestone).model_dump()
    _require_owned(db, models.Project, project_id, owner_id, "Project")
    db_milestone = models.Milestone(**data, user_id=owner_id, project_id=project_id)
    db.add(db_milestone)
    db.commit()
    db.refresh(db_milestone)
    logger.info("milestone_created", project_id=project_id, milestone_id=db_milestone.id)
    return db_milestone


@storage_operation
def get_milestone(db: Session, milestone_id: int, owner_id: Optional[int] = None):
    return _get_owned(db, models.Milestone, milestone_id, owner_id)


@storage_operation
def get_milestones_by_project(db: Session, project_id: int):
    return db.query(models.Milestone).filter(models.Milestone.project_id == project_id).all()


@storage_operation
def get_milestones_by_user(db: Session, owner_id: int):
    return db.query(models.Milestone).filter(models.Milestone.user_id == owner_id).all()


@storage_operation
def update_milestone(db: Session, milestone_id: int, milestone_update: Payload):
    changes = parse_payload(schemas.MilestoneUpdate, milestone_update).model_dump(exclude_unset=True)
    milestone = _get_for_write(db, models.Milestone, milestone_id, "Milestone")
    _apply_changes(milestone, changes)
    db.commit()
    db.refresh(milestone)
    return milestone


def update_milestone_status(db: Session, milestone_id: int, status: str):
    # Any status may follow any other.
    return update_milestone(db, milestone_id, {"status": status})


@storage_operation
def delete_milestone(db: Session, milestone_id: int):
    milestone = _get_for_write(db, models.Milestone, milestone_id, "Milestone")
    return _delete(db, milestone)


# Processes

@storage_operation
def create_process(db: Session, owner_id: int, project_id: int, process: Payload):
    data = parse_payload(schemas.ProcessCreate, process).model_dump()
    _require_owned(db, models.Project, project_id, owner_id, "Project")
    db_process = models.Process(**data, user_id=owner_id, project_id=project_id)
    db.add(db_process)
    db.commit()
    db.refresh(db_process)
    logger.info("process_created", project_id=project_id, process_id=db_process.id)
    return db_process


@storage_operation
def get_process(db: Session, process_id: int, owner_id: Optional[int] = None):
    return _get_owned(db, models.Process, process_id, owner_id)


@storage_operation
def get_processes_by_project(db: Session, project_id: int):
    return db.query(models.Process).filter(models.Process.project_id == project_id).all()


@storage_operation
def get_processes_by_user(db: Session, owner_id: int):
    return db.query(models.Process).filter(models.Process.user_id == owner_id).all()


@storage_operation
def update_process(db: Session, process_id: int, process_update: Payload):
    changes = parse_payload(schemas.ProcessUpdate, process_update).model_dump(exclude_unset=True)
    process = _get_for_write(db, models.Process, process_id, "Process")
    _apply_changes(process, changes)
    db.commit()
    db.refresh(process)
    return process


@storage_operation
def delete_process(db: Session, process_id: int):
    process = _get_for_write(db, models.Process, process_id, "Process")
    return _delete(db, process)


# Availability

@storage_operation
def create_availability(db: Session, owner_id: int, entry: Payload):
    data = parse_payload(schemas.AvailabilityCreate, entry).model_dump()
    _require_owned(db, models.TeamMember, data["member_id"], owner_id, "TeamMember")
    db_entry = models.Availability(**data, user_id=owner_id)
    db.add(db_entry)
    db.commit()
    db.refresh(db_entry)
    return db_entry


@storage_operation
def get_availability(db: Session, entry_id: int, owner_id: Optional[int] = None):
    return _get_owned(db, models.Availability, entry_id, owner_id)


@storage_operation
def get_availability_by_member(db: Session, owner_id: int, member_id: int, start_date, end_date):
    """Entries for one member whose date lies in [start_date, end_date]."""
    start = _as_date(start_date, "start_date")
    end = _as_date(end_date, "end_date")
    return db.query(models.Availability).filter(
        models.Availability.user_id == owner_id,
        models.Availability.member_id == member_id,
        models.Availability.date >= start,
        models.Availability.date <= end,
    ).all()


@storage_operation
def update_availability(db: Session, entry_id: int, entry_update: Payload):
    changes = parse_payload(schemas.AvailabilityUpdate, entry_update).model_dump(exclude_unset=True)
    entry = _get_for_write(db, models.Availability, entry_id, "Availability")
    _apply_changes(entry, changes)
    db.commit()
    db.refresh(entry)
    return entry


@storage_operation
def delete_availability(db: Session, entry_id: int):
    entry = _get_for_write(db, models.Availability, entry_id, "Availability")
    return _delete(db, entry)


# Personal tasks

_TASK_LINKS = (
    ("assigned_to_id", models.TeamMember, "TeamMember"),
    ("project_id", models.Project, "Project"),
    ("milestone_id", models.Milestone, "Milestone"),
    ("process_id", models.Process, "Process"),
)


def _check_task_links(db: Session, owner_id: int, data: dict):
    for field, model, label in _TASK_LINKS:
        if data.get(field) is not None:
            _require_owned(db, model, data[field], owner_id, label)


def _sync_completion(data: dict):
    if "status" not in data:
        return
    if data["status"] == "Completed":
        data["completion_date"] = date.today()
    else:
        data["completion_date"] = None


@storage_operation
def create_task(db: Session, owner_id: int, task: Payload):
    data = parse_payload(schemas.TaskCreate, task).model_dump()
    validators.correct_points_on_create(data)
    data["progress"] = helpers.calculate_progress(data["subtasks"])
    _sync_completion(data)
    _check_task_links(db, owner_id, data)
    db_task = models.PersonalTask(**data, user_id=owner_id)
    db.add(db_task)
    db.commit()
    db.refresh(db_task)
    logger.info("task_created", user_id=owner_id, task_id=db_task.id, task_type=db_task.task_type, points=db_task.points)
    return db_task


@storage_operation
def get_task(db: Session, task_id: int, owner_id: Optional[int] = None):
    return _get_owned(db, models.PersonalTask, task_id, owner_id)


@storage_operation
def get_tasks_by_user(db: Session, owner_id: int, start_date=None, end_date=None):
    q = db.query(models.PersonalTask).filter(models.PersonalTask.user_id == owner_id)
    if start_date is not None:
        q = q.filter(models.PersonalTask.due_date >= _as_date(start_date, "start_date"))
    if end_date is not None:
        q = q.filter(models.PersonalTask.due_date <= _as_date(end_date, "end_date"))
    return q.all()


@storage_operation
def get_tasks_by_project(db: Session, project_id: int, owner_id: Optional[int] = None):
    q = db.query(models.PersonalTask).filter(models.PersonalTask.project_id == project_id)
    if owner_id is not None:
        q = q.filter(models.PersonalTask.user_id == owner_id)
    return q.all()


@storage_operation
def update_task(db: Session, task_id: int, task_update: Payload):
    changes = parse_payload(schemas.TaskUpdate, task_update).model_dump(exclude_unset=True)
    task = _get_for_write(db, models.PersonalTask, task_id, "PersonalTask")
    validators.correct_points_on_update(changes)
    if "subtasks" in changes:
        changes["progress"] = helpers.calculate_progress(changes["subtasks"])
    if changes.get("status") != task.status:
        _sync_completion(changes)
    _check_task_links(db, task.user_id, changes)
    _apply_changes(task, changes)
    db.commit()
    db.refresh(task)
    logger.info("task_updated", task_id=task.id, fields=sorted(changes))
    return task


def complete_task(db: Session, task_id: int):
    return update_task(db, task_id, {"status": "Completed"})


@storage_operation
def delete_task(db: Session, task_id: int):
    task = _get_for_write(db, models.PersonalTask, task_id, "PersonalTask")
    return _delete(db, task)
