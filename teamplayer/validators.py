from typing import Optional

POINTS_BY_TASK_TYPE = {
    "Small": 1,
    "Medium": 3,
    "Large": 5,
}


def canonical_points(task_type: str) -> Optional[int]:
    return POINTS_BY_TASK_TYPE.get(task_type)


def validate_task_points(task_type: str, points: Optional[int]) -> bool:
    """True iff ``points`` is the run-rate value for ``task_type``."""
    expected = canonical_points(task_type)
    return expected is not None and points == expected


def correct_points_on_create(data: dict) -> dict:
    if not validate_task_points(data.get("task_type"), data.get("points")):
        data["points"] = canonical_points(data.get("task_type"))
    return data


def correct_points_on_update(changes: dict) -> dict:
    # Only a task_type change rewrites points; points set on its own stays as given.
    if changes.get("task_type") is not None:
        changes["points"] = canonical_points(changes["task_type"])
    return changes
