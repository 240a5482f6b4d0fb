"""Pure derivation helpers.

Nothing in here touches storage. Every function is total: case variants,
``None``, empty and unknown inputs all produce a defined result.
"""

import json
import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Optional

PRIORITY_COLORS = {
    "high": "error",
    "medium": "warning",
}

STATUS_COLORS = {
    "completed": "success",
    "in progress": "primary",
    "not started": "warning",
}

TASK_TYPE_ICONS = {
    "small": "battery-10",
    "medium": "battery-50",
    "large": "battery-90",
}
UNKNOWN_TASK_TYPE_ICON = "battery-unknown"


def _normalize(value: Optional[str]) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def parse_id_list(raw: Any) -> list:
    """Decode a serialized identifier list.

    Anything that is not a JSON array (including ``None``, empty strings and
    broken JSON) decodes to ``[]``.
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if not isinstance(raw, (str, bytes)):
        return []
    try:
        value = json.loads(raw)
    except (ValueError, TypeError):
        return []
    return value if isinstance(value, list) else []


def dump_id_list(values: Iterable) -> str:
    return json.dumps(list(values))


def _is_completed(subtask: Any) -> bool:
    if isinstance(subtask, dict):
        return bool(subtask.get("completed"))
    return bool(getattr(subtask, "completed", False))


def calculate_progress(subtasks: Optional[Iterable]) -> int:
    items = list(subtasks or [])
    if not items:
        return 0
    completed = sum(1 for s in items if _is_completed(s))
    # Half-up rounding; Python's round() would give 0 for 0.5.
    return int(math.floor(completed * 100 / len(items) + 0.5))


def get_priority_color(priority: Optional[str]) -> str:
    return PRIORITY_COLORS.get(_normalize(priority), "success")


def get_status_color(status: Optional[str]) -> str:
    return STATUS_COLORS.get(_normalize(status), "neutral")


def get_task_type_icon(task_type: Optional[str] = None) -> str:
    return TASK_TYPE_ICONS.get(_normalize(task_type), UNKNOWN_TASK_TYPE_ICON)


def count_groups(group_ids: Any) -> int:
    """Number of distinct groups in a parsed or serialized group list."""
    ids = parse_id_list(group_ids)
    return len({str(g) for g in ids})


@dataclass
class RunRateMetrics:
    prr: float
    rprr: float
    status: str
    completed_points: int
    remaining_points: int
    total_points: int
    days_spent: int
    days_remaining: int


def calculate_run_rate(
    tasks: Iterable,
    start_date: Optional[date],
    deadline: Optional[date],
    developer_count: int,
    today: Optional[date] = None,
) -> RunRateMetrics:
    """Project run rate (PRR) against required run rate (RPRR).

    PRR is completed points per developer per day spent so far; RPRR is the
    remaining points per developer per day left before the deadline. Both day
    counts are floored at one so a project that starts or ends today still
    yields a finite rate.
    """
    today = today or date.today()
    completed = remaining = 0
    for task in tasks:
        points = getattr(task, "points", None) or 0
        if getattr(task, "status", None) == "Completed":
            completed += points
        else:
            remaining += points

    days_spent = max(1, (today - start_date).days) if start_date else 1
    days_remaining = max(1, (deadline - today).days) if deadline else 1

    if developer_count and developer_count > 0:
        prr = completed / (developer_count * days_spent)
        rprr = remaining / (developer_count * days_remaining)
    else:
        prr = rprr = 0.0

    if prr > rprr:
        status = "Ahead"
    elif prr < rprr:
        status = "Behind"
    else:
        status = "On Track"

    return RunRateMetrics(
        prr=prr,
        rprr=rprr,
        status=status,
        completed_points=completed,
        remaining_points=remaining,
        total_points=completed + remaining,
        days_spent=days_spent,
        days_remaining=days_remaining,
    )
