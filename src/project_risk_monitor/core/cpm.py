from __future__ import annotations

from collections import deque
from dataclasses import replace
from typing import Sequence

from ..errors import ValidationError
from ..models import Activity

FLOAT_EPSILON = 1e-9


def _topological_order(activities: Sequence[Activity]) -> list[str]:
    known = {a.id for a in activities}
    preds = {a.id: {p for p in a.predecessor_ids if p in known and p != a.id} for a in activities}
    succs: dict[str, list[str]] = {a.id: [] for a in activities}
    for activity_id, parents in preds.items():
        for parent in parents:
            succs[parent].append(activity_id)

    pending = {activity_id: len(parents) for activity_id, parents in preds.items()}
    queue = deque(a.id for a in activities if pending[a.id] == 0)
    order: list[str] = []
    while queue:
        current = queue.popleft()
        order.append(current)
        for child in succs[current]:
            pending[child] -= 1
            if pending[child] == 0:
                queue.append(child)

    if len(order) != len(activities):
        stuck = sorted(activity_id for activity_id, count in pending.items() if count > 0)
        raise ValidationError(f"dependency cycle detected among: {', '.join(stuck)}")
    return order


def compute_critical_path(activities: Sequence[Activity]) -> list[Activity]:
    """Forward/backward pass over planned durations.

    Returns copies of the activities (input order preserved) with early/late dates, total
    float, critical-path flag and successor ids filled in. Predecessor ids that do not match
    an activity in the set are ignored.
    """
    if not activities:
        return []
    by_id = {a.id: a for a in activities}
    order = _topological_order(activities)
    preds = {a.id: [p for p in a.predecessor_ids if p in by_id and p != a.id] for a in activities}
    succs: dict[str, set[str]] = {a.id: set() for a in activities}
    for activity_id, parents in preds.items():
        for parent in parents:
            succs[parent].add(activity_id)

    early_start: dict[str, float] = {}
    early_finish: dict[str, float] = {}
    for activity_id in order:
        start = max((early_finish[p] for p in preds[activity_id]), default=0.0)
        early_start[activity_id] = start
        early_finish[activity_id] = start + by_id[activity_id].planned_duration

    project_finish = max(early_finish.values())
    late_start: dict[str, float] = {}
    late_finish: dict[str, float] = {}
    for activity_id in reversed(order):
        finish = min((late_start[s] for s in succs[activity_id]), default=project_finish)
        late_finish[activity_id] = finish
        late_start[activity_id] = finish - by_id[activity_id].planned_duration

    updated: list[Activity] = []
    for activity in activities:
        total_float = late_start[activity.id] - early_start[activity.id]
        updated.append(
            replace(
                activity,
                early_start=early_start[activity.id],
                early_finish=early_finish[activity.id],
                late_start=late_start[activity.id],
                late_finish=late_finish[activity.id],
                total_float=total_float,
                is_critical_path=total_float <= FLOAT_EPSILON,
                successor_ids=frozenset(activity.successor_ids | succs[activity.id]),
            )
        )
    return updated
