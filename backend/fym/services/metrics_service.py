"""Organization wellness metrics computed from employee mood check-ins."""
from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from fym.models import CamelModel, Employee, MoodEntry

WINDOW_DAYS = 30
WEEK = timedelta(days=7)

# mood scores are 1-5; metrics are reported on a 0-10 scale
MOOD_TO_WELLNESS = 2.0
GOOD_THRESHOLD = 7.5
FAIR_THRESHOLD = 6.5
AT_RISK_THRESHOLD = 5.0


class DepartmentMetrics(CamelModel):
    name: str
    average: Optional[float] = None
    status: str
    employee_count: int


class WellnessMetrics(CamelModel):
    org_id: str
    window_days: int = WINDOW_DAYS
    employee_count: int = 0
    team_wellness: Optional[float] = None
    engagement: float = 0.0
    sessions_this_week: int = 0
    at_risk_count: int = 0
    departments: List[DepartmentMetrics] = []


def department_status(average: Optional[float]) -> str:
    if average is None:
        return "no-data"
    if average >= GOOD_THRESHOLD:
        return "good"
    if average >= FAIR_THRESHOLD:
        return "fair"
    return "needs-attention"


def _wellness(entries: Sequence[MoodEntry]) -> Optional[float]:
    if not entries:
        return None
    return sum(e.mood_score for e in entries) / len(entries) * MOOD_TO_WELLNESS


def compute_wellness_metrics(
    org_id: str,
    employees: Sequence[Employee],
    entries_by_user: Dict[str, List[MoodEntry]],
    now: datetime,
) -> WellnessMetrics:
    """
    Aggregate the window's mood entries per employee.
    Individuals only ever appear through their anonymized id.
    """
    week_start = now - WEEK
    all_scores: List[float] = []
    active_this_week = 0
    sessions_this_week = 0
    at_risk: List[str] = []
    by_department: Dict[str, List[float]] = defaultdict(list)
    department_sizes: Dict[str, int] = defaultdict(int)

    for employee in employees:
        entries = entries_by_user.get(employee.user_id, [])
        department = employee.department or "Unassigned"
        department_sizes[department] += 1

        recent = [e for e in entries if e.created_at >= week_start]
        sessions_this_week += len(recent)
        if recent:
            active_this_week += 1

        score = _wellness(entries)
        if score is None:
            continue
        all_scores.append(score)
        by_department[department].append(score)
        if score < AT_RISK_THRESHOLD:
            at_risk.append(employee.anonymized_id)

    departments = []
    for name in sorted(department_sizes):
        scores = by_department.get(name) or []
        average = round(sum(scores) / len(scores), 1) if scores else None
        departments.append(DepartmentMetrics(
            name=name,
            average=average,
            status=department_status(average),
            employee_count=department_sizes[name],
        ))

    count = len(employees)
    return WellnessMetrics(
        org_id=org_id,
        employee_count=count,
        team_wellness=round(sum(all_scores) / len(all_scores), 1) if all_scores else None,
        engagement=round(active_this_week / count, 2) if count else 0.0,
        sessions_this_week=sessions_this_week,
        at_risk_count=len(at_risk),
        departments=departments,
    )
