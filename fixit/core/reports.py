from __future__ import annotations

import calendar
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from .auth import is_admin
from .models import Incident, User, utcnow

TIME_RANGES: tuple[str, ...] = ("all", "today", "week", "month", "quarter")


@dataclass(frozen=True)
class IncidentReport:
    time_range: str
    total: int
    open: int
    in_progress: int
    resolved: int
    closed: int
    high_priority: int  # high + critical
    medium_priority: int
    low_priority: int
    top_departments: Sequence[tuple[str, int]]
    resolution_rate: int  # percent


def can_view_reports(user: Optional[User]) -> bool:
    return is_admin(user) or (user is not None and user.role == "technician")


def newest_first(incidents: Iterable[Incident]) -> list[Incident]:
    return sorted(incidents, key=lambda incident: incident.created_at, reverse=True)


def recent_incidents(incidents: Iterable[Incident], limit: int = 5) -> list[Incident]:
    return newest_first(incidents)[:limit]


def filter_incidents(
    incidents: Iterable[Incident],
    *,
    query: str = "",
    status: Optional[str] = None,
    priority: Optional[str] = None,
    department: Optional[str] = None,
) -> list[Incident]:
    """Search and filter the incident list; ``"all"`` or ``None`` disables a filter."""
    needle = query.strip().lower()
    matched = []
    for incident in incidents:
        if needle and not any(
            needle in value.lower()
            for value in (incident.incident_id, incident.title, incident.department, incident.created_by.name)
        ):
            continue
        if status not in (None, "all") and incident.status != status:
            continue
        if priority not in (None, "all") and incident.priority != priority:
            continue
        if department not in (None, "all") and incident.department != department:
            continue
        matched.append(incident)
    return newest_first(matched)


def range_start(time_range: str, now: datetime) -> datetime | None:
    if time_range == "all":
        return None
    if time_range == "today":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if time_range == "week":
        return now - timedelta(days=7)
    if time_range == "month":
        return _months_before(now, 1)
    if time_range == "quarter":
        return _months_before(now, 3)
    raise ValueError(f"Unknown time range '{time_range}'.")


def build_report(
    incidents: Iterable[Incident],
    time_range: str = "all",
    now: datetime | None = None,
) -> IncidentReport:
    cutoff = range_start(time_range, now or utcnow())
    selected = [item for item in incidents if cutoff is None or item.created_at >= cutoff]

    statuses = Counter(item.status for item in selected)
    priorities = Counter(item.priority for item in selected)
    departments = Counter(item.created_by.department for item in selected if item.created_by.department)

    total = len(selected)
    resolved = statuses["resolved"]
    return IncidentReport(
        time_range=time_range,
        total=total,
        open=statuses["open"],
        in_progress=statuses["in_progress"],
        resolved=resolved,
        closed=statuses["closed"],
        high_priority=priorities["high"] + priorities["critical"],
        medium_priority=priorities["medium"],
        low_priority=priorities["low"],
        top_departments=departments.most_common(5),
        resolution_rate=int(resolved * 100 / total + 0.5) if total else 0,
    )


def relative_time(stamp: datetime, now: datetime | None = None) -> str:
    seconds = int(((now or utcnow()) - stamp).total_seconds())
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return _ago(seconds // 60, "minute")
    if seconds < 86400:
        return _ago(seconds // 3600, "hour")
    return _ago(seconds // 86400, "day")


def _ago(amount: int, unit: str) -> str:
    return f"{amount} {unit}{'' if amount == 1 else 's'} ago"


def _months_before(moment: datetime, months: int) -> datetime:
    month_index = moment.month - 1 - months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)
