"""
Dashboard statistics: personal, team and per-project rollups over work logs.

Periods
-------
today       the current day
week        Monday..Sunday containing today
month       1st..last day of the current month
lastWeek    the Monday..Sunday before ``week``
lastMonth   the calendar month before ``month``
custom      caller-supplied inclusive [start, end]

All sums are ``Decimal`` (hours are stored as decimal strings) and are
rendered with one decimal place. A group's percentage is its share of
the grand total of the same rollup; a zero total yields 0 for every group.
"""

from __future__ import annotations

import calendar
import logging
from collections import defaultdict
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from workhours.core.exceptions import ValidationError
from workhours.models import db
from workhours.models.catalog import Project, WorkCategory
from workhours.models.user import User
from workhours.models.work_log import WorkLog
from workhours.services.work_log_service import UNKNOWN_CATEGORY, UNKNOWN_PROJECT, UNKNOWN_USER

logger = logging.getLogger(__name__)

PERIODS = ("today", "week", "month", "lastWeek", "lastMonth", "custom")
RECENT_LOG_LIMIT = 10
OVERVIEW_VIEWS = ("user", "project")
OVERVIEW_DEFAULT_DAYS = 7

_ZERO = Decimal("0")
_ONE_DECIMAL = Decimal("0.1")


# ═══════════════════════════════════════════════════════════════
# Date windows & number formatting
# ═══════════════════════════════════════════════════════════════
def week_bounds(day: date) -> tuple[date, date]:
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def month_bounds(day: date) -> tuple[date, date]:
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def period_range(period: str, today: date, start: date | None = None, end: date | None = None) -> tuple[date, date]:
    """Inclusive date window for a named period."""
    if period == "today":
        return today, today
    if period == "week":
        return week_bounds(today)
    if period == "month":
        return month_bounds(today)
    if period == "lastWeek":
        return week_bounds(today - timedelta(days=7))
    if period == "lastMonth":
        return month_bounds(today.replace(day=1) - timedelta(days=1))
    if period == "custom":
        if not start or not end:
            raise ValidationError("Start and end dates are required for custom period")
        if start > end:
            raise ValidationError("startDate must be on or before endDate", details={"startDate": "After endDate"})
        return start, end
    raise ValidationError(f"period must be one of: {', '.join(PERIODS)}", details={"period": "Invalid period"})


def format_hours(value: Decimal) -> str:
    return str(value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def percentage(part: Decimal, total: Decimal) -> float:
    if total <= 0:
        return 0.0
    return float((part * 100 / total).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def _iso(value):
    return value.isoformat() if value else None


# ═══════════════════════════════════════════════════════════════
# Row loading & grouping
# ═══════════════════════════════════════════════════════════════
class _Row:
    __slots__ = ("date", "hours", "user_id", "user_name", "project_id", "project_name",
                 "category_id", "category_name")

    def __init__(self, raw):
        (self.date, hours, self.user_id, self.user_name, self.project_id,
         self.project_name, self.category_id, self.category_name) = raw
        self.hours = Decimal(hours)


def _load_rows(user_ids: list[str] | None, start: date, end: date, project_id: str | None = None) -> list[_Row]:
    q = (
        db.session.query(
            WorkLog.date, WorkLog.hours, WorkLog.user_id, User.name,
            WorkLog.project_id, Project.name, WorkLog.category_id, WorkCategory.name,
        )
        .outerjoin(User, User.id == WorkLog.user_id)
        .outerjoin(Project, Project.id == WorkLog.project_id)
        .outerjoin(WorkCategory, WorkCategory.id == WorkLog.category_id)
        .filter(WorkLog.date >= start, WorkLog.date <= end)
    )
    if user_ids is not None:
        q = q.filter(WorkLog.user_id.in_(user_ids))
    if project_id:
        q = q.filter(WorkLog.project_id == project_id)
    return [_Row(raw) for raw in q.all()]


def _total(rows) -> Decimal:
    return sum((r.hours for r in rows), _ZERO)


def _summary(rows) -> dict:
    return {"totalHours": format_hours(_total(rows)), "logCount": len(rows)}


def _group(rows, key_attr: str) -> dict[str, list[_Row]]:
    groups: dict[str, list[_Row]] = defaultdict(list)
    for r in rows:
        groups[getattr(r, key_attr)].append(r)
    return groups


def _breakdown(rows, key_attr: str, name_attr: str, id_key: str, name_key: str, fallback: str,
               total: Decimal | None = None, extra=None) -> list[dict]:
    """Group rows by a dimension; hours desc, then name for ties."""
    total = _total(rows) if total is None else total
    items = []
    for key, group in _group(rows, key_attr).items():
        hours = _total(group)
        item = {
            id_key: key,
            name_key: getattr(group[0], name_attr) or fallback,
            "_hours": hours,
            "totalHours": format_hours(hours),
            "logCount": len(group),
            "percentage": percentage(hours, total),
        }
        if extra:
            item.update(extra(group))
        items.append(item)
    items.sort(key=lambda i: (-i["_hours"], i[name_key]))
    for item in items:
        del item["_hours"]
    return items


def _daily_trend(rows) -> list[dict]:
    by_day: dict[date, Decimal] = defaultdict(lambda: _ZERO)
    for r in rows:
        by_day[r.date] += r.hours
    return [{"date": d.isoformat(), "totalHours": format_hours(h)} for d, h in sorted(by_day.items())]


def _window(rows, start: date, end: date) -> list[_Row]:
    return [r for r in rows if start <= r.date <= end]


# ═══════════════════════════════════════════════════════════════
# Personal
# ═══════════════════════════════════════════════════════════════
def personal_stats(user_ids: list[str] | None, period: str = "today", start: date | None = None,
                   end: date | None = None, today: date | None = None) -> dict:
    """Summary cards (today / this week / this month) plus period breakdowns.

    ``user_ids`` None means every user (admin "all" scope).
    """
    today = today or date.today()
    period_start, period_end = period_range(period, today, start, end)
    week_start, week_end = week_bounds(today)
    month_start, month_end = month_bounds(today)

    # One fetch covering both the summary windows and the selected period
    span_start = min(period_start, week_start, month_start)
    span_end = max(period_end, week_end, month_end)
    rows = _load_rows(user_ids, span_start, span_end)
    period_rows = _window(rows, period_start, period_end)

    return {
        "period": {"name": period, "startDate": period_start.isoformat(), "endDate": period_end.isoformat()},
        "summary": {
            "today": _summary(_window(rows, today, today)),
            "thisWeek": {
                **_summary(_window(rows, week_start, week_end)),
                "weekStart": week_start.isoformat(),
                "weekEnd": week_end.isoformat(),
            },
            "thisMonth": {
                **_summary(_window(rows, month_start, month_end)),
                "monthStart": month_start.isoformat(),
                "monthEnd": month_end.isoformat(),
            },
        },
        "byProject": _breakdown(period_rows, "project_id", "project_name", "projectId", "projectName", UNKNOWN_PROJECT),
        "byCategory": _breakdown(period_rows, "category_id", "category_name", "categoryId", "categoryName", UNKNOWN_CATEGORY),
        "recentLogs": recent_logs(user_ids),
        "trend": {"daily": _daily_trend(period_rows)},
    }


def recent_logs(user_ids: list[str] | None, limit: int = RECENT_LOG_LIMIT) -> list[dict]:
    q = (
        db.session.query(WorkLog.id, WorkLog.date, WorkLog.hours, WorkLog.details, Project.name, WorkCategory.name)
        .outerjoin(Project, Project.id == WorkLog.project_id)
        .outerjoin(WorkCategory, WorkCategory.id == WorkLog.category_id)
    )
    if user_ids is not None:
        q = q.filter(WorkLog.user_id.in_(user_ids))
    rows = q.order_by(WorkLog.date.desc(), WorkLog.created_at.desc()).limit(limit).all()
    return [
        {
            "id": log_id,
            "date": log_date.isoformat(),
            "hours": hours,
            "details": details,
            "projectName": project_name or UNKNOWN_PROJECT,
            "categoryName": category_name or UNKNOWN_CATEGORY,
        }
        for log_id, log_date, hours, details, project_name, category_name in rows
    ]


# ═══════════════════════════════════════════════════════════════
# Team
# ═══════════════════════════════════════════════════════════════
def team_stats(members: list[tuple[str, str | None]], period: str = "week", start: date | None = None,
               end: date | None = None, today: date | None = None) -> dict:
    """Rollup over a team's members.

    Args:
        members: ``(user_id, user_name)`` pairs; must not be empty.
    """
    if not members:
        raise ValidationError("A team needs at least one member for statistics")
    today = today or date.today()
    period_start, period_end = period_range(period, today, start, end)
    week_start, week_end = week_bounds(today)
    user_ids = [uid for uid, _ in members]

    rows = _load_rows(user_ids, period_start, period_end)
    total = _total(rows)
    average = total / len(members)

    def member_extra(group):
        return {
            "lastLogDate": _iso(max(r.date for r in group)),
            "workingDays": len({r.date for r in group}),
        }

    def project_extra(group):
        return {"memberCount": len({r.user_id for r in group})}

    return {
        "period": {"name": period, "startDate": period_start.isoformat(), "endDate": period_end.isoformat()},
        "summary": {
            "totalHours": format_hours(total),
            "averageHoursPerMember": format_hours(average),
            "totalLogs": len(rows),
            "memberCount": len(members),
        },
        "byMember": _breakdown(rows, "user_id", "user_name", "userId", "userName", UNKNOWN_USER,
                               total=total, extra=member_extra),
        "byProject": _breakdown(rows, "project_id", "project_name", "projectId", "projectName", UNKNOWN_PROJECT,
                                total=total, extra=project_extra),
        "activityStatus": _activity_status(members, today, week_start, week_end),
        "trend": {"daily": _daily_trend(rows)},
    }


def _activity_status(members, today: date, week_start: date, week_end: date) -> list[dict]:
    user_ids = [uid for uid, _ in members]
    last_dates = dict(
        db.session.query(WorkLog.user_id, db.func.max(WorkLog.date))
        .filter(WorkLog.user_id.in_(user_ids))
        .group_by(WorkLog.user_id)
        .all()
    )
    week_dates = _group(_load_rows(user_ids, week_start, week_end), "user_id")

    status = []
    for uid, name in members:
        days = {r.date for r in week_dates.get(uid, [])}
        status.append({
            "userId": uid,
            "userName": name or UNKNOWN_USER,
            "hasLogToday": today in days,
            "hasLogThisWeek": bool(days),
            "lastLogDate": _iso(last_dates.get(uid)),
        })
    return status


# ═══════════════════════════════════════════════════════════════
# Projects
# ═══════════════════════════════════════════════════════════════
def project_stats(user_ids: list[str] | None, period: str = "week", start: date | None = None,
                  end: date | None = None, project_id: str | None = None, today: date | None = None) -> dict:
    """Per-project totals with member/category breakdowns and daily trend."""
    today = today or date.today()
    period_start, period_end = period_range(period, today, start, end)
    rows = _load_rows(user_ids, period_start, period_end, project_id=project_id)
    grand_total = _total(rows)

    projects = []
    for pid, group in _group(rows, "project_id").items():
        project_total = _total(group)
        projects.append({
            "projectId": pid,
            "projectName": group[0].project_name or UNKNOWN_PROJECT,
            "_hours": project_total,
            "totalHours": format_hours(project_total),
            "logCount": len(group),
            "memberCount": len({r.user_id for r in group}),
            "percentage": percentage(project_total, grand_total),
            "byMember": _breakdown(group, "user_id", "user_name", "userId", "userName", UNKNOWN_USER),
            "byCategory": _breakdown(group, "category_id", "category_name", "categoryId", "categoryName",
                                     UNKNOWN_CATEGORY),
            "trend": {"daily": _daily_trend(group)},
        })
    projects.sort(key=lambda p: (-p["_hours"], p["projectName"]))
    for p in projects:
        del p["_hours"]

    return {
        "period": {"name": period, "startDate": period_start.isoformat(), "endDate": period_end.isoformat()},
        "summary": {
            "totalProjects": len(projects),
            "totalHours": format_hours(grand_total),
            "totalLogs": len(rows),
        },
        "projects": projects,
    }


# ═══════════════════════════════════════════════════════════════
# Overview (per-day chart data)
# ═══════════════════════════════════════════════════════════════
def overview_stats(user_ids: list[str] | None, view: str = "user", start: date | None = None,
                   end: date | None = None, today: date | None = None) -> dict:
    """Hours per day, split by user (``view="user"``) or by project and user.

    The window defaults to the ``OVERVIEW_DEFAULT_DAYS`` days before ``end`` (today).
    ``totalDays`` counts days with at least one log.
    """
    if view not in OVERVIEW_VIEWS:
        raise ValidationError("Invalid query parameters", details={"view": "Must be user or project"})
    today = today or date.today()
    end = end or today
    start = start or end - timedelta(days=OVERVIEW_DEFAULT_DAYS)
    if start > end:
        raise ValidationError("startDate must be on or before endDate", details={"startDate": "After endDate"})

    rows = _load_rows(user_ids, start, end)
    if view == "user":
        groups = _group_by(rows, ("date", "user_id"))
    else:
        groups = _group_by(rows, ("date", "project_id", "user_id"))

    data = []
    for group in groups.values():
        first = group[0]
        item = {"date": first.date.isoformat()}
        if view == "project":
            item["projectId"] = first.project_id
            item["projectName"] = first.project_name or UNKNOWN_PROJECT
        item["userId"] = first.user_id
        item["userName"] = first.user_name or UNKNOWN_USER
        item["hours"] = format_hours(_total(group))
        data.append(item)
    data.sort(key=lambda i: (i["date"], i.get("projectName", ""), i["userName"]))

    total = _total(rows)
    days = len({r.date for r in rows})
    return {
        "view": view,
        "dateRange": {"startDate": start.isoformat(), "endDate": end.isoformat()},
        "data": data,
        "summary": {
            "totalHours": format_hours(total),
            "totalDays": days,
            "averageHoursPerDay": format_hours(total / days) if days else format_hours(_ZERO),
        },
    }


def _group_by(rows, attrs: tuple[str, ...]) -> dict[tuple, list[_Row]]:
    groups: dict[tuple, list[_Row]] = defaultdict(list)
    for r in rows:
        groups[tuple(getattr(r, a) for a in attrs)].append(r)
    return groups
