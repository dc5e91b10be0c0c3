"""
Dashboard statistics.

Covers:
  - period windows: today/week/month/lastWeek/lastMonth/custom
  - formatting (one decimal) and percentages (zero total -> 0 for all)
  - personal stats: summary cards, breakdown order, recent logs
  - team stats: member rollup, averages, activity status
  - project stats
  - overview chart data (per day, by user or by project)
  - API scope rules for /, /personal, /team and /projects
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from workhours.core.exceptions import ValidationError
from workhours.models import db
from workhours.models.catalog import Project, WorkCategory
from workhours.services import dashboard_service as svc

TODAY = date(2024, 5, 15)  # a Wednesday


# ═══════════════════════════════════════════════════════════════
# Pure helpers
# ═══════════════════════════════════════════════════════════════
class TestPeriods:
    @pytest.mark.parametrize("period,expected", [
        ("today", (date(2024, 5, 15), date(2024, 5, 15))),
        ("week", (date(2024, 5, 13), date(2024, 5, 19))),
        ("month", (date(2024, 5, 1), date(2024, 5, 31))),
        ("lastWeek", (date(2024, 5, 6), date(2024, 5, 12))),
        ("lastMonth", (date(2024, 4, 1), date(2024, 4, 30))),
    ])
    def test_named_periods(self, period, expected):
        assert svc.period_range(period, TODAY) == expected

    def test_last_month_across_year_boundary(self):
        assert svc.period_range("lastMonth", date(2024, 1, 10)) == (date(2023, 12, 1), date(2023, 12, 31))

    def test_custom_requires_both_dates(self):
        with pytest.raises(ValidationError):
            svc.period_range("custom", TODAY, date(2024, 5, 1), None)

    def test_custom_range(self):
        assert svc.period_range("custom", TODAY, date(2024, 1, 1), date(2024, 1, 5)) == (
            date(2024, 1, 1), date(2024, 1, 5),
        )

    def test_unknown_period(self):
        with pytest.raises(ValidationError):
            svc.period_range("decade", TODAY)


class TestFormatting:
    def test_one_decimal_half_up(self):
        assert svc.format_hours(Decimal("7.25")) == "7.3"
        assert svc.format_hours(Decimal("0")) == "0.0"

    def test_zero_total_percentage(self):
        assert svc.percentage(Decimal("0"), Decimal("0")) == 0.0

    def test_percentage(self):
        assert svc.percentage(Decimal("1"), Decimal("3")) == 33.3


# ═══════════════════════════════════════════════════════════════
# Service rollups
# ═══════════════════════════════════════════════════════════════
class TestPersonalStats:
    def test_summary_windows(self, user, make_log):
        make_log(user, day=TODAY, hours="2.5")
        make_log(user, day=date(2024, 5, 13), hours="4")   # Monday, same week
        make_log(user, day=date(2024, 5, 2), hours="1.25")  # same month
        make_log(user, day=date(2024, 4, 30), hours="8")    # previous month

        stats = svc.personal_stats([user.id], "today", today=TODAY)
        summary = stats["summary"]
        assert summary["today"] == {"totalHours": "2.5", "logCount": 1}
        assert summary["thisWeek"]["totalHours"] == "6.5"
        assert summary["thisWeek"]["weekStart"] == "2024-05-13"
        assert summary["thisMonth"]["totalHours"] == "7.8"
        assert summary["thisMonth"]["monthEnd"] == "2024-05-31"
        assert stats["period"] == {"name": "today", "startDate": "2024-05-15", "endDate": "2024-05-15"}

    def test_breakdowns_sorted_and_percentages_sum(self, user, make_log, category):
        gemini = Project(name="Gemini")
        ops = WorkCategory(name="Ops")
        db.session.add_all([gemini, ops])
        db.session.commit()
        make_log(user, day=TODAY, hours="1")
        make_log(user, day=TODAY, hours="2", project_id=gemini.id, category_id=ops.id)
        make_log(user, day=TODAY, hours="1", project_id=gemini.id)

        stats = svc.personal_stats([user.id], "month", today=TODAY)
        by_project = stats["byProject"]
        assert [p["projectName"] for p in by_project] == ["Gemini", "Apollo"]
        assert by_project[0]["totalHours"] == "3.0"
        assert by_project[0]["logCount"] == 2
        assert sum(p["percentage"] for p in by_project) == pytest.approx(100.0, abs=0.2)
        assert sum(c["percentage"] for c in stats["byCategory"]) == pytest.approx(100.0, abs=0.2)
        assert stats["trend"]["daily"] == [{"date": "2024-05-15", "totalHours": "4.0"}]

    def test_empty_period_is_all_zero(self, user):
        stats = svc.personal_stats([user.id], "week", today=TODAY)
        assert stats["summary"]["today"] == {"totalHours": "0.0", "logCount": 0}
        assert stats["byProject"] == []
        assert stats["recentLogs"] == []

    def test_recent_logs_limited_to_ten(self, user, make_log):
        for i in range(12):
            make_log(user, day=TODAY - timedelta(days=i))
        recent = svc.personal_stats([user.id], "today", today=TODAY)["recentLogs"]
        assert len(recent) == 10
        assert recent[0]["date"] == TODAY.isoformat()
        assert recent[0]["projectName"] == "Apollo"

    def test_other_users_excluded(self, user, other_user, make_log):
        make_log(other_user, day=TODAY, hours="5")
        stats = svc.personal_stats([user.id], "today", today=TODAY)
        assert stats["summary"]["today"]["totalHours"] == "0.0"


class TestTeamStats:
    def test_member_rollup(self, user, other_user, make_log):
        make_log(user, day=TODAY, hours="3")
        make_log(user, day=date(2024, 5, 14), hours="3")
        make_log(other_user, day=date(2024, 5, 13), hours="2")
        members = [(user.id, user.name), (other_user.id, other_user.name)]

        stats = svc.team_stats(members, "week", today=TODAY)
        assert stats["summary"] == {
            "totalHours": "8.0",
            "averageHoursPerMember": "4.0",
            "totalLogs": 3,
            "memberCount": 2,
        }
        first = stats["byMember"][0]
        assert first["userId"] == user.id
        assert first["workingDays"] == 2
        assert first["lastLogDate"] == "2024-05-15"
        assert first["percentage"] == 75.0
        assert stats["byProject"][0]["memberCount"] == 2

        activity = {a["userId"]: a for a in stats["activityStatus"]}
        assert activity[user.id]["hasLogToday"] is True
        assert activity[other_user.id]["hasLogToday"] is False
        assert activity[other_user.id]["hasLogThisWeek"] is True

    def test_requires_members(self):
        with pytest.raises(ValidationError):
            svc.team_stats([], "week", today=TODAY)


class TestProjectStats:
    def test_projects_and_filter(self, user, other_user, make_log, project):
        gemini = Project(name="Gemini")
        db.session.add(gemini)
        db.session.commit()
        make_log(user, day=TODAY, hours="4")
        make_log(other_user, day=TODAY, hours="2")
        make_log(user, day=TODAY, hours="1", project_id=gemini.id)

        stats = svc.project_stats(None, "week", today=TODAY)
        assert stats["summary"] == {"totalProjects": 2, "totalHours": "7.0", "totalLogs": 3}
        apollo = stats["projects"][0]
        assert apollo["projectName"] == "Apollo"
        assert apollo["memberCount"] == 2
        assert [m["userId"] for m in apollo["byMember"]] == [user.id, other_user.id]

        only = svc.project_stats(None, "week", project_id=gemini.id, today=TODAY)
        assert [p["projectId"] for p in only["projects"]] == [gemini.id]


class TestOverviewStats:
    def test_user_view_groups_per_day_and_user(self, user, other_user, make_log):
        make_log(user, day=TODAY, hours="2")
        make_log(user, day=TODAY, hours="1.5")
        make_log(other_user, day=TODAY - timedelta(days=1), hours="4")
        make_log(user, day=TODAY - timedelta(days=10), hours="8")  # outside the default window

        stats = svc.overview_stats(None, "user", today=TODAY)
        assert stats["view"] == "user"
        assert stats["dateRange"] == {"startDate": "2024-05-08", "endDate": "2024-05-15"}
        assert stats["data"] == [
            {"date": "2024-05-14", "userId": other_user.id, "userName": "Otto Other", "hours": "4.0"},
            {"date": "2024-05-15", "userId": user.id, "userName": "Uma User", "hours": "3.5"},
        ]
        assert stats["summary"] == {"totalHours": "7.5", "totalDays": 2, "averageHoursPerDay": "3.8"}

    def test_project_view_splits_by_project_and_user(self, user, other_user, make_log):
        gemini = Project(name="Gemini")
        db.session.add(gemini)
        db.session.commit()
        make_log(user, day=TODAY, hours="2")
        make_log(user, day=TODAY, hours="1", project_id=gemini.id)
        make_log(other_user, day=TODAY, hours="3")

        stats = svc.overview_stats(None, "project", today=TODAY)
        assert [(d["projectName"], d["userName"], d["hours"]) for d in stats["data"]] == [
            ("Apollo", "Otto Other", "3.0"),
            ("Apollo", "Uma User", "2.0"),
            ("Gemini", "Uma User", "1.0"),
        ]
        assert stats["summary"] == {"totalHours": "6.0", "totalDays": 1, "averageHoursPerDay": "6.0"}

    def test_restricted_to_given_users(self, user, other_user, make_log):
        make_log(user, day=TODAY, hours="2")
        make_log(other_user, day=TODAY, hours="3")
        stats = svc.overview_stats([user.id], "user", today=TODAY)
        assert [d["userId"] for d in stats["data"]] == [user.id]

    def test_empty_window(self, user):
        stats = svc.overview_stats([user.id], "user", today=TODAY)
        assert stats["data"] == []
        assert stats["summary"] == {"totalHours": "0.0", "totalDays": 0, "averageHoursPerDay": "0.0"}

    def test_rejects_bad_view_and_inverted_range(self):
        with pytest.raises(ValidationError):
            svc.overview_stats(None, "category", today=TODAY)
        with pytest.raises(ValidationError):
            svc.overview_stats(None, "user", start=date(2024, 5, 10), end=date(2024, 5, 1), today=TODAY)


# ═══════════════════════════════════════════════════════════════
# API
# ═══════════════════════════════════════════════════════════════
class TestDashboardApi:
    def test_personal_defaults(self, client, user, user_headers, make_log):
        make_log(user, hours="2")
        res = client.get("/api/dashboard/personal", headers=user_headers)
        assert res.status_code == 200
        data = res.get_json()["data"]
        assert data["period"]["name"] == "today"
        assert data["summary"]["today"]["totalHours"] == "2.0"

    def test_personal_other_scopes_admin_only(self, client, other_user, user_headers, admin_headers, make_log):
        make_log(other_user, hours="3")
        res = client.get(f"/api/dashboard/personal?scope=user&userId={other_user.id}", headers=user_headers)
        assert res.status_code == 403

        res = client.get(f"/api/dashboard/personal?scope=user&userId={other_user.id}", headers=admin_headers)
        assert res.get_json()["data"]["summary"]["today"]["totalHours"] == "3.0"

        res = client.get("/api/dashboard/personal?scope=user", headers=admin_headers)
        assert res.status_code == 400

    def test_custom_period_needs_dates(self, client, user_headers):
        res = client.get("/api/dashboard/personal?period=custom", headers=user_headers)
        assert res.status_code == 400
        res = client.get(
            "/api/dashboard/personal?period=custom&startDate=2024-01-01&endDate=2024-01-31", headers=user_headers,
        )
        assert res.status_code == 200

    def test_team_defaults_to_first_team(self, client, user, other_user, user_headers, make_team, make_log):
        team = make_team(name="Alpha", members=[(user, "member"), (other_user, "leader")])
        make_log(other_user, hours="4")
        res = client.get("/api/dashboard/team", headers=user_headers)
        assert res.status_code == 200
        data = res.get_json()["data"]
        assert data["team"] == {"teamId": team.id, "teamName": "Alpha", "memberCount": 2}
        assert data["summary"]["totalHours"] == "4.0"

    def test_team_without_membership(self, client, user_headers):
        res = client.get("/api/dashboard/team", headers=user_headers)
        assert res.status_code == 404

    def test_team_non_member_forbidden(self, client, other_user, user_headers, admin_headers, make_team):
        team = make_team(members=[(other_user, "member")])
        assert client.get(f"/api/dashboard/team?teamId={team.id}", headers=user_headers).status_code == 403
        assert client.get(f"/api/dashboard/team?teamId={team.id}", headers=admin_headers).status_code == 200

    def test_projects_scope(self, client, user, other_user, user_headers, admin_headers, make_log):
        make_log(user, hours="1")
        make_log(other_user, hours="2")
        res = client.get("/api/dashboard/projects", headers=user_headers)
        assert res.get_json()["data"]["summary"]["totalHours"] == "1.0"
        res = client.get("/api/dashboard/projects?scope=all", headers=admin_headers)
        assert res.get_json()["data"]["summary"]["totalHours"] == "3.0"
        assert client.get("/api/dashboard/projects?scope=all", headers=user_headers).status_code == 403

    def test_overview_non_admin_sees_only_own_logs(self, client, user, other_user, user_headers, make_log):
        make_log(user, hours="2")
        make_log(other_user, hours="5")
        res = client.get("/api/dashboard", headers=user_headers)
        assert res.status_code == 200
        data = res.get_json()["data"]
        assert data["view"] == "user"
        assert {d["userId"] for d in data["data"]} == {user.id}
        assert data["summary"]["totalHours"] == "2.0"

    def test_overview_admin_sees_everyone_by_project(self, client, user, other_user, admin_headers, make_log):
        make_log(user, hours="2")
        make_log(other_user, hours="5")
        res = client.get("/api/dashboard?view=project", headers=admin_headers)
        data = res.get_json()["data"]
        assert data["view"] == "project"
        assert {d["userId"] for d in data["data"]} == {user.id, other_user.id}
        assert {d["projectName"] for d in data["data"]} == {"Apollo"}
        assert data["summary"]["totalHours"] == "7.0"

    def test_overview_explicit_range_and_bad_params(self, client, user, user_headers, make_log):
        make_log(user, day=date(2024, 1, 3), hours="3")
        res = client.get("/api/dashboard?startDate=2024-01-01&endDate=2024-01-31", headers=user_headers)
        data = res.get_json()["data"]
        assert data["dateRange"] == {"startDate": "2024-01-01", "endDate": "2024-01-31"}
        assert data["summary"]["totalDays"] == 1

        res = client.get("/api/dashboard?view=team", headers=user_headers)
        assert res.status_code == 400
        assert "view" in res.get_json()["error"]["details"]
        assert client.get("/api/dashboard?startDate=01/01/2024", headers=user_headers).status_code == 400
