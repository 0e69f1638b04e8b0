# File: tests/test_admin.py

from datetime import timedelta

from app.db.base import utcnow
from app.models import Issue, IssueStatus, UserRole
from app.services import reporting
from tests.helpers import auth


def test_admin_routes_need_administer(client, citizen, moderator, authority):
    for user in (citizen, moderator, authority):
        for path in ("stats", "activity", "trends", "users"):
            assert client.get(f"/api/admin/{path}", headers=auth(user)).status_code == 403
    assert client.get("/api/admin/stats").status_code == 401


def test_stats(client, db, report, citizen, admin, verified_issue):
    report(citizen, title="Waiting for review")
    resolved = db.get(Issue, verified_issue["id"])
    resolved.status = IssueStatus.RESOLVED
    db.commit()

    r = client.get("/api/admin/stats", headers=auth(admin))
    assert r.status_code == 200
    assert r.json()["data"] == {
        "total_users": 3,
        "total_issues": 2,
        "pending_moderation": 1,
        "resolved_this_month": 1,
        "active_categories": 2,
        "cities_active": 2,
    }


def test_resolved_before_this_month_is_not_counted(db, verified_issue):
    issue = db.get(Issue, verified_issue["id"])
    issue.status = IssueStatus.RESOLVED
    db.commit()
    assert reporting.stats(db)["resolved_this_month"] == 1

    issue.updated_at = reporting.month_start() - timedelta(seconds=1)
    db.commit()
    assert reporting.stats(db)["resolved_this_month"] == 0


def test_trends_bucket_by_creation_day(client, db, report, citizen, admin):
    today = report(citizen, title="Fresh report")
    old = report(citizen, title="Old report")
    ancient = report(citizen, title="Ancient report")
    done = report(citizen, title="Fixed already")

    now = utcnow()
    db.get(Issue, old["id"]).created_at = now - timedelta(days=2)
    db.get(Issue, ancient["id"]).created_at = now - timedelta(days=30)
    db.get(Issue, done["id"]).created_at = now - timedelta(days=2)
    db.get(Issue, done["id"]).status = IssueStatus.RESOLVED
    db.commit()

    r = client.get("/api/admin/trends", headers=auth(admin))
    assert r.json()["data"] == [
        {"date": (now - timedelta(days=2)).date().isoformat(), "reported": 1, "resolved": 1},
        {"date": now.date().isoformat(), "reported": 1, "resolved": 0},
    ]


def test_activity_lists_latest_ten_with_actor(client, report, citizen, admin):
    for n in range(12):
        report(citizen, title=f"Report number {n}")
    rows = client.get("/api/admin/activity", headers=auth(admin)).json()["data"]
    assert len(rows) == 10
    assert all(row["action"] == "ISSUE_CREATE" for row in rows)
    assert rows[0]["user"]["id"] == citizen.id
    ids = [int(row["entity_id"]) for row in rows]
    assert ids == sorted(ids, reverse=True)


def test_users_newest_first_without_hashes(client, make_user, admin):
    make_user(UserRole.CITY_ADMIN, name="City Admin")
    rows = client.get("/api/admin/users", headers=auth(admin)).json()["data"]
    assert [row["name"] for row in rows][0] == "City Admin"
    assert all("hashed_password" not in row for row in rows)
    assert {"is_active", "is_suspended", "phone", "role"} <= set(rows[0])
