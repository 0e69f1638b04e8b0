# File: tests/test_moderation.py

from app.core.config import settings
from app.models import AuditLog, Issue, UserRole
from tests.helpers import auth


def post(client, user, issue_id, action, body=None):
    return client.post(f"/api/moderation/{issue_id}/{action}", json=body or {}, headers=auth(user))


def test_report_verify_upvote_escalate_walkthrough(client, db, places, make_user, moderator):
    r = client.post("/api/auth/register", json={"name": "Asha Patil", "phone": "9876543210", "password": "secret1"})
    assert r.status_code == 201
    r = client.post("/api/auth/login", json={"phone": "9876543210", "password": "secret1"})
    token = r.json()["data"]["token"]
    citizen_headers = {"Authorization": f"Bearer {token}"}

    r = client.post("/api/issues", headers=citizen_headers, json={
        "title": "Pothole on Wardha Road",
        "description": "Two feet wide and getting deeper",
        "category_id": places["category"],
        "city_id": places["city"],
    })
    issue = r.json()["data"]
    assert (issue["status"], issue["is_verified"]) == ("REPORTED", False)

    r = post(client, moderator, issue["id"], "verify", {"department_id": places["department"]})
    data = r.json()["data"]
    assert (data["status"], data["is_verified"]) == ("VERIFIED", True)
    assert data["verified_at"] is not None
    assert data["moderator_id"] == moderator.id
    assert data["department"]["id"] == places["department"]

    upvote_url = f"/api/issues/{issue['id']}/upvote"
    assert client.post(upvote_url, headers=citizen_headers).json()["data"]["upvote_count"] == 1
    assert client.post(upvote_url, headers=citizen_headers).status_code == 409

    r = post(client, moderator, issue["id"], "escalate")
    data = r.json()["data"]
    assert (data["status"], data["severity"]) == ("ESCALATED", "HIGH")

    timeline = client.get(f"/api/issues/{issue['id']}/timeline").json()["data"]
    assert [u["to_status"] for u in timeline] == ["REPORTED", "VERIFIED", "ESCALATED"]
    assert timeline[2]["reason"] == "Escalated by moderator"

    actions = [a for (a,) in db.query(AuditLog.action).order_by(AuditLog.id).all()]
    assert actions == ["USER_REGISTER", "USER_LOGIN", "ISSUE_CREATE", "ISSUE_VERIFY", "ISSUE_UPVOTE", "ISSUE_ESCALATE"]


def test_verify_checks_department_and_applies_severity(client, report, citizen, moderator, places):
    issue = report(citizen)
    r = post(client, moderator, issue["id"], "verify", {"department_id": places["other_department"]})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_DEPARTMENT"
    assert post(client, moderator, issue["id"], "verify", {"department_id": 999}).status_code == 400

    r = post(client, moderator, issue["id"], "verify",
             {"department_id": places["department"], "severity": "CRITICAL", "notes": "Near a school"})
    data = r.json()["data"]
    assert data["severity"] == "CRITICAL"
    assert data["moderator_notes"] == "Near a school"

    r = post(client, moderator, issue["id"], "verify", {"department_id": places["department"]})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_TRANSITION"


def test_reject_needs_reason_and_leaves_issue_unverified(client, report, citizen, moderator):
    issue = report(citizen)
    r = post(client, moderator, issue["id"], "reject", {"reason": "   "})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "REASON_REQUIRED"

    r = post(client, moderator, issue["id"], "reject", {"reason": "Duplicate of #12"})
    data = r.json()["data"]
    assert data["status"] == "REJECTED"
    assert data["rejection_reason"] == "Duplicate of #12"
    assert data["rejected_by_id"] == moderator.id
    assert data["is_verified"] is False
    assert data["verified_at"] is None
    assert data["moderator_id"] is None

    # terminal
    assert post(client, moderator, issue["id"], "escalate").status_code == 400
    r = client.patch(f"/api/issues/{issue['id']}", json={"title": "Let me fix it"}, headers=auth(citizen))
    assert r.status_code == 400


def test_escalate_from_reported_forces_high(client, report, citizen, moderator):
    issue = report(citizen)
    r = post(client, moderator, issue["id"], "escalate", {"reason": "Live wire on the road"})
    data = r.json()["data"]
    assert (data["status"], data["severity"], data["is_verified"]) == ("ESCALATED", "HIGH", False)
    assert data["status_updates"][-1]["reason"] == "Live wire on the road"
    assert post(client, moderator, issue["id"], "escalate").status_code == 400


def test_start_review_then_verify(client, report, citizen, moderator, places):
    issue = report(citizen)
    r = post(client, moderator, issue["id"], "review")
    assert r.json()["data"]["status"] == "UNDER_REVIEW"
    assert post(client, moderator, issue["id"], "review").status_code == 400

    r = post(client, moderator, issue["id"], "verify", {"department_id": places["department"]})
    history = r.json()["data"]["status_updates"]
    assert [(u["from_status"], u["to_status"]) for u in history] == [
        (None, "REPORTED"), ("REPORTED", "UNDER_REVIEW"), ("UNDER_REVIEW", "VERIFIED"),
    ]


def test_any_moderation_action_locks_the_reporter_out(client, report, citizen, moderator):
    for action in ("review", "escalate"):
        issue = report(citizen)
        assert post(client, moderator, issue["id"], action).status_code == 200
        r = client.delete(f"/api/issues/{issue['id']}", headers=auth(citizen))
        assert r.status_code == 400
        assert r.json()["error"]["code"] == "CANNOT_DELETE"


def test_moderation_requires_capability(client, report, citizen, authority, places):
    issue = report(citizen)
    for user in (citizen, authority):
        r = post(client, user, issue["id"], "verify", {"department_id": places["department"]})
        assert r.status_code == 403
        assert client.get("/api/moderation/queue", headers=auth(user)).status_code == 403
    assert client.get("/api/moderation/queue").status_code == 401


def test_admins_can_moderate(client, report, citizen, make_user, places):
    city_admin = make_user(UserRole.CITY_ADMIN)
    issue = report(citizen)
    r = post(client, city_admin, issue["id"], "verify", {"department_id": places["department"]})
    assert r.status_code == 200


def test_queue_is_oldest_first_and_filterable(client, report, citizen, moderator, places):
    first = report(citizen, title="First report")
    second = report(citizen, title="Second report")
    third = report(citizen, title="Third report")
    post(client, moderator, third["id"], "review")

    r = client.get("/api/moderation/queue", headers=auth(moderator)).json()
    assert [i["id"] for i in r["data"]] == [first["id"], second["id"]]
    assert r["meta"]["total"] == 2

    r = client.get("/api/moderation/queue", params={"status": "REPORTED,UNDER_REVIEW"},
                   headers=auth(moderator)).json()
    assert [i["id"] for i in r["data"]] == [first["id"], second["id"], third["id"]]

    post(client, moderator, first["id"], "verify", {"department_id": places["department"]})
    stats = client.get("/api/moderation/queue/stats", headers=auth(moderator)).json()["data"]
    assert stats == {"pending": 1, "under_review": 1, "verified": 1, "total": 3}


def test_assigned_moderator_is_scoped_to_their_city(client, report, citizen, make_user, places):
    local = make_user(UserRole.MODERATOR, assigned_city_id=places["city"])
    outsider = make_user(UserRole.MODERATOR, assigned_city_id=places["other_city"])
    issue = report(citizen)

    assert [i["id"] for i in client.get("/api/moderation/queue", headers=auth(local)).json()["data"]] == [issue["id"]]
    assert client.get("/api/moderation/queue", headers=auth(outsider)).json()["data"] == []
    assert client.get("/api/moderation/queue/stats", headers=auth(outsider)).json()["data"]["total"] == 0

    r = post(client, outsider, issue["id"], "verify", {"department_id": places["department"]})
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "OUTSIDE_JURISDICTION"
    assert post(client, outsider, issue["id"], "reject", {"reason": "no"}).status_code == 403
    assert post(client, local, issue["id"], "escalate").status_code == 200


def test_unassigned_moderator_scope_is_configurable(client, report, citizen, moderator, monkeypatch, places):
    issue = report(citizen)
    assert len(client.get("/api/moderation/queue", headers=auth(moderator)).json()["data"]) == 1

    monkeypatch.setattr(settings, "moderator_require_jurisdiction", True)
    assert client.get("/api/moderation/queue", headers=auth(moderator)).json()["data"] == []
    r = post(client, moderator, issue["id"], "verify", {"department_id": places["department"]})
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "NO_JURISDICTION"


def test_authority_advances_verified_issue(client, db, verified_issue, authority, moderator):
    issue_id = verified_issue["id"]
    r = post(client, moderator, issue_id, "status", {"status": "ACTION_TAKEN"})
    assert r.status_code == 403

    r = post(client, authority, issue_id, "status", {"status": "CLOSED"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_TRANSITION"

    r = post(client, authority, issue_id, "status", {"status": "REJECTED"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_STATUS"

    r = post(client, authority, issue_id, "status", {"status": "ACTION_TAKEN", "reason": "Crew dispatched"})
    assert r.json()["data"]["status"] == "ACTION_TAKEN"
    r = post(client, authority, issue_id, "status", {"status": "RESOLVED"})
    data = r.json()["data"]
    assert data["status"] == "RESOLVED"
    assert data["status_updates"][-1]["reason"] == "Resolved"
    assert data["is_verified"] is True

    assert post(client, authority, issue_id, "status", {"status": "CLOSED"}).status_code == 400
    assert db.query(AuditLog).filter(AuditLog.action == "ISSUE_STATUS_CHANGE").count() == 2


def test_resolved_issue_drops_out_of_public_list(client, verified_issue, authority):
    post(client, authority, verified_issue["id"], "status", {"status": "ACTION_TAKEN"})
    assert len(client.get("/api/issues").json()["data"]) == 1
    post(client, authority, verified_issue["id"], "status", {"status": "RESOLVED"})
    assert client.get("/api/issues").json()["data"] == []

    # once published, detail and timeline stay reachable by link
    r = client.get(f"/api/issues/{verified_issue['id']}")
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "RESOLVED"
    timeline = client.get(f"/api/issues/{verified_issue['id']}/timeline").json()["data"]
    assert timeline[-1]["to_status"] == "RESOLVED"


def test_verified_flag_tracks_verification(client, db, report, citizen, moderator, places):
    verified = report(citizen)
    post(client, moderator, verified["id"], "verify", {"department_id": places["department"]})
    post(client, moderator, verified["id"], "escalate")
    skipped = report(citizen)
    post(client, moderator, skipped["id"], "escalate")

    db.expire_all()
    for issue in db.query(Issue).all():
        passed = any(u.to_status.value == "VERIFIED" for u in issue.status_updates)
        assert issue.is_verified is passed
        assert (issue.verified_at is not None) is passed
        assert (issue.moderator_id is not None) is passed
