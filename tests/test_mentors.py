import pytest

from tests.conftest import auth, make_user

MENTORS = "/api/v1/mentors"


@pytest.fixture
def reviewer(db):
    return make_user(db, "moderator")


def test_pending_applications_listed(client, db, reviewer):
    pending = make_user(db, "mentor", mentor_status="pending")
    make_user(db, "mentor", mentor_status="approved")
    r = client.get(f"{MENTORS}/applications", headers=auth(reviewer))
    assert r.status_code == 200
    assert [m["id"] for m in r.json()] == [pending]


def test_approve_pending_mentor(client, db, reviewer):
    mentor = make_user(db, "mentor", mentor_status="pending")
    r = client.post(f"{MENTORS}/{mentor}/approve", headers=auth(reviewer))
    assert r.status_code == 200, r.text
    profile = db.rows("profiles", id=mentor)[0]
    assert profile["mentor_status"] == "approved"
    assert profile["mentor_approval_date"]


@pytest.mark.parametrize("reason", ["", "   ", "\n\t"])
def test_reject_requires_reason(client, db, reviewer, reason):
    mentor = make_user(db, "mentor", mentor_status="pending")
    db.calls.clear()

    r = client.post(f"{MENTORS}/{mentor}/reject", json={"reason": reason}, headers=auth(reviewer))

    assert r.status_code == 422
    assert "Please provide a reason for rejection" in r.text
    assert db.writes("profiles") == []
    assert db.rows("profiles", id=mentor)[0]["mentor_status"] == "pending"


def test_reject_stores_trimmed_reason(client, db, reviewer):
    mentor = make_user(db, "mentor", mentor_status="pending")
    r = client.post(f"{MENTORS}/{mentor}/reject", json={"reason": "  Not enough experience "}, headers=auth(reviewer))
    assert r.status_code == 200
    profile = db.rows("profiles", id=mentor)[0]
    assert profile["mentor_status"] == "rejected"
    assert profile["rejection_reason"] == "Not enough experience"


def test_only_pending_applications_transition(client, db, reviewer):
    mentor = make_user(db, "mentor", mentor_status="approved")
    r = client.post(f"{MENTORS}/{mentor}/reject", json={"reason": "changed my mind"}, headers=auth(reviewer))
    assert r.status_code == 409
    assert db.rows("profiles", id=mentor)[0]["mentor_status"] == "approved"


def test_review_unknown_or_non_mentor(client, db, reviewer):
    participant = make_user(db, "participant")
    assert client.post(f"{MENTORS}/{participant}/approve", headers=auth(reviewer)).status_code == 404
    assert client.post(f"{MENTORS}/nobody/approve", headers=auth(reviewer)).status_code == 404


def test_participant_cannot_review(client, db):
    mentor = make_user(db, "mentor", mentor_status="pending")
    r = client.post(f"{MENTORS}/{mentor}/approve", headers=auth(make_user(db, "participant")))
    assert r.status_code == 403
    assert db.rows("profiles", id=mentor)[0]["mentor_status"] == "pending"


def test_rejected_mentor_resubmits(client, db):
    mentor = make_user(db, "mentor", mentor_status="rejected", rejection_reason="Incomplete")
    r = client.put("/api/v1/profile/me/mentor", json={
        "full_name": "Ada Mentor", "photo_url": "https://storage.test/p.png",
        "linkedin_username": "ada", "github_username": "ada-gh",
    }, headers=auth(mentor))
    assert r.status_code == 200, r.text
    profile = db.rows("profiles", id=mentor)[0]
    assert profile["mentor_status"] == "pending"
    assert profile["rejection_reason"] is None


def test_public_mentor_list_with_stacks(client, db):
    approved = make_user(db, "mentor", mentor_status="approved", full_name="Approved One")
    make_user(db, "mentor", mentor_status="pending")
    python = db.add_row("technology_stacks", {"name": "Python", "is_enabled": True})
    db.add_row("mentor_stacks", {"mentor_id": approved, "stack_id": python["id"]})

    r = client.get(MENTORS)
    assert r.status_code == 200
    body = r.json()
    assert [m["id"] for m in body] == [approved]
    assert [s["name"] for s in body[0]["stacks"]] == ["Python"]
