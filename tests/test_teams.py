import re

import pytest

from portal.modules.teams import service as team_service
from tests.conftest import auth, make_user

TEAMS = "/api/v1/teams"


def create_team(client, user_id, **overrides):
    payload = {"name": "Byte Me", "looking_for_members": True, **overrides}
    r = client.post(TEAMS, json=payload, headers=auth(user_id))
    assert r.status_code == 201, r.text
    return r.json()


def test_create_team_writes_team_and_leader_membership(client, db):
    leader = make_user(db, "participant")
    team = create_team(client, leader)

    assert len(db.rows("teams")) == 1
    members = db.rows("team_members")
    assert len(members) == 1
    assert members[0]["user_id"] == leader
    assert members[0]["team_id"] == team["id"]
    assert team["leader_id"] == leader
    assert team["is_ready"] is False
    assert re.fullmatch(r"[A-Z0-9]{8}", team["join_code"])
    assert team["members"][0]["is_leader"] is True


def test_create_team_requires_participant(client, db):
    mentor = make_user(db, "mentor", mentor_status="approved")
    r = client.post(TEAMS, json={"name": "Nope"}, headers=auth(mentor))
    assert r.status_code == 403
    assert db.rows("teams") == []


def test_create_team_rejects_blank_name(client, db):
    leader = make_user(db, "participant")
    r = client.post(TEAMS, json={"name": "   "}, headers=auth(leader))
    assert r.status_code == 422
    assert db.writes("teams") == []


def test_cannot_create_second_team(client, db):
    leader = make_user(db, "participant")
    create_team(client, leader)
    r = client.post(TEAMS, json={"name": "Another"}, headers=auth(leader))
    assert r.status_code == 409
    assert len(db.rows("teams")) == 1


def test_failed_membership_insert_removes_team(client, db):
    leader = make_user(db, "participant")
    db.fail_on.add(("team_members", "insert"))

    r = client.post(TEAMS, json={"name": "Doomed"}, headers=auth(leader))

    assert r.status_code == 500
    assert "Failed to create team" in r.json()["detail"]
    assert db.rows("teams") == []
    assert db.rows("team_members") == []


def test_join_code_collision_is_retried(client, db, monkeypatch):
    db.add_row("teams", {"name": "Existing", "join_code": "TAKEN123"})
    codes = iter(["TAKEN123", "TAKEN123", "FRESH456"])
    monkeypatch.setattr(team_service, "generate_join_code", lambda length: next(codes))

    team = create_team(client, make_user(db, "participant"))
    assert team["join_code"] == "FRESH456"


def test_join_code_generation_gives_up(client, db, monkeypatch):
    db.add_row("teams", {"name": "Existing", "join_code": "TAKEN123"})
    monkeypatch.setattr(team_service, "generate_join_code", lambda length: "TAKEN123")

    r = client.post(TEAMS, json={"name": "Unlucky"}, headers=auth(make_user(db, "participant")))
    assert r.status_code == 500
    assert len(db.rows("teams")) == 1


def test_join_by_code(client, db):
    team = create_team(client, make_user(db, "participant"))
    joiner = make_user(db, "participant")

    r = client.post(f"{TEAMS}/join", json={"join_code": team["join_code"].lower()}, headers=auth(joiner))
    assert r.status_code == 201, r.text
    assert len(db.rows("team_members", team_id=team["id"])) == 2

    r = client.get(f"{TEAMS}/me", headers=auth(joiner))
    assert r.status_code == 200
    assert r.json()["id"] == team["id"]
    assert {m["user_id"] for m in r.json()["members"]} >= {joiner}


def test_join_unknown_code(client, db):
    r = client.post(f"{TEAMS}/join", json={"join_code": "NOPE0000"}, headers=auth(make_user(db, "participant")))
    assert r.status_code == 404


def test_user_can_only_join_one_team(client, db):
    first = create_team(client, make_user(db, "participant"), name="First")
    second = create_team(client, make_user(db, "participant"), name="Second")
    joiner = make_user(db, "participant")

    assert client.post(f"{TEAMS}/join", json={"join_code": first["join_code"]}, headers=auth(joiner)).status_code == 201
    r = client.post(f"{TEAMS}/join", json={"join_code": second["join_code"]}, headers=auth(joiner))
    assert r.status_code == 409
    assert len(db.rows("team_members", user_id=joiner)) == 1


def test_full_team_rejects_members(client, db):
    team = create_team(client, make_user(db, "participant"), max_members=2)
    assert client.post(f"{TEAMS}/{team['id']}/join", headers=auth(make_user(db, "participant"))).status_code == 201
    r = client.post(f"{TEAMS}/{team['id']}/join", headers=auth(make_user(db, "participant")))
    assert r.status_code == 409
    assert r.json()["detail"] == "Team is full"


def test_lobby_lists_teams_looking_for_members(client, db):
    leader = make_user(db, "participant", full_name="Lead Person")
    open_team = create_team(client, leader, name="Open")
    create_team(client, make_user(db, "participant"), name="Closed", looking_for_members=False)

    r = client.get(f"{TEAMS}/lobby", headers=auth(make_user(db, "participant")))
    assert r.status_code == 200
    lobby = r.json()
    assert [t["id"] for t in lobby] == [open_team["id"]]
    assert lobby[0]["member_count"] == 1
    assert lobby[0]["leader"]["full_name"] == "Lead Person"


def test_lobby_join_requires_open_team(client, db):
    closed = create_team(client, make_user(db, "participant"), looking_for_members=False)
    r = client.post(f"{TEAMS}/{closed['id']}/join", headers=auth(make_user(db, "participant")))
    assert r.status_code == 409


def test_readiness_needs_minimum_members(client, db):
    leader = make_user(db, "participant")
    team = create_team(client, leader)

    r = client.post(f"{TEAMS}/{team['id']}/readiness", headers=auth(leader))
    assert r.status_code == 400
    assert db.writes("teams")[-1].op == "insert"


def test_readiness_toggles_only_is_ready(client, db):
    leader = make_user(db, "participant")
    team = create_team(client, leader)
    for _ in range(2):
        client.post(f"{TEAMS}/join", json={"join_code": team["join_code"]}, headers=auth(make_user(db, "participant")))

    r = client.post(f"{TEAMS}/{team['id']}/readiness", headers=auth(leader))
    assert r.status_code == 200, r.text
    assert r.json()["is_ready"] is True
    update = db.writes("teams")[-1]
    assert update.op == "update"
    assert update.payload == {"is_ready": True}

    r = client.post(f"{TEAMS}/{team['id']}/readiness", headers=auth(leader))
    assert r.json()["is_ready"] is False
    assert db.writes("teams")[-1].payload == {"is_ready": False}


def test_readiness_requires_membership(client, db):
    team = create_team(client, make_user(db, "participant"))
    outsider = make_user(db, "participant")
    r = client.post(f"{TEAMS}/{team['id']}/readiness", headers=auth(outsider))
    assert r.status_code == 403


def test_leader_updates_team(client, db):
    leader = make_user(db, "participant")
    team = create_team(client, leader)
    r = client.patch(f"{TEAMS}/{team['id']}", json={"github_repo_url": "https://github.com/x/y"}, headers=auth(leader))
    assert r.status_code == 200
    assert r.json()["github_repo_url"] == "https://github.com/x/y"

    member = make_user(db, "participant")
    client.post(f"{TEAMS}/join", json={"join_code": team["join_code"]}, headers=auth(member))
    r = client.patch(f"{TEAMS}/{team['id']}", json={"name": "Hijacked"}, headers=auth(member))
    assert r.status_code == 403


def test_kick_removes_exactly_one_membership(client, db):
    leader = make_user(db, "participant")
    team = create_team(client, leader)
    kept, kicked = make_user(db, "participant"), make_user(db, "participant")
    for user in (kept, kicked):
        client.post(f"{TEAMS}/join", json={"join_code": team["join_code"]}, headers=auth(user))

    r = client.delete(f"{TEAMS}/{team['id']}/members/{kicked}", headers=auth(leader))
    assert r.status_code == 204
    remaining = {m["user_id"] for m in db.rows("team_members", team_id=team["id"])}
    assert remaining == {leader, kept}


def test_leader_cannot_be_kicked(client, db):
    leader = make_user(db, "participant")
    team = create_team(client, leader)
    r = client.delete(f"{TEAMS}/{team['id']}/members/{leader}", headers=auth(leader))
    assert r.status_code == 400
    assert len(db.rows("team_members")) == 1


def test_only_leader_can_kick(client, db):
    leader = make_user(db, "participant")
    team = create_team(client, leader)
    member = make_user(db, "participant")
    client.post(f"{TEAMS}/join", json={"join_code": team["join_code"]}, headers=auth(member))
    r = client.delete(f"{TEAMS}/{team['id']}/members/{leader}", headers=auth(member))
    assert r.status_code == 403


def test_member_leaves_but_leader_cannot(client, db):
    leader = make_user(db, "participant")
    team = create_team(client, leader)
    member = make_user(db, "participant")
    client.post(f"{TEAMS}/join", json={"join_code": team["join_code"]}, headers=auth(member))

    assert client.post(f"{TEAMS}/{team['id']}/leave", headers=auth(member)).status_code == 204
    assert client.post(f"{TEAMS}/{team['id']}/leave", headers=auth(leader)).status_code == 400
    assert [m["user_id"] for m in db.rows("team_members")] == [leader]


def test_delete_team_removes_members_first(client, db):
    leader = make_user(db, "participant")
    team = create_team(client, leader)
    client.post(f"{TEAMS}/join", json={"join_code": team["join_code"]}, headers=auth(make_user(db, "participant")))

    r = client.delete(f"{TEAMS}/{team['id']}", headers=auth(leader))
    assert r.status_code == 204
    assert db.rows("teams") == []
    assert db.rows("team_members") == []
    deletes = [c.table for c in db.writes() if c.op == "delete"]
    assert deletes == ["team_members", "teams"]


def test_staff_list_teams_with_counts(client, db):
    create_team(client, make_user(db, "participant"))
    assert client.get(TEAMS, headers=auth(make_user(db, "participant"))).status_code == 403

    r = client.get(TEAMS, headers=auth(make_user(db, "organizer")))
    assert r.status_code == 200
    assert r.json()[0]["member_count"] == 1


def test_member_counts_across_many_teams(client, db):
    for i in range(300):
        team = db.add_row("teams", {"name": f"Team {i}", "join_code": f"CODE{i:04d}", "looking_for_members": True})
        for j in range(4):
            db.add_row("team_members", {"team_id": team["id"], "user_id": f"u{i}-{j}", "joined_at": team["created_at"]})

    r = client.get(TEAMS, headers=auth(make_user(db, "organizer")))
    assert r.status_code == 200
    assert len(r.json()) == 300
    assert {t["member_count"] for t in r.json()} == {4}

    r = client.get(f"{TEAMS}/lobby", headers=auth(make_user(db, "participant")))
    assert {t["member_count"] for t in r.json()} == {4}


@pytest.mark.parametrize("mentor_profile,status", [
    ({"mentor_status": "approved"}, 200),
    ({"mentor_status": "pending"}, 400),
    ({"mentor_status": "rejected"}, 400),
])
def test_assign_mentor_requires_approval(client, db, mentor_profile, status):
    team = create_team(client, make_user(db, "participant"))
    mentor = make_user(db, "mentor", **mentor_profile)
    r = client.put(f"{TEAMS}/{team['id']}/mentor", json={"mentor_id": mentor}, headers=auth(make_user(db, "admin")))
    assert r.status_code == status, r.text


def test_assign_mentor_respects_capacity(client, db):
    admin = make_user(db, "admin")
    mentor = make_user(db, "mentor", mentor_status="approved", max_teams=1)
    first = create_team(client, make_user(db, "participant"), name="One")
    second = create_team(client, make_user(db, "participant"), name="Two")

    assert client.put(f"{TEAMS}/{first['id']}/mentor", json={"mentor_id": mentor}, headers=auth(admin)).status_code == 200
    # Re-assigning the same team does not count against capacity
    assert client.put(f"{TEAMS}/{first['id']}/mentor", json={"mentor_id": mentor}, headers=auth(admin)).status_code == 200
    r = client.put(f"{TEAMS}/{second['id']}/mentor", json={"mentor_id": mentor}, headers=auth(admin))
    assert r.status_code == 409

    r = client.put(f"{TEAMS}/{first['id']}/mentor", json={"mentor_id": None}, headers=auth(admin))
    assert r.status_code == 200
    assert r.json()["mentor_id"] is None
