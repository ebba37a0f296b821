import pytest

from tests.conftest import auth, make_user

BENEFITS = "/api/v1/benefits"


@pytest.fixture
def admin(db):
    return make_user(db, "admin")


@pytest.fixture
def vendor(db):
    return db.add_row("vendors", {
        "name": "CloudCo", "website": "https://cloud.example.com",
        "icon": "https://cloud.example.com/logo.png", "redemption_instructions": "Apply at checkout",
    })


def add_benefits(db, vendor, count, **values):
    return [
        db.add_row("benefits", {
            "vendor_id": vendor["id"], "coupon_code": f"CODE-{i}", "user_type": "all",
            "is_active": True, "is_assigned": False, **values,
        })
        for i in range(count)
    ]


def assigned_pairs(db):
    return {(a["user_id"], a["benefit_id"]) for a in db.rows("benefit_assignments")}


@pytest.mark.parametrize("website", ["not a url", "ftp://files.example.com", "https://"])
def test_vendor_requires_http_urls(client, db, admin, website):
    r = client.post("/api/v1/vendors", json={
        "name": "Bad", "website": website, "icon": "https://x.example.com/i.png",
        "redemption_instructions": "n/a",
    }, headers=auth(admin))
    assert r.status_code == 422
    assert db.writes("vendors") == []


def test_vendor_urls_stored_as_text(client, db, admin):
    r = client.post("/api/v1/vendors", json={
        "name": "CloudCo", "website": "https://cloud.example.com/deals",
        "icon": "https://cloud.example.com/logo.png", "redemption_instructions": "Apply at checkout",
    }, headers=auth(admin))
    assert r.status_code == 201, r.text
    row = db.rows("vendors")[0]
    assert row["website"] == "https://cloud.example.com/deals"
    assert row["icon"] == "https://cloud.example.com/logo.png"

    r = client.put(f"/api/v1/vendors/{row['id']}", json={"icon": "https://cdn.example.com/new.png"}, headers=auth(admin))
    assert r.status_code == 200, r.text
    assert db.rows("vendors")[0]["icon"] == "https://cdn.example.com/new.png"


def test_vendors_listed_by_name(client, db, admin):
    for name in ("Zeta", "Alpha", "Mid"):
        client.post("/api/v1/vendors", json={
            "name": name, "website": "https://v.example.com", "icon": "https://v.example.com/i.png",
            "redemption_instructions": "Use it",
        }, headers=auth(admin))
    r = client.get("/api/v1/vendors", headers=auth(admin))
    assert [v["name"] for v in r.json()] == ["Alpha", "Mid", "Zeta"]


def test_bulk_create_one_row_per_code(client, db, admin, vendor):
    r = client.post(f"{BENEFITS}/bulk", json={
        "vendor_id": vendor["id"], "coupon_codes": "AAA\n\n  BBB  \nCCC\n", "user_type": "mentor",
        "expiry_date": "2026-12-31",
    }, headers=auth(admin))
    assert r.status_code == 201, r.text
    assert r.json()["created"] == 3
    rows = db.rows("benefits")
    assert [b["coupon_code"] for b in rows] == ["AAA", "BBB", "CCC"]
    assert all(b["user_type"] == "mentor" and b["expiry_date"] == "2026-12-31" for b in rows)
    assert all(b["is_assigned"] is False for b in rows)


def test_csv_upload(client, db, admin, vendor):
    csv_text = (
        "provider_name,provider_website,coupon_code,redemption_instructions,expiry_date,user_type,vendor_id\n"
        f'CloudCo,https://cloud.example.com,CSV-1,"Apply, then enjoy",2026-06-30,participant,{vendor["id"]}\n'
        f"CloudCo,,CSV-2,,,,{vendor['id']}\n"
    )
    r = client.post(f"{BENEFITS}/upload", files={"file": ("codes.csv", csv_text.encode(), "text/csv")}, headers=auth(admin))
    assert r.status_code == 201, r.text
    rows = {b["coupon_code"]: b for b in db.rows("benefits")}
    assert rows["CSV-1"]["redemption_instructions"] == "Apply, then enjoy"
    assert rows["CSV-1"]["user_type"] == "participant"
    assert rows["CSV-2"]["user_type"] == "all"
    assert rows["CSV-2"]["expiry_date"] is None


def test_csv_upload_rejects_bad_user_type(client, db, admin, vendor):
    csv_text = f"coupon_code,vendor_id,user_type\nX-1,{vendor['id']},robot\n"
    r = client.post(f"{BENEFITS}/upload", files={"file": ("codes.csv", csv_text.encode(), "text/csv")}, headers=auth(admin))
    assert r.status_code == 400
    assert "line 2" in r.json()["detail"]
    assert db.rows("benefits") == []


def test_available_count(client, db, admin, vendor):
    add_benefits(db, vendor, 3)
    add_benefits(db, vendor, 1, is_assigned=True)
    add_benefits(db, vendor, 1, is_active=False)
    r = client.get(f"{BENEFITS}/available", params={"vendor_id": vendor["id"]}, headers=auth(admin))
    assert r.json()["available"] == 3


def test_manual_assignment_is_fifo(client, db, admin, vendor):
    db.add_row("benefits", {"vendor_id": vendor["id"], "coupon_code": "USED", "is_active": True, "is_assigned": True})
    db.add_row("benefits", {"vendor_id": vendor["id"], "coupon_code": "OFF", "is_active": False, "is_assigned": False})
    first, second, third = add_benefits(db, vendor, 3)
    u1, u2 = make_user(db, "participant"), make_user(db, "mentor")

    r = client.post(f"{BENEFITS}/assignments/manual", json={"vendor_id": vendor["id"], "user_ids": [u2, u1]}, headers=auth(admin))

    assert r.status_code == 201, r.text
    assert r.json()["assigned"] == 2
    assert assigned_pairs(db) == {(u2, first["id"]), (u1, second["id"])}
    states = {b["id"]: b["is_assigned"] for b in db.rows("benefits")}
    assert states[first["id"]] and states[second["id"]] and not states[third["id"]]


def test_not_enough_benefits_writes_nothing(client, db, admin, vendor):
    add_benefits(db, vendor, 2)
    users = [make_user(db, "participant") for _ in range(3)]
    db.calls.clear()

    r = client.post(f"{BENEFITS}/assignments/manual", json={"vendor_id": vendor["id"], "user_ids": users}, headers=auth(admin))

    assert r.status_code == 400
    assert db.writes("benefits") == []
    assert db.writes("benefit_assignments") == []


def test_manual_assignment_unknown_user(client, db, admin, vendor):
    add_benefits(db, vendor, 1)
    r = client.post(f"{BENEFITS}/assignments/manual", json={"vendor_id": vendor["id"], "user_ids": ["ghost"]}, headers=auth(admin))
    assert r.status_code == 404
    assert db.rows("benefit_assignments") == []


def test_lost_claim_releases_earlier_claims(client, db, admin, vendor):
    first, second = add_benefits(db, vendor, 2)
    users = [make_user(db, "participant"), make_user(db, "participant")]
    fired = []

    def concurrent_claim(query):
        if query.table == "benefits" and query.op == "update" and query.payload.get("is_assigned") is True and not fired:
            fired.append(True)
            db.rows("benefits", id=second["id"])[0]["is_assigned"] = True

    db.hooks.append(concurrent_claim)
    r = client.post(f"{BENEFITS}/assignments/manual", json={"vendor_id": vendor["id"], "user_ids": users}, headers=auth(admin))

    assert r.status_code == 409
    assert db.rows("benefits", id=first["id"])[0]["is_assigned"] is False
    assert db.rows("benefit_assignments") == []


def test_failed_assignment_insert_releases_claims(client, db, admin, vendor):
    add_benefits(db, vendor, 2)
    users = [make_user(db, "participant"), make_user(db, "participant")]
    db.fail_on.add(("benefit_assignments", "insert"))

    r = client.post(f"{BENEFITS}/assignments/manual", json={"vendor_id": vendor["id"], "user_ids": users}, headers=auth(admin))

    assert r.status_code == 500
    assert all(b["is_assigned"] is False for b in db.rows("benefits"))


def test_auto_assignment_skips_users_with_vendor_benefit(client, db, admin, vendor):
    old, *fresh = add_benefits(db, vendor, 3)
    covered = make_user(db, "participant")
    newer = [make_user(db, "participant"), make_user(db, "participant")]
    make_user(db, "mentor")
    db.rows("benefits", id=old["id"])[0]["is_assigned"] = True
    db.add_row("benefit_assignments", {"user_id": covered, "benefit_id": old["id"]})

    r = client.post(f"{BENEFITS}/assignments/auto", json={"vendor_id": vendor["id"], "role": "participant"}, headers=auth(admin))

    assert r.status_code == 200, r.text
    assert r.json()["assigned"] == 2
    assert assigned_pairs(db) == {
        (covered, old["id"]), (newer[0], fresh[0]["id"]), (newer[1], fresh[1]["id"]),
    }


def test_auto_assignment_noop_when_everyone_has_one(client, db, admin, vendor):
    (benefit,) = add_benefits(db, vendor, 1, is_assigned=True)
    user = make_user(db, "mentor")
    db.add_row("benefit_assignments", {"user_id": user, "benefit_id": benefit["id"]})
    db.calls.clear()

    r = client.post(f"{BENEFITS}/assignments/auto", json={"vendor_id": vendor["id"], "role": "mentor"}, headers=auth(admin))

    assert r.status_code == 200
    assert r.json()["assigned"] == 0
    assert r.json()["message"] == "All users already have benefits from this vendor"
    assert db.writes() == []


def test_auto_assignment_sees_every_existing_assignment(client, db, admin, vendor):
    covered = [db.add_row("profiles", {"role": "participant", "full_name": f"P{i}"})["id"] for i in range(1100)]
    taken = add_benefits(db, vendor, 1100, is_assigned=True)
    for user_id, benefit in reversed(list(zip(covered, taken))):
        db.add_row("benefit_assignments", {"user_id": user_id, "benefit_id": benefit["id"]})
    (spare,) = add_benefits(db, vendor, 1)
    newcomer = make_user(db, "participant")

    r = client.post(f"{BENEFITS}/assignments/auto", json={"vendor_id": vendor["id"], "role": "participant"}, headers=auth(admin))

    assert r.status_code == 200, r.text
    assert r.json()["assigned"] == 1
    assert db.rows("benefit_assignments", benefit_id=spare["id"])[0]["user_id"] == newcomer
    assert len(db.rows("benefit_assignments")) == 1101


def test_available_count_beyond_one_page(client, db, admin, vendor):
    add_benefits(db, vendor, 1005)
    r = client.get(f"{BENEFITS}/available", params={"vendor_id": vendor["id"]}, headers=auth(admin))
    assert r.json()["available"] == 1005


def test_list_benefits_order(client, db, admin, vendor):
    first, second, third = add_benefits(db, vendor, 3)

    r = client.get(BENEFITS, headers=auth(admin))
    assert [b["id"] for b in r.json()] == [third["id"], second["id"], first["id"]]

    r = client.get(BENEFITS, params={"order": "allocation", "is_assigned": False}, headers=auth(admin))
    assert [b["id"] for b in r.json()] == [first["id"], second["id"], third["id"]]

    u1 = make_user(db, "participant")
    client.post(f"{BENEFITS}/assignments/manual", json={"vendor_id": vendor["id"], "user_ids": [u1]}, headers=auth(admin))
    r = client.get(BENEFITS, params={"order": "allocation", "is_assigned": False}, headers=auth(admin))
    assert [b["id"] for b in r.json()] == [second["id"], third["id"]]

    assert client.get(BENEFITS, params={"order": "random"}, headers=auth(admin)).status_code == 422


def test_moderator_cannot_assign(client, db, vendor):
    add_benefits(db, vendor, 1)
    moderator = make_user(db, "moderator")
    r = client.post(f"{BENEFITS}/assignments/manual", json={"vendor_id": vendor["id"], "user_ids": [moderator]}, headers=auth(moderator))
    assert r.status_code == 403


def test_my_benefits_and_redeem(client, db, vendor):
    (benefit,) = add_benefits(db, vendor, 1, is_assigned=True)
    owner, other = make_user(db, "participant"), make_user(db, "participant")
    assignment = db.add_row("benefit_assignments", {"user_id": owner, "benefit_id": benefit["id"]})

    r = client.get(f"{BENEFITS}/me", headers=auth(owner))
    assert r.status_code == 200
    mine = r.json()
    assert mine[0]["benefit"]["coupon_code"] == "CODE-0"
    assert mine[0]["vendor"]["name"] == "CloudCo"

    assert client.post(f"{BENEFITS}/me/{assignment['id']}/redeem", headers=auth(other)).status_code == 404

    r = client.post(f"{BENEFITS}/me/{assignment['id']}/redeem", headers=auth(owner))
    assert r.status_code == 200
    redeemed_at = r.json()["redeemed_at"]
    assert r.json()["is_redeemed"] is True and redeemed_at

    r = client.post(f"{BENEFITS}/me/{assignment['id']}/redeem", headers=auth(owner))
    assert r.json()["redeemed_at"] == redeemed_at


def test_assigned_benefit_cannot_be_deleted(client, db, admin, vendor):
    (benefit,) = add_benefits(db, vendor, 1, is_assigned=True)
    db.add_row("benefit_assignments", {"user_id": admin, "benefit_id": benefit["id"]})
    r = client.delete(f"{BENEFITS}/{benefit['id']}", headers=auth(admin))
    assert r.status_code == 409
    assert len(db.rows("benefits")) == 1
