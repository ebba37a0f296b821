import asyncio
import smtplib

import pytest

from tests.conftest import auth, make_user

PLATFORM = "/api/v1/platform"

COLORS = {
    key: "0 0% 100%" for key in (
        "background", "foreground", "card", "cardForeground", "popover", "popoverForeground",
        "primary", "primaryForeground", "secondary", "secondaryForeground", "muted",
        "mutedForeground", "accent", "accentForeground", "destructive", "destructiveForeground",
        "border", "input", "ring",
    )
}


class FakeSMTP:
    instances = []
    fail_connect = None
    fail_login = None

    def __init__(self, host, port, timeout=None):
        if FakeSMTP.fail_connect:
            raise FakeSMTP.fail_connect
        self.host, self.port, self.timeout = host, port, timeout
        self.logged_in = None
        self.tls = False
        try:
            asyncio.get_running_loop()
            self.on_event_loop = True
        except RuntimeError:
            self.on_event_loop = False
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def ehlo(self):
        return 250, b"ok"

    def has_extn(self, name):
        return name == "starttls"

    def starttls(self):
        self.tls = True

    def login(self, user, password):
        if FakeSMTP.fail_login:
            raise FakeSMTP.fail_login
        self.logged_in = (user, password)


@pytest.fixture
def smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.fail_connect = None
    FakeSMTP.fail_login = None
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(smtplib, "SMTP_SSL", FakeSMTP)
    return FakeSMTP


@pytest.fixture
def admin(db):
    return make_user(db, "admin")


SMTP_BODY = {"host": "smtp.example.com", "port": 587, "secure": False, "auth": {"user": "mailer", "pass": "pw"}}


def test_smtp_test_success(client, admin, smtp):
    r = client.post(f"{PLATFORM}/smtp/test", json=SMTP_BODY, headers=auth(admin))
    assert r.status_code == 200, r.text
    assert r.json()["success"] is True
    assert r.json()["message"] == "SMTP connection successful"
    conn = smtp.instances[0]
    assert (conn.host, conn.port) == ("smtp.example.com", 587)
    assert conn.tls is True
    assert conn.logged_in == ("mailer", "pw")
    assert conn.on_event_loop is False


def test_smtp_test_connection_refused(client, admin, smtp):
    smtp.fail_connect = ConnectionRefusedError("Connection refused")
    r = client.post(f"{PLATFORM}/smtp/test", json=SMTP_BODY, headers=auth(admin))
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["message"] == "Failed to connect to SMTP server"
    assert "refused" in body["error"]


def test_smtp_test_bad_credentials(client, admin, smtp):
    smtp.fail_login = smtplib.SMTPAuthenticationError(535, b"bad credentials")
    r = client.post(f"{PLATFORM}/smtp/test", json=SMTP_BODY, headers=auth(admin))
    assert r.status_code == 400
    assert r.json()["success"] is False


@pytest.mark.parametrize("body", [
    {"port": 25},
    {"host": "smtp.example.com", "port": 0},
    {"host": "smtp.example.com", "port": "not-a-port"},
])
def test_smtp_test_malformed_body(client, admin, smtp, body):
    r = client.post(f"{PLATFORM}/smtp/test", json=body, headers=auth(admin))
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid request"
    assert smtp.instances == []


def test_smtp_test_invalid_json(client, admin, smtp):
    r = client.post(
        f"{PLATFORM}/smtp/test", content=b"{not json",
        headers={**auth(admin), "Content-Type": "application/json"},
    )
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_smtp_test_is_admin_only(client, db, smtp):
    r = client.post(f"{PLATFORM}/smtp/test", json=SMTP_BODY, headers=auth(make_user(db, "organizer")))
    assert r.status_code == 403


def test_smtp_config_round_trip_keeps_pass_key(client, db, admin):
    r = client.put(f"{PLATFORM}/smtp", json=SMTP_BODY, headers=auth(admin))
    assert r.status_code == 200, r.text
    stored = db.rows("platform_settings", key="smtp_config")[0]["value"]
    assert stored["auth"] == {"user": "mailer", "pass": "pw"}

    r = client.put(f"{PLATFORM}/smtp", json={**SMTP_BODY, "port": 465, "secure": True}, headers=auth(admin))
    assert len(db.rows("platform_settings", key="smtp_config")) == 1
    assert client.get(f"{PLATFORM}/smtp", headers=auth(admin)).json()["port"] == 465


def test_registration_config_controls_signup(client, db, admin):
    r = client.put(f"{PLATFORM}/registration", json={
        "enabled": True, "requireEmailVerification": True, "allowedDomains": ["uni.edu"],
        "schedule": {"enabled": False},
    }, headers=auth(admin))
    assert r.status_code == 200, r.text

    blocked = client.post("/api/v1/auth/register", json={
        "email": "x@gmail.com", "password": "secret123", "full_name": "Out Sider",
    })
    assert blocked.status_code == 403
    allowed = client.post("/api/v1/auth/register", json={
        "email": "x@uni.edu", "password": "secret123", "full_name": "In Sider",
    })
    assert allowed.status_code == 201


def test_github_config_requires_all_fields(client, admin):
    r = client.put(f"{PLATFORM}/github", json={"org_name": "acme"}, headers=auth(admin))
    assert r.status_code == 422


def test_duplicate_setting_key(client, admin):
    body = {"key": "feature_flags", "value": {"x": True}}
    assert client.post(f"{PLATFORM}/settings", json=body, headers=auth(admin)).status_code == 201
    assert client.post(f"{PLATFORM}/settings", json=body, headers=auth(admin)).status_code == 409


def test_theme_requires_all_colors(client, admin):
    colors = dict(COLORS)
    del colors["ring"]
    r = client.post(f"{PLATFORM}/themes", json={
        "name": "Broken", "colors": colors, "fonts": {"primary": ["Inter"]},
    }, headers=auth(admin))
    assert r.status_code == 422


def test_exactly_one_active_theme(client, db, admin):
    ids = []
    for name in ("Light", "Dark", "Neon"):
        r = client.post(f"{PLATFORM}/themes", json={
            "name": name, "colors": COLORS, "fonts": {"primary": ["Inter"]}, "is_active": True,
        }, headers=auth(admin))
        assert r.status_code == 201, r.text
        ids.append(r.json()["id"])
    assert [t["id"] for t in db.rows("themes", is_active=True)] == [ids[-1]]

    assert client.post(f"{PLATFORM}/themes/{ids[0]}/activate", headers=auth(admin)).status_code == 200
    assert [t["id"] for t in db.rows("themes", is_active=True)] == [ids[0]]
    assert client.get(f"{PLATFORM}/themes/active").json()["id"] == ids[0]


def test_default_theme_cannot_be_deleted(client, db, admin):
    theme = db.add_row("themes", {"name": "Default", "type": "default", "is_active": True,
                                  "colors": COLORS, "fonts": {"primary": ["Inter"]}})
    assert client.delete(f"{PLATFORM}/themes/{theme['id']}", headers=auth(admin)).status_code == 400
    assert len(db.rows("themes")) == 1
