import pytest
from fastapi.testclient import TestClient

from portal.database.supabase_client import get_supabase, get_service_supabase
from portal.modules.auth import service as auth_service
from tests.fakes import FakeSupabase


@pytest.fixture
def db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture(autouse=True)
def clear_auth_cache():
    auth_service._AUTH_USER_CACHE.clear()
    yield
    auth_service._AUTH_USER_CACHE.clear()


@pytest.fixture
def client(db) -> TestClient:
    """TestClient whose Supabase dependency is the in-memory fake."""
    from portal.main import app

    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_service_supabase] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db: FakeSupabase, role: str = "participant", email: str = None, **profile) -> str:
    """Create an auth user plus profile row; the returned id doubles as the bearer token."""
    user = db.auth.create_user(email or f"{role}-{len(db.auth.users)}@example.com")
    db.add_row("profiles", {
        "id": user.id,
        "role": role,
        "full_name": profile.pop("full_name", f"{role.title()} {len(db.auth.users)}"),
        **profile,
    })
    return user.id


def auth(user_id: str) -> dict:
    return {"Authorization": f"Bearer {user_id}"}
