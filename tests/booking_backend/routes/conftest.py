import pytest
from fastapi.testclient import TestClient

from booking_backend.auth import jwt_handler
from booking_backend.database import get_db
from booking_backend.main import app


@pytest.fixture
def client(session_factory, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr('booking_backend.database.ensure_booking_schema', lambda: None)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_header():
    def build(user) -> dict:
        token = jwt_handler.create_access_token(user.id, user.role)
        return {'Authorization': f'Bearer {token}'}

    return build
