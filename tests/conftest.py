import pytest
from sqlalchemy import select

from db import dispose_db, get_session
from db.models import User
from main import create_app
from tests.factories import Session

OWNER_USER = "baker"
OWNER_PASSWORD = "secret"


@pytest.fixture
def app(tmp_path):
    """App on a throwaway SQLite file and upload directory."""
    app = create_app({
        "TESTING": True,
        "DB_URL": f"sqlite:///{tmp_path / 'test.sqlite'}",
        "UPLOAD_DIR": str(tmp_path / "uploads"),
        "OWNER_USER": OWNER_USER,
        "OWNER_PASSWORD": OWNER_PASSWORD,
    })
    yield app
    Session.remove()
    dispose_db()


@pytest.fixture
def owner_id(app):
    """Id of the owner seeded by create_app."""
    session = get_session()
    try:
        return session.scalars(select(User.id).where(User.username == OWNER_USER)).one()
    finally:
        session.close()


@pytest.fixture
def rows(app):
    """rows(Model, **filters) → list of detached rows, read in a short-lived session."""
    def _rows(model, **filters):
        session = get_session()
        try:
            stmt = select(model).filter_by(**filters).order_by(model.id)
            return list(session.scalars(stmt).all())
        finally:
            session.close()
    return _rows


@pytest.fixture
def client(app):
    """Return a Flask test client."""
    return app.test_client()


@pytest.fixture
def auth_client(client):
    """Test client logged in as the seeded owner."""
    resp = client.post("/api/auth/login",
                       json={"username": OWNER_USER, "password": OWNER_PASSWORD})
    assert resp.status_code == 200
    return client
