import os
import sys
from pathlib import Path

# Settings and the module-level engine are built on first import.
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REFRESH_SWEEP_INTERVAL_SECONDS"] = "0"
os.environ["JWT_SECRET_KEY"] = "test-secret"

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

import blog_api.db.base  # noqa: F401,E402
from blog_api.backend.core.passwords import hash_password  # noqa: E402
from blog_api.backend.models.user import Role, User  # noqa: E402

PASSWORD = "Passw0rd!"
_PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(eng)
    yield eng
    SQLModel.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def db(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def make_user(db):
    def _make(email: str = "alice@example.com", username: str | None = None, role: Role = Role.USER) -> User:
        user = User(
            email=email,
            username=username or email.split("@", 1)[0],
            password_hash=_PASSWORD_HASH,
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def client(engine):
    from blog_api.backend.main import app
    from blog_api.backend.routers import auth as auth_routes

    def _override_session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[auth_routes.get_session] = _override_session
    # https so the Secure refresh cookie is stored and sent back
    yield TestClient(app, base_url="https://testserver")
    app.dependency_overrides.clear()
