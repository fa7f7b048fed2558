"""Pytest configuration and fixtures."""

import os

# Minimum bcrypt cost keeps hashing fast; must be set before app.config loads
os.environ["BCRYPT_MIN_COST"] = "true"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.database import Base, get_db  # noqa: E402
from app.models.micropost import Micropost  # noqa: E402, F401
from app.models.relationship import Relationship  # noqa: E402, F401
from app.models.user import User  # noqa: E402
from app.services.auth import AuthService  # noqa: E402
from app.services.mailer import get_mailer  # noqa: E402
from app.services.users import UserService  # noqa: E402


class RecordingMailer:
    """Mailer that keeps sent messages in memory."""

    def __init__(self) -> None:
        self.activations: list[tuple[str, str]] = []
        self.resets: list[tuple[str, str]] = []

    def send_activation_email(self, user: User, token: str) -> None:
        self.activations.append((user.email, token))

    def send_password_reset_email(self, user: User, token: str) -> None:
        self.resets.append((user.email, token))


def create_user(
    db: Session,
    name: str = "Test User",
    email: str = "test@example.com",
    password: str = "password123",
    activated: bool = True,
) -> User:
    """Create a user, activated unless asked otherwise."""
    user = UserService().create(db, name, email, password)
    if activated:
        user.activate(db)
    return user


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="mailer")
def mailer_fixture() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture(name="client")
def client_fixture(db_session: Session, mailer: RecordingMailer):
    """Create a test client with overridden DB and mailer dependencies."""
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(name="test_user")
def test_user_fixture(db_session: Session):
    """Create an activated user and return (user_data, token)."""
    from app.services.jwt import get_jwt_service

    user = create_user(db_session)
    result = AuthService().authenticate(db_session, "test@example.com", "password123")

    token = get_jwt_service().create_token(
        user_id=result.user.id,
        email=result.user.email,
        session_token=result.session_token,
    )

    return {
        "user_id": user.id,
        "email": user.email,
        "name": user.name,
        "token": token,
    }


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
