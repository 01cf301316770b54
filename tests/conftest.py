"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from financeu.database import Base, build_engine, get_db
from financeu.models.feedback import Feedback  # noqa: F401
from financeu.models.lesson_progress import LessonProgress  # noqa: F401
from financeu.models.password_reset_token import PasswordResetToken  # noqa: F401
from financeu.models.user import Role, User  # noqa: F401
from financeu.services.auth import AuthService
from financeu.services.credential_store import get_credential_store


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = build_engine("sqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="client")
def client_fixture(db_session: Session):
    """Create a test client with overridden DB dependency and disabled rate limiting."""
    from financeu.rate_limit import limiter
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    with TestClient(app) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()


def _register(db_session: Session, email: str, password: str, name: str) -> dict:
    from financeu.services.jwt import get_jwt_service

    result = AuthService().register(db_session, email, password, name)
    assert result.success, result.error
    return {
        "user_id": result.user.id,
        "email": result.user.email,
        "name": result.user.name,
        "password": password,
        "token": get_jwt_service().create_token_for_user(result.user),
    }


@pytest.fixture(name="test_user")
def test_user_fixture(db_session: Session):
    """Create a free-tier test user and return its data and session token."""
    return _register(db_session, "test@example.com", "password123", "Test User")


@pytest.fixture(name="admin_user")
def admin_user_fixture(db_session: Session):
    """Create an admin user and return its data and session token."""
    from financeu.services.jwt import get_jwt_service

    user = _register(db_session, "admin@example.com", "adminpass123", "Admin User")
    store = get_credential_store()
    store.update_role(db_session, user["user_id"], Role.ADMIN.value)
    user["token"] = get_jwt_service().create_token_for_user(store.find_user_by_id(db_session, user["user_id"]))
    return user
