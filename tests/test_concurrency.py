"""Tests for concurrent writes to the same account."""

import threading

from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from financeu.database import Base, build_engine, get_db
from financeu.models.password_reset_token import PasswordResetToken
from financeu.models.user import User
from financeu.rate_limit import limiter
from financeu.services.auth import AuthService
from financeu.services.reset_tokens import ResetTokenManager


class TestConcurrentRegistration:
    """Two simultaneous registrations for one email."""

    def test_exactly_one_registration_wins(self, tmp_path):
        """One request gets 201, the other the duplicate-email error, and one row is stored."""
        from main import app

        engine = build_engine(f"sqlite:///{tmp_path / 'concurrency.db'}", connect_args={"timeout": 30})
        Base.metadata.create_all(bind=engine)
        session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)

        def override_get_db():
            db = session_local()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        limiter.enabled = False
        barrier = threading.Barrier(2)
        responses = []
        lock = threading.Lock()

        def register(name: str) -> None:
            client = TestClient(app)
            barrier.wait()
            response = client.post(
                "/api/auth/register",
                json={"email": "race@example.com", "password": "password123", "name": name},
            )
            with lock:
                responses.append(response)

        try:
            threads = [threading.Thread(target=register, args=(name,)) for name in ("First", "Second")]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join(timeout=60)
        finally:
            limiter.enabled = True
            app.dependency_overrides.clear()

        statuses = sorted(response.status_code for response in responses)
        assert statuses == [201, 400]
        rejected = next(response for response in responses if response.status_code == 400)
        assert rejected.json()["detail"] == "Email already registered"

        with session_local() as db:
            count = db.execute(select(func.count(User.id)).where(User.email == "race@example.com")).scalar()
        assert count == 1
        engine.dispose()


class TestConcurrentResetRequests:
    """Two simultaneous forgot-password requests for one account."""

    def test_one_outstanding_token_remains(self, tmp_path):
        """However the requests interleave, exactly one unused token is left."""
        engine = build_engine(f"sqlite:///{tmp_path / 'reset.db'}", connect_args={"timeout": 30})
        Base.metadata.create_all(bind=engine)
        session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
        with session_local() as db:
            assert AuthService().register(db, "race@example.com", "password123", "Racer").success

        manager = ResetTokenManager(expire_minutes=60)
        barrier = threading.Barrier(2)
        issued = []
        failures = []
        lock = threading.Lock()

        def request_reset() -> None:
            with session_local() as db:
                barrier.wait()
                try:
                    token = manager.request_reset(db, "race@example.com")
                except OperationalError as e:
                    with lock:
                        failures.append(e)
                    return
                with lock:
                    issued.append(token.token)

        threads = [threading.Thread(target=request_reset) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        assert len(issued) + len(failures) == 2
        assert issued

        with session_local() as db:
            unused = db.execute(select(PasswordResetToken.token).where(PasswordResetToken.used.is_(False))).scalars().all()
        assert len(unused) == 1
        assert unused[0] in issued
        engine.dispose()
