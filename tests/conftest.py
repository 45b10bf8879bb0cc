"""Shared fixtures for the notes-app test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app import create_app
from config import TestingConfig
from db import db
from services.notify import Notifier


class RecordingNotifier(Notifier):
    """Captures outgoing messages instead of talking to SMTP."""

    def __init__(self):
        super().__init__("notes-app")
        self.sent: list[dict] = []
        self.codes: list[tuple[str, str]] = []
        self.fail = False

    def deliver(self, to, subject, text, html=""):
        if self.fail:
            return False
        self.sent.append({"to": to, "subject": subject, "text": text, "html": html})
        return True

    def send_otp(self, to, code, *, purpose, ttl_minutes):
        self.codes.append((to, code))
        return super().send_otp(to, code, purpose=purpose, ttl_minutes=ttl_minutes)

    def last_code(self, email: str) -> str:
        for to, code in reversed(self.codes):
            if to == email:
                return code
        raise AssertionError(f"no code sent to {email}")


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def app(notifier):
    app = create_app(TestingConfig, notifier=notifier)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def clock(app) -> FrozenClock:
    """Freeze time for both the challenge engine and the session issuer."""
    c = FrozenClock(datetime.now(timezone.utc).replace(microsecond=0))
    app.extensions["otp"].clock = c
    app.extensions["sessions"].clock = c
    return c


@pytest.fixture()
def register(client, notifier):
    """Run the full signup flow and return the session token."""

    def _register(email="a@x.com", name="Alice", dob="1990-04-02") -> str:
        resp = client.post(
            "/auth/request-signup-otp",
            json={"name": name, "email": email, "dateOfBirth": dob},
        )
        assert resp.status_code == 200, resp.get_json()
        code = notifier.last_code(email)
        resp = client.post("/auth/signup", json={"email": email, "otp": code})
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()["token"]

    return _register