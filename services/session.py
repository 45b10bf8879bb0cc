# services/session.py
from __future__ import annotations

import enum
from datetime import datetime, timedelta, timezone
from typing import Callable

import jwt

__all__ = ["SessionIssuer", "SessionError", "SessionFailure"]


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class SessionFailure(enum.Enum):
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"


class SessionError(Exception):
    def __init__(self, reason: SessionFailure, detail: str = ""):
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason.value}: {detail}" if detail else reason.value)


class SessionIssuer:
    """
    Stateless HS256 session tokens.

    There is no revocation list: a token is good until its ``exp`` and
    logging out means the client throws it away.
    """

    def __init__(
        self,
        secret: str,
        *,
        ttl_minutes: int = 60,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = _now_utc,
    ):
        if not secret:
            raise ValueError("A signing secret is required for session tokens")
        self.secret = secret
        self.ttl = timedelta(minutes=ttl_minutes)
        self.algorithm = algorithm
        self.clock = clock

    def issue(self, account_id) -> str:
        now = self.clock()
        return jwt.encode(
            {
                "user_id": str(account_id),
                "iat": now,
                "exp": now + self.ttl,
            },
            self.secret,
            algorithm=self.algorithm,
        )

    def verify(self, token: str) -> str:
        """Return the account id bound to *token*, or raise SessionError."""
        if not token:
            raise SessionError(SessionFailure.INVALID_SIGNATURE, "empty token")
        try:
            # exp is compared against self.clock below so issue/verify share one time source
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={
                    "require": ["exp", "user_id"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as e:
            raise SessionError(SessionFailure.INVALID_SIGNATURE, str(e)) from e

        exp = payload.get("exp")
        if not isinstance(exp, (int, float)):
            raise SessionError(SessionFailure.INVALID_SIGNATURE, "exp claim is malformed")
        if self.clock().timestamp() >= exp:
            raise SessionError(SessionFailure.EXPIRED, "token has expired")

        uid = payload.get("user_id")
        if not isinstance(uid, str) or not uid:
            raise SessionError(SessionFailure.INVALID_SIGNATURE, "user_id claim is malformed")
        return uid
