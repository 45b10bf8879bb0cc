# services/otp.py
"""
Email one-time-code challenges.

An account carries at most one pending challenge: the (otp_hash,
otp_expires_at) pair. Issuing overwrites it, a successful validation clears
it, and expiry is only checked when a code is submitted.
"""
from __future__ import annotations

import enum
import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable

from models.user import Account
from services.accounts import AccountStore

__all__ = ["ChallengeEngine", "ChallengeResult"]


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(ts: datetime) -> datetime:
    # Naive values come back from the DB; they were written as UTC
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


class ChallengeResult(enum.Enum):
    ACCEPT = "accept"
    REJECT_NO_CHALLENGE = "no_challenge"
    REJECT_MISMATCH = "mismatch"
    REJECT_EXPIRED = "expired"

    @property
    def accepted(self) -> bool:
        return self is ChallengeResult.ACCEPT


class ChallengeEngine:
    def __init__(
        self,
        store: AccountStore,
        *,
        pepper: str,
        ttl_minutes: int = 10,
        code_length: int = 6,
        clock: Callable[[], datetime] = _now_utc,
    ):
        if code_length < 1:
            raise ValueError("code_length must be positive")
        if ttl_minutes <= 0:
            raise ValueError("ttl_minutes must be positive")
        self.store = store
        self.pepper = pepper
        self.ttl = timedelta(minutes=ttl_minutes)
        self.code_length = code_length
        self.clock = clock

    @property
    def ttl_minutes(self) -> int:
        return int(self.ttl.total_seconds() // 60)

    def _gen_code(self) -> str:
        # Fixed width with no leading zero: 100000..999999 for six digits
        low = 10 ** (self.code_length - 1)
        high = 10 ** self.code_length - 1
        return str(low + secrets.randbelow(high - low + 1))

    def _hash_code(self, code: str) -> str:
        return hashlib.sha256((self.pepper + code).encode("utf-8")).hexdigest()

    def issue_challenge(self, account: Account) -> str:
        """Overwrite the account's pending challenge and return the new code."""
        code = self._gen_code()
        # A resend always hands out a different code than the one it replaces
        while account.otp_hash and secrets.compare_digest(account.otp_hash, self._hash_code(code)):
            code = self._gen_code()

        account.otp_hash = self._hash_code(code)
        account.otp_expires_at = (self.clock() + self.ttl).astimezone(timezone.utc).replace(tzinfo=None)
        self.store.save(account)
        return code

    def validate_challenge(self, account: Account, submitted: str) -> ChallengeResult:
        if not account.has_pending_challenge:
            return ChallengeResult.REJECT_NO_CHALLENGE

        if not isinstance(submitted, str) or not secrets.compare_digest(
            account.otp_hash, self._hash_code(submitted)
        ):
            return ChallengeResult.REJECT_MISMATCH

        if self.clock() >= _as_utc(account.otp_expires_at):
            return ChallengeResult.REJECT_EXPIRED

        account.clear_challenge()
        self.store.save(account)
        return ChallengeResult.ACCEPT

    def expires_at(self, account: Account) -> datetime | None:
        """UTC expiry of the pending challenge, for clients rendering a countdown."""
        if not account.has_pending_challenge:
            return None
        return _as_utc(account.otp_expires_at)
