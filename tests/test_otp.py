"""Tests for the one-time-code challenge engine."""

from __future__ import annotations

import pytest

from models.user import Account
from services.otp import ChallengeEngine, ChallengeResult


@pytest.fixture()
def engine(app, clock) -> ChallengeEngine:
    return app.extensions["otp"]


@pytest.fixture()
def account(app) -> Account:
    return app.extensions["accounts"].create(name="Alice", email="a@x.com")


class TestIssueChallenge:
    def test_code_is_six_digits_without_leading_zero(self, engine, account):
        for _ in range(50):
            code = engine.issue_challenge(account)
            assert len(code) == 6
            assert code.isdigit()
            assert 100000 <= int(code) <= 999999

    def test_expiry_is_ten_minutes_out(self, engine, account, clock):
        engine.issue_challenge(account)
        assert engine.expires_at(account) == clock.now + engine.ttl
        assert engine.ttl_minutes == 10

    def test_challenge_is_persisted_not_plaintext(self, engine, account):
        code = engine.issue_challenge(account)
        stored = Account.query.filter_by(email="a@x.com").one()
        assert stored.otp_hash is not None
        assert stored.otp_expires_at is not None
        assert code not in stored.otp_hash

    def test_back_to_back_codes_differ(self, engine, account):
        first = engine.issue_challenge(account)
        second = engine.issue_challenge(account)
        assert first != second

    def test_custom_code_length(self, app, account, clock):
        engine = ChallengeEngine(app.extensions["accounts"], pepper="p", code_length=4, clock=clock)
        code = engine.issue_challenge(account)
        assert 1000 <= int(code) <= 9999

    def test_rejects_bad_settings(self, app):
        with pytest.raises(ValueError):
            ChallengeEngine(app.extensions["accounts"], pepper="p", code_length=0)
        with pytest.raises(ValueError):
            ChallengeEngine(app.extensions["accounts"], pepper="p", ttl_minutes=0)


class TestValidateChallenge:
    def test_accept_clears_challenge(self, engine, account):
        code = engine.issue_challenge(account)
        assert engine.validate_challenge(account, code) is ChallengeResult.ACCEPT
        stored = Account.query.filter_by(email="a@x.com").one()
        assert stored.otp_hash is None
        assert stored.otp_expires_at is None

    def test_replay_is_rejected(self, engine, account):
        code = engine.issue_challenge(account)
        assert engine.validate_challenge(account, code).accepted
        assert engine.validate_challenge(account, code) is ChallengeResult.REJECT_NO_CHALLENGE

    def test_no_challenge(self, engine, account):
        assert engine.validate_challenge(account, "123456") is ChallengeResult.REJECT_NO_CHALLENGE

    def test_mismatch_keeps_challenge(self, engine, account):
        code = engine.issue_challenge(account)
        wrong = "100000" if code != "100000" else "100001"
        assert engine.validate_challenge(account, wrong) is ChallengeResult.REJECT_MISMATCH
        # Same code can be retried after a miss
        assert engine.validate_challenge(account, code) is ChallengeResult.ACCEPT

    def test_comparison_is_exact_string(self, engine, account):
        code = engine.issue_challenge(account)
        assert engine.validate_challenge(account, " " + code) is ChallengeResult.REJECT_MISMATCH
        assert engine.validate_challenge(account, code + "0") is ChallengeResult.REJECT_MISMATCH
        assert engine.validate_challenge(account, int(code)) is ChallengeResult.REJECT_MISMATCH

    def test_expired_code_rejected_even_when_matching(self, engine, account, clock):
        code = engine.issue_challenge(account)
        clock.advance(minutes=11)
        assert engine.validate_challenge(account, code) is ChallengeResult.REJECT_EXPIRED
        assert account.has_pending_challenge

    def test_expiry_boundary_is_exclusive(self, engine, account, clock):
        code = engine.issue_challenge(account)
        clock.advance(minutes=10)
        assert engine.validate_challenge(account, code) is ChallengeResult.REJECT_EXPIRED

    def test_just_before_expiry_is_accepted(self, engine, account, clock):
        code = engine.issue_challenge(account)
        clock.advance(minutes=9, seconds=59)
        assert engine.validate_challenge(account, code) is ChallengeResult.ACCEPT

    def test_reissue_invalidates_previous_code(self, engine, account):
        first = engine.issue_challenge(account)
        second = engine.issue_challenge(account)
        assert engine.validate_challenge(account, first) is ChallengeResult.REJECT_MISMATCH
        assert engine.validate_challenge(account, second) is ChallengeResult.ACCEPT

    def test_half_written_challenge_counts_as_none(self, engine, account):
        engine.issue_challenge(account)
        account.otp_expires_at = None
        assert engine.validate_challenge(account, "123456") is ChallengeResult.REJECT_NO_CHALLENGE
