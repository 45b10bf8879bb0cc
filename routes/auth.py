# routes/auth.py
from __future__ import annotations

import re
import time
from datetime import date, datetime, timezone

from flask import Blueprint, request, jsonify, g, current_app
from sqlalchemy.exc import IntegrityError

from auth_guard import require_auth
from errors import ApiError, ErrorCode
from models.user import Account
from services.accounts import normalize_email
from services.otp import ChallengeResult
from utils.mail import mask_email

__all__ = ["auth_bp"]
auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

EMAIL_RE = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------
def _utcnow_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _components():
    ext = current_app.extensions
    return ext["accounts"], ext["otp"], ext["notifier"], ext["sessions"]


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ApiError(ErrorCode.VALIDATION, "Request body must be a JSON object.")
    return data


def _parse_email(raw) -> str:
    email = normalize_email(raw if isinstance(raw, str) else "")
    if not email or not EMAIL_RE.fullmatch(email):
        raise ApiError(ErrorCode.VALIDATION, "A valid email address is required.")
    return email


def _parse_dob(raw) -> date | None:
    if raw in (None, ""):
        return None
    if not isinstance(raw, str):
        raise ApiError(ErrorCode.VALIDATION, "dateOfBirth must be a YYYY-MM-DD string.")
    raw = raw.strip()
    if len(raw) != 10:
        raise ApiError(ErrorCode.VALIDATION, "dateOfBirth must be a YYYY-MM-DD string.")
    try:
        dob = date.fromisoformat(raw)
    except ValueError:
        raise ApiError(ErrorCode.VALIDATION, "dateOfBirth must be a YYYY-MM-DD string.")
    if dob > date.today():
        raise ApiError(ErrorCode.VALIDATION, "dateOfBirth cannot be in the future.")
    return dob


def _email_and_otp(data: dict) -> tuple[str, str]:
    otp = data.get("otp")
    if not isinstance(otp, str) or not otp.strip() or not data.get("email"):
        raise ApiError(ErrorCode.VALIDATION, "email and otp are required.")
    # Submitted as-is: the code must match exactly
    return _parse_email(data.get("email")), otp


def _send_challenge(account: Account, *, purpose: str) -> dict:
    """Issue a fresh code for *account*, hand it to the notifier, build the response body."""
    _, engine, notifier, _ = _components()
    code = engine.issue_challenge(account)

    delivered = notifier.send_otp(account.email, code, purpose=purpose, ttl_minutes=engine.ttl_minutes)
    if delivered:
        current_app.logger.info("[otp] %s code sent to %s", purpose, mask_email(account.email))
    else:
        current_app.logger.warning("[otp] %s code stored but not delivered to %s",
                                   purpose, mask_email(account.email))

    expires = engine.expires_at(account)
    return {
        "success": True,
        "message": "OTP sent successfully.",
        "expiresAt": expires.isoformat() if expires else None,
    }


def _complete_challenge(account: Account, otp: str, *, purpose: str) -> str:
    _, engine, _, sessions = _components()
    result = engine.validate_challenge(account, otp)
    if result is not ChallengeResult.ACCEPT:
        # One message for every rejection so callers cannot tell them apart
        current_app.logger.info("[otp] %s rejected for %s (%s)",
                                purpose, mask_email(account.email), result.value)
        raise ApiError(ErrorCode.INVALID_OTP)

    current_app.logger.info("[auth] %s ok uid=%s", purpose, account.id)
    return sessions.issue(account.id)


# -------------------------------------------------------------------
# Middleware
# -------------------------------------------------------------------
@auth_bp.after_request
def add_no_store(resp):
    resp.headers["Cache-Control"] = "no-store"
    return resp


# -------------------------------------------------------------------
# Health
# -------------------------------------------------------------------
@auth_bp.route("/ping", methods=["GET"])
def ping():
    return jsonify(ok=True, ts=time.time()), 200


# -------------------------------------------------------------------
# Registration: request code, then complete with it
# -------------------------------------------------------------------
@auth_bp.route("/request-signup-otp", methods=["POST"])
def request_signup_otp():
    data = _json_body()
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ApiError(ErrorCode.VALIDATION, "name is required.")
    email = _parse_email(data.get("email"))
    dob = _parse_dob(data.get("dateOfBirth"))

    accounts, _, _, _ = _components()
    account = accounts.get_by_email(email)
    created = False
    if account is None:
        try:
            account = accounts.create(name=name, email=email, date_of_birth=dob)
            created = True
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email
            current_app.logger.info("[auth] signup race on %s; treating as resend", mask_email(email))
            account = accounts.get_by_email(email)
            if account is None:
                raise

    if account.is_verified:
        raise ApiError(ErrorCode.ACCOUNT_EXISTS)

    if created:
        current_app.logger.info("[auth] signup started uid=%s email=%s", account.id, mask_email(email))
    else:
        # Signup never completed: this is a resend, refresh what they typed
        account.name = name.strip()
        account.date_of_birth = dob
        current_app.logger.info("[auth] signup resend uid=%s email=%s", account.id, mask_email(email))

    return jsonify(_send_challenge(account, purpose="signup")), 200


@auth_bp.route("/signup", methods=["POST"])
def signup():
    email, otp = _email_and_otp(_json_body())

    accounts, _, _, _ = _components()
    account = accounts.get_by_email(email)
    if account is None:
        raise ApiError(ErrorCode.INVALID_EMAIL)

    token = _complete_challenge(account, otp, purpose="signup")
    if not account.is_verified:
        account.verified_at = _utcnow_naive()
        accounts.save(account)

    return jsonify(success=True, message="Signup successful.", token=token), 200


# -------------------------------------------------------------------
# Login: request code, then exchange it for a session token
# -------------------------------------------------------------------
@auth_bp.route("/request-otp", methods=["POST"])
def request_otp():
    email = _parse_email(_json_body().get("email"))

    accounts, _, _, _ = _components()
    account = accounts.get_by_email(email)
    if account is None or not account.is_verified:
        raise ApiError(ErrorCode.ACCOUNT_NOT_FOUND)

    return jsonify(_send_challenge(account, purpose="login")), 200


@auth_bp.route("/login", methods=["POST"])
def login():
    email, otp = _email_and_otp(_json_body())

    accounts, _, _, _ = _components()
    account = accounts.get_by_email(email)
    if account is None or not account.is_verified:
        raise ApiError(ErrorCode.INVALID_CREDENTIALS)

    token = _complete_challenge(account, otp, purpose="login")
    return jsonify(success=True, message="Login successful.", token=token), 200


# -------------------------------------------------------------------
# Me (token-based)
# -------------------------------------------------------------------
@auth_bp.route("/me", methods=["GET"])
@require_auth
def me():
    accounts, _, _, _ = _components()
    account = accounts.get(g.account_id)
    if account is None:
        raise ApiError(ErrorCode.ACCOUNT_NOT_FOUND, "User not found.")
    return jsonify(account.to_dict()), 200
