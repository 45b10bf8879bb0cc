# auth_guard.py
from __future__ import annotations

from functools import wraps

from flask import request, g, current_app

from errors import ApiError, ErrorCode
from services.session import SessionError

__all__ = ["require_auth", "bearer_token"]


def bearer_token() -> str | None:
    auth = request.headers.get("Authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_auth(f):
    """
    Only lets the view run for a valid session token.
    Stashes the decoded account id on ``g.account_id``.
    """
    @wraps(f)
    def wrapped(*args, **kwargs):
        token = bearer_token()
        if token is None:
            current_app.logger.info("[guard] %s %s no bearer token ip=%s",
                                    request.method, request.path, request.remote_addr)
            raise ApiError(ErrorCode.UNAUTHENTICATED, "No token, authorization denied.")

        try:
            account_id = current_app.extensions["sessions"].verify(token)
        except SessionError as e:
            current_app.logger.info("[guard] %s %s rejected (%s) ip=%s",
                                    request.method, request.path, e.reason.value, request.remote_addr)
            raise ApiError(ErrorCode.UNAUTHENTICATED) from e

        g.account_id = account_id  # type: ignore[attr-defined]
        current_app.logger.debug("[guard] %s %s uid=%s", request.method, request.path, account_id)
        return f(*args, **kwargs)

    return wrapped
