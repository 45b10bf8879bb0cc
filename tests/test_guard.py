"""Tests for the bearer-token guard."""

from __future__ import annotations

import pytest
from flask import g, jsonify

from auth_guard import require_auth


@pytest.fixture()
def guarded_client(app):
    calls = []

    @app.route("/_guarded")
    @require_auth
    def _guarded():
        calls.append(g.account_id)
        return jsonify(uid=g.account_id)

    client = app.test_client()
    client.calls = calls
    return client


class TestRequireAuth:
    def test_valid_token_reaches_view(self, app, guarded_client):
        token = app.extensions["sessions"].issue(5)
        resp = guarded_client.get("/_guarded", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.get_json() == {"uid": "5"}
        assert guarded_client.calls == ["5"]

    def test_scheme_is_case_insensitive(self, app, guarded_client):
        token = app.extensions["sessions"].issue(5)
        resp = guarded_client.get("/_guarded", headers={"Authorization": f"bearer {token}"})
        assert resp.status_code == 200

    @pytest.mark.parametrize(
        "header",
        [None, "", "Bearer", "Bearer ", "Basic dXNlcjpwYXNz", "Token abc", "Bearer not.a.jwt"],
    )
    def test_bad_headers_never_reach_view(self, guarded_client, header):
        headers = {"Authorization": header} if header is not None else {}
        resp = guarded_client.get("/_guarded", headers=headers)
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "UNAUTHENTICATED"
        assert guarded_client.calls == []

    def test_token_signed_with_other_secret(self, guarded_client):
        from services.session import SessionIssuer

        token = SessionIssuer("someone-else").issue(5)
        resp = guarded_client.get("/_guarded", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert guarded_client.calls == []

    def test_tampered_token(self, app, guarded_client):
        header, payload, sig = app.extensions["sessions"].issue(5).split(".")
        sig = ("A" if sig[0] != "A" else "B") + sig[1:]
        resp = guarded_client.get(
            "/_guarded", headers={"Authorization": f"Bearer {header}.{payload}.{sig}"}
        )
        assert resp.status_code == 401
        assert guarded_client.calls == []

    def test_expired_and_invalid_look_the_same(self, app, guarded_client, clock):
        token = app.extensions["sessions"].issue(5)
        clock.advance(hours=2)
        expired = guarded_client.get("/_guarded", headers={"Authorization": f"Bearer {token}"})
        invalid = guarded_client.get("/_guarded", headers={"Authorization": "Bearer x.y.z"})
        assert expired.status_code == invalid.status_code == 401
        assert expired.get_json() == invalid.get_json()
