"""
Admin gate: shared password, signed cookie, redirects and 403s
"""
import jwt
import pytest

from teacher_eval.core.security import create_admin_token, decode_admin_token, password_matches


class TestSecurity:
    def test_password_matches(self, settings):
        assert password_matches(settings.ADMIN_PASSWORD, settings)
        assert not password_matches("wrong", settings)
        assert not password_matches(None, settings)

    def test_token_round_trip(self, settings):
        token = create_admin_token(settings)
        claims = decode_admin_token(token, settings)
        assert claims["adm"] is True

    def test_expired_token(self, settings):
        token = create_admin_token(settings, expires_seconds=-60)
        assert decode_admin_token(token, settings) is None

    def test_foreign_signature(self, settings):
        token = jwt.encode({"adm": True, "iat": 0, "exp": 9999999999}, "another-secret-key-of-32-bytes-long", algorithm="HS256")
        assert decode_admin_token(token, settings) is None


class TestLogin:
    def test_login_sets_cookie(self, client, settings):
        resp = client.post("/api/v1/auth/login", json={"password": settings.ADMIN_PASSWORD})
        assert resp.status_code == 200
        assert resp.json() == {"admin": True}
        assert settings.ADMIN_COOKIE_NAME in resp.cookies
        assert client.get("/api/v1/auth/me").json() == {"admin": True}

    def test_login_with_form(self, client, settings):
        resp = client.post("/api/v1/auth/login", data={"password": settings.ADMIN_PASSWORD})
        assert resp.status_code == 200

    def test_wrong_password(self, client):
        resp = client.post("/api/v1/auth/login", json={"password": "nope"})
        assert resp.status_code == 401
        assert client.get("/api/v1/auth/me").json() == {"admin": False}

    def test_logout_clears_session(self, admin_client):
        resp = admin_client.post("/api/v1/auth/logout", follow_redirects=False)
        assert resp.status_code == 303
        assert admin_client.get("/api/v1/auth/me").json() == {"admin": False}


class TestGuards:
    @pytest.mark.parametrize("path", [
        "/api/v1/admin/reports/stats",
        "/api/v1/admin/reports/dashboard",
        "/api/v1/admin/reports/export/excel",
        "/api/v1/admin/backups",
    ])
    def test_admin_pages_redirect_to_login(self, client, path):
        resp = client.get(path, follow_redirects=False)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/api/v1/auth/login"

    def test_import_without_cookie_is_403(self, client):
        resp = client.post(
            "/api/v1/admin/imports/workbook",
            files={"file": ("catalog.xlsx", b"whatever", "application/octet-stream")},
        )
        assert resp.status_code == 403

    def test_restore_without_cookie_is_403(self, client):
        resp = client.post(
            "/api/v1/admin/backups/restore",
            files={"file": ("db.sqlite", b"SQLite format 3\x00", "application/octet-stream")},
        )
        assert resp.status_code == 403

    def test_tampered_cookie_is_rejected(self, client, settings):
        client.cookies.set(settings.ADMIN_COOKIE_NAME, "not-a-token")
        resp = client.get("/api/v1/admin/reports/stats", follow_redirects=False)
        assert resp.status_code == 303

    def test_public_routes(self, client):
        assert client.get("/health").json() == {"status": "ok"}
        assert client.get("/api/v1/health/db").json() == {"db": "ok"}
