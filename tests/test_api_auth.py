"""Sign-in, session cookies and the request gates in front of /api."""

from conftest import sign_in
from showplot import database, users
from showplot.settings.config import settings


class TestSession:
    def test_anonymous_me(self, client):
        res = client.get("/api/me")
        assert res.status_code == 200
        assert res.json() == {"user": None}

    def test_google_sign_in_sets_cookie(self, client):
        res = client.post("/api/auth/google", json={"credential": "user-token"})
        assert res.status_code == 200
        user = res.json()["user"]
        assert user["email"] == "una@example.com"
        assert user["name"] == "Una User"
        assert user["picture"] == "https://example.com/una.png"
        assert user["is_superuser"] is False
        assert "sp_session" in res.headers["set-cookie"]
        assert "httponly" in res.headers["set-cookie"].lower()

        me = client.get("/api/me").json()["user"]
        assert me["id"] == user["id"]

    def test_repeat_sign_in_keeps_user(self, client):
        first = sign_in(client, "user-token")
        second = sign_in(client, "user-token")
        assert first["id"] == second["id"]

    def test_admin_email_is_promoted(self, client):
        assert sign_in(client, "admin-token")["is_superuser"] is True

    def test_logout_clears_session(self, user_client):
        res = user_client.post("/api/auth/logout")
        assert res.json() == {"ok": True}
        assert user_client.get("/api/me").json() == {"user": None}

    def test_stale_cookie_is_cleared(self, client):
        client.cookies.set("sp_session", "not-a-jwt")
        res = client.get("/api/me")
        assert res.json() == {"user": None}
        assert "sp_session" in res.headers.get("set-cookie", "")

    def test_bearer_token_is_accepted(self, client):
        sign_in(client, "user-token")
        token = client.cookies.get("sp_session")
        client.cookies.clear()
        res = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})
        assert res.json()["user"]["email"] == "una@example.com"


class TestSignInErrors:
    def test_missing_credential(self, client):
        res = client.post("/api/auth/google", json={})
        assert res.status_code == 400
        assert res.json()["detail"] == "Missing credential"

    def test_invalid_token(self, client):
        res = client.post("/api/auth/google", json={"credential": "forged"})
        assert res.status_code == 401

    def test_token_without_subject(self, client):
        res = client.post("/api/auth/google", json={"credential": "no-sub-token"})
        assert res.status_code == 401
        assert res.json()["detail"] == "Invalid Google token"

    def test_missing_client_id(self, client, monkeypatch):
        monkeypatch.setattr(settings, "GOOGLE_CLIENT_ID", "")
        res = client.post("/api/auth/google", json={"credential": "user-token"})
        assert res.status_code == 500
        assert "GOOGLE_CLIENT_ID" in res.json()["detail"]

    def test_missing_session_secret(self, client, monkeypatch):
        monkeypatch.setattr(users, "SECRET", "")
        res = client.post("/api/auth/google", json={"credential": "user-token"})
        assert res.status_code == 500
        assert "SESSION_SECRET" in res.json()["detail"]


class TestGates:
    def test_database_not_ready(self, client):
        database.mark_ready(False)
        try:
            res = client.get("/api/me")
            assert res.status_code == 503
            assert res.json()["detail"].startswith("Database not connected")
            assert client.get("/openapi.json").status_code == 200
        finally:
            database.mark_ready(True)

    def test_foreign_origin_rejected(self, client):
        res = client.get("/api/me", headers={"Origin": "https://evil.example"})
        assert res.status_code == 403
        assert res.json() == {"detail": "Not allowed by CORS"}

    def test_allowed_origin(self, client):
        res = client.get("/api/me", headers={"Origin": "http://localhost:5173"})
        assert res.status_code == 200
        assert res.headers["access-control-allow-origin"] == "http://localhost:5173"
        assert res.headers["access-control-allow-credentials"] == "true"

    def test_requests_without_origin_pass(self, client):
        assert client.get("/api/assets").status_code == 200
