"""
Tests for the session admin API.
"""
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from persister.database import get_db_session
from persister.main import app


def _create_session(client, session_id, offline=False, **overrides):
    body = {
        "user_session_id": session_id,
        "realm_id": "realm-a",
        "user_id": "user-1",
        "last_session_refresh": 100,
        "data": '{"ip": "127.0.0.1"}',
        "offline": offline,
    }
    body.update(overrides)
    return client.post("/api/sessions", json=body)


def _create_client_session(client, client_session_id, session_id, client_id="web", offline=False):
    return client.post(
        "/api/sessions/client-sessions",
        json={
            "client_session_id": client_session_id,
            "client_id": client_id,
            "user_session_id": session_id,
            "timestamp": 100,
            "offline": offline,
        },
    )


class TestSessionApi:
    def test_health(self, api_client):
        response = api_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_create_list_and_count(self, api_client):
        assert _create_session(api_client, "s1").status_code == 201
        assert _create_client_session(api_client, "c1", "s1").status_code == 201

        listing = api_client.get("/api/sessions")
        count = api_client.get("/api/sessions/count")

        assert listing.status_code == 200
        body = listing.json()
        assert [s["user_session_id"] for s in body] == ["s1"]
        assert body[0]["data"] == '{"ip": "127.0.0.1"}'
        assert body[0]["realm_resolved"] is False
        assert [c["client_session_id"] for c in body[0]["client_sessions"]] == ["c1"]
        assert count.json() == {"offline": False, "count": 1}

    def test_duplicate_create_conflicts(self, api_client):
        _create_session(api_client, "s1")

        response = _create_session(api_client, "s1")

        assert response.status_code == 409

    def test_update_missing_returns_404(self, api_client):
        response = api_client.put(
            "/api/sessions/ghost", json={"last_session_refresh": 5, "data": "x"}
        )

        assert response.status_code == 404

    def test_update_and_get(self, api_client):
        _create_session(api_client, "s1")

        response = api_client.put(
            "/api/sessions/s1", json={"last_session_refresh": 500, "data": "new"}
        )
        fetched = api_client.get("/api/sessions/s1")

        assert response.status_code == 200
        assert fetched.json()["last_session_refresh"] == 500
        assert fetched.json()["data"] == "new"

    def test_get_missing_returns_404(self, api_client):
        assert api_client.get("/api/sessions/missing").status_code == 404

    def test_removing_last_client_session_cascades(self, api_client):
        _create_session(api_client, "s1")
        _create_client_session(api_client, "c1", "s1")

        response = api_client.delete("/api/sessions/client-sessions/c1")

        assert response.status_code == 200
        assert api_client.get("/api/sessions/count").json()["count"] == 0

    def test_pagination_and_offline_filter(self, api_client):
        for sid in ("s1", "s2", "s3", "s4", "s5"):
            _create_session(api_client, sid)
        _create_session(api_client, "off", offline=True)

        page = api_client.get("/api/sessions", params={"first_result": 2, "max_results": 2})
        offline = api_client.get("/api/sessions", params={"offline": "true"})

        assert [s["user_session_id"] for s in page.json()] == ["s3", "s4"]
        assert [s["user_session_id"] for s in offline.json()] == ["off"]

    def test_realm_user_and_client_removal(self, api_client):
        _create_session(api_client, "s1")
        _create_session(api_client, "s2", user_id="user-2")
        _create_session(api_client, "s3", realm_id="realm-b")
        _create_client_session(api_client, "c1", "s1", client_id="web")
        _create_client_session(api_client, "c2", "s2", client_id="mobile")
        _create_client_session(api_client, "c3", "s3", client_id="web")

        assert api_client.delete("/api/sessions/realms/realm-a/clients/web").status_code == 200
        assert api_client.delete("/api/sessions/realms/realm-a/users/user-2").status_code == 200

        remaining = api_client.get("/api/sessions").json()
        assert [s["user_session_id"] for s in remaining] == ["s3"]

        assert api_client.delete("/api/sessions/realms/realm-b").status_code == 200
        assert api_client.get("/api/sessions/count").json()["count"] == 0

    def test_maintenance_endpoints(self, api_client):
        _create_session(api_client, "s1")
        _create_session(api_client, "s2")
        _create_client_session(api_client, "c1", "s1")

        timestamps = api_client.post("/api/sessions/maintenance/timestamps", json={"time": 9000})
        cleared = api_client.post("/api/sessions/maintenance/clear-detached")

        assert timestamps.status_code == 200
        assert cleared.status_code == 200
        remaining = api_client.get("/api/sessions").json()
        assert [s["user_session_id"] for s in remaining] == ["s1"]
        assert remaining[0]["last_session_refresh"] == 9000
        assert remaining[0]["client_sessions"][0]["timestamp"] == 9000

    def test_backend_failure_returns_503(self, api_client):
        broken = MagicMock(spec=Session)
        broken.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))

        def override_get_db_session():
            yield broken

        app.dependency_overrides[get_db_session] = override_get_db_session

        response = api_client.get("/api/sessions/count")

        assert response.status_code == 503
