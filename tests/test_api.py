"""
Tests for the HTTP surface

Runs the real application against an in-memory store through
FastAPI's TestClient. Sessions are minted with the same signer the
identity gateway would use.
"""

import pytest
from fastapi.testclient import TestClient

from corruptionwatch.db.store import InMemoryReportStore
from corruptionwatch.main import app
from corruptionwatch.schemas import Category, ReportStatus
from corruptionwatch.web.auth import SESSION_COOKIE, SessionUser, create_session_cookie

from conftest import FailingStore, make_report

ADMIN_EMAIL = "moderator@corruptionwatchdog.in"


@pytest.fixture
def reports():
    return (
        [make_report(person="R. K. Verma", region="Lucknow") for _ in range(3)]
        + [make_report(person="S. Iyer", region="Chennai", category=Category.FRAUD)]
        + [make_report(person="K. Patel", region="Ahmedabad", reporter_email="citizen@example.org")]
    )


@pytest.fixture
def client(reports, monkeypatch):
    monkeypatch.delenv("CORRUPTIONWATCH_ADMIN_DOMAIN", raising=False)
    app.state.report_store = InMemoryReportStore(reports)
    with TestClient(app) as c:
        yield c
    app.state.report_store = None


def _login(client, email):
    client.cookies.set(SESSION_COOKIE, create_session_cookie(SessionUser(email=email)))


class TestPublicViews:

    def test_heatmap(self, client):
        response = client.get("/api/public/heatmap")
        assert response.status_code == 200
        assert response.headers["cache-control"] == "public, max-age=30"

        body = response.json()
        assert body["error"] is None
        assert body["regions"][0]["region"] == "Lucknow"
        assert body["regions"][0]["count"] == 3
        assert body["regions"][0]["latitude"] == pytest.approx(26.8467)
        assert body["categories"][0]["color"] == "#FF6B6B"

    def test_defaulters_default_threshold(self, client):
        body = client.get("/api/public/defaulters").json()
        assert body["min_reports"] == 2
        assert [d["corrupt_person_name"] for d in body["defaulters"]] == ["R. K. Verma"]
        assert body["defaulters"][0]["status"] == "low"

    def test_defaulters_show_all(self, client):
        body = client.get("/api/public/defaulters", params={"min_reports": 1}).json()
        assert len(body["defaulters"]) == 3

    def test_defaulters_search_and_category(self, client):
        body = client.get(
            "/api/public/defaulters", params={"min_reports": 1, "search": "chennai"}
        ).json()
        assert [d["corrupt_person_name"] for d in body["defaulters"]] == ["S. Iyer"]
        assert body["search"] == "chennai"

        body = client.get(
            "/api/public/defaulters", params={"min_reports": 1, "category": "fraud"}
        ).json()
        assert [d["corrupt_person_name"] for d in body["defaulters"]] == ["S. Iyer"]

    def test_defaulters_rejects_unknown_category(self, client):
        response = client.get("/api/public/defaulters", params={"category": "theft"})
        assert response.status_code == 422

    def test_defaulters_rejects_zero(self, client):
        assert client.get("/api/public/defaulters", params={"min_reports": 0}).status_code == 422

    def test_statistics(self, client):
        body = client.get("/api/public/statistics").json()
        assert body["total_reports"] == 5
        assert body["pending_reports"] == 5
        assert body["warnings"] == []

    def test_report_list_hides_reporter(self, client):
        body = client.get("/api/public/reports").json()
        assert len(body["reports"]) == 5
        assert all("reporter_email" not in r for r in body["reports"])

    def test_person_reports(self, client):
        body = client.get("/api/public/people/verma/reports").json()
        assert len(body["reports"]) == 3

    def test_submit_report(self, client):
        response = client.post("/api/public/reports", json={
            "corrupt_person_name": "J. Fernandes",
            "designation": "Excise Officer",
            "area_region": "Goa",
            "description": "Asked for money to renew a licence.",
            "category": "extortion",
            "is_anonymous": True,
            "reporter_email": "should-be-dropped@example.org",
        })
        assert response.status_code == 201
        assert response.json()["status"] == "pending"

        body = client.get("/api/public/defaulters", params={"min_reports": 1}).json()
        assert "J. Fernandes" in [d["corrupt_person_name"] for d in body["defaulters"]]

    def test_read_failure_is_empty_view(self, client):
        app.state.analytics._store = FailingStore(message="db down", failing={"fetch_reports"})
        body = client.get("/api/public/heatmap").json()
        assert body["regions"] == []
        assert body["error"] == "db down"


class TestAdmin:

    def test_requires_session(self, client):
        assert client.get("/api/admin/stats").status_code == 401
        assert client.post("/api/admin/reports/bulk-delete", json={"ids": ["x"]}).status_code == 401

    def test_non_admin_forbidden(self, client, reports):
        _login(client, "citizen@example.org")
        assert client.get("/api/admin/stats").status_code == 403
        response = client.post("/api/admin/reports/bulk-delete", json={"ids": [reports[0].id]})
        assert response.status_code == 403
        assert response.json()["detail"] == "Admin access required"
        assert app.state.report_store.count_reports() == 5

    def test_me(self, client):
        _login(client, ADMIN_EMAIL)
        body = client.get("/api/admin/me").json()
        assert body == {"email": ADMIN_EMAIL, "display_name": "", "is_admin": True}

    def test_stats(self, client):
        _login(client, ADMIN_EMAIL)
        body = client.get("/api/admin/stats").json()
        assert body["total_reports"] == 5
        assert body["anonymous_reports"] == 4
        assert body["total_users"] == 2

    def test_admin_report_list_includes_reporter(self, client):
        _login(client, ADMIN_EMAIL)
        body = client.get("/api/admin/reports", params={"search": "citizen@"}).json()
        assert body["count"] == 1
        assert body["reports"][0]["reporter_email"] == "citizen@example.org"

    def test_reporter_roster(self, client):
        _login(client, ADMIN_EMAIL)
        body = client.get("/api/admin/users").json()
        assert body["total"] == 1
        assert body["reporters"][0]["email"] == "citizen@example.org"
        assert body["reporters"][0]["report_count"] == 1

    def test_reporter_roster_forbidden(self, client):
        _login(client, "citizen@example.org")
        assert client.get("/api/admin/users").status_code == 403
        assert client.get("/api/admin/users/citizen@example.org/reports").status_code == 403

    def test_reports_by_reporter(self, client):
        _login(client, ADMIN_EMAIL)
        body = client.get("/api/admin/users/citizen@example.org/reports").json()
        assert body["count"] == 1
        assert body["reports"][0]["corrupt_person_name"] == "K. Patel"

    def test_bulk_status_then_refresh(self, client, reports):
        _login(client, ADMIN_EMAIL)
        ids = [r.id for r in reports[:3]]

        body = client.post("/api/admin/reports/bulk-status", json={"ids": ids, "status": "verified"}).json()

        assert body["success"] == 3
        assert body["failed"] == 0
        stats = client.get("/api/public/statistics").json()
        assert stats["verified_reports"] == 3
        assert stats["pending_reports"] == 2

    def test_bulk_status_invalid(self, client, reports):
        _login(client, ADMIN_EMAIL)
        body = client.post(
            "/api/admin/reports/bulk-status", json={"ids": [reports[0].id], "status": "closed"}
        ).json()
        assert body["failed"] == 1
        assert body["errors"] == ["Invalid status: closed"]

    def test_bulk_delete(self, client, reports):
        _login(client, ADMIN_EMAIL)
        body = client.post("/api/admin/reports/bulk-delete", json={"ids": [reports[3].id]}).json()
        assert body["success"] == 1
        heatmap = client.get("/api/public/heatmap").json()
        assert "Chennai" not in [r["region"] for r in heatmap["regions"]]

    def test_bulk_empty(self, client):
        _login(client, ADMIN_EMAIL)
        body = client.post("/api/admin/reports/bulk-delete", json={"ids": []}).json()
        assert (body["success"], body["failed"]) == (0, 0)

    def test_dev_login_disabled_by_default(self, client, monkeypatch):
        monkeypatch.delenv("CORRUPTIONWATCH_DEV_LOGIN", raising=False)
        assert client.post("/api/admin/session", json={"email": ADMIN_EMAIL}).status_code == 404

    def test_dev_login(self, client, monkeypatch):
        monkeypatch.setenv("CORRUPTIONWATCH_DEV_LOGIN", "1")
        response = client.post("/api/admin/session", json={"email": ADMIN_EMAIL})
        assert response.status_code == 200
        assert response.json()["is_admin"] is True
        assert client.get("/api/admin/me").status_code == 200

        client.post("/api/admin/logout")
        assert client.get("/api/admin/me").status_code == 401


class TestOperations:

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["healthy"] is True
        assert body["checks"]["report_store"]["report_count"] == 5

    def test_metrics(self, client):
        client.get("/api/public/heatmap")
        body = client.get("/metrics").json()
        assert body["aggregations_total"] >= 1
        assert body["requests_total"] >= 1

    def test_request_id_header(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc123"})
        assert response.headers["x-request-id"] == "abc123"
