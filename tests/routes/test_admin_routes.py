# tests/routes/test_admin_routes.py
"""
Tests for admin broadcast and platform statistics.
"""

from fastapi.testclient import TestClient

from servicehub.models.user import User


class TestBroadcast:
    def test_admin_broadcast(self, client: TestClient, auth_headers_admin, mock_publish):
        response = client.post(
            "/api/v1/admin/broadcast",
            json={"title": "Maintenance", "message": "Back in 10 minutes"},
            headers=auth_headers_admin,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Announcement broadcast successfully"
        assert body["timestamp"]

        room, event = mock_publish.call_args.args
        assert room == "broadcast:all"
        assert event["type"] == "announcement"
        assert event["payload"]["title"] == "Maintenance"
        assert event["payload"]["message"] == "Back in 10 minutes"

    def test_customer_forbidden(self, client: TestClient, auth_headers_customer, mock_publish):
        response = client.post(
            "/api/v1/admin/broadcast",
            json={"title": "Hi", "message": "there"},
            headers=auth_headers_customer,
        )

        assert response.status_code == 403
        mock_publish.assert_not_called()

    def test_blank_title_rejected(self, client: TestClient, auth_headers_admin):
        response = client.post(
            "/api/v1/admin/broadcast",
            json={"title": "   ", "message": "there"},
            headers=auth_headers_admin,
        )

        assert response.status_code == 400


class TestStats:
    def test_admin_stats(
        self,
        client: TestClient,
        db,
        test_customer: User,
        test_provider: User,
        test_provider_2: User,
        test_admin: User,
        auth_headers_admin,
    ):
        test_provider_2.is_active = False
        db.commit()

        response = client.get("/api/v1/admin/stats", headers=auth_headers_admin)

        assert response.status_code == 200
        assert response.json() == {
            "total_users": 4,
            "total_customers": 1,
            "total_providers": 2,
            "active_users": 3,
        }

    def test_admin_stats_requires_admin(self, client: TestClient, auth_headers_provider):
        response = client.get("/api/v1/admin/stats", headers=auth_headers_provider)

        assert response.status_code == 403

    def test_public_stats(self, client: TestClient, test_customer: User, test_provider: User):
        response = client.get("/api/v1/stats")

        assert response.status_code == 200
        assert response.json()["total_users"] == 2
