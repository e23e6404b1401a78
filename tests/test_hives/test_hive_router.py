"""Tests for the hive API routes."""

from fastapi.testclient import TestClient

from myhive.auth.utils import create_access_token
from myhive.db.models import Hive, User


class TestHiveRoutes:
    """Tests for /api/hives."""

    def test_create_then_duplicate(self, manager_client: TestClient):
        """Test a created hive is returned and its public_id cannot be reused."""
        payload = {"public_id": "H-100", "label": "Meadow Hive"}

        response = manager_client.post("/api/hives", json=payload)
        assert response.status_code == 201
        hive = response.json()["hive"]
        assert hive["public_id"] == "H-100"
        assert hive["status"] == "active"
        assert hive["inspection_count"] == 0

        response = manager_client.post("/api/hives", json=payload)
        assert response.status_code == 409
        assert response.json()["detail"] == "Public ID already exists"

    def test_inspector_cannot_create(self, inspector_client: TestClient):
        """Test inspectors get 403 on hive creation."""
        response = inspector_client.post("/api/hives", json={"public_id": "H-1", "label": "Nope"})

        assert response.status_code == 403

    def test_invalid_payload(self, manager_client: TestClient):
        """Test an empty label is rejected."""
        response = manager_client.post("/api/hives", json={"public_id": "H-1", "label": ""})

        assert response.status_code == 422

    def test_list_and_detail(self, viewer_client: TestClient, test_hive: Hive, other_hive: Hive):
        """Test viewers can read their organisation's hives only."""
        response = viewer_client.get("/api/hives")
        assert response.status_code == 200
        assert [h["id"] for h in response.json()["hives"]] == [test_hive.id]

        response = viewer_client.get(f"/api/hives/{test_hive.id}")
        assert response.status_code == 200
        body = response.json()
        assert body["hive"]["label"] == "Hive One"
        assert body["inspections"] == []
        assert body["tasks"] == []

        assert viewer_client.get(f"/api/hives/{other_hive.id}").status_code == 404

    def test_patch(self, manager_client: TestClient, test_hive: Hive, other_hive: Hive):
        """Test patching a hive and the error cases."""
        response = manager_client.patch(f"/api/hives/{test_hive.id}", json={"status": "retired"})
        assert response.status_code == 200
        assert response.json()["hive"]["status"] == "retired"

        response = manager_client.patch(f"/api/hives/{test_hive.id}", json={})
        assert response.status_code == 400
        assert response.json()["detail"] == "No fields to update"

        response = manager_client.patch(f"/api/hives/{other_hive.id}", json={"label": "Mine"})
        assert response.status_code == 404

    def test_created_hive_can_be_inspected(self, manager_client: TestClient):
        """Test a hive created through the API accepts inspections."""
        hive_id = manager_client.post(
            "/api/hives", json={"public_id": "H-200", "label": "Fresh"}
        ).json()["hive"]["id"]

        response = manager_client.post(
            "/api/inspections",
            json={"hive_id": hive_id, "started_at": "2024-06-01T09:00:00Z", "client_uuid": "fresh-1"},
        )

        assert response.status_code == 201
        assert manager_client.get(f"/api/hives/{hive_id}").json()["hive"]["inspection_count"] == 1


class TestPublicLookup:
    """Tests for GET /api/hives/public/{public_id}."""

    def test_anonymous(self, client: TestClient, test_hive: Hive):
        """Test anonymous callers are told to log in without seeing the hive."""
        response = client.get("/api/hives/public/H-001")

        assert response.status_code == 200
        assert response.json() == {"requires_auth": True, "message": "Private hive, please log in"}

    def test_anonymous_unknown(self, client: TestClient, test_hive: Hive):
        """Test an unknown public_id is not found."""
        assert client.get("/api/hives/public/H-404").status_code == 404

    def test_authenticated_resolves_own_org(
        self,
        client: TestClient,
        test_viewer: User,
        other_inspector: User,
        test_hive: Hive,
        other_hive: Hive,
    ):
        """Test the same public_id resolves to each caller's own hive."""
        own = client.get(
            "/api/hives/public/H-001",
            headers={"Authorization": f"Bearer {create_access_token(test_viewer.id, test_viewer.org_id)}"},
        )
        other = client.get(
            "/api/hives/public/H-001",
            headers={
                "Authorization": f"Bearer {create_access_token(other_inspector.id, other_inspector.org_id)}"
            },
        )

        assert own.status_code == 200
        assert own.json()["hive"]["id"] == test_hive.id
        assert other.json()["hive"]["id"] == other_hive.id

    def test_authenticated_other_org_not_found(self, client: TestClient, test_viewer: User, other_hive: Hive):
        """Test a hive only another organisation has is not found for a logged-in caller."""
        response = client.get(
            "/api/hives/public/H-001",
            headers={"Authorization": f"Bearer {create_access_token(test_viewer.id, test_viewer.org_id)}"},
        )

        assert response.status_code == 404

    def test_invalid_token(self, client: TestClient, test_hive: Hive):
        """Test a bad token is rejected rather than treated as anonymous."""
        response = client.get("/api/hives/public/H-001", headers={"Authorization": "Bearer not-a-token"})

        assert response.status_code == 401
