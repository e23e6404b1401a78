"""Tests for bearer token authentication."""

from datetime import timedelta
from uuid import uuid4

from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.orm import Session

from myhive.auth.utils import create_access_token, decode_access_token
from myhive.db.models import Organisation, User


class TestTokenUtils:
    """Tests for token encoding and decoding."""

    def test_round_trip_claims(self):
        """Test a minted token decodes to its user and organisation."""
        token = create_access_token("user-1", "org-1")

        data = decode_access_token(token)

        assert data is not None
        assert data.user_id == "user-1"
        assert data.org_id == "org-1"

    def test_expired_token(self):
        """Test an expired token is rejected."""
        token = create_access_token("user-1", "org-1", expires_delta=timedelta(minutes=-5))

        assert decode_access_token(token) is None

    def test_wrong_secret(self):
        """Test a token signed with another secret is rejected."""
        token = jwt.encode({"sub": "user-1", "type": "access"}, "not-the-secret", algorithm="HS256")

        assert decode_access_token(token) is None

    def test_non_access_token(self):
        """Test tokens of another type are rejected."""
        from myhive.config import get_settings

        settings = get_settings()
        token = jwt.encode(
            {"sub": "user-1", "type": "refresh"}, settings.secret_key, algorithm=settings.algorithm
        )

        assert decode_access_token(token) is None


class TestCurrentUser:
    """Tests for the current-user dependency."""

    def test_missing_token(self, client: TestClient):
        """Test requests without a token are unauthorized."""
        response = client.get("/api/tasks")

        assert response.status_code == 401

    def test_invalid_token(self, client: TestClient):
        """Test a malformed token is unauthorized."""
        response = client.get("/api/tasks", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_valid_token(self, client: TestClient, test_inspector: User):
        """Test a valid token authenticates its user."""
        token = create_access_token(test_inspector.id, test_inspector.org_id)

        response = client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json() == {"tasks": []}

    def test_unknown_user(self, client: TestClient, test_org: Organisation):
        """Test a token for a missing user is unauthorized."""
        token = create_access_token(str(uuid4()), test_org.id)

        response = client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_organisation_mismatch(
        self, client: TestClient, test_inspector: User, other_org: Organisation
    ):
        """Test a token whose organisation differs from the user's is unauthorized."""
        token = create_access_token(test_inspector.id, other_org.id)

        response = client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_inactive_user(self, client: TestClient, test_inspector: User, db: Session):
        """Test a disabled account is forbidden."""
        test_inspector.is_active = False
        db.commit()
        token = create_access_token(test_inspector.id, test_inspector.org_id)

        response = client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        assert response.json()["detail"] == "User account is disabled"


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client: TestClient):
        """Test the health check needs no authentication."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
