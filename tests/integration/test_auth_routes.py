"""Integration tests for authentication routes."""

from ledgerly.domain.services.auth_service import AuthService
from tests.conftest import auth_headers


class TestRegister:
    """Tests for POST /api/v1/auth/register."""

    def test_register_returns_token(self, client):
        """Test a new owner gets a usable token."""
        response = client.post(
            "/api/v1/auth/register",
            json={
                "email": "new@studio.com",
                "password": "Secret@123",
                "full_name": "New Owner",
                "business_name": "New Studio",
            },
        )

        assert response.status_code == 201
        token = response.json()["access_token"]
        assert response.json()["token_type"] == "bearer"

        me = client.get("/api/v1/auth/me", headers=auth_headers(token))
        assert me.status_code == 200
        assert me.json()["email"] == "new@studio.com"
        assert me.json()["business_name"] == "New Studio"

    def test_register_duplicate_email(self, client, user):
        """Test an existing email is a conflict."""
        response = client.post(
            "/api/v1/auth/register",
            json={"email": user.email, "password": "Secret@123", "full_name": "Copy"},
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "Email already registered"

    def test_register_short_password(self, client):
        """Test the password length is validated."""
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "short@studio.com", "password": "abc", "full_name": "Short"},
        )

        assert response.status_code == 422


class TestLogin:
    """Tests for POST /api/v1/auth/login."""

    def test_login_success(self, client, user):
        """Test valid credentials return a token."""
        response = client.post(
            "/api/v1/auth/login",
            data={"username": "owner@test.com", "password": "Owner@123"},
        )

        assert response.status_code == 200
        payload = AuthService.decode_access_token(response.json()["access_token"])
        assert payload["sub"] == str(user.id)

    def test_login_wrong_password(self, client, user):
        """Test a wrong password is rejected."""
        response = client.post(
            "/api/v1/auth/login",
            data={"username": "owner@test.com", "password": "wrong"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Incorrect email or password"

    def test_login_inactive_user(self, client, inactive_user):
        """Test inactive users cannot log in."""
        response = client.post(
            "/api/v1/auth/login",
            data={"username": "inactive@test.com", "password": "Inactive@123"},
        )

        assert response.status_code == 401


class TestMe:
    """Tests for the current user endpoints."""

    def test_me_requires_token(self, client):
        """Test anonymous requests are rejected."""
        assert client.get("/api/v1/auth/me").status_code == 401

    def test_me_invalid_token(self, client):
        """Test a garbage token is rejected."""
        response = client.get("/api/v1/auth/me", headers=auth_headers("not-a-jwt"))

        assert response.status_code == 401

    def test_me_inactive_user(self, client, inactive_user):
        """Test a valid token of an inactive user is refused."""
        token = AuthService.create_access_token(data={"sub": str(inactive_user.id)})

        response = client.get("/api/v1/auth/me", headers=auth_headers(token))

        assert response.status_code == 400
        assert response.json()["detail"] == "Inactive user"

    def test_update_profile(self, client, token):
        """Test the name can be changed."""
        response = client.put(
            "/api/v1/auth/me",
            json={"full_name": "Renamed Owner"},
            headers=auth_headers(token),
        )

        assert response.status_code == 200
        assert response.json()["full_name"] == "Renamed Owner"
        assert response.json()["business_name"] == "Test Studio"

    def test_change_password(self, client, token):
        """Test the new password works for login."""
        response = client.post(
            "/api/v1/auth/change-password",
            json={"current_password": "Owner@123", "new_password": "Changed@456"},
            headers=auth_headers(token),
        )
        assert response.status_code == 204

        login = client.post(
            "/api/v1/auth/login",
            data={"username": "owner@test.com", "password": "Changed@456"},
        )
        assert login.status_code == 200

    def test_change_password_wrong_current(self, client, token):
        """Test the current password must match."""
        response = client.post(
            "/api/v1/auth/change-password",
            json={"current_password": "nope", "new_password": "Changed@456"},
            headers=auth_headers(token),
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Current password is incorrect"

    def test_email_change_keeps_token_valid(self, client, token):
        """Test the token still resolves after the email changes."""
        response = client.put(
            "/api/v1/auth/me",
            json={"email": "new@test.com"},
            headers=auth_headers(token),
        )
        assert response.status_code == 200

        me = client.get("/api/v1/auth/me", headers=auth_headers(token))

        assert me.status_code == 200
        assert me.json()["email"] == "new@test.com"

    def test_non_numeric_subject_rejected(self, client, user):
        """Test a token whose subject is not a user id is rejected."""
        token = AuthService.create_access_token(data={"sub": "owner@test.com"})

        response = client.get("/api/v1/auth/me", headers=auth_headers(token))

        assert response.status_code == 401
