"""Tests for API endpoints."""
import uuid
from datetime import datetime

from ticketdesk.core.errors import StorageUnavailableError
from ticketdesk.models.models import UserType

NEW_TICKET = {
    "fullName": "Bob Jones",
    "email": "bob@example.com",
    "issueDescription": "The VPN drops every ten minutes.",
}


def _parse(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class TestPingEndpoint:
    def test_ping_endpoint(self, client):
        response = client.get("/ping")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["app"] == "ticketdesk-api"
        assert data["env"] == "dev"


class TestHealthEndpoints:
    def test_healthz(self, client):
        response = client.get("/healthz")
        assert response.status_code == 200
        assert "timestamp" in response.json()

    def test_readyz(self, client):
        response = client.get("/readyz")
        assert response.status_code == 200
        assert response.json()["checks"] == {"database": "ok", "ticket_store": "ok"}


class TestLoginEndpoint:
    def test_login_success_sets_cookie(self, client, app):
        user = app.state.auth_service.register("alice", "secret123", UserType.USER)
        response = client.post(
            "/api/auth/login", json={"username": "alice", "password": "secret123"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["userId"] == user.id
        assert data["userType"] == 1
        claims = app.state.token_service.validate_token(data["token"])
        assert claims == {"userId": str(user.id), "userType": "1"}

        cookie = response.headers["set-cookie"]
        assert cookie.startswith("AuthToken=")
        assert "HttpOnly" in cookie
        assert "samesite=strict" in cookie.lower()

    def test_login_failures_look_the_same(self, client, app):
        app.state.auth_service.register("alice", "secret123", UserType.USER)
        wrong = client.post("/api/auth/login", json={"username": "alice", "password": "nope"})
        unknown = client.post("/api/auth/login", json={"username": "nobody", "password": "x"})
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json() == {"detail": "Invalid username or password"}

    def test_login_requires_fields(self, client):
        response = client.post("/api/auth/login", json={"username": " ", "password": ""})
        assert response.status_code == 400


class TestRegisterEndpoint:
    def test_customer_self_registration(self, client):
        response = client.post(
            "/api/auth/register", json={"username": "carol", "password": "secret123"}
        )
        assert response.status_code == 201
        assert response.json()["userType"] == 0

    def test_duplicate_username(self, client):
        payload = {"username": "carol", "password": "secret123"}
        assert client.post("/api/auth/register", json=payload).status_code == 201
        assert client.post("/api/auth/register", json=payload).status_code == 409

    def test_staff_registration_requires_token(self, client):
        response = client.post(
            "/api/auth/register",
            json={"username": "dave", "password": "secret123", "userType": 1},
        )
        assert response.status_code == 401

    def test_staff_registration_forbidden_for_staff(self, client, staff_headers):
        response = client.post(
            "/api/auth/register",
            json={"username": "dave", "password": "secret123", "userType": 2},
            headers=staff_headers,
        )
        assert response.status_code == 403

    def test_admin_registers_staff(self, client, admin_headers):
        response = client.post(
            "/api/auth/register",
            json={"username": "dave", "password": "secret123", "userType": 1},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["userType"] == 1


class TestTicketSubmission:
    def test_create_ticket_is_public(self, client):
        response = client.post("/api/tickets", json=NEW_TICKET)
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "new"
        assert data["summary"] == ""
        assert data["imageUrl"] == ""
        assert data["createdAt"] == data["updatedAt"]
        uuid.UUID(data["id"])

    def test_validation_errors(self, client):
        response = client.post(
            "/api/tickets",
            json={"fullName": "B", "email": "not-an-email", "issueDescription": "short"},
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation failed"
        assert set(body["details"]) == {"fullName", "email", "issueDescription"}

    def test_missing_fields(self, client):
        response = client.post("/api/tickets", json={})
        assert response.status_code == 400
        assert response.json()["details"]["fullName"] == "Full name is required"


class TestTicketAccess:
    def test_list_requires_token(self, client):
        assert client.get("/api/tickets").status_code == 401

    def test_invalid_token_rejected(self, client):
        response = client.get("/api/tickets", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401

    def test_customer_forbidden(self, client, customer_headers):
        assert client.get("/api/tickets", headers=customer_headers).status_code == 403

    def test_cookie_token_accepted(self, client, app):
        app.state.auth_service.register("eve", "secret123", UserType.ADMIN)
        token = client.post(
            "/api/auth/login", json={"username": "eve", "password": "secret123"}
        ).json()["token"]
        client.cookies.clear()
        response = client.get("/api/tickets", headers={"Cookie": f"AuthToken={token}"})
        assert response.status_code == 200

    def test_staff_lists_tickets(self, client, staff_headers):
        client.post("/api/tickets", json=NEW_TICKET)
        response = client.get("/api/tickets", headers=staff_headers)
        assert response.status_code == 200
        assert len(response.json()) == 1


class TestTicketManagement:
    def _create(self, client):
        return client.post("/api/tickets", json=NEW_TICKET).json()

    def test_get_ticket(self, client, staff_headers):
        created = self._create(client)
        response = client.get(f"/api/tickets/{created['id']}", headers=staff_headers)
        assert response.status_code == 200
        assert response.json() == created

    def test_update_ticket(self, client, staff_headers):
        created = self._create(client)
        response = client.put(
            f"/api/tickets/{created['id']}",
            json={"status": "inProgress", "summary": "VPN flapping"},
            headers=staff_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "inProgress"
        assert data["summary"] == "VPN flapping"
        assert data["description"] == NEW_TICKET["issueDescription"]
        assert data["createdAt"] == created["createdAt"]
        assert _parse(data["updatedAt"]) > _parse(created["updatedAt"])

    def test_update_accepts_status_code(self, client, staff_headers):
        created = self._create(client)
        response = client.put(
            f"/api/tickets/{created['id']}", json={"status": 3}, headers=staff_headers
        )
        assert response.json()["status"] == "closed"

    def test_delete_ticket(self, client, staff_headers):
        created = self._create(client)
        url = f"/api/tickets/{created['id']}"
        assert client.delete(url, headers=staff_headers).status_code == 204
        assert client.get(url, headers=staff_headers).status_code == 404

    def test_missing_ticket_is_404(self, client, staff_headers):
        url = f"/api/tickets/{uuid.uuid4()}"
        assert client.get(url, headers=staff_headers).status_code == 404
        assert client.put(url, json={"summary": "x"}, headers=staff_headers).status_code == 404
        assert client.delete(url, headers=staff_headers).status_code == 404


class TestStorageFailure:
    def test_storage_error_is_generic_503(self, client, app, monkeypatch):
        def unavailable(*args, **kwargs):
            raise StorageUnavailableError("Unable to access /secret/path/tickets.json")

        monkeypatch.setattr(app.state.ticket_service, "create", unavailable)
        response = client.post("/api/tickets", json=NEW_TICKET)
        assert response.status_code == 503
        assert "/secret/path" not in response.text


class TestAdminEndpoints:
    def test_admin_requires_auth(self, client):
        assert client.get("/api/admin/users").status_code == 401

    def test_admin_forbidden_for_staff(self, client, staff_headers):
        assert client.get("/api/admin/users", headers=staff_headers).status_code == 403

    def test_list_users_hides_credentials(self, client, admin_headers):
        response = client.get("/api/admin/users", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == [{"id": 1, "username": "admin", "userType": 2}]

    def test_change_password(self, client, app, admin_headers):
        user = app.state.auth_service.register("frank", "old-secret", UserType.USER)
        response = client.put(
            f"/api/admin/users/{user.id}/password",
            json={"password": "new-secret"},
            headers=admin_headers,
        )
        assert response.status_code == 204
        assert app.state.auth_service.login("frank", "new-secret").success
        missing = client.put(
            "/api/admin/users/999/password", json={"password": "x"}, headers=admin_headers
        )
        assert missing.status_code == 404

    def test_delete_user(self, client, app, admin_headers):
        user = app.state.auth_service.register("frank", "secret123", UserType.USER)
        url = f"/api/admin/users/{user.id}"
        assert client.delete(url, headers=admin_headers).status_code == 204
        assert client.delete(url, headers=admin_headers).status_code == 404
