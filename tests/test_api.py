from tests.conftest import admin_data

new_user = {
    "first_name": "Grace",
    "last_name": "Hopper",
    "email": "grace@example.com",
    "username": "grace",
    "password": "compilers",
}


def login(client, username, password):
    response = client.post(
        "/api/v1/auth/login", json={"username": username, "password": password}
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


class TestUsers:

    def test_list_users(self, client, admin_headers):
        response = client.get("/api/v1/users", headers=admin_headers)
        assert response.status_code == 200
        assert [user["username"] for user in response.json()] == [admin_data["username"]]

    def test_list_users_requires_token(self, client, installed):
        response = client.get("/api/v1/users")
        assert response.status_code in (401, 403)

    def test_get_user(self, client, admin_headers):
        response = client.get("/api/v1/users/1", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["email"] == admin_data["email"]

    def test_get_missing_user(self, client, admin_headers):
        response = client.get("/api/v1/users/999", headers=admin_headers)
        assert response.status_code == 404

    def test_admin_creates_user(self, client, admin_headers):
        response = client.post("/api/v1/users", json=new_user, headers=admin_headers)
        assert response.status_code == 201

        data = response.json()
        assert data["username"] == "grace"
        assert data["is_admin"] is False
        assert "password" not in data

        # The new account can log in with its own password
        login(client, "grace", "compilers")

    def test_duplicate_user_rejected(self, client, admin_headers):
        client.post("/api/v1/users", json=new_user, headers=admin_headers)
        response = client.post("/api/v1/users", json=new_user, headers=admin_headers)
        assert response.status_code == 400

    def test_short_password_rejected(self, client, admin_headers):
        weak = dict(new_user, password="weak")
        response = client.post("/api/v1/users", json=weak, headers=admin_headers)
        assert response.status_code == 422

    def test_non_admin_cannot_create_users(self, client, admin_headers):
        client.post("/api/v1/users", json=new_user, headers=admin_headers)
        headers = login(client, "grace", "compilers")

        other = dict(new_user, email="other@example.com", username="other")
        response = client.post("/api/v1/users", json=other, headers=headers)
        assert response.status_code == 403


class TestAppointments:

    appointment = {
        "title": "Dentist",
        "description": "Check-up",
        "start": "2026-11-02T09:00:00",
        "end": "2026-11-02T09:30:00",
    }

    def test_public_endpoint(self, client):
        response = client.get("/api/v1/appointments/public")
        assert response.status_code == 200
        assert response.json() == {"message": "Public appointment data"}

    def test_create_and_list(self, client, admin_headers):
        response = client.post(
            "/api/v1/appointments", json=self.appointment, headers=admin_headers
        )
        assert response.status_code == 201
        created = response.json()
        assert created["title"] == "Dentist"
        assert created["user_id"] == 1

        response = client.get("/api/v1/appointments", headers=admin_headers)
        assert response.status_code == 200
        assert [a["id"] for a in response.json()] == [created["id"]]

    def test_list_ordered_by_start(self, client, admin_headers):
        later = dict(self.appointment, title="Later",
                     start="2026-11-03T09:00:00", end="2026-11-03T10:00:00")
        client.post("/api/v1/appointments", json=later, headers=admin_headers)
        client.post("/api/v1/appointments", json=self.appointment, headers=admin_headers)

        response = client.get("/api/v1/appointments", headers=admin_headers)
        assert [a["title"] for a in response.json()] == ["Dentist", "Later"]

    def test_end_before_start_rejected(self, client, admin_headers):
        invalid = dict(self.appointment, end="2026-11-02T08:00:00")
        response = client.post("/api/v1/appointments", json=invalid, headers=admin_headers)
        assert response.status_code == 422

    def test_get_appointment(self, client, admin_headers):
        created = client.post(
            "/api/v1/appointments", json=self.appointment, headers=admin_headers
        ).json()

        response = client.get(f"/api/v1/appointments/{created['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["description"] == "Check-up"

    def test_other_users_appointments_hidden(self, client, admin_headers):
        created = client.post(
            "/api/v1/appointments", json=self.appointment, headers=admin_headers
        ).json()
        client.post("/api/v1/users", json=new_user, headers=admin_headers)
        headers = login(client, "grace", "compilers")

        response = client.get(f"/api/v1/appointments/{created['id']}", headers=headers)
        assert response.status_code == 404

        response = client.get("/api/v1/appointments", headers=headers)
        assert response.json() == []

    def test_requires_token(self, client, installed):
        response = client.get("/api/v1/appointments")
        assert response.status_code in (401, 403)


class TestGeneralEndpoints:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["installed"] is False

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "docs" in response.json()

    def test_unknown_path(self, client):
        response = client.get("/api/v1/does-not-exist")
        assert response.status_code == 404
        assert response.json()["error"] == "Not Found"
