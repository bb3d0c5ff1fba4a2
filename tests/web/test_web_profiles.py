"""Tests for profile endpoints and caller identification."""


class TestRegisterProfile:
    """Tests for POST /api/profiles."""

    def test_register_learner(self, client):
        response = client.post(
            "/api/profiles",
            json={"full_name": "Noor", "email": "noor@example.com", "role": "learner"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["id"]
        assert data["role"] == "learner"

    def test_register_unknown_role(self, client):
        response = client.post("/api/profiles", json={"full_name": "Noor", "role": "admin"})
        assert response.status_code == 422

    def test_register_blank_name(self, client):
        response = client.post("/api/profiles", json={"full_name": "   ", "role": "learner"})
        assert response.status_code == 400


class TestReadProfile:
    """Tests for GET /api/profiles/{id}."""

    def test_read_existing(self, client, learner):
        response = client.get(f"/api/profiles/{learner.id}")
        assert response.status_code == 200
        assert response.json()["full_name"] == "Lin Learner"

    def test_read_missing(self, client):
        assert client.get("/api/profiles/nobody").status_code == 404


class TestCallerIdentity:
    """Tests for the X-User-Id header."""

    def test_missing_header(self, client):
        assert client.get("/api/progress").status_code == 401

    def test_unknown_user(self, client):
        assert client.get("/api/progress", headers={"X-User-Id": "ghost"}).status_code == 401

    def test_wrong_role(self, client, as_instructor):
        assert client.get("/api/progress", headers=as_instructor).status_code == 403
