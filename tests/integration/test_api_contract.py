"""
Integration tests for the shared API contract: error envelopes, validation
messages, pagination and the health check.
"""

import pytest

from tests.factories.api_seeder import CLIENT_PAYLOAD

DNI_LETTERS = "TRWAGMYFPDXBNJZSQVHLCKE"


def national_id(number: int) -> str:
    return f"{number:08d}{DNI_LETTERS[number % 23]}"


@pytest.mark.api
class TestErrorEnvelope:
    def test_not_found(self, client, staff_headers):
        response = client.get("/api/clients/999", headers=staff_headers)

        assert response.status_code == 404
        assert response.get_json() == {
            "success": False,
            "error": "not_found",
            "message": "Client with ID 999 not found",
        }

    def test_unknown_route(self, client):
        response = client.get("/api/nowhere")

        assert response.status_code == 404
        body = response.get_json()
        assert body["success"] is False
        assert body["error"] == "not_found"

    def test_method_not_allowed(self, client, staff_headers):
        response = client.post("/health", headers=staff_headers)

        assert response.status_code == 405
        assert response.get_json()["error"] == "method_not_allowed"

    def test_non_json_body(self, client, staff_headers):
        response = client.post(
            "/api/clients", data="name=Maria", headers=staff_headers
        )

        assert response.status_code == 400
        assert response.get_json()["errors"] == {
            "body": "Request body must be a JSON object"
        }


@pytest.mark.api
@pytest.mark.validation
class TestValidation:
    def test_field_errors_are_reported(self, client, staff_headers):
        response = client.post(
            "/api/clients",
            json={
                "name": "M",
                "surname": "Garcia",
                "national_id": "1234Z",
                "phone": "600123",
                "email": "not-an-email",
            },
            headers=staff_headers,
        )

        assert response.status_code == 400
        body = response.get_json()
        assert body["success"] is False
        assert body["error"] == "validation_error"
        assert set(body["errors"]) == {"name", "national_id", "phone", "email"}

    def test_missing_required_fields(self, client, staff_headers):
        response = client.post("/api/pets", json={}, headers=staff_headers)

        assert response.status_code == 400
        assert {"name", "species", "client_id"} <= set(response.get_json()["errors"])

    def test_national_id_normalized(self, client, staff_headers, seed):
        created = seed.client_record(national_id=" 12345678z ")
        assert created["national_id"] == "12345678Z"

    def test_patch_rejects_null_required_field(self, client, staff_headers, seed):
        created = seed.client_record()

        response = client.patch(
            f"/api/clients/{created['id']}", json={"surname": None}, headers=staff_headers
        )

        assert response.status_code == 400
        assert "surname" in response.get_json()["errors"]

    def test_patch_clears_nullable_field(self, client, staff_headers, seed):
        created = seed.client_record()

        response = client.patch(
            f"/api/clients/{created['id']}", json={"address": None}, headers=staff_headers
        )

        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["address"] is None
        assert data["surname"] == "Garcia"

    def test_pet_for_missing_client(self, client, staff_headers):
        response = client.post(
            "/api/pets",
            json={"name": "Rex", "species": "Dog", "client_id": 999},
            headers=staff_headers,
        )

        assert response.status_code == 404
        assert response.get_json()["message"] == "Client with ID 999 not found"


@pytest.mark.api
@pytest.mark.client
class TestConflicts:
    def test_duplicate_national_id(self, client, staff_headers, seed):
        seed.client_record()

        response = client.post(
            "/api/clients",
            json={**CLIENT_PAYLOAD, "name": "Marta"},
            headers=staff_headers,
        )

        assert response.status_code == 409
        body = response.get_json()
        assert body["error"] == "conflict"
        assert body["success"] is False

    def test_update_to_taken_national_id(self, client, staff_headers, seed):
        seed.client_record()
        other = seed.client_record(national_id=national_id(1))

        response = client.put(
            f"/api/clients/{other['id']}",
            json={"national_id": CLIENT_PAYLOAD["national_id"]},
            headers=staff_headers,
        )

        assert response.status_code == 409


@pytest.mark.api
@pytest.mark.search
class TestPagination:
    @pytest.fixture
    def clients(self, seed):
        surnames = ["Zapata", "Alonso", "Moreno", "Alonso", "Blanco"]
        return [
            seed.client_record(surname=surname, national_id=national_id(i))
            for i, surname in enumerate(surnames)
        ]

    def test_page_metadata(self, client, staff_headers, clients):
        response = client.get(
            "/api/clients", query_string={"page": 1, "size": 2}, headers=staff_headers
        )

        data = response.get_json()["data"]
        assert data["page"] == 1
        assert data["size"] == 2
        assert data["total_elements"] == 5
        assert data["total_pages"] == 3
        assert [c["id"] for c in data["items"]] == [clients[2]["id"], clients[3]["id"]]

    def test_sort_with_id_tie_breaker(self, client, staff_headers, clients):
        response = client.get(
            "/api/clients", query_string={"sort": "surname,asc"}, headers=staff_headers
        )

        items = response.get_json()["data"]["items"]
        assert [c["surname"] for c in items] == [
            "Alonso",
            "Alonso",
            "Blanco",
            "Moreno",
            "Zapata",
        ]
        assert items[0]["id"] < items[1]["id"]

    def test_descending_sort(self, client, staff_headers, clients):
        response = client.get(
            "/api/clients", query_string={"sort": "id,desc"}, headers=staff_headers
        )

        ids = [c["id"] for c in response.get_json()["data"]["items"]]
        assert ids == sorted(ids, reverse=True)

    def test_search(self, client, staff_headers, clients):
        response = client.get(
            "/api/clients", query_string={"search": "alon"}, headers=staff_headers
        )

        data = response.get_json()["data"]
        assert data["total_elements"] == 2
        assert {c["surname"] for c in data["items"]} == {"Alonso"}

    def test_surname_search_endpoint(self, client, staff_headers, clients):
        response = client.get(
            "/api/clients/search", query_string={"surname": "mor"}, headers=staff_headers
        )

        assert response.status_code == 200
        assert [c["surname"] for c in response.get_json()["data"]] == ["Moreno"]

    def test_page_past_the_end_is_empty(self, client, staff_headers, clients):
        data = client.get(
            "/api/clients", query_string={"page": 9}, headers=staff_headers
        ).get_json()["data"]

        assert data["items"] == []
        assert data["total_elements"] == 5

    def test_size_is_capped(self, client, staff_headers, clients):
        data = client.get(
            "/api/clients", query_string={"size": 10000}, headers=staff_headers
        ).get_json()["data"]

        assert data["size"] == 100

    @pytest.mark.parametrize(
        "query, field",
        [
            ({"sort": "password"}, "sort"),
            ({"page": -1}, "page"),
            ({"size": 0}, "size"),
            ({"sort": "surname,sideways"}, "sort"),
        ],
    )
    def test_invalid_parameters(self, client, staff_headers, query, field):
        response = client.get("/api/clients", query_string=query, headers=staff_headers)

        assert response.status_code == 400
        assert field in response.get_json()["errors"]


@pytest.mark.api
class TestHealth:
    def test_health_is_public(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.get_json() == {"status": "ok", "database": "ok"}

    def test_health_reports_database_failure(self, app, client, monkeypatch):
        database = app.extensions["vetclinic"].database
        monkeypatch.setattr(database, "ping", lambda: False)

        response = client.get("/health")

        assert response.status_code == 503
        assert response.get_json()["database"] == "unavailable"
