"""
Integration tests for pet picture upload and download.
"""

import io
from pathlib import Path

import pytest

from vetclinic.domain.entities import Role

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def _upload(client, pet_id, headers, data=PNG_BYTES, filename="rex.png"):
    return client.post(
        f"/api/pets/{pet_id}/image",
        data={"file": (io.BytesIO(data), filename)},
        headers=headers,
        content_type="multipart/form-data",
    )


@pytest.fixture
def pet(seed):
    return seed.pet(seed.client_record()["id"])


@pytest.mark.api
@pytest.mark.pet
class TestPetImage:
    def test_upload_and_download(self, client, staff_headers, pet):
        assert pet["has_image"] is False

        response = _upload(client, pet["id"], staff_headers)

        assert response.status_code == 201
        assert response.get_json()["data"]["has_image"] is True

        download = client.get(f"/api/pets/{pet['id']}/image", headers=staff_headers)
        assert download.status_code == 200
        assert download.mimetype == "image/png"
        assert download.data == PNG_BYTES

    def test_owner_can_download_own_pet_image(self, client, staff_headers, auth_headers, pet):
        _upload(client, pet["id"], staff_headers)

        response = client.get(
            f"/api/pets/{pet['id']}/image",
            headers=auth_headers(Role.OWNER, client_id=pet["client_id"]),
        )

        assert response.status_code == 200

    def test_replacing_image_removes_previous_file(self, client, app_config, staff_headers, pet):
        _upload(client, pet["id"], staff_headers)
        _upload(client, pet["id"], staff_headers, data=b"GIF89a-new", filename="rex.gif")

        stored = list(Path(app_config.image_storage_dir).iterdir())
        assert len(stored) == 1
        assert stored[0].suffix == ".gif"

    def test_missing_file_field(self, client, staff_headers, pet):
        response = client.post(
            f"/api/pets/{pet['id']}/image",
            data={},
            headers=staff_headers,
            content_type="multipart/form-data",
        )

        assert response.status_code == 400
        assert "file" in response.get_json()["errors"]

    def test_unsupported_extension(self, client, staff_headers, pet):
        response = _upload(client, pet["id"], staff_headers, filename="rex.exe")
        assert response.status_code == 400

    def test_download_without_image(self, client, staff_headers, pet):
        response = client.get(f"/api/pets/{pet['id']}/image", headers=staff_headers)
        assert response.status_code == 404

    def test_owner_cannot_upload(self, client, auth_headers, pet):
        response = _upload(
            client, pet["id"], auth_headers(Role.OWNER, client_id=pet["client_id"])
        )
        assert response.status_code == 403

    def test_deleting_pet_removes_image(self, client, app_config, staff_headers, pet):
        _upload(client, pet["id"], staff_headers)

        client.delete(f"/api/pets/{pet['id']}", headers=staff_headers)

        assert list(Path(app_config.image_storage_dir).iterdir()) == []
