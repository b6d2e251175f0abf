"""
Unit tests for ClientService and PetService.
"""

from unittest.mock import Mock

import pytest

from vetclinic.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from vetclinic.domain.entities import Client, PageRequest, Pet
from vetclinic.schemas.dtos import ClientCreateRequest, ClientPatch, PetCreateRequest
from vetclinic.services.client_service import ClientService
from vetclinic.services.pet_service import PetService
from tests.factories.repository_factories import (
    ClientRepositoryFactory,
    PetRepositoryFactory,
    create_mock_image_storage,
    create_unit_of_work,
)

VALID_CLIENT = {
    "name": "Maria",
    "surname": "Garcia",
    "national_id": "12345678z",
    "phone": "+34 600123456",
    "email": "maria@example.com",
}


@pytest.fixture
def mock_client_repo() -> Mock:
    return ClientRepositoryFactory.create_mock_full()


@pytest.fixture
def mock_pet_repo() -> Mock:
    return PetRepositoryFactory.create_mock_full()


@pytest.fixture
def image_storage() -> Mock:
    return create_mock_image_storage()


@pytest.fixture
def uow():
    return create_unit_of_work()


@pytest.fixture
def client_service(mock_client_repo, mock_pet_repo, uow, image_storage):
    return ClientService(mock_client_repo, mock_pet_repo, uow, image_storage=image_storage)


@pytest.fixture
def pet_service(mock_client_repo, mock_pet_repo, uow, image_storage):
    return PetService(mock_pet_repo, mock_client_repo, uow, image_storage=image_storage)


@pytest.mark.services
@pytest.mark.client
class TestClientService:
    def test_register_normalizes_national_id(
        self, client_service, mock_client_repo, staff_principal
    ):
        client = client_service.register_client(
            staff_principal, ClientCreateRequest.from_dict(VALID_CLIENT)
        )

        assert client.national_id == "12345678Z"
        mock_client_repo.get_by_national_id.assert_called_once_with("12345678Z")

    def test_duplicate_national_id_conflict(
        self, client_service, mock_client_repo, staff_principal, uow
    ):
        mock_client_repo.get_by_national_id.return_value = Client(id=1)

        with pytest.raises(ConflictError):
            client_service.register_client(
                staff_principal, ClientCreateRequest.from_dict(VALID_CLIENT)
            )

        mock_client_repo.create.assert_not_called()
        uow.session.rollback.assert_called_once()

    def test_update_to_taken_national_id(
        self, client_service, mock_client_repo, staff_principal
    ):
        mock_client_repo.get_by_id.return_value = Client(id=1, national_id="12345678Z")
        mock_client_repo.get_by_national_id.return_value = Client(id=2)

        with pytest.raises(ConflictError):
            client_service.update_client(
                staff_principal, 1, ClientPatch.from_dict({"national_id": "87654321X"})
            )
        mock_client_repo.update.assert_not_called()

    def test_delete_discards_pet_images_after_commit(
        self, client_service, mock_client_repo, mock_pet_repo, image_storage, staff_principal, uow
    ):
        mock_client_repo.get_by_id.return_value = Client(id=1)
        mock_pet_repo.find_by_client_id.return_value = [
            Pet(id=5, name="Rex", client_id=1, image_id="a" * 32 + ".png"),
            Pet(id=6, name="Mia", client_id=1),
        ]

        client_service.delete_client(staff_principal, 1)

        mock_client_repo.delete.assert_called_once_with(1)
        uow.session.commit.assert_called_once()
        image_storage.delete.assert_called_once_with("a" * 32 + ".png")

    def test_delete_missing_client(self, client_service, image_storage, staff_principal):
        with pytest.raises(NotFoundError, match="Client with ID 1"):
            client_service.delete_client(staff_principal, 1)
        image_storage.delete.assert_not_called()

    def test_owner_list_is_scoped(self, client_service, mock_client_repo, owner_principal):
        client_service.list_clients(owner_principal, PageRequest())
        mock_client_repo.find_page.assert_called_once_with(PageRequest(), owner_id=1)

    def test_owner_surname_search_is_scoped(
        self, client_service, mock_client_repo, owner_principal
    ):
        mock_client_repo.search_by_surname.return_value = [Client(id=1, surname="Garcia")]

        result = client_service.search_by_surname(owner_principal, "garc")

        assert [c.id for c in result] == [1]
        mock_client_repo.search_by_surname.assert_called_once_with("garc", owner_id=1)

    def test_staff_surname_search_is_unscoped(
        self, client_service, mock_client_repo, staff_principal
    ):
        client_service.search_by_surname(staff_principal, "garc")

        mock_client_repo.search_by_surname.assert_called_once_with("garc", owner_id=None)

    def test_owner_cannot_read_other_client(
        self, client_service, mock_client_repo, owner_principal
    ):
        mock_client_repo.get_by_id.return_value = Client(id=2)
        with pytest.raises(PermissionDeniedError):
            client_service.get_client(owner_principal, 2)


@pytest.mark.services
@pytest.mark.pet
class TestPetService:
    def test_register_requires_existing_client(
        self, pet_service, mock_pet_repo, staff_principal
    ):
        request = PetCreateRequest.from_dict(
            {"name": "Rex", "species": "dog", "client_id": 3}
        )
        with pytest.raises(NotFoundError, match="Client with ID 3"):
            pet_service.register_pet(staff_principal, request)
        mock_pet_repo.create.assert_not_called()

    def test_attach_image_replaces_previous(
        self, pet_service, mock_pet_repo, image_storage, staff_principal
    ):
        old_image = "b" * 32 + ".jpg"
        mock_pet_repo.get_by_id.return_value = Pet(
            id=5, name="Rex", client_id=1, image_id=old_image
        )

        pet = pet_service.attach_image(staff_principal, 5, b"data", "rex.png")

        assert pet.image_id == image_storage.store.return_value
        image_storage.delete.assert_called_once_with(old_image)

    def test_attach_image_discards_new_file_on_failure(
        self, pet_service, mock_pet_repo, image_storage, staff_principal
    ):
        mock_pet_repo.get_by_id.return_value = Pet(id=5, name="Rex", client_id=1)
        mock_pet_repo.update.side_effect = RuntimeError("db down")

        with pytest.raises(RuntimeError):
            pet_service.attach_image(staff_principal, 5, b"data", "rex.png")

        image_storage.delete.assert_called_once_with(image_storage.store.return_value)

    def test_load_image_without_picture(self, pet_service, mock_pet_repo, staff_principal):
        mock_pet_repo.get_by_id.return_value = Pet(id=5, name="Rex", client_id=1)
        with pytest.raises(NotFoundError, match="Image for pet with ID 5"):
            pet_service.load_image(staff_principal, 5)
