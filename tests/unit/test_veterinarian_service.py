"""
Unit tests for VeterinarianService, focused on deletion keeping appointments.
"""

from datetime import datetime
from unittest.mock import Mock, call

import pytest

from vetclinic.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from vetclinic.domain.entities import Appointment, Veterinarian
from vetclinic.schemas.dtos import VeterinarianCreateRequest, VeterinarianPatch
from vetclinic.services.veterinarian_service import VeterinarianService
from tests.factories.repository_factories import (
    AppointmentRepositoryFactory,
    VeterinarianRepositoryFactory,
    create_unit_of_work,
)


@pytest.fixture
def mock_vet_repo() -> Mock:
    repo = VeterinarianRepositoryFactory.create_mock_full()
    repo.get_by_id.return_value = Veterinarian(
        id=2, name="Ana", surname="Lopez", license_number="LIC-1", email="ana@clinic.test"
    )
    return repo


@pytest.fixture
def mock_appointment_repo() -> Mock:
    repo = AppointmentRepositoryFactory.create_mock_full()
    repo.find_by_veterinarian_id.return_value = [
        Appointment(id=11, scheduled_at=datetime(2024, 5, 1), pet_id=5, veterinarian_id=2),
        Appointment(id=12, scheduled_at=datetime(2024, 5, 2), pet_id=6, veterinarian_id=2),
    ]
    return repo


@pytest.fixture
def uow():
    return create_unit_of_work()


@pytest.fixture
def service(mock_vet_repo, mock_appointment_repo, uow) -> VeterinarianService:
    return VeterinarianService(mock_vet_repo, mock_appointment_repo, uow)


@pytest.mark.services
@pytest.mark.veterinarian
class TestVeterinarianDeletion:
    def test_delete_unassigns_appointments(
        self, service, mock_vet_repo, mock_appointment_repo, staff_principal, uow
    ):
        unassigned = service.delete_veterinarian(staff_principal, 2)

        assert unassigned == 2
        mock_appointment_repo.clear_veterinarian.assert_has_calls([call(11), call(12)])
        mock_appointment_repo.delete.assert_not_called()
        mock_vet_repo.delete.assert_called_once_with(2)
        uow.session.commit.assert_called_once()

    def test_delete_missing_veterinarian(
        self, service, mock_vet_repo, mock_appointment_repo, staff_principal, uow
    ):
        mock_vet_repo.get_by_id.return_value = None

        with pytest.raises(NotFoundError, match="Veterinarian with ID 2"):
            service.delete_veterinarian(staff_principal, 2)

        mock_appointment_repo.clear_veterinarian.assert_not_called()
        mock_vet_repo.delete.assert_not_called()
        uow.session.rollback.assert_called_once()

    def test_failure_midway_rolls_back(
        self, service, mock_vet_repo, mock_appointment_repo, staff_principal, uow
    ):
        mock_vet_repo.delete.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            service.delete_veterinarian(staff_principal, 2)

        uow.session.rollback.assert_called_once()
        uow.session.commit.assert_not_called()

    def test_owner_cannot_delete(self, service, mock_vet_repo, owner_principal):
        with pytest.raises(PermissionDeniedError):
            service.delete_veterinarian(owner_principal, 2)
        mock_vet_repo.delete.assert_not_called()


@pytest.mark.services
@pytest.mark.veterinarian
class TestVeterinarianRegistration:
    def test_duplicate_license_conflict(self, service, mock_vet_repo, staff_principal):
        mock_vet_repo.get_by_license_number.return_value = Veterinarian(id=9)
        request = VeterinarianCreateRequest.from_dict(
            {
                "name": "Luis",
                "surname": "Perez",
                "license_number": "LIC-1",
                "email": "luis@clinic.test",
            }
        )

        with pytest.raises(ConflictError):
            service.register_veterinarian(staff_principal, request)
        mock_vet_repo.create.assert_not_called()

    def test_license_change_to_taken_number(
        self, service, mock_vet_repo, staff_principal
    ):
        mock_vet_repo.get_by_license_number.return_value = Veterinarian(id=9)

        with pytest.raises(ConflictError):
            service.update_veterinarian(
                staff_principal, 2, VeterinarianPatch.from_dict({"license_number": "LIC-9"})
            )

    def test_owner_may_read(self, service, owner_principal):
        assert service.get_veterinarian(owner_principal, 2).license_number == "LIC-1"
