"""
Mock repositories for service unit tests.

Each factory returns a ``Mock(spec=I...Repository)`` whose lookups find
nothing and whose writes echo their argument, so a test only configures the
calls it cares about.
"""

from unittest.mock import Mock

from sqlalchemy.orm import Session

from vetclinic.db.session import UnitOfWork
from vetclinic.domain.entities import Page
from vetclinic.domain.interfaces import (
    IAppointmentRepository,
    IClientRepository,
    IImageStorage,
    IPetRepository,
    ITreatmentRepository,
    IUserRepository,
    IVeterinarianRepository,
)


def _empty_page() -> Page:
    return Page(items=[], page=0, size=10, total=0)


class ClientRepositoryFactory:
    """Factory for creating Client repository mocks."""

    @staticmethod
    def create_mock_full() -> Mock:
        mock_repo = Mock(spec=IClientRepository)
        mock_repo.get_by_id.return_value = None
        mock_repo.get_by_national_id.return_value = None
        mock_repo.find_page.return_value = _empty_page()
        mock_repo.search_by_surname.return_value = []
        mock_repo.count.return_value = 0
        mock_repo.create.side_effect = lambda client: client
        mock_repo.update.side_effect = lambda client: client
        mock_repo.delete.return_value = True
        return mock_repo


class PetRepositoryFactory:
    """Factory for creating Pet repository mocks."""

    @staticmethod
    def create_mock_full() -> Mock:
        mock_repo = Mock(spec=IPetRepository)
        mock_repo.get_by_id.return_value = None
        mock_repo.find_page.return_value = _empty_page()
        mock_repo.find_by_client_id.return_value = []
        mock_repo.count.return_value = 0
        mock_repo.create.side_effect = lambda pet: pet
        mock_repo.update.side_effect = lambda pet: pet
        mock_repo.delete.return_value = True
        return mock_repo


class VeterinarianRepositoryFactory:
    """Factory for creating Veterinarian repository mocks."""

    @staticmethod
    def create_mock_full() -> Mock:
        mock_repo = Mock(spec=IVeterinarianRepository)
        mock_repo.get_by_id.return_value = None
        mock_repo.get_by_license_number.return_value = None
        mock_repo.find_page.return_value = _empty_page()
        mock_repo.count.return_value = 0
        mock_repo.create.side_effect = lambda vet: vet
        mock_repo.update.side_effect = lambda vet: vet
        mock_repo.delete.return_value = True
        return mock_repo


class AppointmentRepositoryFactory:
    """Factory for creating Appointment repository mocks."""

    @staticmethod
    def create_mock_full() -> Mock:
        mock_repo = Mock(spec=IAppointmentRepository)
        mock_repo.get_by_id.return_value = None
        mock_repo.find_page.return_value = _empty_page()
        mock_repo.find_by_pet_id.return_value = []
        mock_repo.find_by_veterinarian_id.return_value = []
        mock_repo.find_between.return_value = []
        mock_repo.find_recent.return_value = []
        mock_repo.count.return_value = 0
        mock_repo.create.side_effect = lambda appointment: appointment
        mock_repo.update.side_effect = lambda appointment: appointment
        mock_repo.delete.return_value = True
        mock_repo.clear_veterinarian.return_value = None
        return mock_repo


class TreatmentRepositoryFactory:
    """Factory for creating Treatment repository mocks."""

    @staticmethod
    def create_mock_full() -> Mock:
        mock_repo = Mock(spec=ITreatmentRepository)
        mock_repo.get_by_id.return_value = None
        mock_repo.find_page.return_value = _empty_page()
        mock_repo.find_by_appointment_id.return_value = []
        mock_repo.create.side_effect = lambda treatment: treatment
        mock_repo.update.side_effect = lambda treatment: treatment
        mock_repo.delete.return_value = True
        return mock_repo


class UserRepositoryFactory:
    """Factory for creating User repository mocks."""

    @staticmethod
    def create_mock_full() -> Mock:
        mock_repo = Mock(spec=IUserRepository)
        mock_repo.get_by_email.return_value = None
        mock_repo.create.side_effect = lambda account: account
        return mock_repo


def create_mock_image_storage() -> Mock:
    storage = Mock(spec=IImageStorage)
    storage.store.return_value = "0" * 32 + ".png"
    storage.load.return_value = b"\x89PNG"
    return storage


def create_unit_of_work() -> UnitOfWork:
    """Real UnitOfWork over a mocked session, so commit/rollback can be asserted."""
    return UnitOfWork(Mock(spec=Session))
