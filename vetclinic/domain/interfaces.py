"""
Repository and storage contracts for the clinic domain.

Each entity has a reader and a writer interface; services depend on the
combined ``I*Repository`` so tests can hand them ``Mock(spec=...)`` doubles.
Writers only flush: committing is the caller's unit of work.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from .entities import (
    Appointment,
    Client,
    Page,
    PageRequest,
    Pet,
    Treatment,
    UserAccount,
    Veterinarian,
)


class IClientReader(ABC):
    """Interface for client read operations."""

    @abstractmethod
    def get_by_id(self, client_id: int) -> Optional[Client]:
        """Get client by ID."""
        pass

    @abstractmethod
    def get_by_national_id(self, national_id: str) -> Optional[Client]:
        """Get client by national ID (exact match)."""
        pass

    @abstractmethod
    def find_page(
        self, page_request: PageRequest, owner_id: Optional[int] = None
    ) -> Page[Client]:
        """Filtered, sorted page of clients, optionally scoped to one owner."""
        pass

    @abstractmethod
    def search_by_surname(
        self, surname: str, owner_id: Optional[int] = None
    ) -> List[Client]:
        """Case-insensitive substring search over surnames, optionally scoped to one owner."""
        pass

    @abstractmethod
    def count(self) -> int:
        pass


class IClientWriter(ABC):
    """Interface for client write operations."""

    @abstractmethod
    def create(self, client: Client) -> Client:
        pass

    @abstractmethod
    def update(self, client: Client) -> Client:
        pass

    @abstractmethod
    def delete(self, client_id: int) -> bool:
        """Delete a client together with its pets and their history."""
        pass


class IClientRepository(IClientReader, IClientWriter):
    """Client reads and writes."""

    pass


class IPetReader(ABC):
    """Interface for pet read operations."""

    @abstractmethod
    def get_by_id(self, pet_id: int) -> Optional[Pet]:
        pass

    @abstractmethod
    def find_page(
        self, page_request: PageRequest, owner_id: Optional[int] = None
    ) -> Page[Pet]:
        pass

    @abstractmethod
    def find_by_client_id(self, client_id: int) -> List[Pet]:
        pass

    @abstractmethod
    def count(self) -> int:
        pass


class IPetWriter(ABC):
    """Interface for pet write operations."""

    @abstractmethod
    def create(self, pet: Pet) -> Pet:
        pass

    @abstractmethod
    def update(self, pet: Pet) -> Pet:
        pass

    @abstractmethod
    def delete(self, pet_id: int) -> bool:
        pass


class IPetRepository(IPetReader, IPetWriter):
    """Pet reads and writes."""

    pass


class IVeterinarianReader(ABC):
    """Interface for veterinarian read operations."""

    @abstractmethod
    def get_by_id(self, veterinarian_id: int) -> Optional[Veterinarian]:
        pass

    @abstractmethod
    def get_by_license_number(self, license_number: str) -> Optional[Veterinarian]:
        pass

    @abstractmethod
    def find_page(self, page_request: PageRequest) -> Page[Veterinarian]:
        pass

    @abstractmethod
    def count(self) -> int:
        pass


class IVeterinarianWriter(ABC):
    """Interface for veterinarian write operations."""

    @abstractmethod
    def create(self, veterinarian: Veterinarian) -> Veterinarian:
        pass

    @abstractmethod
    def update(self, veterinarian: Veterinarian) -> Veterinarian:
        pass

    @abstractmethod
    def delete(self, veterinarian_id: int) -> bool:
        pass


class IVeterinarianRepository(IVeterinarianReader, IVeterinarianWriter):
    """Veterinarian reads and writes."""

    pass


class IAppointmentReader(ABC):
    """Interface for appointment read operations."""

    @abstractmethod
    def get_by_id(self, appointment_id: int) -> Optional[Appointment]:
        """Get appointment by ID, including its treatments."""
        pass

    @abstractmethod
    def find_page(
        self, page_request: PageRequest, owner_id: Optional[int] = None
    ) -> Page[Appointment]:
        pass

    @abstractmethod
    def find_by_pet_id(self, pet_id: int) -> List[Appointment]:
        """Clinical history of a pet, newest first."""
        pass

    @abstractmethod
    def find_by_veterinarian_id(self, veterinarian_id: int) -> List[Appointment]:
        """Agenda of a veterinarian, oldest first."""
        pass

    @abstractmethod
    def find_between(self, start: datetime, end: datetime) -> List[Appointment]:
        pass

    @abstractmethod
    def find_recent(self, limit: int = 5) -> List[Appointment]:
        pass

    @abstractmethod
    def count(self) -> int:
        pass


class IAppointmentWriter(ABC):
    """Interface for appointment write operations."""

    @abstractmethod
    def create(self, appointment: Appointment) -> Appointment:
        pass

    @abstractmethod
    def update(self, appointment: Appointment) -> Appointment:
        """Persist scalar fields and references. Never touches treatments."""
        pass

    @abstractmethod
    def delete(self, appointment_id: int) -> bool:
        """Delete an appointment and, by cascade, its treatments."""
        pass

    @abstractmethod
    def clear_veterinarian(self, appointment_id: int) -> None:
        """Null the veterinarian reference of one appointment."""
        pass


class IAppointmentRepository(IAppointmentReader, IAppointmentWriter):
    """Appointment reads and writes."""

    pass


class ITreatmentReader(ABC):
    """Interface for treatment read operations."""

    @abstractmethod
    def get_by_id(self, treatment_id: int) -> Optional[Treatment]:
        pass

    @abstractmethod
    def find_page(
        self, page_request: PageRequest, owner_id: Optional[int] = None
    ) -> Page[Treatment]:
        pass

    @abstractmethod
    def find_by_appointment_id(self, appointment_id: int) -> List[Treatment]:
        pass


class ITreatmentWriter(ABC):
    """Interface for treatment write operations."""

    @abstractmethod
    def create(self, treatment: Treatment) -> Treatment:
        pass

    @abstractmethod
    def update(self, treatment: Treatment) -> Treatment:
        pass

    @abstractmethod
    def delete(self, treatment_id: int) -> bool:
        pass


class ITreatmentRepository(ITreatmentReader, ITreatmentWriter):
    """Treatment reads and writes."""

    pass


class IUserRepository(ABC):
    """Interface for login account persistence."""

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[UserAccount]:
        """Return the stored account (with password hash) or None."""
        pass

    @abstractmethod
    def create(self, account: UserAccount) -> UserAccount:
        pass


class IImageStorage(ABC):
    """Byte-blob storage for pet pictures."""

    @abstractmethod
    def store(self, data: bytes, filename: str) -> str:
        """Persist ``data`` and return its identifier."""
        pass

    @abstractmethod
    def load(self, identifier: str) -> bytes:
        pass

    @abstractmethod
    def delete(self, identifier: str) -> None:
        pass
