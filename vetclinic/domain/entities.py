"""
Domain entities - Pure business logic, no framework dependencies.

Ownership is one-directional: a parent holds its child collection and each
child carries its parent's id. ``Appointment.attach_treatment`` is the only
place that links both sides.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Generic, Iterable, List, Optional, TypeVar

T = TypeVar("T")


class Role(str, Enum):
    """Account roles. Values match what is stored in the users table."""

    STAFF = "VETERINARIAN"
    OWNER = "CLIENT"

    @classmethod
    def parse(cls, value) -> "Role":
        if isinstance(value, Role):
            return value
        normalized = str(value or "").strip().upper()
        for role in cls:
            if normalized in (role.value, role.name):
                return role
        raise ValueError(f"Unknown role: {value!r}")


@dataclass
class Principal:
    """Authenticated identity derived from a validated token.

    Implements the attributes Flask-Login expects from ``current_user``.
    """

    email: str
    role: Role
    client_id: Optional[int] = None
    veterinarian_id: Optional[int] = None

    is_authenticated = True
    is_active = True
    is_anonymous = False

    def get_id(self) -> str:
        return self.email

    @property
    def is_staff(self) -> bool:
        return self.role == Role.STAFF


@dataclass
class Client:
    """Domain entity representing a pet owner."""

    id: Optional[int] = None
    name: str = ""
    surname: str = ""
    national_id: str = ""
    phone: str = ""
    address: Optional[str] = None
    email: Optional[str] = None
    pet_ids: List[int] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}".strip()

    @property
    def formatted_phone(self) -> str:
        """Phone normalized to ``+34 NNNNNNNNN``."""
        if not self.phone:
            return ""
        digits = self.phone.replace(" ", "")
        if not digits.startswith("+34"):
            digits = "+34" + digits.lstrip("+").removeprefix("34")
        return f"{digits[:3]} {digits[3:]}"


@dataclass
class Pet:
    """Domain entity representing a patient."""

    id: Optional[int] = None
    name: str = ""
    species: str = ""
    breed: Optional[str] = None
    birth_date: Optional[date] = None
    weight: Optional[float] = None
    client_id: int = 0
    client_name: Optional[str] = None
    image_id: Optional[str] = None

    def __post_init__(self):
        """Validate business rules."""
        if self.weight is not None and self.weight <= 0:
            raise ValueError("Weight must be positive")


@dataclass
class Veterinarian:
    """Domain entity representing a member of the medical staff."""

    id: Optional[int] = None
    name: str = ""
    surname: str = ""
    license_number: str = ""
    specialty: Optional[str] = None
    email: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}".strip()


@dataclass
class Treatment:
    """Billable line of an appointment. Cannot exist without one."""

    id: Optional[int] = None
    description: str = ""
    medication: Optional[str] = None
    price: float = 0.0
    observations: Optional[str] = None
    appointment_id: Optional[int] = None
    owner_id: Optional[int] = None

    def __post_init__(self):
        """Validate business rules."""
        if self.price is None or self.price < 0:
            raise ValueError("Price cannot be negative")


def compute_total_cost(treatments: Iterable[Treatment]) -> float:
    """Sum of treatment prices; 0.0 for an empty collection."""
    return round(math.fsum(t.price for t in treatments), 2)


@dataclass
class Appointment:
    """Domain entity for an appointment and its treatments."""

    id: Optional[int] = None
    scheduled_at: Optional[datetime] = None
    reason: str = ""
    diagnosis: Optional[str] = None
    status: Optional[str] = None
    pet_id: int = 0
    veterinarian_id: Optional[int] = None
    pet_name: Optional[str] = None
    veterinarian_name: Optional[str] = None
    owner_id: Optional[int] = None
    treatments: List[Treatment] = field(default_factory=list)

    @property
    def total_cost(self) -> float:
        # Recomputed on every read, never stored
        return compute_total_cost(self.treatments)

    @property
    def pet_display_name(self) -> str:
        return self.pet_name or "Pet deleted"

    @property
    def veterinarian_display_name(self) -> str:
        return self.veterinarian_name or "Unassigned"

    def attach_treatment(self, treatment: Treatment) -> Treatment:
        """Link a treatment to this appointment, updating both sides."""
        treatment.appointment_id = self.id
        treatment.owner_id = self.owner_id
        self.treatments.append(treatment)
        return treatment


@dataclass
class PageRequest:
    """Paging, sorting and free-text search parameters for list queries."""

    page: int = 0
    size: int = 10
    sort: str = "id"
    direction: str = "asc"
    search: Optional[str] = None

    @property
    def offset(self) -> int:
        return self.page * self.size

    @property
    def search_text(self) -> Optional[str]:
        if self.search is None:
            return None
        stripped = self.search.strip()
        return stripped or None


@dataclass
class Page(Generic[T]):
    """One page of results plus the totals needed to navigate."""

    items: List[T]
    page: int
    size: int
    total: int

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return math.ceil(self.total / self.size)


@dataclass
class DashboardSummary:
    """Clinic-wide counters and recent activity."""

    total_clients: int = 0
    total_pets: int = 0
    total_veterinarians: int = 0
    total_appointments: int = 0
    recent_appointments: List[Appointment] = field(default_factory=list)


@dataclass
class UserAccount:
    """Login account. Exactly one of client_id / veterinarian_id is set."""

    id: Optional[int] = None
    email: str = ""
    password_hash: str = ""
    role: Role = Role.OWNER
    client_id: Optional[int] = None
    veterinarian_id: Optional[int] = None

    def to_principal(self) -> Principal:
        return Principal(
            email=self.email,
            role=self.role,
            client_id=self.client_id,
            veterinarian_id=self.veterinarian_id,
        )
