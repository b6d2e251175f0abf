"""
Data Transfer Objects (DTOs) and validation schemas.

Request DTOs come in two flavours:

- ``*CreateRequest``: every field is read from the payload; missing keys are
  None and required fields must be present.
- ``*Patch``: missing keys stay ``UNSET`` and are left untouched by
  ``apply_to``. An explicit ``null`` clears nullable fields and is rejected
  for required ones.

``validate()`` normalizes fields in place (trims strings, parses dates and
numbers) and returns a field -> message map, empty when the input is valid.
Keys a DTO does not declare (for example ``treatments`` on an appointment
patch) are ignored.
"""

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from vetclinic.core.exceptions import ValidationError
from vetclinic.core.validation import (
    NATIONAL_ID_PATTERN,
    PHONE_PATTERN,
    BaseValidator,
    ValidationResult,
)
from vetclinic.domain.entities import (
    Appointment,
    Client,
    DashboardSummary,
    Page,
    Pet,
    Principal,
    Role,
    Treatment,
    Veterinarian,
)


class _Unset:
    """Marker for a field absent from a patch payload."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


def is_set(value: Any) -> bool:
    return value is not UNSET


def _from_payload(cls, data: Any, missing: Any):
    if not isinstance(data, dict):
        raise ValidationError({"body": "Request body must be a JSON object"})
    return cls(**{f.name: data.get(f.name, missing) for f in fields(cls)})


class FieldChecker:
    """Runs field checks on a DTO and writes cleaned values back.

    Fields holding ``UNSET`` are skipped, so the same rules serve create
    requests and patches.
    """

    def __init__(self, dto: Any, partial: bool = False) -> None:
        self.dto = dto
        self.partial = partial
        self.result = ValidationResult()

    @property
    def errors(self) -> Dict[str, str]:
        return self.result.errors

    def _value(self, name: str) -> Any:
        return getattr(self.dto, name)

    def required(self, name: str) -> None:
        value = self._value(name)
        if value is UNSET:
            return
        if self.partial and value is None:
            self.result.add_error(name, "Cannot be null")
            return
        BaseValidator.validate_required_field(value, name, self.result)

    def _clean(self, name: str, cleaner: Callable, **kwargs) -> None:
        value = self._value(name)
        if value is UNSET or name in self.result.errors:
            return
        setattr(self.dto, name, cleaner(value, name, self.result, **kwargs))

    def string(self, name: str, **kwargs) -> None:
        self._clean(name, BaseValidator.validate_string, **kwargs)

    def email(self, name: str) -> None:
        self._clean(name, BaseValidator.validate_email)

    def date_value(self, name: str, allow_future: bool = True) -> None:
        self._clean(name, BaseValidator.validate_date, allow_future=allow_future)

    def datetime_value(self, name: str) -> None:
        self._clean(name, BaseValidator.validate_datetime)

    def number(self, name: str, **kwargs) -> None:
        self._clean(name, BaseValidator.validate_number, **kwargs)

    def integer(self, name: str, **kwargs) -> None:
        self._clean(name, BaseValidator.validate_integer, **kwargs)


def _apply(patch: Any, target: Any) -> Any:
    for f in fields(patch):
        value = getattr(patch, f.name)
        if is_set(value):
            setattr(target, f.name, value)
    return target


def raise_if_invalid(errors: Dict[str, str]) -> None:
    if errors:
        raise ValidationError(errors)


# ---------------------------------------------------------------- clients


def _check_client(check: FieldChecker) -> Dict[str, str]:
    for name in ("name", "surname", "national_id", "phone"):
        check.required(name)
    check.string("name", min_length=2, max_length=100)
    check.string("surname", min_length=2, max_length=100)
    check.string(
        "national_id",
        pattern=NATIONAL_ID_PATTERN,
        pattern_message="Must be 8 digits followed by a letter",
    )
    check.string(
        "phone",
        pattern=PHONE_PATTERN,
        pattern_message="Must be a Spanish number in the form +34 600000000",
    )
    # Stored without spaces; responses carry formatted_phone for display
    if isinstance(check.dto.phone, str):
        check.dto.phone = check.dto.phone.replace(" ", "")
    check.string("address", max_length=255)
    check.email("email")
    return check.errors


@dataclass
class ClientCreateRequest:
    """DTO for client registration requests."""

    name: Optional[str] = None
    surname: Optional[str] = None
    national_id: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "ClientCreateRequest":
        return _from_payload(cls, data, None)

    def validate(self) -> Dict[str, str]:
        if isinstance(self.national_id, str):
            self.national_id = self.national_id.strip().upper()
        return _check_client(FieldChecker(self))

    def to_entity(self) -> Client:
        return Client(
            name=self.name,
            surname=self.surname,
            national_id=self.national_id,
            phone=self.phone,
            address=self.address,
            email=self.email,
        )


@dataclass
class ClientPatch:
    """DTO for partial client updates."""

    name: Any = UNSET
    surname: Any = UNSET
    national_id: Any = UNSET
    phone: Any = UNSET
    address: Any = UNSET
    email: Any = UNSET

    @classmethod
    def from_dict(cls, data: Any) -> "ClientPatch":
        return _from_payload(cls, data, UNSET)

    def validate(self) -> Dict[str, str]:
        if isinstance(self.national_id, str):
            self.national_id = self.national_id.strip().upper()
        return _check_client(FieldChecker(self, partial=True))

    def apply_to(self, client: Client) -> Client:
        return _apply(self, client)


# ------------------------------------------------------------------- pets


def _check_pet(check: FieldChecker) -> Dict[str, str]:
    for name in ("name", "species", "client_id"):
        check.required(name)
    check.string("name", min_length=2, max_length=50)
    check.string("species", max_length=50)
    check.string("breed", max_length=50)
    check.date_value("birth_date", allow_future=False)
    check.number("weight", min_value=0, strictly_greater=True)
    check.integer("client_id", min_value=1)
    return check.errors


@dataclass
class PetCreateRequest:
    """DTO for pet registration requests."""

    name: Optional[str] = None
    species: Optional[str] = None
    client_id: Optional[int] = None
    breed: Optional[str] = None
    birth_date: Optional[date] = None
    weight: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Any) -> "PetCreateRequest":
        return _from_payload(cls, data, None)

    def validate(self) -> Dict[str, str]:
        return _check_pet(FieldChecker(self))

    def to_entity(self) -> Pet:
        return Pet(
            name=self.name,
            species=self.species,
            breed=self.breed,
            birth_date=self.birth_date,
            weight=self.weight,
            client_id=self.client_id,
        )


@dataclass
class PetPatch:
    name: Any = UNSET
    species: Any = UNSET
    client_id: Any = UNSET
    breed: Any = UNSET
    birth_date: Any = UNSET
    weight: Any = UNSET

    @classmethod
    def from_dict(cls, data: Any) -> "PetPatch":
        return _from_payload(cls, data, UNSET)

    def validate(self) -> Dict[str, str]:
        return _check_pet(FieldChecker(self, partial=True))

    def apply_to(self, pet: Pet) -> Pet:
        return _apply(self, pet)


# ---------------------------------------------------------- veterinarians


def _check_veterinarian(check: FieldChecker) -> Dict[str, str]:
    for name in ("name", "surname", "license_number", "email"):
        check.required(name)
    check.string("name", min_length=2, max_length=100)
    check.string("surname", min_length=2, max_length=100)
    check.string("license_number", max_length=50)
    check.string("specialty", max_length=100)
    check.email("email")
    return check.errors


@dataclass
class VeterinarianCreateRequest:
    name: Optional[str] = None
    surname: Optional[str] = None
    license_number: Optional[str] = None
    email: Optional[str] = None
    specialty: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "VeterinarianCreateRequest":
        return _from_payload(cls, data, None)

    def validate(self) -> Dict[str, str]:
        return _check_veterinarian(FieldChecker(self))

    def to_entity(self) -> Veterinarian:
        return Veterinarian(
            name=self.name,
            surname=self.surname,
            license_number=self.license_number,
            specialty=self.specialty,
            email=self.email,
        )


@dataclass
class VeterinarianPatch:
    name: Any = UNSET
    surname: Any = UNSET
    license_number: Any = UNSET
    email: Any = UNSET
    specialty: Any = UNSET

    @classmethod
    def from_dict(cls, data: Any) -> "VeterinarianPatch":
        return _from_payload(cls, data, UNSET)

    def validate(self) -> Dict[str, str]:
        return _check_veterinarian(FieldChecker(self, partial=True))

    def apply_to(self, veterinarian: Veterinarian) -> Veterinarian:
        return _apply(self, veterinarian)


# ----------------------------------------------------------- appointments


def _check_appointment(check: FieldChecker) -> Dict[str, str]:
    for name in ("scheduled_at", "reason", "pet_id"):
        check.required(name)
    check.datetime_value("scheduled_at")
    check.string("reason", max_length=255)
    check.string("diagnosis")
    check.string("status", max_length=50)
    check.integer("pet_id", min_value=1)
    check.integer("veterinarian_id", min_value=1)
    return check.errors


@dataclass
class AppointmentCreateRequest:
    """DTO for appointment creation requests. Treatments are added separately."""

    pet_id: Optional[int] = None
    scheduled_at: Optional[datetime] = None
    reason: Optional[str] = None
    veterinarian_id: Optional[int] = None
    diagnosis: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "AppointmentCreateRequest":
        return _from_payload(cls, data, None)

    def validate(self) -> Dict[str, str]:
        return _check_appointment(FieldChecker(self))

    def to_entity(self) -> Appointment:
        return Appointment(
            scheduled_at=self.scheduled_at,
            reason=self.reason,
            diagnosis=self.diagnosis,
            status=self.status,
            pet_id=self.pet_id,
            veterinarian_id=self.veterinarian_id,
            treatments=[],
        )


@dataclass
class AppointmentPatch:
    """Partial appointment update. There is deliberately no treatments field."""

    pet_id: Any = UNSET
    scheduled_at: Any = UNSET
    reason: Any = UNSET
    veterinarian_id: Any = UNSET
    diagnosis: Any = UNSET
    status: Any = UNSET

    @classmethod
    def from_dict(cls, data: Any) -> "AppointmentPatch":
        return _from_payload(cls, data, UNSET)

    def validate(self) -> Dict[str, str]:
        return _check_appointment(FieldChecker(self, partial=True))

    def apply_to(self, appointment: Appointment) -> Appointment:
        return _apply(self, appointment)


# ------------------------------------------------------------- treatments

# Largest value the price column (NUMERIC(10, 2)) can hold
MAX_PRICE = 99_999_999.99


def _check_treatment(check: FieldChecker) -> Dict[str, str]:
    for name in ("description", "price", "appointment_id"):
        check.required(name)
    check.string("description", max_length=255)
    check.string("medication", max_length=255)
    check.string("observations")
    check.number("price", min_value=0, max_value=MAX_PRICE)
    check.integer("appointment_id", min_value=1)
    return check.errors


@dataclass
class TreatmentCreateRequest:
    appointment_id: Optional[int] = None
    description: Optional[str] = None
    price: Optional[float] = None
    medication: Optional[str] = None
    observations: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "TreatmentCreateRequest":
        return _from_payload(cls, data, None)

    def validate(self) -> Dict[str, str]:
        return _check_treatment(FieldChecker(self))

    def to_entity(self) -> Treatment:
        return Treatment(
            description=self.description,
            medication=self.medication,
            price=self.price,
            observations=self.observations,
            appointment_id=self.appointment_id,
        )


@dataclass
class TreatmentPatch:
    appointment_id: Any = UNSET
    description: Any = UNSET
    price: Any = UNSET
    medication: Any = UNSET
    observations: Any = UNSET

    @classmethod
    def from_dict(cls, data: Any) -> "TreatmentPatch":
        return _from_payload(cls, data, UNSET)

    def validate(self) -> Dict[str, str]:
        return _check_treatment(FieldChecker(self, partial=True))

    def apply_to(self, treatment: Treatment) -> Treatment:
        return _apply(self, treatment)


# ------------------------------------------------------------------- auth


@dataclass
class RegisterRequest:
    """DTO for account registration.

    CLIENT accounts carry the client fields (name, surname, national_id,
    phone, address); VETERINARIAN accounts carry name, surname,
    license_number and specialty. The account email doubles as the
    veterinarian's contact email.
    """

    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None
    name: Optional[str] = None
    surname: Optional[str] = None
    national_id: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    license_number: Optional[str] = None
    specialty: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "RegisterRequest":
        return _from_payload(cls, data, None)

    @property
    def parsed_role(self) -> Optional[Role]:
        try:
            return Role.parse(self.role)
        except ValueError:
            return None

    def validate(self) -> Dict[str, str]:
        check = FieldChecker(self)
        check.required("email")
        check.email("email")
        check.required("password")
        if isinstance(self.password, str) and 0 < len(self.password) < 8:
            check.result.add_error("password", "Must be at least 8 characters")

        role = self.parsed_role
        if role is None:
            check.result.add_error("role", "Must be VETERINARIAN or CLIENT")
            return check.errors

        if role == Role.OWNER:
            if isinstance(self.national_id, str):
                self.national_id = self.national_id.strip().upper()
            _check_client(check)
        else:
            check.required("name")
            check.required("surname")
            check.required("license_number")
            check.string("name", min_length=2, max_length=100)
            check.string("surname", min_length=2, max_length=100)
            check.string("license_number", max_length=50)
            check.string("specialty", max_length=100)
        return check.errors

    def client_entity(self) -> Client:
        return Client(
            name=self.name,
            surname=self.surname,
            national_id=self.national_id,
            phone=self.phone,
            address=self.address,
            email=self.email,
        )

    def veterinarian_entity(self) -> Veterinarian:
        return Veterinarian(
            name=self.name,
            surname=self.surname,
            license_number=self.license_number,
            specialty=self.specialty,
            email=self.email,
        )


@dataclass
class LoginRequest:
    email: Optional[str] = None
    password: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "LoginRequest":
        return _from_payload(cls, data, None)

    def validate(self) -> Dict[str, str]:
        check = FieldChecker(self)
        check.required("email")
        check.required("password")
        return check.errors


# -------------------------------------------------------------- responses


def _iso(value: Optional[Any]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class ClientResponse:
    id: int
    name: str
    surname: str
    full_name: str
    national_id: str
    phone: str
    formatted_phone: str
    address: Optional[str]
    email: Optional[str]
    pet_ids: List[int]

    @classmethod
    def from_domain(cls, client: Client) -> "ClientResponse":
        return cls(
            id=client.id,
            name=client.name,
            surname=client.surname,
            full_name=client.full_name,
            national_id=client.national_id,
            phone=client.phone,
            formatted_phone=client.formatted_phone,
            address=client.address,
            email=client.email,
            pet_ids=list(client.pet_ids),
        )

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass
class PetResponse:
    id: int
    name: str
    species: str
    breed: Optional[str]
    birth_date: Optional[date]
    weight: Optional[float]
    client_id: int
    client_name: Optional[str]
    has_image: bool

    @classmethod
    def from_domain(cls, pet: Pet) -> "PetResponse":
        return cls(
            id=pet.id,
            name=pet.name,
            species=pet.species,
            breed=pet.breed,
            birth_date=pet.birth_date,
            weight=pet.weight,
            client_id=pet.client_id,
            client_name=pet.client_name,
            has_image=bool(pet.image_id),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.__dict__)
        data["birth_date"] = _iso(self.birth_date)
        return data


@dataclass
class VeterinarianResponse:
    id: int
    name: str
    surname: str
    full_name: str
    license_number: str
    specialty: Optional[str]
    email: str

    @classmethod
    def from_domain(cls, vet: Veterinarian) -> "VeterinarianResponse":
        return cls(
            id=vet.id,
            name=vet.name,
            surname=vet.surname,
            full_name=vet.full_name,
            license_number=vet.license_number,
            specialty=vet.specialty,
            email=vet.email,
        )

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass
class TreatmentResponse:
    id: int
    description: str
    medication: Optional[str]
    price: float
    observations: Optional[str]
    appointment_id: int

    @classmethod
    def from_domain(cls, treatment: Treatment) -> "TreatmentResponse":
        return cls(
            id=treatment.id,
            description=treatment.description,
            medication=treatment.medication,
            price=treatment.price,
            observations=treatment.observations,
            appointment_id=treatment.appointment_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


@dataclass
class AppointmentResponse:
    id: int
    scheduled_at: Optional[datetime]
    reason: str
    diagnosis: Optional[str]
    status: Optional[str]
    pet_id: int
    pet_name: str
    veterinarian_id: Optional[int]
    veterinarian_name: str
    total_cost: float
    treatments: List[TreatmentResponse] = field(default_factory=list)

    @classmethod
    def from_domain(cls, appointment: Appointment) -> "AppointmentResponse":
        return cls(
            id=appointment.id,
            scheduled_at=appointment.scheduled_at,
            reason=appointment.reason,
            diagnosis=appointment.diagnosis,
            status=appointment.status,
            pet_id=appointment.pet_id,
            pet_name=appointment.pet_display_name,
            veterinarian_id=appointment.veterinarian_id,
            veterinarian_name=appointment.veterinarian_display_name,
            total_cost=appointment.total_cost,
            treatments=[TreatmentResponse.from_domain(t) for t in appointment.treatments],
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.__dict__)
        data["scheduled_at"] = _iso(self.scheduled_at)
        data["treatments"] = [t.to_dict() for t in self.treatments]
        return data


@dataclass
class DashboardResponse:
    total_clients: int
    total_pets: int
    total_veterinarians: int
    total_appointments: int
    recent_appointments: List[AppointmentResponse]

    @classmethod
    def from_domain(cls, summary: DashboardSummary) -> "DashboardResponse":
        return cls(
            total_clients=summary.total_clients,
            total_pets=summary.total_pets,
            total_veterinarians=summary.total_veterinarians,
            total_appointments=summary.total_appointments,
            recent_appointments=[
                AppointmentResponse.from_domain(a) for a in summary.recent_appointments
            ],
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.__dict__)
        data["recent_appointments"] = [a.to_dict() for a in self.recent_appointments]
        return data


@dataclass
class PrincipalResponse:
    email: str
    role: str
    client_id: Optional[int]
    veterinarian_id: Optional[int]

    @classmethod
    def from_domain(cls, principal: Principal) -> "PrincipalResponse":
        return cls(
            email=principal.email,
            role=principal.role.value,
            client_id=principal.client_id,
            veterinarian_id=principal.veterinarian_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


def page_to_dict(page: Page, converter: Callable[[Any], Any]) -> Dict[str, Any]:
    """Serialize a Page, converting each item with ``converter(item).to_dict()``."""
    return {
        "items": [converter(item).to_dict() for item in page.items],
        "page": page.page,
        "size": page.size,
        "total_elements": page.total,
        "total_pages": page.total_pages,
    }
