"""
Unit tests for request DTO parsing and validation.
"""

from datetime import date, datetime

import pytest

from vetclinic.core.exceptions import ValidationError
from vetclinic.domain.entities import Appointment, Page, Pet, Role
from vetclinic.schemas.dtos import (
    MAX_PRICE,
    UNSET,
    AppointmentPatch,
    ClientCreateRequest,
    PetCreateRequest,
    PetPatch,
    RegisterRequest,
    TreatmentCreateRequest,
    is_set,
    page_to_dict,
)


@pytest.mark.validation
class TestPatchSemantics:
    """Absent keys stay UNSET; explicit nulls are kept as None."""

    def test_absent_fields_are_unset(self):
        patch = PetPatch.from_dict({"name": "Rex"})

        assert patch.name == "Rex"
        assert patch.breed is UNSET
        assert not is_set(patch.weight)

    def test_explicit_null_clears_nullable_field(self):
        pet = Pet(id=1, name="Rex", species="dog", breed="Beagle", client_id=1)
        patch = PetPatch.from_dict({"breed": None})

        assert patch.validate() == {}
        patch.apply_to(pet)

        assert pet.breed is None
        assert pet.name == "Rex"

    def test_explicit_null_rejected_for_required_field(self):
        patch = PetPatch.from_dict({"name": None})
        assert patch.validate() == {"name": "Cannot be null"}

    def test_appointment_patch_has_no_treatments(self):
        appointment = Appointment(id=1, reason="Checkup", pet_id=1, treatments=[])
        patch = AppointmentPatch.from_dict({"treatments": [{"price": 1}], "status": "DONE"})

        assert patch.validate() == {}
        patch.apply_to(appointment)

        assert appointment.status == "DONE"
        assert appointment.treatments == []

    def test_non_object_body_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            PetPatch.from_dict(["not", "an", "object"])
        assert "body" in exc_info.value.errors


@pytest.mark.validation
class TestCreateValidation:
    def test_client_rules(self):
        request = ClientCreateRequest.from_dict(
            {
                "name": "M",
                "surname": "Garcia",
                "national_id": "1234",
                "phone": "555",
                "email": "not-an-email",
            }
        )

        errors = request.validate()

        assert set(errors) == {"name", "national_id", "phone", "email"}

    def test_pet_weight_must_be_positive(self):
        request = PetCreateRequest.from_dict(
            {"name": "Rex", "species": "dog", "client_id": 1, "weight": 0}
        )
        assert "weight" in request.validate()

    def test_pet_birth_date_parsed_and_not_future(self):
        ok = PetCreateRequest.from_dict(
            {"name": "Rex", "species": "dog", "client_id": 1, "birth_date": "2020-02-29"}
        )
        assert ok.validate() == {}
        assert ok.birth_date == date(2020, 2, 29)

        future = PetCreateRequest.from_dict(
            {"name": "Rex", "species": "dog", "client_id": 1, "birth_date": "2999-01-01"}
        )
        assert future.validate() == {"birth_date": "Date cannot be in the future"}

    def test_treatment_price_boundaries(self):
        free = TreatmentCreateRequest.from_dict(
            {"appointment_id": 1, "description": "Checkup", "price": 0}
        )
        negative = TreatmentCreateRequest.from_dict(
            {"appointment_id": 1, "description": "Checkup", "price": -1}
        )
        boolean = TreatmentCreateRequest.from_dict(
            {"appointment_id": 1, "description": "Checkup", "price": True}
        )

        assert free.validate() == {}
        assert "price" in negative.validate()
        assert boolean.validate() == {"price": "Must be a number"}

    def test_client_phone_is_stored_without_spaces(self):
        request = ClientCreateRequest.from_dict(
            {
                "name": "Maria",
                "surname": "Garcia",
                "national_id": "12345678Z",
                "phone": "+34 6 0 0 1 2 3 4 5 6",
            }
        )

        assert request.validate() == {}
        assert request.phone == "+34600123456"
        assert request.to_entity().formatted_phone == "+34 600123456"

    def test_treatment_price_fits_the_price_column(self):
        largest = TreatmentCreateRequest.from_dict(
            {"appointment_id": 1, "description": "Surgery", "price": MAX_PRICE}
        )
        too_large = TreatmentCreateRequest.from_dict(
            {"appointment_id": 1, "description": "Surgery", "price": 1e9}
        )

        assert largest.validate() == {}
        assert too_large.validate() == {"price": "Must be at most 99999999.99"}

    def test_appointment_datetime_with_timezone_is_stored_as_utc(self):
        patch = AppointmentPatch.from_dict({"scheduled_at": "2024-05-01T12:30:00+02:00"})
        assert patch.validate() == {}
        assert patch.scheduled_at == datetime(2024, 5, 1, 10, 30)

    def test_register_requires_known_role(self):
        request = RegisterRequest.from_dict(
            {"email": "a@b.com", "password": "longenough", "role": "ADMIN"}
        )
        assert request.parsed_role is None
        assert request.validate() == {"role": "Must be VETERINARIAN or CLIENT"}

    def test_register_short_password(self):
        request = RegisterRequest.from_dict(
            {
                "email": "vet@clinic.test",
                "password": "short",
                "role": "VETERINARIAN",
                "name": "Ana",
                "surname": "Lopez",
                "license_number": "LIC-1",
            }
        )
        assert request.parsed_role == Role.STAFF
        assert request.validate() == {"password": "Must be at least 8 characters"}


def test_page_to_dict_shape():
    page = Page(items=[Pet(id=1, name="Rex", client_id=1)], page=0, size=1, total=3)

    class _Item:
        def __init__(self, pet):
            self.pet = pet

        def to_dict(self):
            return {"id": self.pet.id}

    data = page_to_dict(page, _Item)

    assert data == {
        "items": [{"id": 1}],
        "page": 0,
        "size": 1,
        "total_elements": 3,
        "total_pages": 3,
    }
