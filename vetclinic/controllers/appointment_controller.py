"""
Appointment controller.

Treatments are never sent with an appointment update; they are managed
through the treatment endpoints and listed under
``/api/appointments/<id>/treatments``.
"""

from flask import Blueprint, request
from flask_login import login_required
from sqlalchemy.orm import Session

from vetclinic.core.api_utils import api_response, get_json_body, parse_page_request
from vetclinic.core.auth import get_principal, staff_required
from vetclinic.core.exceptions import ValidationError
from vetclinic.core.extensions import get_services
from vetclinic.core.validation import BaseValidator, ValidationResult
from vetclinic.db.session import UnitOfWork
from vetclinic.repositories.appointment_repo import AppointmentRepository
from vetclinic.repositories.pet_repo import PetRepository
from vetclinic.repositories.treatment_repo import TreatmentRepository
from vetclinic.repositories.veterinarian_repo import VeterinarianRepository
from vetclinic.schemas.dtos import (
    AppointmentCreateRequest,
    AppointmentPatch,
    AppointmentResponse,
    TreatmentResponse,
    page_to_dict,
)
from vetclinic.services.appointment_service import AppointmentService
from vetclinic.services.treatment_service import TreatmentService

appointment_bp = Blueprint("appointments", __name__, url_prefix="/api/appointments")


def _appointment_service(db: Session) -> AppointmentService:
    return AppointmentService(
        AppointmentRepository(db),
        PetRepository(db),
        VeterinarianRepository(db),
        UnitOfWork(db),
    )


@appointment_bp.route("", methods=["GET"])
@login_required
def list_appointments():
    services = get_services()
    page_request = parse_page_request(services.config.max_page_size)
    db = services.database.session()
    try:
        page = _appointment_service(db).list_appointments(get_principal(), page_request)
        return api_response(
            True,
            "Appointments retrieved",
            page_to_dict(page, AppointmentResponse.from_domain),
        )
    finally:
        db.close()


@appointment_bp.route("/agenda", methods=["GET"])
@staff_required
def appointment_agenda():
    """Appointments scheduled between ``?start=`` and ``?end=`` (ISO 8601)."""
    result = ValidationResult()
    for name in ("start", "end"):
        BaseValidator.validate_required_field(request.args.get(name), name, result)
    start = BaseValidator.validate_datetime(request.args.get("start"), "start", result)
    end = BaseValidator.validate_datetime(request.args.get("end"), "end", result)
    if not result.is_valid:
        raise ValidationError(result.errors)

    db = get_services().database.session()
    try:
        appointments = _appointment_service(db).appointments_between(
            get_principal(), start, end
        )
        return api_response(
            True,
            f"Found {len(appointments)} appointments",
            [AppointmentResponse.from_domain(a).to_dict() for a in appointments],
        )
    finally:
        db.close()


@appointment_bp.route("", methods=["POST"])
@staff_required
def create_appointment():
    create_request = AppointmentCreateRequest.from_dict(get_json_body())
    db = get_services().database.session()
    try:
        appointment = _appointment_service(db).create_appointment(
            get_principal(), create_request
        )
        return api_response(
            True,
            "Appointment created",
            AppointmentResponse.from_domain(appointment).to_dict(),
            201,
        )
    finally:
        db.close()


@appointment_bp.route("/<int:appointment_id>", methods=["GET"])
@login_required
def get_appointment(appointment_id: int):
    """Appointment detail with its treatments and recomputed total cost."""
    db = get_services().database.session()
    try:
        appointment = _appointment_service(db).get_appointment(
            get_principal(), appointment_id
        )
        return api_response(
            True,
            "Appointment retrieved",
            AppointmentResponse.from_domain(appointment).to_dict(),
        )
    finally:
        db.close()


@appointment_bp.route("/<int:appointment_id>", methods=["PATCH", "PUT"])
@staff_required
def update_appointment(appointment_id: int):
    patch = AppointmentPatch.from_dict(get_json_body())
    db = get_services().database.session()
    try:
        appointment = _appointment_service(db).update_appointment(
            get_principal(), appointment_id, patch
        )
        return api_response(
            True,
            "Appointment updated",
            AppointmentResponse.from_domain(appointment).to_dict(),
        )
    finally:
        db.close()


@appointment_bp.route("/<int:appointment_id>", methods=["DELETE"])
@staff_required
def delete_appointment(appointment_id: int):
    db = get_services().database.session()
    try:
        _appointment_service(db).delete_appointment(get_principal(), appointment_id)
        return api_response(True, "Appointment deleted")
    finally:
        db.close()


@appointment_bp.route("/<int:appointment_id>/treatments", methods=["GET"])
@login_required
def appointment_treatments(appointment_id: int):
    db = get_services().database.session()
    try:
        treatment_service = TreatmentService(
            TreatmentRepository(db), AppointmentRepository(db), UnitOfWork(db)
        )
        treatments = treatment_service.treatments_for_appointment(
            get_principal(), appointment_id
        )
        return api_response(
            True,
            "Treatments retrieved",
            [TreatmentResponse.from_domain(t).to_dict() for t in treatments],
        )
    finally:
        db.close()
