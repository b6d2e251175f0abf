"""
Veterinarian controller.

Any authenticated principal may browse veterinarians; changes and the
per-veterinarian agenda are staff-only.
"""

from flask import Blueprint
from flask_login import login_required
from sqlalchemy.orm import Session

from vetclinic.core.api_utils import api_response, get_json_body, parse_page_request
from vetclinic.core.auth import get_principal, staff_required
from vetclinic.core.extensions import get_services
from vetclinic.db.session import UnitOfWork
from vetclinic.repositories.appointment_repo import AppointmentRepository
from vetclinic.repositories.pet_repo import PetRepository
from vetclinic.repositories.veterinarian_repo import VeterinarianRepository
from vetclinic.schemas.dtos import (
    AppointmentResponse,
    VeterinarianCreateRequest,
    VeterinarianPatch,
    VeterinarianResponse,
    page_to_dict,
)
from vetclinic.services.appointment_service import AppointmentService
from vetclinic.services.veterinarian_service import VeterinarianService

veterinarian_bp = Blueprint("veterinarians", __name__, url_prefix="/api/veterinarians")


def _veterinarian_service(db: Session) -> VeterinarianService:
    return VeterinarianService(
        VeterinarianRepository(db), AppointmentRepository(db), UnitOfWork(db)
    )


@veterinarian_bp.route("", methods=["GET"])
@login_required
def list_veterinarians():
    services = get_services()
    page_request = parse_page_request(services.config.max_page_size)
    db = services.database.session()
    try:
        page = _veterinarian_service(db).list_veterinarians(
            get_principal(), page_request
        )
        return api_response(
            True,
            "Veterinarians retrieved",
            page_to_dict(page, VeterinarianResponse.from_domain),
        )
    finally:
        db.close()


@veterinarian_bp.route("", methods=["POST"])
@staff_required
def register_veterinarian():
    create_request = VeterinarianCreateRequest.from_dict(get_json_body())
    db = get_services().database.session()
    try:
        vet = _veterinarian_service(db).register_veterinarian(
            get_principal(), create_request
        )
        return api_response(
            True,
            "Veterinarian registered",
            VeterinarianResponse.from_domain(vet).to_dict(),
            201,
        )
    finally:
        db.close()


@veterinarian_bp.route("/<int:veterinarian_id>", methods=["GET"])
@login_required
def get_veterinarian(veterinarian_id: int):
    db = get_services().database.session()
    try:
        vet = _veterinarian_service(db).get_veterinarian(get_principal(), veterinarian_id)
        return api_response(
            True, "Veterinarian retrieved", VeterinarianResponse.from_domain(vet).to_dict()
        )
    finally:
        db.close()


@veterinarian_bp.route("/<int:veterinarian_id>", methods=["PATCH", "PUT"])
@staff_required
def update_veterinarian(veterinarian_id: int):
    patch = VeterinarianPatch.from_dict(get_json_body())
    db = get_services().database.session()
    try:
        vet = _veterinarian_service(db).update_veterinarian(
            get_principal(), veterinarian_id, patch
        )
        return api_response(
            True, "Veterinarian updated", VeterinarianResponse.from_domain(vet).to_dict()
        )
    finally:
        db.close()


@veterinarian_bp.route("/<int:veterinarian_id>", methods=["DELETE"])
@staff_required
def delete_veterinarian(veterinarian_id: int):
    """Delete the veterinarian; its appointments stay, unassigned."""
    db = get_services().database.session()
    try:
        unassigned = _veterinarian_service(db).delete_veterinarian(
            get_principal(), veterinarian_id
        )
        return api_response(
            True,
            "Veterinarian deleted",
            {"appointments_unassigned": unassigned},
        )
    finally:
        db.close()


@veterinarian_bp.route("/<int:veterinarian_id>/appointments", methods=["GET"])
@staff_required
def veterinarian_agenda(veterinarian_id: int):
    db = get_services().database.session()
    try:
        appointment_service = AppointmentService(
            AppointmentRepository(db),
            PetRepository(db),
            VeterinarianRepository(db),
            UnitOfWork(db),
        )
        appointments = appointment_service.appointments_for_veterinarian(
            get_principal(), veterinarian_id
        )
        return api_response(
            True,
            "Agenda retrieved",
            [AppointmentResponse.from_domain(a).to_dict() for a in appointments],
        )
    finally:
        db.close()
