"""
Pet controller: pet records, their pictures and their clinical history.
"""

import io
import mimetypes

from flask import Blueprint, request, send_file
from flask_login import login_required
from sqlalchemy.orm import Session

from vetclinic.core.api_utils import api_response, get_json_body, parse_page_request
from vetclinic.core.auth import get_principal, staff_required
from vetclinic.core.exceptions import ValidationError
from vetclinic.core.extensions import get_services
from vetclinic.db.session import UnitOfWork
from vetclinic.repositories.appointment_repo import AppointmentRepository
from vetclinic.repositories.client_repo import ClientRepository
from vetclinic.repositories.pet_repo import PetRepository
from vetclinic.repositories.veterinarian_repo import VeterinarianRepository
from vetclinic.schemas.dtos import (
    AppointmentResponse,
    PetCreateRequest,
    PetPatch,
    PetResponse,
    page_to_dict,
)
from vetclinic.services.appointment_service import AppointmentService
from vetclinic.services.pet_service import PetService

pet_bp = Blueprint("pets", __name__, url_prefix="/api/pets")


def _pet_service(db: Session) -> PetService:
    return PetService(
        PetRepository(db),
        ClientRepository(db),
        UnitOfWork(db),
        image_storage=get_services().image_storage,
    )


@pet_bp.route("", methods=["GET"])
@login_required
def list_pets():
    services = get_services()
    page_request = parse_page_request(services.config.max_page_size)
    db = services.database.session()
    try:
        page = _pet_service(db).list_pets(get_principal(), page_request)
        return api_response(
            True, "Pets retrieved", page_to_dict(page, PetResponse.from_domain)
        )
    finally:
        db.close()


@pet_bp.route("", methods=["POST"])
@staff_required
def register_pet():
    create_request = PetCreateRequest.from_dict(get_json_body())
    db = get_services().database.session()
    try:
        pet = _pet_service(db).register_pet(get_principal(), create_request)
        return api_response(
            True, "Pet registered", PetResponse.from_domain(pet).to_dict(), 201
        )
    finally:
        db.close()


@pet_bp.route("/<int:pet_id>", methods=["GET"])
@login_required
def get_pet(pet_id: int):
    db = get_services().database.session()
    try:
        pet = _pet_service(db).get_pet(get_principal(), pet_id)
        return api_response(True, "Pet retrieved", PetResponse.from_domain(pet).to_dict())
    finally:
        db.close()


@pet_bp.route("/<int:pet_id>", methods=["PATCH", "PUT"])
@staff_required
def update_pet(pet_id: int):
    patch = PetPatch.from_dict(get_json_body())
    db = get_services().database.session()
    try:
        pet = _pet_service(db).update_pet(get_principal(), pet_id, patch)
        return api_response(True, "Pet updated", PetResponse.from_domain(pet).to_dict())
    finally:
        db.close()


@pet_bp.route("/<int:pet_id>", methods=["DELETE"])
@staff_required
def delete_pet(pet_id: int):
    db = get_services().database.session()
    try:
        _pet_service(db).delete_pet(get_principal(), pet_id)
        return api_response(True, "Pet deleted")
    finally:
        db.close()


@pet_bp.route("/<int:pet_id>/image", methods=["POST"])
@staff_required
def upload_pet_image(pet_id: int):
    """Store the multipart ``file`` field as the pet's picture."""
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        raise ValidationError.single("file", "An image file is required")

    db = get_services().database.session()
    try:
        pet = _pet_service(db).attach_image(
            get_principal(), pet_id, upload.read(), upload.filename
        )
        return api_response(
            True, "Pet image uploaded", PetResponse.from_domain(pet).to_dict(), 201
        )
    finally:
        db.close()


@pet_bp.route("/<int:pet_id>/image", methods=["GET"])
@login_required
def download_pet_image(pet_id: int):
    db = get_services().database.session()
    try:
        data, image_id = _pet_service(db).load_image(get_principal(), pet_id)
    finally:
        db.close()

    mimetype = mimetypes.guess_type(image_id)[0] or "application/octet-stream"
    return send_file(io.BytesIO(data), mimetype=mimetype, download_name=image_id)


@pet_bp.route("/<int:pet_id>/appointments", methods=["GET"])
@login_required
def pet_history(pet_id: int):
    """Clinical history of the pet, newest appointment first."""
    db = get_services().database.session()
    try:
        appointment_service = AppointmentService(
            AppointmentRepository(db),
            PetRepository(db),
            VeterinarianRepository(db),
            UnitOfWork(db),
        )
        appointments = appointment_service.appointments_for_pet(get_principal(), pet_id)
        return api_response(
            True,
            "Clinical history retrieved",
            [AppointmentResponse.from_domain(a).to_dict() for a in appointments],
        )
    finally:
        db.close()
