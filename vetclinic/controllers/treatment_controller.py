from flask import Blueprint
from flask_login import login_required
from sqlalchemy.orm import Session

from vetclinic.core.api_utils import api_response, get_json_body, parse_page_request
from vetclinic.core.auth import get_principal, staff_required
from vetclinic.core.extensions import get_services
from vetclinic.db.session import UnitOfWork
from vetclinic.repositories.appointment_repo import AppointmentRepository
from vetclinic.repositories.treatment_repo import TreatmentRepository
from vetclinic.schemas.dtos import (
    TreatmentCreateRequest,
    TreatmentPatch,
    TreatmentResponse,
    page_to_dict,
)
from vetclinic.services.treatment_service import TreatmentService

treatment_bp = Blueprint("treatments", __name__, url_prefix="/api/treatments")


def _treatment_service(db: Session) -> TreatmentService:
    return TreatmentService(
        TreatmentRepository(db), AppointmentRepository(db), UnitOfWork(db)
    )


@treatment_bp.route("", methods=["GET"])
@login_required
def list_treatments():
    services = get_services()
    page_request = parse_page_request(services.config.max_page_size)
    db = services.database.session()
    try:
        page = _treatment_service(db).list_treatments(get_principal(), page_request)
        return api_response(
            True,
            "Treatments retrieved",
            page_to_dict(page, TreatmentResponse.from_domain),
        )
    finally:
        db.close()


@treatment_bp.route("", methods=["POST"])
@staff_required
def create_treatment():
    """Attach a treatment to the appointment named by ``appointment_id``."""
    create_request = TreatmentCreateRequest.from_dict(get_json_body())
    db = get_services().database.session()
    try:
        treatment = _treatment_service(db).create_treatment(
            get_principal(), create_request
        )
        return api_response(
            True,
            "Treatment created",
            TreatmentResponse.from_domain(treatment).to_dict(),
            201,
        )
    finally:
        db.close()


@treatment_bp.route("/<int:treatment_id>", methods=["GET"])
@login_required
def get_treatment(treatment_id: int):
    db = get_services().database.session()
    try:
        treatment = _treatment_service(db).get_treatment(get_principal(), treatment_id)
        return api_response(
            True, "Treatment retrieved", TreatmentResponse.from_domain(treatment).to_dict()
        )
    finally:
        db.close()


@treatment_bp.route("/<int:treatment_id>", methods=["PATCH", "PUT"])
@staff_required
def update_treatment(treatment_id: int):
    patch = TreatmentPatch.from_dict(get_json_body())
    db = get_services().database.session()
    try:
        treatment = _treatment_service(db).update_treatment(
            get_principal(), treatment_id, patch
        )
        return api_response(
            True, "Treatment updated", TreatmentResponse.from_domain(treatment).to_dict()
        )
    finally:
        db.close()


@treatment_bp.route("/<int:treatment_id>", methods=["DELETE"])
@staff_required
def delete_treatment(treatment_id: int):
    db = get_services().database.session()
    try:
        _treatment_service(db).delete_treatment(get_principal(), treatment_id)
        return api_response(True, "Treatment deleted")
    finally:
        db.close()
