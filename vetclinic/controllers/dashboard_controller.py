from flask import Blueprint

from vetclinic.core.api_utils import api_response
from vetclinic.core.auth import get_principal, staff_required
from vetclinic.core.extensions import get_services
from vetclinic.repositories.appointment_repo import AppointmentRepository
from vetclinic.repositories.client_repo import ClientRepository
from vetclinic.repositories.pet_repo import PetRepository
from vetclinic.repositories.veterinarian_repo import VeterinarianRepository
from vetclinic.schemas.dtos import DashboardResponse
from vetclinic.services.dashboard_service import DashboardService

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.route("", methods=["GET"])
@staff_required
def dashboard_summary():
    """Counts of every entity and the five most recent appointments."""
    db = get_services().database.session()
    try:
        dashboard_service = DashboardService(
            ClientRepository(db),
            PetRepository(db),
            VeterinarianRepository(db),
            AppointmentRepository(db),
        )
        summary = dashboard_service.get_summary(get_principal())
        return api_response(
            True, "Dashboard retrieved", DashboardResponse.from_domain(summary).to_dict()
        )
    finally:
        db.close()
