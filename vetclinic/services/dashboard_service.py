from typing import Optional

from vetclinic.domain.access import AccessPolicy
from vetclinic.domain.entities import DashboardSummary, Principal
from vetclinic.domain.interfaces import (
    IAppointmentRepository,
    IClientRepository,
    IPetRepository,
    IVeterinarianRepository,
)

RECENT_APPOINTMENTS = 5


class DashboardService:
    """Clinic-wide counters for the staff dashboard."""

    def __init__(
        self,
        client_repo: IClientRepository,
        pet_repo: IPetRepository,
        veterinarian_repo: IVeterinarianRepository,
        appointment_repo: IAppointmentRepository,
        access: Optional[AccessPolicy] = None,
    ) -> None:
        self.client_repo = client_repo
        self.pet_repo = pet_repo
        self.veterinarian_repo = veterinarian_repo
        self.appointment_repo = appointment_repo
        self.access = access or AccessPolicy()

    def get_summary(self, principal: Principal) -> DashboardSummary:
        """Entity counts plus the most recent appointments, newest first."""
        self.access.ensure_staff(principal)
        return DashboardSummary(
            total_clients=self.client_repo.count(),
            total_pets=self.pet_repo.count(),
            total_veterinarians=self.veterinarian_repo.count(),
            total_appointments=self.appointment_repo.count(),
            recent_appointments=self.appointment_repo.find_recent(RECENT_APPOINTMENTS),
        )
