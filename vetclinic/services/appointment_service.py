"""
Appointment service: lifecycle rules for appointments and their cost.

Rules enforced here:
- An appointment needs an existing pet; a veterinarian is optional but must
  exist when given.
- Partial updates touch only the fields present in the patch. The treatments
  collection is never replaced or cleared by an update.
- Deleting an appointment deletes its treatments.
- The total cost is recomputed from the treatments on every read.
"""

import logging
from datetime import datetime
from typing import List, Optional

from vetclinic.core.exceptions import NotFoundError, ValidationError
from vetclinic.db.session import UnitOfWork
from vetclinic.domain.access import AccessPolicy
from vetclinic.domain.entities import (
    Appointment,
    Page,
    PageRequest,
    Principal,
    compute_total_cost,
)
from vetclinic.domain.interfaces import (
    IAppointmentRepository,
    IPetRepository,
    IVeterinarianRepository,
)
from vetclinic.schemas.dtos import (
    AppointmentCreateRequest,
    AppointmentPatch,
    is_set,
    raise_if_invalid,
)

logger = logging.getLogger(__name__)


class AppointmentService:
    """Application service for appointment use-cases."""

    def __init__(
        self,
        appointment_repo: IAppointmentRepository,
        pet_repo: IPetRepository,
        veterinarian_repo: IVeterinarianRepository,
        uow: UnitOfWork,
        access: Optional[AccessPolicy] = None,
    ) -> None:
        self.appointment_repo = appointment_repo
        self.pet_repo = pet_repo
        self.veterinarian_repo = veterinarian_repo
        self.uow = uow
        self.access = access or AccessPolicy()

    def _require_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.appointment_repo.get_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment", appointment_id)
        return appointment

    def _require_pet(self, pet_id: int) -> None:
        if self.pet_repo.get_by_id(pet_id) is None:
            raise NotFoundError("Pet", pet_id)

    def _require_veterinarian(self, veterinarian_id: Optional[int]) -> None:
        if veterinarian_id is None:
            return
        if self.veterinarian_repo.get_by_id(veterinarian_id) is None:
            raise NotFoundError("Veterinarian", veterinarian_id)

    def create_appointment(
        self, principal: Principal, request: AppointmentCreateRequest
    ) -> Appointment:
        """Create an appointment with an empty treatment list.

        Raises:
            NotFoundError: If the pet, or a given veterinarian, does not exist
        """
        self.access.ensure_staff(principal)
        raise_if_invalid(request.validate())

        with self.uow:
            self._require_pet(request.pet_id)
            self._require_veterinarian(request.veterinarian_id)
            appointment = self.appointment_repo.create(request.to_entity())

        logger.info(
            "Appointment created",
            extra={
                "context": {
                    "appointment_id": appointment.id,
                    "pet_id": appointment.pet_id,
                    "veterinarian_id": appointment.veterinarian_id,
                    "by": principal.email,
                }
            },
        )
        return appointment

    def update_appointment(
        self, principal: Principal, appointment_id: int, patch: AppointmentPatch
    ) -> Appointment:
        """Apply the fields present in ``patch``; treatments are preserved.

        An explicit null veterinarian_id unassigns the veterinarian.
        """
        self.access.ensure_staff(principal)
        raise_if_invalid(patch.validate())

        with self.uow:
            appointment = self._require_appointment(appointment_id)
            treatment_count = len(appointment.treatments)

            if is_set(patch.pet_id) and patch.pet_id != appointment.pet_id:
                self._require_pet(patch.pet_id)
            if is_set(patch.veterinarian_id):
                self._require_veterinarian(patch.veterinarian_id)

            patch.apply_to(appointment)
            updated = self.appointment_repo.update(appointment)

        logger.info(
            "Appointment updated",
            extra={
                "context": {
                    "appointment_id": appointment_id,
                    "treatments": treatment_count,
                    "by": principal.email,
                }
            },
        )
        return updated

    def delete_appointment(self, principal: Principal, appointment_id: int) -> None:
        """Delete an appointment and, by cascade, its treatments."""
        self.access.ensure_staff(principal)

        with self.uow:
            appointment = self._require_appointment(appointment_id)
            self.appointment_repo.delete(appointment_id)

        logger.info(
            "Appointment deleted",
            extra={
                "context": {
                    "appointment_id": appointment_id,
                    "treatments_removed": len(appointment.treatments),
                    "by": principal.email,
                }
            },
        )

    @staticmethod
    def compute_total_cost(appointment: Appointment) -> float:
        """Sum of the appointment's treatment prices, 0.0 when it has none."""
        return compute_total_cost(appointment.treatments)

    def get_appointment(self, principal: Principal, appointment_id: int) -> Appointment:
        appointment = self._require_appointment(appointment_id)
        self.access.ensure_can_read_appointment(principal, appointment)
        return appointment

    def list_appointments(
        self, principal: Principal, page_request: PageRequest
    ) -> Page[Appointment]:
        owner_id = self.access.owner_scope(principal)
        return self.appointment_repo.find_page(page_request, owner_id=owner_id)

    def appointments_for_pet(
        self, principal: Principal, pet_id: int
    ) -> List[Appointment]:
        """Clinical history of a pet, newest first."""
        pet = self.pet_repo.get_by_id(pet_id)
        if pet is None:
            raise NotFoundError("Pet", pet_id)
        self.access.ensure_can_read_pet(principal, pet)
        return self.appointment_repo.find_by_pet_id(pet_id)

    def appointments_for_veterinarian(
        self, principal: Principal, veterinarian_id: int
    ) -> List[Appointment]:
        """Agenda of a veterinarian, oldest first."""
        self.access.ensure_staff(principal)
        self._require_veterinarian(veterinarian_id)
        return self.appointment_repo.find_by_veterinarian_id(veterinarian_id)

    def appointments_between(
        self, principal: Principal, start: datetime, end: datetime
    ) -> List[Appointment]:
        self.access.ensure_staff(principal)
        if start > end:
            raise ValidationError.single("end", "End must not be before start")
        return self.appointment_repo.find_between(start, end)
