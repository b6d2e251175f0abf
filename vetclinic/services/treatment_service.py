import logging
from typing import List, Optional

from vetclinic.core.exceptions import NotFoundError
from vetclinic.db.session import UnitOfWork
from vetclinic.domain.access import AccessPolicy
from vetclinic.domain.entities import Page, PageRequest, Principal, Treatment
from vetclinic.domain.interfaces import IAppointmentRepository, ITreatmentRepository
from vetclinic.schemas.dtos import (
    TreatmentCreateRequest,
    TreatmentPatch,
    is_set,
    raise_if_invalid,
)

logger = logging.getLogger(__name__)


class TreatmentService:
    """Keeps every treatment attached to an existing appointment."""

    def __init__(
        self,
        treatment_repo: ITreatmentRepository,
        appointment_repo: IAppointmentRepository,
        uow: UnitOfWork,
        access: Optional[AccessPolicy] = None,
    ) -> None:
        self.treatment_repo = treatment_repo
        self.appointment_repo = appointment_repo
        self.uow = uow
        self.access = access or AccessPolicy()

    def _require_treatment(self, treatment_id: int) -> Treatment:
        treatment = self.treatment_repo.get_by_id(treatment_id)
        if treatment is None:
            raise NotFoundError("Treatment", treatment_id)
        return treatment

    def create_treatment(
        self, principal: Principal, request: TreatmentCreateRequest
    ) -> Treatment:
        """Attach a new treatment to an existing appointment.

        Raises:
            ValidationError: If the price is negative or a field is missing
            NotFoundError: If the appointment does not exist
        """
        self.access.ensure_staff(principal)
        raise_if_invalid(request.validate())

        with self.uow:
            appointment = self.appointment_repo.get_by_id(request.appointment_id)
            if appointment is None:
                raise NotFoundError("Appointment", request.appointment_id)
            treatment = appointment.attach_treatment(request.to_entity())
            created = self.treatment_repo.create(treatment)

        logger.info(
            "Treatment created",
            extra={
                "context": {
                    "treatment_id": created.id,
                    "appointment_id": created.appointment_id,
                    "price": created.price,
                    "by": principal.email,
                }
            },
        )
        return created

    def update_treatment(
        self, principal: Principal, treatment_id: int, patch: TreatmentPatch
    ) -> Treatment:
        """Patch a treatment; a new appointment_id re-points it if that appointment exists."""
        self.access.ensure_staff(principal)
        raise_if_invalid(patch.validate())

        with self.uow:
            treatment = self._require_treatment(treatment_id)
            if (
                is_set(patch.appointment_id)
                and patch.appointment_id != treatment.appointment_id
            ):
                if self.appointment_repo.get_by_id(patch.appointment_id) is None:
                    raise NotFoundError("Appointment", patch.appointment_id)
            patch.apply_to(treatment)
            updated = self.treatment_repo.update(treatment)

        logger.info(
            "Treatment updated",
            extra={"context": {"treatment_id": treatment_id, "by": principal.email}},
        )
        return updated

    def delete_treatment(self, principal: Principal, treatment_id: int) -> None:
        self.access.ensure_staff(principal)

        with self.uow:
            self._require_treatment(treatment_id)
            self.treatment_repo.delete(treatment_id)

        logger.info(
            "Treatment deleted",
            extra={"context": {"treatment_id": treatment_id, "by": principal.email}},
        )

    def get_treatment(self, principal: Principal, treatment_id: int) -> Treatment:
        treatment = self._require_treatment(treatment_id)
        self.access.ensure_can_read_treatment(principal, treatment)
        return treatment

    def list_treatments(
        self, principal: Principal, page_request: PageRequest
    ) -> Page[Treatment]:
        owner_id = self.access.owner_scope(principal)
        return self.treatment_repo.find_page(page_request, owner_id=owner_id)

    def treatments_for_appointment(
        self, principal: Principal, appointment_id: int
    ) -> List[Treatment]:
        appointment = self.appointment_repo.get_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment", appointment_id)
        self.access.ensure_can_read_appointment(principal, appointment)
        return self.treatment_repo.find_by_appointment_id(appointment_id)
