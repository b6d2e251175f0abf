import logging
from typing import Optional

from vetclinic.core.exceptions import ConflictError, NotFoundError
from vetclinic.db.session import UnitOfWork
from vetclinic.domain.access import AccessPolicy
from vetclinic.domain.entities import Page, PageRequest, Principal, Veterinarian
from vetclinic.domain.interfaces import IAppointmentRepository, IVeterinarianRepository
from vetclinic.schemas.dtos import (
    VeterinarianCreateRequest,
    VeterinarianPatch,
    raise_if_invalid,
)

logger = logging.getLogger(__name__)

LICENSE_CONFLICT = "A veterinarian with this license number already exists"


class VeterinarianService:
    """Application service for veterinarians.

    Veterinarian records are readable by every authenticated principal;
    changes are staff-only.
    """

    def __init__(
        self,
        veterinarian_repo: IVeterinarianRepository,
        appointment_repo: IAppointmentRepository,
        uow: UnitOfWork,
        access: Optional[AccessPolicy] = None,
    ) -> None:
        self.veterinarian_repo = veterinarian_repo
        self.appointment_repo = appointment_repo
        self.uow = uow
        self.access = access or AccessPolicy()

    def _require_veterinarian(self, veterinarian_id: int) -> Veterinarian:
        vet = self.veterinarian_repo.get_by_id(veterinarian_id)
        if vet is None:
            raise NotFoundError("Veterinarian", veterinarian_id)
        return vet

    def register_veterinarian(
        self, principal: Principal, request: VeterinarianCreateRequest
    ) -> Veterinarian:
        self.access.ensure_staff(principal)
        raise_if_invalid(request.validate())

        with self.uow:
            if self.veterinarian_repo.get_by_license_number(request.license_number):
                raise ConflictError(LICENSE_CONFLICT)
            vet = self.veterinarian_repo.create(request.to_entity())

        logger.info(
            "Veterinarian registered",
            extra={"context": {"veterinarian_id": vet.id, "by": principal.email}},
        )
        return vet

    def update_veterinarian(
        self, principal: Principal, veterinarian_id: int, patch: VeterinarianPatch
    ) -> Veterinarian:
        self.access.ensure_staff(principal)
        raise_if_invalid(patch.validate())

        with self.uow:
            vet = self._require_veterinarian(veterinarian_id)
            previous_license = vet.license_number
            patch.apply_to(vet)
            if vet.license_number != previous_license:
                existing = self.veterinarian_repo.get_by_license_number(
                    vet.license_number
                )
                if existing is not None and existing.id != veterinarian_id:
                    raise ConflictError(LICENSE_CONFLICT)
            updated = self.veterinarian_repo.update(vet)

        logger.info(
            "Veterinarian updated",
            extra={
                "context": {"veterinarian_id": veterinarian_id, "by": principal.email}
            },
        )
        return updated

    def get_veterinarian(
        self, principal: Principal, veterinarian_id: int
    ) -> Veterinarian:
        self.access.owner_scope(principal)  # any authenticated principal
        return self._require_veterinarian(veterinarian_id)

    def list_veterinarians(
        self, principal: Principal, page_request: PageRequest
    ) -> Page[Veterinarian]:
        self.access.owner_scope(principal)
        return self.veterinarian_repo.find_page(page_request)

    def delete_veterinarian(self, principal: Principal, veterinarian_id: int) -> int:
        """Delete a veterinarian, keeping its appointments with no veterinarian.

        Finding the assigned appointments, nulling their reference and
        deleting the row happen in one transaction: either all of it is
        visible afterwards or none of it.

        Returns:
            Number of appointments that were unassigned
        """
        self.access.ensure_staff(principal)

        with self.uow:
            self._require_veterinarian(veterinarian_id)
            assigned = self.appointment_repo.find_by_veterinarian_id(veterinarian_id)
            for appointment in assigned:
                self.appointment_repo.clear_veterinarian(appointment.id)
            self.veterinarian_repo.delete(veterinarian_id)

        logger.info(
            "Veterinarian deleted",
            extra={
                "context": {
                    "veterinarian_id": veterinarian_id,
                    "appointments_unassigned": len(assigned),
                    "by": principal.email,
                }
            },
        )
        return len(assigned)
