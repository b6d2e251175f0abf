"""Appointment repository.

Appointments are mapped together with their treatments and with the id of
the client owning the pet, which the access policy needs for scoping.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import selectinload

from vetclinic.db.base import Appointment as DbAppointment
from vetclinic.db.base import Pet as DbPet
from vetclinic.db.base import Treatment as DbTreatment
from vetclinic.domain.entities import Appointment as DomainAppointment
from vetclinic.domain.entities import Page, PageRequest
from vetclinic.domain.entities import Treatment as DomainTreatment
from vetclinic.domain.interfaces import IAppointmentRepository

from .pagination import paginate

SEARCH_COLUMNS = (DbAppointment.reason, DbAppointment.diagnosis, DbAppointment.status)
SORTABLE = {
    "id": DbAppointment.id,
    "scheduled_at": DbAppointment.scheduled_at,
    "reason": DbAppointment.reason,
    "status": DbAppointment.status,
}


class AppointmentRepository(IAppointmentRepository):
    """Repository for Appointment persistence operations."""

    def __init__(self, db_session) -> None:
        self.db = db_session

    def _query(self):
        return self.db.query(DbAppointment).options(
            selectinload(DbAppointment.treatments),
            selectinload(DbAppointment.pet),
            selectinload(DbAppointment.veterinarian),
        )

    def get_by_id(self, appointment_id: int) -> Optional[DomainAppointment]:
        db_appointment = self._query().filter(DbAppointment.id == appointment_id).first()
        return self._to_domain(db_appointment) if db_appointment else None

    def find_page(
        self, page_request: PageRequest, owner_id: Optional[int] = None
    ) -> Page[DomainAppointment]:
        query = self._query()
        if owner_id is not None:
            query = query.join(DbAppointment.pet).filter(DbPet.client_id == owner_id)
        rows, total = paginate(
            query, page_request, SEARCH_COLUMNS, SORTABLE, DbAppointment.id
        )
        return Page(
            [self._to_domain(row) for row in rows],
            page_request.page,
            page_request.size,
            total,
        )

    def find_by_pet_id(self, pet_id: int) -> List[DomainAppointment]:
        db_appointments = (
            self._query()
            .filter(DbAppointment.pet_id == pet_id)
            .order_by(DbAppointment.scheduled_at.desc(), DbAppointment.id.desc())
            .all()
        )
        return [self._to_domain(a) for a in db_appointments]

    def find_by_veterinarian_id(self, veterinarian_id: int) -> List[DomainAppointment]:
        db_appointments = (
            self._query()
            .filter(DbAppointment.veterinarian_id == veterinarian_id)
            .order_by(DbAppointment.scheduled_at.asc(), DbAppointment.id.asc())
            .all()
        )
        return [self._to_domain(a) for a in db_appointments]

    def find_between(self, start: datetime, end: datetime) -> List[DomainAppointment]:
        db_appointments = (
            self._query()
            .filter(DbAppointment.scheduled_at >= start)
            .filter(DbAppointment.scheduled_at <= end)
            .order_by(DbAppointment.scheduled_at.asc(), DbAppointment.id.asc())
            .all()
        )
        return [self._to_domain(a) for a in db_appointments]

    def find_recent(self, limit: int = 5) -> List[DomainAppointment]:
        db_appointments = (
            self._query()
            .order_by(DbAppointment.scheduled_at.desc(), DbAppointment.id.desc())
            .limit(limit)
            .all()
        )
        return [self._to_domain(a) for a in db_appointments]

    def count(self) -> int:
        return self.db.query(DbAppointment).count()

    def create(self, appointment: DomainAppointment) -> DomainAppointment:
        db_appointment = DbAppointment(
            scheduled_at=appointment.scheduled_at,
            reason=appointment.reason,
            diagnosis=appointment.diagnosis,
            status=appointment.status,
            pet_id=appointment.pet_id,
            veterinarian_id=appointment.veterinarian_id,
        )
        self.db.add(db_appointment)
        self.db.flush()
        self.db.refresh(db_appointment)
        return self._to_domain(db_appointment)

    def update(self, appointment: DomainAppointment) -> DomainAppointment:
        """Persist scalar fields and references; the treatments collection is left alone."""
        if not appointment.id:
            raise ValueError("Appointment ID is required for update")

        db_appointment = self.db.get(DbAppointment, appointment.id)
        if not db_appointment:
            raise ValueError(f"Appointment with ID {appointment.id} not found")

        db_appointment.scheduled_at = appointment.scheduled_at
        db_appointment.reason = appointment.reason
        db_appointment.diagnosis = appointment.diagnosis
        db_appointment.status = appointment.status
        db_appointment.pet_id = appointment.pet_id
        db_appointment.veterinarian_id = appointment.veterinarian_id
        self.db.flush()
        # Reload so pet and veterinarian follow changed foreign keys
        self.db.refresh(db_appointment)
        return self._to_domain(db_appointment)

    def delete(self, appointment_id: int) -> bool:
        db_appointment = self.db.get(DbAppointment, appointment_id)
        if not db_appointment:
            return False
        self.db.delete(db_appointment)
        self.db.flush()
        return True

    def clear_veterinarian(self, appointment_id: int) -> None:
        db_appointment = self.db.get(DbAppointment, appointment_id)
        if not db_appointment:
            return
        db_appointment.veterinarian = None
        self.db.flush()

    def _to_domain(self, db_appointment: DbAppointment) -> DomainAppointment:
        pet = db_appointment.pet
        vet = db_appointment.veterinarian
        owner_id = pet.client_id if pet else None
        return DomainAppointment(
            id=db_appointment.id,
            scheduled_at=db_appointment.scheduled_at,
            reason=db_appointment.reason,
            diagnosis=db_appointment.diagnosis,
            status=db_appointment.status,
            pet_id=db_appointment.pet_id,
            veterinarian_id=db_appointment.veterinarian_id,
            pet_name=pet.name if pet else None,
            veterinarian_name=f"{vet.name} {vet.surname}" if vet else None,
            owner_id=owner_id,
            treatments=[
                treatment_to_domain(t, owner_id) for t in db_appointment.treatments
            ],
        )


def treatment_to_domain(
    db_treatment: DbTreatment, owner_id: Optional[int]
) -> DomainTreatment:
    return DomainTreatment(
        id=db_treatment.id,
        description=db_treatment.description,
        medication=db_treatment.medication,
        price=float(db_treatment.price),
        observations=db_treatment.observations,
        appointment_id=db_treatment.appointment_id,
        owner_id=owner_id,
    )
