from typing import List, Optional

from sqlalchemy.orm import joinedload

from vetclinic.db.base import Appointment as DbAppointment
from vetclinic.db.base import Pet as DbPet
from vetclinic.db.base import Treatment as DbTreatment
from vetclinic.domain.entities import Page, PageRequest
from vetclinic.domain.entities import Treatment as DomainTreatment
from vetclinic.domain.interfaces import ITreatmentRepository

from .appointment_repo import treatment_to_domain
from .pagination import paginate

SEARCH_COLUMNS = (DbTreatment.description, DbTreatment.medication)
SORTABLE = {
    "id": DbTreatment.id,
    "description": DbTreatment.description,
    "price": DbTreatment.price,
}


class TreatmentRepository(ITreatmentRepository):
    """Repository for Treatment persistence operations."""

    def __init__(self, db_session) -> None:
        self.db = db_session

    def _query(self):
        return self.db.query(DbTreatment).options(
            joinedload(DbTreatment.appointment).joinedload(DbAppointment.pet)
        )

    def get_by_id(self, treatment_id: int) -> Optional[DomainTreatment]:
        db_treatment = self._query().filter(DbTreatment.id == treatment_id).first()
        return self._to_domain(db_treatment) if db_treatment else None

    def find_page(
        self, page_request: PageRequest, owner_id: Optional[int] = None
    ) -> Page[DomainTreatment]:
        query = self._query()
        if owner_id is not None:
            owned_appointments = (
                self.db.query(DbAppointment.id)
                .join(DbAppointment.pet)
                .filter(DbPet.client_id == owner_id)
            )
            query = query.filter(DbTreatment.appointment_id.in_(owned_appointments))
        rows, total = paginate(
            query, page_request, SEARCH_COLUMNS, SORTABLE, DbTreatment.id
        )
        return Page(
            [self._to_domain(row) for row in rows],
            page_request.page,
            page_request.size,
            total,
        )

    def find_by_appointment_id(self, appointment_id: int) -> List[DomainTreatment]:
        db_treatments = (
            self._query()
            .filter(DbTreatment.appointment_id == appointment_id)
            .order_by(DbTreatment.id)
            .all()
        )
        return [self._to_domain(t) for t in db_treatments]

    def create(self, treatment: DomainTreatment) -> DomainTreatment:
        db_appointment = self.db.get(DbAppointment, treatment.appointment_id)
        if not db_appointment:
            raise ValueError(f"Appointment with ID {treatment.appointment_id} not found")

        db_treatment = DbTreatment(
            description=treatment.description,
            medication=treatment.medication,
            price=treatment.price,
            observations=treatment.observations,
        )
        # Appending sets appointment_id and keeps the loaded collection current
        db_appointment.treatments.append(db_treatment)
        self.db.flush()
        self.db.refresh(db_treatment)
        return self._to_domain(db_treatment)

    def update(self, treatment: DomainTreatment) -> DomainTreatment:
        if not treatment.id:
            raise ValueError("Treatment ID is required for update")

        db_treatment = self.db.get(DbTreatment, treatment.id)
        if not db_treatment:
            raise ValueError(f"Treatment with ID {treatment.id} not found")

        db_treatment.description = treatment.description
        db_treatment.medication = treatment.medication
        db_treatment.price = treatment.price
        db_treatment.observations = treatment.observations
        if treatment.appointment_id != db_treatment.appointment_id:
            new_parent = self.db.get(DbAppointment, treatment.appointment_id)
            if not new_parent:
                raise ValueError(
                    f"Appointment with ID {treatment.appointment_id} not found"
                )
            db_treatment.appointment = new_parent
        self.db.flush()
        self.db.refresh(db_treatment)
        return self._to_domain(db_treatment)

    def delete(self, treatment_id: int) -> bool:
        db_treatment = self.db.get(DbTreatment, treatment_id)
        if not db_treatment:
            return False
        self.db.delete(db_treatment)
        self.db.flush()
        return True

    def _to_domain(self, db_treatment: DbTreatment) -> DomainTreatment:
        appointment = db_treatment.appointment
        owner_id = None
        if appointment is not None and appointment.pet is not None:
            owner_id = appointment.pet.client_id
        return treatment_to_domain(db_treatment, owner_id)
