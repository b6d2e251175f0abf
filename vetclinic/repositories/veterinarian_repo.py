from typing import Optional

from vetclinic.db.base import Veterinarian as DbVeterinarian
from vetclinic.domain.entities import Page, PageRequest
from vetclinic.domain.entities import Veterinarian as DomainVeterinarian
from vetclinic.domain.interfaces import IVeterinarianRepository

from .pagination import paginate

SEARCH_COLUMNS = (DbVeterinarian.surname,)
SORTABLE = {
    "id": DbVeterinarian.id,
    "name": DbVeterinarian.name,
    "surname": DbVeterinarian.surname,
    "license_number": DbVeterinarian.license_number,
    "specialty": DbVeterinarian.specialty,
}


class VeterinarianRepository(IVeterinarianRepository):
    """Repository for Veterinarian persistence operations."""

    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_id(self, veterinarian_id: int) -> Optional[DomainVeterinarian]:
        db_vet = self.db.get(DbVeterinarian, veterinarian_id)
        return self._to_domain(db_vet) if db_vet else None

    def get_by_license_number(
        self, license_number: str
    ) -> Optional[DomainVeterinarian]:
        db_vet = (
            self.db.query(DbVeterinarian)
            .filter_by(license_number=license_number)
            .first()
        )
        return self._to_domain(db_vet) if db_vet else None

    def find_page(self, page_request: PageRequest) -> Page[DomainVeterinarian]:
        rows, total = paginate(
            self.db.query(DbVeterinarian),
            page_request,
            SEARCH_COLUMNS,
            SORTABLE,
            DbVeterinarian.id,
        )
        return Page(
            [self._to_domain(row) for row in rows],
            page_request.page,
            page_request.size,
            total,
        )

    def count(self) -> int:
        return self.db.query(DbVeterinarian).count()

    def create(self, veterinarian: DomainVeterinarian) -> DomainVeterinarian:
        db_vet = DbVeterinarian(
            name=veterinarian.name,
            surname=veterinarian.surname,
            license_number=veterinarian.license_number,
            specialty=veterinarian.specialty,
            email=veterinarian.email,
        )
        self.db.add(db_vet)
        self.db.flush()
        self.db.refresh(db_vet)
        return self._to_domain(db_vet)

    def update(self, veterinarian: DomainVeterinarian) -> DomainVeterinarian:
        if not veterinarian.id:
            raise ValueError("Veterinarian ID is required for update")

        db_vet = self.db.get(DbVeterinarian, veterinarian.id)
        if not db_vet:
            raise ValueError(f"Veterinarian with ID {veterinarian.id} not found")

        db_vet.name = veterinarian.name
        db_vet.surname = veterinarian.surname
        db_vet.license_number = veterinarian.license_number
        db_vet.specialty = veterinarian.specialty
        db_vet.email = veterinarian.email
        self.db.flush()
        return self._to_domain(db_vet)

    def delete(self, veterinarian_id: int) -> bool:
        db_vet = self.db.get(DbVeterinarian, veterinarian_id)
        if not db_vet:
            return False
        self.db.delete(db_vet)
        self.db.flush()
        return True

    def _to_domain(self, db_vet: DbVeterinarian) -> DomainVeterinarian:
        return DomainVeterinarian(
            id=db_vet.id,
            name=db_vet.name,
            surname=db_vet.surname,
            license_number=db_vet.license_number,
            specialty=db_vet.specialty,
            email=db_vet.email,
        )
