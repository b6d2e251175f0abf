from typing import List, Optional

from vetclinic.db.base import Pet as DbPet
from vetclinic.domain.entities import Page, PageRequest
from vetclinic.domain.entities import Pet as DomainPet
from vetclinic.domain.interfaces import IPetRepository

from .pagination import paginate

SEARCH_COLUMNS = (DbPet.name, DbPet.species, DbPet.breed)
SORTABLE = {
    "id": DbPet.id,
    "name": DbPet.name,
    "species": DbPet.species,
    "breed": DbPet.breed,
    "birth_date": DbPet.birth_date,
    "weight": DbPet.weight,
}


class PetRepository(IPetRepository):
    """Repository for Pet persistence operations."""

    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_id(self, pet_id: int) -> Optional[DomainPet]:
        db_pet = self.db.get(DbPet, pet_id)
        return self._to_domain(db_pet) if db_pet else None

    def find_page(
        self, page_request: PageRequest, owner_id: Optional[int] = None
    ) -> Page[DomainPet]:
        query = self.db.query(DbPet)
        if owner_id is not None:
            query = query.filter(DbPet.client_id == owner_id)
        rows, total = paginate(query, page_request, SEARCH_COLUMNS, SORTABLE, DbPet.id)
        return Page(
            [self._to_domain(row) for row in rows],
            page_request.page,
            page_request.size,
            total,
        )

    def find_by_client_id(self, client_id: int) -> List[DomainPet]:
        db_pets = (
            self.db.query(DbPet)
            .filter(DbPet.client_id == client_id)
            .order_by(DbPet.id)
            .all()
        )
        return [self._to_domain(p) for p in db_pets]

    def count(self) -> int:
        return self.db.query(DbPet).count()

    def create(self, pet: DomainPet) -> DomainPet:
        db_pet = DbPet(
            name=pet.name,
            species=pet.species,
            breed=pet.breed,
            birth_date=pet.birth_date,
            weight=pet.weight,
            image_id=pet.image_id,
            client_id=pet.client_id,
        )
        self.db.add(db_pet)
        self.db.flush()
        self.db.refresh(db_pet)
        return self._to_domain(db_pet)

    def update(self, pet: DomainPet) -> DomainPet:
        if not pet.id:
            raise ValueError("Pet ID is required for update")

        db_pet = self.db.get(DbPet, pet.id)
        if not db_pet:
            raise ValueError(f"Pet with ID {pet.id} not found")

        db_pet.name = pet.name
        db_pet.species = pet.species
        db_pet.breed = pet.breed
        db_pet.birth_date = pet.birth_date
        db_pet.weight = pet.weight
        db_pet.image_id = pet.image_id
        db_pet.client_id = pet.client_id
        self.db.flush()
        # Reload so the client relationship follows a changed client_id
        self.db.refresh(db_pet)
        return self._to_domain(db_pet)

    def delete(self, pet_id: int) -> bool:
        db_pet = self.db.get(DbPet, pet_id)
        if not db_pet:
            return False
        self.db.delete(db_pet)
        self.db.flush()
        return True

    def _to_domain(self, db_pet: DbPet) -> DomainPet:
        client = db_pet.client
        return DomainPet(
            id=db_pet.id,
            name=db_pet.name,
            species=db_pet.species,
            breed=db_pet.breed,
            birth_date=db_pet.birth_date,
            weight=db_pet.weight,
            client_id=db_pet.client_id,
            client_name=f"{client.name} {client.surname}" if client else None,
            image_id=db_pet.image_id,
        )
