"""Client repository implementation following SOLID principles.

Maps between the ``clients`` table and Client domain entities. Writes only
flush; the surrounding UnitOfWork decides when to commit.
"""

from typing import List, Optional

from vetclinic.db.base import Client as DbClient
from vetclinic.domain.entities import Client as DomainClient
from vetclinic.domain.entities import Page, PageRequest
from vetclinic.domain.interfaces import IClientRepository

from .pagination import escape_like, paginate

SEARCH_COLUMNS = (DbClient.name, DbClient.surname, DbClient.national_id, DbClient.email)
SORTABLE = {
    "id": DbClient.id,
    "name": DbClient.name,
    "surname": DbClient.surname,
    "national_id": DbClient.national_id,
}


class ClientRepository(IClientRepository):
    """Repository for Client persistence operations."""

    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_id(self, client_id: int) -> Optional[DomainClient]:
        db_client = self.db.get(DbClient, client_id)
        return self._to_domain(db_client) if db_client else None

    def get_by_national_id(self, national_id: str) -> Optional[DomainClient]:
        db_client = self.db.query(DbClient).filter_by(national_id=national_id).first()
        return self._to_domain(db_client) if db_client else None

    def find_page(
        self, page_request: PageRequest, owner_id: Optional[int] = None
    ) -> Page[DomainClient]:
        query = self.db.query(DbClient)
        if owner_id is not None:
            query = query.filter(DbClient.id == owner_id)
        rows, total = paginate(query, page_request, SEARCH_COLUMNS, SORTABLE, DbClient.id)
        return Page(
            [self._to_domain(row) for row in rows],
            page_request.page,
            page_request.size,
            total,
        )

    def search_by_surname(
        self, surname: str, owner_id: Optional[int] = None
    ) -> List[DomainClient]:
        pattern = f"%{escape_like(surname.strip())}%"
        query = self.db.query(DbClient).filter(
            DbClient.surname.ilike(pattern, escape="\\")
        )
        if owner_id is not None:
            query = query.filter(DbClient.id == owner_id)
        db_clients = query.order_by(DbClient.surname, DbClient.id).all()
        return [self._to_domain(c) for c in db_clients]

    def count(self) -> int:
        return self.db.query(DbClient).count()

    def create(self, client: DomainClient) -> DomainClient:
        db_client = DbClient(
            name=client.name,
            surname=client.surname,
            national_id=client.national_id,
            phone=client.phone,
            address=client.address,
            email=client.email,
        )
        self.db.add(db_client)
        self.db.flush()
        self.db.refresh(db_client)
        return self._to_domain(db_client)

    def update(self, client: DomainClient) -> DomainClient:
        if not client.id:
            raise ValueError("Client ID is required for update")

        db_client = self.db.get(DbClient, client.id)
        if not db_client:
            raise ValueError(f"Client with ID {client.id} not found")

        db_client.name = client.name
        db_client.surname = client.surname
        db_client.national_id = client.national_id
        db_client.phone = client.phone
        db_client.address = client.address
        db_client.email = client.email
        self.db.flush()
        self.db.refresh(db_client)
        return self._to_domain(db_client)

    def delete(self, client_id: int) -> bool:
        db_client = self.db.get(DbClient, client_id)
        if not db_client:
            return False
        # ORM cascade removes pets, their appointments and treatments
        self.db.delete(db_client)
        self.db.flush()
        return True

    def _to_domain(self, db_client: DbClient) -> DomainClient:
        """Convert DB model to domain entity."""
        return DomainClient(
            id=db_client.id,
            name=db_client.name,
            surname=db_client.surname,
            national_id=db_client.national_id,
            phone=db_client.phone,
            address=db_client.address,
            email=db_client.email,
            pet_ids=[pet.id for pet in db_client.pets],
        )
