"""
Client service for business logic following SOLID principles.

This service:
- Keeps business rules separate from controllers and repositories
- Depends on abstractions (IClientRepository, IPetRepository, IImageStorage)
- Works with domain entities, not database models
"""

import logging
from typing import List, Optional

from vetclinic.core.exceptions import ConflictError, NotFoundError
from vetclinic.db.session import UnitOfWork
from vetclinic.domain.access import AccessPolicy
from vetclinic.domain.entities import Client, Page, PageRequest, Principal
from vetclinic.domain.interfaces import IClientRepository, IImageStorage, IPetRepository
from vetclinic.schemas.dtos import ClientCreateRequest, ClientPatch, raise_if_invalid

from .image_service import discard_images

logger = logging.getLogger(__name__)


class ClientService:
    """Application service for client-related use-cases."""

    def __init__(
        self,
        client_repo: IClientRepository,
        pet_repo: IPetRepository,
        uow: UnitOfWork,
        image_storage: Optional[IImageStorage] = None,
        access: Optional[AccessPolicy] = None,
    ) -> None:
        self.client_repo = client_repo
        self.pet_repo = pet_repo
        self.uow = uow
        self.image_storage = image_storage
        self.access = access or AccessPolicy()

    def register_client(
        self, principal: Principal, request: ClientCreateRequest
    ) -> Client:
        """Register a new client.

        Raises:
            ValidationError: If a field breaks its rule
            ConflictError: If the national id is already registered
        """
        self.access.ensure_staff(principal)
        raise_if_invalid(request.validate())

        with self.uow:
            if self.client_repo.get_by_national_id(request.national_id):
                raise ConflictError("A client with this national ID already exists")
            client = self.client_repo.create(request.to_entity())

        logger.info(
            "Client registered",
            extra={"context": {"client_id": client.id, "by": principal.email}},
        )
        return client

    def update_client(
        self, principal: Principal, client_id: int, patch: ClientPatch
    ) -> Client:
        """Apply the fields present in ``patch``; a new national id is re-checked."""
        self.access.ensure_staff(principal)
        raise_if_invalid(patch.validate())

        with self.uow:
            client = self.client_repo.get_by_id(client_id)
            if client is None:
                raise NotFoundError("Client", client_id)

            previous_national_id = client.national_id
            patch.apply_to(client)
            if client.national_id != previous_national_id:
                existing = self.client_repo.get_by_national_id(client.national_id)
                if existing is not None and existing.id != client_id:
                    raise ConflictError("A client with this national ID already exists")

            updated = self.client_repo.update(client)

        logger.info(
            "Client updated",
            extra={"context": {"client_id": client_id, "by": principal.email}},
        )
        return updated

    def get_client(self, principal: Principal, client_id: int) -> Client:
        client = self.client_repo.get_by_id(client_id)
        if client is None:
            raise NotFoundError("Client", client_id)
        self.access.ensure_can_read_client(principal, client_id)
        return client

    def list_clients(
        self, principal: Principal, page_request: PageRequest
    ) -> Page[Client]:
        """Paginated search; owners only ever see their own record."""
        owner_id = self.access.owner_scope(principal)
        return self.client_repo.find_page(page_request, owner_id=owner_id)

    def search_by_surname(self, principal: Principal, surname: str) -> List[Client]:
        owner_id = self.access.owner_scope(principal)
        return self.client_repo.search_by_surname(surname or "", owner_id=owner_id)

    def delete_client(self, principal: Principal, client_id: int) -> None:
        """Delete a client with its pets, appointments and treatments.

        Stored pet pictures are removed once the transaction has committed.
        """
        self.access.ensure_staff(principal)

        with self.uow:
            if self.client_repo.get_by_id(client_id) is None:
                raise NotFoundError("Client", client_id)
            image_ids = [
                pet.image_id
                for pet in self.pet_repo.find_by_client_id(client_id)
                if pet.image_id
            ]
            self.client_repo.delete(client_id)

        logger.info(
            "Client deleted",
            extra={
                "context": {
                    "client_id": client_id,
                    "images_removed": len(image_ids),
                    "by": principal.email,
                }
            },
        )
        discard_images(self.image_storage, image_ids)
