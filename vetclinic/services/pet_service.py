import logging
from typing import List, Optional, Tuple

from vetclinic.core.exceptions import NotFoundError
from vetclinic.db.session import UnitOfWork
from vetclinic.domain.access import AccessPolicy
from vetclinic.domain.entities import Page, PageRequest, Pet, Principal
from vetclinic.domain.interfaces import IClientRepository, IImageStorage, IPetRepository
from vetclinic.schemas.dtos import PetCreateRequest, PetPatch, is_set, raise_if_invalid

from .image_service import allowed_extension, discard_images

logger = logging.getLogger(__name__)


class PetService:
    """Application service for pets and their pictures."""

    def __init__(
        self,
        pet_repo: IPetRepository,
        client_repo: IClientRepository,
        uow: UnitOfWork,
        image_storage: Optional[IImageStorage] = None,
        access: Optional[AccessPolicy] = None,
    ) -> None:
        self.pet_repo = pet_repo
        self.client_repo = client_repo
        self.uow = uow
        self.image_storage = image_storage
        self.access = access or AccessPolicy()

    def _require_pet(self, pet_id: int) -> Pet:
        pet = self.pet_repo.get_by_id(pet_id)
        if pet is None:
            raise NotFoundError("Pet", pet_id)
        return pet

    def _require_client(self, client_id: int) -> None:
        if self.client_repo.get_by_id(client_id) is None:
            raise NotFoundError("Client", client_id)

    def register_pet(self, principal: Principal, request: PetCreateRequest) -> Pet:
        """Register a pet for an existing client."""
        self.access.ensure_staff(principal)
        raise_if_invalid(request.validate())

        with self.uow:
            self._require_client(request.client_id)
            pet = self.pet_repo.create(request.to_entity())

        logger.info(
            "Pet registered",
            extra={
                "context": {
                    "pet_id": pet.id,
                    "client_id": pet.client_id,
                    "by": principal.email,
                }
            },
        )
        return pet

    def update_pet(self, principal: Principal, pet_id: int, patch: PetPatch) -> Pet:
        """Apply the fields present in ``patch``. A new client_id must exist."""
        self.access.ensure_staff(principal)
        raise_if_invalid(patch.validate())

        with self.uow:
            pet = self._require_pet(pet_id)
            if is_set(patch.client_id) and patch.client_id != pet.client_id:
                self._require_client(patch.client_id)
            patch.apply_to(pet)
            updated = self.pet_repo.update(pet)

        logger.info(
            "Pet updated", extra={"context": {"pet_id": pet_id, "by": principal.email}}
        )
        return updated

    def get_pet(self, principal: Principal, pet_id: int) -> Pet:
        pet = self._require_pet(pet_id)
        self.access.ensure_can_read_pet(principal, pet)
        return pet

    def list_pets(self, principal: Principal, page_request: PageRequest) -> Page[Pet]:
        owner_id = self.access.owner_scope(principal)
        return self.pet_repo.find_page(page_request, owner_id=owner_id)

    def pets_for_client(self, principal: Principal, client_id: int) -> List[Pet]:
        self._require_client(client_id)
        self.access.ensure_can_read_client(principal, client_id)
        return self.pet_repo.find_by_client_id(client_id)

    def delete_pet(self, principal: Principal, pet_id: int) -> None:
        """Delete a pet with its appointments and treatments, then its picture."""
        self.access.ensure_staff(principal)

        with self.uow:
            pet = self._require_pet(pet_id)
            self.pet_repo.delete(pet_id)

        logger.info(
            "Pet deleted", extra={"context": {"pet_id": pet_id, "by": principal.email}}
        )
        if pet.image_id:
            discard_images(self.image_storage, [pet.image_id])

    def attach_image(
        self, principal: Principal, pet_id: int, data: bytes, filename: str
    ) -> Pet:
        """Store a picture for the pet, replacing any previous one."""
        self.access.ensure_staff(principal)
        pet = self._require_pet(pet_id)
        allowed_extension(filename)
        storage = self._storage()

        new_image_id = storage.store(data, filename)
        previous_image_id = pet.image_id
        try:
            with self.uow:
                pet.image_id = new_image_id
                updated = self.pet_repo.update(pet)
        except Exception:
            discard_images(storage, [new_image_id])
            raise

        logger.info(
            "Pet image attached",
            extra={"context": {"pet_id": pet_id, "image_id": new_image_id}},
        )
        if previous_image_id:
            discard_images(storage, [previous_image_id])
        return updated

    def load_image(self, principal: Principal, pet_id: int) -> Tuple[bytes, str]:
        """Return (image bytes, image identifier) for a readable pet."""
        pet = self.get_pet(principal, pet_id)
        if not pet.image_id:
            raise NotFoundError("Image for pet", pet_id)
        return self._storage().load(pet.image_id), pet.image_id

    def _storage(self) -> IImageStorage:
        if self.image_storage is None:
            raise RuntimeError("Image storage is not configured")
        return self.image_storage
