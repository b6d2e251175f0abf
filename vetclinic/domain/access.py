"""
Role and ownership based access rules.

Staff principals (veterinarians) see and change everything. Owner principals
(clients) only read records that hang off their own Client: their client
record, their pets, the appointments of those pets and the treatments of
those appointments. Owners never write.

Collections are scoped silently through ``owner_scope``; single records are
checked with the ``ensure_*`` methods after the caller has confirmed the
record exists, so a missing id is NotFound and a foreign id is
PermissionDenied.
"""

import logging
from typing import Optional

from vetclinic.core.exceptions import AuthenticationError, PermissionDeniedError

from .entities import Appointment, Pet, Principal, Treatment

logger = logging.getLogger(__name__)

# Scope used for owner accounts without a linked client; matches no row
NO_OWNER_SCOPE = -1


class AccessPolicy:
    """Evaluates what an authenticated principal may read or write."""

    def is_staff(self, principal: Optional[Principal]) -> bool:
        return principal is not None and principal.is_staff

    def owner_scope(self, principal: Optional[Principal]) -> Optional[int]:
        """Client id that listings must be restricted to, or None for staff."""
        self._require_principal(principal)
        if principal.is_staff:
            return None
        if principal.client_id is None:
            return NO_OWNER_SCOPE
        return principal.client_id

    def ensure_staff(self, principal: Optional[Principal]) -> None:
        """Raise unless the principal holds the staff role."""
        self._require_principal(principal)
        if not principal.is_staff:
            self._deny(principal, "staff_only")

    def ensure_can_read_client(
        self, principal: Optional[Principal], client_id: int
    ) -> None:
        self._ensure_owner_matches(principal, client_id, "client", client_id)

    def ensure_can_read_pet(self, principal: Optional[Principal], pet: Pet) -> None:
        self._ensure_owner_matches(principal, pet.client_id, "pet", pet.id)

    def ensure_can_read_appointment(
        self, principal: Optional[Principal], appointment: Appointment
    ) -> None:
        self._ensure_owner_matches(
            principal, appointment.owner_id, "appointment", appointment.id
        )

    def ensure_can_read_treatment(
        self, principal: Optional[Principal], treatment: Treatment
    ) -> None:
        self._ensure_owner_matches(
            principal, treatment.owner_id, "treatment", treatment.id
        )

    def _ensure_owner_matches(
        self,
        principal: Optional[Principal],
        owner_id: Optional[int],
        resource: str,
        resource_id: Optional[int],
    ) -> None:
        self._require_principal(principal)
        if principal.is_staff:
            return
        if principal.client_id is None or owner_id != principal.client_id:
            self._deny(principal, resource, resource_id)

    @staticmethod
    def _require_principal(principal: Optional[Principal]) -> None:
        if principal is None:
            raise AuthenticationError()

    @staticmethod
    def _deny(
        principal: Principal, resource: str, resource_id: Optional[int] = None
    ) -> None:
        logger.warning(
            "Access denied",
            extra={
                "context": {
                    "principal": principal.email,
                    "role": principal.role.value,
                    "resource": resource,
                    "resource_id": resource_id,
                }
            },
        )
        raise PermissionDeniedError()
