"""
Unit tests for the role and ownership access rules.
"""

import logging

import pytest

from vetclinic.core.exceptions import AuthenticationError, PermissionDeniedError
from vetclinic.domain.access import NO_OWNER_SCOPE, AccessPolicy
from vetclinic.domain.entities import Appointment, Pet, Principal, Role, Treatment


@pytest.fixture
def policy() -> AccessPolicy:
    return AccessPolicy()


@pytest.mark.security
class TestAccessPolicy:
    """Staff see everything; owners only what hangs off their client."""

    def test_staff_has_no_owner_scope(self, policy, staff_principal):
        assert policy.owner_scope(staff_principal) is None
        assert policy.is_staff(staff_principal) is True

    def test_owner_scope_is_linked_client(self, policy, owner_principal):
        assert policy.owner_scope(owner_principal) == 1
        assert policy.is_staff(owner_principal) is False

    def test_owner_without_client_matches_nothing(self, policy):
        orphan = Principal(email="nobody@clinic.test", role=Role.OWNER)
        assert policy.owner_scope(orphan) == NO_OWNER_SCOPE

    def test_missing_principal_is_unauthenticated(self, policy):
        with pytest.raises(AuthenticationError):
            policy.owner_scope(None)
        with pytest.raises(AuthenticationError):
            policy.ensure_staff(None)
        assert policy.is_staff(None) is False

    def test_owner_cannot_write(self, policy, owner_principal):
        with pytest.raises(PermissionDeniedError):
            policy.ensure_staff(owner_principal)

    def test_staff_reads_any_record(self, policy, staff_principal):
        policy.ensure_can_read_client(staff_principal, 99)
        policy.ensure_can_read_pet(staff_principal, Pet(id=5, name="Rex", client_id=99))
        policy.ensure_can_read_appointment(
            staff_principal, Appointment(id=7, pet_id=5, owner_id=99)
        )
        policy.ensure_can_read_treatment(
            staff_principal, Treatment(id=3, price=10.0, appointment_id=7, owner_id=99)
        )

    def test_owner_reads_own_records(self, policy, owner_principal):
        policy.ensure_can_read_client(owner_principal, 1)
        policy.ensure_can_read_pet(owner_principal, Pet(id=5, name="Rex", client_id=1))
        policy.ensure_can_read_appointment(
            owner_principal, Appointment(id=7, pet_id=5, owner_id=1)
        )
        policy.ensure_can_read_treatment(
            owner_principal, Treatment(id=3, price=10.0, appointment_id=7, owner_id=1)
        )

    @pytest.mark.parametrize(
        "check, target",
        [
            ("ensure_can_read_client", 2),
            ("ensure_can_read_pet", Pet(id=5, name="Rex", client_id=2)),
            ("ensure_can_read_appointment", Appointment(id=7, pet_id=5, owner_id=2)),
            (
                "ensure_can_read_treatment",
                Treatment(id=3, price=1.0, appointment_id=7, owner_id=2),
            ),
        ],
    )
    def test_owner_denied_foreign_records(self, policy, owner_principal, check, target):
        with pytest.raises(PermissionDeniedError):
            getattr(policy, check)(owner_principal, target)

    def test_owner_without_client_denied_everything(self, policy):
        orphan = Principal(email="nobody@clinic.test", role=Role.OWNER)
        with pytest.raises(PermissionDeniedError):
            policy.ensure_can_read_pet(orphan, Pet(id=5, name="Rex", client_id=1))

    def test_denial_is_logged_with_context(self, policy, owner_principal, caplog):
        with caplog.at_level(logging.WARNING, logger="vetclinic.domain.access"):
            with pytest.raises(PermissionDeniedError):
                policy.ensure_can_read_client(owner_principal, 2)

        record = next(r for r in caplog.records if r.getMessage() == "Access denied")
        assert record.context["principal"] == "owner@clinic.test"
        assert record.context["resource"] == "client"
        assert record.context["resource_id"] == 2
