import logging
from typing import Optional, Tuple

from vetclinic.core.exceptions import AuthenticationError, ConflictError
from vetclinic.core.security import TokenService, hash_password, verify_password
from vetclinic.db.session import UnitOfWork
from vetclinic.domain.entities import Principal, Role, UserAccount
from vetclinic.domain.interfaces import (
    IClientRepository,
    IUserRepository,
    IVeterinarianRepository,
)
from vetclinic.schemas.dtos import LoginRequest, RegisterRequest, raise_if_invalid

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


class UserService:
    """Application service for login accounts.

    This service:
    - Creates an account together with the Client or Veterinarian record
      its role requires, in one transaction
    - Verifies credentials and issues access tokens
    """

    def __init__(
        self,
        user_repo: IUserRepository,
        client_repo: IClientRepository,
        veterinarian_repo: IVeterinarianRepository,
        uow: UnitOfWork,
        token_service: Optional[TokenService] = None,
    ) -> None:
        self.user_repo = user_repo
        self.client_repo = client_repo
        self.veterinarian_repo = veterinarian_repo
        self.uow = uow
        self.token_service = token_service

    def create_account(self, request: RegisterRequest) -> Principal:
        """Create the account and its linked record.

        Business Rules:
        - Email must be unused
        - CLIENT accounts create a Client (national id must be unique)
        - VETERINARIAN accounts create a Veterinarian (license must be
          unique) whose contact email is the account email

        Raises:
            ValidationError: If a field breaks its rule
            ConflictError: If the email, national id or license is taken
        """
        raise_if_invalid(request.validate())
        role = request.parsed_role

        with self.uow:
            if self.user_repo.get_by_email(request.email):
                raise ConflictError("An account with this email already exists")

            account = UserAccount(
                email=request.email,
                password_hash=hash_password(request.password),
                role=role,
            )
            if role == Role.OWNER:
                if self.client_repo.get_by_national_id(request.national_id):
                    raise ConflictError("A client with this national ID already exists")
                account.client_id = self.client_repo.create(request.client_entity()).id
            else:
                if self.veterinarian_repo.get_by_license_number(request.license_number):
                    raise ConflictError(
                        "A veterinarian with this license number already exists"
                    )
                account.veterinarian_id = self.veterinarian_repo.create(
                    request.veterinarian_entity()
                ).id
            account = self.user_repo.create(account)

        logger.info(
            "Account registered",
            extra={
                "context": {
                    "email": account.email,
                    "role": account.role.value,
                    "client_id": account.client_id,
                    "veterinarian_id": account.veterinarian_id,
                }
            },
        )
        return account.to_principal()

    def register(self, request: RegisterRequest) -> Tuple[Principal, str]:
        """Create the account and return it with a fresh access token."""
        principal = self.create_account(request)
        return principal, self._issue(principal)

    def authenticate(self, request: LoginRequest) -> Tuple[Principal, str]:
        """Verify credentials and return the principal with an access token.

        Unknown email and wrong password fail the same way.
        """
        raise_if_invalid(request.validate())

        account = self.user_repo.get_by_email(request.email)
        if account is None or not verify_password(
            request.password, account.password_hash
        ):
            logger.warning(
                "Failed login attempt",
                extra={"context": {"email": (request.email or "").strip().lower()}},
            )
            raise AuthenticationError(INVALID_CREDENTIALS)

        principal = account.to_principal()
        logger.info("Login succeeded", extra={"context": {"email": principal.email}})
        return principal, self._issue(principal)

    def _issue(self, principal: Principal) -> str:
        if self.token_service is None:
            raise RuntimeError("Token service is not configured")
        return self.token_service.issue(principal)
