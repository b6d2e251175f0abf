from typing import Optional

from vetclinic.db.base import User as DbUser
from vetclinic.domain.entities import Role, UserAccount
from vetclinic.domain.interfaces import IUserRepository


class UserRepository(IUserRepository):
    """Repository for login accounts.

    Emails are stored lower-cased so lookups are case-insensitive.
    """

    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_email(self, email: str) -> Optional[UserAccount]:
        db_user = (
            self.db.query(DbUser).filter_by(email=(email or "").strip().lower()).first()
        )
        return self._to_domain(db_user) if db_user else None

    def create(self, account: UserAccount) -> UserAccount:
        db_user = DbUser(
            email=account.email.strip().lower(),
            password_hash=account.password_hash,
            role=account.role.value,
            client_id=account.client_id,
            veterinarian_id=account.veterinarian_id,
        )
        self.db.add(db_user)
        self.db.flush()
        self.db.refresh(db_user)
        return self._to_domain(db_user)

    def _to_domain(self, db_user: DbUser) -> UserAccount:
        return UserAccount(
            id=db_user.id,
            email=db_user.email,
            password_hash=db_user.password_hash,
            role=Role.parse(db_user.role),
            client_id=db_user.client_id,
            veterinarian_id=db_user.veterinarian_id,
        )
