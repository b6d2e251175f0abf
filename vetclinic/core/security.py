from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from passlib.context import CryptContext

from vetclinic.domain.entities import Principal, Role

# Password hashing configuration
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        Hashed password string
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash.

    Args:
        plain_password: Plain text password to verify
        hashed_password: Hashed password to verify against

    Returns:
        True if password matches, False otherwise
    """
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unknown or malformed hash
        return False


# JWT configuration
JWT_ALGORITHM = "RS256"
JWT_EXPIRATION_HOURS = 24


def generate_rsa_key_pair(key_size: int = 2048) -> Tuple[str, str]:
    """Generate an RSA key pair for token signing.

    Returns:
        (private_pem, public_pem) as text
    """
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem.decode("utf-8"), public_pem.decode("utf-8")


class TokenService:
    """Issues and validates RS256 access tokens.

    The private key signs, the public key verifies. A service built with only
    a public key can validate but not issue.
    """

    def __init__(
        self,
        private_key: Optional[str],
        public_key: Optional[str],
        expiration_hours: int = JWT_EXPIRATION_HOURS,
        issuer: str = "vetclinic",
    ) -> None:
        self.private_key = private_key
        self.public_key = public_key
        self.expiration_hours = expiration_hours
        self.issuer = issuer

    def issue(self, principal: Principal, now: Optional[datetime] = None) -> str:
        """Create a signed token for the principal.

        Raises:
            RuntimeError: If no private key is configured
        """
        if not self.private_key:
            raise RuntimeError("JWT private key is not configured")

        issued_at = now or datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "sub": principal.email,
            "role": principal.role.value,
            "client_id": principal.client_id,
            "veterinarian_id": principal.veterinarian_id,
            "iat": issued_at,
            "exp": issued_at + timedelta(hours=self.expiration_hours),
            "iss": self.issuer,
        }
        return jwt.encode(payload, self.private_key, algorithm=JWT_ALGORITHM)

    def decode(self, token: str) -> Optional[Dict[str, Any]]:
        """Decode and verify a token, returning its claims or None."""
        if not self.public_key or not token:
            return None
        try:
            return jwt.decode(
                token,
                self.public_key,
                algorithms=[JWT_ALGORITHM],
                issuer=self.issuer,
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.PyJWTError:
            return None

    def validate(self, token: str) -> Optional[Principal]:
        """Turn a valid token into a Principal; None when invalid or expired."""
        claims = self.decode(token)
        if claims is None:
            return None
        try:
            role = Role.parse(claims.get("role"))
        except ValueError:
            return None
        return Principal(
            email=claims["sub"],
            role=role,
            client_id=claims.get("client_id"),
            veterinarian_id=claims.get("veterinarian_id"),
        )
