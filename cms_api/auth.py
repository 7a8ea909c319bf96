"""
Authentication utilities: JWT tokens, password hashing and the identity
provider that turns a bearer token into a Principal.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, Header

from .config import get_settings
from .errors import AuthenticationError
from .schemas.auth import Role
from .services.authorization import Principal
from .services.users import USERS_COLLECTION
from .store import DocumentStore, get_store

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password for storage."""
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_refresh_token(data: dict) -> str:
    """Create a JWT refresh token with longer expiration."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(days=settings.refresh_token_expire_days)
    to_encode.update({"exp": expire, "type": "refresh"})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_tokens(user_id: str) -> Tuple[str, str]:
    """Create both access and refresh tokens for a user."""
    data = {"sub": str(user_id)}
    return create_access_token(data), create_refresh_token(data)


def verify_token(token: str, expected_type: str = "access") -> Optional[dict]:
    """Verify a JWT token and return its payload."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if payload.get("type", "access") != expected_type:
        return None
    return payload


class IdentityProvider:
    """Resolves credentials to a Principal.

    The role is read from the stored user on every request, so role changes
    and deactivation take effect without waiting for tokens to expire.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    def authenticate(self, authorization: Optional[str]) -> Principal:
        if not authorization or not authorization.lower().startswith("bearer "):
            raise AuthenticationError("Authentication required")
        token = authorization.split(" ", maxsplit=1)[1].strip()
        if not token:
            raise AuthenticationError("Empty bearer token")
        return self.principal_for_token(token, "access")

    def principal_for_token(self, token: str, expected_type: str) -> Principal:
        payload = verify_token(token, expected_type)
        if not payload or not payload.get("sub"):
            raise AuthenticationError("Invalid or expired token")
        user = self.store.find_by_id(USERS_COLLECTION, str(payload["sub"]))
        if user is None or not user.get("is_active", True):
            raise AuthenticationError("Invalid or expired token")
        return Principal(id=user["id"], role=Role(user["role"]))

    def refresh(self, refresh_token: str) -> Tuple[str, str]:
        """Exchange a valid refresh token for a new token pair."""
        principal = self.principal_for_token(refresh_token, "refresh")
        return create_tokens(principal.id)


def get_identity_provider(store: DocumentStore = Depends(get_store)) -> IdentityProvider:
    return IdentityProvider(store)


def get_required_principal(
    authorization: Optional[str] = Header(default=None),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> Principal:
    """Get the current principal, raising 401 if not authenticated."""
    return identity.authenticate(authorization)
