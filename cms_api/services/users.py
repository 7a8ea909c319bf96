"""
User accounts: registration, credential checks and admin management.
"""
from typing import Any, Dict, Optional

from ..errors import AuthenticationError, ConflictError, NotFoundError
from ..logging_config import get_logger
from ..schemas.auth import RegisterRequest, Role, UserCreate, UserResponse, UserUpdate
from ..store import DocumentStore, DuplicateKeyError
from .clock import Clock, utcnow
from .query import USER_SEARCH_FIELDS, Page, paginate, search_clause

USERS_COLLECTION = "users"

logger = get_logger("users")


def to_response(user: Dict[str, Any]) -> UserResponse:
    """Public view of a user document; never exposes the password hash."""
    return UserResponse(**{k: v for k, v in user.items() if k != "password_hash"})


class UserService:
    def __init__(self, store: DocumentStore, hash_password, verify_password, clock: Clock = utcnow) -> None:
        self.store = store
        self.hash_password = hash_password
        self.verify_password = verify_password
        self.clock = clock

    def get(self, id: str) -> Dict[str, Any]:
        user = self.store.find_by_id(USERS_COLLECTION, id)
        if user is None:
            raise NotFoundError.for_resource("User", "ID", id)
        return user

    def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return self.store.find_one(USERS_COLLECTION, {"email": email.strip().lower()})

    def register(self, data: RegisterRequest) -> Dict[str, Any]:
        """Self-service sign-up; always lands as a viewer."""
        return self.create(UserCreate(**data.model_dump(), role=Role.VIEWER))

    def create(self, data: UserCreate) -> Dict[str, Any]:
        email = data.email.strip().lower()
        if self.find_by_email(email) is not None:
            raise ConflictError("Email already registered", {"email": email})
        now = self.clock()
        document = {
            "email": email,
            "password_hash": self.hash_password(data.password),
            "first_name": data.first_name,
            "last_name": data.last_name,
            "role": Role(data.role).value,
            "is_active": data.is_active,
            "avatar": None,
            "bio": None,
            "last_login_at": None,
            "created_at": now,
            "updated_at": now,
        }
        try:
            user = self.store.insert(USERS_COLLECTION, document)
        except DuplicateKeyError as exc:
            raise ConflictError("Email already registered", {"email": email}) from exc
        logger.info("User created", id=user["id"], role=user["role"])
        return user

    def authenticate(self, email: str, password: str) -> Dict[str, Any]:
        """Check credentials and record the login time."""
        user = self.find_by_email(email)
        if user is None or not self.verify_password(password, user["password_hash"]):
            raise AuthenticationError("Invalid email or password")
        if not user.get("is_active", True):
            raise AuthenticationError("Account is disabled")
        return self.store.update_by_id(USERS_COLLECTION, user["id"], {"last_login_at": self.clock()})

    def list(self, page: int, page_size: int, role: Optional[Role] = None, search: Optional[str] = None) -> Page:
        filter: Dict[str, Any] = {}
        if role:
            filter["role"] = Role(role).value
        if search and search.strip():
            filter.update(search_clause(search.strip(), USER_SEARCH_FIELDS))
        return paginate(self.store, USERS_COLLECTION, filter, page=page, page_size=page_size)

    def update_profile(self, id: str, patch: UserUpdate) -> Dict[str, Any]:
        self.get(id)
        changes = patch.model_dump(exclude_unset=True)
        if "email" in changes and changes["email"] is not None:
            changes["email"] = changes["email"].strip().lower()
            other = self.find_by_email(changes["email"])
            if other is not None and other["id"] != id:
                raise ConflictError("Email already registered", {"email": changes["email"]})
        password = changes.pop("password", None)
        if password:
            changes["password_hash"] = self.hash_password(password)
        changes = {k: v for k, v in changes.items() if v is not None or k in ("avatar", "bio")}
        changes["updated_at"] = self.clock()
        try:
            return self.store.update_by_id(USERS_COLLECTION, id, changes)
        except DuplicateKeyError as exc:
            raise ConflictError("Email already registered", {"email": changes.get("email")}) from exc

    def change_role(self, id: str, role: Role) -> Dict[str, Any]:
        self.get(id)
        updated = self.store.update_by_id(USERS_COLLECTION, id, {"role": Role(role).value, "updated_at": self.clock()})
        logger.info("User role changed", id=id, role=Role(role).value)
        return updated

    def delete(self, id: str) -> None:
        if not self.store.delete_by_id(USERS_COLLECTION, id):
            raise NotFoundError.for_resource("User", "ID", id)
        logger.info("User deleted", id=id)
