"""User accounts: create, look up, update, delete. Passwords are stored hashed."""
import logging
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.core.audit import AuditLog
from storefront.core.config import settings
from storefront.core.exceptions import ConflictError, NotFoundError, ValidationError
from storefront.core.security import get_password_hash
from storefront.db.repository import Repository
from storefront.db.session import atomic
from storefront.models.user import USER_ROLES, User
from storefront.schemas.user import UserCreate, UserUpdate
from storefront.services.validation import optional_text, require_text

logger = logging.getLogger(__name__)


def _username(value: str) -> str:
    username = require_text(value, "username", 50)
    if len(username) < settings.MIN_USERNAME_LENGTH:
        raise ValidationError(
            f"username must be at least {settings.MIN_USERNAME_LENGTH} characters", field="username"
        )
    return username


def _password(value: str) -> str:
    if not isinstance(value, str) or len(value) < settings.MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"password must be at least {settings.MIN_PASSWORD_LENGTH} characters", field="password"
        )
    return value


def _role(value: int) -> int:
    if value not in USER_ROLES:
        raise ValidationError(f"Invalid role {value!r}; expected one of {USER_ROLES}", field="role")
    return value


def get_user(db: Session, user_id: int) -> User:
    user = Repository(db, User).find_by_id(user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.id).all()


def create_user(db: Session, data: UserCreate) -> User:
    username = _username(data.username)
    password = _password(data.password)
    role = _role(data.role)

    repo = Repository(db, User)
    try:
        with atomic(db):
            if repo.exists("username", username):
                raise ConflictError(f"Username '{username}' is already taken")
            try:
                user = repo.insert(
                    User(
                        username=username,
                        hashed_password=get_password_hash(password),
                        phone=optional_text(data.phone, "phone"),
                        email=data.email,
                        role=role,
                        is_active=True,
                    )
                )
            except IntegrityError as exc:
                # Unique index on username, hit by a concurrent insert
                raise ConflictError(f"Username '{username}' is already taken") from exc
            user_id = user.id
    except ConflictError as exc:
        AuditLog.log_rejected("create", "user", None, exc.message)
        raise

    logger.info(f"[Users] Created user '{username}' (id={user_id})")
    AuditLog.log_action("create", "user", user_id, changes={"username": username, "role": role})
    return get_user(db, user_id)


def update_user(db: Session, user_id: int, data: UserUpdate) -> User:
    values: Dict[str, Any] = data.model_dump(exclude_unset=True)
    if "username" in values:
        values["username"] = _username(values["username"])
    if "password" in values:
        values["hashed_password"] = get_password_hash(_password(values.pop("password")))
    if "phone" in values:
        values["phone"] = optional_text(values["phone"], "phone")
    if "role" in values:
        values["role"] = _role(values["role"])
    if values.get("is_active", True) is None:
        values.pop("is_active")

    repo = Repository(db, User)
    with atomic(db):
        user = repo.find_by_id(user_id, for_update=True)
        if user is None:
            raise NotFoundError("User", user_id)
        username = values.get("username")
        if username and username != user.username and repo.exists("username", username):
            raise ConflictError(f"Username '{username}' is already taken")
        repo.update(user, **values)

    changes = {k: v for k, v in values.items() if k != "hashed_password"}
    if "hashed_password" in values:
        changes["password"] = "changed"
    AuditLog.log_action("update", "user", user_id, changes=changes)
    return get_user(db, user_id)


def delete_user(db: Session, user_id: int) -> bool:
    repo = Repository(db, User)
    with atomic(db):
        user = repo.find_by_id(user_id, for_update=True)
        if user is None:
            raise NotFoundError("User", user_id)
        username = user.username
        repo.delete(user)
    logger.info(f"[Users] Deleted user '{username}' (id={user_id})")
    AuditLog.log_action("delete", "user", user_id, changes={"username": username})
    return True
