"""
Business logic for users.

Covers self registration and login, profile and password changes, the
forgot/reset password flow and administrative user management.  Stored
user documents carry the password hash and reset token fields; every
document leaving this service passes through ``public_user`` first.
"""

import logging
import time
from typing import Mapping, Optional, Tuple

from ..core.config import settings
from ..core.errors import AuthenticationError, NotFoundError, UpstreamError, ValidationError
from ..core.permissions import ADMINS, Identity, Verb, check, require_identity
from ..core.query import EQ, GT, Condition, QueryValue, parse_bool
from ..core.security import create_access_token, generate_reset_token, hash_password, hash_token, verify_password
from ..core.store import USERS, Document, DocumentStore
from ..schemas.user import PasswordUpdate, UserCreate, UserDetailsUpdate, UserRegister, UserUpdate
from .base import Page, list_documents, query_options
from .mailer import LoggingMailer, Mailer

logger = logging.getLogger(__name__)

PRIVATE_FIELDS = ("password", "resetPasswordToken", "resetPasswordExpire")

USER_QUERY = query_options(
    default_sort="-createdAt",
    excluded_keys=frozenset(PRIVATE_FIELDS),
    casts={"disabled": parse_bool},
)


def public_user(user: Document) -> Document:
    """Strip secrets from a stored user document."""
    return {key: value for key, value in user.items() if key not in PRIVATE_FIELDS}


def issue_token(user: Document) -> str:
    return create_access_token({"sub": user["id"]})


class UserService:
    """Service for authentication and user management."""

    def __init__(self, store: DocumentStore, mailer: Optional[Mailer] = None) -> None:
        self.store = store
        self.mailer = mailer or LoggingMailer()

    def _get_or_404(self, user_id: str) -> Document:
        user = self.store.get_by_id(USERS, user_id)
        if user is None:
            raise NotFoundError(f"No user with the id of {user_id}")
        return user

    def _find_by_email(self, email: str) -> Optional[Document]:
        users = self.store.find_all(USERS, (Condition("email", EQ, email.lower()),))
        return users[0] if users else None

    def _create(self, name: str, email: str, password: str, role: str) -> Document:
        return self.store.create(
            USERS,
            {
                "name": name,
                "email": email.lower(),
                "role": role,
                "password": hash_password(password),
            },
        )

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def register(self, data: UserRegister) -> Tuple[Document, str]:
        """Register a user or publisher and return it with a fresh token."""
        user = self._create(data.name, data.email, data.password, data.role)
        logger.info("Registered %s %s as %s", data.role, user["id"], user["email"])
        return public_user(user), issue_token(user)

    async def login(self, email: str, password: str) -> Tuple[Document, str]:
        user = self._find_by_email(email)
        if user is None or not verify_password(password, user.get("password")):
            logger.info("Failed login for %s", email)
            raise AuthenticationError("Invalid credentials")
        if user.get("disabled"):
            raise AuthenticationError("User account disabled")
        return public_user(user), issue_token(user)

    async def me(self, identity: Optional[Identity]) -> Document:
        identity = require_identity(identity)
        return public_user(self._get_or_404(identity.id))

    async def update_details(self, identity: Optional[Identity], data: UserDetailsUpdate) -> Document:
        identity = require_identity(identity)
        changes = data.to_changes()
        if "email" in changes:
            changes["email"] = changes["email"].lower()
        if not changes:
            return public_user(self._get_or_404(identity.id))
        updated = self.store.update(USERS, identity.id, changes)
        if updated is None:
            raise NotFoundError(f"No user with the id of {identity.id}")
        return public_user(updated)

    async def update_password(self, identity: Optional[Identity], data: PasswordUpdate) -> Tuple[Document, str]:
        identity = require_identity(identity)
        user = self._get_or_404(identity.id)
        if not verify_password(data.current_password, user.get("password")):
            raise AuthenticationError("Password is incorrect")
        updated = self.store.update(USERS, identity.id, {"password": hash_password(data.new_password)})
        logger.info("User %s changed their password", identity.id)
        return public_user(updated), issue_token(updated)

    async def forgot_password(self, email: str, reset_url_base: str) -> None:
        """Mail a password reset link valid for ``RESET_PASSWORD_EXPIRE_MINUTES``.

        Only the SHA‑256 hash of the token is stored.  When the mail
        cannot be sent the token is cleared again so no dangling reset
        remains.
        """
        user = self._find_by_email(email)
        if user is None:
            raise NotFoundError("There is no user with that email")
        token, hashed = generate_reset_token()
        expires = int(time.time()) + settings.reset_password_expire_minutes * 60
        self.store.update(USERS, user["id"], {"resetPasswordToken": hashed, "resetPasswordExpire": expires})
        reset_url = f"{reset_url_base.rstrip('/')}/{token}"
        message = (
            "You are receiving this email because you (or someone else) has requested "
            f"the reset of a password. Please make a PUT request to: \n\n{reset_url}"
        )
        try:
            self.mailer.send(user["email"], "Password reset token", message)
        except UpstreamError as exc:
            logger.error("Reset mail to %s failed: %s", user["email"], exc)
            self.store.update(USERS, user["id"], {}, unset=("resetPasswordToken", "resetPasswordExpire"))
            raise UpstreamError("Email could not be sent") from exc

    async def reset_password(self, reset_token: str, password: str) -> Tuple[Document, str]:
        conditions = (
            Condition("resetPasswordToken", EQ, hash_token(reset_token)),
            Condition("resetPasswordExpire", GT, int(time.time())),
        )
        users = self.store.find_all(USERS, conditions)
        if not users:
            raise ValidationError("Invalid token")
        user = self.store.update(
            USERS,
            users[0]["id"],
            {"password": hash_password(password)},
            unset=("resetPasswordToken", "resetPasswordExpire"),
        )
        logger.info("Password reset for user %s", user["id"])
        return public_user(user), issue_token(user)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def _require_admin(self, identity: Optional[Identity], verb: Verb) -> Identity:
        identity = require_identity(identity)
        check(identity, verb, roles=ADMINS)
        return identity

    async def list_users(self, identity: Optional[Identity], query_params: Mapping[str, QueryValue]) -> Page:
        self._require_admin(identity, Verb.READ)
        page = list_documents(self.store, USERS, query_params, USER_QUERY)
        page.data = [public_user(u) for u in page.data]
        return page

    async def get_user(self, identity: Optional[Identity], user_id: str) -> Document:
        self._require_admin(identity, Verb.READ)
        return public_user(self._get_or_404(user_id))

    async def create_user(self, identity: Optional[Identity], data: UserCreate) -> Document:
        admin = self._require_admin(identity, Verb.CREATE)
        user = self._create(data.name, data.email, data.password, data.role)
        logger.info("Admin %s created user %s", admin.id, user["id"])
        return public_user(user)

    async def update_user(self, identity: Optional[Identity], user_id: str, data: UserUpdate) -> Document:
        admin = self._require_admin(identity, Verb.UPDATE)
        user = self._get_or_404(user_id)
        changes = data.to_changes()
        if "email" in changes:
            changes["email"] = changes["email"].lower()
        if "password" in changes:
            changes["password"] = hash_password(changes["password"])
        if not changes:
            return public_user(user)
        updated = self.store.update(USERS, user_id, changes)
        if updated is None:
            raise NotFoundError(f"No user with the id of {user_id}")
        logger.info("Admin %s updated user %s: %s", admin.id, user_id, sorted(changes))
        return public_user(updated)

    async def delete_user(self, identity: Optional[Identity], user_id: str) -> None:
        """Deactivate a user; their bootcamps, courses and reviews remain."""
        admin = self._require_admin(identity, Verb.DELETE)
        if admin.id == user_id:
            raise ValidationError("You cannot deactivate your own account")
        self._get_or_404(user_id)
        self.store.update(USERS, user_id, {"disabled": True})
        logger.info("Admin %s deactivated user %s", admin.id, user_id)
