"""
Role and ownership based access decisions.

``authorize`` is a pure function: it receives the caller identity (or
``None`` for anonymous requests) and a description of the attempted
action, including the owner of the target record when ownership
matters, and returns a ``Decision``.  It performs no lookups; the
caller loads whatever record is needed beforehand.

Rules, evaluated in order:

1. Anonymous callers may read; every other verb is unauthenticated.
2. Administrators may do anything.
3. If the action lists required roles, the caller must hold one.
4. If the action names a resource owner, the caller must be that owner.
5. Otherwise the action is allowed.
"""

import enum
from dataclasses import dataclass
from typing import FrozenSet, Optional

from .errors import ApiError, AuthenticationError, AuthorizationError


class Role(str, enum.Enum):
    USER = "user"
    PUBLISHER = "publisher"
    ADMIN = "admin"


class Verb(str, enum.Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class DenyReason(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class Identity:
    """The authenticated caller as resolved from a token."""

    id: str
    role: Role


@dataclass(frozen=True)
class Action:
    verb: Verb
    resource_owner_id: Optional[str] = None
    required_roles: FrozenSet[Role] = frozenset()


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[DenyReason] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def deny(reason: DenyReason) -> Decision:
    return Decision(False, reason)


def authorize(identity: Optional[Identity], action: Action) -> Decision:
    """Decide whether ``identity`` may perform ``action``."""
    if identity is None:
        if action.verb is Verb.READ:
            return ALLOW
        return deny(DenyReason.UNAUTHENTICATED)
    if identity.role is Role.ADMIN:
        return ALLOW
    if action.required_roles and identity.role not in action.required_roles:
        return deny(DenyReason.FORBIDDEN)
    if action.resource_owner_id is not None and identity.id != action.resource_owner_id:
        return deny(DenyReason.FORBIDDEN)
    return ALLOW


def ensure_allowed(decision: Decision, message: Optional[str] = None) -> None:
    """Raise the error matching a denied ``decision``; no‑op when allowed.

    ``message`` replaces the default text for forbidden decisions, so
    services can say which record the caller may not touch.
    """
    if decision.allowed:
        return
    error: ApiError
    if decision.reason is DenyReason.UNAUTHENTICATED:
        error = AuthenticationError("Not authorized to access this route")
    else:
        error = AuthorizationError(message or "Not authorized to access this route")
    raise error


def check(
    identity: Optional[Identity],
    verb: Verb,
    *,
    owner_id: Optional[str] = None,
    roles: FrozenSet[Role] = frozenset(),
    message: Optional[str] = None,
) -> None:
    """Shortcut combining ``authorize`` and ``ensure_allowed``.

    ``message`` may contain ``{user}``, replaced by the caller's id.
    """
    decision = authorize(identity, Action(verb, owner_id, roles))
    if message and identity is not None:
        message = message.format(user=identity.id)
    ensure_allowed(decision, message)


def require_identity(identity: Optional[Identity]) -> Identity:
    """Reject anonymous callers on routes that are private even for reads."""
    if identity is None:
        raise AuthenticationError("Not authorized to access this route")
    return identity


PUBLISHERS = frozenset({Role.PUBLISHER, Role.ADMIN})
REVIEWERS = frozenset({Role.USER, Role.ADMIN})
ADMINS = frozenset({Role.ADMIN})
