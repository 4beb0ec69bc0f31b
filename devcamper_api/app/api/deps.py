"""
Dependencies shared by the API v1 routers.

Collaborators (store, geocoder, mailer, photo storage) live on
``app.state`` and are set up by ``main.create_app``; tests pass their
own.  The caller identity comes from a bearer token, falling back to the
``token`` cookie set at login.  An invalid token yields an anonymous
caller; the services decide whether that is enough.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..core.permissions import Identity, require_identity
from ..core.query import query_params_to_dict
from ..core.security import resolve_identity
from ..core.store import DocumentStore
from ..services.bootcamp_service import BootcampService
from ..services.course_service import CourseService
from ..services.review_service import ReviewService
from ..services.user_service import UserService

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)

TOKEN_COOKIE = "token"


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


StoreDep = Annotated[DocumentStore, Depends(get_store)]


def get_optional_identity(
    request: Request,
    store: StoreDep,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Optional[Identity]:
    """Resolve the caller, or ``None`` for anonymous requests."""
    token = credentials.credentials if credentials else request.cookies.get(TOKEN_COOKIE)
    identity = resolve_identity(token, store)
    if token and identity is None:
        logger.debug("Ignoring invalid or stale token on %s", request.url.path)
    return identity


IdentityDep = Annotated[Optional[Identity], Depends(get_optional_identity)]


def get_current_identity(identity: IdentityDep) -> Identity:
    """Like ``get_optional_identity`` but rejects anonymous callers with 401."""
    return require_identity(identity)


CurrentIdentityDep = Annotated[Identity, Depends(get_current_identity)]


def get_bootcamp_service(request: Request, store: StoreDep) -> BootcampService:
    state = request.app.state
    return BootcampService(store, geocoder=state.geocoder, photo_storage=state.photo_storage)


def get_course_service(store: StoreDep) -> CourseService:
    return CourseService(store)


def get_review_service(store: StoreDep) -> ReviewService:
    return ReviewService(store)


def get_user_service(request: Request, store: StoreDep) -> UserService:
    return UserService(store, mailer=request.app.state.mailer)


BootcampServiceDep = Annotated[BootcampService, Depends(get_bootcamp_service)]
CourseServiceDep = Annotated[CourseService, Depends(get_course_service)]
ReviewServiceDep = Annotated[ReviewService, Depends(get_review_service)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]


def query_dict(request: Request) -> dict:
    """Query string as ``{key: [values...]}`` for the query compiler."""
    return query_params_to_dict(request.query_params.multi_items())


QueryDep = Annotated[dict, Depends(query_dict)]
