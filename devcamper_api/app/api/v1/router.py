"""
Top‑level router for version 1 of the API.

Bootcamps, authentication and user administration are mounted under
their own prefix.  The course and review routers spell out their full
paths because they also expose nested ``/bootcamps/{id}/...`` routes.
"""

from fastapi import APIRouter

from .endpoints import auth, bootcamps, courses, reviews, users

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(bootcamps.router, prefix="/bootcamps", tags=["bootcamps"])
router.include_router(courses.router, tags=["courses"])
router.include_router(reviews.router, tags=["reviews"])
