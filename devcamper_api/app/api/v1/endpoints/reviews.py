"""
API endpoints for bootcamp reviews.

Anyone may read reviews.  Users and administrators may review a
bootcamp once; the author or an administrator may edit or remove it.
"""

from typing import Any, Dict

from fastapi import APIRouter, status

from devcamper_api.app.api.deps import IdentityDep, QueryDep, ReviewServiceDep
from devcamper_api.app.schemas.review import ReviewCreate, ReviewUpdate

router = APIRouter()


@router.get("/reviews", summary="List reviews")
async def list_reviews(query: QueryDep, service: ReviewServiceDep) -> Dict[str, Any]:
    page = await service.list_reviews(query)
    return page.envelope()


@router.get("/bootcamps/{bootcamp_id}/reviews", summary="List the reviews of a bootcamp")
async def list_bootcamp_reviews(bootcamp_id: str, service: ReviewServiceDep) -> Dict[str, Any]:
    page = await service.list_bootcamp_reviews(bootcamp_id)
    return {"success": True, "count": len(page.data), "data": page.data}


@router.get("/reviews/{review_id}", summary="Get a review")
async def get_review(review_id: str, service: ReviewServiceDep) -> Dict[str, Any]:
    return {"success": True, "data": await service.get_review(review_id)}


@router.post(
    "/bootcamps/{bootcamp_id}/reviews",
    status_code=status.HTTP_201_CREATED,
    summary="Submit a review",
)
async def create_review(
    bootcamp_id: str,
    data: ReviewCreate,
    identity: IdentityDep,
    service: ReviewServiceDep,
) -> Dict[str, Any]:
    """Create a review; a second review of the same bootcamp is rejected."""
    return {"success": True, "data": await service.create_review(bootcamp_id, data, identity)}


@router.put("/reviews/{review_id}", summary="Update a review")
async def update_review(
    review_id: str,
    data: ReviewUpdate,
    identity: IdentityDep,
    service: ReviewServiceDep,
) -> Dict[str, Any]:
    return {"success": True, "data": await service.update_review(review_id, data, identity)}


@router.delete("/reviews/{review_id}", summary="Delete a review")
async def delete_review(review_id: str, identity: IdentityDep, service: ReviewServiceDep) -> Dict[str, Any]:
    await service.delete_review(review_id, identity)
    return {"success": True, "data": {}}
