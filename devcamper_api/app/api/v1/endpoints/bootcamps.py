"""
Bootcamp endpoints for API v1.

Listing and reading are public.  Creating requires a publisher or an
administrator; changes, photo uploads and deletion are restricted to
the bootcamp owner or an administrator.
"""

from typing import Any, Dict

from fastapi import APIRouter, File, UploadFile, status

from devcamper_api.app.api.deps import BootcampServiceDep, IdentityDep, QueryDep
from devcamper_api.app.schemas.bootcamp import BootcampCreate, BootcampUpdate

router = APIRouter()


@router.get("")
async def list_bootcamps(query: QueryDep, service: BootcampServiceDep) -> Dict[str, Any]:
    """List bootcamps.

    Accepts field filters (``averageCost[lte]=10000``, ``careers[in]=...``),
    ``select``, ``sort``, ``page`` and ``limit``.
    """
    page = await service.list_bootcamps(query)
    return page.envelope()


# Declared before "/{bootcamp_id}" routes so "radius" is not taken for an id.
@router.get("/radius/{zipcode}/{distance}")
async def bootcamps_in_radius(zipcode: str, distance: float, service: BootcampServiceDep) -> Dict[str, Any]:
    """Bootcamps within ``distance`` miles of ``zipcode``."""
    bootcamps = await service.bootcamps_in_radius(zipcode, distance)
    return {"success": True, "count": len(bootcamps), "data": bootcamps}


@router.get("/{bootcamp_id}")
async def get_bootcamp(bootcamp_id: str, service: BootcampServiceDep) -> Dict[str, Any]:
    return {"success": True, "data": await service.get_bootcamp(bootcamp_id)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_bootcamp(
    data: BootcampCreate,
    identity: IdentityDep,
    service: BootcampServiceDep,
) -> Dict[str, Any]:
    return {"success": True, "data": await service.create_bootcamp(data, identity)}


@router.put("/{bootcamp_id}")
async def update_bootcamp(
    bootcamp_id: str,
    data: BootcampUpdate,
    identity: IdentityDep,
    service: BootcampServiceDep,
) -> Dict[str, Any]:
    return {"success": True, "data": await service.update_bootcamp(bootcamp_id, data, identity)}


@router.delete("/{bootcamp_id}")
async def delete_bootcamp(bootcamp_id: str, identity: IdentityDep, service: BootcampServiceDep) -> Dict[str, Any]:
    """Delete a bootcamp together with its courses and reviews."""
    await service.delete_bootcamp(bootcamp_id, identity)
    return {"success": True, "data": {}}


@router.put("/{bootcamp_id}/photo")
async def upload_photo(
    bootcamp_id: str,
    identity: IdentityDep,
    service: BootcampServiceDep,
    file: UploadFile = File(None),
) -> Dict[str, Any]:
    """Upload the bootcamp photo as multipart field ``file``."""
    if file is None:
        name = await service.upload_photo(bootcamp_id, identity, None, None, b"")
    else:
        content = await file.read()
        name = await service.upload_photo(bootcamp_id, identity, file.filename, file.content_type, content)
    return {"success": True, "data": name}


@router.post("/{bootcamp_id}/recompute")
async def recompute_aggregates(
    bootcamp_id: str,
    identity: IdentityDep,
    service: BootcampServiceDep,
) -> Dict[str, Any]:
    """Rebuild ``averageCost`` and ``averageRating`` from the stored children."""
    return {"success": True, "data": await service.recompute(bootcamp_id, identity)}
