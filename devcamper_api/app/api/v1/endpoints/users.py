"""
Administrative user management for API v1.

Every route requires an administrator.  ``DELETE`` deactivates the
account instead of removing it so content owned by the user survives.
"""

from typing import Any, Dict

from fastapi import APIRouter, status

from devcamper_api.app.api.deps import IdentityDep, QueryDep, UserServiceDep
from devcamper_api.app.schemas.user import UserCreate, UserUpdate

router = APIRouter()


@router.get("")
async def list_users(identity: IdentityDep, query: QueryDep, service: UserServiceDep) -> Dict[str, Any]:
    """List users; supports the usual filter, select, sort and paging parameters."""
    page = await service.list_users(identity, query)
    return page.envelope()


@router.get("/{user_id}")
async def get_user(user_id: str, identity: IdentityDep, service: UserServiceDep) -> Dict[str, Any]:
    return {"success": True, "data": await service.get_user(identity, user_id)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(data: UserCreate, identity: IdentityDep, service: UserServiceDep) -> Dict[str, Any]:
    return {"success": True, "data": await service.create_user(identity, data)}


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    data: UserUpdate,
    identity: IdentityDep,
    service: UserServiceDep,
) -> Dict[str, Any]:
    return {"success": True, "data": await service.update_user(identity, user_id, data)}


@router.delete("/{user_id}")
async def delete_user(user_id: str, identity: IdentityDep, service: UserServiceDep) -> Dict[str, Any]:
    await service.delete_user(identity, user_id)
    return {"success": True, "data": {}}
