"""
Course endpoints for API v1.

Courses are listed and read publicly, either across all bootcamps
(``/courses``, paginated) or for one bootcamp
(``/bootcamps/{id}/courses``, complete).
"""

from typing import Any, Dict

from fastapi import APIRouter, status

from devcamper_api.app.api.deps import CourseServiceDep, IdentityDep, QueryDep
from devcamper_api.app.schemas.course import CourseCreate, CourseUpdate

router = APIRouter()


@router.get("/courses")
async def list_courses(query: QueryDep, service: CourseServiceDep) -> Dict[str, Any]:
    page = await service.list_courses(query)
    return page.envelope()


@router.get("/bootcamps/{bootcamp_id}/courses")
async def list_bootcamp_courses(bootcamp_id: str, service: CourseServiceDep) -> Dict[str, Any]:
    page = await service.list_bootcamp_courses(bootcamp_id)
    return {"success": True, "count": len(page.data), "data": page.data}


@router.get("/courses/{course_id}")
async def get_course(course_id: str, service: CourseServiceDep) -> Dict[str, Any]:
    return {"success": True, "data": await service.get_course(course_id)}


@router.post("/bootcamps/{bootcamp_id}/courses", status_code=status.HTTP_201_CREATED)
async def create_course(
    bootcamp_id: str,
    data: CourseCreate,
    identity: IdentityDep,
    service: CourseServiceDep,
) -> Dict[str, Any]:
    return {"success": True, "data": await service.create_course(bootcamp_id, data, identity)}


@router.put("/courses/{course_id}")
async def update_course(
    course_id: str,
    data: CourseUpdate,
    identity: IdentityDep,
    service: CourseServiceDep,
) -> Dict[str, Any]:
    return {"success": True, "data": await service.update_course(course_id, data, identity)}


@router.delete("/courses/{course_id}")
async def delete_course(course_id: str, identity: IdentityDep, service: CourseServiceDep) -> Dict[str, Any]:
    await service.delete_course(course_id, identity)
    return {"success": True, "data": {}}
