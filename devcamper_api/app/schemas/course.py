"""
Pydantic schemas for courses.
"""

from typing import Literal, Optional

from pydantic import Field

from .base import CamelModel

Skill = Literal["beginner", "intermediate", "advanced"]


class CourseCreate(CamelModel):
    """Schema for adding a course to a bootcamp."""

    title: str = Field(..., min_length=1, examples=["Front End Web Development"])
    description: str = Field(..., min_length=1)
    weeks: int = Field(..., ge=1, examples=[8])
    cost: int = Field(..., ge=0, description="Tuition cost", examples=[8000])
    minimum_skill: Skill
    scholarship_available: bool = False


class CourseUpdate(CamelModel):
    """Schema for updating a course.

    ``bootcamp`` moves the course to another bootcamp owned by the
    caller; both bootcamps get their average cost recomputed.
    """

    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    weeks: Optional[int] = Field(None, ge=1)
    cost: Optional[int] = Field(None, ge=0)
    minimum_skill: Optional[Skill] = None
    scholarship_available: Optional[bool] = None
    bootcamp: Optional[str] = Field(None, min_length=1)
