"""
Pydantic schemas for bootcamps.
"""

from typing import List, Literal, Optional

from pydantic import Field, field_validator

from .base import EMAIL_PATTERN, URL_PATTERN, CamelModel

Career = Literal[
    "Web Development",
    "Mobile Development",
    "UI/UX",
    "Data Science",
    "Business",
    "Other",
]


class BootcampCreate(CamelModel):
    """Schema for creating a bootcamp.  ``address`` is geocoded, not stored."""

    name: str = Field(..., min_length=1, max_length=50, examples=["Devworks Bootcamp"])
    description: str = Field(..., min_length=1, max_length=500)
    website: Optional[str] = Field(None, pattern=URL_PATTERN)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    address: str = Field(..., min_length=1, examples=["233 Bay State Rd Boston MA 02215"])
    careers: List[Career] = Field(..., min_length=1)
    housing: bool = False
    job_assistance: bool = False
    job_guarantee: bool = False
    accept_gi: bool = False

    @field_validator("careers")
    @classmethod
    def unique_careers(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))


class BootcampUpdate(CamelModel):
    """Schema for updating a bootcamp.  All fields are optional."""

    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    website: Optional[str] = Field(None, pattern=URL_PATTERN)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    address: Optional[str] = Field(None, min_length=1)
    careers: Optional[List[Career]] = Field(None, min_length=1)
    housing: Optional[bool] = None
    job_assistance: Optional[bool] = None
    job_guarantee: Optional[bool] = None
    accept_gi: Optional[bool] = None
