"""
Pydantic schemas for bootcamp reviews.

A user may review each bootcamp once; the rating ranges from 1 to 10.
"""

from typing import Optional

from pydantic import Field

from .base import CamelModel


class ReviewCreate(CamelModel):
    """Schema for creating a new review."""

    title: str = Field(..., min_length=1, max_length=100)
    text: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=10, description="Rating from 1 to 10")


class ReviewUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    text: Optional[str] = Field(None, min_length=1)
    rating: Optional[int] = Field(None, ge=1, le=10)
