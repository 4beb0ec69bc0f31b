"""
Pydantic models for user data.

Defines schemas for registration, login, profile and password changes
and for administrative user management.  Passwords are only ever
accepted, never returned.
"""

from typing import Literal, Optional

from pydantic import Field

from .base import EMAIL_PATTERN, CamelModel

Role = Literal["user", "publisher", "admin"]


class UserRegister(CamelModel):
    """Self registration.  Administrators cannot be self registered."""

    name: str = Field(..., min_length=1, examples=["John Doe"])
    email: str = Field(..., pattern=EMAIL_PATTERN, examples=["john@gmail.com"])
    password: str = Field(..., min_length=6)
    role: Literal["user", "publisher"] = "user"


class UserLogin(CamelModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserDetailsUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)


class PasswordUpdate(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class ForgotPassword(CamelModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)


class ResetPassword(CamelModel):
    password: str = Field(..., min_length=6)


class UserCreate(CamelModel):
    """Administrative creation; any role may be assigned."""

    name: str = Field(..., min_length=1)
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)
    role: Role = "user"


class UserUpdate(CamelModel):
    """Administrative update.  ``password`` is re‑hashed when present."""

    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    role: Optional[Role] = None
    password: Optional[str] = Field(None, min_length=6)
    disabled: Optional[bool] = None
