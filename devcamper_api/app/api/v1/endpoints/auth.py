"""
Authentication endpoints for API v1.

Login, registration, password change and password reset answer with
``{"success": true, "token": ...}`` and also set the token as an
HTTP‑only cookie so browser clients need not store it themselves.
"""

from typing import Any, Dict

from fastapi import APIRouter, Request, Response

from devcamper_api.app.api.deps import TOKEN_COOKIE, IdentityDep, UserServiceDep
from devcamper_api.app.core.config import settings
from devcamper_api.app.schemas.user import (
    ForgotPassword,
    PasswordUpdate,
    ResetPassword,
    UserDetailsUpdate,
    UserLogin,
    UserRegister,
)

router = APIRouter()


def token_response(response: Response, token: str) -> Dict[str, Any]:
    """Set the auth cookie on ``response`` and build the token body."""
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    return {"success": True, "token": token}


@router.post("/register")
async def register(data: UserRegister, response: Response, service: UserServiceDep) -> Dict[str, Any]:
    """Register a user or publisher and log them in."""
    _, token = await service.register(data)
    return token_response(response, token)


@router.post("/login")
async def login(data: UserLogin, response: Response, service: UserServiceDep) -> Dict[str, Any]:
    _, token = await service.login(data.email, data.password)
    return token_response(response, token)


@router.get("/logout")
async def logout(response: Response) -> Dict[str, Any]:
    """Clear the auth cookie.  Bearer tokens stay valid until they expire."""
    response.delete_cookie(TOKEN_COOKIE)
    return {"success": True, "data": {}}


@router.get("/me")
async def me(identity: IdentityDep, service: UserServiceDep) -> Dict[str, Any]:
    return {"success": True, "data": await service.me(identity)}


@router.put("/updatedetails")
async def update_details(
    data: UserDetailsUpdate,
    identity: IdentityDep,
    service: UserServiceDep,
) -> Dict[str, Any]:
    return {"success": True, "data": await service.update_details(identity, data)}


@router.put("/updatepassword")
async def update_password(
    data: PasswordUpdate,
    response: Response,
    identity: IdentityDep,
    service: UserServiceDep,
) -> Dict[str, Any]:
    _, token = await service.update_password(identity, data)
    return token_response(response, token)


@router.post("/forgotpassword")
async def forgot_password(data: ForgotPassword, request: Request, service: UserServiceDep) -> Dict[str, Any]:
    """Mail a reset link pointing at ``PUT /auth/resetpassword/{token}``."""
    reset_base = str(request.url_for("reset_password", resettoken="-")).rsplit("/", 1)[0]
    await service.forgot_password(data.email, reset_base)
    return {"success": True, "data": "Email sent"}


@router.put("/resetpassword/{resettoken}", name="reset_password")
async def reset_password(
    resettoken: str,
    data: ResetPassword,
    response: Response,
    service: UserServiceDep,
) -> Dict[str, Any]:
    _, token = await service.reset_password(resettoken, data.password)
    return token_response(response, token)
