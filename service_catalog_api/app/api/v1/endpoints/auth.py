"""
Authentication endpoints for API v1.

Sign-up, password login, token validation and the password reset flow.
Tokens are bearer JWTs carrying the user's e-mail in ``sub``.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status

from service_catalog_api.app.core.config import settings
from service_catalog_api.app.core.security import create_access_token, get_current_user
from service_catalog_api.app.schemas.user import (
    ForgotPasswordRequest,
    ResetPasswordRequest,
    UserCreate,
    UserLogin,
)
from service_catalog_api.app.services.user_service import UserService

router = APIRouter()

FORGOT_PASSWORD_MESSAGE = "If an account exists for this e-mail, a password reset link has been sent"


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(user: UserCreate) -> Dict[str, Any]:
    """Register an account and return it with an access token.

    Registering as ``service_provider`` also creates the company record
    used by the provider dashboard.
    """
    try:
        created = await UserService.create_user(user)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    token = create_access_token({"sub": created.email, "role": created.role})
    return {"success": True, "token": token, "user": created}


@router.post("/login")
async def login(credentials: UserLogin) -> Dict[str, Any]:
    """Check e-mail and password and issue an access token.

    When the client says which portal it is logging into (``role``),
    it has to match the account's role.
    """
    user = await UserService.authenticate(credentials.email, credentials.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if credentials.role is not None and credentials.role != user.role:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid role selection")
    token = create_access_token({"sub": user.email, "role": user.role})
    return {"success": True, "token": token, "user": user}


@router.post("/validate")
async def validate_token(current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    return {
        "success": True,
        "user": {
            "id": current_user["user_id"],
            "name": current_user["name"],
            "email": current_user["sub"],
            "role": current_user["role"],
        },
    }


@router.post("/forgot-password")
async def forgot_password(payload: ForgotPasswordRequest) -> Dict[str, Any]:
    """Start a password reset.

    The response is the same whether or not the e-mail is registered.
    Reset tokens are not e-mailed; in debug mode the token is returned
    so the flow can be completed locally.
    """
    token = await UserService.request_password_reset(payload.email)
    response: Dict[str, Any] = {"success": True, "message": FORGOT_PASSWORD_MESSAGE}
    if settings.debug and token:
        response["resetToken"] = token
    return response


@router.post("/reset-password")
async def reset_password(payload: ResetPasswordRequest) -> Dict[str, Any]:
    try:
        await UserService.reset_password(payload.token, payload.new_password)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return {"success": True, "message": "Password has been reset"}
