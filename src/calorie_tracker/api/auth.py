"""Account registration and session authentication endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request, status

from calorie_tracker.api.models import (  # noqa: TC001
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
)
from calorie_tracker.api.sessions import (
    current_user,
    destroy_session,
    require_user,
    sign_in,
)
from calorie_tracker.domain.users import UserRecord  # noqa: TC001

if TYPE_CHECKING:
    from calorie_tracker.containers import AppContainer

router = APIRouter(prefix="/api/auth", tags=["auth"])

# Handlers that run bcrypt or blocking storage calls are plain functions so
# FastAPI executes them in its threadpool.


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, request: Request) -> dict[str, object]:
    """Create an account."""
    container: AppContainer = request.app.state.container
    user = container.user_service.register(body.username, body.password, body.nickname)
    return {
        "success": True,
        "message": "User registered successfully",
        "user": user.to_public(),
    }


@router.post("/login")
def login(body: LoginRequest, request: Request) -> dict[str, object]:
    """Verify credentials and bind the user to the session."""
    container: AppContainer = request.app.state.container
    user = container.user_service.verify_credentials(body.username, body.password)
    sign_in(request, user)
    return {"success": True, "message": "Login successful", "user": user.to_public()}


@router.post("/logout")
async def logout(request: Request) -> dict[str, object]:
    """Destroy the session along with its history."""
    destroy_session(request)
    return {"success": True, "message": "Logout successful"}


@router.get("/me")
async def me(user: UserRecord = Depends(require_user)) -> dict[str, object]:
    """Return the signed-in user."""
    return {"success": True, "user": user.to_public()}


@router.get("/status")
async def auth_status(request: Request) -> dict[str, object]:
    """Report whether the session is authenticated."""
    user = current_user(request)
    return {
        "success": True,
        "isAuthenticated": user is not None,
        "user": user.to_public() if user else None,
    }


@router.post("/password")
def change_password(
    body: ChangePasswordRequest,
    request: Request,
    user: UserRecord = Depends(require_user),
) -> dict[str, object]:
    """Replace the signed-in user's password."""
    container: AppContainer = request.app.state.container
    updated = container.user_service.change_password(
        user.id, body.current_password, body.new_password
    )
    return {
        "success": True,
        "message": "Password updated",
        "user": updated.to_public(),
    }


@router.delete("/account")
@router.delete("/delete")
def delete_account(
    request: Request, user: UserRecord = Depends(require_user)
) -> dict[str, object]:
    """Delete the signed-in user's account and end the session."""
    container: AppContainer = request.app.state.container
    container.user_service.delete_user(user.id)
    destroy_session(request)
    return {"success": True, "message": "Account deleted successfully"}
