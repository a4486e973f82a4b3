from fastapi import APIRouter, Depends

from regionchat.dependencies.auth_dependencies import get_current_user
from regionchat.dependencies.service_dependencies import get_auth_service
from regionchat.models.user import User
from regionchat.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from regionchat.services.auth_service import AuthService

router = APIRouter(prefix="/api/auth", tags=["auth"])

@router.post("/register", response_model=TokenResponse)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Register a new user.
    """
    user, access_token = await auth_service.register_user(request)
    return TokenResponse(
        access_token=access_token,
        user_id=user.id,
        username=user.username,
    )

@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Authenticate a user and return a JWT.
    """
    user, access_token = await auth_service.login_user(request)
    return TokenResponse(
        access_token=access_token,
        user_id=user.id,
        username=user.username,
    )

@router.get("/check-username/{username}")
async def check_username(
    username: str,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Report whether an account already uses the username.
    """
    return {"exists": await auth_service.username_exists(username)}

@router.get("/me")
async def protected_route(current_user: User = Depends(get_current_user)):
    """
    Get the current authenticated user's details.
    """
    return {
        "user_id": current_user.id,
        "username": current_user.username,
        "phoneNumber": current_user.phone_number,
        "notifyFriendOnline": current_user.notify_friend_online,
    }
