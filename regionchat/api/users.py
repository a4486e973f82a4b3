from typing import List

from fastapi import APIRouter, Depends, Query

from regionchat.core.config import settings
from regionchat.core.exceptions import InvalidInputException, NotificationFailureException
from regionchat.database.storage import ChatStorage
from regionchat.dependencies.auth_dependencies import get_current_user
from regionchat.dependencies.service_dependencies import (
    get_auth_service,
    get_notification_service,
    get_presence_service,
    get_storage,
)
from regionchat.models.user import User
from regionchat.schemas.user import (
    LeaderboardEntry,
    OnlineUsersResponse,
    SmsTestRequest,
    UserSettings,
)
from regionchat.services.auth_service import AuthService
from regionchat.services.notification_service import SmsNotificationService
from regionchat.services.presence_service import PresenceService

router = APIRouter(prefix="/api", tags=["users"])

@router.get("/users", response_model=OnlineUsersResponse)
async def get_online_users(
    presence_service: PresenceService = Depends(get_presence_service),
):
    """
    Snapshot of everyone currently in the chat, with per-room counts.
    """
    return presence_service.snapshot()

@router.get("/leaderboard", response_model=List[LeaderboardEntry])
async def get_leaderboard(
    limit: int = Query(settings.leaderboard_limit, ge=1, le=100),
    storage: ChatStorage = Depends(get_storage),
):
    """
    Chat users ranked by accumulated time online.
    """
    return await storage.get_users_by_time_online(limit)

@router.get("/user/settings", response_model=UserSettings)
async def get_user_settings(current_user: User = Depends(get_current_user)):
    return UserSettings(
        phone_number=current_user.phone_number,
        notify_friend_online=current_user.notify_friend_online,
    )

@router.post("/user/settings", response_model=UserSettings)
async def update_user_settings(
    request: UserSettings,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Update the phone number and friend-online SMS preference of the current account.
    """
    user = await auth_service.update_settings(current_user, request)
    return UserSettings(
        phone_number=user.phone_number,
        notify_friend_online=user.notify_friend_online,
    )

@router.post("/user/test-sms")
async def send_test_sms(
    request: SmsTestRequest,
    current_user: User = Depends(get_current_user),
    notification_service: SmsNotificationService = Depends(get_notification_service),
):
    """
    Send a test SMS so the user can check their phone number before enabling notifications.
    """
    if not request.phone_number:
        raise InvalidInputException(detail="Phone number is required")

    sent = await notification_service.notify(
        request.phone_number, "This is a test message from ChatApp!"
    )
    if not sent:
        raise NotificationFailureException()
    return {"message": "Test SMS sent successfully"}
