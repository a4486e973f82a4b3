from regionchat.core.exceptions import (
    InvalidCredentialsException,
    UserAlreadyExistsException,
    UsernameUnsafeException,
)
from regionchat.core.security import create_access_token, hash_password, verify_password
from regionchat.database.storage import ChatStorage
from regionchat.models.user import User
from regionchat.schemas.auth import LoginRequest, RegisterRequest
from regionchat.schemas.user import UserSettings
from regionchat.services.moderation import is_username_safe


class AuthService:
    def __init__(self, storage: ChatStorage):
        self.storage = storage

    async def register_user(self, request: RegisterRequest):
        """
        Handles the logic for registering a user.

        Args:
            request: Registration data

        Returns:
            A tuple (user, access_token)
        """
        if not is_username_safe(request.username):
            raise UsernameUnsafeException()

        existing_user = await self.storage.get_user_by_username(request.username)
        if existing_user:
            raise UserAlreadyExistsException()

        user = await self.storage.create_user(request.username, hash_password(request.password))
        access_token = create_access_token(data={"sub": user.username, "user_id": str(user.id)})

        return user, access_token

    async def login_user(self, request: LoginRequest):
        """
        Handles the logic for logging in a user.

        Args:
            request: Login credentials

        Returns:
            A tuple (user, access_token)
        """
        user = await self.storage.get_user_by_username(request.username)

        if not user or not verify_password(request.password, user.hashed_password):
            raise InvalidCredentialsException()

        access_token = create_access_token(data={"sub": user.username, "user_id": str(user.id)})

        return user, access_token

    async def username_exists(self, username: str) -> bool:
        return await self.storage.get_user_by_username(username) is not None

    async def update_settings(self, user: User, request: UserSettings) -> User:
        return await self.storage.update_user_settings(
            user.username, request.phone_number, request.notify_friend_online
        )
