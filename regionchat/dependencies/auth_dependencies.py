from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from regionchat.core.exceptions import InvalidTokenException, UserNotFoundException
from regionchat.core.security import verify_token
from regionchat.database.storage import ChatStorage
from regionchat.dependencies.service_dependencies import get_storage
from regionchat.models.user import User

security = HTTPBearer()


async def _get_user_from_token(token: str, storage: ChatStorage) -> User:
    """
    Internal helper to verify a token and fetch the corresponding account.
    """
    if not token:
        raise InvalidTokenException(detail="Token not provided")

    payload = verify_token(token)
    username = payload.get("sub")
    if username is None:
        raise InvalidTokenException()

    user = await storage.get_user_by_username(username)
    if user is None:
        raise UserNotFoundException()

    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    storage: ChatStorage = Depends(get_storage),
) -> User:
    """
    Dependency for standard HTTP routes to get the current user from a Bearer token.
    """
    return await _get_user_from_token(credentials.credentials, storage)
