import pytest
from fastapi.security import HTTPAuthorizationCredentials

from regionchat.core.exceptions import InvalidTokenException, UserNotFoundException
from regionchat.core.security import create_access_token
from regionchat.dependencies.auth_dependencies import get_current_user

@pytest.mark.asyncio
async def test_get_current_user_valid_token(storage, test_user, test_token):
    credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=test_token)
    user = await get_current_user(credentials, storage)
    assert user.id == test_user.id

@pytest.mark.asyncio
async def test_get_current_user_invalid_token(storage):
    credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="invalid_token")
    with pytest.raises(InvalidTokenException):
        await get_current_user(credentials, storage)

@pytest.mark.asyncio
async def test_get_current_user_unknown_account(storage):
    token = create_access_token({"sub": "ghost"})
    credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)
    with pytest.raises(UserNotFoundException):
        await get_current_user(credentials, storage)
