from fastapi import Depends
from starlette.requests import HTTPConnection

from regionchat.database.storage import ChatStorage
from regionchat.services.auth_service import AuthService
from regionchat.services.chat_server import ChatServer
from regionchat.services.chat_service import ChatService
from regionchat.services.notification_service import SmsNotificationService
from regionchat.services.presence_service import PresenceService
from regionchat.services.reaction_service import ReactionService


def get_chat_server(conn: HTTPConnection) -> ChatServer:
    """
    Dependency that provides the ChatServer owned by the running application.
    Works for both HTTP requests and WebSocket connections.
    """
    return conn.app.state.chat_server

def get_storage(chat_server: ChatServer = Depends(get_chat_server)) -> ChatStorage:
    return chat_server.storage

def get_auth_service(storage: ChatStorage = Depends(get_storage)) -> AuthService:
    """
    Dependency that provides an instance of AuthService backed by the application storage.
    """
    return AuthService(storage)

def get_chat_service(chat_server: ChatServer = Depends(get_chat_server)) -> ChatService:
    return chat_server.chat_service

def get_presence_service(chat_server: ChatServer = Depends(get_chat_server)) -> PresenceService:
    return chat_server.presence_service

def get_reaction_service(chat_server: ChatServer = Depends(get_chat_server)) -> ReactionService:
    return chat_server.reaction_service

def get_notification_service(
    chat_server: ChatServer = Depends(get_chat_server),
) -> SmsNotificationService:
    return chat_server.notification_service
