from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from regionchat.core.config import settings
from regionchat.core.error_handler import custom_exception_handler
from regionchat.core.exceptions import BaseAPIException

from regionchat.api.auth import router as auth_router
from regionchat.api.messages import router as message_router
from regionchat.api.users import router as user_router
from regionchat.api.websocket import router as websocket_router
from regionchat.services.chat_server import ChatServer
from regionchat.utils.timing_middleware import TimingMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    chat_server: ChatServer = app.state.chat_server
    await chat_server.startup()
    yield
    await chat_server.shutdown()


def create_app(chat_server: Optional[ChatServer] = None) -> FastAPI:
    app = FastAPI(title="regionchat", lifespan=lifespan)
    app.state.chat_server = chat_server or ChatServer.from_settings()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BaseAPIException, custom_exception_handler)
    app.add_middleware(TimingMiddleware)

    app.include_router(auth_router)
    app.include_router(message_router)
    app.include_router(user_router)
    app.include_router(websocket_router)
    return app


app = create_app()
