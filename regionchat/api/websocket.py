import anyio
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from regionchat.core.exceptions import BaseAPIException
from regionchat.core.log_config import logger
from regionchat.dependencies.service_dependencies import get_chat_server
from regionchat.schemas.events import error_frame
from regionchat.schemas.frames import parse_client_frame
from regionchat.services.chat_server import ChatServer

router = APIRouter(prefix="/ws", tags=["websocket"])


@router.websocket("")
async def websocket_endpoint(
    websocket: WebSocket,
    chat_server: ChatServer = Depends(get_chat_server),
):
    manager = chat_server.websocket_manager
    await manager.connect(websocket)
    connection = f"{id(websocket):x}"

    try:
        while True:
            data = await websocket.receive_text()
            logger.debug(f"Data received from connection {connection}: {data[:200]}")

            try:
                frame = parse_client_frame(data)
            except ValidationError as e:
                logger.warning(f"Dropping malformed frame from connection {connection}: {e.errors()[:1]}")
                continue

            try:
                await chat_server.dispatch(websocket, frame)
            except BaseAPIException as e:
                logger.warning(f"{frame.type} from connection {connection} failed: {e.detail}")
                await manager.send(websocket, error_frame(e.detail))
            except WebSocketDisconnect:
                raise
            except Exception as e:
                logger.error(
                    f"Unhandled error processing {frame.type} from connection {connection}: {e}",
                    exc_info=True,
                )

    except WebSocketDisconnect as e:
        logger.info(f"Connection {connection} closed. Code: {e.code}")

    finally:
        # Teardown must finish even when the server cancels the connection task
        with anyio.CancelScope(shield=True):
            await chat_server.disconnect(websocket)
