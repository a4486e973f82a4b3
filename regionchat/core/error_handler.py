
from fastapi import Request
from fastapi.responses import JSONResponse
from regionchat.core.exceptions import BaseAPIException
from regionchat.core.log_config import logger

async def custom_exception_handler(request: Request, exc: BaseAPIException):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=exc.headers,
    )
