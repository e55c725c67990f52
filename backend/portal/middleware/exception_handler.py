"""Exception handlers turning portal and store errors into JSON responses."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import ErrorCode, PortalException

logger = logging.getLogger(__name__)


async def portal_exception_handler(request: Request, exc: PortalException) -> JSONResponse:
    """Answer with ``exc.to_dict()`` and its status code.

    Client errors are logged at warning level, anything else at error.
    """
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"PortalException: {exc.error_code.value}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code,
        },
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Store failures surface as a generic 500; the cause only goes to the log."""
    logger.error(
        "Database error",
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": ErrorCode.INTERNAL_ERROR.value,
            "message": "Internal server error",
            "details": {},
        },
    )
