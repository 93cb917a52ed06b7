import logging

from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from parkwise.errors import ParkwiseError
from parkwise.schemas import JsonOutResult

logger = logging.getLogger(__name__)


def failure(status_code: str, message: str, http_status: int) -> JSONResponse:
    wrapped = JsonOutResult(
        data=None,
        status="Failure",
        status_code=status_code,
        message=message,
    ).model_dump()
    return JSONResponse(content=wrapped, status_code=http_status)


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(ParkwiseError)
    async def parkwise_exception_handler(request: Request, exc: ParkwiseError):
        if exc.http_status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return failure(exc.code, exc.message, exc.http_status)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return failure(str(exc.status_code), str(exc.detail), exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return failure("INVALID_INPUT", str(exc), 422)

    # Catch all unhandled exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return failure("OPERATION_FAILED", "Internal server error", 500)
