"""
HTTP error translation for FastAPI applications.

Maps the error taxonomy to JSON bodies of the form {"code", "message"}:

    ApiError               -> error.status_code
    DocumentNotFoundError  -> 404
    other AppError         -> 422
    pydantic ValidationError -> 400 application/validations-fail
    StoreError             -> 400
    anything else          -> 500 application/internal-error (logged)

DocumentNotFoundError gets its own 404 instead of the 422 shared by every
other AppError, so clients can tell a missing record from a rejected one.
"""

import logging
from typing import Iterable

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..common.config import Config
from ..common.logger import setup_logging
from ..exceptions import ApiError, AppError, DocumentNotFoundError, StoreError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_CODE = "application/internal-error"
VALIDATION_ERROR_CODE = "application/validations-fail"


async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, ApiError):
        status_code = exc.status_code
    elif isinstance(exc, DocumentNotFoundError):
        status_code = 404
    else:
        status_code = 422
    return JSONResponse(status_code=status_code, content=exc.to_dict())


async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "code": VALIDATION_ERROR_CODE,
            "message": "Validation fails.",
            "errors": exc.errors(include_url=False, include_context=False),
        },
    )


async def handle_store_error(request: Request, exc: StoreError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"code": exc.code, "message": exc.message})


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {type(exc).__name__}: {exc}",
        exc_info=exc,
    )
    content = {"code": INTERNAL_ERROR_CODE, "message": "Internal server error."}
    if Config.EXPOSE_INTERNAL_ERRORS:
        content["detail"] = f"{type(exc).__name__}: {exc}"
    return JSONResponse(status_code=500, content=content)


def register_error_handlers(app: FastAPI) -> FastAPI:
    """
    Install the error handlers on ``app``.

    Returns:
        The same app, for chaining
    """
    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(StoreError, handle_store_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    return app


def create_app(
    routers: Iterable[APIRouter] = (),
    configure_logging: bool = False,
    **fastapi_options,
) -> FastAPI:
    """
    Create a FastAPI app with the given routers and error handlers installed.

    Args:
        routers: Routers to include
        configure_logging: Apply LOG_LEVEL/LOG_FORMAT to the root logger
        fastapi_options: Extra FastAPI keyword arguments (title, version, ...)

    Returns:
        FastAPI app
    """
    if configure_logging:
        setup_logging(Config.LOG_LEVEL, Config.LOG_FORMAT)

    app = FastAPI(**fastapi_options)
    for router in routers:
        app.include_router(router)
    return register_error_handlers(app)
