import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from nulltasker.api.v1.api import api_router
from nulltasker.core.config import Settings, resolve_secret_key, settings
from nulltasker.core.errors import (
    DomainError,
    ValidationFailedError,
    build_error_response,
    error_payload,
)
from nulltasker.core.logging import setup_logging
from nulltasker.core.security import TokenService, configure_password_hashing
from nulltasker.db.session import open_storage

logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    401: "TOKEN_REQUIRED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def _validation_message(error: dict) -> str:
    message = str(error.get("msg", "Invalid request"))
    # pydantic prefixes messages raised from custom validators
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    location = [str(part) for part in error.get("loc", ()) if part != "body"]
    if location and error.get("type") in ("missing", "string_too_short", "string_too_long"):
        return f"{'.'.join(location)}: {message}"
    return message


async def domain_error_handler(request: Request, exc: DomainError):
    return build_error_response(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": _validation_message(err),
        }
        for err in exc.errors()
    ]
    first = errors[0]["message"] if errors else "Invalid request"
    return build_error_response(ValidationFailedError(first, details=errors))


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    return build_error_response(
        DomainError(code=code, http_status=exc.status_code, message=str(exc.detail))
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_payload("SERVER_ERROR", "A server error occurred"),
    )


def create_app(config: Optional[Settings] = None) -> FastAPI:
    """
    Build the API application.

    ``config`` defaults to the environment-driven global settings; tests pass
    their own instance pointing at a temporary data directory.
    """
    config = config or settings
    setup_logging(config.LOG_LEVEL)
    secret_key = resolve_secret_key(config)
    configure_password_hashing(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.storage = open_storage(config)
        logger.info("%s %s started (env=%s)", config.PROJECT_NAME, config.VERSION, config.ENV)
        try:
            yield
        finally:
            app.state.storage.close()
            logger.info("%s stopped", config.PROJECT_NAME)

    app = FastAPI(
        title=config.PROJECT_NAME,
        version=config.VERSION,
        openapi_url=f"{config.API_V1_STR}/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.token_service = TokenService.from_settings(config, secret_key)

    # Set up CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include API routes
    app.include_router(api_router, prefix=config.API_V1_STR)
    return app


app = create_app()
