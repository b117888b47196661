# server/app/errors.py

from    enum                    import Enum
from    fastapi                 import FastAPI, Request
from    fastapi.exceptions      import RequestValidationError
from    fastapi.responses       import JSONResponse
from    sqlalchemy.exc          import SQLAlchemyError
from    config                  import constants, credentials
from    utils.logger            import getLogger

logger = getLogger("ErrorHandler")


class ConfigurationError(RuntimeError):
    """Raised at boot when a required setting is missing."""


class IrrigationError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def public_message(self) -> str:
        return self.message


class AuthErrorKind(str, Enum):
    missing = "Missing"
    malformed = "Malformed"
    expired = "Expired"
    bad_signature = "BadSignature"
    unknown_device = "UnknownDevice"


class AuthError(IrrigationError):
    """Token rejected. The client only ever sees a generic message."""
    status_code = 401

    def __init__(self, kind: AuthErrorKind, message: str = ""):
        super().__init__(message or kind.value)
        self.kind = kind

    @property
    def public_message(self) -> str:
        if self.kind == AuthErrorKind.missing:
            return constants.NO_TOKEN_MESSAGE
        return constants.INVALID_TOKEN_MESSAGE


class ValidationError(IrrigationError):
    status_code = 400


class NotFoundError(IrrigationError):
    status_code = 404


class StoreError(IrrigationError):
    status_code = 500

    @property
    def public_message(self) -> str:
        if credentials.is_production():
            return constants.HIDDEN_ERROR_MESSAGE
        return self.message


async def irrigation_error_handler(request: Request, exc: IrrigationError):
    if isinstance(exc, AuthError):
        logger.warning(f"Auth rejected on {request.url.path}: {exc.kind.value} ({exc.message})")
    elif exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    logger.info(f"{request.method} {request.url.path} -> 400: {errors}")
    return JSONResponse(status_code=400, content={"error": detail})


async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Store failure on {request.method} {request.url.path}: {exc}", exc_info=True)
    return await irrigation_error_handler(request, StoreError(str(exc)))


def add_exception_handlers(app: FastAPI):
    """Add exception handlers to the FastAPI app."""
    app.add_exception_handler(IrrigationError, irrigation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
