from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.logger import logger


class BookingError(Exception):
    """Базовая ошибка сервиса бронирования"""

    def __init__(self, message: str, status_code: int = 400) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(BookingError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ValidationError(BookingError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class ConflictError(BookingError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class PolicyViolationError(BookingError):
    """Запрос корректен, но запрещён правилами (прошедший сеанс, окно отмены)"""

    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class AuthorizationError(BookingError):
    def __init__(self, message: str = "Not authorized") -> None:
        super().__init__(message, 403)


class AuthenticationError(BookingError):
    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message, 401)


class StorageError(BookingError):
    def __init__(self, message: str = "Storage unavailable") -> None:
        super().__init__(message, 500)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    message = "; ".join(messages) or "Invalid request"
    logger.warning(f"{request.method} {request.url.path} validation failed: {message}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": message})


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
