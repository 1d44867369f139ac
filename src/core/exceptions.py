"""Custom exception classes and handlers."""

import logging
from collections.abc import Iterable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

CASH_FALLBACK = "Please try again later or choose cash payment."


class BusinessLogicError(Exception):
    """Raised for domain-specific validation errors."""

    def __init__(self, detail: str, status_code: int = status.HTTP_422_UNPROCESSABLE_CONTENT):
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)

    def extra(self) -> dict:
        return {}


class ValidationError(BusinessLogicError):
    """A field is missing or malformed. Carries every offending field name."""

    def __init__(self, fields: Iterable[str], detail: str | None = None):
        self.fields = list(dict.fromkeys(fields))
        super().__init__(
            detail or f"Missing or invalid fields: {', '.join(self.fields)}",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    def extra(self) -> dict:
        return {"fields": self.fields}


class NotFoundError(BusinessLogicError):
    def __init__(self, detail: str = "Appointment not found"):
        super().__init__(detail, status_code=status.HTTP_404_NOT_FOUND)


class SlotConflictError(BusinessLogicError):
    """One or more requested slots are already held by a completed booking."""

    def __init__(self, slots: Iterable[str] = ()):
        self.slots = sorted(set(slots))
        detail = "This time slot is already booked. Please choose another slot."
        if self.slots:
            detail = f"Time slot(s) {', '.join(self.slots)} already booked. Please choose another slot."
        super().__init__(detail, status_code=status.HTTP_400_BAD_REQUEST)

    def extra(self) -> dict:
        return {"slots": self.slots}


class PaymentReusedError(BusinessLogicError):
    """A provider order or payment id already backs a booking."""

    def __init__(self, detail: str = "This payment has already been used for a booking"):
        super().__init__(detail, status_code=status.HTTP_400_BAD_REQUEST)


class SignatureMismatchError(BusinessLogicError):
    def __init__(self, detail: str = "Payment verification failed: invalid signature"):
        super().__init__(detail, status_code=status.HTTP_400_BAD_REQUEST)


class ProviderError(BusinessLogicError):
    """An external payment, notification or lookup service failed."""

    def __init__(self, detail: str, fallback: str | None = CASH_FALLBACK):
        self.fallback = fallback
        super().__init__(detail, status_code=status.HTTP_502_BAD_GATEWAY)

    def extra(self) -> dict:
        return {"fallback": self.fallback} if self.fallback else {}


def _field_name(loc: tuple) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    # formData.contactNumber -> contactNumber; list indexes collapse onto the field
    names = [part for part in parts if not part.isdigit()]
    return names[-1] if names else "body"


def register_exception_handlers(app: FastAPI) -> None:
    """Attach shared exception handlers to the FastAPI app."""

    @app.exception_handler(BusinessLogicError)
    async def _business_error_handler(_: Request, exc: BusinessLogicError):
        return JSONResponse(
            {"success": False, "message": exc.detail, **exc.extra()},
            status_code=exc.status_code,
        )

    @app.exception_handler(RequestValidationError)
    async def _request_validation_handler(request: Request, exc: RequestValidationError):
        error = ValidationError(_field_name(tuple(err.get("loc", ()))) for err in exc.errors())
        logger.info("Rejected %s %s: %s", request.method, request.url.path, error.fields)
        return JSONResponse(
            {"success": False, "message": error.detail, **error.extra()},
            status_code=error.status_code,
        )

    @app.exception_handler(Exception)
    async def _unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            {"success": False, "message": "Internal server error", "details": type(exc).__name__},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
