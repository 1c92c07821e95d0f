"""
Translation of ledger errors into HTTP responses.

Services raise typed LedgerError subclasses; this module is
the only place that knows which status code each kind maps to.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from personal_ledger.exceptions import (
    BadRequestError,
    IntegrityFaultError,
    LedgerError,
    NotFoundError,
)
from personal_ledger.logging_config import get_logger

logger = get_logger(__name__)

STATUS_CODES: dict[type[LedgerError], int] = {
    NotFoundError: 404,
    BadRequestError: 400,
    IntegrityFaultError: 500,
}


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = STATUS_CODES.get(type(exc), 500)
    if status_code >= 500:
        logger.error(
            "ledger integrity fault",
            extra={"path": request.url.path, "code": exc.code},
        )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LedgerError, ledger_error_handler)
