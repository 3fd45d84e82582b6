from fastapi import Request, status
from fastapi.responses import JSONResponse

from app.utils.payment_validation import PaymentError

ERROR_STATUS = {
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "concurrent_modification": status.HTTP_409_CONFLICT,
    "commit_failed": status.HTTP_502_BAD_GATEWAY,
    "store_unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(code: str) -> int:
    return ERROR_STATUS.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)


async def payment_error_handler(request: Request, exc: PaymentError) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(exc.code),
        content={"detail": exc.message, "code": exc.code}
    )
