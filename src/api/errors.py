from typing import Any

from fastapi import HTTPException, status

STATUS_BY_ERROR_CODE = {
    "validation": status.HTTP_400_BAD_REQUEST,
    "unauthorized": status.HTTP_401_UNAUTHORIZED,
    "payment_failed": status.HTTP_402_PAYMENT_REQUIRED,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
    "rate_limited": status.HTTP_429_TOO_MANY_REQUESTS,
    "delivery": status.HTTP_502_BAD_GATEWAY,
}


def raise_for_output(result: Any, default_status: int = status.HTTP_400_BAD_REQUEST) -> None:
    """Turn a failed component Output into an HTTPException."""
    if getattr(result, "success", True):
        return
    code = getattr(result, "error_code", None)
    status_code = STATUS_BY_ERROR_CODE.get(code or "", default_status)
    message = getattr(result, "error", None) or "Request failed"

    field_errors = getattr(result, "field_errors", None)
    detail: Any = {"message": message, "fields": field_errors} if field_errors else message
    raise HTTPException(status_code=status_code, detail=detail)


def not_found(detail: str = "Not found") -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
