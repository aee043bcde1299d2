"""Shared router dependencies and error translation."""

from __future__ import annotations

from fastapi import HTTPException, status

from ..services.commerce import CommerceClientFactory, build_commerce_client
from ..services.errors import CashflowError, ConfigurationError, UpstreamError, ValidationError

ERROR_STATUS = {
    ConfigurationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UpstreamError: status.HTTP_502_BAD_GATEWAY,
    ValidationError: status.HTTP_400_BAD_REQUEST,
}


def get_commerce_client_factory() -> CommerceClientFactory:
    """Return the factory used to reach the commerce platform; overridden in tests."""

    return build_commerce_client


def http_error(exc: CashflowError) -> HTTPException:
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            status_code = code
            break
    return HTTPException(status_code=status_code, detail=exc.to_detail())


def not_found(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"message": message, "code": "not_found"},
    )
