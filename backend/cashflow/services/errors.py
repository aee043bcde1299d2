"""Error taxonomy shared by the cashflow services.

Exception hierarchy::

    CashflowError
    ├── ConfigurationError  - business settings or platform credentials missing
    ├── UpstreamError       - the commerce platform call failed
    └── ValidationError     - malformed input, rejected before any external call

Partial failures of multi-item writes are not exceptions; they are reported
through ``BatchResult`` (see ``services.batch``).
"""

from __future__ import annotations

from typing import Optional


class CashflowError(RuntimeError):
    """Base class for errors reported back to API callers."""

    code = "cashflow_error"

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message

    def to_detail(self) -> dict[str, str]:
        return {"message": str(self), "code": self.code}


class ConfigurationError(CashflowError):
    """Business settings or platform credentials are missing."""

    code = "configuration_error"


class UpstreamError(CashflowError):
    """The commerce platform rejected a request or could not be reached."""

    code = "upstream_error"

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code


class ValidationError(CashflowError):
    """Input failed validation."""

    code = "validation_error"

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")
