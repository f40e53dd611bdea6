"""Headscale service error taxonomy."""

from __future__ import annotations


class HeadscaleServiceError(Exception):
    """Base service exception for deterministic failure handling."""

    error_code = "service_error"


class HeadscaleConfigError(HeadscaleServiceError, ValueError):
    """Raised when the adapter cannot be constructed from its configuration."""

    error_code = "config_error"


class HeadscaleRequestError(HeadscaleServiceError):
    """Raised when a request fails in transport or the server reports a fault."""

    error_code = "request_error"

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        status_code: int | None = None,
        rpc_code: int | None = None,
        remote_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code
        self.rpc_code = rpc_code
        self.remote_message = remote_message


class HeadscaleAuthError(HeadscaleRequestError):
    error_code = "auth_error"


class HeadscaleValidationError(HeadscaleServiceError):
    """Raised when a decoded response payload does not match the API schema."""

    error_code = "validation_error"

    def __init__(self, message: str, *, operation: str) -> None:
        super().__init__(message)
        self.operation = operation


class HeadscaleNotFoundError(HeadscaleServiceError):
    """Raised when a looked-up entity does not exist on the server."""

    error_code = "not_found"

    def __init__(
        self,
        message: str,
        *,
        key: str | None = None,
        operation: str | None = None,
        status_code: int | None = None,
        rpc_code: int | None = None,
        remote_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.key = key
        self.operation = operation
        self.status_code = status_code
        self.rpc_code = rpc_code
        self.remote_message = remote_message


class HeadscaleNotImplementedError(HeadscaleServiceError):
    error_code = "not_implemented"

    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation} is not implemented in this provider version")
        self.operation = operation
