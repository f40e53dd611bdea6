"""Headscale service adapter."""

from headscale_provider.service.base import CreatePreAuthKeyInput, HeadscaleService, Route
from headscale_provider.service.errors import (
    HeadscaleAuthError,
    HeadscaleConfigError,
    HeadscaleNotFoundError,
    HeadscaleNotImplementedError,
    HeadscaleRequestError,
    HeadscaleServiceError,
    HeadscaleValidationError,
)
from headscale_provider.service.factory import create_headscale_service
from headscale_provider.service.models import ApiKey, Node, PreAuthKey, User
from headscale_provider.service.rest import HeadscaleHttpService

__all__ = [
    "ApiKey",
    "CreatePreAuthKeyInput",
    "HeadscaleAuthError",
    "HeadscaleConfigError",
    "HeadscaleHttpService",
    "HeadscaleNotFoundError",
    "HeadscaleNotImplementedError",
    "HeadscaleRequestError",
    "HeadscaleService",
    "HeadscaleServiceError",
    "HeadscaleValidationError",
    "Node",
    "PreAuthKey",
    "Route",
    "User",
    "create_headscale_service",
]
