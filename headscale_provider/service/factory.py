"""Headscale service construction from runtime settings."""

from __future__ import annotations

import httpx

from headscale_provider.config import HeadscaleSettings
from headscale_provider.service.base import HeadscaleService
from headscale_provider.service.rest import HTTPClientFactory, HeadscaleHttpService


def create_headscale_service(
    settings: HeadscaleSettings,
    *,
    http_client_factory: HTTPClientFactory = httpx.Client,
) -> HeadscaleService:
    endpoint = settings.endpoint.strip()
    if not endpoint:
        raise ValueError("HEADSCALE_ENDPOINT is required to reach the Headscale API")

    return HeadscaleHttpService(
        endpoint=endpoint,
        api_key=settings.resolve_api_key(),
        timeout_seconds=settings.timeout_seconds,
        user_agent=settings.user_agent,
        http_client_factory=http_client_factory,
    )
