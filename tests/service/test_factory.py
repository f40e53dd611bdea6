from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from pathlib import Path
from typing import Any

import httpx
import pytest

from headscale_provider.config import HeadscaleSettings
from headscale_provider.service import (
    HeadscaleConfigError,
    HeadscaleHttpService,
    create_headscale_service,
)


def test_factory_builds_http_service() -> None:
    service = create_headscale_service(_settings())

    assert isinstance(service, HeadscaleHttpService)
    assert service.base_url == "http://127.0.0.1:8080"


def test_factory_requires_endpoint() -> None:
    with pytest.raises(ValueError, match="HEADSCALE_ENDPOINT"):
        create_headscale_service(_settings(endpoint="   "))


def test_factory_requires_api_key() -> None:
    with pytest.raises(ValueError, match="HEADSCALE_API_KEY"):
        create_headscale_service(_settings(api_key="  "))


def test_factory_rejects_malformed_endpoint() -> None:
    with pytest.raises(HeadscaleConfigError):
        create_headscale_service(_settings(endpoint="headscale.internal"))


def test_factory_passes_settings_to_http_client() -> None:
    seen: list[httpx.Request] = []
    client_kwargs: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status_code=200, json={"users": []})

    def factory(**kwargs: Any) -> httpx.Client:
        client_kwargs.append(kwargs)
        return _mock_client_factory(handler)(**kwargs)

    service = create_headscale_service(
        _settings(timeout_seconds=3.5, user_agent="tf-provider/9"),
        http_client_factory=factory,
    )
    service.list_users()

    assert client_kwargs[0]["timeout"] == 3.5
    assert seen[0].headers["User-Agent"] == "tf-provider/9"
    assert seen[0].headers["Authorization"] == "Bearer token-123"


def test_factory_reads_api_key_from_file(tmp_path: Path) -> None:
    key_file = tmp_path / "headscale_api_key.secret"
    key_file.write_text("key-from-file\n", encoding="utf-8")
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status_code=200, json={"apiKeys": []})

    service = create_headscale_service(
        _settings(api_key="", api_key_file=str(key_file)),
        http_client_factory=_mock_client_factory(handler),
    )
    service.list_api_keys()

    assert seen[0].headers["Authorization"] == "Bearer key-from-file"


def test_api_key_file_takes_precedence_over_inline_key(tmp_path: Path) -> None:
    key_file = tmp_path / "key"
    key_file.write_text("file-key", encoding="utf-8")

    assert _settings(api_key_file=str(key_file)).resolve_api_key() == "file-key"


def test_api_key_file_must_exist_and_hold_a_key(tmp_path: Path) -> None:
    empty_file = tmp_path / "empty"
    empty_file.write_text("  \n", encoding="utf-8")

    with pytest.raises(ValueError, match="is unreadable"):
        _settings(api_key_file=str(tmp_path / "missing")).resolve_api_key()

    with pytest.raises(ValueError, match="holds no key"):
        _settings(api_key_file=str(empty_file)).resolve_api_key()


def test_blank_api_key_file_falls_back_to_inline_key() -> None:
    assert _settings(api_key_file="  ").resolve_api_key() == "token-123"


def _mock_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[..., httpx.Client]:
    def factory(**kwargs: Any) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(handler), **kwargs)

    return factory


def _settings(**overrides: Any) -> HeadscaleSettings:
    base = HeadscaleSettings(
        endpoint="http://127.0.0.1:8080",
        api_key="token-123",
        timeout_seconds=2.0,
    )
    return replace(base, **overrides)
