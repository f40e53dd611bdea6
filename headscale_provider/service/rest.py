"""Headscale v1 REST API adapter."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from types import TracebackType
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from headscale_provider.config import DEFAULT_USER_AGENT
from headscale_provider.service.base import CreatePreAuthKeyInput, Route
from headscale_provider.service.errors import (
    HeadscaleAuthError,
    HeadscaleConfigError,
    HeadscaleNotFoundError,
    HeadscaleNotImplementedError,
    HeadscaleRequestError,
    HeadscaleValidationError,
)
from headscale_provider.service.models import (
    ApiKey,
    CreateApiKeyResponse,
    ListApiKeysResponse,
    ListNodesResponse,
    ListPreAuthKeysResponse,
    ListUsersResponse,
    Node,
    NodeResponse,
    PreAuthKey,
    PreAuthKeyResponse,
    RpcStatus,
    User,
    UserResponse,
)

logger = logging.getLogger(__name__)

HTTPClientFactory = Callable[..., httpx.Client]
ModelT = TypeVar("ModelT", bound=BaseModel)

API_PREFIX = "/api/v1"

# Remote messages for pre-auth keys that can no longer be expired.
_SPENT_PRE_AUTH_KEY_MESSAGES = (
    "AuthKey expired",
    "AuthKey has already been used",
)


class HeadscaleHttpService:
    """Headscale service backed by a single long-lived ``httpx.Client``.

    ``httpx.Client`` is safe to share between threads, so one instance may
    serve concurrent callers. Every operation is exactly one round trip (the
    derived route views reuse the device calls); nothing is retried.
    """

    def __init__(
        self,
        *,
        endpoint: str,
        api_key: str,
        timeout_seconds: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
        http_client_factory: HTTPClientFactory = httpx.Client,
    ) -> None:
        self._base_url = _parse_endpoint(endpoint)
        self._client = http_client_factory(
            base_url=self._base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
                "User-Agent": user_agent,
            },
            timeout=timeout_seconds,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HeadscaleHttpService:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    # API keys

    def list_api_keys(self) -> list[ApiKey]:
        operation = "list_api_keys"
        response = self._request("GET", "/apikey", operation=operation)
        self._raise_for_status(response, operation=operation)
        return self._decode(response, ListApiKeysResponse, operation=operation).api_keys

    def create_api_key(self, expiration: datetime | None = None) -> str:
        operation = "create_api_key"
        body: dict[str, Any] = {}
        if expiration is not None:
            body["expiration"] = _format_timestamp(expiration)
        response = self._request("POST", "/apikey", operation=operation, json_body=body)
        self._raise_for_status(response, operation=operation)
        return self._decode(response, CreateApiKeyResponse, operation=operation).api_key

    def expire_api_key(self, prefix: str) -> None:
        operation = "expire_api_key"
        response = self._request(
            "POST",
            "/apikey/expire",
            operation=operation,
            json_body={"prefix": prefix},
        )
        self._raise_for_status(response, operation=operation, key=prefix)

    # Devices

    def list_devices(self, user: str | None = None) -> list[Node]:
        operation = "list_devices"
        response = self._request(
            "GET",
            "/node",
            operation=operation,
            params={"user": user},
        )
        self._raise_for_status(response, operation=operation)
        return self._decode(response, ListNodesResponse, operation=operation).nodes

    def get_device(self, device_id: str) -> Node:
        operation = "get_device"
        response = self._request("GET", f"/node/{_segment(device_id)}", operation=operation)
        self._raise_for_status(response, operation=operation, key=device_id)
        return self._decode(response, NodeResponse, operation=operation).node

    def create_device(self, user: str, key: str) -> Node:
        operation = "create_device"
        response = self._request(
            "POST",
            "/node/register",
            operation=operation,
            params={"user": user, "key": key},
        )
        self._raise_for_status(response, operation=operation)
        return self._decode(response, NodeResponse, operation=operation).node

    def expire_device(self, device_id: str) -> Node:
        operation = "expire_device"
        response = self._request(
            "POST",
            f"/node/{_segment(device_id)}/expire",
            operation=operation,
        )
        self._raise_for_status(response, operation=operation, key=device_id)
        return self._decode(response, NodeResponse, operation=operation).node

    def delete_device(self, device_id: str) -> None:
        operation = "delete_device"
        response = self._request("DELETE", f"/node/{_segment(device_id)}", operation=operation)
        self._raise_for_status(response, operation=operation, key=device_id)

    def rename_device(self, device_id: str, new_name: str) -> Node:
        operation = "rename_device"
        response = self._request(
            "POST",
            f"/node/{_segment(device_id)}/rename/{_segment(new_name)}",
            operation=operation,
        )
        self._raise_for_status(response, operation=operation, key=device_id)
        return self._decode(response, NodeResponse, operation=operation).node

    def get_device_routes(self, device_id: str) -> list[Route]:
        return _routes_for_device(self.get_device(device_id))

    def tag_device(self, device_id: str, tags: list[str]) -> Node:
        operation = "tag_device"
        response = self._request(
            "POST",
            f"/node/{_segment(device_id)}/tags",
            operation=operation,
            json_body={"tags": list(tags)},
        )
        self._raise_for_status(response, operation=operation, key=device_id)
        return self._decode(response, NodeResponse, operation=operation).node

    def move_device(self, device_id: str, user: str) -> Node:
        operation = "move_device"
        response = self._request(
            "POST",
            f"/node/{_segment(device_id)}/user",
            operation=operation,
            json_body={"user": user},
        )
        self._raise_for_status(response, operation=operation, key=device_id)
        return self._decode(response, NodeResponse, operation=operation).node

    # Pre-auth keys

    def list_pre_auth_keys(self, user: str) -> list[PreAuthKey]:
        operation = "list_pre_auth_keys"
        response = self._request(
            "GET",
            "/preauthkey",
            operation=operation,
            params={"user": user},
        )
        self._raise_for_status(response, operation=operation)
        return self._decode(response, ListPreAuthKeysResponse, operation=operation).pre_auth_keys

    def create_pre_auth_key(self, request: CreatePreAuthKeyInput) -> PreAuthKey:
        operation = "create_pre_auth_key"
        response = self._request(
            "POST",
            "/preauthkey",
            operation=operation,
            json_body=_build_pre_auth_key_payload(request),
        )
        self._raise_for_status(response, operation=operation)
        return self._decode(response, PreAuthKeyResponse, operation=operation).pre_auth_key

    def expire_pre_auth_key(self, user: str, key: str) -> None:
        operation = "expire_pre_auth_key"
        response = self._request(
            "POST",
            "/preauthkey/expire",
            operation=operation,
            json_body={"user": user, "key": key},
        )
        if not response.is_success:
            status = _parse_rpc_status(response)
            if status is not None and any(
                message in status.message for message in _SPENT_PRE_AUTH_KEY_MESSAGES
            ):
                logger.debug("pre-auth key already spent: %s", status.message)
                return
        self._raise_for_status(response, operation=operation)

    # Routes

    def list_routes(self) -> list[Route]:
        routes: list[Route] = []
        for device in self.list_devices(None):
            routes.extend(_routes_for_device(device))
        return routes

    def delete_route(self, route_id: str) -> None:
        raise HeadscaleNotImplementedError("delete_route")

    def disable_route(self, route_id: str) -> None:
        raise HeadscaleNotImplementedError("disable_route")

    def enable_route(self, route_id: str) -> None:
        raise HeadscaleNotImplementedError("enable_route")

    # Users

    def list_users(self) -> list[User]:
        operation = "list_users"
        response = self._request("GET", "/user", operation=operation)
        self._raise_for_status(response, operation=operation)
        return self._decode(response, ListUsersResponse, operation=operation).users

    def get_user_by_id(self, user_id: str) -> User:
        return self._find_user("get_user_by_id", params={"id": user_id}, key=user_id)

    def get_user_by_name(self, name: str) -> User:
        return self._find_user("get_user_by_name", params={"name": name}, key=name)

    def create_user(self, name: str) -> User:
        operation = "create_user"
        response = self._request("POST", "/user", operation=operation, json_body={"name": name})
        self._raise_for_status(response, operation=operation)
        return self._decode(response, UserResponse, operation=operation).user

    def delete_user(self, user_id: str) -> None:
        operation = "delete_user"
        response = self._request("DELETE", f"/user/{_segment(user_id)}", operation=operation)
        self._raise_for_status(response, operation=operation, key=user_id)

    def rename_user(self, old_id: str, new_name: str) -> User:
        operation = "rename_user"
        response = self._request(
            "POST",
            f"/user/{_segment(old_id)}/rename/{_segment(new_name)}",
            operation=operation,
        )
        self._raise_for_status(response, operation=operation, key=old_id)
        return self._decode(response, UserResponse, operation=operation).user

    def _find_user(self, operation: str, *, params: dict[str, str], key: str) -> User:
        response = self._request("GET", "/user", operation=operation, params=params)
        self._raise_for_status(response, operation=operation)
        users = self._decode(response, ListUsersResponse, operation=operation).users
        if not users:
            raise HeadscaleNotFoundError(
                f'user "{key}" not found',
                key=key,
                operation=operation,
            )
        return users[0]

    def _request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        params: Mapping[str, str | None] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> httpx.Response:
        query = {name: value for name, value in (params or {}).items() if value is not None}
        try:
            response = self._client.request(
                method,
                f"{API_PREFIX}{path}",
                params=query or None,
                json=json_body,
            )
        except httpx.HTTPError as exc:
            raise HeadscaleRequestError(
                f"{operation} request failed: {exc}",
                operation=operation,
            ) from exc

        logger.debug("headscale %s %s%s -> %s", method, API_PREFIX, path, response.status_code)
        return response

    def _raise_for_status(
        self,
        response: httpx.Response,
        *,
        operation: str,
        key: str | None = None,
    ) -> None:
        if response.is_success:
            return

        status_code = response.status_code
        status = _parse_rpc_status(response)
        rpc_code = status.code if status is not None else None
        remote_message = status.message if status is not None else None

        detail = f"{operation} failed; status={status_code}"
        if response.is_redirect:
            detail = f"{detail}; location={response.headers.get('Location', '')}"
        if remote_message:
            detail = f"{detail}; message={remote_message}"
        else:
            response_text = response.text.strip()
            if response_text:
                detail = f"{detail}; body={response_text[:240]}"

        if status_code in {401, 403}:
            raise HeadscaleAuthError(
                detail,
                operation=operation,
                status_code=status_code,
                rpc_code=rpc_code,
                remote_message=remote_message,
            )
        if status_code == 404:
            raise HeadscaleNotFoundError(
                detail,
                key=key,
                operation=operation,
                status_code=status_code,
                rpc_code=rpc_code,
                remote_message=remote_message,
            )
        raise HeadscaleRequestError(
            detail,
            operation=operation,
            status_code=status_code,
            rpc_code=rpc_code,
            remote_message=remote_message,
        )

    def _decode(
        self,
        response: httpx.Response,
        model: type[ModelT],
        *,
        operation: str,
    ) -> ModelT:
        try:
            data = response.json()
        except ValueError as exc:
            raise HeadscaleValidationError(
                f"{operation} response was not valid JSON (status={response.status_code})",
                operation=operation,
            ) from exc

        if not isinstance(data, dict):
            raise HeadscaleValidationError(
                f"{operation} response payload must be an object (status={response.status_code})",
                operation=operation,
            )

        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise HeadscaleValidationError(
                f"{operation} response failed validation: {exc}",
                operation=operation,
            ) from exc


def _parse_endpoint(endpoint: str) -> str:
    try:
        url = httpx.URL(endpoint.strip())
    except httpx.InvalidURL as exc:
        raise HeadscaleConfigError(f"invalid Headscale endpoint {endpoint!r}: {exc}") from exc

    if url.scheme not in {"http", "https"}:
        raise HeadscaleConfigError(
            f"invalid Headscale endpoint {endpoint!r}: scheme must be http or https"
        )
    if not url.host:
        raise HeadscaleConfigError(f"invalid Headscale endpoint {endpoint!r}: missing host")
    return str(url).rstrip("/")


def _parse_rpc_status(response: httpx.Response) -> RpcStatus | None:
    try:
        data = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    try:
        return RpcStatus.model_validate(data)
    except ValidationError:
        return None


def _build_pre_auth_key_payload(request: CreatePreAuthKeyInput) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "user": request.user,
        "reusable": request.reusable,
        "ephemeral": request.ephemeral,
        "aclTags": list(request.acl_tags),
    }
    if request.expiration is not None:
        payload["expiration"] = _format_timestamp(request.expiration)
    return payload


def _routes_for_device(device: Node) -> list[Route]:
    approved = set(device.approved_routes)
    return [
        Route(
            id=prefix,
            prefix=prefix,
            enabled=prefix in approved,
            device=device,
            created_at=device.created_at,
        )
        for prefix in device.subnet_routes
    ]


def _format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def _segment(value: str) -> str:
    return quote(value, safe="")
