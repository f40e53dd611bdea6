"""Headscale service interface and provider-facing result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from headscale_provider.service.models import ApiKey, Node, PreAuthKey, User


@dataclass(slots=True)
class Route:
    """A subnet route advertised by a device.

    Routes are not first-class server entities; they are derived from a
    device's advertised and approved prefixes. The identifier reuses the
    prefix, so two devices advertising the same prefix share an id.
    """

    id: str
    prefix: str
    enabled: bool
    device: Node
    created_at: datetime | None


@dataclass(slots=True)
class CreatePreAuthKeyInput:
    user: str
    reusable: bool = False
    ephemeral: bool = False
    expiration: datetime | None = None
    acl_tags: list[str] = field(default_factory=list)


class HeadscaleService(Protocol):
    def list_api_keys(self) -> list[ApiKey]: ...

    def create_api_key(self, expiration: datetime | None = None) -> str:
        """Create an API key and return the raw secret, which is only shown once."""

    def expire_api_key(self, prefix: str) -> None: ...

    def list_devices(self, user: str | None = None) -> list[Node]: ...

    def get_device(self, device_id: str) -> Node: ...

    def create_device(self, user: str, key: str) -> Node:
        """Register a pending node key under the given user."""

    def expire_device(self, device_id: str) -> Node: ...

    def delete_device(self, device_id: str) -> None: ...

    def rename_device(self, device_id: str, new_name: str) -> Node: ...

    def get_device_routes(self, device_id: str) -> list[Route]: ...

    def tag_device(self, device_id: str, tags: list[str]) -> Node: ...

    def move_device(self, device_id: str, user: str) -> Node: ...

    def list_pre_auth_keys(self, user: str) -> list[PreAuthKey]: ...

    def create_pre_auth_key(self, request: CreatePreAuthKeyInput) -> PreAuthKey: ...

    def expire_pre_auth_key(self, user: str, key: str) -> None:
        """Expire a pre-auth key; already expired or used keys count as success."""

    def list_routes(self) -> list[Route]: ...

    def delete_route(self, route_id: str) -> None: ...

    def disable_route(self, route_id: str) -> None: ...

    def enable_route(self, route_id: str) -> None: ...

    def list_users(self) -> list[User]: ...

    def get_user_by_id(self, user_id: str) -> User: ...

    def get_user_by_name(self, name: str) -> User: ...

    def create_user(self, name: str) -> User: ...

    def delete_user(self, user_id: str) -> None: ...

    def rename_user(self, old_id: str, new_name: str) -> User: ...
