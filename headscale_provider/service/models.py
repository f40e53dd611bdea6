"""Headscale v1 API payload schemas.

The server's gRPC gateway emits camelCase JSON names, while proto field names
(snake_case) appear in some deployments and in the CLI's JSON output. Both are
accepted; the Python attribute is always the snake_case name.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class HeadscaleModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )


class User(HeadscaleModel):
    id: str = ""
    name: str = ""
    created_at: datetime | None = None
    display_name: str = ""
    email: str = ""
    provider_id: str = ""
    provider: str = ""
    profile_pic_url: str = ""


class Node(HeadscaleModel):
    id: str = ""
    machine_key: str = ""
    node_key: str = ""
    disco_key: str = ""
    ip_addresses: list[str] = Field(default_factory=list)
    name: str = ""
    user: User | None = None
    last_seen: datetime | None = None
    expiry: datetime | None = None
    pre_auth_key: PreAuthKey | None = None
    created_at: datetime | None = None
    register_method: str = ""
    forced_tags: list[str] = Field(default_factory=list)
    invalid_tags: list[str] = Field(default_factory=list)
    valid_tags: list[str] = Field(default_factory=list)
    given_name: str = ""
    online: bool = False
    approved_routes: list[str] = Field(default_factory=list)
    available_routes: list[str] = Field(default_factory=list)
    subnet_routes: list[str] = Field(default_factory=list)


class PreAuthKey(HeadscaleModel):
    id: str = ""
    # Older servers report the owning user by name only.
    user: User | str | None = None
    key: str = ""
    reusable: bool = False
    ephemeral: bool = False
    used: bool = False
    expiration: datetime | None = None
    created_at: datetime | None = None
    acl_tags: list[str] = Field(default_factory=list)


class ApiKey(HeadscaleModel):
    id: str = ""
    prefix: str = ""
    expiration: datetime | None = None
    created_at: datetime | None = None
    last_seen: datetime | None = None


class ListApiKeysResponse(HeadscaleModel):
    api_keys: list[ApiKey] = Field(default_factory=list)


class CreateApiKeyResponse(HeadscaleModel):
    api_key: str


class ListNodesResponse(HeadscaleModel):
    nodes: list[Node] = Field(default_factory=list)


class NodeResponse(HeadscaleModel):
    node: Node


class ListPreAuthKeysResponse(HeadscaleModel):
    pre_auth_keys: list[PreAuthKey] = Field(default_factory=list)


class PreAuthKeyResponse(HeadscaleModel):
    pre_auth_key: PreAuthKey


class ListUsersResponse(HeadscaleModel):
    users: list[User] = Field(default_factory=list)


class UserResponse(HeadscaleModel):
    user: User


class RpcStatus(HeadscaleModel):
    code: int = 0
    message: str = ""
    details: list[Any] = Field(default_factory=list)


Node.model_rebuild()
