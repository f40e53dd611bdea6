from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from headscale_provider.service.models import (
    ListNodesResponse,
    Node,
    NodeResponse,
    PreAuthKey,
    RpcStatus,
    User,
)


def test_node_accepts_camel_case_and_proto_names() -> None:
    camel = Node.model_validate(
        {"id": "1", "givenName": "edge", "approvedRoutes": ["10.0.0.0/24"]}
    )
    snake = Node.model_validate(
        {"id": "1", "given_name": "edge", "approved_routes": ["10.0.0.0/24"]}
    )

    assert camel == snake
    assert camel.approved_routes == ["10.0.0.0/24"]


def test_numeric_identifiers_are_coerced_to_strings() -> None:
    user = User.model_validate({"id": 12, "name": "ops"})

    assert user.id == "12"


def test_node_embeds_user_and_pre_auth_key() -> None:
    node = Node.model_validate(
        {
            "id": "1",
            "user": {"id": "3", "name": "terraform"},
            "preAuthKey": {"id": "4", "key": "k", "reusable": True},
            "lastSeen": "2024-05-02T08:30:00Z",
        }
    )

    assert node.user == User(id="3", name="terraform")
    assert node.pre_auth_key is not None
    assert node.pre_auth_key.reusable is True
    assert node.last_seen == datetime(2024, 5, 2, 8, 30, tzinfo=UTC)


def test_pre_auth_key_accepts_legacy_user_name() -> None:
    key = PreAuthKey.model_validate({"id": "1", "user": "terraform", "aclTags": ["tag:ci"]})

    assert key.user == "terraform"
    assert key.acl_tags == ["tag:ci"]


def test_list_envelope_defaults_to_empty_when_field_omitted() -> None:
    assert ListNodesResponse.model_validate({}).nodes == []


def test_single_entity_envelope_requires_entity() -> None:
    with pytest.raises(ValidationError):
        NodeResponse.model_validate({})


def test_unknown_fields_are_ignored() -> None:
    user = User.model_validate({"id": "1", "name": "ops", "futureField": {"x": 1}})

    assert user.name == "ops"


def test_rpc_status_reads_gateway_error_body() -> None:
    status = RpcStatus.model_validate(
        {"code": 3, "message": "AuthKey expired", "details": [{"@type": "x"}]}
    )

    assert status.code == 3
    assert status.message == "AuthKey expired"
    assert len(status.details) == 1
