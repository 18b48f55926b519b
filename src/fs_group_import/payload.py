"""Create-group request bodies."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from .config import ApiConfig, ContractVersion
from .models import GroupSpec


class ResourcePayload(BaseModel):
    """Resource entry as sent to the API."""

    type: str
    ids: list[str]
    value: str | None = None


class PrincipalRoles(BaseModel):
    """Role grants for one principal (v1 contract)."""

    id: str
    role_ids: list[str] = Field(alias="roleIds")

    model_config = {"populate_by_name": True}


class CreateGroupRequest(BaseModel):
    """Body of ``POST <groups_path>``."""

    account_id: str = Field(alias="accountId")
    name: str
    description: str | None = None
    resources: list[ResourcePayload] = Field(default_factory=list)
    principals: list[PrincipalRoles] | None = None
    principal_ids: list[str] | None = Field(default=None, alias="principalIds")
    principal_role_ids: list[list[str]] | None = Field(default=None, alias="principalRoleIds")

    model_config = {"populate_by_name": True}


def _unique(items: tuple[str, ...] | list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def build_request(spec: GroupSpec, api: ApiConfig) -> CreateGroupRequest:
    """Map a valid group onto the request model for the configured contract."""
    resources = [
        ResourcePayload(type=r.type, ids=_unique(r.ids), value=r.value) for r in spec.resources
    ]
    principals = _unique(spec.principals)
    roles = [_unique(spec.roles_for(p)) for p in principals]

    request = CreateGroupRequest(
        account_id=api.account_id,
        name=spec.name,
        description=spec.description,
        resources=resources,
    )
    if api.contract_version == ContractVersion.V2:
        request.principal_ids = principals
        request.principal_role_ids = roles
    else:
        request.principals = [
            PrincipalRoles(id=p, role_ids=r) for p, r in zip(principals, roles)
        ]
    return request


def build_payload(spec: GroupSpec, api: ApiConfig) -> dict[str, Any]:
    """Return the JSON body for creating *spec*."""
    return build_request(spec, api).model_dump(by_alias=True, exclude_none=True)
