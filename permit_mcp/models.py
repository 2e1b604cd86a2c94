"""
Shapes of the Permit.io API objects this server forwards.

These are TypedDicts rather than validated models: the server passes the
upstream JSON through untouched, and the types only document which keys the
code (and the caller) can rely on. Every field beyond `key` is optional
because Permit.io omits unset attributes.
"""

from typing import Any, TypedDict


class Environment(TypedDict, total=False):
    key: str
    id: str
    organization_id: str
    project_id: str
    name: str
    description: str
    custom_branch_name: str
    jwks: dict[str, Any]
    settings: dict[str, Any]
    created_at: str
    updated_at: str


class RoleGrant(TypedDict, total=False):
    linked_by_relation: str
    on_resource: str
    role: str


class GrantedTo(TypedDict, total=False):
    users_with_role: list[RoleGrant]


class Role(TypedDict, total=False):
    key: str
    id: str
    organization_id: str
    project_id: str
    environment_id: str
    name: str
    description: str
    # Permission strings in "resource:action" form.
    permissions: list[str]
    # Keys of roles this one inherits from. Not resolved here.
    extends: list[str]
    granted_to: GrantedTo
    created_at: str
    updated_at: str


class ResourceAction(TypedDict, total=False):
    key: str
    id: str
    name: str
    description: str
    permission_name: str


class Resource(TypedDict, total=False):
    key: str
    id: str
    organization_id: str
    project_id: str
    environment_id: str
    name: str
    description: str
    urn: str
    actions: dict[str, ResourceAction]
    attributes: dict[str, dict[str, Any]]
    roles: dict[str, dict[str, Any]]
    relations: dict[str, Any]
    created_at: str
    updated_at: str


class TenantAssociation(TypedDict, total=False):
    tenant: str
    roles: list[str]
    status: str


class User(TypedDict, total=False):
    key: str
    id: str
    organization_id: str
    project_id: str
    environment_id: str
    email: str
    first_name: str
    last_name: str
    attributes: dict[str, Any]
    associated_tenants: list[TenantAssociation]
    roles: list[dict[str, str]]
    created_at: str
    updated_at: str


class RoleAssignment(TypedDict, total=False):
    id: str
    user: str
    user_id: str
    role: str
    role_id: str
    tenant: str
    tenant_id: str
    organization_id: str
    project_id: str
    environment_id: str
    created_at: str


class PaginatedUsers(TypedDict, total=False):
    data: list[User]
    total_count: int
    page_count: int


class EffectivePermission(TypedDict):
    role: str
    tenant: str
    permissions: list[str]


class UserPermissions(TypedDict):
    user: User
    roleAssignments: list[RoleAssignment]
    permissions: list[EffectivePermission]
