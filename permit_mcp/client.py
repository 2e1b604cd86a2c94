"""
Async client for the Permit.io REST API.

This module is the only place the server talks to the network. It:
- Builds authenticated GET requests ("Authorization: Bearer <api key>")
- Returns decoded JSON bodies untouched
- Turns non-2xx responses into ApiError and network failures into
  TransportError
- Resolves which environment an environment-scoped call targets

Endpoint layout (project and environment are path segments):

    /v2/projects/{project}/envs[/{env}]
    /v2/schema/{project}/{env}/roles[/{role}]
    /v2/schema/{project}/{env}/resources[/{resource}]
    /v2/facts/{project}/{env}/users[/{user}[/roles]]

Each request opens its own httpx.AsyncClient, so two tool calls never share
connection state. Tests inject an httpx.MockTransport through the
`transport` argument instead of reaching the real API.
"""

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import httpx

from permit_mcp.config import Settings
from permit_mcp.errors import ApiError, ConfigurationError, TransportError
from permit_mcp.models import (
    EffectivePermission,
    Environment,
    PaginatedUsers,
    Resource,
    Role,
    RoleAssignment,
    User,
    UserPermissions,
)

logger = logging.getLogger("permit-mcp.client")


def _segment(value: str) -> str:
    """Percent-encode a caller-supplied path segment ("/" included)."""
    return quote(value, safe="")


class PermitClient:
    """Read-only access to one Permit.io project."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._settings = settings
        self._transport = transport

    @property
    def project_id(self) -> str:
        return self._settings.project_id

    @property
    def default_env_id(self) -> str | None:
        return self._settings.env_id

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------

    async def _request(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """
        Send a GET request and return the decoded JSON body.

        Raises:
            ApiError: Permit.io answered with a non-2xx status, or with a
                2xx body that is not JSON
            TransportError: The request failed before a response arrived
        """
        headers = {
            "Authorization": f"Bearer {self._settings.api_key}",
            "Content-Type": "application/json",
        }
        logger.debug("GET %s", path, extra={"log_data": {"params": params or {}}})

        async with httpx.AsyncClient(
            base_url=self._settings.api_url,
            headers=headers,
            transport=self._transport,
        ) as http:
            try:
                response = await http.get(path, params=params)
            except httpx.RequestError as e:
                logger.warning(
                    "Permit API request failed",
                    extra={"log_data": {"path": path, "error": type(e).__name__}},
                )
                raise TransportError(
                    f"Permit API request failed: {type(e).__name__}: {e}",
                    url=f"{self._settings.api_url}{path}",
                ) from e

        if not response.is_success:
            logger.warning(
                "Permit API returned an error status",
                extra={"log_data": {"path": path, "status_code": response.status_code}},
            )
            raise ApiError(response.status_code, response.reason_phrase, response.text)

        try:
            return response.json()
        except ValueError as e:
            logger.warning(
                "Permit API returned a body that is not JSON",
                extra={"log_data": {"path": path, "status_code": response.status_code}},
            )
            raise ApiError(response.status_code, response.reason_phrase, response.text) from e

    def resolve_env_id(self, env_id: str | None = None) -> str:
        """
        Pick the environment for an environment-scoped call.

        An explicit argument wins, even an empty one; only an omitted
        argument (None) falls back to the configured default (PERMIT_ENV_ID).
        An empty result is rejected rather than guessed.

        Raises:
            ConfigurationError: The resolved environment id is missing or empty
        """
        resolved = self.default_env_id if env_id is None else env_id
        if not resolved:
            raise ConfigurationError(
                "Environment ID is required. Provide it as a parameter or set PERMIT_ENV_ID."
            )
        return resolved

    def _schema_path(self, env: str, *parts: str) -> str:
        return "/".join(
            ["/v2/schema", _segment(self.project_id), _segment(env), *parts]
        )

    def _facts_path(self, env: str, *parts: str) -> str:
        return "/".join(
            ["/v2/facts", _segment(self.project_id), _segment(env), *parts]
        )

    # ------------------------------------------------------------------
    # Environments
    # ------------------------------------------------------------------

    async def list_environments(self) -> list[Environment]:
        return await self._request(f"/v2/projects/{_segment(self.project_id)}/envs")

    async def get_environment(self, env_id: str) -> Environment:
        # The environment is the subject here, not a scope, so the
        # configured default is not consulted.
        if not env_id:
            raise ConfigurationError("Environment ID is required to get an environment.")
        return await self._request(
            f"/v2/projects/{_segment(self.project_id)}/envs/{_segment(env_id)}"
        )

    # ------------------------------------------------------------------
    # Schema: roles and resources
    # ------------------------------------------------------------------

    async def list_roles(self, env_id: str | None = None) -> list[Role]:
        env = self.resolve_env_id(env_id)
        return await self._request(self._schema_path(env, "roles"))

    async def get_role(self, role_key: str, env_id: str | None = None) -> Role:
        env = self.resolve_env_id(env_id)
        return await self._request(self._schema_path(env, "roles", _segment(role_key)))

    async def list_resources(self, env_id: str | None = None) -> list[Resource]:
        env = self.resolve_env_id(env_id)
        return await self._request(self._schema_path(env, "resources"))

    async def get_resource(self, resource_key: str, env_id: str | None = None) -> Resource:
        env = self.resolve_env_id(env_id)
        return await self._request(
            self._schema_path(env, "resources", _segment(resource_key))
        )

    # ------------------------------------------------------------------
    # Facts: users and role assignments
    # ------------------------------------------------------------------

    async def list_users(
        self,
        page: int | None = None,
        per_page: int | None = None,
        search: str | None = None,
        env_id: str | None = None,
    ) -> PaginatedUsers:
        """
        List users, optionally paginated and filtered.

        Query parameters are sent in the order page, per_page, search, and
        only when set to a non-empty / non-zero value.
        """
        env = self.resolve_env_id(env_id)
        params: dict[str, Any] = {}
        if page:
            params["page"] = page
        if per_page:
            params["per_page"] = per_page
        if search:
            params["search"] = search
        return await self._request(self._facts_path(env, "users"), params=params or None)

    async def get_user(self, user_key: str, env_id: str | None = None) -> User:
        env = self.resolve_env_id(env_id)
        return await self._request(self._facts_path(env, "users", _segment(user_key)))

    async def get_user_role_assignments(
        self, user_key: str, env_id: str | None = None
    ) -> list[RoleAssignment]:
        env = self.resolve_env_id(env_id)
        return await self._request(
            self._facts_path(env, "users", _segment(user_key), "roles")
        )

    async def get_user_permissions(
        self, user_key: str, env_id: str | None = None
    ) -> UserPermissions:
        """
        Compute a user's effective permissions.

        Joins the user's role assignments against the role definitions of
        the environment:

        1. Resolve the environment (fails before any network call)
        2. Fetch the user, their role assignments and all roles concurrently
        3. Index roles by key (a duplicate key replaces the earlier role)
        4. For each assignment, in the order Permit.io returned them, emit
           {role, tenant, permissions}; an assignment whose role is unknown
           gets an empty permission list
        5. Return the user and raw assignments next to the derived entries
           so the join can be audited

        If any of the three fetches fails the whole call fails at once and
        the fetches still in flight are cancelled; there is no partial result.
        """
        env = self.resolve_env_id(env_id)

        fetches = [
            asyncio.ensure_future(self.get_user(user_key, env)),
            asyncio.ensure_future(self.get_user_role_assignments(user_key, env)),
            asyncio.ensure_future(self.list_roles(env)),
        ]
        try:
            user, role_assignments, roles = await asyncio.gather(*fetches)
        except BaseException:
            # Fail fast: the first error wins and the other fetches are dropped.
            for fetch in fetches:
                fetch.cancel()
            raise

        roles_by_key = {role.get("key"): role for role in roles}

        permissions: list[EffectivePermission] = []
        for assignment in role_assignments:
            role = roles_by_key.get(assignment.get("role"))
            permissions.append(
                {
                    "role": assignment.get("role"),
                    "tenant": assignment.get("tenant"),
                    "permissions": (role or {}).get("permissions") or [],
                }
            )

        logger.debug(
            "Resolved effective permissions",
            extra={
                "log_data": {
                    "user": user_key,
                    "env": env,
                    "assignments": len(role_assignments),
                    "roles": len(roles),
                }
            },
        )

        return {
            "user": user,
            "roleAssignments": role_assignments,
            "permissions": permissions,
        }
