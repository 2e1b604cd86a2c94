"""
Tool definitions: the Permit.io operations exposed over MCP.

Each tool forwards its arguments to one PermitClient method and returns the
result as pretty-printed JSON in a single text block. The catalog of
exposed names lives in TOOL_DESCRIPTIONS:

    TOOL_DESCRIPTIONS = {
        "tool-name": "description shown to the calling agent",
    }

Argument validation is done by FastMCP from the function signatures below:
a missing required argument or a wrongly typed one is rejected with an
error result before the tool body (and therefore the API) runs.

Errors raised by the client never escape a tool. They are logged and
re-raised as ToolError with the text produced by format_error(), which
FastMCP reports back as a result with isError set.

PermitClient.get_user_role_assignments is intentionally not exposed as its
own tool; its data is part of get-user-permissions.
"""

import json
import logging
from typing import Annotated, Any, Awaitable

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field

from permit_mcp.client import PermitClient
from permit_mcp.errors import PermitError, format_error

logger = logging.getLogger("permit-mcp.tools")

TOOL_DESCRIPTIONS: dict[str, str] = {
    "list-environments": (
        "List all environments in the Permit.io project. Returns environment keys, "
        "names, and configuration details."
    ),
    "get-environment": (
        "Get details of a specific environment by its ID or key. Returns full "
        "configuration including settings and JWKS."
    ),
    "list-roles": (
        "List all roles defined in a Permit.io environment. Returns role keys, names, "
        "descriptions, and basic permission info."
    ),
    "get-role": (
        "Get detailed information about a specific role including all its permissions, "
        "extended roles, and grant conditions."
    ),
    "list-resources": (
        "List all resources defined in a Permit.io environment. Resources represent the "
        "entities in your system that can be protected with permissions."
    ),
    "get-resource": (
        "Get detailed information about a specific resource including all its actions, "
        "attributes, resource roles, and relations."
    ),
    "list-users": (
        "List users in a Permit.io environment with optional pagination and search. "
        "Returns user keys, emails, names, and tenant associations."
    ),
    "get-user": (
        "Get detailed information about a specific user including their attributes, "
        "associated tenants, and role assignments."
    ),
    "get-user-permissions": (
        "Get the effective permissions for a user by combining their role assignments "
        "with role definitions. Shows which permissions the user has through each role "
        "in each tenant."
    ),
}

# Shared argument declarations. Parameter names are the camelCase names
# callers send on the wire.
EnvIdArg = Annotated[
    str | None, Field(description="Environment ID (uses default if not provided)")
]


def render(result: Any) -> str:
    """Serialize a tool result the way every tool returns it."""
    return json.dumps(result, indent=2, ensure_ascii=False)


async def respond(tool: str, call: Awaitable[Any]) -> str:
    """
    Await a client call and turn its outcome into the tool response.

    On success the result is rendered as JSON. On failure the exception is
    logged and converted to a ToolError carrying "Error: <message>"; this is
    the dispatcher boundary, so every exception type is handled here.
    """
    try:
        result = await call
    except PermitError as e:
        logger.warning(
            "Tool call failed",
            extra={"log_data": {"tool": tool, "error_kind": e.kind.value}},
        )
        raise ToolError(format_error(e)) from e
    except Exception as e:
        logger.exception(
            "Unexpected error in tool call",
            extra={"log_data": {"tool": tool, "error_kind": "unexpected"}},
        )
        raise ToolError(format_error(e)) from e
    return render(result)


def register_tools(mcp: FastMCP, client: PermitClient) -> None:
    """Register every Permit.io tool on `mcp`, bound to `client`."""

    # -----------------------------------------------------------------
    # Environments
    # -----------------------------------------------------------------

    @mcp.tool(name="list-environments", description=TOOL_DESCRIPTIONS["list-environments"])
    async def list_environments() -> str:
        return await respond("list-environments", client.list_environments())

    @mcp.tool(name="get-environment", description=TOOL_DESCRIPTIONS["get-environment"])
    async def get_environment(
        envId: Annotated[str, Field(description="The environment ID or key to retrieve")],
    ) -> str:
        return await respond("get-environment", client.get_environment(envId))

    # -----------------------------------------------------------------
    # Roles
    # -----------------------------------------------------------------

    @mcp.tool(name="list-roles", description=TOOL_DESCRIPTIONS["list-roles"])
    async def list_roles(envId: EnvIdArg = None) -> str:
        return await respond("list-roles", client.list_roles(envId))

    @mcp.tool(name="get-role", description=TOOL_DESCRIPTIONS["get-role"])
    async def get_role(
        roleKey: Annotated[str, Field(description="The role key to retrieve")],
        envId: EnvIdArg = None,
    ) -> str:
        return await respond("get-role", client.get_role(roleKey, envId))

    # -----------------------------------------------------------------
    # Resources
    # -----------------------------------------------------------------

    @mcp.tool(name="list-resources", description=TOOL_DESCRIPTIONS["list-resources"])
    async def list_resources(envId: EnvIdArg = None) -> str:
        return await respond("list-resources", client.list_resources(envId))

    @mcp.tool(name="get-resource", description=TOOL_DESCRIPTIONS["get-resource"])
    async def get_resource(
        resourceKey: Annotated[str, Field(description="The resource key to retrieve")],
        envId: EnvIdArg = None,
    ) -> str:
        return await respond("get-resource", client.get_resource(resourceKey, envId))

    # -----------------------------------------------------------------
    # Users
    # -----------------------------------------------------------------

    @mcp.tool(name="list-users", description=TOOL_DESCRIPTIONS["list-users"])
    async def list_users(
        envId: EnvIdArg = None,
        page: Annotated[
            int | None,
            Field(description="Page number for pagination (whole number, starting at 1)"),
        ] = None,
        perPage: Annotated[
            int | None, Field(description="Number of results per page (whole number)")
        ] = None,
        search: Annotated[
            str | None, Field(description="Search query to filter users")
        ] = None,
    ) -> str:
        return await respond(
            "list-users",
            client.list_users(page=page, per_page=perPage, search=search, env_id=envId),
        )

    @mcp.tool(name="get-user", description=TOOL_DESCRIPTIONS["get-user"])
    async def get_user(
        userKey: Annotated[str, Field(description="The user key or ID to retrieve")],
        envId: EnvIdArg = None,
    ) -> str:
        return await respond("get-user", client.get_user(userKey, envId))

    @mcp.tool(name="get-user-permissions", description=TOOL_DESCRIPTIONS["get-user-permissions"])
    async def get_user_permissions(
        userKey: Annotated[
            str, Field(description="The user key or ID to get permissions for")
        ],
        envId: EnvIdArg = None,
    ) -> str:
        return await respond("get-user-permissions", client.get_user_permissions(userKey, envId))
