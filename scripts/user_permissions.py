"""
CLI utility to print a user's effective permissions.

Runs the same lookup as the get-user-permissions tool, without an MCP
client in between. Handy for checking what an agent will see, or for
debugging a role that seems to grant nothing.

Configuration comes from the same PERMIT_* environment variables as the
server (PERMIT_API_KEY is required).

Usage examples:

    # Default environment from PERMIT_ENV_ID
    uv run python -m scripts.user_permissions --user alice

    # Explicit environment
    uv run python -m scripts.user_permissions --user alice --env production

    # Only the derived role/tenant/permissions entries
    uv run python -m scripts.user_permissions --user alice --summary
"""

import argparse
import asyncio
import sys

from permit_mcp.client import PermitClient
from permit_mcp.config import load_settings
from permit_mcp.errors import PermitError, StartupConfigurationError, format_error
from permit_mcp.tools import render


async def fetch_permissions(client: PermitClient, user: str, env: str | None, summary: bool):
    result = await client.get_user_permissions(user, env)
    return result["permissions"] if summary else result


def main(argv: list[str] | None = None, client: PermitClient | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Print the effective Permit.io permissions of a user.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Default environment:
    %(prog)s --user alice

  Explicit environment, derived entries only:
    %(prog)s --user alice --env production --summary
        """,
    )

    parser.add_argument("--user", required=True, help="User key or ID")
    parser.add_argument(
        "--env",
        default=None,
        help="Environment ID or key (default: PERMIT_ENV_ID)",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print only the role/tenant/permissions entries",
    )

    args = parser.parse_args(argv)

    if client is None:
        try:
            client = PermitClient(load_settings())
        except StartupConfigurationError as e:
            print(format_error(e), file=sys.stderr)
            return 1

    try:
        result = asyncio.run(fetch_permissions(client, args.user, args.env, args.summary))
    except PermitError as e:
        print(format_error(e), file=sys.stderr)
        return 1

    print(render(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
