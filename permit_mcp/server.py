"""
Permit.io MCP server built on FastMCP v2.

This module wires the server together:
- Read-only tools over the Permit.io API (defined in permit_mcp.tools)
- A middleware that logs every tool call with a request id and outcome
- Structured JSON logging on stderr
- A /health endpoint for the HTTP transport
- The process entry point

Architecture:
    For every tools/call request:

    1. FastMCP validates the arguments against the tool signature
    2. ToolCallLoggingMiddleware assigns a request id and starts a timer
    3. The tool forwards the arguments to PermitClient, which calls the
       Permit.io API
    4. The tool renders the result as JSON, or converts the failure into an
       error result (isError=true)
    5. The middleware logs the outcome and duration

Running the server:
    PERMIT_API_KEY=... uv run python -m permit_mcp.server

    By default the server speaks MCP over stdio, so stdout belongs to the
    protocol and all logs go to stderr. Set PERMIT_TRANSPORT=streamable-http
    to serve MCP at http://PERMIT_HOST:PERMIT_PORT/mcp instead.
"""

import json
import logging
import sys
import time
import uuid

from fastmcp import FastMCP
from fastmcp.server.middleware import CallNext, Middleware, MiddlewareContext
from fastmcp.tools.tool import ToolResult
from mcp.types import CallToolRequestParams
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from permit_mcp.client import PermitClient
from permit_mcp.config import Settings, load_settings
from permit_mcp.errors import StartupConfigurationError
from permit_mcp.tools import register_tools

SERVER_NAME = "permit-mcp"
SERVER_VERSION = "1.0.0"

logger = logging.getLogger("permit-mcp")


# ---------------------------------------------------------------------------
# Structured JSON Logging
# ---------------------------------------------------------------------------
# One JSON object per line so log collectors can index fields such as the
# tool name or request id. Logs go to stderr: with the stdio transport,
# stdout carries MCP messages and anything else written there corrupts the
# stream.


class JSONLogFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Example output:

        {"timestamp": "2026-10-19 10:30:00,123", "level": "INFO", "logger": "permit-mcp",
         "message": "Tool call completed", "request_id": "1f2e3d4c", "tool": "get-role"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Structured fields passed via logger.info("msg", extra={"log_data": {...}})
        if hasattr(record, "log_data"):
            log_entry.update(record.log_data)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def configure_logging(level: str = "info") -> None:
    """Send JSON log lines to stderr at the given level."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONLogFormatter())

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[handler],
        force=True,
    )


# ---------------------------------------------------------------------------
# Tool call logging middleware
# ---------------------------------------------------------------------------


class ToolCallLoggingMiddleware(Middleware):
    """
    Logs each tools/call request with a short request id.

    The tools themselves never let an exception escape unconverted, so an
    exception seen here is already a ToolError destined for the caller as
    an error result. It is logged and re-raised unchanged.
    """

    async def on_call_tool(
        self,
        context: MiddlewareContext[CallToolRequestParams],
        call_next: CallNext[CallToolRequestParams, ToolResult],
    ) -> ToolResult:
        request_id = str(uuid.uuid4())[:8]
        tool_name = context.message.name
        started = time.perf_counter()

        try:
            result = await call_next(context)
        except Exception:
            logger.warning(
                "Tool call returned an error",
                extra={
                    "log_data": {
                        "request_id": request_id,
                        "tool": tool_name,
                        "outcome": "error",
                        "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                    }
                },
            )
            raise

        logger.info(
            "Tool call completed",
            extra={
                "log_data": {
                    "request_id": request_id,
                    "tool": tool_name,
                    "outcome": "ok",
                    "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                }
            },
        )
        return result


# ---------------------------------------------------------------------------
# Server factory
# ---------------------------------------------------------------------------


def create_server(settings: Settings, client: PermitClient | None = None) -> FastMCP:
    """
    Build the FastMCP server for one Permit.io project.

    Args:
        settings: Validated configuration, built once at startup
        client: API client to bind the tools to; defaults to a PermitClient
                built from `settings` (tests pass one with a mock transport)
    """
    client = client or PermitClient(settings)

    mcp = FastMCP(
        name=SERVER_NAME,
        version=SERVER_VERSION,
        instructions=(
            "Read-only access to a Permit.io authorization project: environments, "
            "roles, resources, users, and a user's effective permissions. "
            "Environment-scoped tools accept an optional envId and fall back to "
            "the server's default environment."
        ),
        middleware=[ToolCallLoggingMiddleware()],
    )

    register_tools(mcp, client)

    # Plain HTTP endpoint, only reachable with the streamable-http transport.
    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> Response:
        """Liveness check: is the server process alive and responsive?"""
        return JSONResponse(
            {"status": "healthy", "project": settings.project_id}
        )

    return mcp


# ---------------------------------------------------------------------------
# Server entry point
# ---------------------------------------------------------------------------


def main() -> None:
    try:
        settings = load_settings()
    except StartupConfigurationError as e:
        # Settings could not be read, so neither could the log level.
        configure_logging()
        logger.critical("Refusing to start: %s", e)
        sys.exit(1)

    configure_logging(settings.log_level)

    try:
        mcp = create_server(settings)
        logger.info(
            "Starting Permit MCP server (transport=%s, project=%s, default_env=%s)",
            settings.transport,
            settings.project_id,
            settings.env_id or "<none>",
        )
        if settings.transport == "stdio":
            mcp.run(transport="stdio")
        else:
            mcp.run(
                transport="streamable-http",
                host=settings.host,
                port=settings.port,
                log_level=settings.log_level,
            )
    except Exception:
        logger.exception("Fatal error")
        sys.exit(1)


if __name__ == "__main__":
    main()
