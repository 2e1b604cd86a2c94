"""
Error taxonomy for the Permit MCP server.

Every failure a tool call can hit falls into one of three kinds:

- CONFIGURATION: the call needs an environment id and neither the arguments
  nor PERMIT_ENV_ID provide one. Raised before any network request.
- API: Permit.io answered with a non-2xx status. Carries the status code,
  status text and the raw response body.
- TRANSPORT: no response was obtained at all (DNS failure, refused or reset
  connection, timeout).

The tool layer converts all of them into an error envelope with
format_error(), which is the only place exception messages are shaped for
the caller.

StartupConfigurationError is separate: it is raised while the process boots
and is fatal, so it never reaches the tool layer.
"""

from enum import Enum


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    API = "api"
    TRANSPORT = "transport"


class PermitError(Exception):
    """Base class for errors raised while serving a tool call."""

    kind: ErrorKind

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigurationError(PermitError):
    """No environment id could be resolved for an environment-scoped call."""

    kind = ErrorKind.CONFIGURATION


class ApiError(PermitError):
    """
    Raised when Permit.io returns a non-2xx response.

    Attributes:
        status_code: HTTP status code of the response
        status_text: HTTP reason phrase (e.g. "Not Found")
        body: Raw response body, included verbatim in the message
    """

    kind = ErrorKind.API

    def __init__(self, status_code: int, status_text: str, body: str):
        self.status_code = status_code
        self.status_text = status_text
        self.body = body
        super().__init__(f"Permit API error: {status_code} {status_text} - {body}")


class TransportError(PermitError):
    """Raised when the request failed before any response was received."""

    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        super().__init__(message)


class StartupConfigurationError(Exception):
    """Required configuration is missing or invalid at process launch."""


def format_error(exc: BaseException) -> str:
    """Render an exception as the caller-facing error text."""
    message = str(exc).strip()
    return f"Error: {message or 'Unknown error'}"
