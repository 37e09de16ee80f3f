"""Transport Adapter - Builds and sends HTTP requests through httpx.

One HttpTransport wraps one httpx.Client whose base URL is the configured
endpoint joined with a resource base path, e.g.
``https://api.enterprise.apigee.com/v1`` + ``/o/myorg/developers``.
Transport-level failures (DNS, connect, timeout, redirect loops) are
reported as TransportError with a curl-style numeric code.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any

import httpx

from edge_mgmt.models import ClientConfig, RequestDescriptor, RequestOptions


# curl error numbers, kept for compatibility with existing log tooling.
CURLE_URL_MALFORMAT = 3
CURLE_COULDNT_RESOLVE_HOST = 6
CURLE_COULDNT_CONNECT = 7
CURLE_OPERATION_TIMEDOUT = 28
CURLE_TOO_MANY_REDIRECTS = 47
CURLE_UNKNOWN = 0

# Substrings httpx/OS resolvers put in DNS failure messages.
_DNS_FAILURE_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo",
    "name resolution",
)


class TransportError(Exception):
    """Raised when no HTTP response could be obtained."""

    def __init__(self, code: int, error: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.error = error
        self.message = message


@dataclass(frozen=True)
class TransportResponse:
    """What the adapter hands back when a response was received."""

    status_code: int
    headers: list[tuple[str, str]] = field(default_factory=list)
    raw_headers: str = ""
    body: bytes = b""
    content_type: str = ""
    content_length: int | None = None
    http_version: str = "HTTP/1.1"


def join_base_url(endpoint: str, base_path: str) -> str:
    """Join an endpoint and a resource base path with exactly one slash."""
    return endpoint.rstrip("/") + "/" + base_path.lstrip("/")


def _sanitize_header_value(value: str) -> str:
    """Replace non-ASCII characters with '?' (RFC 7230 header values are ASCII)."""
    return value.encode("ascii", errors="replace").decode("ascii")


def _authorization_header(config: ClientConfig) -> str | None:
    if config.bearer_token:
        return f"Bearer {config.bearer_token}"
    if config.user is not None:
        credentials = f"{config.user}:{config.password or ''}".encode("utf-8")
        return "Basic " + base64.b64encode(credentials).decode("ascii")
    return None


def _classify_error(error: httpx.RequestError) -> tuple[int, str]:
    """Map an httpx exception onto a (code, short description) pair."""
    if isinstance(error, httpx.TimeoutException):
        return CURLE_OPERATION_TIMEDOUT, "Operation timed out"
    if isinstance(error, httpx.ConnectError):
        text = str(error).lower()
        if any(marker in text for marker in _DNS_FAILURE_MARKERS):
            return CURLE_COULDNT_RESOLVE_HOST, "Couldn't resolve host name"
        return CURLE_COULDNT_CONNECT, "Couldn't connect to server"
    if isinstance(error, httpx.TooManyRedirects):
        return CURLE_TOO_MANY_REDIRECTS, "Number of redirects hit maximum amount"
    return CURLE_UNKNOWN, "Transport error"


class HttpTransport:
    """Sends RequestDescriptors through a configured httpx.Client.

    Usage:
        with HttpTransport(config, "/organizations") as transport:
            http_request = transport.build_request(descriptor)
            response = transport.send(http_request, descriptor.options)
    """

    def __init__(
        self,
        config: ClientConfig,
        base_path: str = "",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            config: Client configuration (endpoint, credentials, options).
            base_path: Resource base path appended to the endpoint.
            transport: Optional httpx transport, e.g. httpx.MockTransport.
        """
        self._config = config
        self.base_url = join_base_url(config.endpoint, base_path)
        self._event_hooks: dict[str, list[Any]] = {
            "request": list(config.event_hooks.get("request", [])),
            "response": list(config.event_hooks.get("response", [])),
        }
        self._client = httpx.Client(**self._build_client_kwargs(config, transport))

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _build_client_kwargs(
        self, config: ClientConfig, transport: httpx.BaseTransport | None
    ) -> dict[str, Any]:
        """Build kwargs for httpx.Client from the client configuration."""
        headers: dict[str, str] = {
            key: _sanitize_header_value(value) for key, value in config.http_options.headers.items()
        }
        authorization = _authorization_header(config)
        if authorization is not None:
            headers["Authorization"] = authorization
        if config.user_agent:
            headers["User-Agent"] = _sanitize_header_value(config.user_agent)

        options = config.http_options
        kwargs: dict[str, Any] = {
            "base_url": self.base_url,
            "headers": headers,
            "timeout": httpx.Timeout(options.timeout, connect=options.connect_timeout or options.timeout),
            "follow_redirects": not config.redirect_disable,
            "event_hooks": {name: list(hooks) for name, hooks in self._event_hooks.items()},
        }
        if transport is not None:
            kwargs["transport"] = transport
        return kwargs

    def detach_event_hooks(self) -> None:
        """Remove the configured event hooks from the client."""
        self._client.event_hooks = {"request": [], "response": []}

    def attach_event_hooks(self) -> None:
        """Restore the hooks removed by detach_event_hooks()."""
        self._client.event_hooks = {name: list(hooks) for name, hooks in self._event_hooks.items()}

    def build_request(self, request: RequestDescriptor) -> httpx.Request:
        """Build the httpx.Request for a descriptor, including client defaults.

        Raises:
            TransportError: If the URI cannot be parsed.
        """
        headers = {key: _sanitize_header_value(value) for key, value in request.headers.items()}
        timeout: Any = httpx.USE_CLIENT_DEFAULT
        if request.options.timeout is not None:
            connect = self._config.http_options.connect_timeout or request.options.timeout
            timeout = httpx.Timeout(request.options.timeout, connect=connect)
        try:
            http_request = self._client.build_request(
                method=request.method,
                url=request.uri or "",
                headers=headers,
                content=request.body,
                timeout=timeout,
            )
        except httpx.InvalidURL as e:
            error = "URL using bad/illegal format or missing URL"
            raise TransportError(CURLE_URL_MALFORMAT, error, f"{error}: {e}") from e
        return http_request

    def send(self, http_request: httpx.Request, options: RequestOptions | None = None) -> TransportResponse:
        """Send a built request.

        Raises:
            TransportError: If no response was received.
        """
        follow_redirects: Any = httpx.USE_CLIENT_DEFAULT
        if options is not None and options.follow_redirects is not None:
            follow_redirects = options.follow_redirects

        try:
            response = self._client.send(http_request, follow_redirects=follow_redirects)
        except httpx.RequestError as e:
            code, error = _classify_error(e)
            raise TransportError(code, error, f"{error}: {e}") from e

        try:
            body = response.read()
        finally:
            response.close()
        return _convert_response(response, body)


def _convert_response(response: httpx.Response, body: bytes) -> TransportResponse:
    headers = [(key.lower(), value) for key, value in response.headers.multi_items()]
    raw_headers = "".join(
        f"{key.decode('latin-1')}: {value.decode('latin-1')}\r\n" for key, value in response.headers.raw
    )
    content_type = response.headers.get("content-type", "")

    content_length: int | None = None
    length_header = response.headers.get("content-length")
    if length_header is not None and length_header.strip().isdigit():
        content_length = int(length_header)
    elif body:
        content_length = len(body)

    return TransportResponse(
        status_code=response.status_code,
        headers=headers,
        raw_headers=raw_headers,
        body=body,
        content_type=content_type,
        content_length=content_length,
        http_version=getattr(response, "http_version", "HTTP/1.1"),
    )
