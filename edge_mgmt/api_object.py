"""ApiObject - Base class for Management API resource objects.

Resource objects (Organization, Developer, CompanyInviteRequest) call the
verbs defined here. Each verb builds a RequestDescriptor, runs it through
the RequestExecutor, and leaves the result readable as ``responseCode``,
``responseText``, ``responseObj``, ``responseLength`` and
``responseMimeType``.

Method names follow the Management API SDK's camelCase surface; snake_case
spellings still resolve through LegacyDispatch.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

import httpx

from edge_mgmt.diagnostics import DebugCallbacks
from edge_mgmt.executor import ApiFailure, ManagementApiError, RequestExecutor
from edge_mgmt.legacy import LegacyDispatch
from edge_mgmt.models import (
    DEFAULT_MIME_TYPE,
    ClientConfig,
    DiagnosticRecord,
    RequestDescriptor,
    RequestOptions,
    ResponseDescriptor,
)
from edge_mgmt.payload_codec import encode, to_wire
from edge_mgmt.transport import HttpTransport


logger = logging.getLogger(__name__)


class InvalidArgumentFailure(ManagementApiError, ValueError):
    """Raised when an operation is missing a required identifier or parameter."""


def _merge_headers(base: dict[str, str], custom_headers: Mapping[str, str | None] | None) -> dict[str, str]:
    headers = dict(base)
    for key, value in (custom_headers or {}).items():
        if value is None:
            headers.pop(key.lower(), None)
        else:
            headers[key.lower()] = value
    return headers


class ApiObject(LegacyDispatch):
    """Owns one transport/executor pair bound to a resource base path.

    Usage:
        with Organization(config) as org:
            info = org.load()
    """

    def __init__(
        self,
        config: ClientConfig,
        base_path: str = "",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the resource object.

        Args:
            config: Shared client configuration. Never modified.
            base_path: Path appended to config.endpoint for every call.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self._config = config
        self._logger = config.logger or logger
        self._transport = HttpTransport(config, base_path, transport=transport)
        self._executor = RequestExecutor(
            self._transport,
            DebugCallbacks(config.debug_callbacks, log=self._logger),
            log=self._logger,
        )
        self.lastResponse: ResponseDescriptor | None = None
        self.responseCode = 0
        self.responseText = ""
        self.responseObj: dict[str, Any] | list[Any] = {}
        self.responseLength: int | None = None
        self.responseMimeType = ""

    def __enter__(self) -> "ApiObject":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._transport.close()

    # -------------------------------------------------------------------------
    # Configuration and diagnostics
    # -------------------------------------------------------------------------

    def getConfig(self) -> ClientConfig:
        """Return the configuration so other resource objects can reuse it."""
        return self._config

    def getDebugData(self) -> DiagnosticRecord | None:
        """Return the diagnostic record of the most recent call, if any."""
        return self._executor.last_record

    def registerDebugCallback(self, callback: Callable[[DiagnosticRecord], Any]) -> None:
        self._executor.debug_callbacks.register(callback)

    def unregisterDebugCallback(self, callback: Callable[[DiagnosticRecord], Any]) -> None:
        self._executor.debug_callbacks.unregister(callback)

    def clearSubscribers(self) -> None:
        """Detach the configured event hooks until restoreSubscribers()."""
        self._transport.detach_event_hooks()

    def restoreSubscribers(self) -> None:
        self._transport.attach_event_hooks()

    # -------------------------------------------------------------------------
    # HTTP verbs
    # -------------------------------------------------------------------------

    def get(
        self,
        uri: str | None = None,
        accept_mime_type: str = DEFAULT_MIME_TYPE,
        custom_headers: Mapping[str, str | None] | None = None,
        options: RequestOptions | None = None,
    ) -> ResponseDescriptor:
        """HTTP GET. The result is also left in the response* attributes."""
        headers = _merge_headers({"accept": accept_mime_type}, custom_headers)
        return self._exec("GET", uri, headers, None, options)

    def head(
        self,
        uri: str | None = None,
        accept_mime_type: str = DEFAULT_MIME_TYPE,
        custom_headers: Mapping[str, str | None] | None = None,
        options: RequestOptions | None = None,
    ) -> ResponseDescriptor:
        """HTTP HEAD. responseText stays empty; responseLength is still set."""
        headers = _merge_headers({"accept": accept_mime_type}, custom_headers)
        return self._exec("HEAD", uri, headers, None, options)

    def httpDelete(
        self,
        uri: str | None = None,
        accept_mime_type: str = DEFAULT_MIME_TYPE,
        custom_headers: Mapping[str, str | None] | None = None,
        options: RequestOptions | None = None,
    ) -> ResponseDescriptor:
        """HTTP DELETE.

        Named httpDelete so subclasses can define their own delete().
        """
        headers = _merge_headers({"accept": accept_mime_type}, custom_headers)
        return self._exec("DELETE", uri, headers, None, options)

    def post(
        self,
        uri: str | None = None,
        payload: Any = "",
        content_type: str = DEFAULT_MIME_TYPE,
        accept_type: str = DEFAULT_MIME_TYPE,
        custom_headers: Mapping[str, str | None] | None = None,
        options: RequestOptions | None = None,
    ) -> ResponseDescriptor:
        """HTTP POST. Dict/list payloads are encoded according to content_type."""
        return self._send_entity("POST", uri, payload, content_type, accept_type, custom_headers, options)

    def put(
        self,
        uri: str | None = None,
        payload: Any = "",
        content_type: str = DEFAULT_MIME_TYPE,
        accept_type: str = DEFAULT_MIME_TYPE,
        custom_headers: Mapping[str, str | None] | None = None,
        options: RequestOptions | None = None,
    ) -> ResponseDescriptor:
        """HTTP PUT. Dict/list payloads are encoded according to content_type."""
        return self._send_entity("PUT", uri, payload, content_type, accept_type, custom_headers, options)

    def _send_entity(
        self,
        method: str,
        uri: str | None,
        payload: Any,
        content_type: str,
        accept_type: str,
        custom_headers: Mapping[str, str | None] | None,
        options: RequestOptions | None,
    ) -> ResponseDescriptor:
        body = to_wire(encode(content_type, payload))
        headers = _merge_headers({"accept": accept_type, "content-type": content_type}, custom_headers)
        if not body:
            # An empty body is sent without any content-type at all.
            headers.pop("content-type", None)
        return self._exec(method, uri, headers, body, options)

    def _exec(
        self,
        method: str,
        uri: str | None,
        headers: dict[str, str],
        body: bytes | None,
        options: RequestOptions | None,
    ) -> ResponseDescriptor:
        self.responseCode = 0
        request = RequestDescriptor(
            method=method,
            uri=uri,
            headers=headers,
            body=body,
            options=options or RequestOptions(),
        )
        try:
            response = self._executor.execute(request)
        except ApiFailure as e:
            if e.response is not None:
                self._read_response(e.response)
            else:
                self.responseCode = e.status_code
                self.responseText = e.raw_body or ""
                self.responseObj = e.diagnostics.data or {}
            raise
        self._read_response(response)
        return response

    def _read_response(self, response: ResponseDescriptor) -> None:
        self.lastResponse = response
        self.responseCode = response.status_code
        self.responseText = response.text
        self.responseObj = response.data
        self.responseLength = response.content_length
        self.responseMimeType = response.content_type
