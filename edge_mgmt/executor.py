"""Executor - Sends one request through the transport and classifies the result.

Every call made by every resource object passes through
RequestExecutor.execute(). It snapshots the outgoing headers with
credentials masked, times the exchange, decodes JSON bodies, fills a
DiagnosticRecord, notifies debug callbacks, and either returns a
ResponseDescriptor (2xx) or raises a typed failure.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any

from edge_mgmt.diagnostics import DebugCallbacks, format_raw_headers, mask_authorization
from edge_mgmt.models import DiagnosticOptions, DiagnosticRecord, RequestDescriptor, ResponseDescriptor
from edge_mgmt.status_registry import reason_phrase, status_class
from edge_mgmt.transport import HttpTransport, TransportError, TransportResponse


logger = logging.getLogger(__name__)


class ManagementApiError(Exception):
    """Base class for edge-mgmt errors."""


class TransportFailure(ManagementApiError):
    """Raised when no HTTP response was obtained (DNS, connect, timeout).

    Always fatal to the current call. The executor never retries it.
    """

    def __init__(self, code: int, message: str, uri: str, diagnostics: DiagnosticRecord) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.uri = uri
        self.diagnostics = diagnostics


class ApiFailure(ManagementApiError):
    """Raised when a response came back with a non-2xx status.

    ``message`` is the summary shown to users; ``status_message`` is the
    reason phrase extended with method, URI and request body details.
    ``response`` is the non-2xx ResponseDescriptor itself.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        uri: str,
        diagnostics: DiagnosticRecord,
        raw_body: str | None = None,
        status_message: str = "",
        response: ResponseDescriptor | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.status_message = status_message
        self.uri = uri
        self.diagnostics = diagnostics
        self.raw_body = raw_body
        self.response = response


def is_json_content_type(content_type: str) -> bool:
    lowered = content_type.lower()
    return "/json" in lowered or "+json" in lowered


def decode_json_body(text: str, content_type: str) -> dict[str, Any] | list[Any] | None:
    """Decode a response body as JSON when it plausibly is JSON.

    Returns None, without attempting a parse, unless the content type is a
    JSON type and the body starts with ``{`` or ``[``. Malformed JSON also
    yields None.
    """
    if not is_json_content_type(content_type) or text[:1] not in ("{", "["):
        return None
    try:
        decoded = json.loads(text)
    except (ValueError, RecursionError):
        return None
    if isinstance(decoded, (dict, list)):
        return decoded
    return None


class RequestExecutor:
    """Executes RequestDescriptors against one HttpTransport.

    One request is in flight at a time. ``last_record`` holds the
    DiagnosticRecord of the most recent call and is replaced by every call;
    sharing an executor between threads needs external locking.

    Usage:
        executor = RequestExecutor(transport)
        response = executor.execute(RequestDescriptor(method="GET", uri="myorg"))
    """

    def __init__(
        self,
        transport: HttpTransport,
        debug_callbacks: DebugCallbacks | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._logger = log or logger
        self.debug_callbacks = debug_callbacks if debug_callbacks is not None else DebugCallbacks(log=self._logger)
        self.last_record: DiagnosticRecord | None = None

    def execute(self, request: RequestDescriptor) -> ResponseDescriptor:
        """Send *request* and return the normalized response.

        Raises:
            TransportFailure: If no response was received.
            ApiFailure: If the response status class is not 2.
        """
        self.last_record = None
        try:
            http_request = self._transport.build_request(request)
        except TransportError as e:
            raise self._transport_failure(e, request, request.uri or "", "") from e
        uri = str(http_request.url)
        request_headers = mask_authorization(
            format_raw_headers(
                (key.decode("latin-1"), value.decode("latin-1")) for key, value in http_request.headers.raw
            )
        )

        start = time.perf_counter()
        try:
            transport_response = self._transport.send(http_request, request.options)
        except TransportError as e:
            raise self._transport_failure(e, request, uri, request_headers) from e
        elapsed = time.perf_counter() - start

        return self._classify(request, uri, request_headers, transport_response, elapsed)

    def _transport_failure(
        self,
        error: TransportError,
        request: RequestDescriptor,
        uri: str,
        request_headers: str,
    ) -> TransportFailure:
        record = DiagnosticRecord(
            raw="",
            options=DiagnosticOptions(request_headers=request_headers),
            data=None,
            status_code=error.code,
            status_reason=error.error,
            status_class=0,
            exception=error.message,
            elapsed=None,
        )
        self._finalize(record)
        self._logger.critical(
            "%(code_status)s (%(code)s) Request Details:[ %(r_method)s %(r_resource)s %(r_headers)s ]",
            {
                "code": error.code,
                "code_status": error.error,
                "r_method": request.method,
                "r_resource": uri,
                "r_headers": request_headers.replace("\r\n", " ").strip(),
            },
        )
        return TransportFailure(error.code, error.message, uri, record)

    def _classify(
        self,
        request: RequestDescriptor,
        uri: str,
        request_headers: str,
        transport_response: TransportResponse,
        elapsed: float,
    ) -> ResponseDescriptor:
        text = transport_response.body.decode("utf-8", errors="replace").strip()
        decoded = decode_json_body(text, transport_response.content_type)
        data: dict[str, Any] | list[Any] = decoded if decoded is not None else {}

        response = ResponseDescriptor(
            status_code=transport_response.status_code,
            headers=_group_headers(transport_response.headers),
            body=transport_response.body,
            text=text,
            content_type=transport_response.content_type,
            content_length=transport_response.content_length,
            data=data,
        )

        code = response.status_code
        options = DiagnosticOptions(
            request_headers=request_headers,
            response_headers=transport_response.raw_headers,
            request_body=_body_text(request.body) if request.is_entity_enclosing else None,
            request_kind="entity_enclosing" if request.is_entity_enclosing else "plain",
        )
        record = DiagnosticRecord(
            raw=text,
            options=options,
            data=data,
            status_code=code,
            status_reason=reason_phrase(code),
            status_class=status_class(code),
            exception=None,
            elapsed=elapsed,
        )

        if record.status_class == 2:
            self._finalize(record)
            return response

        if isinstance(data, dict) and "message" in data:
            message = f"Code: {code}; Message: {data['message']}"
        else:
            message = f"API returned HTTP code {code} when fetching from {uri}"

        status_message = f"{record.status_reason}: {request.method} {uri}"
        if request.is_entity_enclosing and request.body:
            status_message += (
                f" with Content-Length of {len(request.body)}"
                f" and Content-Type of {request.headers.get('content-type', '')}"
            )

        record = record.model_copy(update={"exception": message})
        self._finalize(record)
        self._logger.error("%(response_body)s", {"response_body": text})
        raise ApiFailure(
            code,
            message,
            uri,
            record,
            raw_body=text,
            status_message=status_message,
            response=response,
        )

    def _finalize(self, record: DiagnosticRecord) -> None:
        self.last_record = record
        self.debug_callbacks.notify(record)


def _group_headers(pairs: list[tuple[str, str]]) -> dict[str, list[str]]:
    headers: dict[str, list[str]] = {}
    for key, value in pairs:
        headers.setdefault(key.lower(), []).append(value)
    return headers


def _body_text(body: bytes | None) -> str:
    if not body:
        return ""
    return body.decode("utf-8", errors="replace")
