"""Tests for edge_mgmt.executor.

Tests cover:
- 2xx responses return a ResponseDescriptor and record no exception
- Non-2xx responses raise ApiFailure with message and status_message
- Transport errors raise TransportFailure with a status-class-0 record
- JSON decoding rules for response bodies
- Debug callbacks fire once per call, on success and on failure
- Error logging with masked credentials
"""

import logging

import httpx
import pytest

from edge_mgmt.diagnostics import MASK
from edge_mgmt.executor import (
    ApiFailure,
    RequestExecutor,
    TransportFailure,
    decode_json_body,
    is_json_content_type,
)
from edge_mgmt.models import RequestDescriptor
from edge_mgmt.transport import CURLE_OPERATION_TIMEDOUT, CURLE_URL_MALFORMAT, HttpTransport
from tests.conftest import RecordingTransport, make_config, static_transport


def make_executor(transport: httpx.BaseTransport, **config_overrides) -> RequestExecutor:
    http = HttpTransport(make_config(**config_overrides), "/o/myorg/developers", transport=transport)
    return RequestExecutor(http)


def timeout_transport() -> httpx.MockTransport:
    def handler(request):
        raise httpx.ReadTimeout("read timed out")

    return httpx.MockTransport(handler)


GET = RequestDescriptor(method="GET", uri="dev@example.com", headers={"accept": "application/json"})


class TestJsonHelpers:
    @pytest.mark.parametrize(
        "content_type,expected",
        [
            ("application/json", True),
            ("application/json; charset=utf-8", True),
            ("application/problem+json", True),
            ("text/plain", False),
            ("", False),
        ],
    )
    def test_is_json_content_type(self, content_type, expected):
        assert is_json_content_type(content_type) is expected

    def test_decodes_object_and_array(self):
        assert decode_json_body('{"a":1}', "application/json") == {"a": 1}
        assert decode_json_body("[1,2]", "application/json") == [1, 2]

    def test_not_json_content_type(self):
        assert decode_json_body('{"a":1}', "text/plain") is None

    def test_scalar_body_not_decoded(self):
        assert decode_json_body('"just a string"', "application/json") is None
        assert decode_json_body("42", "application/json") is None

    def test_malformed_json(self):
        assert decode_json_body("{not json", "application/json") is None

    def test_too_deeply_nested_json(self):
        assert decode_json_body("[" * 100000, "application/json") is None
        assert decode_json_body('{"a":' * 100000, "application/json") is None


class TestSuccess:
    def test_returns_response_descriptor(self):
        executor = make_executor(static_transport(200, {"email": "dev@example.com"}))
        response = executor.execute(GET)

        assert response.status_code == 200
        assert response.status_class == 2
        assert response.data == {"email": "dev@example.com"}
        assert response.text == '{"email": "dev@example.com"}'
        assert response.headers["content-type"] == ["application/json"]

    def test_record_has_no_exception(self):
        executor = make_executor(static_transport(201, {"id": "1"}))
        executor.execute(GET)
        record = executor.last_record

        assert record is not None
        assert record.succeeded
        assert record.exception is None
        assert record.status_code == 201
        assert record.status_reason == "Created"
        assert record.status_class == 2
        assert record.elapsed is not None and record.elapsed >= 0
        assert record.options.request_kind == "plain"
        assert record.options.request_body is None

    def test_non_json_body_gives_empty_data(self):
        transport = RecordingTransport(
            lambda request: httpx.Response(200, content=b"hello", headers={"content-type": "text/plain"})
        )
        executor = make_executor(transport)
        response = executor.execute(GET)

        assert response.data == {}
        assert response.text == "hello"
        assert executor.last_record.data == {}

    def test_request_headers_masked_in_record(self):
        executor = make_executor(static_transport(200, {}), bearer_token="super-secret")
        executor.execute(GET)

        headers = executor.last_record.options.request_headers
        assert "super-secret" not in headers
        assert f"Bearer {MASK}" in headers
        assert "accept: application/json\r\n" in headers

    def test_entity_enclosing_request_body_recorded(self):
        executor = make_executor(static_transport(201, {}))
        executor.execute(
            RequestDescriptor(
                method="POST", headers={"content-type": "application/json"}, body=b'{"email":"a@b.c"}'
            )
        )

        assert executor.last_record.options.request_kind == "entity_enclosing"
        assert executor.last_record.options.request_body == '{"email":"a@b.c"}'


class TestStatusClassification:
    @pytest.mark.parametrize("status_code", range(200, 300))
    def test_every_2xx_code_succeeds(self, status_code):
        executor = make_executor(static_transport(status_code))
        response = executor.execute(GET)

        assert response.status_code == status_code
        assert executor.last_record.exception is None

    @pytest.mark.parametrize(
        "status_code",
        [100, 101, 199, 300, 301, 304, 307, 399, 400, 401, 403, 404, 418, 429, 432, 499, 500, 502, 503, 520, 599, 600, 999],
    )
    def test_every_other_code_raises(self, status_code):
        executor = make_executor(static_transport(status_code), redirect_disable=True)
        with pytest.raises(ApiFailure) as exc_info:
            executor.execute(GET)

        assert exc_info.value.status_code == status_code
        assert exc_info.value.diagnostics.exception is not None


class TestApiFailure:
    def test_message_from_response_body(self):
        executor = make_executor(static_transport(404, {"code": "not.found", "message": "not found"}))
        with pytest.raises(ApiFailure) as exc_info:
            executor.execute(GET)

        error = exc_info.value
        assert error.status_code == 404
        assert error.message == "Code: 404; Message: not found"
        assert str(error) == "Code: 404; Message: not found"
        assert error.uri == "https://edge.example.com/v1/o/myorg/developers/dev@example.com"
        assert error.status_message == f"Not Found: GET {error.uri}"
        assert error.raw_body == '{"code": "not.found", "message": "not found"}'

    def test_generic_message_without_body_message(self):
        executor = make_executor(static_transport(503))
        with pytest.raises(ApiFailure) as exc_info:
            executor.execute(GET)

        error = exc_info.value
        assert error.message == f"API returned HTTP code 503 when fetching from {error.uri}"
        assert error.diagnostics.status_reason == "Service Unavailable"

    def test_status_message_describes_request_body(self):
        executor = make_executor(static_transport(400, {"message": "bad"}))
        body = b'{"email":"a@b.c"}'
        with pytest.raises(ApiFailure) as exc_info:
            executor.execute(
                RequestDescriptor(
                    method="PUT",
                    uri="a@b.c",
                    headers={"content-type": "application/json; charset=utf-8"},
                    body=body,
                )
            )

        assert exc_info.value.status_message.endswith(
            f" with Content-Length of {len(body)} and Content-Type of application/json; charset=utf-8"
        )

    def test_redirect_status_is_a_failure(self):
        executor = make_executor(
            static_transport(302, headers={"location": "https://elsewhere.example.com/"}),
            redirect_disable=True,
        )
        with pytest.raises(ApiFailure) as exc_info:
            executor.execute(GET)

        assert exc_info.value.status_code == 302

    def test_record_carries_exception(self):
        executor = make_executor(static_transport(409, {"message": "exists"}))
        with pytest.raises(ApiFailure) as exc_info:
            executor.execute(GET)

        record = executor.last_record
        assert record is exc_info.value.diagnostics
        assert record.exception == "Code: 409; Message: exists"
        assert record.status_class == 4
        assert not record.succeeded
        assert record.data == {"message": "exists"}

    def test_response_body_logged_at_error(self, caplog):
        executor = make_executor(static_transport(500, {"message": "kaput"}))
        with caplog.at_level(logging.ERROR, logger="edge_mgmt.executor"):
            with pytest.raises(ApiFailure):
                executor.execute(GET)

        assert '{"message": "kaput"}' in caplog.text


class TestTransportFailure:
    def test_malformed_uri(self):
        records = []
        executor = make_executor(static_transport(200, {}))
        executor.debug_callbacks.register(records.append)
        with pytest.raises(TransportFailure) as exc_info:
            executor.execute(RequestDescriptor(method="GET", uri="http://edge.example.com:abc/v1"))

        error = exc_info.value
        assert error.code == CURLE_URL_MALFORMAT
        assert error.uri == "http://edge.example.com:abc/v1"
        assert isinstance(error.__cause__.__cause__, httpx.InvalidURL)
        assert [r.status_class for r in records] == [0]
        assert executor.last_record.status_code == CURLE_URL_MALFORMAT

    def test_timeout(self):
        executor = make_executor(timeout_transport())
        with pytest.raises(TransportFailure) as exc_info:
            executor.execute(GET)

        error = exc_info.value
        assert error.code == CURLE_OPERATION_TIMEDOUT
        assert "read timed out" in error.message
        assert error.uri == "https://edge.example.com/v1/o/myorg/developers/dev@example.com"
        assert isinstance(error.__cause__.__cause__, httpx.ReadTimeout)

    def test_record_has_status_class_zero(self):
        executor = make_executor(timeout_transport())
        with pytest.raises(TransportFailure):
            executor.execute(GET)

        record = executor.last_record
        assert record.raw == ""
        assert record.status_class == 0
        assert record.status_code == CURLE_OPERATION_TIMEDOUT
        assert record.status_reason == "Operation timed out"
        assert record.exception is not None
        assert record.elapsed is None
        assert record.data is None

    def test_logged_critical_with_masked_headers(self, caplog):
        executor = make_executor(timeout_transport(), bearer_token="super-secret")
        with caplog.at_level(logging.CRITICAL, logger="edge_mgmt.executor"):
            with pytest.raises(TransportFailure):
                executor.execute(GET)

        assert "Operation timed out (28)" in caplog.text
        assert "GET https://edge.example.com/v1/o/myorg/developers/dev@example.com" in caplog.text
        assert "super-secret" not in caplog.text

    def test_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("[Errno 111] Connection refused")

        executor = make_executor(httpx.MockTransport(handler))
        with pytest.raises(TransportFailure):
            executor.execute(GET)

        assert len(calls) == 1


class TestDebugCallbacks:
    def test_fired_once_on_success(self):
        records = []
        executor = make_executor(static_transport(200, {}))
        executor.debug_callbacks.register(records.append)
        executor.execute(GET)

        assert len(records) == 1
        assert records[0] == executor.last_record
        assert records[0] is not executor.last_record

    def test_fired_once_on_api_failure(self):
        records = []
        executor = make_executor(static_transport(404, {"message": "gone"}))
        executor.debug_callbacks.register(records.append)
        with pytest.raises(ApiFailure):
            executor.execute(GET)

        assert [r.status_code for r in records] == [404]
        assert records[0].exception == "Code: 404; Message: gone"

    def test_fired_once_on_transport_failure(self):
        records = []
        executor = make_executor(timeout_transport())
        executor.debug_callbacks.register(records.append)
        with pytest.raises(TransportFailure):
            executor.execute(GET)

        assert [r.status_class for r in records] == [0]

    def test_failing_callback_does_not_change_outcome(self):
        def broken(record):
            raise ValueError("callback bug")

        executor = make_executor(static_transport(200, {"ok": True}))
        executor.debug_callbacks.register(broken)
        response = executor.execute(GET)

        assert response.data == {"ok": True}

    def test_last_record_replaced_by_each_call(self):
        responses = iter([httpx.Response(200), httpx.Response(204)])
        executor = make_executor(RecordingTransport(lambda request: next(responses)))
        executor.execute(GET)
        first = executor.last_record
        executor.execute(GET)

        assert first.status_code == 200
        assert executor.last_record.status_code == 204
