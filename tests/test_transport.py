"""Tests for the HTTP transport: encoding, authentication and error classification."""

import httpx
import pytest

from testafy.client.transport import Transport, build_url, classify_response
from testafy.errors import (
    APIError,
    ClientRequestError,
    ConfigurationError,
    InvalidEndpointError,
    ServerError,
    TransportError,
)

from tests.conftest import BASE_URI, MockServer


class TestBuildUrl:
    """Test build_url()."""

    def test_joins_base_and_path(self) -> None:
        assert build_url(BASE_URI, "test/run") == "https://app.testafy.test/api/v0/test/run"

    def test_adds_missing_slash(self) -> None:
        assert build_url("https://host/api/v0", "ping") == "https://host/api/v0/ping"

    def test_defaults_to_https(self) -> None:
        assert build_url("host.test/api/v0/", "ping") == "https://host.test/api/v0/ping"

    @pytest.mark.parametrize("base_uri", [None, "", "   "])
    def test_missing_base_uri(self, base_uri) -> None:
        with pytest.raises(ConfigurationError):
            build_url(base_uri, "ping")

    @pytest.mark.parametrize(
        "base_uri",
        ["ftp://host/api/v0/", "https://host:notaport/api/v0/", "https:///api/v0/"],
    )
    def test_malformed_base_uri(self, base_uri: str) -> None:
        with pytest.raises(InvalidEndpointError):
            build_url(base_uri, "ping")


class TestClassifyResponse:
    """Test classify_response()."""

    def test_success(self) -> None:
        parsed = classify_response(httpx.Response(200, json={"message": "pong"}))
        assert parsed.status_code == 200
        assert parsed.message == "pong"
        assert parsed.error is None

    def test_client_error_carries_server_message(self) -> None:
        with pytest.raises(ClientRequestError) as exc_info:
            classify_response(httpx.Response(400, json={"error": "invalid script"}))
        assert exc_info.value.message == "invalid script"
        assert str(exc_info.value) == "invalid script"
        assert exc_info.value.status_code == 400

    def test_client_error_without_json(self) -> None:
        with pytest.raises(ClientRequestError) as exc_info:
            classify_response(httpx.Response(400, text="bad request"))
        assert exc_info.value.message == "bad request"

    @pytest.mark.parametrize("status", [401, 404, 500, 503])
    def test_other_failures_are_server_errors(self, status: int) -> None:
        with pytest.raises(ServerError) as exc_info:
            classify_response(httpx.Response(status, json={"error": "nope"}))
        assert exc_info.value.status_code == status
        assert exc_info.value.message == "nope"

    def test_non_object_body_is_server_error(self) -> None:
        with pytest.raises(ServerError):
            classify_response(httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(ServerError):
            classify_response(httpx.Response(200, json=["not", "an", "object"]))

    def test_all_http_failures_are_api_errors(self) -> None:
        for status in (400, 500):
            with pytest.raises(APIError):
                classify_response(httpx.Response(status, json={}))


class TestTransportExecute:
    """Test Transport.execute() against the mock server."""

    @pytest.mark.asyncio
    async def test_posts_json_form_field_with_basic_auth(
        self, server: MockServer, http_client: httpx.AsyncClient
    ) -> None:
        server.add("test/status", {"status": "running"})
        transport = Transport(BASE_URI, http_client=http_client)

        parsed = await transport.execute("test/status", {"trt_id": "abc"}, auth=("alice", "s3cret"))

        assert parsed.get("status") == "running"
        request = server.requests[0]
        assert request.method == "POST"
        assert request.form_fields == ["json"]
        assert request.params == {"trt_id": "abc"}
        assert request.basic_auth == ("alice", "s3cret")
        assert "s3cret" not in request.url
        assert "alice" not in request.url

    @pytest.mark.asyncio
    async def test_no_auth_header_without_credentials(
        self, server: MockServer, http_client: httpx.AsyncClient
    ) -> None:
        server.add("ping", {"message": "pong"})
        transport = Transport(BASE_URI, http_client=http_client)

        await transport.execute("ping", {})

        assert server.requests[0].authorization is None

    @pytest.mark.asyncio
    async def test_unset_base_uri_makes_no_request(
        self, server: MockServer, http_client: httpx.AsyncClient
    ) -> None:
        transport = Transport(None, http_client=http_client)

        with pytest.raises(ConfigurationError):
            await transport.execute("ping", {})
        assert server.requests == []

    @pytest.mark.asyncio
    async def test_connect_failure_is_transport_error(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(refuse))
        transport = Transport(BASE_URI, http_client=client)

        with pytest.raises(TransportError) as exc_info:
            await transport.execute("ping", {})
        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self) -> None:
        def stall(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(stall))
        transport = Transport(BASE_URI, http_client=client)

        with pytest.raises(TransportError):
            await transport.execute("ping", {})

    @pytest.mark.asyncio
    async def test_server_error_propagates(
        self, server: MockServer, http_client: httpx.AsyncClient
    ) -> None:
        server.add("ping", {"error": "database down"}, status=500)
        transport = Transport(BASE_URI, http_client=http_client)

        with pytest.raises(ServerError, match="database down"):
            await transport.execute("ping", {})

    @pytest.mark.asyncio
    async def test_aclose_leaves_injected_client_open(self, http_client: httpx.AsyncClient) -> None:
        transport = Transport(BASE_URI, http_client=http_client)
        await transport.aclose()
        assert not http_client.is_closed
