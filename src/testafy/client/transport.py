"""HTTP transport for the Testafy API.

Each API call is one POST whose body is a form with a single ``json``
field holding the JSON-encoded parameters. Credentials go in a Basic
auth header, never in the URL. Responses are decoded as JSON whatever
their status, then classified into a ``ParsedResponse`` or one of the
errors in :mod:`testafy.errors`.
"""

import json
from typing import Any, Optional

import httpx
import structlog

from testafy.client.models import ParsedResponse
from testafy.errors import (
    ClientRequestError,
    ConfigurationError,
    InvalidEndpointError,
    ServerError,
    TransportError,
)

logger = structlog.get_logger(__name__)

_ALLOWED_SCHEMES = ("http", "https")


def build_url(base_uri: Optional[str], path: str) -> str:
    """Join the base URI and an endpoint path into a validated absolute URL."""
    if not base_uri or not base_uri.strip():
        raise ConfigurationError("There's no base URI! Set base_uri before calling the API.")

    base = base_uri.strip()
    if "://" not in base:
        base = "https://" + base
    url = base.rstrip("/") + "/" + path.lstrip("/")

    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise InvalidEndpointError(f"Check base_uri, possibly bad hostname: {exc}") from exc

    if parsed.scheme not in _ALLOWED_SCHEMES:
        raise InvalidEndpointError(f"Unsupported URL scheme {parsed.scheme!r} in base_uri")
    if not parsed.host:
        raise InvalidEndpointError(f"Check base_uri, no hostname in {base_uri!r}")
    return url


def _decode_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


def classify_response(resp: httpx.Response) -> ParsedResponse:
    """Turn an HTTP response into a ``ParsedResponse`` or raise the matching error."""
    body = _decode_body(resp)
    text = resp.text

    if resp.status_code == 400:
        message = text[:200] if text else "HTTP 400"
        if isinstance(body, dict):
            message = str(body.get("error") or body.get("message") or message)
        raise ClientRequestError(message, response_body=text)

    if not resp.is_success:
        message = text[:200] if text else f"HTTP {resp.status_code}"
        if isinstance(body, dict):
            message = str(body.get("error") or body.get("message") or message)
        raise ServerError(resp.status_code, message, response_body=text)

    if not isinstance(body, dict):
        raise ServerError(
            resp.status_code,
            "Response body is not a JSON object",
            response_body=text,
        )

    return ParsedResponse(status_code=resp.status_code, body=body)


class Transport:
    """Sends API calls to one service root.

    Args:
        base_uri: Service root, e.g. ``https://app.testafy.com/api/v0/``.
        timeout: Per-request timeout in seconds.
        http_client: Optional pre-built client (tests inject one backed by
            ``httpx.MockTransport``). An injected client is not closed by
            :meth:`aclose`.
    """

    def __init__(
        self,
        base_uri: Optional[str],
        *,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_uri = base_uri
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={"Accept": "application/json"},
            )
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def execute(
        self,
        path: str,
        params: dict[str, Any],
        *,
        auth: Optional[tuple[str, str]] = None,
    ) -> ParsedResponse:
        """POST ``params`` to ``path`` and return the classified response."""
        url = build_url(self.base_uri, path)
        form = {"json": json.dumps(params)}

        await logger.adebug("testafy_request", path=path, fields=sorted(params))
        try:
            resp = await self._get_client().post(url, data=form, auth=auth)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            raise InvalidEndpointError(f"Check base_uri, possibly bad hostname: {exc}") from exc
        except httpx.TimeoutException as exc:
            await logger.awarning("testafy_request_failed", path=path, error="timeout")
            raise TransportError(f"Timeout calling {path}", cause=exc) from exc
        except httpx.RequestError as exc:
            await logger.awarning("testafy_request_failed", path=path, error=str(exc))
            raise TransportError(f"Cannot reach Testafy at {path}: {exc}", cause=exc) from exc

        await logger.adebug("testafy_response", path=path, status_code=resp.status_code)
        return classify_response(resp)
