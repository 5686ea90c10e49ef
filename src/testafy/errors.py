"""Exception hierarchy for the Testafy client.

Every failure an API call can produce is mapped onto one of these types
at the transport boundary, so callers only ever handle ``TestafyError``
subclasses.
"""

from typing import Optional


class TestafyError(Exception):
    """Base exception for all Testafy client errors."""

    __test__ = False


class ConfigurationError(TestafyError):
    """The client is missing configuration it needs (e.g. no base URI)."""


class InvalidEndpointError(TestafyError):
    """The configured base URI is malformed or names a bad host."""


class TransportError(TestafyError):
    """The request never produced an HTTP response (connect, read, timeout)."""

    def __init__(self, message: str, *, cause: Optional[Exception] = None) -> None:
        self.cause = cause
        super().__init__(message)


class APIError(TestafyError):
    """The service answered with a non-success status."""

    def __init__(
        self,
        status_code: int,
        message: str = "",
        *,
        response_body: str = "",
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.response_body = response_body
        super().__init__(f"HTTP {status_code}: {message}")


class ClientRequestError(APIError):
    """HTTP 400: bad script, bad credentials or an unknown test id.

    ``message`` is the server's ``error`` string, verbatim.
    """

    def __init__(self, message: str, *, response_body: str = "") -> None:
        super().__init__(400, message, response_body=response_body)

    def __str__(self) -> str:
        return self.message


class ServerError(APIError):
    """Any other non-2xx response, or a body that is not a JSON object."""


class RunTimeoutError(TestafyError, TimeoutError):
    """A run did not reach a terminal status within the allowed wait."""

    def __init__(self, test_id: str, waited: float, last_status: str) -> None:
        self.test_id = test_id
        self.waited = waited
        self.last_status = last_status
        super().__init__(
            f"Test run {test_id} did not finish within {waited:.1f}s "
            f"(status: {last_status})"
        )


class PollCancelledError(TestafyError):
    """The caller asked the poll loop to stop before the run finished."""

    def __init__(self, test_id: str, last_status: str) -> None:
        self.test_id = test_id
        self.last_status = last_status
        super().__init__(f"Polling of test run {test_id} cancelled (status: {last_status})")
