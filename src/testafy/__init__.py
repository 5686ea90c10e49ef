"""Client library for the Testafy behavioral test-execution service."""

from testafy.client import (
    Operation,
    ResultLine,
    RunStats,
    Test,
    TestRun,
    TestStatus,
    route,
)
from testafy.config import ANONYMOUS_LOGIN, AccountMode, TestConfig
from testafy.errors import (
    APIError,
    ClientRequestError,
    ConfigurationError,
    InvalidEndpointError,
    PollCancelledError,
    RunTimeoutError,
    ServerError,
    TestafyError,
    TransportError,
)

__version__ = "0.1.0"

__all__ = [
    "ANONYMOUS_LOGIN",
    "APIError",
    "AccountMode",
    "ClientRequestError",
    "ConfigurationError",
    "InvalidEndpointError",
    "Operation",
    "PollCancelledError",
    "ResultLine",
    "RunStats",
    "RunTimeoutError",
    "ServerError",
    "Test",
    "TestConfig",
    "TestRun",
    "TestStatus",
    "TestafyError",
    "TransportError",
    "route",
]
