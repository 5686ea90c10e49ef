"""Testafy API client: transport, endpoint routing and the Test entity."""

from testafy.client.entity import Test
from testafy.client.models import ParsedResponse, ResultLine, RunStats, TestRun, TestStatus
from testafy.client.routes import Operation, route
from testafy.client.transport import Transport

__all__ = [
    "Operation",
    "ParsedResponse",
    "ResultLine",
    "RunStats",
    "Test",
    "TestRun",
    "TestStatus",
    "Transport",
    "route",
]
