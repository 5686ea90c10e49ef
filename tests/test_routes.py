"""Tests for endpoint routing across the two account modes."""

import pytest

from testafy.client.routes import ANONYMOUS_PREFIX, Operation, route
from testafy.config import AccountMode


class TestRoute:
    """Test route() for every operation."""

    @pytest.mark.parametrize(
        "operation, expected",
        [
            (Operation.RUN, "test/run"),
            (Operation.STATUS, "test/status"),
            (Operation.PASSED, "test/stats/passed"),
            (Operation.FAILED, "test/stats/failed"),
            (Operation.PLANNED, "test/stats/planned"),
            (Operation.RESULTS, "test/results"),
            (Operation.SCREENSHOTS, "test/screenshots"),
            (Operation.SCREENSHOT, "test/screenshot"),
            (Operation.PHRASE_CHECK, "phrase_check"),
            (Operation.PING, "ping"),
        ],
    )
    def test_normal_paths(self, operation: Operation, expected: str) -> None:
        assert route(operation, AccountMode.NORMAL) == expected

    @pytest.mark.parametrize(
        "operation, expected",
        [
            (Operation.RUN, "try_it_now/run"),
            (Operation.STATUS, "try_it_now/status"),
            (Operation.PASSED, "try_it_now/stats/passed"),
            (Operation.FAILED, "try_it_now/stats/failed"),
            (Operation.PLANNED, "try_it_now/stats/planned"),
            (Operation.RESULTS, "try_it_now/results"),
            (Operation.SCREENSHOTS, "try_it_now/screenshots"),
            (Operation.SCREENSHOT, "try_it_now/screenshot"),
        ],
    )
    def test_anonymous_paths(self, operation: Operation, expected: str) -> None:
        assert route(operation, AccountMode.ANONYMOUS) == expected

    def test_mode_independent_operations(self) -> None:
        for operation in (Operation.PHRASE_CHECK, Operation.PING):
            assert route(operation, AccountMode.NORMAL) == route(operation, AccountMode.ANONYMOUS)

    def test_normal_mode_never_uses_anonymous_prefix(self) -> None:
        for operation in Operation:
            assert not route(operation, AccountMode.NORMAL).startswith(ANONYMOUS_PREFIX)
