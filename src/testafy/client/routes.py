"""Maps logical operations onto the service's two endpoint families."""

from enum import Enum

from testafy.config import AccountMode


class Operation(str, Enum):
    RUN = "run"
    STATUS = "status"
    PASSED = "passed"
    FAILED = "failed"
    PLANNED = "planned"
    RESULTS = "results"
    SCREENSHOTS = "screenshots"
    SCREENSHOT = "screenshot"
    PHRASE_CHECK = "phrase_check"
    PING = "ping"


NORMAL_PREFIX = "test/"
ANONYMOUS_PREFIX = "try_it_now/"

# Suffixes shared by both families
_RUN_SUFFIXES: dict[Operation, str] = {
    Operation.RUN: "run",
    Operation.STATUS: "status",
    Operation.PASSED: "stats/passed",
    Operation.FAILED: "stats/failed",
    Operation.PLANNED: "stats/planned",
    Operation.RESULTS: "results",
    Operation.SCREENSHOTS: "screenshots",
    Operation.SCREENSHOT: "screenshot",
}

# Operations that live outside either family
_GLOBAL_PATHS: dict[Operation, str] = {
    Operation.PHRASE_CHECK: "phrase_check",
    Operation.PING: "ping",
}


def route(operation: Operation, mode: AccountMode) -> str:
    """Return the path segment (relative to the base URI) for ``operation``."""
    if operation in _GLOBAL_PATHS:
        return _GLOBAL_PATHS[operation]
    prefix = ANONYMOUS_PREFIX if mode == AccountMode.ANONYMOUS else NORMAL_PREFIX
    return prefix + _RUN_SUFFIXES[operation]
