"""Value types exchanged between the transport, the router and the test entity."""

from enum import Enum
from typing import Any, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field


class TestStatus(str, Enum):
    """Server-reported state of a run."""

    __test__ = False

    UNSCHEDULED = "unscheduled"
    QUEUED = "queued"
    RUNNING = "running"
    STOPPED = "stopped"
    COMPLETED = "completed"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: Any) -> "TestStatus":
        """Map a raw ``status`` field onto the enum; anything odd is UNKNOWN."""
        if not isinstance(raw, str):
            return cls.UNKNOWN
        try:
            status = cls(raw.strip().lower())
        except ValueError:
            return cls.UNKNOWN
        return status

    @property
    def is_terminal(self) -> bool:
        # A run the server reports as unscheduled counts as finished.
        return self in (TestStatus.UNSCHEDULED, TestStatus.STOPPED, TestStatus.COMPLETED)


class ParsedResponse(BaseModel):
    """A decoded response body plus the diagnostics every response may carry."""

    model_config = ConfigDict(frozen=True)

    status_code: int
    body: dict[str, Any] = Field(default_factory=dict)

    @property
    def message(self) -> Optional[str]:
        value = self.body.get("message")
        return None if value is None else str(value)

    @property
    def error(self) -> Optional[str]:
        value = self.body.get("error")
        return None if value is None else str(value)

    def get(self, key: str, default: Any = None) -> Any:
        return self.body.get(key, default)


class TestRun(BaseModel):
    """State of the most recent run of a test.

    Never mutated: every lifecycle operation produces a new value.
    """

    __test__ = False

    model_config = ConfigDict(frozen=True)

    test_id: Optional[str] = None
    status: TestStatus = TestStatus.UNSCHEDULED
    last_message: Optional[str] = None
    last_error: Optional[str] = None

    @property
    def is_submitted(self) -> bool:
        return self.test_id is not None

    def observe(
        self,
        response: ParsedResponse,
        status: Optional[TestStatus] = None,
    ) -> "TestRun":
        """Return a copy carrying the diagnostics of ``response``."""
        update: dict[str, Any] = {}
        if response.message is not None:
            update["last_message"] = response.message
        if response.error is not None:
            update["last_error"] = response.error
        if status is not None:
            update["status"] = status
        return self.model_copy(update=update) if update else self

    def with_error(self, error: str) -> "TestRun":
        return self.model_copy(update={"last_error": error})


class ResultLine(NamedTuple):
    """One ``(index, line)`` pair of a TAP result set."""

    index: int
    line: str


class RunStats(NamedTuple):
    passed: int
    failed: int
    planned: int
