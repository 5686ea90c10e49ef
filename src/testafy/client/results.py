"""Decoding of the ``results`` payload into TAP text."""

import re
from typing import Any, Iterable, NamedTuple, Optional

from testafy.client.models import ResultLine

_PLAN_PATTERN = re.compile(r"^\s*1\.\.(\d+)")
_OK_PATTERN = re.compile(r"^\s*ok\b")
_NOT_OK_PATTERN = re.compile(r"^\s*not ok\b")


class TapSummary(NamedTuple):
    planned: Optional[int]
    passed: int
    failed: int


def decode_results(raw: Any) -> list[ResultLine]:
    """Convert the server's ``[[index, line], ...]`` list into ``ResultLine``s.

    Server order is kept as-is. Anything that is not a list yields ``[]``.
    """
    if not isinstance(raw, list):
        return []

    lines = []
    for item in raw:
        if isinstance(item, (list, tuple)) and len(item) >= 2:
            index, line = item[0], item[1]
        elif isinstance(item, dict):
            index, line = item.get("index", len(lines)), item.get("line", "")
        else:
            continue
        try:
            index = int(index)
        except (TypeError, ValueError):
            index = len(lines)
        lines.append(ResultLine(index=index, line="" if line is None else str(line)))
    return lines


def join_results(lines: Iterable[ResultLine]) -> str:
    """Newline-join the line texts into a TAP report."""
    return "\n".join(result.line for result in lines)


def summarize_tap(report: str) -> TapSummary:
    """Count ``ok`` / ``not ok`` lines and read the ``1..N`` plan, if any.

    This is a quick tally for display, not a TAP validator.
    """
    planned = None
    passed = failed = 0
    for line in report.splitlines():
        plan = _PLAN_PATTERN.match(line)
        if plan and planned is None:
            planned = int(plan.group(1))
        elif _NOT_OK_PATTERN.match(line):
            failed += 1
        elif _OK_PATTERN.match(line):
            passed += 1
    return TapSummary(planned=planned, passed=passed, failed=failed)
