"""Human-readable report sink: banners, pending lines, final per-check lines."""
from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, TextIO

OK_MARK = "✅"
FAIL_MARK = "❌"
PENDING_MARK = "⏳"
BANNER_WIDTH = 64

__all__ = ["Outcome", "CheckResult", "Reporter"]


class Outcome(Enum):
    MATCH = "match"
    MISMATCH = "mismatch"
    EXPECTED_REVERT = "expected-revert"
    UNEXPECTED_REVERT = "unexpected-revert"
    UNEXPECTED_SUCCESS = "unexpected-success"
    SKIPPED = "skipped"
    INVALID_ADDRESS = "invalid-address"

    @property
    def passed(self) -> bool:
        return self in (Outcome.MATCH, Outcome.EXPECTED_REVERT, Outcome.SKIPPED)


@dataclass(frozen=True)
class CheckResult:
    description: str
    outcome: Outcome
    detail: str

    @property
    def passed(self) -> bool:
        return self.outcome.passed

    def line(self) -> str:
        mark = OK_MARK if self.passed else FAIL_MARK
        return f"{mark} {self.description}: {self.detail}"


class Reporter:
    """
    Single writer for the report stream.

    The pending line is only drawn on a terminal and is replaced in place by
    the final line, so redirected output holds exactly one line per check.
    """

    def __init__(self, stream: Optional[TextIO] = None, live: Optional[bool] = None) -> None:
        self.stream = stream if stream is not None else sys.stdout
        if live is None:
            isatty = getattr(self.stream, "isatty", None)
            live = bool(isatty and isatty())
        self.live = live
        self.results: List[CheckResult] = []
        self._pending = False

    @property
    def failures(self) -> List[CheckResult]:
        return [r for r in self.results if not r.passed]

    @property
    def ok(self) -> bool:
        return not self.failures

    def _write(self, text: str) -> None:
        self.stream.write(text)
        self.stream.flush()

    def _clear_pending(self) -> None:
        if self._pending:
            self._write("\r\033[K")
            self._pending = False

    def print(self, text: str = "") -> None:
        self._clear_pending()
        self._write(text + "\n")

    def banner(self, title: str, fill: str = "=") -> None:
        self.print()
        self.print(f" {title} ".center(BANNER_WIDTH, fill))

    def header(self, title: str, fill: str = "=") -> None:
        self.print()
        self.print(f"{fill * 6} {title} {fill * 6}")

    def pending(self, description: str) -> None:
        if not self.live:
            return
        self._clear_pending()
        self._write(f"{PENDING_MARK} {description} ...")
        self._pending = True

    def record(self, result: CheckResult) -> CheckResult:
        self.results.append(result)
        self.print(result.line())
        return result

    def summary(self) -> str:
        failed = len(self.failures)
        total = len(self.results)
        if failed:
            return f"{FAIL_MARK} {failed} of {total} checks failed"
        return f"{OK_MARK} All {total} checks passed"
