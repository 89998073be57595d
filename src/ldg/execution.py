# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Execution record contracts shared by result adapters and correlation."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Literal, Protocol

Status = Literal["passed", "failed", "skipped", "pending", "undefined", "not_executed"]

ALL_STATUSES: tuple[Status, ...] = (
    "passed",
    "failed",
    "skipped",
    "pending",
    "undefined",
    "not_executed",
)

# Severity used when a report gives only step results for a scenario.
_OUTCOME_SEVERITY: dict[Status, int] = {
    "not_executed": 0,
    "passed": 1,
    "skipped": 2,
    "pending": 3,
    "undefined": 4,
    "failed": 5,
}


class ResultParseError(RuntimeError):
    """Represent malformed content in a recognized result report."""

    def __init__(self, file_path: str, cause: Exception | str) -> None:
        """Initialize the error.

        Args:
            file_path: Result report that failed.
            cause: Underlying exception or a description of the problem.
        """
        self.file_path = file_path
        self.cause = cause
        super().__init__(f"{file_path}: {cause}")


@dataclass(frozen=True)
class ResultFailure:
    """Represent a recoverable parse failure for one result report."""

    file_path: str
    message: str


@dataclass(frozen=True)
class StepOutcome:
    """Represent one reported step result.

    Attributes:
        status: Step outcome.
        keyword: Reported keyword, if any.
        text: Reported step text, if any.
        line: Reported feature-file line, if any.
        duration: Duration in seconds.
        error_message: Failure detail.
    """

    status: Status
    keyword: str = ""
    text: str = ""
    line: int | None = None
    duration: float = 0.0
    error_message: str | None = None


@dataclass(frozen=True)
class ExecutionRecord:
    """Represent one executed scenario instance in normalized form.

    Attributes:
        scenario_name: Reported scenario (or test) name.
        status: Overall outcome.
        source_path: Result report the record was read from.
        feature_path: Feature file path, when the format supplies it.
        feature_name: Feature title or test class, when the format supplies it.
        line: Feature-file line of the scenario or example row.
        example_index: 0-based row index across all example blocks.
        steps: Per-step outcomes in execution order.
        duration: Duration in seconds.
        error_message: Failure message.
        stack_trace: Failure stack excerpt.
        started_at: Start timestamp, used to pick the latest re-run.
        tags: Reported tags or categories.
    """

    scenario_name: str
    status: Status
    source_path: str
    feature_path: str | None = None
    feature_name: str | None = None
    line: int | None = None
    example_index: int | None = None
    steps: list[StepOutcome] = field(default_factory=list)
    duration: float = 0.0
    error_message: str | None = None
    stack_trace: str | None = None
    started_at: datetime | None = None
    tags: list[str] = field(default_factory=list)


class ResultAdapter(Protocol):
    """Recognize and parse one test-execution report format."""

    name: str

    def can_parse(self, path: Path) -> bool:
        """Return whether the file looks like this adapter's format."""

    def parse(self, path: Path) -> list[ExecutionRecord]:
        """Parse a recognized report.

        Raises:
            ResultParseError: If the content does not match the format.
        """


def overall_status(statuses: list[Status]) -> Status:
    """Derive a scenario outcome from reported step outcomes."""
    if not statuses:
        return "not_executed"
    return max(statuses, key=lambda status: _OUTCOME_SEVERITY[status])
