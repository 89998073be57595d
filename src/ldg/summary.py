# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Aggregation of correlated results into a documentation set."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from ldg.config import GenerationConfig
from ldg.correlation import CorrelationResult, CorrelationWarning
from ldg.documentation import FeatureResult
from ldg.execution import ExecutionRecord, ResultFailure, Status
from ldg.specification import SpecificationFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusCounts:
    """Represent how many items ended in each status."""

    passed: int = 0
    failed: int = 0
    skipped: int = 0
    pending: int = 0
    undefined: int = 0
    not_executed: int = 0

    @classmethod
    def from_statuses(cls, statuses: Iterable[Status]) -> "StatusCounts":
        counts = {
            "passed": 0,
            "failed": 0,
            "skipped": 0,
            "pending": 0,
            "undefined": 0,
            "not_executed": 0,
        }
        for status in statuses:
            counts[status] += 1
        return cls(**counts)

    @property
    def total(self) -> int:
        return (
            self.passed
            + self.failed
            + self.skipped
            + self.pending
            + self.undefined
            + self.not_executed
        )

    @property
    def executed(self) -> int:
        """Items that produced any result."""
        return self.total - self.not_executed

    @property
    def pass_rate(self) -> float:
        """Share of executed items that passed, in percent."""
        if self.executed == 0:
            return 0.0
        return round(100.0 * self.passed / self.executed, 2)

    @property
    def coverage(self) -> float:
        """Share of all items that were executed, in percent."""
        if self.total == 0:
            return 0.0
        return round(100.0 * self.executed / self.total, 2)


@dataclass(frozen=True)
class FeatureSummary:
    file_path: str
    name: str
    status: Status
    scenarios: StatusCounts
    steps: StatusCounts
    duration: float = 0.0


@dataclass(frozen=True)
class RunSummary:
    """Represent run-wide statistics.

    Attributes:
        features: Feature status counts.
        scenarios: Scenario instance status counts.
        steps: Step status counts.
        by_feature: Per-feature counts in feature order.
        by_tag: Scenario instance counts per effective tag, sorted by tag.
        record_count: Number of execution records that were correlated.
        duration: Total reported duration in seconds.
    """

    features: StatusCounts
    scenarios: StatusCounts
    steps: StatusCounts
    by_feature: list[FeatureSummary] = field(default_factory=list)
    by_tag: dict[str, StatusCounts] = field(default_factory=dict)
    record_count: int = 0
    duration: float = 0.0


@dataclass(frozen=True)
class DocumentationSet:
    """Represent everything a renderer needs to publish living documentation.

    Attributes:
        title: Documentation title.
        generated_at: Generation timestamp supplied by the caller.
        features: Status-decorated features.
        summary: Run-wide statistics.
        warnings: Correlation warnings.
        orphaned_records: Records that exceeded an outline's example rows.
        unmatched_records: Records that matched no scenario or several.
        parse_failures: Feature files that failed to parse.
        result_failures: Result reports that failed to parse.
        unrecognized_results: Result files no adapter recognized.
    """

    title: str
    generated_at: datetime
    features: list[FeatureResult]
    summary: RunSummary
    warnings: list[CorrelationWarning] = field(default_factory=list)
    orphaned_records: list[ExecutionRecord] = field(default_factory=list)
    unmatched_records: list[ExecutionRecord] = field(default_factory=list)
    parse_failures: list[SpecificationFailure] = field(default_factory=list)
    result_failures: list[ResultFailure] = field(default_factory=list)
    unrecognized_results: list[str] = field(default_factory=list)


def summarize_feature(feature: FeatureResult) -> FeatureSummary:
    instances = list(feature.iter_instances())
    return FeatureSummary(
        file_path=feature.feature.file_path,
        name=feature.feature.name,
        status=feature.status,
        scenarios=StatusCounts.from_statuses(i.status for i in instances),
        steps=StatusCounts.from_statuses(
            step.status for instance in instances for step in instance.steps
        ),
        duration=feature.duration,
    )


def summarize(features: list[FeatureResult], record_count: int = 0) -> RunSummary:
    """Count features, scenario instances and steps by status.

    Args:
        features: Correlated features.
        record_count: Number of records supplied to correlation.

    Returns:
        Run-wide, per-feature and per-tag statistics.
    """
    by_feature = [summarize_feature(feature) for feature in features]
    tag_statuses: dict[str, list[Status]] = {}
    for feature in features:
        for instance in feature.iter_instances():
            for tag in instance.tags:
                tag_statuses.setdefault(tag, []).append(instance.status)

    return RunSummary(
        features=StatusCounts.from_statuses(feature.status for feature in features),
        scenarios=_add(summary.scenarios for summary in by_feature),
        steps=_add(summary.steps for summary in by_feature),
        by_feature=by_feature,
        by_tag={
            tag: StatusCounts.from_statuses(statuses)
            for tag, statuses in sorted(tag_statuses.items())
        },
        record_count=record_count,
        duration=sum(summary.duration for summary in by_feature),
    )


def build_documentation(
    correlation: CorrelationResult,
    config: GenerationConfig,
    generated_at: datetime,
    parse_failures: list[SpecificationFailure] | None = None,
    result_failures: list[ResultFailure] | None = None,
    unrecognized_results: list[str] | None = None,
) -> DocumentationSet:
    """Assemble the documentation set from a correlation result.

    The function is pure: the timestamp is supplied by the caller.

    Args:
        correlation: Output of the correlation engine.
        config: Generation settings; provides the title.
        generated_at: Timestamp recorded in the documentation set.
        parse_failures: Feature files that failed to parse.
        result_failures: Result reports that failed to parse.
        unrecognized_results: Result files no adapter recognized.

    Returns:
        The assembled documentation set.
    """
    summary = summarize(correlation.features, correlation.record_count)
    logger.info(
        f"Documentation assembled (features={summary.features.total} "
        f"scenarios={summary.scenarios.total} steps={summary.steps.total} "
        f"pass_rate={summary.scenarios.pass_rate} warnings={len(correlation.warnings)})"
    )
    return DocumentationSet(
        title=config.title,
        generated_at=generated_at,
        features=list(correlation.features),
        summary=summary,
        warnings=list(correlation.warnings),
        orphaned_records=list(correlation.orphaned_records),
        unmatched_records=list(correlation.unmatched_records),
        parse_failures=list(parse_failures or []),
        result_failures=list(result_failures or []),
        unrecognized_results=list(unrecognized_results or []),
    )


def _add(counts: Iterable[StatusCounts]) -> StatusCounts:
    total = StatusCounts()
    for item in counts:
        total = StatusCounts(
            passed=total.passed + item.passed,
            failed=total.failed + item.failed,
            skipped=total.skipped + item.skipped,
            pending=total.pending + item.pending,
            undefined=total.undefined + item.undefined,
            not_executed=total.not_executed + item.not_executed,
        )
    return total
