# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Status-decorated result tree produced by correlation."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Union

from ldg.execution import ExecutionRecord, Status
from ldg.model import Example, Feature, Rule, Scenario, Step


@dataclass(frozen=True)
class StepResult:
    """Represent one step of one concrete scenario instance.

    Attributes:
        step: Model step.
        text: Step text with outline placeholders bound.
        status: Correlated step status.
        from_background: Whether the step was inherited from a background.
        duration: Reported duration in seconds.
        error_message: Reported failure detail.
    """

    step: Step
    text: str
    status: Status
    from_background: bool = False
    duration: float = 0.0
    error_message: str | None = None


@dataclass(frozen=True)
class InstanceResult:
    """Represent one concrete run: a plain scenario or one outline row.

    Attributes:
        name: Scenario name with placeholders bound.
        status: Rollup of the step statuses.
        steps: Background steps followed by scenario steps.
        tags: Effective tags (feature, rule, scenario and example tags).
        row_index: 0-based row index across all example blocks, outlines only.
        bindings: Placeholder values of the row, outlines only.
        record: The execution record correlated to this instance.
    """

    name: str
    status: Status
    steps: list[StepResult]
    tags: list[str]
    row_index: int | None = None
    bindings: dict[str, str] = field(default_factory=dict)
    record: ExecutionRecord | None = None

    @property
    def duration(self) -> float:
        return self.record.duration if self.record else 0.0

    @property
    def error_message(self) -> str | None:
        return self.record.error_message if self.record else None


@dataclass(frozen=True)
class ExampleResult:
    example: Example
    status: Status
    instances: list[InstanceResult]


@dataclass(frozen=True)
class ScenarioResult:
    """Represent a scenario with its rolled-up status.

    Attributes:
        scenario: Model scenario.
        status: Instance status for plain scenarios, example rollup for outlines.
        tags: Effective tags (feature, rule and scenario tags).
        instances: Every concrete instance, in declaration order.
        examples: Per example block results, outlines only.
    """

    scenario: Scenario
    status: Status
    tags: list[str]
    instances: list[InstanceResult]
    examples: list[ExampleResult] = field(default_factory=list)


@dataclass(frozen=True)
class RuleResult:
    rule: Rule
    status: Status
    scenarios: list[ScenarioResult]


FeatureResultChild = Union[ScenarioResult, RuleResult]


@dataclass(frozen=True)
class FeatureResult:
    feature: Feature
    status: Status
    children: list[FeatureResultChild]

    def iter_scenarios(self) -> Iterator[ScenarioResult]:
        """Yield top-level and rule scenarios in source order."""
        for child in self.children:
            if isinstance(child, RuleResult):
                yield from child.scenarios
            else:
                yield child

    def iter_instances(self) -> Iterator[InstanceResult]:
        for scenario in self.iter_scenarios():
            yield from scenario.instances

    @property
    def duration(self) -> float:
        return sum(instance.duration for instance in self.iter_instances())
