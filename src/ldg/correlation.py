# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Status correlation between specification scenarios and execution records."""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal

import Levenshtein

from ldg.documentation import (
    ExampleResult,
    FeatureResult,
    FeatureResultChild,
    InstanceResult,
    RuleResult,
    ScenarioResult,
    StepResult,
)
from ldg.execution import ExecutionRecord, Status, StepOutcome
from ldg.model import Feature, Rule, Scenario, Step, bind_placeholders, merge_tags

logger = logging.getLogger(__name__)

WarningKind = Literal[
    "ambiguous_match",
    "unmatched_record",
    "orphaned_record",
    "missing_result",
    "no_result",
]

SUGGESTION_THRESHOLD = 0.8

# Rollup precedence, highest wins.
_ROLLUP_RANK: dict[Status, int] = {
    "not_executed": 0,
    "passed": 1,
    "skipped": 2,
    "pending": 3,
    "undefined": 4,
    "failed": 5,
}

_ORDINAL_SUFFIX = re.compile(r"\s+#\d+(?:\.\d+)*\s*$")
_URI_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]+:(?://)?")


@dataclass(frozen=True)
class CorrelationWarning:
    """Represent a non-fatal correlation problem surfaced in the output.

    Attributes:
        kind: Problem category.
        message: Human-readable description.
        scenario_name: Scenario or reported test name involved.
        feature_path: Feature file involved, when known.
        source_path: Result report involved, when known.
    """

    kind: WarningKind
    message: str
    scenario_name: str | None = None
    feature_path: str | None = None
    source_path: str | None = None


@dataclass(frozen=True)
class CorrelationResult:
    """Represent the decorated features and everything that did not fit.

    Attributes:
        features: Status-decorated features in input order.
        warnings: Correlation warnings in detection order.
        orphaned_records: Records matched to an outline but to no example row.
        unmatched_records: Records matched to no scenario or to several.
        record_count: Number of records supplied.
    """

    features: list[FeatureResult]
    warnings: list[CorrelationWarning] = field(default_factory=list)
    orphaned_records: list[ExecutionRecord] = field(default_factory=list)
    unmatched_records: list[ExecutionRecord] = field(default_factory=list)
    record_count: int = 0


def rollup(
    statuses: Iterable[Status], include_skipped: bool, include_pending: bool
) -> Status:
    """Reduce child statuses to a container status.

    Precedence is failed > undefined > pending > skipped > passed >
    not_executed. Skipped children only count when ``include_skipped`` and
    pending/undefined children only when ``include_pending``; ignored children
    behave as if absent. The reduction is order-independent and idempotent.

    Args:
        statuses: Child statuses.
        include_skipped: Whether skipped children affect the result.
        include_pending: Whether pending and undefined children affect the result.

    Returns:
        The highest counted status, or ``not_executed`` when none counts.
    """
    result: Status = "not_executed"
    for status in statuses:
        if status == "skipped" and not include_skipped:
            continue
        if status in ("pending", "undefined") and not include_pending:
            continue
        if _ROLLUP_RANK[status] > _ROLLUP_RANK[result]:
            result = status
    return result


def normalize_name(name: str) -> str:
    """Normalize a scenario or feature name for comparison.

    Drops a trailing ``#n`` ordinal, case and every non-alphanumeric
    character. Parenthesized text is kept, so ``Login (admin)`` and
    ``Login (guest)`` stay distinct.
    """
    name = _ORDINAL_SUFFIX.sub("", name)
    return "".join(char for char in name.casefold() if char.isalnum())


def normalize_path(path: str) -> str:
    path = _URI_SCHEME.sub("", path.strip().replace("\\", "/"))
    while path.startswith("./"):
        path = path[2:]
    return path.casefold()


def paths_match(reported: str, declared: str) -> bool:
    """Match equal paths or paths where one is a directory-suffix of the other."""
    left = normalize_path(reported)
    right = normalize_path(declared)
    if not left or not right:
        return False
    return left == right or left.endswith("/" + right) or right.endswith("/" + left)


@dataclass(frozen=True)
class _Target:
    key: int
    feature_index: int
    scenario: Scenario
    rule: Rule | None


class _ScenarioIndex:
    """Lookup tables over every scenario of every feature."""

    def __init__(self, features: list[Feature]) -> None:
        self.targets: list[_Target] = []
        self.by_name: dict[str, list[tuple[int, int | None]]] = {}
        self.by_line: dict[tuple[int, int], tuple[int, int | None]] = {}
        self.key_of: dict[int, int] = {}
        for feature_index, feature in enumerate(features):
            for child in feature.children:
                if isinstance(child, Rule):
                    for scenario in child.scenarios:
                        self._add(feature_index, scenario, child)
                else:
                    self._add(feature_index, child, None)

    def _add(self, feature_index: int, scenario: Scenario, rule: Rule | None) -> None:
        key = len(self.targets)
        self.targets.append(
            _Target(key=key, feature_index=feature_index, scenario=scenario, rule=rule)
        )
        self.key_of[id(scenario)] = key
        template = normalize_name(scenario.name)
        self.by_name.setdefault(template, []).append((key, None))
        self.by_line[(feature_index, scenario.line)] = (key, None)

        row_index = 0
        for example in scenario.examples:
            for offset in range(len(example.rows)):
                bound = normalize_name(
                    bind_placeholders(scenario.name, example.bindings(offset))
                )
                if bound != template:
                    self.by_name.setdefault(bound, []).append((key, row_index))
                if offset < len(example.row_lines):
                    self.by_line[(feature_index, example.row_lines[offset])] = (
                        key,
                        row_index,
                    )
                row_index += 1


class CorrelationEngine:
    """Match execution records to scenario instances and derive statuses."""

    def __init__(
        self,
        include_skipped: bool = True,
        include_pending: bool = True,
        verbose: bool = False,
    ) -> None:
        """Initialize the engine.

        Args:
            include_skipped: Whether skipped children affect rollups.
            include_pending: Whether pending and undefined children affect rollups.
            verbose: Whether to warn about every scenario without a result.
        """
        self._include_skipped = include_skipped
        self._include_pending = include_pending
        self._verbose = verbose

    def rollup(self, statuses: Iterable[Status]) -> Status:
        return rollup(
            statuses,
            include_skipped=self._include_skipped,
            include_pending=self._include_pending,
        )

    def correlate(
        self, features: list[Feature], records: list[ExecutionRecord]
    ) -> CorrelationResult:
        """Correlate records with features.

        Args:
            features: Parsed features; the index of each is its identity.
            records: Normalized execution records from every report.

        Returns:
            Decorated features, warnings, orphaned and unmatched records.
        """
        index = _ScenarioIndex(features)
        warnings: list[CorrelationWarning] = []
        orphaned: list[ExecutionRecord] = []
        unmatched: list[ExecutionRecord] = []
        assignments: dict[int, list[tuple[ExecutionRecord, int | None]]] = {}

        for record in records:
            resolved = self._resolve(record, features, index)
            if isinstance(resolved, CorrelationWarning):
                warnings.append(resolved)
                unmatched.append(record)
                logger.debug(f"Record not correlated (kind={resolved.kind} name={record.scenario_name})")
                continue
            target, row = resolved
            assignments.setdefault(target.key, []).append((record, row))

        results: list[FeatureResult] = []
        for feature in features:
            children: list[FeatureResultChild] = []
            for child in feature.children:
                if isinstance(child, Rule):
                    scenarios = [
                        self._build_scenario(
                            feature, child, scenario, index, assignments,
                            warnings, orphaned, bool(records),
                        )
                        for scenario in child.scenarios
                    ]
                    children.append(
                        RuleResult(
                            rule=child,
                            status=self.rollup(s.status for s in scenarios),
                            scenarios=scenarios,
                        )
                    )
                else:
                    children.append(
                        self._build_scenario(
                            feature, None, child, index, assignments,
                            warnings, orphaned, bool(records),
                        )
                    )
            results.append(
                FeatureResult(
                    feature=feature,
                    status=self.rollup(child.status for child in children),
                    children=children,
                )
            )

        logger.info(
            f"Correlation completed (features={len(features)} scenarios={len(index.targets)} "
            f"records={len(records)} warnings={len(warnings)} orphaned={len(orphaned)} "
            f"unmatched={len(unmatched)})"
        )
        return CorrelationResult(
            features=results,
            warnings=warnings,
            orphaned_records=orphaned,
            unmatched_records=unmatched,
            record_count=len(records),
        )

    def _resolve(
        self, record: ExecutionRecord, features: list[Feature], index: _ScenarioIndex
    ) -> tuple[_Target, int | None] | CorrelationWarning:
        """Find the single scenario (and row) a record verifies."""
        if record.feature_path:
            scope = [
                feature_index
                for feature_index, feature in enumerate(features)
                if paths_match(record.feature_path, feature.file_path)
            ]
            if not scope:
                return CorrelationWarning(
                    kind="unmatched_record",
                    message=(
                        f"No feature file matches reported path {record.feature_path!r} "
                        f"for scenario {record.scenario_name!r}"
                    ),
                    scenario_name=record.scenario_name,
                    feature_path=record.feature_path,
                    source_path=record.source_path,
                )
            if record.line is not None:
                hits = {
                    index.by_line[(feature_index, record.line)]
                    for feature_index in scope
                    if (feature_index, record.line) in index.by_line
                }
                if len(hits) == 1:
                    key, row = hits.pop()
                    return index.targets[key], _explicit_row(record, row)
        else:
            scope = list(range(len(features)))
            if record.feature_name:
                wanted = normalize_name(record.feature_name)
                narrowed = [i for i in scope if normalize_name(features[i].name) == wanted]
                if narrowed:
                    scope = narrowed

        in_scope = set(scope)
        candidates = [
            (key, row)
            for key, row in index.by_name.get(normalize_name(record.scenario_name), [])
            if index.targets[key].feature_index in in_scope
        ]
        keys = sorted({key for key, _row in candidates})
        if not keys:
            return CorrelationWarning(
                kind="unmatched_record",
                message=self._unmatched_message(record, index),
                scenario_name=record.scenario_name,
                feature_path=record.feature_path,
                source_path=record.source_path,
            )
        if len(keys) > 1:
            locations = ", ".join(
                f"{features[index.targets[key].feature_index].file_path}:"
                f"{index.targets[key].scenario.line}"
                for key in keys
            )
            return CorrelationWarning(
                kind="ambiguous_match",
                message=(
                    f"Result {record.scenario_name!r} matches {len(keys)} scenarios "
                    f"({locations}); none was marked"
                ),
                scenario_name=record.scenario_name,
                feature_path=record.feature_path,
                source_path=record.source_path,
            )
        rows = {row for _key, row in candidates if row is not None}
        return index.targets[keys[0]], _explicit_row(
            record, rows.pop() if len(rows) == 1 else None
        )

    def _unmatched_message(self, record: ExecutionRecord, index: _ScenarioIndex) -> str:
        message = f"No scenario matches result {record.scenario_name!r}"
        wanted = normalize_name(record.scenario_name)
        best_name: str | None = None
        best_ratio = 0.0
        for target in index.targets:
            ratio = Levenshtein.ratio(wanted, normalize_name(target.scenario.name))
            if ratio > best_ratio:
                best_name, best_ratio = target.scenario.name, ratio
        if best_name is not None and best_ratio >= SUGGESTION_THRESHOLD:
            message += f"; closest scenario is {best_name!r} (ratio={best_ratio:.2f})"
        return message

    def _build_scenario(
        self,
        feature: Feature,
        rule: Rule | None,
        scenario: Scenario,
        index: _ScenarioIndex,
        assignments: dict[int, list[tuple[ExecutionRecord, int | None]]],
        warnings: list[CorrelationWarning],
        orphaned: list[ExecutionRecord],
        have_records: bool,
    ) -> ScenarioResult:
        entries = assignments.get(index.key_of[id(scenario)], [])
        tags = merge_tags(feature.tags, rule.tags if rule else [], scenario.tags)
        background: list[Step] = []
        if feature.background:
            background.extend(feature.background.steps)
        if rule and rule.background:
            background.extend(rule.background.steps)

        if self._verbose and have_records and not entries:
            warnings.append(
                CorrelationWarning(
                    kind="no_result",
                    message=f"No result for scenario {scenario.name!r}",
                    scenario_name=scenario.name,
                    feature_path=feature.file_path,
                )
            )

        if not scenario.is_outline:
            instance = self._build_instance(
                name=scenario.name,
                background=background,
                steps=scenario.steps,
                record=_latest(record for record, _row in entries),
                tags=tags,
            )
            return ScenarioResult(
                scenario=scenario,
                status=self.rollup([instance.status]),
                tags=tags,
                instances=[instance],
            )

        slots = self._pair_rows(feature, scenario, entries, warnings, orphaned)
        examples: list[ExampleResult] = []
        instances: list[InstanceResult] = []
        row_index = 0
        for example in scenario.examples:
            example_instances: list[InstanceResult] = []
            for offset in range(len(example.rows)):
                bindings = example.bindings(offset)
                example_instances.append(
                    self._build_instance(
                        name=bind_placeholders(scenario.name, bindings),
                        background=background,
                        steps=scenario.steps,
                        record=slots.get(row_index),
                        tags=merge_tags(tags, example.tags),
                        bindings=bindings,
                        row_index=row_index,
                    )
                )
                row_index += 1
            examples.append(
                ExampleResult(
                    example=example,
                    status=self.rollup(i.status for i in example_instances),
                    instances=example_instances,
                )
            )
            instances.extend(example_instances)
        return ScenarioResult(
            scenario=scenario,
            status=self.rollup(example.status for example in examples),
            tags=tags,
            instances=instances,
            examples=examples,
        )

    def _pair_rows(
        self,
        feature: Feature,
        scenario: Scenario,
        entries: list[tuple[ExecutionRecord, int | None]],
        warnings: list[CorrelationWarning],
        orphaned: list[ExecutionRecord],
    ) -> dict[int, ExecutionRecord]:
        """Assign records to example rows: explicit rows first, then in order."""
        total = scenario.row_count
        slots: dict[int, ExecutionRecord] = {}
        positional: list[ExecutionRecord] = []
        for record, row in entries:
            if row is None:
                positional.append(record)
            elif 0 <= row < total:
                slots[row] = _latest([slots[row], record]) if row in slots else record
            else:
                orphaned.append(record)
                warnings.append(
                    CorrelationWarning(
                        kind="orphaned_record",
                        message=(
                            f"Result for {scenario.name!r} names example row {row} "
                            f"but the outline has {total} rows"
                        ),
                        scenario_name=scenario.name,
                        feature_path=feature.file_path,
                        source_path=record.source_path,
                    )
                )
        if not positional:
            return slots

        free_rows = [row for row in range(total) if row not in slots]
        for row, record in zip(free_rows, positional):
            slots[row] = record
        excess = positional[len(free_rows):]
        missing = free_rows[len(positional):]
        if excess:
            orphaned.extend(excess)
            warnings.append(
                CorrelationWarning(
                    kind="orphaned_record",
                    message=(
                        f"{len(excess)} result(s) for outline {scenario.name!r} exceed "
                        f"its {total} example rows and were excluded"
                    ),
                    scenario_name=scenario.name,
                    feature_path=feature.file_path,
                    source_path=excess[0].source_path,
                )
            )
        if missing:
            warnings.append(
                CorrelationWarning(
                    kind="missing_result",
                    message=(
                        f"Outline {scenario.name!r} has {total} example rows but only "
                        f"{total - len(missing)} results; rows "
                        f"{', '.join(str(row) for row in missing)} were not executed"
                    ),
                    scenario_name=scenario.name,
                    feature_path=feature.file_path,
                )
            )
        return slots

    def _build_instance(
        self,
        name: str,
        background: list[Step],
        steps: list[Step],
        record: ExecutionRecord | None,
        tags: list[str],
        bindings: dict[str, str] | None = None,
        row_index: int | None = None,
    ) -> InstanceResult:
        bindings = bindings or {}
        aligned = _step_outcomes(len(background), len(steps), record)
        step_results = [
            StepResult(
                step=step,
                text=bind_placeholders(step.text, bindings),
                status=status,
                from_background=position < len(background),
                duration=outcome.duration if outcome else 0.0,
                error_message=outcome.error_message if outcome else None,
            )
            for position, (step, (status, outcome)) in enumerate(
                zip(background + steps, aligned)
            )
        ]
        # Hook failures live only on the record status.
        statuses: list[Status] = [step.status for step in step_results]
        if record is not None:
            statuses.append(record.status)
        status = self.rollup(statuses)
        return InstanceResult(
            name=name,
            status=status,
            steps=step_results,
            tags=tags,
            row_index=row_index,
            bindings=bindings,
            record=record,
        )


def _explicit_row(record: ExecutionRecord, derived: int | None) -> int | None:
    return record.example_index if record.example_index is not None else derived


def _latest(records: Iterable[ExecutionRecord]) -> ExecutionRecord | None:
    """Pick the most recently started record; the first wins without timestamps."""
    chosen: ExecutionRecord | None = None
    for record in records:
        if chosen is None:
            chosen = record
        elif record.started_at is not None and (
            chosen.started_at is None or record.started_at > chosen.started_at
        ):
            chosen = record
    return chosen


Aligned = list[tuple[Status, StepOutcome | None]]


def _step_outcomes(
    background_count: int, own_count: int, record: ExecutionRecord | None
) -> Aligned:
    """Derive one status per step, background steps first."""
    total = background_count + own_count
    if record is None:
        return [("not_executed", None)] * total
    outcomes = record.steps
    if not outcomes:
        return [(status, None) for status in _inherit(record.status, total)]
    if background_count and len(outcomes) == own_count:
        own = _align(outcomes, own_count)
        if own and own[0][0] != "skipped":
            background: Aligned = [("passed", None)] * background_count
        else:
            background = [(s, None) for s in _inherit(record.status, background_count)]
        return background + own
    if len(outcomes) > total:
        logger.debug(
            f"Ignoring surplus step outcomes (scenario={record.scenario_name} "
            f"reported={len(outcomes)} declared={total})"
        )
    return _align(outcomes, total)


def _align(outcomes: list[StepOutcome], count: int) -> Aligned:
    """Pair outcomes with steps by position."""
    aligned: Aligned = []
    blocked = False
    for position in range(count):
        if position < len(outcomes):
            outcome = outcomes[position]
            aligned.append((outcome.status, outcome))
            if outcome.status != "passed":
                blocked = True
        else:
            aligned.append(("skipped" if blocked else "not_executed", None))
    return aligned


def _inherit(status: Status, count: int) -> list[Status]:
    """Spread a scenario-level outcome over steps, skipping after the first."""
    if status in ("passed", "not_executed"):
        return [status] * count
    return [status] + ["skipped"] * (count - 1) if count else []
