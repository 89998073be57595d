# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Cucumber JSON report adapter (cucumber-jvm, cucumber-js, SpecFlow, Reqnroll)."""

import json
import logging
from pathlib import Path
from typing import Any

from ldg.execution import (
    ExecutionRecord,
    ResultParseError,
    Status,
    StepOutcome,
    overall_status,
)

logger = logging.getLogger(__name__)

NANOSECONDS_PER_SECOND = 1_000_000_000
HOOK_KEYWORDS = {"Before", "After"}

_STATUS_MAP: dict[str, Status] = {
    "passed": "passed",
    "failed": "failed",
    "skipped": "skipped",
    "pending": "pending",
    "undefined": "undefined",
    "ambiguous": "failed",
}


class CucumberJsonAdapter:
    """Parse Cucumber-style JSON reports."""

    name = "cucumber-json"

    def can_parse(self, path: Path) -> bool:
        """Recognize ``.json`` files whose top-level value is an array."""
        if path.suffix.lower() != ".json" or not path.is_file():
            return False
        try:
            with path.open(encoding="utf-8") as handle:
                head = handle.read(4096)
        except (OSError, UnicodeDecodeError):
            return False
        return head.lstrip().startswith("[")

    def parse(self, path: Path) -> list[ExecutionRecord]:
        """Parse a Cucumber JSON report into execution records.

        Raises:
            ResultParseError: If the JSON is malformed or not a feature list.
        """
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ResultParseError(str(path), exc) from exc
        if not isinstance(payload, list):
            raise ResultParseError(str(path), "top-level value must be a list of features")

        records: list[ExecutionRecord] = []
        for feature in payload:
            if not isinstance(feature, dict):
                raise ResultParseError(str(path), "feature entries must be objects")
            records.extend(self._parse_feature(feature, path))
        return records

    def _parse_feature(self, feature: dict[str, Any], path: Path) -> list[ExecutionRecord]:
        records: list[ExecutionRecord] = []
        background_steps: list[StepOutcome] = []
        for element in _objects(feature, "elements", path):
            steps, hook_failure = self._parse_steps(element, path)
            if element.get("type") == "background":
                background_steps = steps
                continue

            all_steps = background_steps + steps
            background_steps = []
            status = overall_status([step.status for step in all_steps])
            if hook_failure is not None:
                status = "failed"
            elif not all_steps:
                status = "passed"
            first_failure = next(
                (step for step in all_steps if step.status == "failed"), None
            )
            error_message = hook_failure or (
                first_failure.error_message if first_failure else None
            )
            records.append(
                ExecutionRecord(
                    scenario_name=str(element.get("name") or ""),
                    status=status,
                    source_path=str(path),
                    feature_path=_optional_text(feature.get("uri")),
                    feature_name=_optional_text(feature.get("name")),
                    line=_optional_int(element.get("line")),
                    steps=all_steps,
                    duration=sum(step.duration for step in all_steps),
                    error_message=_first_line(error_message),
                    stack_trace=error_message,
                    tags=[str(tag.get("name", "")) for tag in _objects(element, "tags", path)],
                )
            )
        return records

    def _parse_steps(
        self, element: dict[str, Any], path: Path
    ) -> tuple[list[StepOutcome], str | None]:
        """Return visible step outcomes and the first failing hook message."""
        outcomes: list[StepOutcome] = []
        hook_failure: str | None = None
        hooks = _objects(element, "before", path) + _objects(element, "after", path)
        for step in _objects(element, "steps", path):
            keyword = str(step.get("keyword") or "").strip()
            if step.get("hidden") or keyword in HOOK_KEYWORDS:
                hooks.append(step)
                continue
            outcomes.append(self._parse_step(step, path))
        for hook in hooks:
            result = _result(hook, path)
            if result.get("status") == "failed" and hook_failure is None:
                hook_failure = _optional_str(result.get("error_message"), path) or "hook failed"
        return outcomes, hook_failure

    def _parse_step(self, step: dict[str, Any], path: Path) -> StepOutcome:
        result = _result(step, path)
        raw_status = str(result.get("status", "")).lower()
        status = _STATUS_MAP.get(raw_status, "not_executed")
        duration = result.get("duration", 0) or 0
        if not isinstance(duration, (int, float)):
            raise ResultParseError(str(path), f"invalid step duration {duration!r}")
        return StepOutcome(
            status=status,
            keyword=str(step.get("keyword") or "").strip(),
            text=str(step.get("name") or ""),
            line=_optional_int(step.get("line")),
            duration=duration / NANOSECONDS_PER_SECOND,
            error_message=_optional_str(result.get("error_message"), path),
        )


def _optional_int(value: object) -> int | None:
    return value if isinstance(value, int) and not isinstance(value, bool) else None


def _optional_text(value: object) -> str | None:
    return str(value) if value else None


def _first_line(message: str | None) -> str | None:
    if not message:
        return None
    return message.strip().splitlines()[0] if message.strip() else None


def _objects(container: dict[str, Any], key: str, path: Path) -> list[dict[str, Any]]:
    """Return ``container[key]`` as a list of objects; absent or null is empty.

    Raises:
        ResultParseError: If the value is not a list of JSON objects.
    """
    value = container.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise ResultParseError(str(path), f"'{key}' must be a list of objects")
    return value


def _result(container: dict[str, Any], path: Path) -> dict[str, Any]:
    value = container.get("result")
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ResultParseError(str(path), "'result' must be an object")
    return value


def _optional_str(value: object, path: Path) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise ResultParseError(str(path), f"invalid error message {value!r}")
