# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""JUnit XML report adapter (cucumber-jvm, Maven Surefire, pytest)."""

import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path

from ldg.adapters._common import load_xml, local_name, parse_seconds, sniff_xml_root
from ldg.execution import ExecutionRecord, ResultParseError, Status, StepOutcome

logger = logging.getLogger(__name__)

ROOT_TAGS = {"testsuites", "testsuite"}
FEATURE_FILE_PROPERTIES = ("feature.file", "featureFile")

# cucumber-jvm writes "Given I have 5 cukes.......................passed"
_OUTPUT_STEP = re.compile(
    r"^(Given|When|Then|And|But|\*)\s+(.*?)\.{2,}\s*(passed|failed|skipped|pending|undefined)\s*$"
)


class JUnitAdapter:
    """Parse JUnit-style XML reports."""

    name = "junit"

    def can_parse(self, path: Path) -> bool:
        """Recognize ``.xml`` files rooted at ``testsuites`` or ``testsuite``."""
        if path.suffix.lower() != ".xml" or not path.is_file():
            return False
        return sniff_xml_root(path) in ROOT_TAGS

    def parse(self, path: Path) -> list[ExecutionRecord]:
        """Parse a JUnit report.

        Raises:
            ResultParseError: If the XML is malformed or has an unexpected root.
        """
        root = load_xml(path)
        if local_name(root.tag) not in ROOT_TAGS:
            raise ResultParseError(str(path), f"unexpected root element {root.tag!r}")
        suites = [root] if local_name(root.tag) == "testsuite" else list(root.iter("testsuite"))

        records: list[ExecutionRecord] = []
        for suite in suites:
            properties = _properties(suite)
            feature_path = next(
                (properties[key] for key in FEATURE_FILE_PROPERTIES if properties.get(key)),
                None,
            )
            suite_feature_name = properties.get("feature.name") or suite.get("name")
            for case in suite.findall("testcase"):
                records.append(
                    self._parse_case(
                        case=case,
                        path=path,
                        feature_path=feature_path,
                        suite_feature_name=suite_feature_name,
                    )
                )
        return records

    def _parse_case(
        self,
        case: ET.Element,
        path: Path,
        feature_path: str | None,
        suite_feature_name: str | None,
    ) -> ExecutionRecord:
        status, message, detail = _case_outcome(case)
        case_file = case.get("file") or ""
        line: int | None = None
        if case_file.lower().endswith(".feature"):
            feature_path = case_file
            line = _optional_line(case.get("line"), path)

        output = case.findtext("system-out") or ""
        steps = [
            StepOutcome(status=match.group(3), keyword=match.group(1), text=match.group(2))  # type: ignore[arg-type]
            for match in (_OUTPUT_STEP.match(text.strip()) for text in output.splitlines())
            if match
        ]
        return ExecutionRecord(
            scenario_name=case.get("name") or "",
            status=status,
            source_path=str(path),
            feature_path=feature_path,
            feature_name=case.get("classname") or suite_feature_name,
            line=line,
            steps=steps,
            duration=parse_seconds(case.get("time"), path),
            error_message=message,
            stack_trace=detail,
        )


def _properties(suite: ET.Element) -> dict[str, str]:
    return {
        prop.get("name", ""): prop.get("value", "")
        for prop in suite.findall("properties/property")
    }


def _case_outcome(case: ET.Element) -> tuple[Status, str | None, str | None]:
    for tag in ("failure", "error"):
        element = case.find(tag)
        if element is not None:
            return "failed", element.get("message"), (element.text or "").strip() or None
    skipped = case.find("skipped")
    if skipped is not None:
        message = skipped.get("message") or ""
        lowered = message.lower()
        status: Status = "skipped"
        if "undefined" in lowered:
            status = "undefined"
        elif "pending" in lowered:
            status = "pending"
        return status, message or None, None
    return "passed", None, None


def _optional_line(value: str | None, path: Path) -> int | None:
    if not value:
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ResultParseError(str(path), f"invalid line attribute {value!r}") from exc
