# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Visual Studio TRX report adapter (MSTest, VSTest, NUnit 4 loggers)."""

import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path

from ldg.adapters._common import (
    generated_feature_name,
    load_xml,
    local_name,
    parse_specflow_output,
    parse_timestamp,
    sniff_xml_root,
    split_camel_case,
    strip_parameters,
)
from ldg.execution import ExecutionRecord, ResultParseError, Status

logger = logging.getLogger(__name__)

TRX_NAMESPACE = "http://microsoft.com/schemas/VisualStudio/TeamTest/2010"
NS = {"t": TRX_NAMESPACE}

_DURATION = re.compile(r"^(?:(\d+)\.)?(\d+):(\d+):(\d+(?:\.\d+)?)$")

_OUTCOME_MAP: dict[str, Status] = {
    "passed": "passed",
    "failed": "failed",
    "error": "failed",
    "timeout": "failed",
    "aborted": "failed",
    "notexecuted": "skipped",
    "inconclusive": "pending",
    "pending": "pending",
}


class TrxAdapter:
    """Parse ``.trx`` test run reports."""

    name = "trx"

    def can_parse(self, path: Path) -> bool:
        """Recognize ``.trx`` files rooted at ``TestRun``."""
        if path.suffix.lower() != ".trx" or not path.is_file():
            return False
        return sniff_xml_root(path) == "TestRun"

    def parse(self, path: Path) -> list[ExecutionRecord]:
        """Parse unit test results joined with their definitions.

        Raises:
            ResultParseError: If the XML is malformed, has an unexpected root,
                or holds an invalid duration.
        """
        root = load_xml(path)
        if root.tag != f"{{{TRX_NAMESPACE}}}TestRun":
            raise ResultParseError(str(path), f"unexpected root element {local_name(root.tag)!r}")

        definitions: dict[str, tuple[str, str]] = {}
        for unit_test in root.findall("t:TestDefinitions/t:UnitTest", NS):
            method = unit_test.find("t:TestMethod", NS)
            definitions[unit_test.get("id", "")] = (
                method.get("className", "") if method is not None else "",
                (method.get("name") if method is not None else None)
                or unit_test.get("name", ""),
            )

        return [
            self._parse_result(result, path, definitions)
            for result in root.findall("t:Results/t:UnitTestResult", NS)
        ]

    def _parse_result(
        self,
        result: ET.Element,
        path: Path,
        definitions: dict[str, tuple[str, str]],
    ) -> ExecutionRecord:
        class_name, method_name = definitions.get(
            result.get("testId", ""), ("", result.get("testName", ""))
        )
        status = _OUTCOME_MAP.get((result.get("outcome") or "").lower(), "not_executed")
        message = result.findtext("t:Output/t:ErrorInfo/t:Message", namespaces=NS)
        stack = result.findtext("t:Output/t:ErrorInfo/t:StackTrace", namespaces=NS)
        stdout = result.findtext("t:Output/t:StdOut", default="", namespaces=NS)
        return ExecutionRecord(
            scenario_name=split_camel_case(strip_parameters(method_name)),
            status=status,
            source_path=str(path),
            feature_name=generated_feature_name(class_name) or None,
            steps=parse_specflow_output(stdout, fallback=status),
            duration=_parse_duration(result.get("duration"), path),
            error_message=message.strip() if message else None,
            stack_trace=stack.strip() if stack else None,
            started_at=parse_timestamp(result.get("startTime")),
        )


def _parse_duration(value: str | None, path: Path) -> float:
    """Parse a ``[d.]hh:mm:ss[.fffffff]`` duration into seconds."""
    if not value:
        return 0.0
    match = _DURATION.match(value.strip())
    if not match:
        raise ResultParseError(str(path), f"invalid duration {value!r}")
    days, hours, minutes, seconds = match.groups()
    return (
        int(days or 0) * 86400
        + int(hours) * 3600
        + int(minutes) * 60
        + float(seconds)
    )
