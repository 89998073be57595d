# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""NUnit 3 XML report adapter (SpecFlow/Reqnroll generated fixtures)."""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path

from ldg.adapters._common import (
    generated_feature_name,
    load_xml,
    local_name,
    parse_seconds,
    parse_specflow_output,
    parse_timestamp,
    sniff_xml_root,
    split_camel_case,
    strip_parameters,
)
from ldg.execution import ExecutionRecord, ResultParseError, Status

logger = logging.getLogger(__name__)

_RESULT_MAP: dict[str, Status] = {
    "passed": "passed",
    "failed": "failed",
    "skipped": "skipped",
    "inconclusive": "pending",
    "warning": "passed",
}


class NUnitAdapter:
    """Parse NUnit 3 ``test-run`` reports."""

    name = "nunit3"

    def can_parse(self, path: Path) -> bool:
        """Recognize ``.xml`` files rooted at ``test-run``."""
        if path.suffix.lower() != ".xml" or not path.is_file():
            return False
        return sniff_xml_root(path) == "test-run"

    def parse(self, path: Path) -> list[ExecutionRecord]:
        """Parse every ``TestFixture`` suite as one feature.

        Raises:
            ResultParseError: If the XML is malformed or has an unexpected root.
        """
        root = load_xml(path)
        if local_name(root.tag) != "test-run":
            raise ResultParseError(str(path), f"unexpected root element {root.tag!r}")

        records: list[ExecutionRecord] = []
        for suite in root.iter("test-suite"):
            if suite.get("type") != "TestFixture":
                continue
            properties = _properties(suite)
            feature_name = properties.get("Description") or generated_feature_name(
                suite.get("name") or ""
            )
            feature_path = properties.get("FeatureFile") or None
            feature_tags = _categories(suite)
            for case in suite.iter("test-case"):
                records.append(
                    self._parse_case(
                        case=case,
                        path=path,
                        feature_name=feature_name,
                        feature_path=feature_path,
                        feature_tags=feature_tags,
                    )
                )
        return records

    def _parse_case(
        self,
        case: ET.Element,
        path: Path,
        feature_name: str,
        feature_path: str | None,
        feature_tags: list[str],
    ) -> ExecutionRecord:
        properties = _properties(case)
        scenario_name = properties.get("Description") or split_camel_case(
            strip_parameters(case.get("methodname") or case.get("name") or "")
        )
        status = _RESULT_MAP.get((case.get("result") or "").lower(), "not_executed")
        if (case.get("label") or "").lower() == "error":
            status = "failed"

        message = case.findtext("failure/message") or case.findtext("reason/message")
        return ExecutionRecord(
            scenario_name=scenario_name,
            status=status,
            source_path=str(path),
            feature_path=feature_path,
            feature_name=feature_name,
            steps=parse_specflow_output(case.findtext("output") or "", fallback=status),
            duration=parse_seconds(case.get("duration"), path),
            error_message=message.strip() if message else None,
            stack_trace=(case.findtext("failure/stack-trace") or "").strip() or None,
            started_at=parse_timestamp(case.get("start-time")),
            tags=feature_tags + [tag for tag in _categories(case) if tag not in feature_tags],
        )


def _properties(element: ET.Element) -> dict[str, str]:
    return {
        prop.get("name", ""): prop.get("value", "")
        for prop in element.findall("properties/property")
    }


def _categories(element: ET.Element) -> list[str]:
    return [
        prop.get("value", "")
        for prop in element.findall("properties/property")
        if prop.get("name") == "Category"
    ]
