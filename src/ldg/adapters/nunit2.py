# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""NUnit 2 XML report adapter (legacy ``test-results`` documents)."""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path

from ldg.adapters._common import (
    generated_feature_name,
    load_xml,
    local_name,
    parse_seconds,
    sniff_xml_root,
    split_camel_case,
    strip_parameters,
)
from ldg.execution import ExecutionRecord, ResultParseError, Status

logger = logging.getLogger(__name__)

_RESULT_MAP: dict[str, Status] = {
    "success": "passed",
    "failure": "failed",
    "error": "failed",
    "cancelled": "failed",
    "ignored": "skipped",
    "notrunnable": "skipped",
    "skipped": "skipped",
    "inconclusive": "pending",
}


class NUnit2Adapter:
    """Parse NUnit 2 ``test-results`` reports."""

    name = "nunit2"

    def can_parse(self, path: Path) -> bool:
        """Recognize ``.xml`` files rooted at ``test-results``."""
        if path.suffix.lower() != ".xml" or not path.is_file():
            return False
        return sniff_xml_root(path) == "test-results"

    def parse(self, path: Path) -> list[ExecutionRecord]:
        """Parse every ``TestFixture`` suite as one feature.

        Scenario and feature titles come from the ``description`` attribute
        or ``Description`` property that generated fixtures carry; otherwise
        they are derived from the generated method and class names.

        Raises:
            ResultParseError: If the XML is malformed or has an unexpected root.
        """
        root = load_xml(path)
        if local_name(root.tag) != "test-results":
            raise ResultParseError(str(path), f"unexpected root element {root.tag!r}")

        records: list[ExecutionRecord] = []
        for suite in root.iter("test-suite"):
            if suite.get("type") != "TestFixture":
                continue
            feature_name = _description(suite) or generated_feature_name(
                suite.get("name") or ""
            )
            feature_path = _properties(suite).get("FeatureFile") or None
            feature_tags = _categories(suite)
            for case in suite.findall("results/test-case"):
                records.append(
                    self._parse_case(
                        case=case,
                        path=path,
                        feature_name=feature_name,
                        feature_path=feature_path,
                        feature_tags=feature_tags,
                    )
                )
        logger.debug(f"Parsed NUnit 2 report (file_path={path} records={len(records)})")
        return records

    def _parse_case(
        self,
        case: ET.Element,
        path: Path,
        feature_name: str,
        feature_path: str | None,
        feature_tags: list[str],
    ) -> ExecutionRecord:
        method = strip_parameters(case.get("name") or "").rsplit(".", 1)[-1]
        status = _status(case)
        message = case.findtext("failure/message") or case.findtext("reason/message")
        return ExecutionRecord(
            scenario_name=_description(case) or split_camel_case(method),
            status=status,
            source_path=str(path),
            feature_path=feature_path,
            feature_name=feature_name,
            duration=parse_seconds(case.get("time"), path),
            error_message=message.strip() if message else None,
            stack_trace=(case.findtext("failure/stack-trace") or "").strip() or None,
            tags=feature_tags + [tag for tag in _categories(case) if tag not in feature_tags],
        )


def _status(case: ET.Element) -> Status:
    """Map the ``result``, ``success`` and ``executed`` attributes to a status."""
    result = (case.get("result") or "").lower()
    if result in _RESULT_MAP:
        return _RESULT_MAP[result]
    if (case.get("executed") or "").lower() == "false":
        return "not_executed"
    success = (case.get("success") or "").lower()
    if success in ("true", "false"):
        return "passed" if success == "true" else "failed"
    return "not_executed"


def _description(element: ET.Element) -> str | None:
    return element.get("description") or _properties(element).get("Description") or None


def _properties(element: ET.Element) -> dict[str, str]:
    return {
        prop.get("name", ""): prop.get("value", "")
        for prop in element.findall("properties/property")
    }


def _categories(element: ET.Element) -> list[str]:
    return [
        category.get("name", "")
        for category in element.findall("categories/category")
    ]
