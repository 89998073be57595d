# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""xUnit v2 XML report adapter."""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path

from ldg.adapters._common import (
    generated_feature_name,
    load_xml,
    local_name,
    parse_seconds,
    parse_specflow_output,
    sniff_xml_root,
    split_camel_case,
    strip_parameters,
)
from ldg.execution import ExecutionRecord, ResultParseError, Status

logger = logging.getLogger(__name__)

ROOT_TAGS = {"assemblies", "assembly"}

_RESULT_MAP: dict[str, Status] = {
    "pass": "passed",
    "fail": "failed",
    "skip": "skipped",
}


class XUnitAdapter:
    """Parse xUnit v2 ``assemblies`` reports."""

    name = "xunit"

    def can_parse(self, path: Path) -> bool:
        """Recognize ``.xml`` files rooted at ``assemblies`` or ``assembly``."""
        if path.suffix.lower() != ".xml" or not path.is_file():
            return False
        return sniff_xml_root(path) in ROOT_TAGS

    def parse(self, path: Path) -> list[ExecutionRecord]:
        """Parse every ``test`` element as one scenario instance.

        Raises:
            ResultParseError: If the XML is malformed or has an unexpected root.
        """
        root = load_xml(path)
        if local_name(root.tag) not in ROOT_TAGS:
            raise ResultParseError(str(path), f"unexpected root element {root.tag!r}")
        return [self._parse_test(test, path) for test in root.iter("test")]

    def _parse_test(self, test: ET.Element, path: Path) -> ExecutionRecord:
        traits = {
            trait.get("name", ""): trait.get("value", "")
            for trait in test.findall("traits/trait")
        }
        class_name = test.get("type") or ""
        method = test.get("method") or strip_parameters(
            (test.get("name") or "").rsplit(".", 1)[-1]
        )
        status = _RESULT_MAP.get((test.get("result") or "").lower(), "not_executed")
        message = test.findtext("failure/message") or test.findtext("reason")
        return ExecutionRecord(
            scenario_name=traits.get("Description") or split_camel_case(method),
            status=status,
            source_path=str(path),
            feature_name=traits.get("FeatureTitle") or generated_feature_name(class_name),
            steps=parse_specflow_output(test.findtext("output") or "", fallback=status),
            duration=parse_seconds(test.get("time"), path),
            error_message=message.strip() if message else None,
            stack_trace=(test.findtext("failure/stack-trace") or "").strip() or None,
            tags=[
                trait.get("value", "")
                for trait in test.findall("traits/trait")
                if trait.get("name") == "Category"
            ],
        )
