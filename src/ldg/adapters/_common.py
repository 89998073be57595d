# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Helpers shared by the result adapters."""

import logging
import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from pathlib import Path

from ldg.execution import ResultParseError, Status, StepOutcome

logger = logging.getLogger(__name__)

STEP_KEYWORDS = ("Given", "When", "Then", "And", "But", "*")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_SPECFLOW_STEP = re.compile(r"^(Given|When|Then|And|But|\*)\s+(.*)$")
_SPECFLOW_MARKER = re.compile(r"^->\s*(done|error|skipped|pending|No matching step definition)", re.I)

_MARKER_STATUS: dict[str, Status] = {
    "done": "passed",
    "error": "failed",
    "skipped": "skipped",
    "pending": "pending",
    "no matching step definition": "undefined",
}


def local_name(tag: str) -> str:
    """Strip an XML namespace from a tag."""
    return tag.rsplit("}", 1)[-1]


def sniff_xml_root(path: Path) -> str | None:
    """Return the local name of the root element without parsing the whole file.

    Returns:
        Root element name, or ``None`` when the file is unreadable or not XML.
    """
    try:
        with path.open("rb") as handle:
            for _event, element in ET.iterparse(handle, events=("start",)):
                return local_name(element.tag)
    except (OSError, ET.ParseError):
        return None
    return None


def load_xml(path: Path) -> ET.Element:
    """Parse an XML report.

    Raises:
        ResultParseError: If the file cannot be read or is not well-formed.
    """
    try:
        return ET.parse(path).getroot()
    except (OSError, ET.ParseError) as exc:
        raise ResultParseError(str(path), exc) from exc


def parse_seconds(value: str | None, path: Path) -> float:
    """Parse a decimal seconds attribute; missing values count as zero.

    Raises:
        ResultParseError: If the value is not a number.
    """
    if value is None or not value.strip():
        return 0.0
    try:
        return float(value.replace(",", ""))
    except ValueError as exc:
        raise ResultParseError(str(path), f"invalid duration {value!r}") from exc


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp, tolerating a trailing ``Z``."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug(f"Ignoring unparsable timestamp (value={value})")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def split_camel_case(name: str) -> str:
    """Turn a generated identifier like ``AddItemToCart`` into words."""
    return _CAMEL_BOUNDARY.sub(" ", name.replace("_", " ")).strip()


def strip_parameters(name: str) -> str:
    """Drop a trailing ``(args...)`` parameter list from a test name."""
    index = name.find("(")
    return name[:index].rstrip() if index > 0 else name


def generated_feature_name(class_name: str) -> str:
    """Derive a feature title from a generated test class name."""
    short = class_name.rsplit(".", 1)[-1]
    if short.endswith("Feature") and short != "Feature":
        short = short[: -len("Feature")]
    return split_camel_case(short)


def parse_specflow_output(output: str, fallback: Status) -> list[StepOutcome]:
    """Extract step outcomes from SpecFlow/Reqnroll console output.

    Each step line (``Given ...``) may be followed by a ``-> done:`` style
    marker; steps without a marker take ``fallback``.
    """
    outcomes: list[StepOutcome] = []
    pending: tuple[str, str] | None = None
    for raw_line in output.splitlines():
        line = raw_line.strip()
        step_match = _SPECFLOW_STEP.match(line)
        if step_match:
            if pending is not None:
                outcomes.append(
                    StepOutcome(status=fallback, keyword=pending[0], text=pending[1])
                )
            pending = (step_match.group(1), step_match.group(2))
            continue
        marker_match = _SPECFLOW_MARKER.match(line)
        if marker_match and pending is not None:
            status = _MARKER_STATUS[marker_match.group(1).lower()]
            outcomes.append(
                StepOutcome(
                    status=status,
                    keyword=pending[0],
                    text=pending[1],
                    error_message=line if status == "failed" else None,
                )
            )
            pending = None
    if pending is not None:
        outcomes.append(StepOutcome(status=fallback, keyword=pending[0], text=pending[1]))
    return outcomes
