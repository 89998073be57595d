# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Universal specification model shared by adapters and correlation."""

from dataclasses import dataclass, field
from typing import Literal, Union

ScenarioKind = Literal["plain", "outline"]


@dataclass(frozen=True)
class DataTable:
    """Tabular literal attached to a step; row 0 is not treated specially."""

    rows: list[list[str]] = field(default_factory=list)


@dataclass(frozen=True)
class Step:
    """Represent one step.

    Attributes:
        keyword: Normalized keyword (``Given``, ``When``, ``Then``, ``And``,
            ``But`` or ``*``).
        text: Step text; may contain ``<placeholder>`` tokens in outlines.
        line: Source line (1-based).
        raw_keyword: Keyword as written, possibly localized.
        doc_string: Raw doc-string content.
        data_table: Attached data table.
    """

    keyword: str
    text: str
    line: int
    raw_keyword: str = ""
    doc_string: str | None = None
    data_table: DataTable | None = None


@dataclass(frozen=True)
class Background:
    name: str
    description: str
    line: int
    steps: list[Step] = field(default_factory=list)


@dataclass(frozen=True)
class Example:
    """Represent one ``Examples:`` block of an outline.

    Attributes:
        name: Block name.
        tags: Block tags.
        header: Column names.
        rows: Data rows; each has exactly ``len(header)`` cells.
        row_lines: Source line of each data row.
        line: Source line of the block keyword.
    """

    name: str
    tags: list[str]
    header: list[str]
    rows: list[list[str]]
    row_lines: list[int] = field(default_factory=list)
    line: int = 0

    def bindings(self, row_index: int) -> dict[str, str]:
        """Return the placeholder bindings of one data row."""
        return dict(zip(self.header, self.rows[row_index]))


@dataclass(frozen=True)
class Scenario:
    name: str
    description: str
    tags: list[str]
    line: int
    steps: list[Step]
    kind: ScenarioKind = "plain"
    examples: list[Example] = field(default_factory=list)

    def __post_init__(self) -> None:
        if (self.kind == "outline") != bool(self.examples):
            raise ValueError(
                f"Scenario {self.name!r} at line {self.line}: examples must be "
                "present exactly when kind is 'outline'"
            )

    @property
    def is_outline(self) -> bool:
        return self.kind == "outline"

    @property
    def row_count(self) -> int:
        """Number of concrete instances declared across all example blocks."""
        return sum(len(example.rows) for example in self.examples)


@dataclass(frozen=True)
class Rule:
    name: str
    description: str
    tags: list[str]
    line: int
    background: Background | None = None
    scenarios: list[Scenario] = field(default_factory=list)


FeatureChild = Union[Scenario, Rule]


@dataclass(frozen=True)
class Feature:
    """Represent one parsed feature file.

    Attributes:
        name: Feature title; ``""`` when absent.
        description: Free-text description.
        language: Gherkin language code of the keywords.
        file_path: Path of the source file, unique per parsed unit.
        tags: Feature tags.
        comments: Comment lines found anywhere in the file.
        background: Feature-level background.
        children: Top-level scenarios and rules in source order.
    """

    name: str
    description: str
    language: str
    file_path: str
    tags: list[str] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)
    background: Background | None = None
    children: list[FeatureChild] = field(default_factory=list)

    @property
    def scenarios(self) -> list[Scenario]:
        return [child for child in self.children if isinstance(child, Scenario)]

    @property
    def rules(self) -> list[Rule]:
        return [child for child in self.children if isinstance(child, Rule)]


def merge_tags(*groups: list[str]) -> list[str]:
    """Union tag groups, keeping first-seen order."""
    merged: list[str] = []
    for group in groups:
        for tag in group:
            if tag not in merged:
                merged.append(tag)
    return merged


def bind_placeholders(text: str, bindings: dict[str, str]) -> str:
    """Replace ``<name>`` tokens with values from an example row."""
    for name, value in bindings.items():
        text = text.replace(f"<{name}>", value)
    return text
