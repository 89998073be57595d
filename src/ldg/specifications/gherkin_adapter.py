# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Gherkin specification adapter built on the official Cucumber parser."""

import concurrent.futures
import logging
from pathlib import Path
from typing import Any

from gherkin.dialect import Dialect
from gherkin.errors import ParserError
from gherkin.parser import Parser

from ldg.model import (
    Background,
    DataTable,
    Example,
    Feature,
    FeatureChild,
    Rule,
    Scenario,
    Step,
)
from ldg.specification import (
    FEATURE_EXTENSION,
    SpecificationFailure,
    SpecificationParseError,
)

logger = logging.getLogger(__name__)

ENGLISH_KEYWORDS = {"Given", "When", "Then", "And", "But", "*"}
KEYWORD_BY_TYPE: dict[str, str] = {
    "Context": "Given",
    "Action": "When",
    "Outcome": "Then",
    "Conjunction": "And",
    "Unknown": "*",
}

Node = dict[str, Any]


class GherkinAdapter:
    """Convert Gherkin feature files into universal features."""

    def __init__(self, max_workers: int = 4) -> None:
        """Initialize the adapter.

        Args:
            max_workers: Maximum number of worker threads for directory parsing.

        Raises:
            ValueError: If ``max_workers`` is not greater than zero.
        """
        if max_workers <= 0:
            raise ValueError("max_workers must be > 0")
        self._max_workers = max_workers

    def discover(self, root_path: Path) -> list[Path]:
        """Return specification files beneath a root, sorted by path.

        Raises:
            FileNotFoundError: If ``root_path`` is not a directory.
        """
        if not root_path.is_dir():
            raise FileNotFoundError(f"Specification directory does not exist: {root_path}")
        return sorted(
            path
            for path in root_path.rglob("*")
            if path.is_file() and path.suffix.lower() == FEATURE_EXTENSION
        )

    def parse(self, path: Path) -> Feature:
        """Parse one feature file.

        Args:
            path: Feature file path; kept verbatim as the feature file path.

        Returns:
            The parsed feature.

        Raises:
            SpecificationParseError: If the file is missing, has the wrong
                extension, or is rejected by the grammar.
        """
        return self._parse_file(path=path, display_path=path.as_posix())

    def parse_directory(
        self, root_path: Path
    ) -> tuple[list[Feature], list[SpecificationFailure]]:
        """Parse all feature files beneath a root, continuing on failures.

        Args:
            root_path: Directory to scan recursively.

        Returns:
            Features in path order and the recoverable per-file failures.

        Raises:
            FileNotFoundError: If ``root_path`` is not a directory.
        """
        files = self.discover(root_path)
        parsed: list[Feature | None] = [None] * len(files)
        failures: list[SpecificationFailure] = []

        with concurrent.futures.ThreadPoolExecutor(
            max_workers=self._max_workers
        ) as executor:
            future_to_index = {
                executor.submit(
                    self._parse_file,
                    path,
                    path.relative_to(root_path).as_posix(),
                ): index
                for index, path in enumerate(files)
            }
            for future in concurrent.futures.as_completed(future_to_index):
                index = future_to_index[future]
                try:
                    parsed[index] = future.result()
                except SpecificationParseError as exc:
                    logger.warning(
                        f"Skipping feature file due to parse failure (file_path={exc.file_path} "
                        f"line={exc.line} error={exc.cause})"
                    )
                    failures.append(
                        SpecificationFailure(
                            file_path=exc.file_path,
                            message=str(exc.cause),
                            line=exc.line,
                        )
                    )

        features = [feature for feature in parsed if feature is not None]
        logger.info(
            f"Feature parsing completed (path={root_path} files={len(files)} "
            f"features={len(features)} errors={len(failures)})"
        )
        return features, sorted(failures, key=lambda failure: failure.file_path)

    def _parse_file(self, path: Path, display_path: str) -> Feature:
        if not path.is_file():
            raise SpecificationParseError(display_path, "file does not exist")
        if path.suffix.lower() != FEATURE_EXTENSION:
            raise SpecificationParseError(
                display_path,
                f"unsupported extension {path.suffix!r}, expected {FEATURE_EXTENSION!r}",
            )
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SpecificationParseError(display_path, exc) from exc
        try:
            document = Parser().parse(source)
        except ParserError as exc:
            raise SpecificationParseError(
                display_path, exc, line=_error_line(exc)
            ) from exc
        return self.from_document(document=document, file_path=display_path)

    def from_document(self, document: Node, file_path: str) -> Feature:
        """Map a Gherkin document syntax tree to a feature.

        Args:
            document: Syntax tree as returned by ``gherkin.parser.Parser``.
            file_path: Path recorded on the feature.

        Returns:
            The mapped feature.

        Raises:
            SpecificationParseError: If the document holds no feature or an
                examples table repeats a column name.
        """
        node = document.get("feature")
        if not node:
            raise SpecificationParseError(file_path, "no Feature found")

        language = node.get("language") or "en"
        background: Background | None = None
        children: list[FeatureChild] = []
        for child in node.get("children", []):
            if "background" in child:
                background = self._map_background(child["background"], language)
            elif "scenario" in child:
                children.append(self._map_scenario(child["scenario"], file_path, language))
            elif "rule" in child:
                children.append(self._map_rule(child["rule"], file_path, language))

        return Feature(
            name=node.get("name") or "",
            description=_description(node),
            language=language,
            file_path=file_path,
            tags=_tags(node),
            comments=[
                comment.get("text", "").strip()
                for comment in document.get("comments", [])
            ],
            background=background,
            children=children,
        )

    def _map_rule(self, node: Node, file_path: str, language: str) -> Rule:
        background: Background | None = None
        scenarios: list[Scenario] = []
        for child in node.get("children", []):
            if "background" in child:
                background = self._map_background(child["background"], language)
            elif "scenario" in child:
                scenarios.append(self._map_scenario(child["scenario"], file_path, language))
        return Rule(
            name=node.get("name") or "",
            description=_description(node),
            tags=_tags(node),
            line=_line(node),
            background=background,
            scenarios=scenarios,
        )

    def _map_background(self, node: Node, language: str) -> Background:
        return Background(
            name=node.get("name") or "",
            description=_description(node),
            line=_line(node),
            steps=[self._map_step(step, language) for step in node.get("steps", [])],
        )

    def _map_scenario(self, node: Node, file_path: str, language: str) -> Scenario:
        examples = [
            self._map_examples(block, file_path) for block in node.get("examples", [])
        ]
        return Scenario(
            name=node.get("name") or "",
            description=_description(node),
            tags=_tags(node),
            line=_line(node),
            steps=[self._map_step(step, language) for step in node.get("steps", [])],
            kind="outline" if examples else "plain",
            examples=examples,
        )

    def _map_examples(self, node: Node, file_path: str) -> Example:
        header_node = node.get("tableHeader")
        header = _cells(header_node) if header_node else []
        duplicates = sorted({name for name in header if header.count(name) > 1})
        if duplicates:
            raise SpecificationParseError(
                file_path,
                f"duplicate example columns: {', '.join(duplicates)}",
                line=_line(header_node),
            )
        body = node.get("tableBody", [])
        return Example(
            name=node.get("name") or "",
            tags=_tags(node),
            header=header,
            rows=[_cells(row) for row in body],
            row_lines=[_line(row) for row in body],
            line=_line(node),
        )

    def _map_step(self, node: Node, language: str) -> Step:
        raw_keyword = (node.get("keyword") or "").strip()
        doc_string = node.get("docString")
        data_table = node.get("dataTable")
        return Step(
            keyword=_normalize_keyword(raw_keyword, node.get("keywordType"), language),
            text=node.get("text") or "",
            line=_line(node),
            raw_keyword=raw_keyword,
            doc_string=doc_string.get("content", "") if doc_string else None,
            data_table=(
                DataTable(rows=[_cells(row) for row in data_table.get("rows", [])])
                if data_table
                else None
            ),
        )


def _normalize_keyword(raw_keyword: str, keyword_type: str | None, language: str) -> str:
    if raw_keyword in ENGLISH_KEYWORDS:
        return raw_keyword
    if keyword_type == "Conjunction" and raw_keyword in _but_keywords(language):
        return "But"
    if keyword_type in KEYWORD_BY_TYPE:
        return KEYWORD_BY_TYPE[keyword_type]
    return raw_keyword


def _but_keywords(language: str) -> frozenset[str]:
    """Return the localized ``But`` keywords of a Gherkin dialect."""
    dialect = Dialect.for_name(language)
    if dialect is None:
        return frozenset()
    return frozenset(keyword.strip() for keyword in dialect.but_keywords) - {"*"}


def _description(node: Node) -> str:
    return (node.get("description") or "").strip()


def _tags(node: Node) -> list[str]:
    return [tag["name"] for tag in node.get("tags", [])]


def _line(node: Node) -> int:
    return int(node.get("location", {}).get("line", 0))


def _cells(row: Node) -> list[str]:
    return [cell.get("value", "") for cell in row.get("cells", [])]


def _error_line(exc: ParserError) -> int | None:
    """Extract the first reported source line from a grammar error."""
    nested = getattr(exc, "errors", None)
    if nested:
        return _error_line(nested[0])
    location = getattr(exc, "location", None)
    if isinstance(location, dict) and location.get("line") is not None:
        return int(location["line"])
    return None
