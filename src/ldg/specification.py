# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Specification adapter interfaces and DTOs."""

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from ldg.model import Feature

FEATURE_EXTENSION = ".feature"


class SpecificationParseError(RuntimeError):
    """Represent a failure to turn one specification file into a feature."""

    def __init__(
        self, file_path: str, cause: Exception | str, line: int | None = None
    ) -> None:
        """Initialize the error.

        Args:
            file_path: Specification file that failed.
            cause: Underlying exception or a description of the problem.
            line: Offending source line when the grammar reports one.
        """
        self.file_path = file_path
        self.cause = cause
        self.line = line
        location = f"{file_path}:{line}" if line is not None else file_path
        super().__init__(f"{location}: {cause}")


@dataclass(frozen=True)
class SpecificationFailure:
    """Represent a recoverable parse failure for one file."""

    file_path: str
    message: str
    line: int | None = None


class SpecificationAdapter(Protocol):
    """Framework-neutral specification source contract."""

    def parse(self, path: Path) -> Feature:
        """Parse one specification file.

        Raises:
            SpecificationParseError: If the file cannot be turned into a feature.
        """

    def parse_directory(
        self, root_path: Path
    ) -> tuple[list[Feature], list[SpecificationFailure]]:
        """Parse every specification file below a root and collect failures."""
