# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Result adapter registry: first recognizing adapter wins."""

import concurrent.futures
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from ldg.adapters import (
    CucumberJsonAdapter,
    JUnitAdapter,
    NUnit2Adapter,
    NUnitAdapter,
    TrxAdapter,
    XUnitAdapter,
)
from ldg.execution import ExecutionRecord, ResultAdapter, ResultFailure, ResultParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResultBatch:
    """Represent the merged outcome of parsing a set of result reports.

    Attributes:
        records: Execution records in file order, then in-file order.
        failures: Recognized reports whose content was malformed.
        unrecognized: Reports no adapter recognized.
    """

    records: list[ExecutionRecord] = field(default_factory=list)
    failures: list[ResultFailure] = field(default_factory=list)
    unrecognized: list[str] = field(default_factory=list)


class ResultAdapterRegistry:
    """Select and run result adapters for report files."""

    def __init__(
        self, adapters: Sequence[ResultAdapter] | None = None, max_workers: int = 4
    ) -> None:
        """Initialize the registry.

        Args:
            adapters: Adapters in priority order; defaults to every built-in one.
            max_workers: Maximum number of worker threads for batch parsing.

        Raises:
            ValueError: If ``max_workers`` is not greater than zero.
        """
        if max_workers <= 0:
            raise ValueError("max_workers must be > 0")
        self._adapters: list[ResultAdapter] = (
            list(adapters) if adapters is not None else default_adapters()
        )
        self._max_workers = max_workers

    @property
    def adapters(self) -> list[ResultAdapter]:
        return list(self._adapters)

    def select(self, path: Path) -> ResultAdapter | None:
        """Return the first adapter that recognizes ``path``."""
        for adapter in self._adapters:
            if adapter.can_parse(path):
                return adapter
        return None

    def expand(self, paths: Sequence[Path]) -> list[Path]:
        """Expand directories into their files, keeping explicit files as given.

        Raises:
            FileNotFoundError: If a path does not exist.
        """
        files: list[Path] = []
        for path in paths:
            if path.is_dir():
                files.extend(sorted(child for child in path.rglob("*") if child.is_file()))
            elif path.is_file():
                files.append(path)
            else:
                raise FileNotFoundError(f"Result path does not exist: {path}")
        return files

    def parse_paths(self, paths: Sequence[Path]) -> ResultBatch:
        """Parse result files and directories, continuing on per-file errors.

        Args:
            paths: Report files and/or directories to scan recursively.

        Returns:
            Merged records plus per-file failures and unrecognized files.

        Raises:
            FileNotFoundError: If a path does not exist.
        """
        files = self.expand(paths)
        parsed: list[list[ExecutionRecord]] = [[] for _ in files]
        failures: list[ResultFailure] = []
        unrecognized: list[str] = []

        with concurrent.futures.ThreadPoolExecutor(
            max_workers=self._max_workers
        ) as executor:
            future_to_index = {
                executor.submit(self._parse_one, path): index
                for index, path in enumerate(files)
            }
            for future in concurrent.futures.as_completed(future_to_index):
                index = future_to_index[future]
                file_path = str(files[index])
                try:
                    records = future.result()
                except ResultParseError as exc:
                    logger.warning(
                        f"Skipping result file due to parse failure (file_path={file_path} error={exc.cause})"
                    )
                    failures.append(ResultFailure(file_path=file_path, message=str(exc.cause)))
                    continue
                if records is None:
                    logger.warning(f"Skipping unrecognized result file (file_path={file_path})")
                    unrecognized.append(file_path)
                    continue
                parsed[index] = records

        merged = [record for records in parsed for record in records]
        logger.info(
            f"Result parsing completed (files={len(files)} records={len(merged)} "
            f"errors={len(failures)} unrecognized={len(unrecognized)})"
        )
        return ResultBatch(
            records=merged,
            failures=sorted(failures, key=lambda failure: failure.file_path),
            unrecognized=sorted(unrecognized),
        )

    def _parse_one(self, path: Path) -> list[ExecutionRecord] | None:
        adapter = self.select(path)
        if adapter is None:
            return None
        records = adapter.parse(path)
        logger.debug(
            f"Parsed result file (file_path={path} adapter={adapter.name} records={len(records)})"
        )
        return records


def default_adapters() -> list[ResultAdapter]:
    """Return one instance of every built-in adapter in selection order."""
    return [
        NUnitAdapter(),
        NUnit2Adapter(),
        XUnitAdapter(),
        JUnitAdapter(),
        TrxAdapter(),
        CucumberJsonAdapter(),
    ]
