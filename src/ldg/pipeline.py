# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""End-to-end generation: parse, correlate, aggregate."""

import concurrent.futures
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path

from ldg.config import GenerationConfig
from ldg.correlation import CorrelationEngine
from ldg.registry import ResultAdapterRegistry, ResultBatch
from ldg.specification import SpecificationAdapter
from ldg.specifications import GherkinAdapter
from ldg.summary import DocumentationSet, build_documentation

logger = logging.getLogger(__name__)


class GenerationError(RuntimeError):
    """Raised when generation cannot produce any documentation."""


class LivingDocGenerator:
    """Produce a documentation set from feature files and result reports."""

    def __init__(
        self,
        config: GenerationConfig | None = None,
        spec_adapter: SpecificationAdapter | None = None,
        registry: ResultAdapterRegistry | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            config: Generation settings; defaults apply when omitted.
            spec_adapter: Specification adapter; Gherkin by default.
            registry: Result adapter registry; every built-in adapter by default.
        """
        self._config = config or GenerationConfig()
        self._spec_adapter = spec_adapter or GherkinAdapter(
            max_workers=self._config.max_workers
        )
        self._registry = registry or ResultAdapterRegistry(
            max_workers=self._config.max_workers
        )
        self._engine = CorrelationEngine(
            include_skipped=self._config.include_skipped,
            include_pending=self._config.include_pending,
            verbose=self._config.verbose,
        )

    def generate(
        self,
        features_path: Path,
        result_paths: Sequence[Path] = (),
        generated_at: datetime | None = None,
    ) -> DocumentationSet:
        """Run a full generation.

        Feature files and result reports are parsed concurrently; correlation
        starts once both phases are complete.

        Args:
            features_path: Directory holding ``.feature`` files.
            result_paths: Result report files and/or directories.
            generated_at: Timestamp to record; the current UTC time by default.

        Returns:
            The assembled documentation set.

        Raises:
            GenerationError: If an input path does not exist or no feature
                files were found.
        """
        if not features_path.is_dir():
            raise GenerationError(f"Feature directory does not exist: {features_path}")
        missing = [path for path in result_paths if not path.exists()]
        if missing:
            raise GenerationError(f"Result path does not exist: {missing[0]}")

        with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
            features_future = executor.submit(
                self._spec_adapter.parse_directory, features_path
            )
            results_future = executor.submit(self._parse_results, list(result_paths))
            features, parse_failures = features_future.result()
            batch = results_future.result()

        if not features and not parse_failures:
            raise GenerationError(f"No feature files found under {features_path}")

        correlation = self._engine.correlate(features, batch.records)
        documentation = build_documentation(
            correlation,
            config=self._config,
            generated_at=generated_at or datetime.now(timezone.utc),
            parse_failures=parse_failures,
            result_failures=batch.failures,
            unrecognized_results=batch.unrecognized,
        )
        logger.info(
            f"Generation completed (features_path={features_path} "
            f"features={len(features)} records={len(batch.records)} "
            f"status={self._engine.rollup(f.status for f in documentation.features)})"
        )
        return documentation

    def _parse_results(self, paths: list[Path]) -> ResultBatch:
        if not paths:
            return ResultBatch()
        return self._registry.parse_paths(paths)

