# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Unit tests for the result adapter registry."""

import json
from pathlib import Path

import pytest

from ldg.execution import ExecutionRecord
from ldg.registry import ResultAdapterRegistry, default_adapters


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _cucumber(name: str) -> str:
    return json.dumps(
        [
            {
                "uri": "a.feature",
                "name": "A",
                "elements": [
                    {
                        "type": "scenario",
                        "name": name,
                        "line": 3,
                        "steps": [
                            {"keyword": "Given ", "name": "x",
                             "result": {"status": "passed", "duration": 1}},
                        ],
                    }
                ],
            }
        ]
    )


class _FixedAdapter:
    def __init__(self, name: str, suffix: str) -> None:
        self.name = name
        self._suffix = suffix

    def can_parse(self, path: Path) -> bool:
        return path.suffix == self._suffix

    def parse(self, path: Path) -> list[ExecutionRecord]:
        return [
            ExecutionRecord(
                scenario_name=self.name, status="passed", source_path=str(path)
            )
        ]


def test_reg_001_first_recognizing_adapter_wins(tmp_path: Path) -> None:
    path = tmp_path / "r.log"
    _write_file(path, "anything")
    registry = ResultAdapterRegistry(
        adapters=[_FixedAdapter("first", ".log"), _FixedAdapter("second", ".log")]
    )

    selected = registry.select(path)

    assert selected is not None
    assert selected.name == "first"
    assert registry.select(tmp_path / "r.txt") is None


def test_reg_002_default_adapters_are_in_selection_order() -> None:
    names = [adapter.name for adapter in default_adapters()]

    assert names == ["nunit3", "nunit2", "xunit", "junit", "trx", "cucumber-json"]


def test_reg_003_parse_paths_merges_in_file_order(tmp_path: Path) -> None:
    _write_file(tmp_path / "results" / "b.json", _cucumber("Second"))
    _write_file(tmp_path / "results" / "a.json", _cucumber("First"))
    _write_file(tmp_path / "extra.json", _cucumber("Third"))

    batch = ResultAdapterRegistry(max_workers=3).parse_paths(
        [tmp_path / "results", tmp_path / "extra.json"]
    )

    assert [record.scenario_name for record in batch.records] == [
        "First",
        "Second",
        "Third",
    ]
    assert batch.failures == []
    assert batch.unrecognized == []


def test_reg_004_malformed_and_unrecognized_files_do_not_abort_siblings(
    tmp_path: Path,
) -> None:
    _write_file(tmp_path / "good.json", _cucumber("Good"))
    _write_file(tmp_path / "bad.json", "[{ not json")
    _write_file(tmp_path / "notes.txt", "hello")

    batch = ResultAdapterRegistry().parse_paths([tmp_path])

    assert [record.scenario_name for record in batch.records] == ["Good"]
    assert [failure.file_path for failure in batch.failures] == [
        str(tmp_path / "bad.json")
    ]
    assert batch.unrecognized == [str(tmp_path / "notes.txt")]


def test_reg_005_missing_path_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Result path does not exist"):
        ResultAdapterRegistry().parse_paths([tmp_path / "missing.json"])


def test_reg_006_registry_rejects_non_positive_workers() -> None:
    with pytest.raises(ValueError, match="max_workers must be > 0"):
        ResultAdapterRegistry(max_workers=0)


@pytest.mark.parametrize(
    "element",
    [
        {"name": "Bad", "steps": [1]},
        {"name": "Bad", "steps": [{"keyword": "Given ", "result": "passed"}]},
        {"name": "Bad", "tags": "@smoke"},
        {"name": "Bad", "before": {"result": {"status": "failed"}}},
        {"name": "Bad", "after": [{"result": {"status": "failed", "error_message": 7}}]},
    ],
)
def test_reg_007_wrongly_shaped_cucumber_report_is_a_failure_not_a_crash(
    tmp_path: Path, element: dict[str, object]
) -> None:
    _write_file(tmp_path / "good.json", _cucumber("Good"))
    _write_file(
        tmp_path / "shape.json",
        json.dumps([{"uri": "a.feature", "name": "A", "elements": [element]}]),
    )

    batch = ResultAdapterRegistry().parse_paths([tmp_path])

    assert [record.scenario_name for record in batch.records] == ["Good"]
    assert [failure.file_path for failure in batch.failures] == [
        str(tmp_path / "shape.json")
    ]


def test_reg_008_null_cucumber_collections_read_as_empty(tmp_path: Path) -> None:
    _write_file(
        tmp_path / "nulls.json",
        json.dumps(
            [
                {
                    "uri": "a.feature",
                    "name": "A",
                    "elements": [
                        {"name": "Empty", "steps": None, "tags": None, "after": None}
                    ],
                }
            ]
        ),
    )

    batch = ResultAdapterRegistry().parse_paths([tmp_path / "nulls.json"])

    assert [(r.scenario_name, r.status, r.steps) for r in batch.records] == [
        ("Empty", "passed", [])
    ]
    assert batch.failures == []
