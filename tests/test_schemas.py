from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from result_archiver.schemas import (
    AnswerResult,
    CollectionResult,
    FileManifest,
    FileResult,
    ReservedFilename,
    ResultNode,
    ResultType,
    TaskMetadata,
    TaskResult,
)
from result_archiver.utils import load_task_result


def _tree_payload() -> dict:
    return {
        "identifier": "walk",
        "step_history": [
            {"type": "base", "identifier": "intro"},
            {
                "type": "collection",
                "identifier": "form",
                "children": [{"type": "answer", "identifier": "age", "value": 42}],
            },
            {"type": "task", "identifier": "motion", "step_history": []},
            {"type": "file", "identifier": "notes", "path": "notes.txt"},
        ],
    }


def test_task_result_decodes_each_variant():
    result = TaskResult.model_validate(_tree_payload())

    intro, form, motion, notes = result.step_history
    assert type(intro) is ResultNode
    assert isinstance(form, CollectionResult)
    assert isinstance(form.children[0], AnswerResult)
    assert isinstance(motion, TaskResult)
    assert isinstance(notes, FileResult)
    assert [node.type for node in result.step_history] == [
        ResultType.BASE,
        ResultType.COLLECTION,
        ResultType.TASK,
        ResultType.FILE,
    ]
    assert result.async_results is None


def test_only_file_results_expose_file_capability():
    assert ResultNode(identifier="x").file_archivable() is None
    assert AnswerResult(identifier="x", value=1).file_archivable() is None
    file_result = FileResult(identifier="x", text="hi")
    assert file_result.file_archivable() is file_result


def test_file_result_without_content_builds_nothing():
    assert FileResult(identifier="empty").build_archivable_file_data("step") is None


def test_file_result_reads_path(tmp_path: Path):
    source = tmp_path / "tap.json"
    source.write_text("[1, 2]", encoding="utf-8")
    stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)

    info, data = FileResult(identifier="tap", path=source, end_date=stamp).build_archivable_file_data("A/tap")

    assert data == b"[1, 2]"
    assert info.filename == "tap.json"
    assert info.step_path == "A/tap"
    assert info.timestamp == stamp


def test_file_manifest_equality_is_by_descriptor():
    stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
    first = FileManifest(filename="a.json", timestamp=stamp, step_path="A")
    second = FileManifest(filename="a.json", timestamp=stamp, step_path="A")
    other = FileManifest(filename="a.json", timestamp=stamp, step_path="B")

    assert first == second
    assert len({first, second, other}) == 2
    assert FileManifest.from_file_info(first.to_file_info()) == first


def test_reserved_manifest():
    manifest = ReservedFilename.ANSWERS.manifest()
    assert manifest.filename == "answers.json"
    assert manifest.content_type == "application/json"
    assert ReservedFilename.TASK_RESULT.filename == "taskResult.json"


def test_metadata_for_task():
    task = TaskResult(identifier="walk")
    manifest = FileManifest(filename="a.json")

    metadata = TaskMetadata.for_task(task, [manifest])

    assert metadata.root_identifier == "walk"
    assert metadata.task_run_uuid == task.task_run_uuid
    assert metadata.files == [manifest]


def test_load_task_result_resolves_relative_paths(tmp_path: Path):
    document = tmp_path / "result.json"
    document.write_text(json.dumps(_tree_payload()), encoding="utf-8")

    result = load_task_result(document)

    notes = result.step_history[3]
    assert notes.path == tmp_path.resolve() / "notes.txt"


def test_load_task_result_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_task_result(tmp_path / "missing.json")
