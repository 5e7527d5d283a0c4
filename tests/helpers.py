"""Recording fakes of the archive collaborators used across the test-suite."""
from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional, Tuple

from result_archiver.archiving import Archivable, ArchiveError, DataArchive, DataArchiveManager
from result_archiver.schemas import FileManifest, ReservedFilename, ResultNode, TaskMetadata, TaskResult


class RecordingArchive(DataArchive):
    def __init__(
        self,
        identifier: str,
        reserved: Iterable[ReservedFilename] = (ReservedFilename.ANSWERS, ReservedFilename.TASK_RESULT),
        fail_on_complete: bool = False,
        fail_on_insert: Iterable[str] = (),
    ) -> None:
        super().__init__(identifier)
        self.reserved = set(reserved)
        self.fail_on_complete = fail_on_complete
        self.fail_on_insert = set(fail_on_insert)
        self.inserted: List[Tuple[FileManifest, bytes]] = []
        self.archivables: Dict[str, Archivable] = {}
        self.complete_calls = 0
        self.metadata: Optional[TaskMetadata] = None

    def should_insert_data(self, filename: ReservedFilename) -> bool:
        return filename in self.reserved

    def insert_data(self, data: bytes, manifest: FileManifest) -> None:
        if manifest.filename in self.fail_on_insert:
            raise ArchiveError(f"cannot insert {manifest.filename}")
        self.inserted.append((manifest, data))

    def complete_archive(self, metadata: TaskMetadata) -> None:
        self.complete_calls += 1
        if self.fail_on_complete:
            raise ArchiveError(f"cannot complete {self.identifier}")
        self.metadata = metadata

    def archivable_data(
        self,
        result: ResultNode,
        section_identifier: Optional[str],
        step_path: Optional[str],
    ) -> Optional[Archivable]:
        return self.archivables.get(result.identifier)

    @property
    def filenames(self) -> List[str]:
        return [manifest.filename for manifest, _ in self.inserted]

    def data_for(self, filename: str) -> bytes:
        for manifest, data in self.inserted:
            if manifest.filename == filename:
                return data
        raise KeyError(filename)

    @property
    def answers(self) -> Dict[str, Any]:
        return json.loads(self.data_for("answers.json"))


class StaticArchivable(Archivable):
    def __init__(self, filename: str, data: bytes = b"{}", error: Optional[Exception] = None) -> None:
        self.filename = filename
        self.data = data
        self.error = error
        self.step_paths: List[Optional[str]] = []

    def build_archive_data(self, step_path: Optional[str] = None) -> Optional[Tuple[FileManifest, bytes]]:
        self.step_paths.append(step_path)
        if self.error is not None:
            raise self.error
        return FileManifest(filename=self.filename, step_path=step_path), self.data


class MappingManager(DataArchiveManager):
    """Hands out the archive registered for a task identifier, otherwise the current one.

    Identifiers listed in *declined* get no archive at all.
    """

    def __init__(
        self,
        archives: Dict[str, DataArchive],
        continue_on_failure: bool = True,
        answer_keys: Optional[Dict[Tuple[str, Optional[str]], str]] = None,
        declined: Iterable[str] = (),
    ) -> None:
        self.archives = archives
        self.declined = set(declined)
        self.should_continue = continue_on_failure
        self.answer_keys = answer_keys or {}
        self.failures: List[Tuple[str, Exception]] = []
        self.requests: List[Tuple[str, Optional[str], Optional[str]]] = []

    def archive_for(
        self,
        result: TaskResult,
        schedule_identifier: Optional[str],
        current_archive: Optional[DataArchive],
    ) -> Optional[DataArchive]:
        self.requests.append(
            (result.identifier, schedule_identifier, current_archive.identifier if current_archive else None)
        )
        if result.identifier in self.declined:
            return None
        return self.archives.get(result.identifier, current_archive)

    def continue_on_failure(self, archive: DataArchive, error: Exception) -> bool:
        self.failures.append((archive.identifier, error))
        return self.should_continue

    def answer_key_override(self, result_identifier: str, section_identifier: Optional[str]) -> Optional[str]:
        return self.answer_keys.get((result_identifier, section_identifier))
