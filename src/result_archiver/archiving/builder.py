"""Hierarchical archive builder.

Walks a task result tree and turns it into a flat list of completed archives.
A nested task result either gets an archive of its own (when the manager hands
out one that differs from its parent's) or is folded into the parent archive
with its identifier used as the section for the answers beneath it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..schemas import FileInfo, FileManifest, ReservedFilename, ResultNode, ResultType, TaskMetadata, TaskResult
from .answers import answer_identifier, encode_answer_map
from .base import DataArchive, DataArchiveManager

logger = logging.getLogger(__name__)

BuildFn = Callable[[], Optional[Tuple[FileManifest, bytes]]]


@dataclass
class ArchiveAccumulator:
    """State gathered for one archive during a single build."""

    files: Dict[FileManifest, None] = field(default_factory=dict)
    answer_map: Dict[str, Any] = field(default_factory=dict)
    child_archives: List[DataArchive] = field(default_factory=list)


class TaskArchiver:
    """Builds the archives for one task result and the task results nested in it."""

    def __init__(
        self,
        manager: DataArchiveManager,
        task_result: TaskResult,
        archive: Optional[DataArchive],
    ) -> None:
        self.manager = manager
        self.task_result = task_result
        self.archive = archive

    @classmethod
    def for_root(
        cls,
        manager: DataArchiveManager,
        task_result: TaskResult,
        schedule_identifier: Optional[str] = None,
    ) -> "TaskArchiver":
        """Create the archiver for a root result. The manager may decline to give it an archive."""

        archive = manager.archive_for(task_result, schedule_identifier, None)
        if archive is None:
            logger.debug("No archive for root result %s; only nested archives will be built", task_result.identifier)
        return cls(manager, task_result, archive)

    @classmethod
    def spawn(
        cls,
        manager: DataArchiveManager,
        task_result: TaskResult,
        parent_archive: Optional[DataArchive],
    ) -> Optional["TaskArchiver"]:
        """Create an archiver for a nested result, or ``None`` if it belongs in the parent archive."""

        archive = manager.archive_for(task_result, None, parent_archive)
        if archive is None:
            return None
        if parent_archive is not None and archive.identifier == parent_archive.identifier:
            return None
        logger.debug("Task result %s gets its own archive %s", task_result.identifier, archive.identifier)
        return cls(manager, task_result, archive)

    def build_archives(self) -> List[DataArchive]:
        """Return the completed archives, this archiver's own archive first."""

        accumulator = ArchiveAccumulator()
        self._fold_results(accumulator, None, None, None, self.task_result.step_history)
        if self.task_result.async_results:
            self._fold_results(accumulator, None, None, None, self.task_result.async_results)

        archives = list(accumulator.child_archives)
        archive = self.archive
        if archive is None:
            return archives

        try:
            self._complete(archive, accumulator)
        except Exception as exc:
            if not self.manager.continue_on_failure(archive, exc):
                raise
            logger.warning("Dropping archive %s after it failed to complete: %s", archive.identifier, exc)
            return archives

        logger.info("Completed archive %s with %d file(s)", archive.identifier, len(accumulator.files))
        archives.insert(0, archive)
        return archives

    def _complete(self, archive: DataArchive, accumulator: ArchiveAccumulator) -> None:
        leaf_files = list(accumulator.files)
        reserved: List[FileManifest] = []

        if accumulator.answer_map and archive.should_insert_data(ReservedFilename.ANSWERS):
            manifest = ReservedFilename.ANSWERS.manifest()
            archive.insert_data(encode_answer_map(accumulator.answer_map), manifest)
            accumulator.files[manifest] = None
            reserved.insert(0, manifest)

        if archive.should_insert_data(ReservedFilename.TASK_RESULT):
            manifest = ReservedFilename.TASK_RESULT.manifest()
            archive.insert_data(self.task_result.model_dump_json(indent=2).encode("utf-8"), manifest)
            accumulator.files[manifest] = None
            reserved.insert(0, manifest)

        archive.complete_archive(TaskMetadata.for_task(self.task_result, reserved + leaf_files))

    def _fold_results(
        self,
        accumulator: ArchiveAccumulator,
        section_identifier: Optional[str],
        collection_identifier: Optional[str],
        step_path: Optional[str],
        results: Sequence[ResultNode],
    ) -> None:
        for result in results:
            if result.type == ResultType.TASK:
                self._fold_task(accumulator, step_path, result)
            else:
                self._add_to_archive(accumulator, section_identifier, collection_identifier, step_path, result)

    def _fold_task(self, accumulator: ArchiveAccumulator, step_path: Optional[str], task_result: TaskResult) -> None:
        sub_archiver = TaskArchiver.spawn(self.manager, task_result, self.archive)
        if sub_archiver is not None:
            accumulator.child_archives.extend(sub_archiver.build_archives())
            return

        path = _join_path(step_path, task_result.identifier)
        self._fold_results(accumulator, task_result.identifier, None, path, task_result.step_history)
        if task_result.async_results:
            self._fold_results(accumulator, task_result.identifier, None, path, task_result.async_results)

    def _add_to_archive(
        self,
        accumulator: ArchiveAccumulator,
        section_identifier: Optional[str],
        collection_identifier: Optional[str],
        step_path: Optional[str],
        result: ResultNode,
    ) -> None:
        # Without an archive at this level, non-task results are dropped.
        archive = self.archive
        if archive is None:
            return

        # An archivable wrapper takes precedence and stops recursion into a collection.
        archivable = archive.archivable_data(result, section_identifier, step_path)
        if archivable is not None:
            self._insert(archive, accumulator, lambda: archivable.build_archive_data(step_path))
        else:
            file_archivable = result.file_archivable()
            if file_archivable is not None:
                self._insert(
                    archive,
                    accumulator,
                    lambda: _manifest_data(file_archivable.build_archivable_file_data(step_path)),
                )
            elif result.type == ResultType.COLLECTION:
                self._fold_results(
                    accumulator,
                    section_identifier,
                    result.identifier,
                    _join_path(step_path, result.identifier),
                    result.children,
                )

        if result.type == ResultType.ANSWER:
            value = result.encoding_value()
            if value is not None:
                override = self.manager.answer_key_override(result.identifier, section_identifier)
                key = answer_identifier(result.identifier, section_identifier, collection_identifier, override)
                accumulator.answer_map[key] = value

    def _insert(self, archive: DataArchive, accumulator: ArchiveAccumulator, build: BuildFn) -> None:
        try:
            built = build()
            if built is None:
                return
            manifest, data = built
            if manifest in accumulator.files:
                logger.debug("Skipping duplicate file %s in archive %s", manifest.filename, archive.identifier)
                return
            archive.insert_data(data, manifest)
            accumulator.files[manifest] = None
        except Exception as exc:
            if not self.manager.continue_on_failure(archive, exc):
                raise
            logger.warning("Skipping file for archive %s: %s", archive.identifier, exc)


def build_task_archives(
    manager: DataArchiveManager,
    task_result: TaskResult,
    schedule_identifier: Optional[str] = None,
) -> List[DataArchive]:
    """Build every archive for *task_result* and return them in completion order."""

    return TaskArchiver.for_root(manager, task_result, schedule_identifier).build_archives()


def _join_path(step_path: Optional[str], identifier: str) -> str:
    return f"{step_path}/{identifier}" if step_path is not None else identifier


def _manifest_data(built: Optional[Tuple[FileInfo, bytes]]) -> Optional[Tuple[FileManifest, bytes]]:
    if built is None:
        return None
    file_info, data = built
    return FileManifest.from_file_info(file_info), data
