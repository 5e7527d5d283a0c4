"""Abstract contracts for the archives and managers the builder talks to."""
from __future__ import annotations

import abc
from typing import Optional, Tuple

from ..schemas import FileInfo, FileManifest, ReservedFilename, ResultNode, TaskMetadata, TaskResult


class ArchiveError(RuntimeError):
    """Raised when an archive cannot accept data or cannot be completed."""


class Archivable(abc.ABC):
    """Wrapper an archive returns for results it knows how to turn into a file."""

    @abc.abstractmethod
    def build_archive_data(self, step_path: Optional[str] = None) -> Optional[Tuple[FileManifest, bytes]]:
        """Return the manifest and bytes for the wrapped result, or ``None`` to skip it."""

    def build_archivable_file_data(self, step_path: Optional[str] = None) -> Optional[Tuple[FileInfo, bytes]]:
        built = self.build_archive_data(step_path)
        if built is None:
            return None
        manifest, data = built
        return manifest.to_file_info(), data


class DataArchive(abc.ABC):
    """A bundle of files that is filled by the builder and then completed once.

    Implementations may write a zip file, call an upload service, or anything in
    between. Caching and retrying failed uploads is up to the implementation.
    """

    identifier: str
    schedule_identifier: Optional[str]

    def __init__(self, identifier: str, schedule_identifier: Optional[str] = None) -> None:
        self.identifier = identifier
        self.schedule_identifier = schedule_identifier

    @abc.abstractmethod
    def should_insert_data(self, filename: ReservedFilename) -> bool:
        """Whether the builder should add the given reserved file."""

    @abc.abstractmethod
    def insert_data(self, data: bytes, manifest: FileManifest) -> None:
        """Add one file to the archive. Raises on failure."""

    @abc.abstractmethod
    def complete_archive(self, metadata: TaskMetadata) -> None:
        """Finalize the archive. Raises on failure."""

    def archivable_data(
        self,
        result: ResultNode,
        section_identifier: Optional[str],
        step_path: Optional[str],
    ) -> Optional[Archivable]:
        """Return an archivable wrapper for *result*, or ``None`` if this archive does not handle it."""

        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(identifier={self.identifier!r})"


class DataArchiveManager(abc.ABC):
    """Decides which archive owns a task result and how failures are treated."""

    @abc.abstractmethod
    def archive_for(
        self,
        result: TaskResult,
        schedule_identifier: Optional[str],
        current_archive: Optional[DataArchive],
    ) -> Optional[DataArchive]:
        """Return the archive for *result*.

        Returning *current_archive* (or any archive with the same identifier)
        folds the result into the parent archive. Returning ``None`` for a root
        result means no archive is wanted at that level.
        """

    @abc.abstractmethod
    def continue_on_failure(self, archive: DataArchive, error: Exception) -> bool:
        """Return ``True`` to drop the failing unit and keep building."""

    def answer_key_override(self, result_identifier: str, section_identifier: Optional[str]) -> Optional[str]:
        return None
