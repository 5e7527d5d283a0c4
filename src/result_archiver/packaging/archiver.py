"""Zip-backed data archive."""
from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..archiving.base import ArchiveError, DataArchive
from ..schemas import FileManifest, ReservedFilename, TaskMetadata

logger = logging.getLogger(__name__)

METADATA_FILENAME = "metadata.json"


class ZipDataArchive(DataArchive):
    """Buffers inserted files and writes them to ``<dist_dir>/<identifier>.zip`` on completion.

    Entries are stored under ``<step_path>/<filename>`` so leaves sharing an
    identifier in different sections do not collide.
    """

    def __init__(
        self,
        identifier: str,
        dist_dir: Path,
        schedule_identifier: Optional[str] = None,
        reserved_files: Iterable[ReservedFilename] = (ReservedFilename.ANSWERS, ReservedFilename.TASK_RESULT),
    ) -> None:
        super().__init__(identifier, schedule_identifier)
        self.dist_dir = Path(dist_dir)
        self.reserved_files: FrozenSet[ReservedFilename] = frozenset(reserved_files)
        self.output_path: Optional[Path] = None
        self._entries: Dict[str, Tuple[FileManifest, bytes]] = {}

    @property
    def filenames(self) -> List[str]:
        return list(self._entries)

    def should_insert_data(self, filename: ReservedFilename) -> bool:
        return filename in self.reserved_files

    def insert_data(self, data: bytes, manifest: FileManifest) -> None:
        if self.output_path is not None:
            raise ArchiveError(f"Archive {self.identifier} is already complete")
        entry_name = archive_entry_name(manifest)
        existing = self._entries.get(entry_name)
        if existing is not None and existing[0] != manifest:
            raise ArchiveError(f"Archive {self.identifier} already contains a file named {entry_name}")
        if entry_name == METADATA_FILENAME:
            raise ArchiveError(f"{METADATA_FILENAME} is reserved for the archive metadata")
        self._entries[entry_name] = (manifest, data)

    def complete_archive(self, metadata: TaskMetadata) -> None:
        if self.output_path is not None:
            raise ArchiveError(f"Archive {self.identifier} is already complete")
        self.dist_dir.mkdir(parents=True, exist_ok=True)
        archive_path = self.dist_dir / f"{self.identifier}.zip"
        if archive_path.exists():
            archive_path.unlink()
        with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for filename, (_, data) in self._entries.items():
                archive.writestr(filename, data)
            archive.writestr(METADATA_FILENAME, metadata.model_dump_json(indent=2))
        self.output_path = archive_path
        logger.debug("Wrote %s with %d file(s)", archive_path, len(self._entries))


def archive_entry_name(manifest: FileManifest) -> str:
    """Return the path of *manifest* inside the zip, nested under its step path when it has one."""

    if manifest.step_path:
        return f"{manifest.step_path}/{manifest.filename}"
    return manifest.filename


def zip_archive_factory(
    dist_dir: Path, reserved_files: Iterable[ReservedFilename]
) -> Callable[[str, Optional[str]], ZipDataArchive]:
    """Return an archive factory producing :class:`ZipDataArchive` instances under *dist_dir*."""

    reserved = tuple(reserved_files)

    def _factory(identifier: str, schedule_identifier: Optional[str]) -> ZipDataArchive:
        return ZipDataArchive(identifier, dist_dir, schedule_identifier=schedule_identifier, reserved_files=reserved)

    return _factory
