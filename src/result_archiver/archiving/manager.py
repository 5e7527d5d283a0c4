"""Configurable archive manager."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from ..config import ArchiveSettings
from ..schemas import TaskResult
from .base import DataArchive, DataArchiveManager

logger = logging.getLogger(__name__)

ArchiveFactory = Callable[[str, Optional[str]], DataArchive]


class DefaultArchiveManager(DataArchiveManager):
    """Gives the root result an archive and splits out the nested tasks listed in the settings."""

    def __init__(self, settings: ArchiveSettings, archive_factory: ArchiveFactory) -> None:
        self.settings = settings
        self.archive_factory = archive_factory

    def archive_for(
        self,
        result: TaskResult,
        schedule_identifier: Optional[str],
        current_archive: Optional[DataArchive],
    ) -> Optional[DataArchive]:
        if current_archive is None or result.identifier in self.settings.separate_archives:
            return self.archive_factory(result.identifier, schedule_identifier)
        return current_archive

    def continue_on_failure(self, archive: DataArchive, error: Exception) -> bool:
        logger.warning("Archive %s failed: %s", archive.identifier, error)
        return self.settings.continue_on_failure

    def answer_key_override(self, result_identifier: str, section_identifier: Optional[str]) -> Optional[str]:
        keys = self.settings.answer_keys
        if section_identifier is not None:
            qualified = keys.get(f"{section_identifier}.{result_identifier}")
            if qualified is not None:
                return qualified
        return keys.get(result_identifier)
