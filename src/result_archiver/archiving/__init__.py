"""
Archiving package exposing the archive builder and its collaborator contracts.
"""

from .base import Archivable, ArchiveError, DataArchive, DataArchiveManager
from .builder import TaskArchiver, build_task_archives
from .manager import DefaultArchiveManager

__all__ = [
    "Archivable",
    "ArchiveError",
    "DataArchive",
    "DataArchiveManager",
    "DefaultArchiveManager",
    "TaskArchiver",
    "build_task_archives",
]
