from .archiver import ZipDataArchive, archive_entry_name, zip_archive_factory

__all__ = ["ZipDataArchive", "archive_entry_name", "zip_archive_factory"]
