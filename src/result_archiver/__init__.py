"""
Result Archiver - turns nested task result trees into completed data archives.

The public entry point is :func:`result_archiver.archiving.build_task_archives`.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("result-archiver")
except PackageNotFoundError:  # pragma: no cover - fallback for source checkouts
    __version__ = "0.0.0"

__all__ = ["__version__"]
