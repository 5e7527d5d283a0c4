"""Utility helpers for loading result trees."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .schemas import TaskResult

logger = logging.getLogger(__name__)


def load_task_result(path: Path) -> TaskResult:
    """Load a JSON task result tree from *path*.

    Relative file paths inside the tree are resolved against the directory the
    document lives in.
    """

    if not path.exists():
        raise FileNotFoundError(f"Result file {path} does not exist")

    payload = json.loads(path.read_text(encoding="utf-8"))
    _resolve_file_paths(payload, path.parent.resolve())
    result = TaskResult.model_validate(payload)
    logger.debug("Loaded task result %s from %s", result.identifier, path)
    return result


def _resolve_file_paths(data: Any, base_dir: Path) -> None:
    if isinstance(data, list):
        for item in data:
            _resolve_file_paths(item, base_dir)
        return
    if not isinstance(data, dict):
        return
    if data.get("type") == "file" and isinstance(data.get("path"), str):
        file_path = Path(data["path"])
        if not file_path.is_absolute():
            data["path"] = str(base_dir / file_path)
    for key in ("step_history", "async_results", "children"):
        if isinstance(data.get(key), list):
            _resolve_file_paths(data[key], base_dir)
