from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass
class ArchiveSettings:
    """Policy knobs consumed by the default archive manager."""

    continue_on_failure: bool = True
    include_answers: bool = True
    include_task_result: bool = True
    separate_archives: List[str] = field(default_factory=list)
    answer_keys: Dict[str, str] = field(default_factory=dict)


@dataclass
class AppConfig:
    """Top level configuration for an archive build."""

    dist_dir: Path = field(default_factory=lambda: Path.cwd() / "dist")
    archive: ArchiveSettings = field(default_factory=ArchiveSettings)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON serialisable copy of the config."""
        payload = asdict(self)
        payload["dist_dir"] = str(self.dist_dir)
        return payload


def load_config(path: Optional[Path], dist_dir: Optional[Path] = None) -> AppConfig:
    """
    Load configuration from *path* if provided, otherwise use the defaults.

    The configuration file is expected to be JSON. Unspecified fields fall back
    to the defaults of the dataclasses above, and unknown keys are ignored.
    """
    config = AppConfig()

    if path is not None:
        with Path(path).expanduser().open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        _apply_config_updates(config, data)

    if dist_dir is not None:
        config.dist_dir = Path(dist_dir)
    return config


def _apply_config_updates(config: AppConfig, payload: Dict[str, Any]) -> None:
    """Update *config* in-place using keys from the *payload* dict."""
    if "dist_dir" in payload:
        config.dist_dir = Path(payload["dist_dir"]).expanduser()

    if "archive" in payload:
        for key, value in payload["archive"].items():
            if hasattr(config.archive, key):
                setattr(config.archive, key, value)
