"""Shared data models for result trees and the archives built from them."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, List, Literal, Optional, Protocol, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class ResultType(str, Enum):
    """Variant tag carried by every node of a result tree."""

    BASE = "base"
    TASK = "task"
    COLLECTION = "collection"
    ANSWER = "answer"
    FILE = "file"


class FileInfo(BaseModel):
    """Describes a file produced by a file-serializable result."""

    model_config = ConfigDict(frozen=True)

    filename: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    content_type: Optional[str] = None
    identifier: Optional[str] = None
    step_path: Optional[str] = None


class FileManifest(BaseModel):
    """Descriptor for one file inside an archive.

    Two manifests with the same descriptor fields compare (and hash) equal, which
    is what keeps a file from being inserted into the same archive twice.
    """

    model_config = ConfigDict(frozen=True)

    filename: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    content_type: Optional[str] = None
    identifier: Optional[str] = None
    step_path: Optional[str] = None

    @classmethod
    def from_file_info(cls, info: FileInfo) -> "FileManifest":
        return cls(**info.model_dump())

    def to_file_info(self) -> FileInfo:
        return FileInfo(**self.model_dump())


class ReservedFilename(str, Enum):
    """Files an archive may opt in to that the builder produces itself."""

    ANSWERS = "answers"
    TASK_RESULT = "taskResult"

    @property
    def filename(self) -> str:
        return f"{self.value}.json"

    def manifest(self) -> FileManifest:
        return FileManifest(filename=self.filename, content_type="application/json", identifier=self.value)


class FileArchivable(Protocol):
    """Capability exposed by results that can serialize themselves to a file."""

    def build_archivable_file_data(self, step_path: Optional[str] = None) -> Optional[Tuple[FileInfo, bytes]]:
        ...


class ResultNode(BaseModel):
    """A plain result with no payload the archiver knows how to use."""

    model_config = ConfigDict(frozen=True)

    type: Literal["base"] = "base"
    identifier: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    def file_archivable(self) -> Optional[FileArchivable]:
        """Return the file-serialization capability of this node, if any."""

        return None

    def encoding_value(self) -> Any:
        """Return the answer value carried by this node, or ``None``."""

        return None


class TaskResult(ResultNode):
    """Result of running a task: its step history and any async results."""

    type: Literal["task"] = "task"
    task_run_uuid: uuid.UUID = Field(default_factory=uuid.uuid4)
    step_history: List["ResultData"] = Field(default_factory=list)
    async_results: Optional[List["ResultData"]] = None


class CollectionResult(ResultNode):
    """A grouping of child results, such as the results of a form step."""

    type: Literal["collection"] = "collection"
    children: List["ResultData"] = Field(default_factory=list)


class AnswerResult(ResultNode):
    """A single answer to a question."""

    type: Literal["answer"] = "answer"
    answer_type: Optional[str] = None
    value: Any = None

    def encoding_value(self) -> Any:
        return self.value


class FileResult(ResultNode):
    """A leaf result backed by a file on disk or by inline text.

    ``start_date`` is stamped when the result is created, so every manifest
    built from the same node carries the same timestamp.
    """

    type: Literal["file"] = "file"
    start_date: Optional[datetime] = Field(default_factory=lambda: datetime.now(timezone.utc))
    filename: Optional[str] = None
    content_type: Optional[str] = None
    path: Optional[Path] = None
    text: Optional[str] = None

    def file_archivable(self) -> Optional[FileArchivable]:
        return self

    def build_archivable_file_data(self, step_path: Optional[str] = None) -> Optional[Tuple[FileInfo, bytes]]:
        if self.path is not None:
            if not self.path.exists():
                raise FileNotFoundError(f"Result file {self.path} does not exist")
            data = self.path.read_bytes()
            default_name = self.path.name
        elif self.text is not None:
            data = self.text.encode("utf-8")
            default_name = f"{self.identifier}.txt"
        else:
            return None
        info = FileInfo(
            filename=self.filename or default_name,
            timestamp=self.end_date or self.start_date or datetime.now(timezone.utc),
            content_type=self.content_type,
            identifier=self.identifier,
            step_path=step_path,
        )
        return info, data


ResultData = Annotated[
    Union[TaskResult, CollectionResult, AnswerResult, FileResult, ResultNode],
    Field(discriminator="type"),
]

TaskResult.model_rebuild()
CollectionResult.model_rebuild()


class TaskMetadata(BaseModel):
    """Metadata handed to an archive when it is completed."""

    root_identifier: str
    task_run_uuid: Optional[uuid.UUID] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    files: List[FileManifest] = Field(default_factory=list)

    @classmethod
    def for_task(cls, task_result: TaskResult, files: List[FileManifest]) -> "TaskMetadata":
        return cls(
            root_identifier=task_result.identifier,
            task_run_uuid=task_result.task_run_uuid,
            start_date=task_result.start_date,
            end_date=task_result.end_date,
            files=list(files),
        )
