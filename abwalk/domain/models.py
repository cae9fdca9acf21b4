from enum import Enum
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

class MediaCategory(str, Enum):
    VIDEO = "VIDEO"
    OTHER = "OTHER"

class EncodeOutcome(str, Enum):
    SUCCESS = "SUCCESS"
    QUALITY_UNREACHABLE = "QUALITY_UNREACHABLE"  # CRF search could not reach the target
    TRANSIENT = "TRANSIENT"  # resource/environment failure, retry unchanged
    FATAL = "FATAL"  # tool could not be launched

class FileState(str, Enum):
    SUCCEEDED = "SUCCEEDED"
    EXHAUSTED = "EXHAUSTED"
    TRANSIENT_LIMIT = "TRANSIENT_LIMIT"

class MediaFile(BaseModel):
    """A discovered file. Identity is the absolute path string."""

    model_config = ConfigDict(frozen=True)

    path: Path
    size_bytes: int = 0

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def stem(self) -> str:
        stem, sep, _ = self.path.name.rpartition(".")
        return stem if sep else self.path.name

    @property
    def extension(self) -> str:
        _, sep, ext = self.path.name.rpartition(".")
        return ext if sep else ""

    @property
    def parent(self) -> Path:
        return self.path.parent

    def __str__(self) -> str:
        return str(self.path)

class EncodeAttempt(BaseModel):
    source_file: MediaFile
    quality: int
    output_path: Path
    outcome: Optional[EncodeOutcome] = None
    exit_code: Optional[int] = None
    duration_seconds: Optional[float] = None
    error_message: Optional[str] = None

class FileResult(BaseModel):
    source_file: MediaFile
    state: FileState
    final_quality: int
    attempts: List[EncodeAttempt] = Field(default_factory=list)

    @property
    def output_path(self) -> Optional[Path]:
        if self.state != FileState.SUCCEEDED or not self.attempts:
            return None
        return self.attempts[-1].output_path

class BatchSummary(BaseModel):
    files_found: int = 0
    files_eligible: int = 0
    excluded_encoded: int = 0
    excluded_sample: int = 0
    excluded_small: int = 0
    succeeded: int = 0
    exhausted: int = 0
    transient_limit: int = 0
    attempts: int = 0
    results: List[FileResult] = Field(default_factory=list)

    def record(self, result: FileResult) -> None:
        self.results.append(result)
        self.attempts += len(result.attempts)
        if result.state == FileState.SUCCEEDED:
            self.succeeded += 1
        elif result.state == FileState.EXHAUSTED:
            self.exhausted += 1
        else:
            self.transient_limit += 1
