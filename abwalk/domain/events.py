"""Domain events for the batch encoding pipeline.

Events are published on the EventBus by the pipeline and consumed by the UI
layer (progress bar, outcome feed) and the debug log, so the retry state
machine never talks to the terminal directly.

See `infrastructure/event_bus.py` for the pub/sub mechanism.
"""

from pathlib import Path
from pydantic import BaseModel
from .models import BatchSummary, EncodeAttempt, FileResult, MediaFile


class Event(BaseModel):
    """Base class for all domain events."""

    pass


class DiscoveryStarted(Event):
    """Emitted before the input folder is walked."""

    directory: Path


class DiscoveryFinished(Event):
    """Emitted after discovery and eligibility filtering.

    `files_found` counts every video file in the tree, `files_to_process`
    what survived the filter.
    """

    files_found: int
    files_to_process: int = 0
    excluded_encoded: int = 0
    excluded_sample: int = 0
    excluded_small: int = 0


class FileEvent(Event):
    """Base class for events about one file of the batch."""

    file: MediaFile
    position: int  # 1-based
    total: int


class FileStarted(FileEvent):
    """Emitted when the retry controller takes a file."""

    pass


class FileFinished(FileEvent):
    """Emitted when a file reaches a terminal state."""

    result: FileResult


class AttemptEvent(Event):
    """Base class for events about a single encoder invocation."""

    attempt: EncodeAttempt


class AttemptStarted(AttemptEvent):
    """Emitted right before the encoder process is launched."""

    pass


class AttemptFinished(AttemptEvent):
    """Emitted once the encoder process exited and its outcome is known."""

    pass


class BatchFinished(Event):
    """Emitted when every eligible file reached a terminal state."""

    summary: BatchSummary


class BatchAborted(Event):
    """Emitted when a fatal outcome stops the batch."""

    reason: str
    summary: BatchSummary
