import logging
from datetime import datetime
from abwalk.infrastructure.event_bus import EventBus
from abwalk.ui.state import UIState
from abwalk.domain.events import (
    AttemptFinished, AttemptStarted, BatchAborted, BatchFinished,
    DiscoveryFinished, DiscoveryStarted, FileFinished, FileStarted,
)
from abwalk.domain.models import EncodeOutcome, FileState

logger = logging.getLogger(__name__)

class UIManager:
    """Subscribes to EventBus and updates UIState."""

    def __init__(self, bus: EventBus, state: UIState, min_quality: int = 1):
        self.bus = bus
        self.state = state
        self.quality_floor = max(1, min_quality)
        self._setup_subscriptions()

    def _setup_subscriptions(self):
        self.bus.subscribe(DiscoveryStarted, self.on_discovery_started)
        self.bus.subscribe(DiscoveryFinished, self.on_discovery_finished)
        self.bus.subscribe(FileStarted, self.on_file_started)
        self.bus.subscribe(FileFinished, self.on_file_finished)
        self.bus.subscribe(AttemptStarted, self.on_attempt_started)
        self.bus.subscribe(AttemptFinished, self.on_attempt_finished)
        self.bus.subscribe(BatchFinished, self.on_batch_finished)
        self.bus.subscribe(BatchAborted, self.on_batch_aborted)

    def on_discovery_started(self, event: DiscoveryStarted):
        with self.state._lock:
            self.state.discovery_finished = False

    def on_discovery_finished(self, event: DiscoveryFinished):
        logger.debug(
            f"UI: discovery counters: found={event.files_found}, to_process={event.files_to_process}"
        )
        with self.state._lock:
            self.state.files_found = event.files_found
            self.state.files_to_process = event.files_to_process
            self.state.excluded_encoded = event.excluded_encoded
            self.state.excluded_sample = event.excluded_sample
            self.state.excluded_small = event.excluded_small
            self.state.total = event.files_to_process
            self.state.position = 0
            self.state.discovery_finished = True
        self.state.add_activity("cyan", f"Found {event.files_found} files in folder!")

    def on_file_started(self, event: FileStarted):
        with self.state._lock:
            if self.state.start_time is None:
                self.state.start_time = datetime.now()
            self.state.total = event.total
            self.state.position = event.position - 1
            self.state.current_file = event.file
            self.state.current_attempt = 0

    def on_file_finished(self, event: FileFinished):
        result = event.result
        with self.state._lock:
            self.state.position = event.position
            self.state.total = event.total
            self.state.current_file = None
            self.state.current_quality = None
            if result.state == FileState.SUCCEEDED:
                self.state.succeeded_count += 1
            elif result.state == FileState.EXHAUSTED:
                self.state.exhausted_count += 1
            else:
                self.state.transient_limit_count += 1

        if result.state == FileState.EXHAUSTED:
            self.state.add_activity(
                "bold red",
                f"{event.file.path} could not be encoded down to VMAF {result.final_quality}!",
            )
        elif result.state == FileState.TRANSIENT_LIMIT:
            self.state.add_activity(
                "bold red",
                f"{event.file.path} gave up after repeated transient failures at VMAF {result.final_quality}!",
            )

    def on_attempt_started(self, event: AttemptStarted):
        with self.state._lock:
            self.state.current_quality = event.attempt.quality
            self.state.current_attempt += 1

    def on_attempt_finished(self, event: AttemptFinished):
        attempt = event.attempt
        with self.state._lock:
            self.state.attempt_count += 1

        path = attempt.source_file.path
        if attempt.outcome == EncodeOutcome.SUCCESS:
            self.state.add_activity("green", f"{path} was encoded successfully with VMAF of {attempt.quality}!")
        elif attempt.outcome == EncodeOutcome.QUALITY_UNREACHABLE:
            if attempt.quality - 1 >= self.quality_floor:
                message = f"{path} was not encoded successfully with VMAF of {attempt.quality}! Retrying with VMAF of {attempt.quality - 1}..."
            else:
                message = f"{path} was not encoded successfully with VMAF of {attempt.quality}!"
            self.state.add_activity("red", message)
        elif attempt.outcome == EncodeOutcome.TRANSIENT:
            self.state.add_activity(
                "yellow",
                f"{path}: transient encoder failure (code {attempt.exit_code}) at VMAF {attempt.quality}",
            )
        else:
            self.state.add_activity("bold red", f"{path}: {attempt.error_message or 'encoder could not be launched'}")

    def on_batch_finished(self, event: BatchFinished):
        with self.state._lock:
            self.state.finished = True
            self.state.current_file = None

    def on_batch_aborted(self, event: BatchAborted):
        with self.state._lock:
            self.state.aborted = True
            self.state.abort_reason = event.reason
            self.state.current_file = None
