"""Batch driver for the encoding run.

Sequence: discover -> filter -> for each remaining file, in list order, run
the retry controller to a terminal state. One file is processed start to
finish before the next begins; exactly one encoder process is live at a time.

Progress and outcomes are published on the EventBus (FileStarted,
FileFinished, ...) so the UI layer stays out of the pipeline. A
FatalEncodeError stops the run before the next file and propagates to the
caller; every other terminal state is recorded and the driver moves on.
"""

import logging
from pathlib import Path

from abwalk.config.models import AppConfig
from abwalk.domain.events import (
    BatchAborted,
    BatchFinished,
    DiscoveryFinished,
    DiscoveryStarted,
    FileFinished,
    FileStarted,
)
from abwalk.domain.exceptions import FatalEncodeError
from abwalk.domain.models import BatchSummary
from abwalk.infrastructure.event_bus import EventBus
from abwalk.infrastructure.file_scanner import FileScanner
from abwalk.pipeline.eligibility import EligibilityResult, filter_eligible, is_encoded_output
from abwalk.pipeline.retry import RetryController


class Orchestrator:
    """Runs one batch over a folder.

    Args:
        config: AppConfig (encode, filter and retry sections are used).
        event_bus: EventBus for discovery, progress and outcome events.
        file_scanner: FileScanner for discovering video files.
        retry_controller: RetryController driving the encoder per file.
    """

    def __init__(
        self,
        config: AppConfig,
        event_bus: EventBus,
        file_scanner: FileScanner,
        retry_controller: RetryController,
    ):
        self.config = config
        self.event_bus = event_bus
        self.file_scanner = file_scanner
        self.retry_controller = retry_controller
        self.logger = logging.getLogger(__name__)

    def _perform_discovery(self, root_dir: Path) -> EligibilityResult:
        self.event_bus.publish(DiscoveryStarted(directory=root_dir))
        files = self.file_scanner.scan(root_dir)
        self.logger.info(f"Found {len(files)} valid video files in folder!")

        tag = self.config.encode.codec_tag
        eligible = filter_eligible(
            files,
            tag,
            min_size_bytes=self.config.filter.min_size_bytes,
            sample_marker=self.config.filter.sample_marker,
        )

        if files and all(is_encoded_output(f.path, tag) for f in files):
            self.logger.warning(
                f"All {len(files)} files were excluded as encoded: '{tag}' matches every path. "
                f"Check whether {root_dir} itself contains '{tag}'"
            )

        kept = {str(f.path) for f in eligible.files}
        for media_file in files:
            if str(media_file.path) not in kept:
                self.logger.debug(f"FILTERED: {media_file.path}")

        self.logger.info(
            f"Discovery finished: found={len(files)}, to_process={len(eligible.files)}, "
            f"encoded={eligible.excluded_encoded}, sample={eligible.excluded_sample}, "
            f"small={eligible.excluded_small}"
        )
        self.event_bus.publish(DiscoveryFinished(
            files_found=len(files),
            files_to_process=len(eligible.files),
            excluded_encoded=eligible.excluded_encoded,
            excluded_sample=eligible.excluded_sample,
            excluded_small=eligible.excluded_small,
        ))
        return eligible

    def run(self, root_dir: Path) -> BatchSummary:
        root_dir = FileScanner.check_root(Path(root_dir))
        self.logger.info(f"Discovery started: {root_dir}")
        eligible = self._perform_discovery(root_dir)

        summary = BatchSummary(
            files_found=len(eligible.files) + eligible.excluded_total,
            files_eligible=len(eligible.files),
            excluded_encoded=eligible.excluded_encoded,
            excluded_sample=eligible.excluded_sample,
            excluded_small=eligible.excluded_small,
        )

        total = len(eligible.files)
        if total == 0:
            self.logger.info("No files to process, exiting")
            self.event_bus.publish(BatchFinished(summary=summary))
            return summary

        for position, media_file in enumerate(eligible.files, start=1):
            self.logger.info(f"PROCESS_START: [{position}/{total}] {media_file.path}")
            self.event_bus.publish(FileStarted(file=media_file, position=position, total=total))

            try:
                result = self.retry_controller.run(media_file)
            except FatalEncodeError as e:
                self.logger.error(f"CRITICAL SHUTDOWN: {e}")
                self.event_bus.publish(BatchAborted(reason=str(e), summary=summary))
                raise

            summary.record(result)
            self.logger.info(
                f"PROCESS_END: [{position}/{total}] {media_file.name} state={result.state.value} "
                f"vmaf={result.final_quality} attempts={len(result.attempts)}"
            )
            self.event_bus.publish(FileFinished(file=media_file, position=position, total=total, result=result))

        self.logger.info(
            f"All files processed: succeeded={summary.succeeded}, exhausted={summary.exhausted}, "
            f"transient_limit={summary.transient_limit}, attempts={summary.attempts}"
        )
        self.event_bus.publish(BatchFinished(summary=summary))
        return summary
