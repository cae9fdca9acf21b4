"""Adaptive retry state machine for a single file.

States: Attempting(q), Succeeded, Exhausted, TransientLimit.

- SUCCESS moves to Succeeded.
- QUALITY_UNREACHABLE moves to Attempting(q - 1), or to Exhausted once the
  next target would fall below the floor (never below 1).
- TRANSIENT repeats Attempting(q) with the same target, bounded by
  RetryConfig.max_transient_retries consecutive retries (None = unbounded)
  and optionally delayed with exponential backoff.
- FATAL raises FatalEncodeError so the batch driver aborts the run.
"""

import logging
import time
from typing import Callable, Optional

from abwalk.config.models import EncodeJobConfig, RetryConfig
from abwalk.domain.events import AttemptFinished, AttemptStarted
from abwalk.domain.exceptions import FatalEncodeError
from abwalk.domain.models import (
    EncodeAttempt,
    EncodeOutcome,
    FileResult,
    FileState,
    MediaFile,
)
from abwalk.infrastructure.ab_av1 import AbAv1Adapter, output_path_for
from abwalk.infrastructure.event_bus import EventBus


class RetryController:
    """Drives the encode adapter for one file until a terminal state.

    Args:
        adapter: Encode invoker (AbAv1Adapter or anything with the same encode()).
        encode_config: Resolved encode settings; `quality` is the starting target.
        retry_config: Transient-failure policy.
        event_bus: Receives AttemptStarted / AttemptFinished.
        sleep: Injected delay function (tests pass a recorder).
    """

    def __init__(
        self,
        adapter: AbAv1Adapter,
        encode_config: EncodeJobConfig,
        retry_config: RetryConfig,
        event_bus: EventBus,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.adapter = adapter
        self.encode_config = encode_config
        self.retry_config = retry_config
        self.event_bus = event_bus
        self.sleep = sleep
        self.logger = logging.getLogger(__name__)

    def _transient_limit_reached(self, consecutive_transients: int) -> bool:
        limit: Optional[int] = self.retry_config.max_transient_retries
        return limit is not None and consecutive_transients > limit

    def run(self, media_file: MediaFile) -> FileResult:
        quality = self.encode_config.quality
        floor = max(1, self.encode_config.min_quality)
        consecutive_transients = 0
        result = FileResult(source_file=media_file, state=FileState.EXHAUSTED, final_quality=quality)

        while True:
            pending = EncodeAttempt(
                source_file=media_file,
                quality=quality,
                output_path=output_path_for(media_file, self.encode_config.encoder, quality),
            )
            self.event_bus.publish(AttemptStarted(attempt=pending))

            attempt = self.adapter.encode(media_file, quality, self.encode_config)
            result.attempts.append(attempt)
            result.final_quality = quality
            self.event_bus.publish(AttemptFinished(attempt=attempt))

            if attempt.outcome == EncodeOutcome.SUCCESS:
                self.logger.info(f"{media_file.path} was encoded successfully with VMAF of {quality}!")
                result.state = FileState.SUCCEEDED
                return result

            if attempt.outcome == EncodeOutcome.FATAL:
                raise FatalEncodeError(attempt.error_message or "Encoder could not be launched", attempt=attempt)

            if attempt.outcome == EncodeOutcome.TRANSIENT:
                consecutive_transients += 1
                if self._transient_limit_reached(consecutive_transients):
                    self.logger.warning(
                        f"{media_file.path}: giving up after {consecutive_transients} transient "
                        f"failures at VMAF {quality}"
                    )
                    result.state = FileState.TRANSIENT_LIMIT
                    return result
                delay = self.retry_config.delay_for(consecutive_transients - 1)
                self.logger.warning(
                    f"{media_file.path}: transient failure (code {attempt.exit_code}) at VMAF {quality}, "
                    f"retry {consecutive_transients} in {delay:.1f}s"
                )
                if delay > 0:
                    self.sleep(delay)
                continue

            # QUALITY_UNREACHABLE
            consecutive_transients = 0
            if quality - 1 < floor:
                self.logger.warning(f"{media_file.path}: no suitable CRF down to VMAF {quality}, giving up")
                result.state = FileState.EXHAUSTED
                return result
            self.logger.info(
                f"{media_file.path} was not encoded successfully with VMAF of {quality}! "
                f"Retrying with VMAF of {quality - 1}..."
            )
            quality -= 1
