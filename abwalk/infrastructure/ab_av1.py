import logging
import subprocess
import time
from collections import deque
from pathlib import Path
from typing import Deque, Iterable, List, Optional
from abwalk.config.models import EncodeJobConfig
from abwalk.domain.models import EncodeAttempt, EncodeOutcome, MediaFile

TRANSIENT_EXIT_CODES = (145,)
OUTPUT_TAIL_LINES = 20


def output_path_for(media_file: MediaFile, encoder: str, quality: int) -> Path:
    """{stem}.{encoder}.{quality}.{extension}, next to the input."""
    name = f"{media_file.stem}.{encoder}.{quality}"
    if media_file.extension:
        name = f"{name}.{media_file.extension}"
    return media_file.parent / name


def classify_exit_code(returncode: int, transient_exit_codes: Iterable[int] = TRANSIENT_EXIT_CODES) -> EncodeOutcome:
    if returncode == 0:
        return EncodeOutcome.SUCCESS
    if returncode in set(transient_exit_codes):
        return EncodeOutcome.TRANSIENT
    return EncodeOutcome.QUALITY_UNREACHABLE


class AbAv1Adapter:
    """Runs `ab-av1 auto-encode` for one file at one VMAF target."""

    def __init__(self, binary: Path, transient_exit_codes: Iterable[int] = TRANSIENT_EXIT_CODES):
        self.binary = Path(binary)
        self.transient_exit_codes = tuple(transient_exit_codes)
        self.logger = logging.getLogger(__name__)

    def _build_command(self, media_file: MediaFile, quality: int, config: EncodeJobConfig, output_path: Optional[Path] = None) -> List[str]:
        """Constructs the ab-av1 command line arguments."""
        output_path = output_path or output_path_for(media_file, config.encoder, quality)
        cmd = [
            str(self.binary),
            "auto-encode",
            "-i", str(media_file.path),
            "--min-vmaf", str(quality),
            "--acodec", config.audio_codec,
        ]
        if config.downmix_to_stereo:
            cmd.append("--downmix-to-stereo")
        cmd.extend(["-e", config.encoder])

        # av1 takes ab-av1's own defaults; only tunable backends get these
        if config.backend.accepts_tuning:
            if config.params:
                cmd.extend(["--enc", config.params])
            cmd.extend(["--pix-format", config.pix_fmt])
            preset = config.effective_preset
            if preset:
                cmd.extend(["--preset", str(preset)])

        cmd.extend(["-o", str(output_path)])
        return cmd

    def _stop_process(self, process: subprocess.Popen):
        process.terminate()
        try:
            process.wait(timeout=3)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()

    def encode(self, media_file: MediaFile, quality: int, config: EncodeJobConfig) -> EncodeAttempt:
        """Executes one encode attempt and blocks until the tool exits."""
        output_path = output_path_for(media_file, config.encoder, quality)
        attempt = EncodeAttempt(source_file=media_file, quality=quality, output_path=output_path)
        cmd = self._build_command(media_file, quality, config, output_path=output_path)

        self.logger.info(f"ENCODE_START: {media_file.name} (encoder={config.encoder}, vmaf={quality})")
        self.logger.debug(f"ENCODE_CMD: {' '.join(cmd)}")

        start_time = time.monotonic()
        tail: Deque[str] = deque(maxlen=OUTPUT_TAIL_LINES)
        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                universal_newlines=True,
                errors="replace",  # file names echoed back need not be valid UTF-8
                bufsize=1,
            )
        except OSError as e:
            attempt.outcome = EncodeOutcome.FATAL
            attempt.error_message = f"failed to execute {self.binary}: {e}"
            attempt.duration_seconds = time.monotonic() - start_time
            self.logger.error(f"ENCODE_FATAL: {media_file.name} - {attempt.error_message}")
            return attempt

        try:
            if process.stdout:
                for line in process.stdout:
                    line = line.rstrip()
                    if line:
                        tail.append(line)
                        self.logger.debug(f"ab-av1: {line}")
            process.wait()
        except KeyboardInterrupt:
            self.logger.info(f"ENCODE_INTERRUPTED: {media_file.name}")
            raise
        finally:
            # Never leave the child running once we stop reading it
            if process.poll() is None:
                self._stop_process(process)

        attempt.exit_code = process.returncode
        attempt.outcome = classify_exit_code(process.returncode, self.transient_exit_codes)
        attempt.duration_seconds = time.monotonic() - start_time
        if attempt.outcome != EncodeOutcome.SUCCESS:
            last_line = tail[-1] if tail else ""
            attempt.error_message = f"ab-av1 exited with code {process.returncode}" + (f": {last_line}" if last_line else "")

        self.logger.info(
            f"ENCODE_END: {media_file.name} vmaf={quality} outcome={attempt.outcome.value} "
            f"code={process.returncode} elapsed={attempt.duration_seconds:.2f}s"
        )
        return attempt
