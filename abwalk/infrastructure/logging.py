import logging
from pathlib import Path
from typing import Optional

LOG_FILE_NAME = "abwalk.log"

def setup_logging(output_dir: Path, debug: bool = False, log_path: Optional[Path] = None) -> logging.Logger:
    """
    Setup logging for an abwalk run.

    Log lines go to a file only; the terminal belongs to the live progress
    display.

    Args:
        output_dir: Directory holding the default abwalk.log (the scanned folder)
        debug: If True, log at DEBUG level, including encoder output and every event
        log_path: Optional path to log file (overrides output_dir)
    """
    log_file = Path(log_path) if log_path else (Path(output_dir) / LOG_FILE_NAME)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[logging.FileHandler(log_file, encoding="utf-8")],
        force=True  # Override any existing configuration
    )

    logger = logging.getLogger("abwalk")
    logger.info(f"Logging initialized: {log_file} (debug={'ON' if debug else 'OFF'})")

    return logger
