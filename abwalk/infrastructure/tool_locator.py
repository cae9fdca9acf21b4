import logging
import os
import shutil
import sys
from pathlib import Path
from typing import List, Optional
from abwalk.domain.exceptions import ConfigurationError

DEFAULT_TOOL_NAME = "ab-av1"

logger = logging.getLogger(__name__)


def _candidate_names(name: str) -> List[str]:
    names = [name]
    if sys.platform == "win32" and not name.lower().endswith(".exe"):
        names.append(f"{name}.exe")
    return names


def locate_tool(
    name: str = DEFAULT_TOOL_NAME,
    search_dir: Optional[Path] = None,
    explicit: Optional[Path] = None,
) -> Path:
    """Resolves the encoder binary: explicit path, then search_dir (cwd), then PATH."""
    if explicit is not None:
        explicit = Path(explicit)
        if not explicit.is_file():
            raise ConfigurationError(f"Binary '{explicit}' not found!")
        return explicit.absolute()

    search_dir = Path(search_dir) if search_dir is not None else Path.cwd()
    for candidate in _candidate_names(name):
        local = search_dir / candidate
        if local.is_file() and os.access(local, os.X_OK):
            logger.info(f"{candidate} found in working directory: {local}")
            return local.absolute()

    logger.info(f"Binary '{name}' not found in {search_dir}, searching system path...")
    found = shutil.which(name)
    if found:
        logger.info(f"{name} found in: {found}")
        return Path(found)

    raise ConfigurationError(f"{name} not found in {search_dir} or on the system path!")
