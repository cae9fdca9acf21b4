import logging
import os
import stat
from pathlib import Path
from typing import List, Union, Generator
from abwalk.domain.exceptions import ConfigurationError
from abwalk.domain.models import MediaCategory, MediaFile

# Container formats, matched case-sensitively against the final extension
VIDEO_EXTENSIONS = frozenset({
    "mkv", "avi", "mp4", "divx", "flv", "m4v", "mov", "ogv", "ts", "webm", "wmv",
})

logger = logging.getLogger(__name__)


def classify(path: Union[str, Path]) -> MediaCategory:
    """Maps a path to VIDEO or OTHER from its final extension. No I/O."""
    name = os.path.basename(str(path))
    _, sep, ext = name.rpartition(".")
    if sep and ext in VIDEO_EXTENSIONS:
        return MediaCategory.VIDEO
    return MediaCategory.OTHER


class FileScanner:
    """Recursively finds video files under a directory.

    Directory symlinks are not followed. A file symlink is kept when it
    resolves to a regular file. Entries that fail during the walk are
    skipped.
    """

    def __init__(self, follow_symlinks: bool = False):
        self.follow_symlinks = follow_symlinks

    @staticmethod
    def check_root(root_dir: Path) -> Path:
        root_dir = Path(root_dir)
        if not root_dir.exists():
            raise ConfigurationError(f"{root_dir} does not exist!")
        if not root_dir.is_dir():
            raise ConfigurationError(f"{root_dir} is not a folder!")
        return root_dir

    def _on_walk_error(self, error: OSError):
        logger.debug(f"Skipping unreadable entry during scan: {error}")

    def iter_files(self, root_dir: Path) -> Generator[MediaFile, None, None]:
        """Yields MediaFile objects for every video file, in sorted walk order."""
        root_dir = self.check_root(root_dir)
        for root, dirs, files in os.walk(str(root_dir), onerror=self._on_walk_error, followlinks=self.follow_symlinks):
            # Deterministic traversal for a static tree
            dirs.sort()
            files.sort()

            for file_name in files:
                if classify(file_name) != MediaCategory.VIDEO:
                    continue

                file_path = os.path.abspath(os.path.join(root, file_name))
                try:
                    st = os.stat(file_path)
                except OSError as e:
                    logger.debug(f"Skipping {file_path}: {e}")
                    continue
                if not stat.S_ISREG(st.st_mode):
                    continue

                yield MediaFile(path=Path(file_path), size_bytes=st.st_size)

    def scan(self, root_dir: Path) -> List[MediaFile]:
        """Returns the ordered, duplicate-free list of video files under root_dir."""
        seen = set()
        found: List[MediaFile] = []
        for media_file in self.iter_files(root_dir):
            key = str(media_file.path)
            if key in seen:
                continue
            seen.add(key)
            found.append(media_file)
        return found
