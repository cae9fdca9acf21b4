"""Eligibility filtering of discovered files.

Each exclusion rule is a standalone predicate over a path (or size) so it can
be tested on its own. `filter_eligible` builds one exclusion set from all
rules and subtracts it from the discovered list, which keeps the result
independent of input order.
"""

import re
from pathlib import Path
from typing import Iterable, List, Set, Union
from pydantic import BaseModel, Field

from abwalk.config.models import DEFAULT_MIN_SIZE_BYTES
from abwalk.domain.models import MediaFile

SAMPLE_MARKER = "sample"

PathLike = Union[str, Path]


class EligibilityResult(BaseModel):
    files: List[MediaFile] = Field(default_factory=list)
    excluded_encoded: int = 0
    excluded_sample: int = 0
    excluded_small: int = 0

    @property
    def excluded_total(self) -> int:
        return self.excluded_encoded + self.excluded_sample + self.excluded_small


def is_encoded_output(path: PathLike, tag: str) -> bool:
    """True when the codec tag appears anywhere in the path.

    The match covers directory names too, so a tree under e.g. `~/ab-av1/`
    is treated as encoded output in full when the tag is `av1`.
    """
    return tag in str(path)


def is_sample(path: PathLike, marker: str = SAMPLE_MARKER) -> bool:
    return marker in str(path)


def is_undersized(size_bytes: int, min_size_bytes: int = DEFAULT_MIN_SIZE_BYTES) -> bool:
    return size_bytes < min_size_bytes


def original_for_encoded(path: PathLike, tag: str) -> Path:
    """Reconstructs the input that produced a tagged output.

    movie.libx265.95.mkv -> movie.mkv, movie.x265.mkv -> movie.mkv. A tag in
    the middle of the stem falls back to removing the ".{tag}" segment.
    """
    path = Path(path)
    stem, sep, ext = path.name.rpartition(".")
    if not sep:
        stem, ext = path.name, ""

    match = re.search(rf"\.[^.]*{re.escape(tag)}(?:\.\d+)?$", stem)
    if match:
        base = stem[:match.start()]
    else:
        base = stem.replace(f".{tag}", "")

    name = f"{base}.{ext}" if ext else base
    return path.parent / name


def exclusion_set(
    files: Iterable[MediaFile],
    encoder_tag: str,
    min_size_bytes: int = DEFAULT_MIN_SIZE_BYTES,
    sample_marker: str = SAMPLE_MARKER,
) -> Set[str]:
    """Path strings to drop. May name files that do not exist."""
    excluded: Set[str] = set()
    for media_file in files:
        path_str = str(media_file.path)
        if is_encoded_output(path_str, encoder_tag):
            excluded.add(path_str)
            excluded.add(str(original_for_encoded(media_file.path, encoder_tag)))
        if is_sample(path_str, sample_marker):
            excluded.add(path_str)
        if is_undersized(media_file.size_bytes, min_size_bytes):
            excluded.add(path_str)
    return excluded


def filter_eligible(
    files: Iterable[MediaFile],
    encoder_tag: str,
    min_size_bytes: int = DEFAULT_MIN_SIZE_BYTES,
    sample_marker: str = SAMPLE_MARKER,
) -> EligibilityResult:
    """Removes previous outputs (and their originals), samples and small files."""
    files = list(files)
    excluded = exclusion_set(files, encoder_tag, min_size_bytes, sample_marker)

    result = EligibilityResult()
    for media_file in files:
        path_str = str(media_file.path)
        if path_str not in excluded:
            result.files.append(media_file)
            continue
        # Counted under the first rule that explains it; an untagged file with
        # no other reason is the original of an existing output
        if is_encoded_output(path_str, encoder_tag):
            result.excluded_encoded += 1
        elif is_sample(path_str, sample_marker):
            result.excluded_sample += 1
        elif is_undersized(media_file.size_bytes, min_size_bytes):
            result.excluded_small += 1
        else:
            result.excluded_encoded += 1
    return result
