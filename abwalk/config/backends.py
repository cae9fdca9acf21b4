from typing import Dict, List, Optional
from pydantic import BaseModel


class EncoderBackend(BaseModel):
    """What ab-av1 accepts for one `-e` encoder selector."""

    name: str
    codec_tag: str  # substring marking this backend's outputs in a path
    accepts_tuning: bool  # --enc / --pix-format / --preset
    default_preset: Optional[str] = None
    description: str = ""


ENCODER_BACKENDS: Dict[str, EncoderBackend] = {
    "libx265": EncoderBackend(
        name="libx265",
        codec_tag="x265",
        accepts_tuning=True,
        default_preset="slow",
        description="libx265 H.265 / HEVC (software)",
    ),
    "av1": EncoderBackend(
        name="av1",
        codec_tag="av1",
        accepts_tuning=False,
        description="SVT-AV1 via ab-av1 defaults",
    ),
}

DEFAULT_BACKEND = "libx265"


def backend_names() -> List[str]:
    return list(ENCODER_BACKENDS)


def get_backend(name: str) -> EncoderBackend:
    try:
        return ENCODER_BACKENDS[name]
    except KeyError:
        raise ValueError(
            f"{name} is not a valid encoder! Use one of {', '.join(backend_names())}"
        ) from None


def backend_help() -> str:
    """One-line summary of the selectable backends for CLI help."""
    return "; ".join(f"{b.name}: {b.description}" for b in ENCODER_BACKENDS.values())
