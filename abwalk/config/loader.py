import yaml
from pathlib import Path
from typing import Optional
from .models import AppConfig

def load_config(config_path: Optional[Path]) -> AppConfig:
    """Loads YAML config and parses it into AppConfig. None means built-in defaults."""
    if config_path is None:
        return AppConfig()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    # Flat 'vmaf' key kept as an alias of encode.quality
    vmaf = data.pop("vmaf", None)
    if vmaf is not None:
        data.setdefault("encode", {}).setdefault("quality", vmaf)

    return AppConfig(**data)
