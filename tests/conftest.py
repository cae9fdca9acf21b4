import os
import pytest
import yaml
from pathlib import Path
from abwalk.config.models import AppConfig
from abwalk.domain.models import EncodeAttempt, EncodeOutcome, MediaFile
from abwalk.infrastructure.ab_av1 import output_path_for
from abwalk.infrastructure.event_bus import EventBus

LARGE = 500_000_000

# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def sample_config():
    """Returns a sample AppConfig object for testing."""
    return AppConfig(
        general={"debug": False, "clear_screen": False},
        encode={"quality": 95, "encoder": "libx265"},
        filter={"min_size_bytes": 400_000_000},
        retry={"max_transient_retries": 3, "transient_delay_s": 0.0},
    )

@pytest.fixture
def config_yaml_path(tmp_path):
    """Creates a temporary YAML config file."""
    conf_dir = tmp_path / "conf"
    conf_dir.mkdir()
    conf_file = conf_dir / "abwalk.yaml"

    content = {
        'general': {'debug': True},
        'encode': {'quality': 90, 'encoder': 'av1', 'audio_codec': 'opus'},
        'filter': {'min_size_bytes': 1000},
        'retry': {'max_transient_retries': None, 'transient_delay_s': 0.5},
        'tool': {'path': '/opt/ab-av1'},
    }

    with open(conf_file, 'w') as f:
        yaml.dump(content, f)

    return conf_file

# ============================================================================
# EventBus Fixtures
# ============================================================================

@pytest.fixture
def event_bus():
    """Returns a fresh EventBus instance."""
    return EventBus()

@pytest.fixture
def recorded_events(event_bus):
    """Every event published on `event_bus`, in order."""
    from abwalk.domain.events import Event
    events = []
    event_bus.subscribe(Event, events.append)
    return events

# ============================================================================
# File System Fixtures
# ============================================================================

def make_sparse(path: Path, size: int) -> Path:
    """Creates a file of `size` bytes without writing its content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.truncate(size)
    return path

@pytest.fixture
def sparse_file():
    return make_sparse

@pytest.fixture
def test_input_dir(tmp_path):
    """Creates a test input directory."""
    input_dir = tmp_path / "input"
    input_dir.mkdir()
    return input_dir

@pytest.fixture
def video_tree(test_input_dir):
    """A small tree: two large videos, one small, one sample, non-video files."""
    make_sparse(test_input_dir / "a.mkv", LARGE)
    make_sparse(test_input_dir / "sub" / "b.mp4", LARGE)
    make_sparse(test_input_dir / "sub" / "tiny.avi", 1000)
    make_sparse(test_input_dir / "sample.mkv", LARGE)
    (test_input_dir / "notes.txt").write_text("not a video")
    (test_input_dir / "sub" / "cover.jpg").write_bytes(b"\xff\xd8")
    return test_input_dir

# ============================================================================
# Encoder fakes
# ============================================================================

class ScriptedAdapter:
    """Stands in for AbAv1Adapter; returns outcomes from a per-call script.

    `script` is a list of EncodeOutcome values consumed in call order, or a
    callable (media_file, quality) -> EncodeOutcome.
    """

    def __init__(self, script):
        self.script = script
        self.calls = []

    def encode(self, media_file: MediaFile, quality: int, config) -> EncodeAttempt:
        self.calls.append((media_file.path, quality))
        if callable(self.script):
            outcome = self.script(media_file, quality)
        else:
            outcome = self.script.pop(0)
        exit_code = {
            EncodeOutcome.SUCCESS: 0,
            EncodeOutcome.TRANSIENT: 145,
            EncodeOutcome.QUALITY_UNREACHABLE: 1,
            EncodeOutcome.FATAL: None,
        }[outcome]
        return EncodeAttempt(
            source_file=media_file,
            quality=quality,
            output_path=output_path_for(media_file, config.encoder, quality),
            outcome=outcome,
            exit_code=exit_code,
            error_message=None if outcome == EncodeOutcome.SUCCESS else f"outcome {outcome.value}",
        )

@pytest.fixture
def scripted_adapter():
    return ScriptedAdapter

def pytest_configure(config):
    config.addinivalue_line("markers", "integration: runs the batch against a fake encoder script")
    os.environ.setdefault("COLUMNS", "120")
