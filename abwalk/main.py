import logging
import typer
import yaml
from pathlib import Path
from typing import Optional
from pydantic import ValidationError

from abwalk.config.backends import backend_help
from abwalk.config.loader import load_config
from abwalk.config.models import AppConfig
from abwalk.domain.events import Event
from abwalk.domain.exceptions import ConfigurationError, FatalEncodeError
from abwalk.domain.models import BatchSummary
from abwalk.infrastructure.logging import setup_logging
from abwalk.infrastructure.event_bus import EventBus
from abwalk.infrastructure.file_scanner import FileScanner
from abwalk.infrastructure.ab_av1 import AbAv1Adapter
from abwalk.infrastructure.tool_locator import locate_tool
from abwalk.pipeline.retry import RetryController
from abwalk.pipeline.orchestrator import Orchestrator
from abwalk.ui.state import UIState
from abwalk.ui.manager import UIManager
from abwalk.ui.dashboard import Dashboard

DEFAULT_CONFIG_PATH = Path("conf/abwalk.yaml")

EXIT_CONFIG_ERROR = 1
EXIT_FATAL_ENCODE = 3
EXIT_INTERRUPTED = 130

app = typer.Typer(help="abwalk - run ab-av1 auto-encode over every video file in a folder")


def _fail(message: str, code: int = EXIT_CONFIG_ERROR):
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=code)


def _apply_overrides(config: AppConfig, **overrides) -> AppConfig:
    """Copies non-None CLI values onto the validated config sections."""
    encode = config.encode
    if overrides["encoder"] is not None: encode.encoder = overrides["encoder"]
    if overrides["vmaf"] is not None: encode.quality = overrides["vmaf"]
    if overrides["params"] is not None: encode.params = overrides["params"]
    if overrides["pix_fmt"] is not None: encode.pix_fmt = overrides["pix_fmt"]
    if overrides["preset"] is not None: encode.preset = overrides["preset"]
    if overrides["acodec"] is not None: encode.audio_codec = overrides["acodec"]
    if overrides["downmix"] is not None: encode.downmix_to_stereo = overrides["downmix"]
    if overrides["min_size"] is not None: config.filter.min_size_bytes = overrides["min_size"]
    if overrides["max_transient_retries"] is not None: config.retry.max_transient_retries = overrides["max_transient_retries"]
    if overrides["transient_delay"] is not None: config.retry.transient_delay_s = overrides["transient_delay"]
    if overrides["tool"] is not None: config.tool.path = str(overrides["tool"])
    if overrides["log_path"] is not None: config.general.log_path = str(overrides["log_path"])
    if overrides["clear_screen"] is not None: config.general.clear_screen = overrides["clear_screen"]
    if overrides["debug"]: config.general.debug = True
    return config


def _print_summary(summary: BatchSummary):
    typer.secho(
        f"Found {summary.files_found} video files, {summary.files_eligible} to process "
        f"(already encoded: {summary.excluded_encoded}, samples: {summary.excluded_sample}, "
        f"too small: {summary.excluded_small})"
    )
    color = typer.colors.GREEN if summary.exhausted == 0 and summary.transient_limit == 0 else typer.colors.YELLOW
    typer.secho(
        f"Encoded: {summary.succeeded} | Exhausted: {summary.exhausted} | "
        f"Transient limit: {summary.transient_limit} | Attempts: {summary.attempts}",
        fg=color,
    )


@app.command()
def encode(
    folder: Path = typer.Argument(..., help="Folder containing the video files"),
    vmaf: Optional[int] = typer.Option(None, "--vmaf", "-v", help="Initial minimum VMAF target (1-100)"),
    encoder: Optional[str] = typer.Option(None, "--encoder", "-e", help=f"Encoder backend ({backend_help()})"),
    params: Optional[str] = typer.Option(None, "--params", "-p", help="Extra encoder arguments passed with --enc"),
    pix_fmt: Optional[str] = typer.Option(None, "--pix-fmt", help="Pixel format"),
    preset: Optional[str] = typer.Option(None, "--preset", help="Encoder preset (default depends on backend)"),
    acodec: Optional[str] = typer.Option(None, "--acodec", help="Audio codec for the output"),
    downmix: Optional[bool] = typer.Option(None, "--downmix/--no-downmix", help="Downmix multi-channel audio to stereo"),
    min_size: Optional[int] = typer.Option(None, "--min-size", help="Minimum input size in bytes to process"),
    max_transient_retries: Optional[int] = typer.Option(None, "--max-transient-retries", help="Retries after transient encoder failures"),
    transient_delay: Optional[float] = typer.Option(None, "--transient-delay", help="Seconds before the first transient retry (doubles each time)"),
    tool: Optional[Path] = typer.Option(None, "--tool", help="Path to the ab-av1 binary"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help=f"Path to YAML config (default {DEFAULT_CONFIG_PATH} if present)"),
    log_path: Optional[Path] = typer.Option(None, "--log-path", help="Path to log file (default <folder>/abwalk.log)"),
    clear_screen: Optional[bool] = typer.Option(None, "--clear-screen/--no-clear-screen", help="Clear the terminal before starting"),
    debug: bool = typer.Option(False, "--debug/--no-debug", help="Enable verbose debug logging"),
):
    """Encode every eligible video file in FOLDER, lowering VMAF until ab-av1 succeeds."""
    try:
        try:
            if config_path is None and DEFAULT_CONFIG_PATH.exists():
                config_path = DEFAULT_CONFIG_PATH
            config = load_config(config_path)
            _apply_overrides(
                config,
                vmaf=vmaf, encoder=encoder, params=params, pix_fmt=pix_fmt, preset=preset,
                acodec=acodec, downmix=downmix, min_size=min_size,
                max_transient_retries=max_transient_retries, transient_delay=transient_delay,
                tool=tool, log_path=log_path, clear_screen=clear_screen, debug=debug,
            )
            root_dir = FileScanner.check_root(folder).absolute()
            binary = locate_tool(
                config.tool.name,
                explicit=Path(config.tool.path) if config.tool.path else None,
            )
        except ValidationError as exc:
            errors = "; ".join(err["msg"] for err in exc.errors())
            _fail(f"Invalid configuration: {errors}")
        except (ConfigurationError, FileNotFoundError, ValueError, yaml.YAMLError) as exc:
            _fail(str(exc))

        log_path_value = Path(config.general.log_path) if config.general.log_path else None
        logger = setup_logging(root_dir, debug=config.general.debug, log_path=log_path_value)
        logger.info(f"abwalk started: folder={root_dir}, tool={binary}")
        logger.info(
            f"Config: vmaf={config.encode.quality}, encoder={config.encode.encoder}, "
            f"preset={config.encode.effective_preset}, pix_fmt={config.encode.pix_fmt}, "
            f"min_size={config.filter.min_size_bytes}, "
            f"max_transient_retries={config.retry.max_transient_retries}, debug={config.general.debug}"
        )

        bus = EventBus()
        if config.general.debug:
            bus.subscribe(Event, lambda event: logger.debug(f"EVENT: {type(event).__name__}"))

        ui_state = UIState(activity_feed_max_items=config.ui.activity_feed_max_items)
        UIManager(bus, ui_state, min_quality=config.encode.min_quality)

        adapter = AbAv1Adapter(binary, transient_exit_codes=config.retry.transient_exit_codes)
        controller = RetryController(adapter, config.encode, config.retry, bus)
        orchestrator = Orchestrator(
            config=config,
            event_bus=bus,
            file_scanner=FileScanner(),
            retry_controller=controller,
        )
        dashboard = Dashboard(
            ui_state,
            clear_screen=config.general.clear_screen,
            refresh_per_second=config.ui.refresh_per_second,
        )

        try:
            with dashboard:
                summary = orchestrator.run(root_dir)
        except FatalEncodeError as exc:
            typer.secho(f"Fatal: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=EXIT_FATAL_ENCODE)

        _print_summary(summary)

    except KeyboardInterrupt:
        typer.secho("\nEncoding stopped by user (Ctrl+C)", fg=typer.colors.YELLOW)
        raise typer.Exit(code=EXIT_INTERRUPTED)

    except typer.Exit:
        raise

    except Exception as e:
        logging.getLogger("abwalk").exception("Unhandled error")
        typer.secho(f"Fatal Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

if __name__ == "__main__":
    app()
