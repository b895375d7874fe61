"""nixup CLI -- interactive NixOS maintenance session.

Loaded via the ``nixup`` entry point defined in pyproject.toml, or with
``python -m nixup``. Invoked without arguments it runs the full session.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import click

from nixup._version import __version__
from nixup.actions import Actions
from nixup.cli.formatting import format_config, format_error, get_console
from nixup.config import load_config
from nixup.exceptions import ConfigError, InputClosedError
from nixup.prompt import Prompter
from nixup.runner import CommandRunner
from nixup.transcript import Transcript, TranscriptHandler
from nixup.workflow import UpdateSession

if TYPE_CHECKING:
    from nixup.config import NixupConfig
    from nixup.prompt import InputFunc

EXIT_INTERRUPTED = 130


def build_session(
    config: NixupConfig,
    transcript: Transcript,
    input_func: Optional[InputFunc] = None,
) -> UpdateSession:
    """Wire runner, actions and prompter around one transcript."""
    runner = CommandRunner(transcript, sudo=config.sudo)
    actions = Actions(config, runner, transcript)
    prompter = Prompter(transcript, input_func)
    return UpdateSession(actions, prompter, transcript)


def _attach_logging(transcript: Transcript) -> list[logging.Handler]:
    """Send nixup debug logging through the transcript (terminal and session log)."""
    handler = TranscriptHandler(transcript)

    package_logger = logging.getLogger("nixup")
    package_logger.setLevel(logging.DEBUG)
    package_logger.addHandler(handler)
    return [handler]


def _detach_logging(handlers: list[logging.Handler]) -> None:
    package_logger = logging.getLogger("nixup")
    for handler in handlers:
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


@click.command()
@click.option(
    "--config",
    "config_path",
    default=None,
    envvar="NIXUP_CONFIG",
    type=click.Path(dir_okay=False),
    help="TOML config file (default: ~/.config/nixup/config.toml if present).",
)
@click.option(
    "--log-dir",
    default=None,
    envvar="NIXUP_LOG_DIR",
    type=click.Path(file_okay=False),
    help="Directory for session logs.",
)
@click.option("--no-sudo", is_flag=True, help="Do not prefix privileged commands with sudo.")
@click.option("--show-config", is_flag=True, help="Print the effective configuration and exit.")
@click.option("-v", "--verbose", is_flag=True, help="Log every command line and exit status.")
@click.version_option(__version__, prog_name="nixup")
def cli(
    config_path: str | None,
    log_dir: str | None,
    no_sudo: bool,
    show_config: bool,
    verbose: bool,
) -> None:
    """Update, switch and garbage-collect a NixOS system, one prompt at a time.

    Runs txr and lazygit, reports free disk space, then asks before
    updating the flake, switching home-manager and NixOS (optionally after
    a dry run), and cleaning old generations. The whole session is logged
    to a timestamped file.
    """
    console = get_console()

    try:
        config = load_config(
            config_path,
            {"log_dir": log_dir, "sudo": False if no_sudo else None},
        )
    except ConfigError as e:
        format_error(str(e), console)
        raise SystemExit(1) from None

    if show_config:
        format_config(config, console)
        return

    try:
        transcript = Transcript.open(config.log_dir, console=console)
    except OSError as e:
        format_error(f"Cannot create session log in {config.log_dir}: {e.strerror or e}", console)
        raise SystemExit(1) from None

    with transcript:
        handlers = _attach_logging(transcript) if verbose else []
        try:
            build_session(config, transcript).run()
        except InputClosedError as e:
            transcript.log_error(f"{e}. Aborting.")
            raise SystemExit(1) from None
        except KeyboardInterrupt:
            transcript.log_error("Interrupted.")
            raise SystemExit(EXIT_INTERRUPTED) from None
        finally:
            _detach_logging(handlers)


def main() -> None:
    cli()
