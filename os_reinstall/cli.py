# ----------------------------------------------------------------
# Main Entry Point
# ----------------------------------------------------------------
import argparse
import dataclasses
import logging
import os
import platform
import signal
import sys
from typing import Any, List, Optional

from . import APP_NAME, VERSION
from .config import AppConfig
from .console import console, create_header, setup_logging, status_report
from .pipeline import run_pipeline
from .stages import build_stages

logger = logging.getLogger("os_reinstall")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    defaults = AppConfig()
    parser = argparse.ArgumentParser(
        prog="os-reinstall",
        description="Rebuild this Debian workstation after an OS reinstall.",
    )
    parser.add_argument(
        "--log-file", default=defaults.log_file, help="Provisioning log file"
    )
    parser.add_argument(
        "--github-username",
        default=defaults.github_username,
        help="Owner of the dotfiles repository",
    )
    parser.add_argument(
        "--github-repo",
        default=defaults.github_repo,
        help="Dotfiles repository holding .bashrc",
    )
    parser.add_argument(
        "--version", action="version", version=f"{APP_NAME} v{VERSION}"
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> AppConfig:
    return dataclasses.replace(
        AppConfig(),
        log_file=args.log_file,
        github_username=args.github_username,
        github_repo=args.github_repo,
    )


def signal_handler(signum: int, frame: Optional[Any]) -> None:
    """Log the interrupting signal and exit with a signal-specific code."""
    try:
        sig_name = signal.Signals(signum).name
    except ValueError:
        sig_name = f"signal {signum}"

    console.print()
    logger.error(f"Interrupted by {sig_name}. Exiting.")
    sys.exit(128 + signum)


def register_signal_handlers() -> None:
    for sig in (signal.SIGINT, signal.SIGTERM, signal.SIGHUP):
        try:
            signal.signal(sig, signal_handler)
        except (AttributeError, ValueError):
            pass


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the provisioning run.

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    args = parse_args(argv)

    # Nothing may reach the log file before the root check.
    if os.geteuid() != 0:
        console.print("[error][ERROR] This script must be run as root.[/error]")
        return 1

    config = build_config(args)
    setup_logging(config)
    register_signal_handlers()

    try:
        console.print(create_header())
        logger.info(f"System: {platform.system()} {platform.release()}")
        logger.debug(f"Configuration: {config.to_dict()}")

        result = run_pipeline(build_stages(), config)
        status_report(result)

        if not result.success:
            console.print(f"Log file: [path]{config.log_file}[/path]")
        return result.exit_code

    except KeyboardInterrupt:
        logger.warning("Process interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
