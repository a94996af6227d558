# ----------------------------------------------------------------
# NVIDIA Driver
# ----------------------------------------------------------------
import logging
import os
import re
import sys
from typing import Optional

from .commands import run_command
from .config import AppConfig
from .errors import DriverError
from .pipeline import ProvisioningState

logger = logging.getLogger(__name__)

LATEST_MARKER = "Latest Production Branch Version"
VERSION_RE = re.compile(r"[0-9]+\.[0-9]+(?:\.[0-9]+)?")

NOUVEAU_BLACKLIST = "blacklist nouveau\noptions nouveau modeset=0\n"


def is_console_tty() -> bool:
    """True when standard input is a virtual console, not a pty or a pipe."""
    try:
        return os.ttyname(sys.stdin.fileno()).startswith("/dev/tty")
    except (AttributeError, OSError, ValueError):
        return False


def parse_latest_version(page: str) -> Optional[str]:
    """
    Find the production branch version on the driver listing page.

    The version is the first number found on a line mentioning the marker or
    on the line right after it.
    """
    lines = page.splitlines()
    for i, line in enumerate(lines):
        if LATEST_MARKER not in line:
            continue
        for candidate in lines[i : i + 2]:
            match = VERSION_RE.search(candidate)
            if match:
                return match.group(0)
    return None


def installer_name(version: str) -> str:
    """
    File name of the x86_64 installer for a driver version.

    Args:
        version: Driver version such as 550.78

    Returns:
        The installer file name published for that version
    """
    return f"NVIDIA-Linux-x86_64-{version}.run"


def blacklist_nouveau(config: AppConfig) -> None:
    os.makedirs(os.path.dirname(config.nouveau_blacklist), exist_ok=True)
    with open(config.nouveau_blacklist, "w") as f:
        f.write(NOUVEAU_BLACKLIST)
    run_command(["update-initramfs", "-u"])


def fetch_latest_version(config: AppConfig) -> str:
    page = run_command(["curl", "-s", config.nvidia_listing_url], check=False)
    version = parse_latest_version(page.stdout or "")
    if not version:
        raise DriverError(f"No driver version found at {config.nvidia_listing_url}")
    return version


def download_installer(config: AppConfig, version: str) -> str:
    """
    Download the installer for a version and mark it executable.

    Args:
        config: Provides the download base URL and target directory
        version: Driver version to fetch

    Returns:
        Path of the downloaded installer
    """
    name = installer_name(version)
    installer = os.path.join(config.nvidia_download_dir, name)
    url = f"{config.nvidia_download_base}/{version}/{name}"
    run_command(["curl", "-L", "-o", installer, url])
    os.chmod(installer, 0o755)
    return installer


def nvidia_install(config: AppConfig) -> ProvisioningState:
    if not is_console_tty():
        logger.info("[SKIP] Not in a TTY. Skipping NVIDIA driver install.")
        return ProvisioningState.DRIVER_SKIPPED

    if not os.path.isdir(config.lib32_dir):
        logger.info("[INFO] Creating 32-bit lib directory...")
        os.makedirs(config.lib32_dir, exist_ok=True)

    logger.info("Starting NVIDIA Driver Installation...")
    os.makedirs(config.nvidia_download_dir, exist_ok=True)

    blacklist_nouveau(config)

    version = fetch_latest_version(config)
    logger.info(f"Latest production driver: {version}")
    installer = download_installer(config, version)

    run_command(["sh", installer, *config.nvidia_installer_args], capture_output=False)
    return ProvisioningState.DRIVER_INSTALLED
