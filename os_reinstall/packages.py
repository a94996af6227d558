# ----------------------------------------------------------------
# Package Installation
# ----------------------------------------------------------------
import logging
import os
import platform
from typing import List

from .commands import run_command
from .config import AppConfig

logger = logging.getLogger(__name__)


def package_list(config: AppConfig) -> List[str]:
    """The configured packages, headed by the running kernel's headers."""
    return [f"linux-headers-{platform.release()}", *config.packages]


def install_packages(config: AppConfig) -> None:
    logger.info("Installing System Packages...")
    pkgs = package_list(config)
    logger.debug(f"Packages: {', '.join(pkgs)}")

    env = os.environ.copy()
    env["DEBIAN_FRONTEND"] = "noninteractive"
    run_command(["apt-get", "install", "-y", *pkgs], env=env, capture_output=False)
