# ----------------------------------------------------------------
# Third Party Tools
# ----------------------------------------------------------------
import logging
import os

from .commands import command_exists, run_command
from .config import AppConfig

logger = logging.getLogger(__name__)


def install_tools(config: AppConfig) -> None:
    """
    Install Docker through its vendor script unless it is already on PATH.

    Args:
        config: Provides the script URL and the temp directory to download into

    Raises:
        ExecutionError: If the download or the script fails
    """
    logger.info("Installing Docker...")
    if command_exists("docker"):
        logger.info("Docker already installed")
        return

    script_path = os.path.join(config.temp_dir, "get-docker.sh")
    run_command(["curl", "-fsSL", config.docker_install_url, "-o", script_path])
    try:
        run_command(["sh", script_path], capture_output=False)
    finally:
        if os.path.exists(script_path):
            os.remove(script_path)
    logger.info("Docker installed via official script")
