# ----------------------------------------------------------------
# Command Execution Helpers
# ----------------------------------------------------------------
import datetime
import logging
import os
import shutil
import subprocess
from typing import Dict, List, Optional, Union

from .errors import ExecutionError

logger = logging.getLogger(__name__)


def run_command(
    cmd: List[str],
    env: Optional[Dict[str, str]] = None,
    check: bool = True,
    capture_output: bool = True,
    input: Optional[str] = None,
) -> subprocess.CompletedProcess:
    """
    Execute a system command exactly once, blocking until it exits.

    Args:
        cmd: Command to execute
        env: Environment variables
        check: Whether to raise an exception on non-zero exit
        capture_output: Whether to capture stdout/stderr
        input: Text fed to the command's standard input

    Returns:
        subprocess.CompletedProcess object

    Raises:
        ExecutionError: If check is set and the command fails or cannot start
    """
    cmd_str = " ".join(str(part) for part in cmd)
    logger.debug(f"Executing: {cmd_str}")

    try:
        result = subprocess.run(
            [str(part) for part in cmd],
            env=env or os.environ.copy(),
            check=False,
            text=True,
            capture_output=capture_output,
            input=input,
        )
    except FileNotFoundError as e:
        error_msg = f"Command not found: {cmd_str}"
        logger.error(error_msg)
        if check:
            raise ExecutionError(error_msg, returncode=127) from e
        return subprocess.CompletedProcess(cmd, 127, "", str(e))

    if result.returncode != 0:
        error_msg = f"Command failed (code {result.returncode}): {cmd_str}"
        if result.stderr:
            error_msg += f"\nError: {result.stderr.strip()}"
        if check:
            logger.error(error_msg)
            raise ExecutionError(error_msg, returncode=result.returncode)
        logger.debug(error_msg)

    return result


def command_exists(cmd: str) -> bool:
    """Check if a command exists in the system PATH."""
    return shutil.which(cmd) is not None


def backup_file(fp: Union[str, "os.PathLike[str]"]) -> Optional[str]:
    """
    Backup a file with a timestamp suffix.

    Returns:
        Path to the backup file, or None if there was nothing to back up
    """
    fp = os.fspath(fp)
    if not os.path.isfile(fp):
        return None
    ts = datetime.datetime.now().strftime("%Y%m%d%H%M%S")
    backup = f"{fp}.bak.{ts}"
    shutil.copy2(fp, backup)
    logger.info(f"Backed up {fp} to {backup}")
    return backup
