# ----------------------------------------------------------------
# Storage & LVM Setup
# ----------------------------------------------------------------
"""
Volume activation, mount table mapping, mount enforcement and the primary
user's home bootstrap.

Order matters: nothing may be written under the home mount until ``mount -a``
has succeeded and the home mount has been verified as a real mount point,
otherwise user data lands on the root volume underneath it.
"""

import glob
import logging
import os
import pwd
import shutil
from pathlib import Path
from typing import List, Optional

from .commands import run_command
from .config import AppConfig
from .errors import ConfigurationError, ExecutionError, StorageError
from .fstab import FstabEntry, FstabTable

logger = logging.getLogger(__name__)


def activate_volume_groups() -> None:
    """Scan for volume groups and activate every logical volume in them."""
    run_command(["vgscan"])
    run_command(["vgchange", "-ay"])


def map_logical_volumes(config: AppConfig, table: FstabTable) -> List[FstabEntry]:
    """
    Give every logical volume of the group a /srv mount point and fstab entry.

    Enumeration order is whatever the device directory yields. The excluded
    volume gets neither a directory nor an entry.

    Returns:
        The entries appended to the table by this call.
    """
    added: List[FstabEntry] = []

    for vol in glob.glob(os.path.join(config.volume_group_dir, "*")):
        if not os.path.exists(vol):
            continue

        name = os.path.basename(vol)
        if name == config.excluded_volume:
            logger.info(f"Skipping {vol} (administrative exclusion)")
            continue

        mountpoint = os.path.join(config.srv_root, name)
        os.makedirs(mountpoint, exist_ok=True)

        if table.contains(vol):
            logger.debug(f"{vol} already mentioned in {table.path}")
            continue

        entry = FstabEntry(device=vol, mountpoint=mountpoint)
        table.append(entry)
        added.append(entry)
        logger.info(f"Added {name} to fstab")

    return added


def map_home_volume(config: AppConfig, table: FstabTable) -> Optional[FstabEntry]:
    """
    Map the home logical volume unless the home path already appears in fstab.

    Any line mentioning the home path blocks the mapping, even one for another
    device or a deeper path such as a /home/shared mount.

    Returns:
        The appended entry, or None when nothing was added
    """
    if table.contains(config.home_mount):
        logger.debug(f"{config.home_mount} already mentioned in {table.path}")
        return None

    volume_name = os.path.basename(config.home_device)
    logger.info(f"Mapping {config.home_mount} to {volume_name}...")
    entry = FstabEntry(device=config.home_device, mountpoint=config.home_mount)
    table.append(entry)
    return entry


def enforce_mounts(config: AppConfig) -> None:
    """
    Mount everything in fstab and prove the home mount is a real mount point.

    Raises:
        StorageError: If either check fails. The mount-point check never runs
            after a failed ``mount -a``.
    """
    logger.info("Attempting to mount all filesystems...")
    result = run_command(["mount", "-a"], check=False)
    if result.returncode != 0:
        logger.critical(
            "[FATAL ERROR] Filesystem mounting failed! "
            "Aborting to prevent filesystem damage"
        )
        raise StorageError(f"mount -a exited with status {result.returncode}")

    result = run_command(["mountpoint", "-q", config.home_mount], check=False)
    if result.returncode != 0:
        logger.critical(
            f"[FATAL ERROR] {config.home_mount} is NOT a mountpoint. "
            "Protection triggered, exiting."
        )
        raise StorageError(f"{config.home_mount} is not a mount point")


def resolve_primary_user(uid: int) -> str:
    """
    Look up the account name for a UID.

    Args:
        uid: Numeric user ID of the primary account

    Returns:
        The account name

    Raises:
        ConfigurationError: If no account has that UID
    """
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError as e:
        raise ConfigurationError(f"No account with UID {uid}") from e


def bootstrap_user_home(config: AppConfig, user_name: str) -> Path:
    """
    Create the user's home from the skeleton, only if it does not exist yet.

    An existing home is left untouched even when it is incomplete.
    """
    user_home = Path(config.home_mount) / user_name

    if not user_home.is_dir():
        logger.info("Creating user home directory on new volume...")
        user_home.mkdir(parents=True, exist_ok=True)
        shutil.copytree(config.skel_dir, user_home, symlinks=True, dirs_exist_ok=True)
    else:
        logger.debug(f"{user_home} already exists, skeleton copy skipped")

    return user_home


def restore_shell_config(config: AppConfig, user_home: Path) -> bool:
    """Download the published .bashrc over the user's copy. Never raises."""
    logger.info("Restoring .bashrc from GitHub...")
    try:
        run_command(
            ["curl", "-fsSL", config.bashrc_url, "-o", str(user_home / ".bashrc")]
        )
    except ExecutionError as e:
        logger.error(f"Failed to download .bashrc: {e}")
        return False
    return True


def fix_ownership(user_name: str, user_home: Path) -> None:
    """
    Recursively hand the whole home tree to the user.

    Args:
        user_name: Owner, also used as the group name
        user_home: Root of the tree to chown
    """
    run_command(["chown", "-R", f"{user_name}:{user_name}", str(user_home)])


def assign_groups(config: AppConfig, user_name: str) -> None:
    """Append the user to each administrative group, creating it first."""
    for group in config.user_groups:
        run_command(["groupadd", "-f", group])
        run_command(["usermod", "-aG", group, user_name])
        logger.info(f"Added {user_name} to {group}")


def configure_storage(config: AppConfig) -> None:
    """Activate LVM, map and mount volumes, then bootstrap the primary user."""
    logger.info("Initializing LVM and mounting volumes...")

    activate_volume_groups()

    table = FstabTable(config.fstab_path)
    map_logical_volumes(config, table)
    map_home_volume(config, table)

    enforce_mounts(config)

    user_name = resolve_primary_user(config.primary_uid)
    user_home = bootstrap_user_home(config, user_name)
    restore_shell_config(config, user_home)
    fix_ownership(user_name, user_home)
    assign_groups(config, user_name)
