# ----------------------------------------------------------------
# Repository Setup
# ----------------------------------------------------------------
import logging
import os
import re

from .commands import backup_file, run_command
from .config import AppConfig, VendorRepository
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

MAIN_COMPONENT_RE = re.compile(r"^(deb.*main).*$", re.MULTILINE)


def rewrite_components(content: str, components: str) -> str:
    """Replace whatever follows the ``main`` component on every deb line."""
    return MAIN_COMPONENT_RE.sub(lambda m: f"{m.group(1)} {components}", content)


def enable_extra_components(config: AppConfig) -> None:
    """Enable contrib and non-free components in the main sources list."""
    if not os.path.isfile(config.sources_list):
        raise ConfigurationError(f"{config.sources_list} not found")

    with open(config.sources_list) as f:
        content = f.read()

    updated = rewrite_components(content, config.apt_components)
    if updated == content:
        logger.debug(f"{config.sources_list} already up to date")
        return

    backup_file(config.sources_list)
    with open(config.sources_list, "w") as f:
        f.write(updated)
    logger.info(f"Enabled {config.apt_components} in {config.sources_list}")


def install_vendor_repository(config: AppConfig, repo: VendorRepository) -> None:
    """Import the vendor's signing key and write its source list entry."""
    logger.info(f"Adding {repo.name} repository...")
    os.makedirs(config.keyring_dir, exist_ok=True)
    os.makedirs(config.sources_dir, exist_ok=True)

    key = run_command(["curl", "-fsSL", repo.key_url])
    run_command(
        ["gpg", "--dearmor", "--yes", "-o", repo.keyring_path(config.keyring_dir)],
        input=key.stdout,
    )

    with open(repo.list_path(config.sources_dir), "w") as f:
        f.write(repo.source_line(config.keyring_dir) + "\n")


def setup_repos(config: AppConfig) -> None:
    """
    Enable the extra archive components, add the vendor repositories and the
    foreign architecture, then refresh the package index.

    Args:
        config: Source list, keyring and vendor repository settings

    Raises:
        ConfigurationError: If the sources file cannot be rewritten
        ExecutionError: If any key download or apt command fails
    """
    logger.info("Configuring Repositories...")

    enable_extra_components(config)

    for repo in config.vendor_repos:
        install_vendor_repository(config, repo)

    run_command(["dpkg", "--add-architecture", config.foreign_architecture])
    run_command(["apt-get", "update", "-qq"])
