# ----------------------------------------------------------------
# Configuration & Constants
# ----------------------------------------------------------------
import os
import tempfile
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class VendorRepository:
    """A third-party APT repository signed with its own key."""

    name: str
    key_url: str
    keyring: str
    list_name: str
    url: str
    suite: str = "stable"
    components: str = "main"
    arch: str = "amd64"

    def keyring_path(self, keyring_dir: str) -> str:
        return os.path.join(keyring_dir, self.keyring)

    def list_path(self, sources_dir: str) -> str:
        return os.path.join(sources_dir, self.list_name)

    def source_line(self, keyring_dir: str) -> str:
        return (
            f"deb [arch={self.arch} signed-by={self.keyring_path(keyring_dir)}] "
            f"{self.url} {self.suite} {self.components}"
        )


VENDOR_REPOSITORIES: Tuple[VendorRepository, ...] = (
    VendorRepository(
        name="Google Chrome",
        key_url="https://dl.google.com/linux/linux_signing_key.pub",
        keyring="google-chrome.gpg",
        list_name="google-chrome.list",
        url="https://dl.google.com/linux/chrome/deb/",
    ),
    VendorRepository(
        name="VS Code",
        key_url="https://packages.microsoft.com/keys/microsoft.asc",
        keyring="microsoft.gpg",
        list_name="vscode.list",
        url="https://packages.microsoft.com/repos/code",
    ),
)

# The running kernel's headers are prepended at install time.
PACKAGES: Tuple[str, ...] = (
    # Graphics
    "libglvnd-dev",
    "libglvnd-dev:i386",
    # Build essentials and development tools
    "build-essential",
    "gcc",
    "make",
    "cmake",
    "pkg-config",
    # Network and source control
    "curl",
    "wget",
    "git",
    "git-lfs",
    # CLI utilities
    "binwalk",
    "jq",
    "rsync",
    "ncdu",
    "silversearcher-ag",
    # Development libraries
    "libssl-dev",
    "libffi-dev",
    "liblzma-dev",
    "libbz2-dev",
    "libreadline-dev",
    "libsqlite3-dev",
    # Shell and terminal utilities
    "bash-completion",
    "command-not-found",
    "htop",
    "net-tools",
    "screen",
    "byobu",
    "strace",
    # Desktop applications
    "vlc",
    "gimp",
    "inkscape",
    "ffmpeg",
    "hplip",
    "baobab",
    # Package management tools
    "snapd",
    "flatpak",
    "apt-file",
    # Vendor repositories
    "google-chrome-stable",
    "code",
)


@dataclass(frozen=True)
class AppConfig:
    """Provisioning configuration, built once and handed to every stage."""

    # Logging
    log_file: str = "/var/log/os_reinstall.log"
    max_log_size: int = 10 * 1024 * 1024  # 10MB

    # Dotfiles
    github_username: str = "jake5253"
    github_repo: str = "dotfiles"
    github_branch: str = "main"

    # APT repositories
    sources_list: str = "/etc/apt/sources.list"
    sources_dir: str = "/etc/apt/sources.list.d"
    keyring_dir: str = "/usr/share/keyrings"
    apt_components: str = "contrib non-free non-free-firmware"
    foreign_architecture: str = "i386"
    vendor_repos: Tuple[VendorRepository, ...] = VENDOR_REPOSITORIES

    # Packages
    packages: Tuple[str, ...] = PACKAGES

    # Storage
    volume_group_dir: str = "/dev/VG0"
    excluded_volume: str = "lvol0"
    srv_root: str = "/srv"
    home_device: str = "/dev/lvm0/dream_volcano"
    home_mount: str = "/home"
    fstab_path: str = "/etc/fstab"
    skel_dir: str = "/etc/skel"
    primary_uid: int = 1000
    user_groups: Tuple[str, ...] = ("sudo", "dialout", "docker")

    # NVIDIA driver
    lib32_dir: str = "/usr/lib/i386-linux-gnu"
    nvidia_download_dir: str = "/tmp/nvidia_update"
    nouveau_blacklist: str = "/etc/modprobe.d/blacklist-nouveau.conf"
    nvidia_listing_url: str = "https://www.nvidia.com/en-us/drivers/unix/"
    nvidia_download_base: str = "https://us.download.nvidia.com/XFree86/Linux-x86_64"
    nvidia_installer_args: Tuple[str, ...] = (
        "-s",
        "--dkms",
        "-a",
        "--no-questions",
        "--no-cc-version-check",
    )

    # Third party tools
    docker_install_url: str = "https://get.docker.com"
    temp_dir: str = field(default_factory=tempfile.gettempdir)

    @property
    def bashrc_url(self) -> str:
        return (
            f"https://raw.githubusercontent.com/{self.github_username}/"
            f"{self.github_repo}/{self.github_branch}/.bashrc"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "log_file": self.log_file,
            "bashrc_url": self.bashrc_url,
            "volume_group_dir": self.volume_group_dir,
            "home_device": self.home_device,
            "fstab_path": self.fstab_path,
            "primary_uid": self.primary_uid,
        }
