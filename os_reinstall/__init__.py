"""
Debian Workstation Recovery & Provisioning Utility
--------------------------------------------------

Rebuilds a single Debian workstation after an OS reinstall: APT repositories,
system packages, LVM volumes and the primary user's home, Docker and the
NVIDIA driver.

Requires root privileges.
"""

VERSION = "1.0.0"
APP_NAME = "OS Reinstall"
APP_SUBTITLE = "Workstation Recovery & Provisioning"

__version__ = VERSION
