# ----------------------------------------------------------------
# Provisioning Stages
# ----------------------------------------------------------------
from typing import List

from .drivers import nvidia_install
from .packages import install_packages
from .pipeline import FailurePolicy, ProvisioningState, Stage
from .repos import setup_repos
from .storage import configure_storage
from .tools import install_tools


def build_stages() -> List[Stage]:
    """The provisioning run, in execution order."""
    return [
        Stage(
            name="repositories",
            description="Repository Setup",
            action=setup_repos,
            reached=ProvisioningState.REPOS_CONFIGURED,
        ),
        Stage(
            name="packages",
            description="Package Installation",
            action=install_packages,
            reached=ProvisioningState.PACKAGES_INSTALLED,
        ),
        Stage(
            name="storage",
            description="Storage & LVM Setup",
            action=configure_storage,
            reached=ProvisioningState.STORAGE_CONFIGURED,
        ),
        Stage(
            name="tools",
            description="Third Party Tools",
            action=install_tools,
            reached=ProvisioningState.TOOLS_INSTALLED,
        ),
        Stage(
            name="nvidia_driver",
            description="NVIDIA Driver",
            action=nvidia_install,
            reached=ProvisioningState.DRIVER_INSTALLED,
            policy=FailurePolicy.TOLERATED,
            on_failure=ProvisioningState.DRIVER_SKIPPED,
        ),
    ]
