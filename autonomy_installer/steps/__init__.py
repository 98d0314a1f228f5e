from .step_10_link_remote import LinkRemoteStep
from .step_20_fetch_subtree import FetchSubtreeStep
from .step_30_scaffold_dirs import ScaffoldDirectoriesStep
from .step_40_write_settings import WriteSettingsStep
from .step_50_link_assets import LinkAssetsStep
from .step_60_install_dependencies import InstallDependenciesStep
from .step_70_install_git_hooks import InstallGitHooksStep
from .step_80_initial_index import InitialIndexStep
from .step_90_aux_service import AuxServiceStep

__all__ = [
    "LinkRemoteStep",
    "FetchSubtreeStep",
    "ScaffoldDirectoriesStep",
    "WriteSettingsStep",
    "LinkAssetsStep",
    "InstallDependenciesStep",
    "InstallGitHooksStep",
    "InitialIndexStep",
    "AuxServiceStep",
]
