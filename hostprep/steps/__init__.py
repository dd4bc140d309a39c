from .step_10_refresh_repos import RefreshReposStep
from .step_20_enable_epel import EnableEpelStep
from .step_30_required_packages import RequiredPackagesStep
from .step_40_optional_packages import OptionalPackagesStep
from .step_50_clone_dotfiles import CloneDotfilesStep

__all__ = [
    "RefreshReposStep",
    "EnableEpelStep",
    "RequiredPackagesStep",
    "OptionalPackagesStep",
    "CloneDotfilesStep",
]
