from __future__ import annotations

import enum
import logging
import shutil
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional, Tuple

from ..errors import UnsupportedDistro
from ..logging_utils import log_success

logger = logging.getLogger(__name__)

Argv = Tuple[str, ...]


class DistroFamily(str, enum.Enum):
    DEBIAN = "debian"
    ALPINE = "alpine"
    RHEL_LIKE = "rhel-like"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class DistroProfile:
    """Package-manager commands for one distro family.

    Commands are argv tuples. The installer appends the concrete package
    name as a separate argument; nothing else is ever interpolated.
    """

    family: DistroFamily
    distro_id: str
    package_manager: str
    update_command: Argv
    install_command_prefix: Argv
    repair_commands: Tuple[Argv, ...]
    env: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    needs_epel: bool = False

    def install_argv(self, package: str) -> Argv:
        return (*self.install_command_prefix, package)


_FAMILY_BY_ID: Dict[str, DistroFamily] = {
    "ubuntu": DistroFamily.DEBIAN,
    "debian": DistroFamily.DEBIAN,
    "alpine": DistroFamily.ALPINE,
    "rocky": DistroFamily.RHEL_LIKE,
    "rhel": DistroFamily.RHEL_LIKE,
    "centos": DistroFamily.RHEL_LIKE,
    "fedora": DistroFamily.RHEL_LIKE,
    "almalinux": DistroFamily.RHEL_LIKE,
}

SUPPORTED_IDS = tuple(sorted(_FAMILY_BY_ID))

# EPEL targets RHEL and its rebuilds, not Fedora.
_EPEL_IDS = frozenset({"rhel", "centos", "rocky", "almalinux"})


def family_for(distro_id: str) -> DistroFamily:
    return _FAMILY_BY_ID.get(distro_id.strip().strip('"').lower(), DistroFamily.UNSUPPORTED)


def _debian(distro_id: str) -> DistroProfile:
    return DistroProfile(
        family=DistroFamily.DEBIAN,
        distro_id=distro_id,
        package_manager="apt-get",
        update_command=("apt-get", "update"),
        install_command_prefix=("apt-get", "install", "-y"),
        repair_commands=(("apt-get", "--fix-broken", "install", "-y"),),
        env=MappingProxyType({"DEBIAN_FRONTEND": "noninteractive"}),
    )


def _alpine(distro_id: str) -> DistroProfile:
    return DistroProfile(
        family=DistroFamily.ALPINE,
        distro_id=distro_id,
        package_manager="apk",
        update_command=("apk", "update"),
        install_command_prefix=("apk", "add"),
        repair_commands=(("apk", "fix"),),
    )


def _rhel_like(distro_id: str, mgr: str) -> DistroProfile:
    return DistroProfile(
        family=DistroFamily.RHEL_LIKE,
        distro_id=distro_id,
        package_manager=mgr,
        update_command=(mgr, "makecache"),
        install_command_prefix=(mgr, "install", "-y"),
        repair_commands=((mgr, "check"), (mgr, "autoremove", "-y")),
        needs_epel=distro_id in _EPEL_IDS,
    )


def resolve_profile(
    distro_id: str,
    *,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> DistroProfile:
    """Map an os-release ID to its profile, or raise UnsupportedDistro."""

    normalized = distro_id.strip().strip('"').lower()
    family = family_for(normalized)

    if family is DistroFamily.DEBIAN:
        profile = _debian(normalized)
    elif family is DistroFamily.ALPINE:
        profile = _alpine(normalized)
    elif family is DistroFamily.RHEL_LIKE:
        # Older RHEL/CentOS hosts only ship yum.
        mgr = "dnf" if which("dnf") else "yum"
        profile = _rhel_like(normalized, mgr)
    else:
        logger.error(
            "Unsupported distribution: %s (supported: %s)", distro_id, ", ".join(SUPPORTED_IDS)
        )
        raise UnsupportedDistro(distro_id)

    log_success(logger, "Detected distribution: %s (using %s)", profile.family.value, profile.package_manager)
    return profile
