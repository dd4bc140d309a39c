from __future__ import annotations

import logging
from typing import Optional

from ..logging_utils import log_success
from .command import Runner, run_cmd
from .distro import DistroFamily, DistroProfile

logger = logging.getLogger(__name__)


def refresh_repositories(
    profile: DistroProfile,
    *,
    runner: Runner = run_cmd,
    timeout: Optional[float] = None,
) -> bool:
    """Best-effort repository refresh. Never raises on a failed command."""

    logger.info("Updating package repositories...")
    r = runner(profile.update_command, env=profile.env, timeout=timeout)
    if r.returncode == 0:
        log_success(logger, "Package repositories updated successfully")
        return True
    logger.warning("Failed to update repositories (rc=%s), continuing anyway", r.returncode)
    return False


def repair_packages(
    profile: DistroProfile,
    *,
    runner: Runner = run_cmd,
    timeout: Optional[float] = None,
) -> bool:
    """Best-effort repair of broken package-manager state.

    Runs every repair command in order and stops at the first failure.
    """

    logger.info("Attempting to fix broken packages...")
    for argv in profile.repair_commands:
        r = runner(argv, env=profile.env, timeout=timeout)
        if r.returncode != 0:
            logger.warning("Package repair had issues (rc=%s), continuing", r.returncode)
            return False
    log_success(logger, "Package repair completed successfully")
    return True


def package_installed(profile: DistroProfile, package: str, *, runner: Runner = run_cmd) -> bool:
    """Return True if the package database reports package as installed.

    Only rpm-based families are queried; elsewhere this returns False.
    """

    if profile.family is not DistroFamily.RHEL_LIKE:
        return False
    r = runner(["rpm", "-q", package])
    return r.returncode == 0


def ensure_epel(
    profile: DistroProfile,
    *,
    runner: Runner = run_cmd,
    timeout: Optional[float] = None,
) -> None:
    """Install epel-release on RHEL-likes if missing. Failures are ignored."""

    if not profile.needs_epel:
        return
    if package_installed(profile, "epel-release", runner=runner):
        logger.info("EPEL repository already present")
        return
    logger.info("Installing EPEL repository...")
    r = runner(profile.install_argv("epel-release"), env=profile.env, timeout=timeout)
    if r.returncode == 0:
        log_success(logger, "EPEL repository installed")
    else:
        logger.warning("EPEL install failed (rc=%s), continuing without it", r.returncode)
