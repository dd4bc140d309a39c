from __future__ import annotations

import getpass
import logging
import os
import pwd
import shutil
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Tuple

from ..logging_utils import log_success
from .command import Runner, run_cmd

logger = logging.getLogger(__name__)

DEFAULT_DOTFILES_REPO = "https://github.com/Bini88dev/dotfileslin.git"


@dataclass(frozen=True)
class DotfilesResult:
    ok: bool
    detail: str = ""


def target_user(environ: Mapping[str, str] = os.environ) -> Tuple[str, str]:
    """(user, home) the dotfiles belong to: the sudo caller if any, else us."""

    user = environ.get("SUDO_USER") or getpass.getuser()
    try:
        home = pwd.getpwnam(user).pw_dir
    except KeyError:
        home = os.path.expanduser(f"~{user}")
    return user, home


def clone_dotfiles(
    repo_url: str,
    user: str,
    home: str,
    *,
    runner: Runner = run_cmd,
    which: Callable[[str], Optional[str]] = shutil.which,
    timeout: Optional[float] = None,
) -> DotfilesResult:
    """Clone repo_url with yadm as user, never as the privileged caller."""

    logger.info("Setting up dotfiles for %s (home %s)", user, home)

    if not which("yadm"):
        logger.error("yadm is not available. Cannot clone dotfiles.")
        return DotfilesResult(False, "yadm is not available")

    if user != "root":
        argv = ["sudo", "-u", user, "-H", "yadm", "clone", "-f", repo_url]
    else:
        logger.warning("Running as root user. Cloning dotfiles to root home directory...")
        argv = ["yadm", "clone", "-f", repo_url]

    r = runner(argv, cwd=home, timeout=timeout)
    if r.returncode == 0:
        log_success(logger, "Dotfiles cloned successfully")
        return DotfilesResult(True)

    detail = r.diagnostic or f"yadm clone exited with {r.returncode}"
    logger.error("Failed to clone dotfiles repository: %s", detail)
    logger.info("You can manually run: yadm clone %s", repo_url)
    return DotfilesResult(False, detail)
