from __future__ import annotations

import argparse
import datetime as _dt
import logging
import os
import shutil
import time
from typing import Callable, Mapping, Optional

from . import __version__
from .config import ProvisionConfig, load_config
from .errors import (
    FatalPrecondition,
    PrivilegeError,
    ProvisioningInterrupted,
    ReportWriteError,
)
from .ledger import OutcomeAggregator
from .lib.command import Runner, run_cmd
from .lib.distro import resolve_profile
from .lib.dotfiles import clone_dotfiles, target_user
from .lib.hostinfo import collect_host_meta
from .lib.installer import PackageInstaller
from .lib.osrelease import read_os_release
from .lib.prompt import YesNo, make_prompt
from .logging_utils import configure_logging, resolve_output_dir
from .pipeline import ProvisionCtx, run_pipeline
from .report import ReportDocument
from .run_context import ProvisioningRun, report_paths
from .steps import (
    CloneDotfilesStep,
    EnableEpelStep,
    OptionalPackagesStep,
    RefreshReposStep,
    RequiredPackagesStep,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_PRECONDITION = 2
EXIT_REPORT = 3


def build_steps():
    return [
        RefreshReposStep(),
        EnableEpelStep(),
        RequiredPackagesStep(),
        OptionalPackagesStep(),
        CloneDotfilesStep(),
    ]


def ensure_root() -> None:
    if os.geteuid() != 0:
        raise PrivilegeError("hostprep must be run as root or with sudo privileges")


def run(
    config: ProvisionConfig,
    *,
    runner: Runner = run_cmd,
    prompt: Optional[YesNo] = None,
    which: Callable[[str], Optional[str]] = shutil.which,
    sleep: Callable[[float], None] = time.sleep,
    environ: Mapping[str, str] = os.environ,
    check_root: bool = True,
    now: Callable[[], _dt.datetime] = _dt.datetime.now,
) -> ReportDocument:
    """Provision this host and return the persisted report.

    FatalPrecondition is raised before the run context exists, so nothing
    is recorded and no report is written. From then on the report is
    written on every exit path.
    """

    started_at = now()
    run_stamp = started_at.strftime("%Y%m%d_%H%M%S")

    config.validate()
    output_dir = resolve_output_dir(config.output_dir)
    log_path = configure_logging(output_dir, run_stamp)
    logger.info("hostprep %s starting (user=%s cwd=%s)", __version__, environ.get("USER", "?"), os.getcwd())

    if check_root:
        ensure_root()
    identity = read_os_release(config.os_release)
    profile = resolve_profile(identity["ID"], which=which)

    aggregator = OutcomeAggregator()
    installer = PackageInstaller(
        profile,
        runner=runner,
        sleep=sleep,
        retry_delay=config.retry_delay,
        attempt_timeout=config.attempt_timeout,
    )
    user, home = target_user(environ)
    repo = config.dotfiles_repo

    ctx = ProvisionCtx(
        profile=profile,
        aggregator=aggregator,
        installer=installer,
        prompt=prompt or make_prompt(),
        dotfiles=lambda: clone_dotfiles(repo, user, home, runner=runner, which=which, timeout=config.attempt_timeout),
        required=config.required,
        optional=config.optional,
        dotfiles_enabled=config.dotfiles_enabled,
        dotfiles_repo=repo,
        runner=runner,
        attempt_timeout=config.attempt_timeout,
    )

    paths = report_paths(output_dir, run_stamp, log_path, config.summary_format)
    with ProvisioningRun(
        profile=profile,
        aggregator=aggregator,
        host=collect_host_meta(identity),
        paths=paths,
        started_at=started_at,
        dotfiles_repo=repo,
        now=now,
    ) as provisioning:
        run_pipeline(ctx, build_steps())

    assert provisioning.document is not None
    return provisioning.document


def exit_code_for(document: ReportDocument) -> int:
    return EXIT_OK if document.counts["failed"] == 0 else EXIT_FAILURES


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="hostprep", description="Provision a fresh Linux host.")
    p.add_argument("--config", default=None, help="Path to YAML configuration")
    p.add_argument("--output-dir", default=None, help="Directory for log, report and summary")
    p.add_argument("--os-release", default=None, help="Host identity file (default /etc/os-release)")
    answers = p.add_mutually_exclusive_group()
    answers.add_argument("--yes", action="store_true", help="Answer yes to every prompt")
    answers.add_argument("--no-optional", action="store_true", help="Decline every optional prompt")
    p.add_argument("--no-dotfiles", action="store_true", help="Do not clone dotfiles")
    p.add_argument("--dotfiles-repo", default=None, help="Dotfiles repository URL")
    p.add_argument("--attempt-timeout", type=float, default=None, help="Seconds per package-manager command")
    p.add_argument("--skip-root-check", action="store_true", help="Do not require uid 0")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = p.parse_args(argv)

    assume: Optional[bool] = None
    if args.yes:
        assume = True
    elif args.no_optional:
        assume = False

    try:
        config = load_config(args.config).with_overrides(
            **{
                "paths.output_dir": args.output_dir,
                "paths.os_release": args.os_release,
                "dotfiles.repo": args.dotfiles_repo,
                "dotfiles.enabled": False if args.no_dotfiles else None,
                "install.attempt_timeout": args.attempt_timeout,
            }
        )
        document = run(config, prompt=make_prompt(assume=assume), check_root=not args.skip_root_check)
    except FatalPrecondition as e:
        logger.error("%s", e)
        return EXIT_PRECONDITION
    except ReportWriteError as e:
        logger.error("%s", e)
        return EXIT_REPORT
    except ProvisioningInterrupted as e:
        return 128 + e.signum
    except KeyboardInterrupt:
        return 130

    return exit_code_for(document)
