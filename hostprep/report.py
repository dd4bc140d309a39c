from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Tuple

from .errors import ReportWriteError
from .ledger import LedgerEntry, LedgerSummary, OutcomeStatus
from .lib.command import fmt_argv
from .lib.distro import DistroProfile
from .lib.hostinfo import HostMeta
from .lib.pkgmap import NOT_APPLICABLE, map_name
from .packages import DOTFILES

logger = logging.getLogger(__name__)

_RULE = "=" * 64
_TS = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class Timing:
    started_at: _dt.datetime
    finished_at: _dt.datetime

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()


@dataclass(frozen=True)
class OutputPaths:
    log_path: str
    report_path: str
    summary_path: str


@dataclass(frozen=True)
class ReportDocument:
    """Write-once snapshot of a finished (or interrupted) run."""

    host: HostMeta
    timing: Timing
    distro_family: str
    package_manager: str
    counts: Dict[str, int]
    entries: Tuple[LedgerEntry, ...]
    error_details: Tuple[str, ...]
    troubleshooting: Tuple[str, ...]
    paths: OutputPaths
    interrupted: bool = False

    def _names(self, status: OutcomeStatus) -> List[LedgerEntry]:
        return [e for e in self.entries if e.outcome.status is status]

    def to_text(self) -> str:
        lines: List[str] = []

        def section(title: str) -> None:
            lines.extend(["", _RULE, title, _RULE])

        lines.append("HOST PROVISIONING REPORT")

        section("EXECUTION SUMMARY")
        if self.interrupted:
            lines.append("Run interrupted before completion")
        lines.append(f"Started:   {self.timing.started_at.strftime(_TS)}")
        lines.append(f"Finished:  {self.timing.finished_at.strftime(_TS)}")
        lines.append(f"Duration:  {self.timing.duration_seconds:.0f}s")
        lines.append(f"Installed: {self.counts['installed']}")
        lines.append(f"Skipped:   {self.counts['skipped']}")
        lines.append(f"Failed:    {self.counts['failed']}")
        lines.append(f"Total:     {self.counts['total']}")

        section("SYSTEM INFORMATION")
        lines.append(f"OS:              {self.host.os_name}")
        lines.append(f"Kernel:          {self.host.kernel}")
        lines.append(f"Architecture:    {self.host.architecture}")
        lines.append(f"Hostname:        {self.host.hostname}")
        lines.append(f"Distro family:   {self.distro_family}")
        lines.append(f"Package manager: {self.package_manager}")

        section("FAILED PACKAGES")
        failed = self._names(OutcomeStatus.FAILED)
        for e in failed:
            lines.append(
                f"  x {e.spec.name} (attempts: {e.outcome.attempts}, "
                f"attempts exhausted: {'yes' if e.outcome.attempts_exhausted else 'no'})"
            )
            if e.outcome.last_error:
                lines.append(f"      last error: {e.outcome.last_error}")
        if not failed:
            lines.append("None")

        section("SKIPPED PACKAGES")
        skipped = self._names(OutcomeStatus.SKIPPED)
        lines.extend(f"  - {e.spec.name}: {e.outcome.reason}" for e in skipped)
        if not skipped:
            lines.append("None")

        section("SUCCESSFUL PACKAGES")
        installed = self._names(OutcomeStatus.INSTALLED)
        lines.extend(f"  + {e.spec.name}" for e in installed)
        if not installed:
            lines.append("None")

        section("ERROR DETAILS")
        lines.extend(f"  {d}" for d in self.error_details)
        if not self.error_details:
            lines.append("No specific errors recorded")

        section("TROUBLESHOOTING SUGGESTIONS")
        lines.extend(f"  {t}" for t in self.troubleshooting)
        if not self.troubleshooting:
            lines.append("None needed")

        section("OUTPUT FILES")
        lines.append(f"Log file:     {self.paths.log_path}")
        lines.append(f"Report file:  {self.paths.report_path}")
        lines.append(f"Summary file: {self.paths.summary_path}")

        return "\n".join(lines) + "\n"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host.to_dict(),
            "started_at": self.timing.started_at.isoformat(),
            "finished_at": self.timing.finished_at.isoformat(),
            "interrupted": self.interrupted,
            "distro_family": self.distro_family,
            "package_manager": self.package_manager,
            "counts": dict(self.counts),
            "packages": [
                {"name": e.spec.name, "required": e.spec.required, **e.outcome.to_dict()} for e in self.entries
            ],
            "error_details": list(self.error_details),
            "troubleshooting": list(self.troubleshooting),
            "paths": {
                "log": self.paths.log_path,
                "report": self.paths.report_path,
                "summary": self.paths.summary_path,
            },
        }


def troubleshooting_hints(
    summary: LedgerSummary,
    profile: DistroProfile,
    paths: OutputPaths,
    *,
    dotfiles_repo: str = "<repo-url>",
) -> List[str]:
    """Concrete follow-up commands, only when something failed."""

    failed = summary.with_status(OutcomeStatus.FAILED)
    if not failed:
        return []

    hints = [
        f"Refresh repositories: {fmt_argv(profile.update_command)}",
        *(f"Repair package state: {fmt_argv(argv)}" for argv in profile.repair_commands),
    ]
    for e in failed:
        if e.spec.name == DOTFILES.name:
            hints.append(f"Clone dotfiles manually as your user: yadm clone {dotfiles_repo}")
            continue
        concrete = map_name(e.spec.name, profile.family)
        if concrete is not NOT_APPLICABLE:
            hints.append(f"Retry {e.spec.name} manually: {fmt_argv(profile.install_argv(str(concrete)))}")
    if profile.needs_epel:
        hints.append(f"Some packages need EPEL: {fmt_argv(profile.install_argv('epel-release'))}")
    hints.append(f"Check the log for command output: {paths.log_path}")
    return hints


def render_report(
    summary: LedgerSummary,
    host: HostMeta,
    timing: Timing,
    profile: DistroProfile,
    paths: OutputPaths,
    *,
    interrupted: bool = False,
    dotfiles_repo: str = "<repo-url>",
) -> ReportDocument:
    return ReportDocument(
        host=host,
        timing=timing,
        distro_family=profile.family.value,
        package_manager=profile.package_manager,
        counts=summary.counts(),
        entries=summary.entries,
        error_details=summary.error_details,
        troubleshooting=tuple(troubleshooting_hints(summary, profile, paths, dotfiles_repo=dotfiles_repo)),
        paths=paths,
        interrupted=interrupted,
    )


def write_report(document: ReportDocument, path: str) -> None:
    p = Path(path)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(document.to_text(), encoding="utf-8")
    except OSError as e:
        raise ReportWriteError(f"Cannot write report to {path}: {e}") from e
    logger.info("Report written to %s", p)
