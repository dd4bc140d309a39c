from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence

from .ledger import OutcomeAggregator, OutcomeStatus, PackageOutcome
from .lib.command import Runner, run_cmd
from .lib.distro import DistroProfile
from .lib.dotfiles import DotfilesResult
from .lib.installer import PackageInstaller
from .lib.prompt import YesNo
from .packages import PackageSpec

logger = logging.getLogger(__name__)


@dataclass
class ProvisionCtx:
    """Everything the steps of one run share.

    The aggregator is the only mutable state; steps append to it through
    record() and never read back from it.
    """

    profile: DistroProfile
    aggregator: OutcomeAggregator
    installer: PackageInstaller
    prompt: YesNo
    dotfiles: Callable[[], DotfilesResult]
    required: Sequence[PackageSpec] = ()
    optional: Sequence[PackageSpec] = ()
    dotfiles_enabled: bool = True
    dotfiles_repo: str = ""
    runner: Runner = run_cmd
    attempt_timeout: Optional[float] = None

    def record(self, spec: PackageSpec, outcome: PackageOutcome) -> None:
        self.aggregator.record(spec, outcome)
        if outcome.status is OutcomeStatus.FAILED:
            self.aggregator.add_error(f"{spec.name}: {outcome.last_error or 'no diagnostic output'}")


class Step(Protocol):
    """A single provisioning phase."""

    step_id: str

    def run(self, ctx: ProvisionCtx) -> None:
        ...


def run_pipeline(ctx: ProvisionCtx, steps: Sequence[Step]) -> None:
    """Run steps in order. Package failures are ledger entries, never exceptions."""

    for step in steps:
        logger.info("Running step %s", step.step_id)
        step.run(ctx)
