from __future__ import annotations

import logging

from ..ledger import REASON_DECLINED, PackageOutcome
from ..packages import DOTFILES
from ..pipeline import ProvisionCtx

logger = logging.getLogger(__name__)

REASON_DISABLED = "disabled by configuration"


class CloneDotfilesStep:
    step_id = "50_clone_dotfiles"

    def run(self, ctx: ProvisionCtx) -> None:
        if not ctx.dotfiles_enabled:
            logger.info("Dotfiles clone disabled")
            ctx.record(DOTFILES, PackageOutcome.skipped(REASON_DISABLED))
            return

        if not ctx.prompt(f"Want to clone dotfiles from {ctx.dotfiles_repo}?"):
            logger.info("Skipping dotfiles installation")
            ctx.record(DOTFILES, PackageOutcome.skipped(REASON_DECLINED))
            return

        result = ctx.dotfiles()
        if result.ok:
            ctx.record(DOTFILES, PackageOutcome.installed(attempts=1))
        else:
            ctx.record(DOTFILES, PackageOutcome.failed(result.detail, attempts_exhausted=False, attempts=1))
