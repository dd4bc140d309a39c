from __future__ import annotations

import logging

from ..lib.pkg import refresh_repositories
from ..pipeline import ProvisionCtx

logger = logging.getLogger(__name__)


class RefreshReposStep:
    step_id = "10_refresh_repos"

    def run(self, ctx: ProvisionCtx) -> None:
        logger.info("Performing initial repository update...")
        refresh_repositories(ctx.profile, runner=ctx.runner, timeout=ctx.attempt_timeout)
