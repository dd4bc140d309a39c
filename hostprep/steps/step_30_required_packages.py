from __future__ import annotations

import logging

from ..pipeline import ProvisionCtx

logger = logging.getLogger(__name__)


class RequiredPackagesStep:
    step_id = "30_required_packages"

    def run(self, ctx: ProvisionCtx) -> None:
        logger.info("Installing required packages: %s", ", ".join(p.name for p in ctx.required))
        for spec in ctx.required:
            ctx.record(spec, ctx.installer.install(spec.name))
