from __future__ import annotations

import logging

from ..ledger import REASON_DECLINED, PackageOutcome
from ..pipeline import ProvisionCtx

logger = logging.getLogger(__name__)


class OptionalPackagesStep:
    step_id = "40_optional_packages"

    def run(self, ctx: ProvisionCtx) -> None:
        logger.info("Checking optional packages...")
        for spec in ctx.optional:
            question = f"Want to install {spec.name}?"
            if spec.description:
                question = f"Want to install {spec.name} ({spec.description})?"
            if ctx.prompt(question):
                ctx.record(spec, ctx.installer.install(spec.name))
            else:
                logger.info("Skipping %s installation", spec.name)
                ctx.record(spec, PackageOutcome.skipped(REASON_DECLINED))
