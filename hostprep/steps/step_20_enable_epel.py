from __future__ import annotations

from ..lib.pkg import ensure_epel
from ..pipeline import ProvisionCtx


class EnableEpelStep:
    """RHEL and its rebuilds only: yadm and friends come from EPEL."""

    step_id = "20_enable_epel"

    def run(self, ctx: ProvisionCtx) -> None:
        ensure_epel(ctx.profile, runner=ctx.runner, timeout=ctx.attempt_timeout)
