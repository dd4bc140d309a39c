from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from tenacity import RetryCallState, Retrying, retry_if_result, stop_after_attempt, wait_fixed

from ..ledger import REASON_NOT_APPLICABLE, PackageOutcome
from ..logging_utils import log_retry, log_success
from .command import Runner, run_cmd
from .distro import DistroProfile
from .pkg import refresh_repositories, repair_packages
from .pkgmap import NOT_APPLICABLE, map_name

logger = logging.getLogger(__name__)

MAX_RETRY_ATTEMPTS = 3
RETRY_DELAY = 2.0


@dataclass(frozen=True)
class AttemptRecord:
    attempt: int
    succeeded: bool
    error_text: str = ""


class PackageInstaller:
    """Installs one package at a time with bounded retries.

    Retries are driven by tenacity: between a failed attempt and the next
    one, the profile's repair commands and repository refresh run (both
    best-effort), then the installer waits retry_delay seconds. The install
    command's exit status is the only success signal.
    """

    def __init__(
        self,
        profile: DistroProfile,
        *,
        runner: Runner = run_cmd,
        sleep: Callable[[float], None] = time.sleep,
        max_attempts: int = MAX_RETRY_ATTEMPTS,
        retry_delay: float = RETRY_DELAY,
        attempt_timeout: Optional[float] = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.profile = profile
        self.runner = runner
        self.sleep = sleep
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.attempt_timeout = attempt_timeout
        # Attempts of the most recent install() call, for inspection.
        self.attempts: List[AttemptRecord] = []

    def _attempt(self, concrete: str) -> AttemptRecord:
        attempt = len(self.attempts) + 1
        logger.info("Installing %s (attempt %d/%d)...", concrete, attempt, self.max_attempts)
        r = self.runner(self.profile.install_argv(concrete), env=self.profile.env, timeout=self.attempt_timeout)
        record = AttemptRecord(attempt=attempt, succeeded=r.returncode == 0, error_text=r.diagnostic)
        self.attempts.append(record)
        return record

    def _recover(self, retry_state: RetryCallState) -> None:
        attempt = retry_state.attempt_number
        log_retry(
            logger,
            "%s installation failed (attempt %d), retrying in %ss...",
            retry_state.args[0],
            attempt,
            self.retry_delay,
        )
        repair_packages(self.profile, runner=self.runner, timeout=self.attempt_timeout)
        refresh_repositories(self.profile, runner=self.runner, timeout=self.attempt_timeout)

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.retry_delay),
            retry=retry_if_result(lambda record: not record.succeeded),
            before_sleep=self._recover,
            sleep=self.sleep,
            # Exhaustion hands back the last failed record instead of raising RetryError.
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        )

    def install(self, logical_name: str) -> PackageOutcome:
        self.attempts = []

        concrete = map_name(logical_name, self.profile.family)
        if concrete is NOT_APPLICABLE:
            logger.warning("Skipping %s: %s (%s)", logical_name, REASON_NOT_APPLICABLE, self.profile.distro_id)
            return PackageOutcome.skipped(REASON_NOT_APPLICABLE)

        last = self._retrying()(self._attempt, str(concrete))
        if last.succeeded:
            log_success(logger, "%s installed successfully", logical_name)
            return PackageOutcome.installed(attempts=last.attempt)

        logger.error("%s installation failed after %d attempts", logical_name, last.attempt)
        return PackageOutcome.failed(last.error_text, attempts_exhausted=True, attempts=last.attempt)
