from __future__ import annotations

import datetime as _dt
import logging
import signal
from pathlib import Path
from types import FrameType, TracebackType
from typing import Callable, Dict, Optional, Type

from .errors import ProvisioningInterrupted, ReportWriteError
from .ledger import OutcomeAggregator, OutcomeStatus
from .lib.distro import DistroProfile
from .lib.hostinfo import HostMeta
from .logging_utils import log_success
from .report import OutputPaths, ReportDocument, Timing, render_report, write_report
from .state_store import save_summary

logger = logging.getLogger(__name__)

_HANDLED_SIGNALS = (signal.SIGTERM, signal.SIGHUP)


def report_paths(output_dir: str, run_stamp: str, log_path: str, summary_format: str = "json") -> OutputPaths:
    out = Path(output_dir)
    return OutputPaths(
        log_path=log_path,
        report_path=str(out / f"hostprep_report_{run_stamp}.txt"),
        summary_path=str(out / f"hostprep_summary_{run_stamp}.{summary_format}"),
    )


def _raise_interrupted(signum: int, frame: Optional[FrameType]) -> None:
    raise ProvisioningInterrupted(signum)


class ProvisioningRun:
    """Scoped finalizer for one run.

    Entering installs SIGTERM/SIGHUP handlers that unwind the stack;
    leaving (normally, on error or on interrupt) renders and persists the
    report exactly once. Persistence failure raises ReportWriteError.
    """

    def __init__(
        self,
        *,
        profile: DistroProfile,
        aggregator: OutcomeAggregator,
        host: HostMeta,
        paths: OutputPaths,
        started_at: _dt.datetime,
        dotfiles_repo: str = "<repo-url>",
        now: Callable[[], _dt.datetime] = _dt.datetime.now,
    ) -> None:
        self.profile = profile
        self.aggregator = aggregator
        self.host = host
        self.paths = paths
        self.started_at = started_at
        self.dotfiles_repo = dotfiles_repo
        self.now = now
        self.document: Optional[ReportDocument] = None
        self._previous: Dict[int, object] = {}

    def __enter__(self) -> "ProvisioningRun":
        for signum in _HANDLED_SIGNALS:
            try:
                self._previous[signum] = signal.signal(signum, _raise_interrupted)
            except ValueError:
                # Not the main thread; interrupts cannot be hooked here.
                logger.debug("Cannot install handler for signal %s", signum)
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> bool:
        for signum, handler in self._previous.items():
            # None: the previous handler was not installed from Python
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)  # type: ignore[arg-type]
        self._previous.clear()

        interrupted = exc_type is not None and issubclass(exc_type, (KeyboardInterrupt, ProvisioningInterrupted))
        if interrupted:
            logger.error("Run interrupted (%s), writing report before exit", exc or exc_type.__name__)
        elif exc is not None:
            logger.exception("Run aborted by unexpected error", exc_info=(exc_type, exc, tb))

        self.finalize(interrupted=interrupted or exc is not None)
        return False

    def finalize(self, *, interrupted: bool = False) -> ReportDocument:
        if self.document is not None:
            return self.document

        summary = self.aggregator.summary()
        document = render_report(
            summary,
            self.host,
            Timing(started_at=self.started_at, finished_at=self.now()),
            self.profile,
            self.paths,
            interrupted=interrupted,
            dotfiles_repo=self.dotfiles_repo,
        )
        self.document = document

        write_report(document, self.paths.report_path)
        try:
            save_summary(self.paths.summary_path, document.to_dict())
        except OSError as e:
            raise ReportWriteError(f"Cannot write summary to {self.paths.summary_path}: {e}") from e

        failed = summary.with_status(OutcomeStatus.FAILED)
        if not failed:
            log_success(logger, "All requested packages installed successfully!")
        else:
            logger.warning(
                "Installation completed with some failures: %s", ", ".join(e.spec.name for e in failed)
            )
            logger.warning("Check log file for details: %s", self.paths.log_path)
        logger.info("Report: %s", self.paths.report_path)
        return document
