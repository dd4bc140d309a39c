from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .errors import DuplicateOutcome
from .packages import PackageSpec

logger = logging.getLogger(__name__)

REASON_NOT_APPLICABLE = "not applicable for distro"
REASON_DECLINED = "declined by user"


class OutcomeStatus(str, enum.Enum):
    INSTALLED = "installed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class PackageOutcome:
    """Terminal state for one package. Never revised once recorded."""

    status: OutcomeStatus
    reason: str = ""
    last_error: str = ""
    attempts_exhausted: bool = False
    attempts: int = 0

    @classmethod
    def installed(cls, *, attempts: int = 0) -> "PackageOutcome":
        return cls(OutcomeStatus.INSTALLED, attempts=attempts)

    @classmethod
    def skipped(cls, reason: str) -> "PackageOutcome":
        return cls(OutcomeStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, last_error: str, *, attempts_exhausted: bool, attempts: int = 0) -> "PackageOutcome":
        return cls(
            OutcomeStatus.FAILED,
            last_error=last_error,
            attempts_exhausted=attempts_exhausted,
            attempts=attempts,
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "status": self.status.value,
            "reason": self.reason,
            "last_error": self.last_error,
            "attempts_exhausted": self.attempts_exhausted,
            "attempts": self.attempts,
        }


@dataclass(frozen=True)
class LedgerEntry:
    spec: PackageSpec
    outcome: PackageOutcome


@dataclass(frozen=True)
class LedgerSummary:
    entries: Tuple[LedgerEntry, ...]
    error_details: Tuple[str, ...]

    def with_status(self, status: OutcomeStatus) -> List[LedgerEntry]:
        return [e for e in self.entries if e.outcome.status is status]

    @property
    def installed(self) -> int:
        return len(self.with_status(OutcomeStatus.INSTALLED))

    @property
    def skipped(self) -> int:
        return len(self.with_status(OutcomeStatus.SKIPPED))

    @property
    def failed(self) -> int:
        return len(self.with_status(OutcomeStatus.FAILED))

    @property
    def total(self) -> int:
        return len(self.entries)

    def counts(self) -> Dict[str, int]:
        return {
            "installed": self.installed,
            "skipped": self.skipped,
            "failed": self.failed,
            "total": self.total,
        }


@dataclass
class OutcomeAggregator:
    """Append-only ledger of package outcomes for one run.

    Single-threaded: the pipeline is the only writer.
    """

    _entries: List[LedgerEntry] = field(default_factory=list)
    _errors: List[str] = field(default_factory=list)
    _seen: set = field(default_factory=set)

    def record(self, spec: PackageSpec, outcome: PackageOutcome) -> None:
        if spec.name in self._seen:
            raise DuplicateOutcome(spec.name)
        self._seen.add(spec.name)
        self._entries.append(LedgerEntry(spec=spec, outcome=outcome))
        logger.debug("Recorded %s -> %s", spec.name, outcome.status.value)

    def add_error(self, detail: str) -> None:
        self._errors.append(detail)

    def summary(self) -> LedgerSummary:
        return LedgerSummary(entries=tuple(self._entries), error_details=tuple(self._errors))

    def __len__(self) -> int:
        return len(self._entries)
