from __future__ import annotations


class HostprepError(Exception):
    """Base class for all hostprep errors."""


class FatalPrecondition(HostprepError):
    """Aborts the run before any package is processed. No report is written."""


class PrivilegeError(FatalPrecondition):
    pass


class HostIdentityError(FatalPrecondition):
    pass


class UnsupportedDistro(FatalPrecondition):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unsupported distribution: {name or '<empty>'}")
        self.name = name


class ConfigError(FatalPrecondition):
    pass


class UnmappedPackage(HostprepError):
    """A (logical name, family) pair missing from the name table."""

    def __init__(self, name: str, family: str) -> None:
        super().__init__(f"No package mapping for {name!r} on family {family}")
        self.name = name
        self.family = family


class DuplicateOutcome(HostprepError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Outcome for {name!r} already recorded")
        self.name = name


class ReportWriteError(HostprepError):
    pass


class ProvisioningInterrupted(HostprepError):
    def __init__(self, signum: int) -> None:
        super().__init__(f"Interrupted by signal {signum}")
        self.signum = signum
