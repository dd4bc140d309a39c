"""hostprep: distro-agnostic host provisioning.

Core design goals:
- One distro profile table, resolved once per run
- Bounded retries with repair and refresh between attempts
- No fail-fast: every package ends up in the ledger
- A report is written on every exit path once the run has started
- Centralized logging
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
