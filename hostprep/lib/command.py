from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Callable, Mapping, Sequence

logger = logging.getLogger(__name__)

# Conventional shell codes, used when the process never produced one.
RC_TIMEOUT = 124
RC_CANNOT_EXECUTE = 126
RC_NOT_FOUND = 127


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def diagnostic(self) -> str:
        """Best available error text: stderr, else stdout, else empty."""
        return (self.stderr or self.stdout or "").strip()


# Anything with run_cmd's signature can stand in for it (tests use fakes).
Runner = Callable[..., CmdResult]


def fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_cmd(
    argv: Sequence[str],
    *,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
    timeout: float | None = None,
) -> CmdResult:
    """Run a command with consistent logging.

    - Always logs the command.
    - Captures stdout/stderr so callers can record diagnostics.
    - A missing or non-executable program, or an expired timeout, is
      reported as a failed result (127 / 126 / 124) rather than an
      exception. Callers decide what a nonzero code means.
    """

    argv_list = list(argv)
    logger.info("CMD %s", fmt_argv(argv_list))

    try:
        p = subprocess.run(
            argv_list,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=cwd,
            env=dict(os.environ, **(env or {})),
            timeout=timeout,
        )
    except FileNotFoundError as e:
        result = CmdResult(argv=argv_list, returncode=RC_NOT_FOUND, stdout="", stderr=str(e))
    except OSError as e:
        result = CmdResult(argv=argv_list, returncode=RC_CANNOT_EXECUTE, stdout="", stderr=str(e))
    except subprocess.TimeoutExpired as e:
        stdout = e.stdout.decode(errors="replace") if isinstance(e.stdout, bytes) else (e.stdout or "")
        result = CmdResult(
            argv=argv_list,
            returncode=RC_TIMEOUT,
            stdout=stdout,
            stderr=f"timed out after {timeout}s",
        )
    else:
        result = CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout, stderr=p.stderr)

    if result.stdout:
        logger.debug("STDOUT %s", result.stdout.strip())
    if result.stderr:
        logger.debug("STDERR %s", result.stderr.strip())

    return result
