from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pytest

from hostprep.lib.command import CmdResult
from hostprep.logging_utils import reset_logging


class FakeRunner:
    """Stands in for run_cmd. Every command succeeds unless told otherwise.

    fail_installs maps a concrete package name to how many install attempts
    of it fail before one succeeds (a large number means it never succeeds).
    """

    def __init__(
        self,
        fail_installs: Optional[Dict[str, int]] = None,
        fail_commands: Sequence[Sequence[str]] = (),
        error_text: str = "E: Unable to locate package",
    ) -> None:
        self.fail_installs = dict(fail_installs or {})
        self.fail_commands = [list(c) for c in fail_commands]
        self.error_text = error_text
        self.calls: List[List[str]] = []
        self.kwargs: List[dict] = []

    def __call__(self, argv, *, env=None, cwd=None, timeout=None):
        argv = list(argv)
        self.calls.append(argv)
        self.kwargs.append({"env": env, "cwd": cwd, "timeout": timeout})

        rc = 0
        if argv in self.fail_commands:
            rc = 1
        elif self._is_install(argv) and self.fail_installs.get(argv[-1], 0) > 0:
            self.fail_installs[argv[-1]] -= 1
            rc = 100
        return CmdResult(argv=argv, returncode=rc, stdout="", stderr=self.error_text if rc else "")

    @staticmethod
    def _is_install(argv: List[str]) -> bool:
        return ("install" in argv or argv[:2] == ["apk", "add"]) and "--fix-broken" not in argv

    def installs_of(self, package: str) -> List[List[str]]:
        return [c for c in self.calls if self._is_install(c) and c[-1] == package]


def which_all(name: str) -> str:
    return f"/usr/bin/{name}"


def which_none(name: str) -> None:
    return None


def no_sleep(seconds: float) -> None:
    return None


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    reset_logging()


@pytest.fixture
def os_release(tmp_path):
    def _write(distro_id: str, pretty: str = "") -> str:
        path = tmp_path / "os-release"
        lines = [f"ID={distro_id}"]
        if pretty:
            lines.append(f'PRETTY_NAME="{pretty}"')
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return str(path)

    return _write
