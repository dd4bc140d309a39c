from unittest import mock

import pytest

from hostprep.ledger import REASON_NOT_APPLICABLE, OutcomeStatus
from hostprep.lib.command import CmdResult
from hostprep.lib.distro import resolve_profile
from hostprep.lib.installer import MAX_RETRY_ATTEMPTS, RETRY_DELAY, PackageInstaller

from conftest import FakeRunner, which_all


def make_installer(distro_id="ubuntu", runner=None, **kwargs):
    profile = resolve_profile(distro_id, which=which_all)
    sleep = kwargs.pop("sleep", mock.Mock())
    return PackageInstaller(profile, runner=runner or FakeRunner(), sleep=sleep, **kwargs)


def test_first_success_stops():
    runner = FakeRunner()
    installer = make_installer(runner=runner)

    outcome = installer.install("git")

    assert outcome.status is OutcomeStatus.INSTALLED
    assert runner.calls == [["apt-get", "install", "-y", "git"]]
    assert len(installer.attempts) == 1


def test_fails_twice_then_succeeds_on_third():
    runner = FakeRunner(fail_installs={"git": 2})
    sleep = mock.Mock()
    installer = make_installer(runner=runner, sleep=sleep)

    outcome = installer.install("git")

    assert outcome.status is OutcomeStatus.INSTALLED
    assert outcome.attempts == 3
    assert len(runner.installs_of("git")) == 3
    assert [a.succeeded for a in installer.attempts] == [False, False, True]
    assert sleep.call_args_list == [mock.call(RETRY_DELAY), mock.call(RETRY_DELAY)]


def test_repair_and_refresh_run_between_attempts():
    runner = FakeRunner(fail_installs={"git": 1})
    installer = make_installer(runner=runner)

    installer.install("git")

    assert runner.calls == [
        ["apt-get", "install", "-y", "git"],
        ["apt-get", "--fix-broken", "install", "-y"],
        ["apt-get", "update"],
        ["apt-get", "install", "-y", "git"],
    ]


def test_exhaustion_reports_last_error():
    runner = FakeRunner(fail_installs={"curl": 99}, error_text="No match for argument: curl")
    sleep = mock.Mock()
    installer = make_installer("rocky", runner=runner, sleep=sleep)

    outcome = installer.install("curl")

    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.attempts_exhausted
    assert outcome.last_error == "No match for argument: curl"
    assert len(runner.installs_of("curl")) == MAX_RETRY_ATTEMPTS
    # no repair after the final attempt
    assert runner.calls.count(["dnf", "check"]) == MAX_RETRY_ATTEMPTS - 1
    assert runner.calls.count(["dnf", "autoremove", "-y"]) == MAX_RETRY_ATTEMPTS - 1
    assert sleep.call_count == MAX_RETRY_ATTEMPTS - 1


def test_failing_repair_does_not_stop_retries():
    runner = FakeRunner(
        fail_installs={"git": 1},
        fail_commands=[["dnf", "check"], ["dnf", "makecache"]],
    )
    installer = make_installer("fedora", runner=runner)

    outcome = installer.install("git")

    assert outcome.status is OutcomeStatus.INSTALLED
    # autoremove is skipped once check fails
    assert ["dnf", "autoremove", "-y"] not in runner.calls


def test_not_applicable_makes_no_attempt():
    runner = FakeRunner()
    installer = make_installer("alpine", runner=runner)

    outcome = installer.install("tlp")

    assert outcome.status is OutcomeStatus.SKIPPED
    assert outcome.reason == REASON_NOT_APPLICABLE
    assert runner.calls == []


def test_mapped_name_is_installed():
    runner = FakeRunner()
    make_installer("alpine", runner=runner).install("python3-pip")
    assert runner.calls == [["apk", "add", "py3-pip"]]


def test_timeout_and_env_are_passed_to_runner():
    runner = FakeRunner()
    make_installer(runner=runner, attempt_timeout=30).install("git")
    assert runner.kwargs[0]["timeout"] == 30
    assert runner.kwargs[0]["env"]["DEBIAN_FRONTEND"] == "noninteractive"


def test_silent_failure_has_empty_error():
    runner = mock.Mock(return_value=CmdResult(argv=[], returncode=1, stdout="", stderr=""))
    outcome = make_installer(runner=runner).install("git")
    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.last_error == ""


def test_max_attempts_must_be_positive():
    with pytest.raises(ValueError):
        make_installer(max_attempts=0)


def test_retry_policy_follows_installer_settings():
    runner = FakeRunner(fail_installs={"git": 99})
    sleep = mock.Mock()
    installer = make_installer(runner=runner, sleep=sleep, max_attempts=5, retry_delay=0.5)

    outcome = installer.install("git")

    assert outcome.attempts == 5
    assert [a.attempt for a in installer.attempts] == [1, 2, 3, 4, 5]
    assert sleep.call_args_list == [mock.call(0.5)] * 4
    assert runner.calls.count(["apt-get", "update"]) == 4


def test_single_attempt_never_recovers():
    runner = FakeRunner(fail_installs={"git": 99})
    sleep = mock.Mock()
    outcome = make_installer(runner=runner, sleep=sleep, max_attempts=1).install("git")

    assert outcome.status is OutcomeStatus.FAILED
    assert outcome.attempts == 1
    assert runner.calls == [["apt-get", "install", "-y", "git"]]
    sleep.assert_not_called()


def test_runner_exception_is_not_retried():
    runner = mock.Mock(side_effect=RuntimeError("runner exploded"))
    sleep = mock.Mock()
    installer = make_installer(runner=runner, sleep=sleep)

    with pytest.raises(RuntimeError, match="runner exploded"):
        installer.install("git")
    assert runner.call_count == 1
    sleep.assert_not_called()


def test_installer_state_resets_between_packages():
    runner = FakeRunner(fail_installs={"git": 1})
    installer = make_installer(runner=runner)

    installer.install("git")
    assert len(installer.attempts) == 2
    outcome = installer.install("curl")
    assert outcome.attempts == 1
    assert [a.attempt for a in installer.attempts] == [1]
