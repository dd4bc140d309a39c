import datetime as dt

import pytest

from hostprep.errors import ReportWriteError
from hostprep.ledger import OutcomeAggregator, PackageOutcome
from hostprep.lib.distro import resolve_profile
from hostprep.lib.hostinfo import HostMeta
from hostprep.packages import DOTFILES, PackageSpec
from hostprep.report import OutputPaths, Timing, render_report, write_report

from conftest import which_all

HOST = HostMeta(os_name="Rocky Linux 9.4", kernel="5.14.0", architecture="x86_64", hostname="box")
TIMING = Timing(started_at=dt.datetime(2026, 1, 2, 3, 4, 5), finished_at=dt.datetime(2026, 1, 2, 3, 6, 5))
PATHS = OutputPaths(log_path="/var/log/hostprep/a.log", report_path="/r.txt", summary_path="/s.json")


def _sections(text):
    order = [
        "EXECUTION SUMMARY",
        "SYSTEM INFORMATION",
        "FAILED PACKAGES",
        "SKIPPED PACKAGES",
        "SUCCESSFUL PACKAGES",
        "ERROR DETAILS",
        "TROUBLESHOOTING SUGGESTIONS",
        "OUTPUT FILES",
    ]
    return [text.index(title) for title in order]


def test_clean_run_report():
    agg = OutcomeAggregator()
    agg.record(PackageSpec("git", True), PackageOutcome.installed())
    profile = resolve_profile("ubuntu", which=which_all)

    doc = render_report(agg.summary(), HOST, TIMING, profile, PATHS)
    text = doc.to_text()

    positions = _sections(text)
    assert positions == sorted(positions)
    assert "No specific errors recorded" in text
    assert "None needed" in text
    assert "  + git" in text
    assert "Duration:  120s" in text
    assert doc.troubleshooting == ()


def test_failures_produce_troubleshooting_from_profile():
    agg = OutcomeAggregator()
    agg.record(PackageSpec("curl", True), PackageOutcome.failed("No match", attempts_exhausted=True, attempts=3))
    agg.add_error("curl: No match")
    agg.record(DOTFILES, PackageOutcome.failed("yadm is not available", attempts_exhausted=False))
    profile = resolve_profile("rocky", which=which_all)

    doc = render_report(agg.summary(), HOST, TIMING, profile, PATHS, dotfiles_repo="https://example.com/d.git")
    text = doc.to_text()

    assert "x curl (attempts: 3, attempts exhausted: yes)" in text
    assert "curl: No match" in text
    hints = "\n".join(doc.troubleshooting)
    assert "dnf makecache" in hints
    assert "dnf check" in hints
    assert "dnf install -y curl" in hints
    assert "dnf install -y epel-release" in hints
    assert "yadm clone https://example.com/d.git" in hints
    assert PATHS.log_path in hints


def test_render_is_deterministic():
    agg = OutcomeAggregator()
    agg.record(PackageSpec("tlp", False), PackageOutcome.skipped("not applicable for distro"))
    profile = resolve_profile("alpine", which=which_all)
    first = render_report(agg.summary(), HOST, TIMING, profile, PATHS)
    second = render_report(agg.summary(), HOST, TIMING, profile, PATHS)
    assert first == second
    assert first.to_text() == second.to_text()
    assert "  - tlp: not applicable for distro" in first.to_text()


def test_to_dict_lists_every_package():
    agg = OutcomeAggregator()
    agg.record(PackageSpec("git", True), PackageOutcome.installed(attempts=1))
    profile = resolve_profile("debian", which=which_all)
    data = render_report(agg.summary(), HOST, TIMING, profile, PATHS).to_dict()
    assert data["packages"] == [
        {
            "name": "git",
            "required": True,
            "status": "installed",
            "reason": "",
            "last_error": "",
            "attempts_exhausted": False,
            "attempts": 1,
        }
    ]
    assert data["counts"]["total"] == 1


def test_write_report_failure_is_fatal(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    profile = resolve_profile("debian", which=which_all)
    doc = render_report(OutcomeAggregator().summary(), HOST, TIMING, profile, PATHS)
    with pytest.raises(ReportWriteError):
        write_report(doc, str(blocker / "report.txt"))


def test_fedora_failures_have_no_epel_hint():
    agg = OutcomeAggregator()
    agg.record(PackageSpec("yadm", True), PackageOutcome.failed("No match", attempts_exhausted=True, attempts=3))
    profile = resolve_profile("fedora", which=which_all)

    doc = render_report(agg.summary(), HOST, TIMING, profile, PATHS)

    hints = "\n".join(doc.troubleshooting)
    assert "dnf install -y yadm" in hints
    assert "epel" not in hints.lower()
