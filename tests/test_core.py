"""Tests for the operations shared by CLI and MCP server."""

import pytest

import core
from wet_results import result_collector


@pytest.fixture(autouse=True)
def clean_config(monkeypatch, tmp_path):
    for key in result_collector.CONFIG_KEYS + ['WET_ANALYZER_CONFIG']:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(core, "_collector", None)


@pytest.fixture
def result(results_dir, passed_login, failed_login, smoke):
    root = results_dir({
        "1/wetresult.xml": passed_login,
        "2/wetresult.xml": smoke("chrome", failing=True),
        "3/wetresult.xml": smoke("edge"),
    })
    return core.collect_results(root=root)


def test_get_summary(result):
    summary = core.get_summary(result)
    assert summary["total"] == 2
    assert summary["passed"] == 2
    assert summary["failed"] == 0
    assert summary["pass_rate"] == 100.0
    assert [f["name"] for f in summary["test_files"]] == ["login", "smoke"]
    assert len(summary["suites"]) == 3


def test_get_summary_empty(tmp_path, monkeypatch):
    monkeypatch.setenv("ALLOW_EMPTY_RESULTS", "true")
    summary = core.get_summary(core.collect_results(root=tmp_path))
    assert summary["total"] == 0
    assert summary["pass_rate"] == 0.0


def test_get_failures(results_dir, failed_login, smoke):
    root = results_dir({"1/wetresult.xml": failed_login, "2/wetresult.xml": smoke("chrome", failing=True)})
    failures = core.get_failures(core.collect_results(root=root))

    assert failures["total_failed"] == 2
    first = failures["failed_runs"][0]
    assert first["full_name"] == "login[chrome]"
    assert first["test_file"] == "login"
    assert first["test_file_path"] == "included.wet"
    assert first["error"] == {
        "kind": "step",
        "file": "included.wet",
        "line": 5,
        "command": "click",
        "parameters": ["Login"],
        "cause": "failure",
        "message": "element not found",
    }

    limited = core.get_failures(core.collect_results(root=root), limit=1)
    assert limited["total_failed"] == 2
    assert len(limited["failed_runs"]) == 1

    none_shown = core.get_failures(core.collect_results(root=root), limit=0)
    assert none_shown["total_failed"] == 2
    assert none_shown["failed_runs"] == []


def test_lookup(result):
    assert core.lookup(result, "login")["type"] == "test_file"
    run = core.lookup(result, "login[chrome]")
    assert run["type"] == "browser_run"
    assert run["duration"] == 120
    assert run["status"] == "passed"
    assert core.lookup(result, "")["type"] == "result_set"


def test_lookup_unknown(result):
    assert core.lookup(result, "logout") == {"error": "No result named 'logout'"}


def test_lookup_failed_run_keeps_type(results_dir, failed_login):
    result = core.collect_results(root=results_dir({"1/wetresult.xml": failed_login}))
    run = core.lookup(result, "login[chrome]")
    assert run["type"] == "browser_run"
    assert run["status"] == "failed"
    assert run["error"]["message"] == "element not found"


def test_list_test_files(result):
    listing = core.list_test_files(result)
    assert listing["total"] == 2
    assert listing["test_files"][0] == {"name": "login", "url_name": "login", "full_name": "tests/login.wet"}


def test_collect_results_uses_configured_root(results_dir, passed_login, monkeypatch):
    root = results_dir({"x/wetresult.xml": passed_login})
    monkeypatch.setenv("RESULTS_ROOT", str(root))
    assert core.collect_results().total_count == 1


def test_fetch_remote_results(monkeypatch, parse, passed_login):
    class StubCollector:
        def collect_from_url(self, url, patterns=None, force=False):
            self.args = (url, patterns, force)
            return parse(passed_login)

    stub = StubCollector()
    monkeypatch.setattr(core, "_collector", stub)

    summary = core.fetch_remote_results("http://ci/artifact/", ["*.xml"])
    assert stub.args == ("http://ci/artifact/", ["*.xml"], False)
    assert summary["passed"] == 1
    assert summary["source"] == {"url": "http://ci/artifact/", "patterns": ["*.xml"]}
