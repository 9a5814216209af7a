"""End-to-end tests: simulated Splunk API → client → discovery / check → CLI."""

from __future__ import annotations

import json
import logging

import pandas as pd
import pytest

from src.contracts.target import ATTRIBUTE_URL
from src.extension import cli
from src.extension.check import AlertCheck
from src.extension.discovery import AlertDiscovery
from src.splunk.client import SAVED_SEARCHES_PATH, SplunkClient
from tests.conftest import BASE_URL, FIRED_URL, TOKEN, Y2K, make_entry


@pytest.fixture
def seeded_api(splunk_api):
    splunk_api.collections[SAVED_SEARCHES_PATH] = [
        make_entry(id="entry-1", name="Entry 1", author="e2e test", severity=5),
        make_entry(id="entry-2", name="Entry 2", author="e2e test", severity=2,
                   fired_alerts_url="/servicesNS/nobody/search/alerts/quiet"),
    ]
    splunk_api.collections[FIRED_URL] = [
        make_entry(id="entry-1", name="Entry 1", trigger_time=Y2K),
    ]
    splunk_api.collections["/servicesNS/nobody/search/alerts/quiet"] = []
    return splunk_api


@pytest.fixture(autouse=True)
def restore_logging():
    """cli.main() reconfigures the root logger; undo it after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def env(monkeypatch):
    monkeypatch.setenv("STEADYBIT_EXTENSION_API_BASE_URL", BASE_URL)
    monkeypatch.setenv("STEADYBIT_EXTENSION_ACCESS_TOKEN", TOKEN)
    monkeypatch.delenv("STEADYBIT_EXTENSION_DISCOVERY_ATTRIBUTES_EXCLUDES_ALERT", raising=False)
    monkeypatch.delenv("STEADYBIT_EXTENSION_MAX_PAGES", raising=False)
    return monkeypatch


@pytest.fixture
def wired_cli(env, seeded_api):
    """Make the CLI build its client on top of the simulated API."""
    env.setattr(
        cli,
        "SplunkClient",
        lambda settings: SplunkClient(settings, transport=seeded_api.transport()),
    )
    return seeded_api


class TestDiscoveryThenCheck:
    def test_discovered_target_drives_check(self, client, seeded_api):
        targets = AlertDiscovery(client).discover().targets
        target = next(t for t in targets if t.id == "entry-1")
        assert target.attributes[ATTRIBUTE_URL] == [FIRED_URL]

        check = AlertCheck(client)
        check.prepare(target.attributes, {
            "duration": 0,
            "expectedState": "alertFired",
            "stateCheckMode": "atLeastOnce",
        })
        check.start()
        result = check.status()
        assert result.violation is None
        assert check.window.success_latched is True

        fired_requests = [r for r in seeded_api.requests if r.url.path == FIRED_URL]
        assert len(fired_requests) == 1


class TestCli:
    def test_discover_table(self, wired_cli, capsys):
        assert cli.main(["discover"]) == cli.EXIT_OK
        out = capsys.readouterr().out
        assert "Entry 1" in out
        assert "Severe" in out

    def test_discover_json_with_excludes(self, wired_cli, env, capsys):
        env.setenv("STEADYBIT_EXTENSION_DISCOVERY_ATTRIBUTES_EXCLUDES_ALERT", "splunk.alert.author")
        assert cli.main(["discover", "--json"]) == cli.EXIT_OK
        targets = json.loads(capsys.readouterr().out)
        assert [t["id"] for t in targets] == ["entry-1", "entry-2"]
        for t in targets:
            assert "splunk.alert.author" not in t["attributes"]
            assert t["attributes"]["splunk.alert.name"]

    def test_discover_csv(self, wired_cli, tmp_path):
        out = tmp_path / "targets.csv"
        assert cli.main(["discover", "--out", str(out)]) == cli.EXIT_OK
        assert list(pd.read_csv(out)["id"]) == ["entry-1", "entry-2"]

    def test_discover_backend_failure(self, wired_cli, capsys):
        wired_cli.status_code = 500
        assert cli.main(["discover"]) == cli.EXIT_ERROR
        assert "Discovery failed" in capsys.readouterr().err

    def test_check_passes(self, wired_cli, tmp_path):
        metrics = tmp_path / "metrics.csv"
        code = cli.main([
            "check", "--alert", "Entry 1", "--duration-ms", "0", "--interval-ms", "0",
            "--metrics-out", str(metrics),
        ])
        assert code == cli.EXIT_OK
        df = pd.read_csv(metrics)
        assert len(df) >= 1
        assert df.loc[0, "splunk.alert.metric.triggerTime"] == "2000-01-01T00:00:00Z"

    def test_check_violation(self, wired_cli, capsys):
        code = cli.main([
            "check", "--alert", "entry-1", "--expected-state", "alertNotFired",
            "--mode", "allTheTime", "--duration-ms", "60000", "--interval-ms", "0",
        ])
        assert code == cli.EXIT_VIOLATION
        assert "should not have been fired but was at 2000-01-01T00:00:00Z" in capsys.readouterr().out

    def test_check_quiet_alert_expected_fired_fails_at_end(self, wired_cli, capsys):
        code = cli.main([
            "check", "--alert", "Entry 2", "--duration-ms", "0", "--interval-ms", "0",
        ])
        assert code == cli.EXIT_VIOLATION
        assert 'Alert "Entry 2" should have been fired but was not.' in capsys.readouterr().out

    def test_check_unknown_alert(self, wired_cli, capsys):
        assert cli.main(["check", "--alert", "nope"]) == cli.EXIT_ERROR
        assert "No tracked alert" in capsys.readouterr().err

    def test_missing_settings(self, monkeypatch, capsys):
        monkeypatch.delenv("STEADYBIT_EXTENSION_API_BASE_URL", raising=False)
        monkeypatch.delenv("STEADYBIT_EXTENSION_ACCESS_TOKEN", raising=False)
        assert cli.main(["discover"]) == cli.EXIT_ERROR
        assert "Configuration error" in capsys.readouterr().err

    def test_check_aborts_when_backend_stays_down(self, wired_cli, capsys):
        del wired_cli.collections[FIRED_URL]
        code = cli.main([
            "check", "--alert", "Entry 1", "--duration-ms", "0", "--interval-ms", "0",
        ])
        assert code == cli.EXIT_ERROR
        assert "backend unavailable" in capsys.readouterr().err
