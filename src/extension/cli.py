"""CLI entry-point for the Splunk alert extension.

Usage examples
--------------
# One discovery cycle, printed as a table:
python -m src.extension.cli --config config/extension.yaml discover

# Export discovered targets:
python -m src.extension.cli discover --out out/targets.csv

# Expect an alert to fire at least once within 60 s:
python -m src.extension.cli check --alert "Disk Full" --duration-ms 60000 \
    --expected-state alertFired --mode atLeastOnce
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time

from src.contracts.check import MetricSample, StatusResult
from src.contracts.enums import ExpectedState, StateCheckMode
from src.contracts.errors import ConfigError, TransportError
from src.contracts.target import Target
from src.extension.check import DEFAULT_DURATION_MS, STATUS_CALL_INTERVAL_SEC, AlertCheck
from src.extension.discovery import AlertDiscovery
from src.extension.reporter import targets_frame, write_metrics_csv, write_targets_csv
from src.shared.config_loader import Settings, load_settings
from src.shared.logger import setup_logging
from src.shared.timefmt import utc_now
from src.splunk.client import SplunkClient

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_VIOLATION = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="splunk-alerts",
        description="Splunk alert extension — discover tracked alerts, check alert state",
    )
    p.add_argument(
        "--config",
        default=None,
        help="YAML settings file. STEADYBIT_EXTENSION_* variables override it.",
    )
    p.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level. Default: logLevel from settings, else INFO",
    )
    sub = p.add_subparsers(dest="command", required=True)

    d = sub.add_parser("discover", help="Run one discovery cycle.")
    d.add_argument("--out", default=None, help="Write targets to this CSV file.")
    d.add_argument("--json", action="store_true", default=False, help="Print targets as JSON.")

    c = sub.add_parser("check", help="Check the state of one alert over a time window.")
    c.add_argument("--alert", required=True, help="Alert id or name.")
    c.add_argument(
        "--duration-ms",
        type=int,
        default=DEFAULT_DURATION_MS,
        help=f"Window length, ms (default: {DEFAULT_DURATION_MS}).",
    )
    c.add_argument(
        "--expected-state",
        default=ExpectedState.FIRED.value,
        choices=[e.value for e in ExpectedState],
    )
    c.add_argument(
        "--mode",
        default=StateCheckMode.AT_LEAST_ONCE.value,
        choices=[m.value for m in StateCheckMode],
        help="State check mode (default: atLeastOnce).",
    )
    c.add_argument(
        "--new-only",
        action="store_true",
        default=False,
        help="Only consider alerts fired after the check started.",
    )
    c.add_argument(
        "--interval-ms",
        type=int,
        default=int(STATUS_CALL_INTERVAL_SEC * 1000),
        help="Status poll interval, ms (default: 1000).",
    )
    c.add_argument("--metrics-out", default=None, help="Write metric samples to this CSV file.")
    return p


# ═══════════════════════════════════════════════════════════════════════════
#  Commands
# ═══════════════════════════════════════════════════════════════════════════


def run_discover(client: SplunkClient, settings: Settings, args: argparse.Namespace) -> int:
    result = AlertDiscovery(client, settings.discovery_attributes_excludes_alert).discover()
    if not result.ok:
        print(f"Discovery failed: {result.error}", file=sys.stderr)
        return EXIT_ERROR

    if args.out:
        write_targets_csv(result.targets, args.out)
    if args.json:
        print(json.dumps([t.to_dict() for t in result.targets], indent=2))
    elif not args.out:
        print(targets_frame(result.targets).to_string(index=False))
    return EXIT_OK


def find_target(targets: list[Target], alert: str) -> Target | None:
    for t in targets:
        if alert in (t.id, t.label):
            return t
    return None


def run_check(
    client: SplunkClient,
    args: argparse.Namespace,
    sleep=time.sleep,
) -> int:
    # excludes are not applied here: the check needs id and url attributes
    result = AlertDiscovery(client).discover()
    if not result.ok:
        print(f"Discovery failed: {result.error}", file=sys.stderr)
        return EXIT_ERROR

    target = find_target(result.targets, args.alert)
    if target is None:
        print(f"No tracked alert matches '{args.alert}'", file=sys.stderr)
        return EXIT_ERROR

    check = AlertCheck(client)
    try:
        check.prepare(
            target.attributes,
            {
                "duration": args.duration_ms,
                "checkNewAlertsOnly": args.new_only,
                "expectedState": args.expected_state,
                "stateCheckMode": args.mode,
            },
        )
    except ConfigError as exc:
        print(f"Cannot prepare check: {exc}", file=sys.stderr)
        return EXIT_ERROR
    check.start()
    print(f"Checking '{target.label}' ({args.mode}, expect {args.expected_state})")
    print("  Press Ctrl+C to stop.")

    samples: list[MetricSample] = []
    status: StatusResult | None = None
    try:
        while True:
            try:
                status = check.status()
            except TransportError as exc:
                log.warning("Status tick failed: %s", exc)
                if utc_now() > check.window.window_end:
                    print(f"Check aborted, backend unavailable: {exc}", file=sys.stderr)
                    return EXIT_ERROR
            else:
                samples.extend(status.metrics)
                if status.violation is not None or status.completed:
                    break
            sleep(args.interval_ms / 1000.0)
    except KeyboardInterrupt:
        print("\nCheck stopped.")
        return EXIT_ERROR
    finally:
        if args.metrics_out:
            write_metrics_csv(samples, args.metrics_out)

    if status.violation is not None:
        print(f"FAILED: {status.violation.title}")
        return EXIT_VIOLATION
    print(f"OK: alert '{target.label}' met the expected state")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level or "INFO")

    try:
        settings = load_settings(args.config)
    except (ConfigError, FileNotFoundError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_ERROR
    setup_logging(args.log_level or settings.log_level, settings.log_format)

    with SplunkClient(settings) as client:
        if args.command == "discover":
            return run_discover(client, settings, args)
        return run_check(client, args)


if __name__ == "__main__":
    sys.exit(main())
