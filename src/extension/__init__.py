"""Splunk alert extension — discovery and check actions driven by a host.

Modules
───────
  discovery — tracked alerts → Targets (+ last-good-list cache)
  check     — windowed alert check: prepare / start / status
  reporter  — tabular rendering and CSV export
  cli       — argparse entry-point acting as a minimal host
"""
