"""Звітування: таблиці цілей та метрик перевірки, запис CSV."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import pandas as pd

from src.contracts.check import MetricSample
from src.contracts.target import ATTRIBUTE_LABELS, Target

log = logging.getLogger(__name__)


def _atomic_write(path: str, content: str) -> None:
    """Атомарно записує content у файл path."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(
        dir=str(target.parent),
        prefix=f".{target.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


# ═══════════════════════════════════════════════════════════════════════════
#  DataFrames
# ═══════════════════════════════════════════════════════════════════════════


def targets_frame(targets: list[Target]) -> pd.DataFrame:
    """One row per target; attribute columns headed by their singular label.

    Multi-valued attributes are joined with ``;``.  Attributes removed by
    the discovery excludes simply do not appear as columns.
    """
    rows = []
    for t in targets:
        row = {"id": t.id, "label": t.label}
        for key, values in t.attributes.items():
            heading = ATTRIBUTE_LABELS.get(key, (key, key))[0]
            row[heading] = ";".join(values)
        rows.append(row)
    df = pd.DataFrame(rows, columns=None if rows else ["id", "label"])
    if "Name" in df.columns:
        df = df.sort_values("Name", kind="stable").reset_index(drop=True)
    return df


def metrics_frame(samples: list[MetricSample]) -> pd.DataFrame:
    rows = [
        {"timestamp": s.timestamp.isoformat(), "name": s.name, **s.metric}
        for s in samples
    ]
    return pd.DataFrame(rows, columns=None if rows else ["timestamp", "name"])


# ═══════════════════════════════════════════════════════════════════════════
#  CSV writers
# ═══════════════════════════════════════════════════════════════════════════


def write_targets_csv(targets: list[Target], path: str) -> None:
    _atomic_write(path, targets_frame(targets).to_csv(index=False))
    log.info("Wrote targets → %s (%d rows)", path, len(targets))


def write_metrics_csv(samples: list[MetricSample], path: str) -> None:
    _atomic_write(path, metrics_frame(samples).to_csv(index=False))
    log.info("Wrote metrics → %s (%d samples)", path, len(samples))
