from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

import numpy as np

from crestscope.types import FileOutcome, Outcome


def _summary_stats(values: Iterable[float]) -> dict | None:
    vals = [float(v) for v in values]
    if not vals:
        return None
    arr = np.asarray(vals, dtype=np.float64)
    return {
        "count": int(arr.size),
        "mean": float(np.mean(arr)),
        "min": float(np.min(arr)),
        "p50": float(np.percentile(arr, 50)),
        "max": float(np.max(arr)),
    }


def build_run_summary(
    outcomes: list[FileOutcome],
    csv_paths: dict[str, Path],
    *,
    generated_utc: str | None = None
) -> dict:
    """Summarize one batch run: outcome counts, failures and crest factor spread."""
    counts = {o.value: 0 for o in Outcome}
    by_format: dict[str, dict[str, int]] = defaultdict(lambda: {o.value: 0 for o in Outcome})
    crest_values: dict[str, list[float]] = defaultdict(list)
    failures: list[dict] = []
    zoom_skipped = 0

    for fo in outcomes:
        counts[fo.outcome.value] += 1
        by_format[fo.format][fo.outcome.value] += 1
        if fo.measurement is not None:
            crest_values[fo.format].append(float(fo.measurement.crest_factor_db))
        if fo.spectrogram is not None and fo.spectrogram.zoom_skipped:
            zoom_skipped += 1
        if fo.reason:
            failures.append({
                "file": fo.path.name,
                "format": fo.format,
                "outcome": fo.outcome.value,
                "reason": fo.reason,
            })

    crest_stats = {}
    for fmt in sorted(crest_values):
        stats = _summary_stats(crest_values[fmt])
        if stats:
            crest_stats[fmt] = stats

    generated_utc = generated_utc or datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    return {
        "schema_version": "1.0",
        "generated_utc": generated_utc,
        "totals": {
            "files": len(outcomes),
            "outcome_counts": counts,
            "by_format": {k: dict(v) for k, v in sorted(by_format.items())},
            "zoom_skipped": zoom_skipped,
        },
        "crest_factor_db": crest_stats,
        "failures": failures,
        "csv_files": {fmt: str(p) for fmt, p in csv_paths.items()},
    }


def render_run_summary(summary: dict) -> str:
    """Closing report printed after a batch."""
    lines = ["", "Analysis complete!"]
    for fmt, path in summary.get("csv_files", {}).items():
        lines.append(f"• {fmt.upper()} metrics: {Path(path).name}")
    lines.append("• Spectrograms saved as PNG files (stacked full + zoom views)")
    failures = summary.get("failures", [])
    if failures:
        lines.append(f"• {len(failures)} file(s) with problems:")
        for f in failures:
            lines.append(f"    {f['file']}: {f['reason']}")
    return "\n".join(lines)
