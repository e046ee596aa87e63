"""
Crest factor from a sox ``stats`` report.

Crest factor is the peak-to-RMS ratio of a waveform. Both levels are
reported in dBFS, so the ratio in dB is their difference:

    crest_factor_db = peak_db - rms_db

Heavily compressed material typically lands around 6-10 dB, acoustic or
classical recordings at 15-20 dB and above.
"""
from __future__ import annotations
import re
from decimal import Decimal, InvalidOperation
from typing import Callable

from crestscope.errors import StatsParseError, StatsToolError
from crestscope.io.probe import bit_depth_or_default
from crestscope.io.tools import ToolResult, run_tool, sox_stats_cmd
from crestscope.types import AudioInfo, CrestMeasurement, StatsLevels
from crestscope.utils.quantize import q

PEAK_LABEL = "Pk lev dB"
RMS_LABEL = "RMS lev dB"
_LEVEL_RE = re.compile(r"^-?[0-9.]+$")


def _field(report: str, label: str) -> str:
    """Fourth whitespace token of the first line mentioning ``label``."""
    for line in report.splitlines():
        if label in line:
            tokens = line.split()
            return tokens[3] if len(tokens) > 3 else ""
    return ""


def _to_decimal(raw: str) -> Decimal | None:
    if not _LEVEL_RE.match(raw):
        return None
    try:
        return Decimal(raw)
    except InvalidOperation:
        return None


def parse_stats_report(report: str) -> StatsLevels:
    """Extract peak and RMS levels (dB) from a sox stats report."""
    peak = _field(report, PEAK_LABEL)
    rms = _field(report, RMS_LABEL)
    if _to_decimal(peak) is None or _to_decimal(rms) is None:
        raise StatsParseError(
            "could not parse audio stats", peak=peak, rms=rms, report=report
        )
    return StatsLevels(peak=peak, rms=rms)


def crest_factor_db(levels: StatsLevels) -> Decimal:
    """Peak minus RMS, rounded to 0.01 dB."""
    return q(levels.peak_db - levels.rms_db)


def measure_crest_factor(
    info: AudioInfo,
    *,
    run: Callable[[list[str]], ToolResult] = run_tool
) -> CrestMeasurement:
    """Run sox stats at the file's bit depth and compute its crest factor."""
    bits = bit_depth_or_default(info)
    res = run(sox_stats_cmd(info.path, bits))
    if not res.ok:
        raise StatsToolError(f"sox stats failed for {info.path.name}", output=res.output)
    # sox writes the stats report on stderr
    levels = parse_stats_report(res.output)
    return CrestMeasurement(
        path=info.path,
        crest_factor_db=crest_factor_db(levels),
        levels=levels,
        bit_depth=bits,
    )
