"""
Batch orchestration.

Each file moves through: spectrogram attempted -> ok / failed -> metric
attempted -> row written / row skipped. Nothing is retried, and a failure
on one file never stops the batch.
"""
from __future__ import annotations
import sys
import textwrap
from pathlib import Path
from typing import Callable

from crestscope.config.settings import AnalysisSettings
from crestscope.errors import StatsParseError, StatsToolError
from crestscope.io.discovery import iter_audio_files
from crestscope.io.probe import probe_audio
from crestscope.io.tools import ToolResult, run_tool
from crestscope.metrics.crest import measure_crest_factor
from crestscope.render.spectrogram import render_spectrograms
from crestscope.reporting.results_csv import ResultWriter
from crestscope.types import FileOutcome, Outcome, RenderStatus
from crestscope.utils.quantize import fmt2

Runner = Callable[[list[str]], ToolResult]


def _indent(text: str) -> str:
    return textwrap.indent(text, "    ")


def process_file(
    path: Path,
    fmt: str,
    settings: AnalysisSettings,
    writer: ResultWriter,
    *,
    run: Runner = run_tool
) -> FileOutcome:
    """Render spectrograms and record the crest factor for one file."""
    print(
        f"Analyzing: {path.name}  (width: {settings.width}px; "
        f"@{settings.resample_rate / 1000:g}k → 0–{settings.nyquist_khz:g} kHz)"
    )
    info = probe_audio(path, run=run)

    spectro = render_spectrograms(info, settings.out_dir, settings, run=run)
    if spectro.status == RenderStatus.FAILED:
        return FileOutcome(
            path=path, format=fmt, outcome=Outcome.FAILED,
            reason=spectro.message, spectrogram=spectro
        )

    try:
        m = measure_crest_factor(info, run=run)
    except StatsToolError as exc:
        print(f"  Error: {exc}", file=sys.stderr)
        print("  Debug output:", file=sys.stderr)
        print(_indent(exc.output), file=sys.stderr)
        return FileOutcome(
            path=path, format=fmt, outcome=Outcome.NO_METRIC,
            reason=str(exc), spectrogram=spectro
        )
    except StatsParseError as exc:
        print(f"  Error: {exc}", file=sys.stderr)
        print(f"  Peak='{exc.peak}' RMS='{exc.rms}'", file=sys.stderr)
        print("  Raw stats:", file=sys.stderr)
        print(_indent(exc.report), file=sys.stderr)
        return FileOutcome(
            path=path, format=fmt, outcome=Outcome.NO_METRIC,
            reason=str(exc), spectrogram=spectro
        )

    writer.append(fmt, m)
    print(
        f"  Crest factor: {fmt2(m.crest_factor_db)} dB "
        f"(Peak: {fmt2(m.levels.peak_db)} dB, RMS: {fmt2(m.levels.rms_db)} dB, "
        f"{m.bit_depth}-bit)"
    )
    reason = spectro.message if spectro.status == RenderStatus.PARTIAL else None
    return FileOutcome(
        path=path, format=fmt, outcome=Outcome.METRIC,
        reason=reason, spectrogram=spectro, measurement=m
    )


def process_format(
    fmt: str,
    settings: AnalysisSettings,
    writer: ResultWriter,
    *,
    run: Runner = run_tool
) -> list[FileOutcome]:
    """Process every ``.<fmt>`` file in the source directory."""
    print(f"\nProcessing {fmt} files...")
    files = iter_audio_files(settings.source_dir, fmt)
    if not files:
        print(f"  No .{fmt} files found, skipping.")
        return []
    return [process_file(p, fmt, settings, writer, run=run) for p in files]


def run_batch(
    settings: AnalysisSettings,
    writer: ResultWriter,
    *,
    run: Runner = run_tool
) -> list[FileOutcome]:
    """Process all configured formats in order, one file at a time."""
    outcomes: list[FileOutcome] = []
    for fmt in settings.formats:
        outcomes.extend(process_format(fmt, settings, writer, run=run))
    return outcomes
