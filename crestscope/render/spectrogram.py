"""
Stacked full + zoom spectrogram images.

Both panes are rendered by sox after resampling to a fixed rate, so every
image covers the same frequency range regardless of the source sample
rate. The zoom pane shows ``[offset, offset + zoom_seconds)``.
"""
from __future__ import annotations
import sys
from pathlib import Path
from typing import Callable

from crestscope.config.settings import AnalysisSettings
from crestscope.io.tools import (
    ToolResult,
    magick_append_cmd,
    run_tool,
    sox_spectrogram_cmd,
)
from crestscope.types import AudioInfo, RenderStatus, SpectrogramResult


def output_paths(out_dir: Path, audio_path: Path) -> dict[str, Path]:
    """Intermediate, final and sidecar paths for one audio file."""
    base = audio_path.stem
    return {
        "full": out_dir / f"{base}_full.png",
        "zoomed": out_dir / f"{base}_zoomed.png",
        "final": out_dir / f"{base}.png",
        "full_err": out_dir / f"{base}_full.err",
        "zoomed_err": out_dir / f"{base}_zoomed.err",
    }


def zoom_fits(info: AudioInfo, settings: AnalysisSettings) -> bool:
    """True unless the file is known to end before the zoom window does."""
    if info.duration is None:
        return True
    return info.duration >= settings.zoom_offset + settings.zoom_seconds


def _write_sidecar(path: Path, res: ToolResult) -> Path | None:
    text = res.output
    if not text:
        return None
    path.write_text(text + "\n", encoding="utf-8")
    return path


def _unlink(*paths: Path) -> None:
    for p in paths:
        p.unlink(missing_ok=True)


def render_spectrograms(
    info: AudioInfo,
    out_dir: Path,
    settings: AnalysisSettings,
    *,
    run: Callable[[list[str]], ToolResult] = run_tool
) -> SpectrogramResult:
    """
    Render the full and zoom spectrograms for one file and stack them.

    A failed render writes the captured tool output to a ``.err`` sidecar
    and removes any partial images. A failed composite keeps both
    intermediates so nothing rendered is lost.
    """
    paths = output_paths(out_dir, info.path)
    title = info.path.name

    res = run(sox_spectrogram_cmd(
        info.path, paths["full"],
        width=settings.width, title=title, rate=settings.resample_rate
    ))
    if not res.ok:
        print("  ERROR: spectrogram failed for full image", file=sys.stderr)
        err_file = _write_sidecar(paths["full_err"], res)
        _unlink(paths["full"])
        return SpectrogramResult(
            status=RenderStatus.FAILED,
            error_file=err_file,
            message=f"full spectrogram failed (exit {res.returncode})",
        )

    if not zoom_fits(info, settings):
        if not paths["full"].exists():
            print(f"  Warning: spectrogram(s) missing for {title}", file=sys.stderr)
            return SpectrogramResult(
                status=RenderStatus.PARTIAL,
                zoom_skipped=True,
                message=f"spectrogram output missing: {paths['full'].name}",
            )
        print(
            f"  Note: {title} is shorter than "
            f"{settings.zoom_offset:g}+{settings.zoom_seconds:g}s; skipping zoom view"
        )
        paths["full"].replace(paths["final"])
        return SpectrogramResult(
            status=RenderStatus.OK,
            image=paths["final"],
            zoom_skipped=True,
            message="zoom window beyond end of file",
        )

    res = run(sox_spectrogram_cmd(
        info.path, paths["zoomed"],
        width=settings.width, title=f"{title} (zoom)", rate=settings.resample_rate,
        trim=(settings.zoom_offset, settings.zoom_seconds)
    ))
    if not res.ok:
        print("  ERROR: spectrogram failed for zoom image", file=sys.stderr)
        err_file = _write_sidecar(paths["zoomed_err"], res)
        _unlink(paths["full"], paths["zoomed"])
        return SpectrogramResult(
            status=RenderStatus.FAILED,
            error_file=err_file,
            message=f"zoom spectrogram failed (exit {res.returncode})",
        )

    missing = [p for p in (paths["full"], paths["zoomed"]) if not p.exists()]
    if missing:
        print(f"  Warning: spectrogram(s) missing for {title}", file=sys.stderr)
        kept = [p for p in (paths["full"], paths["zoomed"]) if p.exists()]
        return SpectrogramResult(
            status=RenderStatus.PARTIAL,
            intermediates=kept,
            message="spectrogram output missing: " + ", ".join(p.name for p in missing),
        )

    res = run(magick_append_cmd(paths["full"], paths["zoomed"], paths["final"]))
    if not res.ok:
        print(
            f"  Warning: could not stack spectrograms for {title}; "
            f"keeping {paths['full'].name} and {paths['zoomed'].name}",
            file=sys.stderr
        )
        if res.output:
            print(res.output, file=sys.stderr)
        return SpectrogramResult(
            status=RenderStatus.PARTIAL,
            intermediates=[paths["full"], paths["zoomed"]],
            message=f"composite failed (exit {res.returncode})",
        )

    _unlink(paths["full"], paths["zoomed"])
    return SpectrogramResult(status=RenderStatus.OK, image=paths["final"])
