"""Audio metadata probing."""
from __future__ import annotations
from pathlib import Path
from typing import Callable

from crestscope.io.tools import ToolResult, run_tool, soxi_cmd
from crestscope.types import AudioInfo

DEFAULT_BIT_DEPTH = 16

_SUBTYPE_BITS = {
    "PCM_S8": 8,
    "PCM_U8": 8,
    "PCM_16": 16,
    "PCM_24": 24,
    "PCM_32": 32,
    "FLOAT": 32,
    "DOUBLE": 64,
}


def _probe_soundfile(path: Path) -> tuple[float, int | None, float]:
    """Return (sample_rate, bit_depth, duration) via libsndfile."""
    try:
        import soundfile as sf
    except Exception as exc:
        raise RuntimeError("soundfile backend not available.") from exc

    info = sf.info(str(path))
    bits = _SUBTYPE_BITS.get(str(info.subtype).upper())
    return float(info.samplerate), bits, float(info.duration)


def _soxi_value(flag: str, path: Path, run: Callable[[list[str]], ToolResult]) -> str | None:
    res = run(soxi_cmd(flag, path))
    if not res.ok:
        return None
    value = res.stdout.strip()
    return value or None


def _probe_soxi(
    path: Path,
    run: Callable[[list[str]], ToolResult]
) -> tuple[float | None, int | None, float | None, list[str]]:
    """Return (sample_rate, bit_depth, duration, warnings) via soxi."""
    warnings: list[str] = []
    values: dict[str, float | None] = {}
    for flag in ("-r", "-b", "-D"):
        raw = _soxi_value(flag, path, run)
        try:
            values[flag] = float(raw) if raw is not None else None
        except ValueError:
            values[flag] = None
        if values[flag] is None:
            warnings.append(f"soxi {flag} unreadable for {path.name}")
    bits = values["-b"]
    return values["-r"], int(bits) if bits else None, values["-D"], warnings


def probe_audio(
    path: Path | str,
    *,
    run: Callable[[list[str]], ToolResult] = run_tool
) -> AudioInfo:
    """
    Read sample rate, bit depth and duration of an audio file.

    Tries soundfile first and falls back to ``soxi`` for anything
    libsndfile cannot open. A subtype without a fixed PCM width gets its
    bit depth from ``soxi -b``. Unreadable fields are left as None.
    """
    p = Path(path)
    fmt = p.suffix.lstrip(".").lower()
    warnings: list[str] = []
    try:
        fs, bits, duration = _probe_soundfile(p)
    except Exception as exc:
        warnings.append(f"soundfile probe failed: {exc}")
    else:
        if bits is None:
            # compressed subtypes (ULAW, ADPCM, ...) have no PCM width in libsndfile
            raw = _soxi_value("-b", p, run)
            try:
                bits = int(raw) if raw is not None else None
            except ValueError:
                bits = None
            if not bits:
                bits = None
                warnings.append(f"soxi -b unreadable for {p.name}")
        return AudioInfo(
            path=p, format=fmt, sample_rate=fs, bit_depth=bits,
            duration=duration, backend="soundfile", warnings=warnings
        )

    fs, bits, duration, soxi_warnings = _probe_soxi(p, run)
    warnings.extend(soxi_warnings)
    return AudioInfo(
        path=p, format=fmt, sample_rate=fs, bit_depth=bits,
        duration=duration, backend="soxi", warnings=warnings
    )


def bit_depth_or_default(info: AudioInfo, default: int = DEFAULT_BIT_DEPTH) -> int:
    """Bit depth for the stats report, falling back to 16."""
    if info.bit_depth is None or info.bit_depth <= 0:
        return default
    return int(info.bit_depth)
