"""External tool invocation (sox, soxi, ImageMagick)."""
from __future__ import annotations
import subprocess
from dataclasses import dataclass
from pathlib import Path

SOX = "sox"
SOXI = "soxi"
MAGICK = "magick"


@dataclass(frozen=True)
class ToolResult:
    command: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined diagnostic text, stderr first."""
        parts = [p.strip("\n") for p in (self.stderr, self.stdout) if p and p.strip()]
        return "\n".join(parts)


def run_tool(cmd: list[str]) -> ToolResult:
    """Run an external tool and capture its output without raising on failure."""
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as exc:
        return ToolResult(command=list(cmd), returncode=127, stderr=f"{cmd[0]}: {exc}")
    return ToolResult(
        command=list(cmd),
        returncode=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
    )


def _arg(path: Path | str) -> str:
    """Path as an argv element that a tool cannot mistake for an option."""
    text = str(path)
    if text.startswith("-"):
        return "./" + text
    return text


def _num(x: float) -> str:
    return f"{x:g}"


def soxi_cmd(flag: str, path: Path | str) -> list[str]:
    return [SOXI, flag, _arg(path)]


def sox_stats_cmd(path: Path | str, bit_depth: int) -> list[str]:
    return [SOX, _arg(path), "-n", "stats", "-b", str(int(bit_depth))]


def sox_spectrogram_cmd(
    path: Path | str,
    out_png: Path | str,
    *,
    width: int,
    title: str,
    rate: int,
    trim: tuple[float, float] | None = None
) -> list[str]:
    """
    Build a sox command rendering a spectrogram PNG.

    The input is resampled with the very-high-quality algorithm so every
    image shows the same 0..rate/2 frequency range. ``trim`` is an
    (offset, duration) window in seconds.
    """
    cmd = [SOX, _arg(path), "-n", "rate", "-v", str(int(rate))]
    if trim is not None:
        offset, duration = trim
        cmd += ["trim", _num(offset), _num(duration)]
    cmd += ["spectrogram", "-x", str(int(width)), "-t", title, "-o", _arg(out_png)]
    return cmd


def magick_append_cmd(top: Path | str, bottom: Path | str, out: Path | str) -> list[str]:
    """Stack two images vertically."""
    return [MAGICK, _arg(top), _arg(bottom), "-append", _arg(out)]
