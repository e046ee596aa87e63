from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import soundfile as sf

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from crestscope.io.tools import ToolResult  # noqa: E402


MONO_STATS = """\
DC offset   0.000021
Min level  -0.891251
Max level   0.891251
Pk lev dB      -1.00
RMS lev dB    -14.32
RMS Pk dB     -11.87
RMS Tr dB     -89.25
Crest factor    5.20
Flat factor     0.00
Pk count           2
Bit-depth      16/16
Num samples     144k
Length s       3.000
Scale max   1.000000
Window s       0.050
"""

STEREO_STATS = """\
             Overall     Left      Right
DC offset   0.000021  0.000021  0.000019
Pk lev dB      -0.50     -0.50     -0.71
RMS lev dB    -12.25    -12.10    -12.41
RMS Pk dB      -9.02     -9.02     -9.30
Bit-depth      24/24     24/24     24/24
"""

SILENT_STATS = """\
DC offset   0.000000
Pk lev dB       -inf
RMS lev dB      -inf
"""


class FakeRunner:
    """
    Stand-in for ``run_tool`` that never spawns a process.

    Spectrogram and composite commands create their output file.
    ``fail`` maps a command kind (``full``, ``zoom``, ``append``, ``stats``,
    ``soxi``) or a ``(kind, file name)`` pair to ``(returncode, stderr)``.
    """

    def __init__(self, *, stats: str = MONO_STATS, fail: dict | None = None, soxi: dict | None = None):
        self.calls: list[list[str]] = []
        self.stats = stats
        self.fail = fail or {}
        self.soxi = soxi or {}

    @staticmethod
    def kind(cmd: list[str]) -> str:
        if cmd[0] == "magick":
            return "append"
        if cmd[0] == "soxi":
            return "soxi"
        if "spectrogram" in cmd:
            return "zoom" if "trim" in cmd else "full"
        if "stats" in cmd:
            return "stats"
        return "other"

    def kinds(self) -> list[str]:
        return [self.kind(c) for c in self.calls]

    def __call__(self, cmd: list[str]) -> ToolResult:
        cmd = list(cmd)
        self.calls.append(cmd)
        kind = self.kind(cmd)
        name = Path(cmd[-1] if kind == "soxi" else cmd[1]).name
        failure = self.fail.get((kind, name)) or self.fail.get(kind)
        if failure:
            rc, err = failure
            return ToolResult(command=cmd, returncode=rc, stderr=err)
        if kind in ("full", "zoom"):
            Path(cmd[cmd.index("-o") + 1]).write_bytes(b"\x89PNG")
        elif kind == "append":
            Path(cmd[-1]).write_bytes(b"\x89PNG")
        elif kind == "stats":
            return ToolResult(command=cmd, returncode=0, stderr=self.stats)
        elif kind == "soxi":
            value = self.soxi.get(cmd[1])
            if value is None:
                return ToolResult(command=cmd, returncode=1, stderr=f"soxi FAIL formats: can't open input file `{name}'")
            return ToolResult(command=cmd, returncode=0, stdout=f"{value}\n")
        return ToolResult(command=cmd, returncode=0)


def write_tone(path: Path, *, seconds: float = 3.0, fs: int = 48000, subtype: str | None = None) -> Path:
    t = np.arange(0, seconds, 1.0 / fs)
    x = 0.5 * np.sin(2.0 * np.pi * 440.0 * t)
    sf.write(path, x, fs, subtype=subtype)
    return path
