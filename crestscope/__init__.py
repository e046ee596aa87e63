"""
CrestScope - batch spectrograms and crest factor for FLAC/WAV folders

Renders a stacked full + zoom spectrogram per file with sox/ImageMagick and
logs the peak-to-RMS crest factor of each file to a per-format CSV.
"""
from crestscope.version import __version__
from crestscope.types import (
    Outcome,
    RenderStatus,
    AudioInfo,
    StatsLevels,
    CrestMeasurement,
    SpectrogramResult,
    FileOutcome,
)
from crestscope.config.settings import AnalysisSettings
from crestscope.pipeline import process_file, process_format, run_batch

__all__ = [
    "__version__",
    "Outcome",
    "RenderStatus",
    "AudioInfo",
    "StatsLevels",
    "CrestMeasurement",
    "SpectrogramResult",
    "FileOutcome",
    "AnalysisSettings",
    "process_file",
    "process_format",
    "run_batch",
]
