from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from pathlib import Path


class Outcome(str, Enum):
    METRIC = "metric"
    NO_METRIC = "no_metric"
    FAILED = "failed"


class RenderStatus(str, Enum):
    OK = "ok"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(frozen=True)
class AudioInfo:
    path: Path
    format: str
    sample_rate: float | None
    bit_depth: int | None
    duration: float | None
    backend: str
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class StatsLevels:
    peak: str
    rms: str

    @property
    def peak_db(self) -> Decimal:
        return Decimal(self.peak)

    @property
    def rms_db(self) -> Decimal:
        return Decimal(self.rms)


@dataclass(frozen=True)
class CrestMeasurement:
    path: Path
    crest_factor_db: Decimal
    levels: StatsLevels
    bit_depth: int


@dataclass(frozen=True)
class SpectrogramResult:
    status: RenderStatus
    image: Path | None = None
    intermediates: list[Path] = field(default_factory=list)
    error_file: Path | None = None
    zoom_skipped: bool = False
    message: str = ""


@dataclass(frozen=True)
class FileOutcome:
    path: Path
    format: str
    outcome: Outcome
    reason: str | None = None
    spectrogram: SpectrogramResult | None = None
    measurement: CrestMeasurement | None = None
