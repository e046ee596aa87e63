"""Analysis settings: defaults, JSON config files and validation."""
from __future__ import annotations
import json
import math
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

DEFAULT_WIDTH_PX = 3200
DEFAULT_ZOOM_SECONDS = 2.0
DEFAULT_ZOOM_OFFSET = 0.0
RESAMPLE_RATE_HZ = 48000
DEFAULT_FORMATS = ("flac", "wav")
CSV_SCHEMAS = ("crest_factor", "dnr")
SUPPORTED_FORMATS = ("flac", "wav")


@dataclass(frozen=True)
class AnalysisSettings:
    source_dir: Path = Path(".")
    output_dir: Path | None = None
    width: int = DEFAULT_WIDTH_PX
    zoom_seconds: float = DEFAULT_ZOOM_SECONDS
    zoom_offset: float = DEFAULT_ZOOM_OFFSET
    resample_rate: int = RESAMPLE_RATE_HZ
    formats: tuple[str, ...] = DEFAULT_FORMATS
    csv_schema: str = "crest_factor"
    allow_install: bool = True

    @property
    def out_dir(self) -> Path:
        return self.output_dir if self.output_dir is not None else self.source_dir

    @property
    def nyquist_khz(self) -> float:
        return self.resample_rate / 2000.0


# keys accepted in a JSON config file
CONFIG_KEYS = (
    "width",
    "zoom_seconds",
    "zoom_offset",
    "resample_rate",
    "formats",
    "csv_schema",
    "allow_install",
)


def _is_number(v: Any) -> bool:
    return (
        isinstance(v, (int, float))
        and not isinstance(v, bool)
        and not math.isnan(v)
        and not math.isinf(v)
    )


def validate_settings_dict(j: dict) -> None:
    """Validate tunables, reporting every problem at once."""
    errors: list[str] = []

    def err(msg: str) -> None:
        errors.append(msg)

    if not isinstance(j, dict):
        raise ValueError("settings must be a JSON object.")

    for k in j:
        if k not in CONFIG_KEYS:
            err(f"unknown key: {k}")

    if "width" in j:
        w = j["width"]
        if not isinstance(w, int) or isinstance(w, bool) or w <= 0:
            err("width must be a positive integer.")
    if "zoom_seconds" in j:
        if not _is_number(j["zoom_seconds"]) or j["zoom_seconds"] <= 0:
            err("zoom_seconds must be a number > 0.")
    if "zoom_offset" in j:
        if not _is_number(j["zoom_offset"]) or j["zoom_offset"] < 0:
            err("zoom_offset must be a number >= 0.")
    if "resample_rate" in j:
        r = j["resample_rate"]
        if not isinstance(r, int) or isinstance(r, bool) or r <= 0:
            err("resample_rate must be a positive integer.")
    if "formats" in j:
        fmts = j["formats"]
        if not isinstance(fmts, (list, tuple)) or not fmts:
            err("formats must be a non-empty list.")
        else:
            for i, f in enumerate(fmts):
                if f not in SUPPORTED_FORMATS:
                    err(f"formats[{i}] must be one of {', '.join(SUPPORTED_FORMATS)}.")
            if len(set(fmts)) != len(fmts):
                err("formats must not repeat.")
    if "csv_schema" in j and j["csv_schema"] not in CSV_SCHEMAS:
        err(f"csv_schema must be one of {', '.join(CSV_SCHEMAS)}.")
    if "allow_install" in j and not isinstance(j["allow_install"], bool):
        err("allow_install must be boolean.")

    if errors:
        raise ValueError("; ".join(errors))


def load_settings_file(path: str | Path) -> dict:
    """Load and validate a JSON settings file."""
    with open(path, "r", encoding="utf-8") as f:
        j = json.load(f)
    validate_settings_dict(j)
    return j


def parse_formats(text: str) -> tuple[str, ...]:
    """Parse a comma-separated format list such as ``flac,wav``."""
    return tuple(part.strip().lower().lstrip(".") for part in text.split(",") if part.strip())


def build_settings(
    base: AnalysisSettings | None = None,
    *,
    config: dict | None = None,
    **overrides: Any
) -> AnalysisSettings:
    """
    Merge defaults, config-file values and explicit overrides.

    Overrides whose value is None are ignored so argparse namespaces can be
    passed straight through.
    """
    settings = base or AnalysisSettings()
    merged: dict[str, Any] = {}
    if config:
        merged.update(config)
    merged.update({k: v for k, v in overrides.items() if v is not None})

    tunables = {k: v for k, v in merged.items() if k in CONFIG_KEYS}
    validate_settings_dict(tunables)

    known = {f.name for f in fields(AnalysisSettings)}
    unknown = [k for k in merged if k not in known]
    if unknown:
        raise ValueError(f"unknown settings: {', '.join(sorted(unknown))}")
    if "formats" in merged:
        merged["formats"] = tuple(merged["formats"])
    for key in ("zoom_seconds", "zoom_offset"):
        if key in merged:
            merged[key] = float(merged[key])
    for key in ("source_dir", "output_dir"):
        if merged.get(key) is not None:
            merged[key] = Path(merged[key])
    return replace(settings, **merged)
