"""Per-format CSV result files."""
from __future__ import annotations
import csv
from dataclasses import dataclass
from pathlib import Path

from crestscope.types import CrestMeasurement
from crestscope.utils.quantize import q


@dataclass(frozen=True)
class CsvSchema:
    name: str
    filename_template: str
    header: tuple[str, ...]
    include_bit_depth: bool

    def filename(self, fmt: str) -> str:
        return self.filename_template.format(fmt=fmt)


CREST_FACTOR_SCHEMA = CsvSchema(
    name="crest_factor",
    filename_template="crest_factor_{fmt}.csv",
    header=("File", "Crest Factor (dB)", "Peak (dB)", "RMS (dB)", "Bit Depth"),
    include_bit_depth=True,
)

# Column names used by older releases that called the metric "DNR".
DNR_SCHEMA = CsvSchema(
    name="dnr",
    filename_template="dnr_results_{fmt}.csv",
    header=("File", "DNR (dB)", "Peak (dB)", "RMS (dB)"),
    include_bit_depth=False,
)

SCHEMAS = {s.name: s for s in (CREST_FACTOR_SCHEMA, DNR_SCHEMA)}


def get_schema(name: str) -> CsvSchema:
    try:
        return SCHEMAS[name]
    except KeyError:
        raise ValueError(f"unknown CSV schema: {name}") from None


def format_row(m: CrestMeasurement, schema: CsvSchema) -> list:
    row: list = [
        m.path.name,
        q(m.crest_factor_db),
        q(m.levels.peak_db),
        q(m.levels.rms_db),
    ]
    if schema.include_bit_depth:
        row.append(int(m.bit_depth))
    return row


class ResultWriter:
    """
    Append-only CSV writer, one file per audio format.

    A file gets its header the first time a row is written to it and is
    never truncated afterwards, so reruns only add rows.
    """

    def __init__(self, out_dir: Path, schema: CsvSchema = CREST_FACTOR_SCHEMA):
        self.out_dir = Path(out_dir)
        self.schema = schema

    def path_for(self, fmt: str) -> Path:
        return self.out_dir / self.schema.filename(fmt)

    def ensure_header(self, fmt: str) -> Path:
        path = self.path_for(fmt)
        if not path.exists():
            with open(path, "w", newline="", encoding="utf-8") as fh:
                csv.writer(fh, lineterminator="\n").writerow(self.schema.header)
        return path

    def append(self, fmt: str, measurement: CrestMeasurement) -> Path:
        path = self.ensure_header(fmt)
        with open(path, "a", newline="", encoding="utf-8") as fh:
            # file name quoted, numbers bare
            writer = csv.writer(fh, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
            writer.writerow(format_row(measurement, self.schema))
        return path

    def written_files(self, formats: tuple[str, ...]) -> dict[str, Path]:
        out: dict[str, Path] = {}
        for fmt in formats:
            path = self.path_for(fmt)
            if path.exists():
                out[fmt] = path
        return out
