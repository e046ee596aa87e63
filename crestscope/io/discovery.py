"""Audio file enumeration."""
from __future__ import annotations
from pathlib import Path


def iter_audio_files(folder: Path, extension: str) -> list[Path]:
    """List regular files in ``folder`` ending in ``.<extension>``, sorted by name."""
    if not folder.is_dir():
        raise ValueError(f"'{folder}' is not a directory")
    suffix = "." + extension.lstrip(".")
    out: list[Path] = []
    for p in folder.iterdir():
        if p.suffix == suffix and p.is_file():
            out.append(p)
    return sorted(out, key=lambda p: p.name)
