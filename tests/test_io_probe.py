from __future__ import annotations

from pathlib import Path

import pytest

from crestscope.io.discovery import iter_audio_files
from crestscope.io.probe import bit_depth_or_default, probe_audio
from crestscope.types import AudioInfo
from tests.conftest import FakeRunner, write_tone


def test_probe_reads_wav_metadata(tmp_path):
    path = write_tone(tmp_path / "tone.wav", seconds=1.5, fs=44100, subtype="PCM_24")
    info = probe_audio(path)
    assert info.backend == "soundfile"
    assert info.format == "wav"
    assert info.sample_rate == 44100.0
    assert info.bit_depth == 24
    assert info.duration == pytest.approx(1.5, abs=1e-3)


def test_probe_reads_flac_metadata(tmp_path):
    path = write_tone(tmp_path / "tone.flac", seconds=0.5)
    info = probe_audio(path)
    assert info.format == "flac"
    assert info.bit_depth == 16


def test_probe_falls_back_to_soxi(tmp_path):
    path = tmp_path / "odd.flac"
    path.write_bytes(b"not really audio")
    runner = FakeRunner(soxi={"-r": "96000", "-b": "24", "-D": "12.500000"})
    info = probe_audio(path, run=runner)
    assert info.backend == "soxi"
    assert info.sample_rate == 96000.0
    assert info.bit_depth == 24
    assert info.duration == 12.5
    assert any("soundfile probe failed" in w for w in info.warnings)


def test_probe_unreadable_fields_are_none(tmp_path):
    path = tmp_path / "broken.wav"
    path.write_bytes(b"\x00\x01")
    info = probe_audio(path, run=FakeRunner())
    assert info.bit_depth is None
    assert info.duration is None
    assert bit_depth_or_default(info) == 16


def test_bit_depth_zero_falls_back():
    info = AudioInfo(Path("x.wav"), "wav", 48000.0, 0, 1.0, "soxi")
    assert bit_depth_or_default(info) == 16


def test_iter_audio_files_filters_and_sorts(tmp_path):
    for name in ("b.wav", "a.wav", "c.flac", "notes.txt"):
        (tmp_path / name).write_bytes(b"")
    (tmp_path / "dir.wav").mkdir()
    assert [p.name for p in iter_audio_files(tmp_path, "wav")] == ["a.wav", "b.wav"]
    assert [p.name for p in iter_audio_files(tmp_path, "flac")] == ["c.flac"]


def test_iter_audio_files_no_matches(tmp_path):
    assert iter_audio_files(tmp_path, "flac") == []


def test_iter_audio_files_rejects_missing_folder(tmp_path):
    with pytest.raises(ValueError):
        iter_audio_files(tmp_path / "missing", "wav")


def test_compressed_subtype_takes_bit_depth_from_soxi(tmp_path):
    path = write_tone(tmp_path / "phone.wav", seconds=0.5, fs=8000, subtype="ULAW")
    runner = FakeRunner(soxi={"-b": "8"})
    info = probe_audio(path, run=runner)
    assert info.backend == "soundfile"
    assert info.bit_depth == 8
    assert bit_depth_or_default(info) == 8
    assert runner.calls == [["soxi", "-b", str(path)]]


def test_compressed_subtype_without_soxi_answer_defaults(tmp_path):
    path = write_tone(tmp_path / "phone.wav", seconds=0.5, fs=8000, subtype="ULAW")
    info = probe_audio(path, run=FakeRunner())
    assert info.bit_depth is None
    assert bit_depth_or_default(info) == 16
    assert any("soxi -b unreadable" in w for w in info.warnings)


def test_pcm_subtype_does_not_call_soxi(tmp_path):
    path = write_tone(tmp_path / "tone.wav", seconds=0.5)
    runner = FakeRunner()
    assert probe_audio(path, run=runner).bit_depth == 16
    assert runner.calls == []
