"""Spectrogram rendering."""
