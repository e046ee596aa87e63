"""Run configuration for CrestScope."""
