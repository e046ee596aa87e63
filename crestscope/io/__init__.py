"""Filesystem and external tool I/O for CrestScope."""
