"""Exception types raised by CrestScope."""
from __future__ import annotations


class CrestScopeError(Exception):
    """Base class for CrestScope errors."""


class NoPackageManagerError(CrestScopeError):
    """No supported system package manager is available."""


class DependencyInstallError(CrestScopeError):
    """A required external tool is missing and could not be installed."""


class StatsToolError(CrestScopeError):
    """The statistics tool exited with an error."""

    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(message)
        self.output = output


class StatsParseError(CrestScopeError):
    """Peak or RMS level could not be read from a statistics report."""

    def __init__(self, message: str, *, peak: str, rms: str, report: str) -> None:
        super().__init__(message)
        self.peak = peak
        self.rms = rms
        self.report = report
