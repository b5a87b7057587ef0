from __future__ import annotations


class PlotDataError(ValueError):
    """Raised when series input cannot be turned into plottable arrays."""


class ChartConfigurationError(PlotDataError):
    """Structural misconfiguration detected before any chart object is built."""


class ChartStateError(RuntimeError):
    """Raised when a builder is used after it reached its terminal state."""
