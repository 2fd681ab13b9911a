# canvasgraph/errors.py
"""Exception taxonomy for graph assembly.

Assembly either returns a fully validated graph or raises one of these.
Errors raised inside augmentation stages propagate unchanged.
"""
from __future__ import annotations


class CanvasGraphError(Exception):
    """Base class for all assembly errors."""


class ConfigurationError(CanvasGraphError, ValueError):
    """A required configuration value is missing or unusable.

    Raised before any node is created.
    """


class GraphConstructionError(CanvasGraphError, ValueError):
    """An add/connect/rewire call would break a structural invariant."""


class GraphValidationError(CanvasGraphError, ValueError):
    """The assembled graph failed the final structural check."""

    def __init__(self, message: str, violations=None):
        super().__init__(message)
        self.violations = list(violations or [message])


class StageOrderError(CanvasGraphError, ValueError):
    """An augmentation pipeline declares its stages out of order."""
