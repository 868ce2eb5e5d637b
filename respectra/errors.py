"""Exception types raised by respectra.

Both kinds abort a run. Neither is retried: every input is known before
the computation starts.
"""

from typing import Optional


class ResponseSpectraError(ValueError):
    """Base class for all respectra errors."""


class ParameterError(ResponseSpectraError):
    """Invalid configuration (frequency range, damping ratio, time step...).

    Parameters
    ----------
    message : str
        Human readable description, usually ``"Error in <run>. <problem>."``.
    parameter : Optional[str]
        Name of the offending parameter, if known.
    """

    def __init__(self, message: str, parameter: Optional[str] = None):
        super().__init__(message)
        self.parameter = parameter


class DataError(ResponseSpectraError):
    """Invalid input history (too short, non-increasing time, non-finite values).

    Parameters
    ----------
    message : str
        Human readable description.
    history : Optional[str]
        Name of the offending history, filled in by the orchestrator.
    """

    def __init__(self, message: str, history: Optional[str] = None):
        super().__init__(message)
        self.history = history
