"""Resampling of time histories onto a constant time step."""

import logging
from typing import Tuple

import numpy as np

from .errors import DataError, ParameterError

log = logging.getLogger(__name__)

# Relative slack used when counting samples, so that spans that are exact
# multiples of dt in decimal (e.g. 0.3 / 0.1) keep their last sample.
_COUNT_RTOL = 1e-9


def regularize(
    time: np.ndarray,
    values: np.ndarray,
    dt: float) -> Tuple[np.ndarray, np.ndarray]:
    """Resamples a time history onto a constant time step.

    Parameters
    ----------
    time : np.ndarray
        Sample times (s). Must be strictly increasing, at least 2 samples.
    values : np.ndarray
        Sample values (e.g. acceleration), same length as `time`.
    dt : float
        Target time step (s). Must be positive.

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        - t_reg (np.ndarray): Regular sample times, ``time[0] + k*dt``.
        - s_reg (np.ndarray): Linearly interpolated values at `t_reg`.

    Raises
    ------
    ParameterError
        If `dt` is not positive.
    DataError
        If the history has fewer than 2 samples, mismatched lengths,
        non-finite entries or non-increasing times.

    Notes
    -----
    The number of samples is ``floor((time[-1] - time[0]) / dt) + 1``.
    Query times past the last input time are clamped to it, so no value
    is ever extrapolated.
    """
    if not dt > 0:
        raise ParameterError(f"Regularization time step must be positive (got {dt}).",
                             parameter="regularize_dt")

    time = np.asarray(time, dtype=np.float64)
    values = np.asarray(values, dtype=np.float64)

    if time.ndim != 1 or values.ndim != 1:
        raise DataError("Time and value vectors must be one-dimensional.")
    if time.size != values.size:
        raise DataError(f"Time and value vectors have different lengths "
                        f"({time.size} vs {values.size}).")
    if time.size < 2:
        raise DataError(f"At least 2 samples are required for regularization (got {time.size}).")
    if not (np.all(np.isfinite(time)) and np.all(np.isfinite(values))):
        raise DataError("Time history contains non-finite values.")
    steps = np.diff(time)
    if np.any(steps <= 0):
        bad = int(np.argmax(steps <= 0)) + 1
        raise DataError(f"Time values must be strictly increasing (violated at sample {bad}, "
                        f"t={time[bad]}).")

    span = time[-1] - time[0]
    npts = int(np.floor(span / dt * (1.0 + _COUNT_RTOL))) + 1
    t_reg = time[0] + dt * np.arange(npts)
    # Clamp the tail so rounding can never ask for an extrapolated value
    np.minimum(t_reg, time[-1], out=t_reg)
    if time[-1] - t_reg[-1] <= _COUNT_RTOL * span:
        t_reg[-1] = time[-1]

    s_reg = np.interp(t_reg, time, values)
    log.debug("Regularized %d samples to %d samples at dt=%g s.", time.size, npts, dt)
    return t_reg, s_reg
