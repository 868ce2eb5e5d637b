"""Frequency grid construction and response spectrum sweeps."""

import logging
import numbers
from typing import Dict, Iterator, NamedTuple, Union

import numpy as np

from .errors import ParameterError
from .sdof import SDOFSolver, SolverMethod, SpectrumPoint, check_oscillator, get_solver

log = logging.getLogger(__name__)


class Spectrum(NamedTuple):
    """Response spectrum of one history, index-aligned with its frequency grid."""

    name: str
    frequency: np.ndarray
    period: np.ndarray
    sd: np.ndarray
    sv: np.ndarray
    sa: np.ndarray
    damping_ratio: float

    def points(self) -> Iterator[SpectrumPoint]:
        for row in zip(self.frequency, self.period, self.sd, self.sv, self.sa):
            yield SpectrumPoint(*(float(x) for x in row))

    def as_vectors(self) -> Dict[str, np.ndarray]:
        """Output vectors named ``<name>_sd``, ``<name>_sv`` and ``<name>_sa``."""
        return {
            f"{self.name}_sd": self.sd,
            f"{self.name}_sv": self.sv,
            f"{self.name}_sa": self.sa,
        }


def check_grid_parameters(
    start_frequency: float,
    end_frequency: float,
    num_frequencies: int,
    name: str = "frequency_grid") -> None:
    """Raises ParameterError for an invalid frequency range."""
    if not (np.isfinite(start_frequency) and np.isfinite(end_frequency)):
        raise ParameterError(f"Error in {name}. Start and end frequencies must be finite.",
                             parameter="start_frequency")
    if start_frequency >= end_frequency:
        raise ParameterError(f"Error in {name}. Starting frequency must be less than the "
                             f"ending frequency.", parameter="start_frequency")
    if start_frequency <= 0.0:
        raise ParameterError(f"Error in {name}. Start and end frequencies must be positive.",
                             parameter="start_frequency")
    if (isinstance(num_frequencies, bool) or not isinstance(num_frequencies, numbers.Integral)
            or num_frequencies < 1):
        raise ParameterError(f"Error in {name}. Number of frequencies must be a positive "
                             f"integer (got {num_frequencies!r}).", parameter="num_frequencies")


def frequency_grid(
    start_frequency: float,
    end_frequency: float,
    num_frequencies: int,
    name: str = "frequency_grid") -> np.ndarray:
    """Builds a logarithmically spaced frequency grid.

    ``f[i] = start * (end/start)**(i/(n-1))`` with both endpoints pinned
    exactly. A single-point grid is ``[start]``.

    Parameters
    ----------
    start_frequency : float
        Lowest frequency (Hz), positive.
    end_frequency : float
        Highest frequency (Hz), greater than `start_frequency`.
    num_frequencies : int
        Number of grid points, at least 1.
    name : str, optional
        Run identifier used in error messages.

    Returns
    -------
    np.ndarray
        Read-only, strictly increasing frequencies (Hz).

    Raises
    ------
    ParameterError
        If the parameters are invalid, or if the range is too narrow to
        hold `num_frequencies` distinct floating-point values.
    """
    check_grid_parameters(start_frequency, end_frequency, num_frequencies, name=name)
    freqs = np.logspace(np.log10(start_frequency), np.log10(end_frequency), int(num_frequencies))
    freqs[0] = start_frequency
    if num_frequencies > 1:
        freqs[-1] = end_frequency
    if np.any(np.diff(freqs) <= 0):
        raise ParameterError(f"Error in {name}. Frequency range [{start_frequency}, "
                             f"{end_frequency}] is too narrow for {num_frequencies} distinct "
                             f"frequencies.", parameter="num_frequencies")
    freqs.flags.writeable = False
    return freqs


def response_spectrum(
    s: np.ndarray,
    frequencies: np.ndarray,
    damping_ratio: float,
    dt: float,
    method: Union[SolverMethod, str, SDOFSolver] = SolverMethod.PIECEWISE_EXACT,
    name: str = "") -> Spectrum:
    """Computes SD, PSV and PSA of a regularly sampled excitation over a frequency grid.

    Parameters
    ----------
    s : np.ndarray
        Excitation sampled at constant `dt` (e.g. ground acceleration).
    frequencies : np.ndarray
        Strictly increasing, positive oscillator frequencies (Hz).
    damping_ratio : float
        Fraction of critical damping used for every oscillator.
    dt : float
        Time step of `s` (s).
    method : Union[SolverMethod, str, SDOFSolver], optional
        Integration scheme or an already composed solver.
        Default is ``SolverMethod.PIECEWISE_EXACT``.
    name : str, optional
        Name attached to the returned spectrum.

    Returns
    -------
    Spectrum
        Spectrum whose entries correspond index by index to `frequencies`.

    Notes
    -----
    Each oscillator is solved independently and written to its own
    pre-allocated slot, so the result does not depend on the order in
    which parallel workers finish.
    """
    frequencies = np.asarray(frequencies, dtype=np.float64)
    if frequencies.ndim != 1 or frequencies.size == 0:
        raise ParameterError("Frequency grid must be a non-empty one-dimensional array.",
                             parameter="frequencies")
    if np.any(np.diff(frequencies) <= 0):
        raise ParameterError("Frequency grid must be strictly increasing.", parameter="frequencies")
    check_oscillator(frequencies[0], damping_ratio, dt)

    solver = method if isinstance(method, SDOFSolver) else get_solver(method)

    nyquist = 0.5 / dt
    if frequencies[-1] > nyquist:
        log.warning("%s: %d oscillator frequencies exceed the Nyquist frequency %.3f Hz "
                    "of the regularized record.", name or "spectrum",
                    int(np.count_nonzero(frequencies > nyquist)), nyquist)

    SD = np.asarray(solver.peak_displacements(s, frequencies, damping_ratio, dt), dtype=np.float64)
    wn = 2 * np.pi * frequencies
    PSV = wn * SD
    PSA = wn**2 * SD
    period = 1.0 / frequencies

    log.debug("%s: swept %d frequencies with %s.", name or "spectrum", frequencies.size,
              solver.method.value)
    return Spectrum(name, frequencies, period, SD, PSV, PSA, float(damping_ratio))
