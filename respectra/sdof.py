"""Peak response of a damped single-degree-of-freedom (SDOF) oscillator.

The oscillator obeys the relative-motion equation of motion

    u'' + 2*zeta*wn*u' + wn^2*u = -ag(t)

where ``ag`` is the (regularized) base excitation. The peak relative
displacement over the whole record is the spectral displacement ``SD``;
the pseudo-spectral velocity and acceleration follow as ``PSV = wn*SD``
and ``PSA = wn^2*SD``.

Two solvers implement the same :class:`SDOFSolver` interface and are
selected with :class:`SolverMethod` when a sweep is composed:

- ``PIECEWISE_EXACT``: exact recursion for an excitation that varies
  linearly between samples (Nigam & Jennings, 1969). The state transition
  coefficients are constant for fixed ``wn``, ``zeta`` and ``dt``, so the
  recursion is unconditionally stable for any ``dt*f``.
- ``FREQUENCY_DOMAIN``: transfer-function solution evaluated with the FFT
  on a zero-padded record.

References
----------
.. [1] Nigam, N. C., & Jennings, P. C. (1969). Calculation of response
   spectra from strong-motion earthquake records. Bulletin of the
   Seismological Society of America, 59(2), 909-922.
.. [2] Chopra, A. K. (2012). Dynamics of Structures, 4th ed., Section 5.2.
"""

import enum
import logging
from abc import ABC, abstractmethod
from typing import NamedTuple, Tuple, Union

import numpy as np
from numba import jit, prange
from scipy import linalg

from .errors import ParameterError

log = logging.getLogger(__name__)


class SolverMethod(enum.Enum):
    """Available SDOF integration schemes."""

    PIECEWISE_EXACT = "piecewise_exact"
    FREQUENCY_DOMAIN = "frequency_domain"


class SpectrumPoint(NamedTuple):
    """Peak response of one oscillator."""

    frequency: float
    period: float
    sd: float
    sv: float
    sa: float

    @classmethod
    def from_displacement(cls, frequency: float, sd: float) -> "SpectrumPoint":
        """Builds a point from the peak relative displacement (pseudo-spectral convention)."""
        wn = 2.0 * np.pi * frequency
        return cls(frequency, 1.0 / frequency, sd, wn * sd, wn**2 * sd)


def check_oscillator(frequency: float, damping_ratio: float, dt: float) -> None:
    """Raises ParameterError unless frequency, damping ratio and dt are positive and finite."""
    if not (np.isfinite(frequency) and frequency > 0):
        raise ParameterError(f"Oscillator frequency must be positive (got {frequency}).",
                             parameter="frequency")
    if not (np.isfinite(damping_ratio) and damping_ratio > 0):
        raise ParameterError(f"Damping ratio must be positive (got {damping_ratio}).",
                             parameter="damping_ratio")
    if not (np.isfinite(dt) and dt > 0):
        raise ParameterError(f"Time step must be positive (got {dt}).", parameter="dt")


# =============================================================================
# STATE TRANSITION COEFFICIENTS
# =============================================================================

def _underdamped_coefficients(wn: float, zeta: float, dt: float) -> Tuple[np.ndarray, np.ndarray]:
    """Closed-form A and B matrices for 0 < zeta < 1.

    The state ``U = [u, u']`` advances as ``U[q+1] = A @ U[q] + B @ [ag[q], ag[q+1]]``.
    """
    wn_sq = wn**2
    wn_cb = wn_sq * wn

    sqrt_term = np.sqrt(1.0 - zeta**2)
    wd = wn * sqrt_term
    zeta_term = zeta / sqrt_term

    e_zwt = np.exp(-zeta * wn * dt)
    cos_wdt = np.cos(wd * dt)
    sin_wdt = np.sin(wd * dt)

    a11 = e_zwt * (cos_wdt + zeta_term * sin_wdt)
    a12 = e_zwt * sin_wdt / wd
    a21 = -wn / sqrt_term * e_zwt * sin_wdt
    a22 = e_zwt * (cos_wdt - zeta_term * sin_wdt)

    b11 = e_zwt * (((2 * zeta**2 - 1) / (wn_sq * dt) + zeta / wn) * sin_wdt / wd +
                   (2 * zeta / (wn_cb * dt) + 1 / wn_sq) * cos_wdt) - 2 * zeta / (wn_cb * dt)
    b12 = -e_zwt * (((2 * zeta**2 - 1) / (wn_sq * dt)) * sin_wdt / wd +
                    (2 * zeta / (wn_cb * dt)) * cos_wdt) - 1 / wn_sq + 2 * zeta / (wn_cb * dt)
    b21 = -(a11 - 1) / (wn_sq * dt) - a12
    b22 = -b21 - a12

    return np.array([[a11, a12], [a21, a22]]), np.array([[b11, b12], [b21, b22]])


def _expm_coefficients(wn: float, zeta: float, dt: float) -> Tuple[np.ndarray, np.ndarray]:
    """A and B matrices from the exponential of the augmented state matrix.

    Valid for any zeta > 0, including critical and over-critical damping.
    The augmented state is ``[u, u', ag, ag']`` with ``ag'`` constant over
    one step, which is exactly the piecewise-linear excitation assumption.
    """
    M = np.array([
        [0.0, 1.0, 0.0, 0.0],
        [-wn**2, -2.0 * zeta * wn, -1.0, 0.0],
        [0.0, 0.0, 0.0, 1.0],
        [0.0, 0.0, 0.0, 0.0],
    ])
    E = linalg.expm(M * dt)
    A = E[:2, :2].copy()
    g0 = E[:2, 2]
    g1 = E[:2, 3] / dt
    B = np.column_stack((g0 - g1, g1))
    return A, B


def transition_coefficients(frequency: float, damping_ratio: float, dt: float) -> Tuple[np.ndarray, np.ndarray]:
    """Computes the constant state-transition and load matrices of one oscillator.

    Parameters
    ----------
    frequency : float
        Oscillator frequency (Hz).
    damping_ratio : float
        Fraction of critical damping.
    dt : float
        Time step of the excitation (s).

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        - A (np.ndarray): 2x2 state transition matrix.
        - B (np.ndarray): 2x2 load matrix acting on ``[ag[q], ag[q+1]]``.
    """
    check_oscillator(frequency, damping_ratio, dt)
    wn = 2.0 * np.pi * frequency
    if damping_ratio < 1.0:
        return _underdamped_coefficients(wn, damping_ratio, dt)
    return _expm_coefficients(wn, damping_ratio, dt)


# =============================================================================
# STEPPING KERNELS
# =============================================================================

@jit(nopython=True, cache=True)
def _peak_relative_displacement(A: np.ndarray, B: np.ndarray, s: np.ndarray) -> float:
    """Steps the recursion over `s` from rest and returns max |u|."""
    a11 = A[0, 0]; a12 = A[0, 1]; a21 = A[1, 0]; a22 = A[1, 1]
    b11 = B[0, 0]; b12 = B[0, 1]; b21 = B[1, 0]; b22 = B[1, 1]
    u = 0.0
    v = 0.0
    peak = 0.0
    for q in range(len(s) - 1):
        p0 = s[q]
        p1 = s[q + 1]
        u_next = a11 * u + a12 * v + b11 * p0 + b12 * p1
        v = a21 * u + a22 * v + b21 * p0 + b22 * p1
        u = u_next
        if abs(u) > peak:
            peak = abs(u)
    return peak


@jit(nopython=True, cache=True, parallel=True)
def _peak_relative_displacements(A: np.ndarray, B: np.ndarray, s: np.ndarray) -> np.ndarray:
    """Runs one recursion per oscillator; A and B are stacked (nfreq, 2, 2)."""
    nf = A.shape[0]
    peaks = np.zeros(nf)
    for k in prange(nf):
        peaks[k] = _peak_relative_displacement(A[k], B[k], s)
    return peaks


# =============================================================================
# SOLVERS
# =============================================================================

class SDOFSolver(ABC):
    """Common interface of the SDOF peak-response solvers."""

    method: SolverMethod

    @abstractmethod
    def peak_displacements(
        self,
        s: np.ndarray,
        frequencies: np.ndarray,
        damping_ratio: float,
        dt: float) -> np.ndarray:
        """Peak relative displacement for each frequency, in the order given."""

    def solve(self, s: np.ndarray, frequency: float, damping_ratio: float, dt: float) -> SpectrumPoint:
        """Peak response of a single oscillator."""
        check_oscillator(frequency, damping_ratio, dt)
        sd = self.peak_displacements(s, np.array([frequency], dtype=np.float64), damping_ratio, dt)[0]
        return SpectrumPoint.from_displacement(float(frequency), float(sd))


class PiecewiseExactSolver(SDOFSolver):
    """Exact integration for piecewise-linear excitation (Nigam-Jennings)."""

    method = SolverMethod.PIECEWISE_EXACT

    def peak_displacements(self, s, frequencies, damping_ratio, dt):
        frequencies = np.asarray(frequencies, dtype=np.float64)
        s = np.ascontiguousarray(s, dtype=np.float64)
        nf = frequencies.size
        if damping_ratio >= 1.0:
            log.debug("Damping ratio %.3f is critical or over-critical; using matrix "
                      "exponential coefficients.", damping_ratio)

        A = np.empty((nf, 2, 2))
        B = np.empty((nf, 2, 2))
        for k in range(nf):
            A[k], B[k] = transition_coefficients(frequencies[k], damping_ratio, dt)

        log.debug("Piecewise exact solve: %d oscillators, %d samples.", nf, s.size)
        return _peak_relative_displacements(A, B, s)


class FrequencyDomainSolver(SDOFSolver):
    """Transfer-function solution on a zero-padded FFT of the excitation.

    The record is padded with at least ten cycles of the longest period so
    that the circular convolution implied by the FFT does not wrap the
    free-vibration tail back onto the start of the record.
    """

    method = SolverMethod.FREQUENCY_DOMAIN

    def peak_displacements(self, s, frequencies, damping_ratio, dt):
        frequencies = np.asarray(frequencies, dtype=np.float64)
        s = np.asarray(s, dtype=np.float64)
        for f in frequencies:
            check_oscillator(f, damping_ratio, dt)

        npo = s.size
        SD = np.zeros(frequencies.size)
        if npo < 2 or frequencies.size == 0:
            return SD

        n_pad_min = int(np.ceil(10.0 / (np.min(frequencies) * dt)))
        n_fft = int(2**np.ceil(np.log2(npo + n_pad_min)))
        s_padded = np.pad(s, (0, n_fft - npo))

        ww = 2 * np.pi * np.fft.rfftfreq(n_fft, dt)
        ffts = np.fft.rfft(s_padded)
        log.debug("Frequency domain solve: %d oscillators, FFT length %d.", frequencies.size, n_fft)

        for kk, f in enumerate(frequencies):
            wn = 2 * np.pi * f
            # H(w) = U(w) / Ag(w) for u'' + 2*zeta*wn*u' + wn^2*u = -ag
            H_disp = -1.0 / (wn**2 - ww**2 + 2j * damping_ratio * wn * ww)
            d = np.fft.irfft(H_disp * ffts, n_fft)
            SD[kk] = np.max(np.abs(d[:npo]))
        return SD


_SOLVERS = {
    SolverMethod.PIECEWISE_EXACT: PiecewiseExactSolver,
    SolverMethod.FREQUENCY_DOMAIN: FrequencyDomainSolver,
}


def get_solver(method: Union[SolverMethod, str] = SolverMethod.PIECEWISE_EXACT) -> SDOFSolver:
    """Returns the solver implementing `method` (enum member or its string value)."""
    try:
        method = SolverMethod(method)
    except ValueError:
        choices = ", ".join(m.value for m in SolverMethod)
        raise ParameterError(f"Unknown solver method {method!r}. Expected one of: {choices}.",
                             parameter="method") from None
    return _SOLVERS[method]()


def sdof_response(
    s: np.ndarray,
    frequency: float,
    damping_ratio: float,
    dt: float,
    method: Union[SolverMethod, str] = SolverMethod.PIECEWISE_EXACT) -> SpectrumPoint:
    """Peak response of one damped SDOF oscillator to a regularly sampled excitation.

    Parameters
    ----------
    s : np.ndarray
        Excitation (ground acceleration) sampled at constant `dt`.
    frequency : float
        Oscillator frequency (Hz). Must be positive.
    damping_ratio : float
        Fraction of critical damping. Must be positive.
    dt : float
        Time step of `s` (s).
    method : Union[SolverMethod, str], optional
        Integration scheme. Default is ``SolverMethod.PIECEWISE_EXACT``.

    Returns
    -------
    SpectrumPoint
        Frequency, period ``1/frequency``, SD, PSV ``= wn*SD`` and
        PSA ``= wn^2*SD``.

    Raises
    ------
    ParameterError
        If `frequency`, `damping_ratio` or `dt` is not positive.
    """
    return get_solver(method).solve(s, frequency, damping_ratio, dt)
