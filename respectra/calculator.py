"""Response spectra of several named time histories sharing one frequency grid.

:class:`ResponseSpectraCalculator` is driven through an explicit lifecycle
that an external driver calls in a fixed order, once per session:

1. ``setup()``  -- read the history names and declare the output vectors;
2. ``reset()``  -- clear the output vectors before data collection ends;
3. ``run()``    -- regularize every history, sweep the shared grid and
   publish the vectors.

The output vectors are ``frequency`` and ``period`` (shared by all
histories) plus ``<name>_sd``, ``<name>_sv`` and ``<name>_sa`` for every
history. Persisting them is left to the caller.
"""

import concurrent.futures
import logging
import multiprocessing
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Dict, Iterable, List, Optional, Tuple, Union

import numpy as np

from .errors import DataError, ParameterError
from .regularize import regularize
from .sdof import SolverMethod, get_solver
from .sweep import Spectrum, frequency_grid, response_spectrum

log = logging.getLogger(__name__)

DEFAULT_DAMPING_RATIO = 0.05
DEFAULT_START_FREQUENCY = 0.01
DEFAULT_END_FREQUENCY = 100.0
DEFAULT_NUM_FREQUENCIES = 401


# =============================================================================
# HISTORY PROVIDERS
# =============================================================================

class HistoryProvider(ABC):
    """Source of named time histories, fully populated before a run."""

    @abstractmethod
    def history_names(self) -> List[str]:
        """Names of the available histories, in output order."""

    @abstractmethod
    def get_history(self, name: str) -> Tuple[np.ndarray, np.ndarray]:
        """Returns ``(time, values)`` of history `name`."""


class DictHistoryProvider(HistoryProvider):
    """In-memory provider backed by a mapping ``name -> (time, values)``."""

    def __init__(self, histories: Mapping):
        self._histories = dict(histories)

    @classmethod
    def from_shared_time(cls, time: np.ndarray, values: Mapping) -> "DictHistoryProvider":
        """Builds a provider where every history uses the same time vector."""
        return cls({name: (time, v) for name, v in values.items()})

    def history_names(self):
        return list(self._histories)

    def get_history(self, name):
        try:
            time, values = self._histories[name]
        except KeyError:
            raise DataError(f"Unknown history '{name}'.", history=name) from None
        return np.asarray(time, dtype=np.float64), np.asarray(values, dtype=np.float64)


def _sweep_worker(name: str, s: np.ndarray, frequencies: np.ndarray, damping_ratio: float,
                  dt: float, method: str) -> Spectrum:
    return response_spectrum(s, frequencies, damping_ratio, dt, method=method, name=name)


# =============================================================================
# CALCULATOR
# =============================================================================

class ResponseSpectraCalculator:
    """Computes pseudo-spectral response of every history of a provider.

    Parameters
    ----------
    provider : Union[HistoryProvider, Mapping]
        Source of the time histories. A mapping ``name -> (time, values)``
        is wrapped in a :class:`DictHistoryProvider`.
    regularize_dt : float
        Time step (s) every history is resampled to before the sweep.
    damping_ratio : float, optional
        Damping ratio of every oscillator. Default is 0.05.
    start_frequency : float, optional
        Lowest grid frequency (Hz). Default is 0.01.
    end_frequency : float, optional
        Highest grid frequency (Hz). Default is 100.0.
    num_frequencies : int, optional
        Number of logarithmically spaced grid points. Default is 401.
    method : Union[SolverMethod, str], optional
        SDOF integration scheme. Default is ``SolverMethod.PIECEWISE_EXACT``.
    use_multiprocessing : bool, optional
        Sweep the histories in a process pool. Results are identical to
        the serial path. Default is False.
    name : str, optional
        Identifier used in log and error messages.

    Raises
    ------
    ParameterError
        If any configuration value is invalid. Nothing is computed.
    """

    def __init__(
        self,
        provider: Union[HistoryProvider, Mapping],
        *,
        regularize_dt: float,
        damping_ratio: float = DEFAULT_DAMPING_RATIO,
        start_frequency: float = DEFAULT_START_FREQUENCY,
        end_frequency: float = DEFAULT_END_FREQUENCY,
        num_frequencies: int = DEFAULT_NUM_FREQUENCIES,
        method: Union[SolverMethod, str] = SolverMethod.PIECEWISE_EXACT,
        use_multiprocessing: bool = False,
        name: str = "response_spectra"):

        if isinstance(provider, Mapping):
            provider = DictHistoryProvider(provider)
        self.provider = provider
        self.name = name

        # Built once; read-only and shared by every history of every run
        self.frequency = frequency_grid(start_frequency, end_frequency, num_frequencies, name=name)
        if not (np.isfinite(damping_ratio) and damping_ratio > 0):
            raise ParameterError(f"Error in {name}. Damping ratio must be positive.",
                                 parameter="damping_ratio")
        if damping_ratio >= 1.0:
            log.warning("%s: damping ratio %.3f is critical or over-critical.", name, damping_ratio)
        if not (np.isfinite(regularize_dt) and regularize_dt > 0):
            raise ParameterError(f"Error in {name}. regularize_dt must be positive "
                                 f"(got {regularize_dt}).", parameter="regularize_dt")

        self.regularize_dt = float(regularize_dt)
        self.damping_ratio = float(damping_ratio)
        self.start_frequency = float(start_frequency)
        self.end_frequency = float(end_frequency)
        self.num_frequencies = int(num_frequencies)
        self.solver = get_solver(method)
        self.use_multiprocessing = use_multiprocessing

        self._history_names: Optional[List[str]] = None
        self.vectors: Dict[str, np.ndarray] = {}
        self.spectra: Dict[str, Spectrum] = {}

    @property
    def history_names(self) -> List[str]:
        if self._history_names is None:
            raise RuntimeError(f"{self.name}: setup() has not been called.")
        return list(self._history_names)

    def vector_names(self) -> List[str]:
        """Names of the output vectors, in output order."""
        names = ["frequency", "period"]
        for h in self.history_names:
            names.extend((f"{h}_sd", f"{h}_sv", f"{h}_sa"))
        return names

    def setup(self) -> None:
        """Reads the history names from the provider and declares the output vectors."""
        names = list(self.provider.history_names())
        if len(set(names)) != len(names):
            raise DataError(f"Error in {self.name}. History names must be unique.")
        self._history_names = names
        self.reset()
        log.info("%s: set up for %d histories.", self.name, len(names))

    def reset(self) -> None:
        """Clears every output vector."""
        self.vectors = {key: np.empty(0) for key in self.vector_names()}
        self.spectra = {}

    def run(self) -> Dict[str, np.ndarray]:
        """Computes the spectra of all histories and publishes the output vectors.

        Returns
        -------
        Dict[str, np.ndarray]
            ``frequency``, ``period`` and ``<name>_sd/_sv/_sa`` per history.

        Raises
        ------
        RuntimeError
            If ``setup()`` was not called first.
        DataError
            If any history is invalid. No output is published.
        """
        names = self.history_names
        self.reset()

        grid = self.frequency
        period = 1.0 / grid
        log.info("%s: %d frequencies between %.4g and %.4g Hz, damping ratio %.3f.",
                 self.name, grid.size, grid[0], grid[-1], self.damping_ratio)

        series = self._regularize_all(names)
        spectra = self._sweep_all(series, grid)

        vectors = {"frequency": grid, "period": period}
        for h in names:
            vectors.update(spectra[h].as_vectors())

        self.spectra = spectra
        self.vectors = vectors
        log.info("%s: finished %d response spectra.", self.name, len(names))
        return vectors

    def _regularize_all(self, names: Iterable[str]) -> Dict[str, np.ndarray]:
        series = {}
        for h in names:
            try:
                time, values = self.provider.get_history(h)
                _, s = regularize(time, values, self.regularize_dt)
            except ValueError as e:
                log.error("%s: history '%s' rejected: %s", self.name, h, e)
                raise DataError(f"Error in {self.name}. History '{h}': {e}", history=h) from e
            if s.size < 2:
                log.warning("%s: history '%s' is shorter than one regularized step; "
                            "its spectrum is zero.", self.name, h)
            series[h] = s
        return series

    def _sweep_all(self, series: Dict[str, np.ndarray], grid: np.ndarray) -> Dict[str, Spectrum]:
        names = list(series)
        args = [(h, series[h], grid, self.damping_ratio, self.regularize_dt,
                 self.solver.method.value) for h in names]

        if self.use_multiprocessing and len(names) > 1:
            # numba's worker threads do not survive a fork
            ctx = multiprocessing.get_context("spawn")
            with concurrent.futures.ProcessPoolExecutor(mp_context=ctx) as executor:
                results = list(executor.map(_sweep_worker, *zip(*args)))
        else:
            results = [_sweep_worker(*a) for a in args]

        # Every spectrum refers to the very same grid object
        return {h: spec._replace(frequency=grid) for h, spec in zip(names, results)}


def response_spectra(
    histories: Union[HistoryProvider, Mapping],
    *,
    regularize_dt: float,
    damping_ratio: float = DEFAULT_DAMPING_RATIO,
    start_frequency: float = DEFAULT_START_FREQUENCY,
    end_frequency: float = DEFAULT_END_FREQUENCY,
    num_frequencies: int = DEFAULT_NUM_FREQUENCIES,
    method: Union[SolverMethod, str] = SolverMethod.PIECEWISE_EXACT,
    use_multiprocessing: bool = False) -> Dict[str, np.ndarray]:
    """Runs the full setup/reset/run cycle and returns the output vectors.

    Example
    -------
    >>> out = response_spectra({"h1": ([0, 0.25, 0.5, 0.75, 1.0], [0, 1, 0, -1, 0])},
    ...                        regularize_dt=0.25, start_frequency=0.5,
    ...                        end_frequency=2.0, num_frequencies=4)
    >>> sorted(out)
    ['frequency', 'h1_sa', 'h1_sd', 'h1_sv', 'period']
    """
    calc = ResponseSpectraCalculator(
        histories, regularize_dt=regularize_dt, damping_ratio=damping_ratio,
        start_frequency=start_frequency, end_frequency=end_frequency,
        num_frequencies=num_frequencies, method=method,
        use_multiprocessing=use_multiprocessing)
    calc.setup()
    calc.reset()
    return calc.run()
