"""
respectra: response spectra of recorded or simulated ground motions.

For a sweep of oscillator frequencies, this package computes the peak
response of a damped single-degree-of-freedom (SDOF) oscillator to one or
more acceleration time histories: spectral displacement (SD),
pseudo-spectral velocity (PSV) and pseudo-spectral acceleration (PSA).

Its capabilities include:
1.  Resampling irregularly sampled histories onto a constant time step.
2.  Exact piecewise-linear (Nigam-Jennings) integration of the SDOF
    response, unconditionally stable for any time step, plus a
    frequency-domain alternative.
3.  Sweeping a logarithmic frequency grid shared by several histories.
4.  Plotting helpers for spectra and histories.

---
Quick Start
---

.. code-block:: python

    import numpy as np
    import matplotlib.pyplot as plt
    from respectra import response_spectra, ResponseSpectraCalculator, plot_spectra

    t = np.linspace(0, 20, 4001)
    acc = np.sin(2 * np.pi * 1.5 * t) * np.exp(-0.2 * t)

    out = response_spectra({'ground': (t, acc)}, regularize_dt=0.005)
    # out['frequency'], out['period'], out['ground_sd'], out['ground_sv'], out['ground_sa']

    # Same computation through the explicit lifecycle
    calc = ResponseSpectraCalculator({'ground': (t, acc)}, regularize_dt=0.005)
    calc.setup()
    calc.reset()
    calc.run()
    fig = plot_spectra(calc.spectra, kind='sa')
    plt.show()

"""

__copyright__ = "Copyright 2025, respectra developers"
__license__ = "MIT"
__version__ = "0.1.0"

from .errors import DataError, ParameterError, ResponseSpectraError
from .regularize import regularize
from .sdof import (
    FrequencyDomainSolver,
    PiecewiseExactSolver,
    SDOFSolver,
    SolverMethod,
    SpectrumPoint,
    get_solver,
    sdof_response,
    transition_coefficients,
)
from .sweep import Spectrum, frequency_grid, response_spectrum
from .calculator import (
    DEFAULT_DAMPING_RATIO,
    DEFAULT_END_FREQUENCY,
    DEFAULT_NUM_FREQUENCIES,
    DEFAULT_START_FREQUENCY,
    DictHistoryProvider,
    HistoryProvider,
    ResponseSpectraCalculator,
    response_spectra,
)
from .plotting import plot_history, plot_spectra

__all__ = [
    "DataError", "ParameterError", "ResponseSpectraError",
    "regularize",
    "FrequencyDomainSolver", "PiecewiseExactSolver", "SDOFSolver", "SolverMethod",
    "SpectrumPoint", "get_solver", "sdof_response", "transition_coefficients",
    "Spectrum", "frequency_grid", "response_spectrum",
    "DEFAULT_DAMPING_RATIO", "DEFAULT_END_FREQUENCY", "DEFAULT_NUM_FREQUENCIES",
    "DEFAULT_START_FREQUENCY", "DictHistoryProvider", "HistoryProvider",
    "ResponseSpectraCalculator", "response_spectra",
    "plot_history", "plot_spectra",
]
