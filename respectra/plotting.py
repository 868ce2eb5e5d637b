"""Matplotlib helpers for response spectra and the histories behind them.

These functions only build figures; saving or showing them is up to the
caller.
"""

import logging
from collections.abc import Mapping
from typing import Iterable, Optional, Union

import matplotlib as mpl
import matplotlib.pyplot as plt
import numpy as np
from scipy import integrate

from .sweep import Spectrum

log = logging.getLogger(__name__)

_LABELS = {
    'sd': 'SD',
    'sv': 'PSV',
    'sa': 'PSA',
}

_COLORS = ['cornflowerblue', 'salmon', 'blueviolet', 'darkgray', 'darkred', 'navy']


def plot_spectra(
    spectra: Union[Spectrum, Mapping, Iterable[Spectrum]],
    kind: str = 'sa',
    xlim_min: Optional[float] = None,
    xlim_max: Optional[float] = None) -> plt.Figure:
    """Plots SD, PSV or PSA against period on a logarithmic period axis.

    Parameters
    ----------
    spectra : Union[Spectrum, Mapping, Iterable[Spectrum]]
        One spectrum, a mapping ``name -> Spectrum`` (as in
        ``ResponseSpectraCalculator.spectra``) or an iterable of spectra.
    kind : str, optional
        ``'sd'``, ``'sv'`` or ``'sa'``. Default is ``'sa'``.
    xlim_min, xlim_max : Optional[float], optional
        Period limits of the x-axis. Default to the computed range.

    Returns
    -------
    plt.Figure
        Figure with one line per spectrum.
    """
    if kind not in _LABELS:
        raise ValueError(f"kind must be one of {sorted(_LABELS)} (got {kind!r}).")
    if isinstance(spectra, Spectrum):
        spectra = [spectra]
    elif isinstance(spectra, Mapping):
        spectra = list(spectra.values())
    else:
        spectra = list(spectra)

    mpl.rcParams['font.size'] = 9
    mpl.rcParams['legend.frameon'] = False

    fig, ax = plt.subplots(figsize=(6.5, 4.5))
    if not spectra:
        log.warning("No spectra to plot.")
        return fig

    for i, spec in enumerate(spectra):
        ax.semilogx(spec.period, getattr(spec, kind), lw=1,
                    color=_COLORS[i % len(_COLORS)], label=spec.name or f'#{i + 1}')

    T_min = min(np.min(spec.period) for spec in spectra)
    T_max = max(np.max(spec.period) for spec in spectra)
    x_min = xlim_min if xlim_min is not None else T_min
    x_max = xlim_max if xlim_max is not None else T_max
    if x_min < x_max:
        ax.set_xlim(x_min, x_max)
    else:
        log.warning("Invalid xlim provided (min=%s >= max=%s). Using default limits.", x_min, x_max)

    ax.set_xlabel('Period T [s]')
    ax.set_ylabel(f'{_LABELS[kind]} (damping ratio {spectra[0].damping_ratio:.0%})')
    ax.set_ylim(bottom=0)
    ax.grid(True, which='both', linestyle=':', alpha=0.7)
    ax.legend(loc='upper right')
    fig.tight_layout()
    return fig


def plot_history(time: np.ndarray, values: np.ndarray, label: str = '') -> plt.Figure:
    """Plots an acceleration history with its integrated velocity and displacement."""
    time = np.asarray(time, dtype=np.float64)
    values = np.asarray(values, dtype=np.float64)
    vel = integrate.cumulative_trapezoid(values, x=time, initial=0)
    despl = integrate.cumulative_trapezoid(vel, x=time, initial=0)

    mpl.rcParams['font.size'] = 9
    fig, axs = plt.subplots(3, 1, figsize=(6.5, 6.5), sharex=True)
    for ax, data, ylabel in zip(axs, (values, vel, despl), ('Acc.', 'Vel.', 'Displ.')):
        lim = 1.05 * max(np.max(np.abs(data)), np.finfo(float).tiny)
        ax.plot(time, data, lw=1, color='cornflowerblue', label=label or None)
        ax.set_ylim(-lim, lim)
        ax.set_ylabel(ylabel)
        ax.grid(True, linestyle=':', alpha=0.7)
    if label:
        axs[0].legend(loc='upper right')
    axs[-1].set_xlabel('Time [s]')
    fig.tight_layout()
    return fig
