"""
Example 1: Response spectra of two synthetic records

Builds two synthetic acceleration records, one of them irregularly
sampled, computes their 5%-damped response spectra on a shared frequency
grid and plots PSA against period.

"""

import logging

import numpy as np
import matplotlib.pyplot as plt

from respectra import ResponseSpectraCalculator, plot_history, plot_spectra

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
plt.close('all')

# --- Configuration ---
dampratio = 0.05        # Damping ratio for spectra
reg_dt = 0.005          # Regularization time step (s)
f1, f2, nf = 0.1, 50.0, 200

# --- Synthetic records ---
rng = np.random.default_rng(7)
t1 = np.arange(0, 20, 0.01)
acc1 = np.sin(2 * np.pi * 1.5 * t1) * np.exp(-0.25 * t1)

t2 = np.sort(np.concatenate(([0.0, 20.0], rng.uniform(0, 20, 3000))))
t2 = np.unique(t2)
acc2 = 0.5 * rng.standard_normal(t2.size) * np.exp(-0.5 * (t2 - 5) ** 2 / 4)

# --- Response spectra ---
calc = ResponseSpectraCalculator(
    {'harmonic': (t1, acc1), 'noise': (t2, acc2)},
    regularize_dt=reg_dt, damping_ratio=dampratio,
    start_frequency=f1, end_frequency=f2, num_frequencies=nf)
calc.setup()
calc.reset()
vectors = calc.run()

print(f"Peak PSA (harmonic): {vectors['harmonic_sa'].max():.3f} "
      f"at T = {vectors['period'][np.argmax(vectors['harmonic_sa'])]:.3f} s")

# --- Plot Results ---
plot_history(t1, acc1, label='harmonic')
plot_spectra(calc.spectra, kind='sa')
plt.show()
