"""Unit tests for the multi-history calculator and its lifecycle."""

import unittest

import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from respectra import (
    DataError,
    DictHistoryProvider,
    ParameterError,
    ResponseSpectraCalculator,
    SolverMethod,
    response_spectra,
)


def _one_cycle():
    return np.array([0.0, 0.25, 0.5, 0.75, 1.0]), np.array([0.0, 1.0, 0.0, -1.0, 0.0])


class TestEndToEnd(unittest.TestCase):
    """Scenarios covering the full regularize + sweep pipeline."""

    def test_single_history(self):
        out = response_spectra({"h1": _one_cycle()}, regularize_dt=0.25, damping_ratio=0.05,
                               start_frequency=0.5, end_frequency=2.0, num_frequencies=4)
        self.assertEqual(list(out), ["frequency", "period", "h1_sd", "h1_sv", "h1_sa"])
        freq = out["frequency"]
        self.assertEqual(len(freq), 4)
        self.assertEqual(freq[0], 0.5)
        self.assertEqual(freq[-1], 2.0)
        self.assertTrue(np.all(np.diff(freq) > 0))
        for f, T in zip(freq, out["period"]):
            self.assertEqual(T, 1.0 / f)
        for key in ("h1_sd", "h1_sv", "h1_sa"):
            self.assertEqual(len(out[key]), 4)
            self.assertTrue(np.all(np.isfinite(out[key])))
            self.assertTrue(np.all(out[key] >= 0))
        self.assertTrue(np.any(out["h1_sd"] > 0))

    def test_shared_grid_across_histories(self):
        t = np.linspace(0, 4, 801)
        histories = {
            "a": (t, np.sin(2 * np.pi * t)),
            "b": (np.linspace(0, 3, 97), np.cos(np.linspace(0, 3, 97))),
        }
        calc = ResponseSpectraCalculator(histories, regularize_dt=0.01, start_frequency=0.1,
                                         end_frequency=10.0, num_frequencies=30)
        calc.setup()
        calc.reset()
        out = calc.run()
        assert_array_equal(calc.spectra["a"].frequency, calc.spectra["b"].frequency)
        assert_array_equal(calc.spectra["a"].period, calc.spectra["b"].period)
        self.assertIs(calc.spectra["a"].frequency, calc.spectra["b"].frequency)
        self.assertIs(calc.spectra["a"].frequency, out["frequency"])
        for key in ("a_sd", "a_sv", "a_sa", "b_sd", "b_sv", "b_sa"):
            self.assertEqual(len(out[key]), 30)

    def test_zero_history(self):
        t = np.linspace(0, 2, 21)
        out = response_spectra({"quiet": (t, np.zeros_like(t))}, regularize_dt=0.05,
                               num_frequencies=11)
        for key in ("quiet_sd", "quiet_sv", "quiet_sa"):
            assert_array_equal(out[key], np.zeros(11))

    def test_defaults(self):
        calc = ResponseSpectraCalculator({"h1": _one_cycle()}, regularize_dt=0.25)
        self.assertEqual(calc.damping_ratio, 0.05)
        self.assertEqual(calc.start_frequency, 0.01)
        self.assertEqual(calc.end_frequency, 100.0)
        self.assertEqual(calc.num_frequencies, 401)
        self.assertIs(calc.solver.method, SolverMethod.PIECEWISE_EXACT)

    def test_shared_time_provider(self):
        time, values = _one_cycle()
        provider = DictHistoryProvider.from_shared_time(time, {"x": values, "y": 2 * values})
        out = response_spectra(provider, regularize_dt=0.125, start_frequency=0.5,
                               end_frequency=2.0, num_frequencies=4)
        assert_allclose(out["y_sd"], 2 * out["x_sd"], rtol=1e-12)

    def test_frequency_domain_method(self):
        out = response_spectra({"h1": _one_cycle()}, regularize_dt=0.05, start_frequency=0.5,
                               end_frequency=2.0, num_frequencies=4, method="frequency_domain")
        self.assertTrue(np.all(np.isfinite(out["h1_sd"])))

    def test_multiprocessing_matches_serial(self):
        t = np.linspace(0, 2, 201)
        histories = {"a": (t, np.sin(3 * t)), "b": (t, np.cos(5 * t))}
        kwargs = dict(regularize_dt=0.01, start_frequency=0.5, end_frequency=5.0,
                      num_frequencies=8, method=SolverMethod.FREQUENCY_DOMAIN)
        serial = response_spectra(histories, **kwargs)
        pooled = response_spectra(histories, use_multiprocessing=True, **kwargs)
        self.assertEqual(list(serial), list(pooled))
        for key in serial:
            assert_array_equal(serial[key], pooled[key])


class TestLifecycle(unittest.TestCase):
    """setup() -> reset() -> run() contract."""

    def setUp(self):
        self.calc = ResponseSpectraCalculator({"h1": _one_cycle()}, regularize_dt=0.25,
                                              start_frequency=0.5, end_frequency=2.0,
                                              num_frequencies=4)

    def test_run_before_setup(self):
        with self.assertRaises(RuntimeError):
            self.calc.run()

    def test_setup_declares_vectors(self):
        self.calc.setup()
        self.assertEqual(list(self.calc.vectors),
                         ["frequency", "period", "h1_sd", "h1_sv", "h1_sa"])
        for v in self.calc.vectors.values():
            self.assertEqual(v.size, 0)

    def test_reset_clears_previous_run(self):
        self.calc.setup()
        self.calc.reset()
        self.calc.run()
        self.assertEqual(self.calc.vectors["h1_sd"].size, 4)
        self.calc.reset()
        self.assertEqual(self.calc.vectors["h1_sd"].size, 0)
        self.assertEqual(self.calc.spectra, {})

    def test_repeated_runs_identical(self):
        self.calc.setup()
        self.calc.reset()
        first = {k: v.copy() for k, v in self.calc.run().items()}
        self.calc.reset()
        second = self.calc.run()
        for key in first:
            assert_array_equal(first[key], second[key])

    def test_duplicate_names(self):
        class _Dup(DictHistoryProvider):
            def history_names(self):
                return ["h1", "h1"]

        calc = ResponseSpectraCalculator(_Dup({"h1": _one_cycle()}), regularize_dt=0.25)
        with self.assertRaises(DataError):
            calc.setup()

    def test_no_histories(self):
        calc = ResponseSpectraCalculator({}, regularize_dt=0.1, num_frequencies=5)
        calc.setup()
        out = calc.run()
        self.assertEqual(list(out), ["frequency", "period"])


class TestFailures(unittest.TestCase):
    """Configuration and data errors abort the whole run."""

    def test_configuration_errors(self):
        histories = {"h1": _one_cycle()}
        cases = [
            (dict(start_frequency=2.0, end_frequency=1.0), "start_frequency"),
            (dict(start_frequency=0.0), "start_frequency"),
            (dict(num_frequencies=0), "num_frequencies"),
            (dict(damping_ratio=0.0), "damping_ratio"),
            (dict(damping_ratio=-0.05), "damping_ratio"),
        ]
        for kwargs, parameter in cases:
            with self.assertRaises(ParameterError, msg=str(kwargs)) as ctx:
                ResponseSpectraCalculator(histories, regularize_dt=0.25, name="rs", **kwargs)
            self.assertEqual(ctx.exception.parameter, parameter)
            self.assertIn("Error in rs.", str(ctx.exception))
        for dt in (0.0, -1.0):
            with self.assertRaises(ParameterError) as ctx:
                ResponseSpectraCalculator(histories, regularize_dt=dt)
            self.assertEqual(ctx.exception.parameter, "regularize_dt")

    def test_narrow_frequency_range_rejected_at_construction(self):
        with self.assertRaises(ParameterError) as ctx:
            ResponseSpectraCalculator({"h1": _one_cycle()}, regularize_dt=0.1, name="rs",
                                      start_frequency=1.0, end_frequency=1.0 + 1e-13,
                                      num_frequencies=1000)
        self.assertEqual(ctx.exception.parameter, "num_frequencies")
        self.assertIn("Error in rs.", str(ctx.exception))

    def test_grid_shared_between_runs(self):
        calc = ResponseSpectraCalculator({"h1": _one_cycle()}, regularize_dt=0.25,
                                         start_frequency=0.5, end_frequency=2.0,
                                         num_frequencies=4)
        calc.setup()
        self.assertIs(calc.run()["frequency"], calc.frequency)
        self.assertIs(calc.run()["frequency"], calc.frequency)

    def test_ragged_history_wrapped_as_data_error(self):
        ragged = ([0.0, [0.1, 0.2], 0.3], [1.0, 2.0, 3.0])
        calc = ResponseSpectraCalculator({"good": _one_cycle(), "ragged": ragged},
                                         regularize_dt=0.25, name="rs")
        calc.setup()
        with self.assertLogs("respectra", level="ERROR"):
            with self.assertRaises(DataError) as ctx:
                calc.run()
        self.assertEqual(ctx.exception.history, "ragged")
        self.assertIn("Error in rs.", str(ctx.exception))
        self.assertEqual(calc.vectors["good_sd"].size, 0)

    def test_provider_data_error_is_logged(self):
        class _Failing(DictHistoryProvider):
            def get_history(self, name):
                raise DataError(f"channel '{name}' not recorded")

        calc = ResponseSpectraCalculator(_Failing({"h1": _one_cycle()}), regularize_dt=0.25)
        calc.setup()
        with self.assertLogs("respectra", level="ERROR") as logs:
            with self.assertRaises(DataError) as ctx:
                calc.run()
        self.assertEqual(ctx.exception.history, "h1")
        self.assertTrue(any("h1" in line for line in logs.output))

    def test_over_critical_damping_warned_once(self):
        t = np.linspace(0, 2, 201)
        histories = {"a": (t, np.sin(3 * t)), "b": (t, np.cos(5 * t))}
        with self.assertLogs("respectra", level="WARNING") as logs:
            response_spectra(histories, regularize_dt=0.01, damping_ratio=2.0,
                             start_frequency=0.5, end_frequency=5.0, num_frequencies=4)
        warned = [line for line in logs.output if "over-critical" in line]
        self.assertEqual(len(warned), 1)

    def test_regularize_dt_required(self):
        with self.assertRaises(TypeError):
            ResponseSpectraCalculator({"h1": _one_cycle()})

    def test_unknown_method(self):
        with self.assertRaises(ParameterError):
            ResponseSpectraCalculator({"h1": _one_cycle()}, regularize_dt=0.25, method="euler")

    def test_bad_history_gives_no_partial_output(self):
        good = _one_cycle()
        bad = (np.array([0.0, 0.5, 0.4]), np.array([1.0, 2.0, 3.0]))
        calc = ResponseSpectraCalculator({"good": good, "bad": bad}, regularize_dt=0.25,
                                         start_frequency=0.5, end_frequency=2.0,
                                         num_frequencies=4)
        calc.setup()
        calc.reset()
        with self.assertRaises(DataError) as ctx:
            calc.run()
        self.assertEqual(ctx.exception.history, "bad")
        self.assertEqual(calc.spectra, {})
        for v in calc.vectors.values():
            self.assertEqual(v.size, 0)

    def test_short_history(self):
        with self.assertRaises(DataError):
            response_spectra({"h1": ([0.0], [1.0])}, regularize_dt=0.1)


if __name__ == '__main__':
    unittest.main()
