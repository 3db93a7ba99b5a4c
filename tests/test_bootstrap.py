"""
Unit tests for the percentile bootstrap engine.
"""

import unittest
import warnings
import numpy as np
from unittest.mock import patch
import sys
from pathlib import Path

# Add src to path
sys.path.append(str(Path(__file__).parent.parent / "src"))

from causal_bc_preterm.data.preprocessor import DESIGN_COLUMNS
from causal_bc_preterm.data.simulation import simulate_births
from causal_bc_preterm.models.bootstrap import BootstrapResampler, BootstrapResult
from causal_bc_preterm.models.gcomputation import risk_difference
from causal_bc_preterm.models.outcome_model import IdentifiabilityWarning, ModelFitError, OutcomeModel


class TestBootstrapResampler(unittest.TestCase):
    """Test cases for BootstrapResampler."""

    def setUp(self):
        """Set up test fixtures."""
        self.sample_data = simulate_births(n_samples=600, exposure_log_odds=0.6, random_state=17)

    def test_initialization(self):
        """Test resampler defaults and validation."""
        resampler = BootstrapResampler()

        self.assertEqual(resampler.n_bootstrap, 10000)
        self.assertEqual(resampler.confidence_level, 0.95)
        self.assertEqual(resampler.n_jobs, 1)

        with self.assertRaises(ValueError):
            BootstrapResampler(n_bootstrap=0)
        with self.assertRaises(ValueError):
            BootstrapResampler(confidence_level=1.5)

    def test_point_estimate_uses_original_data(self):
        """Test the point estimate is the contrast from a fit on the unresampled data."""
        result = BootstrapResampler(n_bootstrap=10, seed=3).run(self.sample_data)

        model = OutcomeModel().fit(self.sample_data)
        self.assertAlmostEqual(result.point_estimate, risk_difference(model, self.sample_data))

    def test_replicate_count_and_bounds(self):
        """Test the distribution size and interval ordering."""
        result = BootstrapResampler(n_bootstrap=60, seed=5).run(self.sample_data)

        self.assertIsInstance(result, BootstrapResult)
        self.assertEqual(len(result.replicates), 60)
        self.assertLessEqual(result.ci_lower, result.ci_upper)
        self.assertTrue(result.contains_point_estimate)
        self.assertTrue(np.all(np.abs(result.replicates) <= 1))
        self.assertGreater(result.std_error, 0)
        self.assertTrue(result.identified)

    def test_percentile_interval(self):
        """Test the interval is the 2.5th and 97.5th percentile of the replicates."""
        result = BootstrapResampler(n_bootstrap=40, seed=8).run(self.sample_data)

        lower, upper = np.percentile(result.replicates, [2.5, 97.5])
        self.assertAlmostEqual(result.ci_lower, lower)
        self.assertAlmostEqual(result.ci_upper, upper)

    def test_same_seed_is_deterministic(self):
        """Test repeated runs with one seed give identical results."""
        first = BootstrapResampler(n_bootstrap=30, seed=123).run(self.sample_data)
        second = BootstrapResampler(n_bootstrap=30, seed=123).run(self.sample_data)

        np.testing.assert_array_equal(first.replicates, second.replicates)
        self.assertEqual(first.point_estimate, second.point_estimate)
        self.assertEqual(first.ci_lower, second.ci_lower)
        self.assertEqual(first.ci_upper, second.ci_upper)

    def test_different_seeds_differ(self):
        """Test the seed controls the resampling sequence."""
        first = BootstrapResampler(n_bootstrap=20, seed=1).replicate(self.sample_data)
        second = BootstrapResampler(n_bootstrap=20, seed=2).replicate(self.sample_data)

        self.assertFalse(np.array_equal(first, second))

    def test_worker_count_does_not_change_results(self):
        """Test parallel execution reproduces the sequential replicates."""
        sequential = BootstrapResampler(n_bootstrap=24, seed=99, n_jobs=1).replicate(self.sample_data)
        parallel = BootstrapResampler(n_bootstrap=24, seed=99, n_jobs=2).replicate(self.sample_data)

        np.testing.assert_allclose(sequential, parallel, rtol=0, atol=1e-12)

    def test_chunks_cover_all_seeds(self):
        """Test chunking keeps every replication exactly once and in order."""
        resampler = BootstrapResampler(n_bootstrap=23, seed=4)
        seeds = resampler._spawn_seeds()
        chunks = resampler._chunk(seeds, 8)

        flattened = [ss for chunk in chunks for ss in chunk]
        self.assertEqual(len(flattened), 23)
        self.assertEqual([ss.spawn_key for ss in flattened], [ss.spawn_key for ss in seeds])

    def test_model_refit_per_replication(self):
        """Test the outcome model is refit on every resampled draw."""
        original_fit = OutcomeModel.fit

        with patch.object(OutcomeModel, 'fit', autospec=True, side_effect=original_fit) as mock_fit:
            BootstrapResampler(n_bootstrap=5, seed=6).run(self.sample_data)

        # One fit for the point estimate plus one per replication
        self.assertEqual(mock_fit.call_count, 6)
        for call in mock_fit.call_args_list:
            self.assertEqual(len(call.args[1]), len(self.sample_data))

    def test_replication_failure_propagates(self):
        """Test a failed fit on any draw fails the whole run."""
        with patch('causal_bc_preterm.models.bootstrap._draw_and_estimate',
                   side_effect=ModelFitError("did not converge")):
            with self.assertRaises(ModelFitError):
                BootstrapResampler(n_bootstrap=5, seed=6).run(self.sample_data)

    def test_draw_refits_skip_identifiability_check(self):
        """Test only the original-data fit checks whether the exposure varies."""
        original_fit = OutcomeModel.fit

        with patch.object(OutcomeModel, 'fit', autospec=True, side_effect=original_fit) as mock_fit:
            BootstrapResampler(n_bootstrap=4, seed=6).run(self.sample_data)

        checks = [call.kwargs.get('check_identifiability', True) for call in mock_fit.call_args_list]
        self.assertEqual(checks, [True, False, False, False, False])

    @patch('causal_bc_preterm.models.outcome_model.LogisticRegression')
    def test_constant_exposure_warns_once_per_run(self, mock_logistic):
        """Test a slice without exposure variation warns once and is marked not identified."""
        mock_logistic.return_value.intercept_ = np.array([-2.0])
        mock_logistic.return_value.coef_ = np.zeros((1, len(DESIGN_COLUMNS)))
        df = self.sample_data.copy()
        df['black_carbon'] = 0

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            result = BootstrapResampler(n_bootstrap=20, seed=6).run(df)

        identifiability = [w for w in caught if issubclass(w.category, IdentifiabilityWarning)]
        self.assertEqual(len(identifiability), 1)
        self.assertFalse(result.identified)
        self.assertEqual(len(result.replicates), 20)


class TestBootstrapCoverage(unittest.TestCase):
    """Coverage of the percentile interval at R=1000 across reseedings."""

    def test_interval_contains_point_estimate_across_reseedings(self):
        """Test intervals from ten independent seeds contain the original-data estimate."""
        births = simulate_births(n_samples=800, exposure_log_odds=0.5, random_state=31)

        results = [
            BootstrapResampler(n_bootstrap=1000, seed=seed, n_jobs=-1).run(births)
            for seed in range(10)
        ]

        covered = np.mean([result.contains_point_estimate for result in results])
        self.assertGreaterEqual(covered, 0.95)

        point_estimates = {result.point_estimate for result in results}
        self.assertEqual(len(point_estimates), 1)


if __name__ == '__main__':
    unittest.main()
