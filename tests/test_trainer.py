"""
Tests for the iterative ModelTrainer.
"""

import pytest
import numpy as np

from dexter_hmm.config import set_config
from dexter_hmm.hmm import Model
from dexter_hmm.train import ModelTrainer
from dexter_hmm.exceptions import EmptySequenceError


class TestModelTrainer:
    """Test iteration budget, convergence and statistics."""

    def test_defaults_from_config(self):
        set_config('training', 'max_iterations', 7)
        set_config('training', 'convergence_tolerance', 0.5)

        trainer = ModelTrainer()

        assert trainer.max_iterations == 7
        assert trainer.convergence_tolerance == 0.5

    def test_explicit_arguments_override_config(self):
        trainer = ModelTrainer(max_iterations=3, convergence_tolerance=1e-3)

        assert trainer.max_iterations == 3
        assert trainer.convergence_tolerance == 1e-3

    def test_negative_budget_rejected(self):
        with pytest.raises(ValueError):
            ModelTrainer(max_iterations=-1)

    def test_training_statistics(self):
        model = Model.random(2, 3, random_state=42)
        sequence = [0, 1, 2, 2, 1, 0, 0, 2]

        stats = ModelTrainer(max_iterations=5, convergence_tolerance=0.0).fit(model, sequence)

        assert stats['converged'] is False
        assert stats['iterations'] == 5
        assert len(stats['log_likelihood_history']) == 6
        assert len(stats['improvement_history']) == 5
        assert stats['final_log_likelihood'] == pytest.approx(model.log_probability(sequence))
        assert stats['final_log_likelihood'] >= stats['initial_log_likelihood']
        assert stats['training_time'] >= 0

    def test_history_is_non_decreasing(self):
        model = Model.random(3, 2, random_state=3)
        sequence = [0, 0, 1, 1, 0, 1, 1, 1, 0]

        stats = ModelTrainer(max_iterations=50, convergence_tolerance=0.0).fit(model, sequence)

        improvements = np.array(stats['improvement_history'])
        assert np.all(improvements > -1e-9)

    def test_long_sequence(self):
        model = Model.random(2, 2, random_state=5)
        sequence = [0, 0, 1, 1] * 400

        stats = ModelTrainer(max_iterations=3, convergence_tolerance=0.0).fit(model, sequence)

        assert stats['iterations'] == 3
        assert np.all(np.isfinite(stats['log_likelihood_history']))
        assert stats['final_log_likelihood'] >= stats['initial_log_likelihood'] - 1e-6

    def test_converges_with_loose_tolerance(self):
        model = Model.random(2, 2, random_state=0)
        sequence = [0, 0, 0, 1, 1, 1]

        stats = ModelTrainer(max_iterations=500, convergence_tolerance=1e-3).fit(model, sequence)

        assert stats['converged'] is True
        assert stats['iterations'] < 500
        assert abs(stats['improvement_history'][-1]) < 1e-3

    def test_zero_iterations_leaves_model_unchanged(self):
        model = Model.random(2, 2, random_state=0)
        _, A_before, _ = model.get_parameters()

        stats = ModelTrainer(max_iterations=0).fit(model, [0, 1, 1])

        _, A_after, _ = model.get_parameters()
        np.testing.assert_array_equal(A_before, A_after)
        assert stats['iterations'] == 0
        assert stats['final_log_likelihood'] == stats['initial_log_likelihood']

    def test_verbose_training(self):
        model = Model.random(2, 2, random_state=0)

        stats = ModelTrainer(max_iterations=3).fit(model, [0, 1, 1, 0], verbose=True)

        assert stats['iterations'] <= 3

    def test_empty_sequence_propagates(self):
        model = Model.random(2, 2, random_state=0)

        with pytest.raises(EmptySequenceError):
            ModelTrainer(max_iterations=3).fit(model, [])
