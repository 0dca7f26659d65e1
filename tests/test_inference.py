"""
Tests for forward/backward evaluation and Viterbi decoding.
"""

import itertools

import pytest
import numpy as np

from dexter_hmm.hmm import Model, State
from dexter_hmm.hmm.inference import (
    backward_table,
    forward_table,
    scaled_backward_table,
    scaled_forward_table,
    viterbi_table,
)
from dexter_hmm.exceptions import (
    DimensionMismatchError,
    EmptySequenceError,
    NoViablePathError,
    UnknownStateError,
)


class TestForward:
    """Test forward probabilities."""

    def test_base_case(self, two_state_model):
        assert two_state_model.forward([0], 0) == pytest.approx(0.5 * 0.9)
        assert two_state_model.forward([0], 1) == pytest.approx(0.5 * 0.1)

    def test_one_step_recursion(self, two_state_model):
        expected = (0.5 * 0.9 * 0.9 + 0.5 * 0.1 * 0.1) * 0.1

        assert two_state_model.forward([0, 1], 0) == pytest.approx(expected)

    @pytest.mark.parametrize("sequence", [
        [0],
        [0, 1],
        [1, 1, 0],
        [0, 0, 0, 1, 1],
        [1, 0, 1, 0, 1],
    ])
    def test_matches_brute_force(self, two_state_model, brute_force_forward, sequence):
        for state in two_state_model.states:
            expected = brute_force_forward(two_state_model, sequence, state.index)
            assert two_state_model.forward(sequence, state) == pytest.approx(expected, rel=1e-12)

    def test_matches_brute_force_multidimensional(self, three_state_model, brute_force_forward):
        sequence = [(0, 2), (1, 0), (1, 1), (0, 2), (1, 2)]

        for state in three_state_model.states:
            expected = brute_force_forward(three_state_model, sequence, state.index)
            assert three_state_model.forward(sequence, state) == pytest.approx(expected, rel=1e-12)

    def test_accepts_state_or_index(self, three_state_model):
        sequence = [(0, 1), (1, 2)]

        assert three_state_model.forward(sequence, 2) == three_state_model.forward(sequence, three_state_model[2])

    def test_empty_prefix_raises(self, two_state_model):
        with pytest.raises(EmptySequenceError):
            two_state_model.forward([], 0)

    def test_calls_do_not_share_tables(self, two_state_model):
        first = two_state_model.forward([0, 0, 0], 0)
        two_state_model.forward([1, 1, 1, 1, 1], 0)

        assert two_state_model.forward([0, 0, 0], 0) == first

    def test_foreign_state_raises(self, two_state_model, three_state_model):
        with pytest.raises(UnknownStateError):
            two_state_model.forward([0], three_state_model[0])

    def test_index_out_of_range_raises(self, two_state_model):
        with pytest.raises(UnknownStateError):
            two_state_model.forward([0], 2)


class TestProbability:
    """Test whole-sequence likelihood."""

    @pytest.mark.parametrize("sequence", [[0], [0, 1, 1], [1, 0, 0, 1, 0, 1]])
    def test_equals_sum_of_forward(self, two_state_model, sequence):
        total = sum(two_state_model.forward(sequence, s) for s in two_state_model.states)

        assert two_state_model.probability(sequence) == total

    def test_equals_sum_of_forward_multidimensional(self, three_state_model):
        sequence = [(0, 0), (1, 2), (0, 1)]
        total = sum(three_state_model.forward(sequence, s) for s in three_state_model.states)

        assert three_state_model.probability(sequence) == total

    def test_probabilities_of_all_sequences_sum_to_one(self, two_state_model):
        total = sum(two_state_model.probability(list(seq))
                    for seq in itertools.product([0, 1], repeat=4))

        assert total == pytest.approx(1.0)

    def test_log_probability(self, two_state_model):
        sequence = [0, 0, 1]

        assert two_state_model.log_probability(sequence) == pytest.approx(
            np.log(two_state_model.probability(sequence))
        )

    def test_log_probability_of_impossible_sequence(self):
        model = Model([State(1.0, [1.0], [[1.0, 0.0]])])

        assert model.log_probability([1]) == float('-inf')

    def test_log_probability_of_long_sequence(self):
        model = Model([State(1.0, [1.0], [[0.5, 0.5]])])
        sequence = [0, 1] * 1000

        assert model.probability(sequence) == 0.0
        assert model.log_probability(sequence) == pytest.approx(2000 * np.log(0.5))

    def test_log_probability_stays_finite(self, two_state_model):
        log_probability = two_state_model.log_probability([0, 1] * 800)

        assert np.isfinite(log_probability)
        assert log_probability < 0

    def test_log_probability_of_impossible_long_sequence(self):
        model = Model([State(1.0, [1.0], [[1.0, 0.0]])])

        assert model.log_probability([0] * 2000 + [1]) == float('-inf')

    def test_empty_sequence_raises(self, two_state_model):
        with pytest.raises(EmptySequenceError):
            two_state_model.probability([])

    def test_point_length_mismatch(self, two_state_model):
        with pytest.raises(DimensionMismatchError):
            two_state_model.probability([(0, 1), (1, 0)])

    def test_symbol_out_of_range(self, two_state_model):
        with pytest.raises(DimensionMismatchError):
            two_state_model.probability([0, 2, 1])

    def test_negative_symbol(self, two_state_model):
        with pytest.raises(DimensionMismatchError):
            two_state_model.probability([0, -1])

    def test_ragged_points(self, three_state_model):
        with pytest.raises(DimensionMismatchError):
            three_state_model.probability([(0, 1), (1,)])

    def test_non_integer_symbols(self, two_state_model):
        with pytest.raises(DimensionMismatchError):
            two_state_model.probability([0.5, 1.0])


class TestBackward:
    """Test backward probabilities."""

    def test_empty_suffix_is_one(self, two_state_model, three_state_model):
        for model in (two_state_model, three_state_model):
            for state in model.states:
                assert model.backward([], state) == 1.0

    def test_single_step(self, two_state_model):
        expected = 0.9 * 0.9 + 0.1 * 0.1

        assert two_state_model.backward([0], 0) == pytest.approx(expected)

    def test_consistent_with_forward(self, three_state_model):
        sequence = [(0, 1), (1, 2), (1, 0), (0, 0)]
        probability = three_state_model.probability(sequence)

        # sum_s forward(seq[:t+1], s) * backward(seq[t+1:], s) == P(seq) for every t
        for t in range(len(sequence)):
            total = sum(
                three_state_model.forward(sequence[:t+1], s) * three_state_model.backward(sequence[t+1:], s)
                for s in three_state_model.states
            )
            assert total == pytest.approx(probability, rel=1e-12)

    def test_dimension_mismatch(self, three_state_model):
        with pytest.raises(DimensionMismatchError):
            three_state_model.backward([(0, 5)], 0)


class TestTables:
    """Test the table-level recursions directly."""

    def test_long_sequence_does_not_recurse(self):
        model = Model.random(2, 2, random_state=1)
        pi, A, emissions = model.get_parameters()
        observations = np.zeros((5000, 1), dtype=int)
        L = emissions[0][:, observations[:, 0]].T

        alpha = forward_table(pi, A, L)
        beta = backward_table(A, L)

        assert alpha.shape == (5000, 2)
        assert beta.shape == (5001, 2)
        np.testing.assert_array_equal(beta[-1], [1.0, 1.0])

    def test_scaled_tables_match_unscaled(self, three_state_model):
        pi, A, emissions = three_state_model.get_parameters()
        observations = np.array([[0, 1], [1, 2], [1, 0], [0, 0], [1, 1]])
        L = emissions[0][:, observations[:, 0]].T * emissions[1][:, observations[:, 1]].T

        alpha = forward_table(pi, A, L)
        beta = backward_table(A, L)
        scaled_alpha, c_scale = scaled_forward_table(pi, A, L)
        scaled_beta = scaled_backward_table(A, L, c_scale)
        probability = alpha[-1].sum()

        np.testing.assert_allclose(scaled_alpha * np.cumprod(c_scale)[:, None], alpha, rtol=1e-12)
        np.testing.assert_allclose(scaled_alpha * scaled_beta[1:], alpha * beta[1:] / probability, rtol=1e-12)
        assert np.prod(c_scale) == pytest.approx(probability, rel=1e-12)

    def test_scaled_tables_on_long_sequence(self):
        model = Model.random(2, 2, random_state=1)
        pi, A, emissions = model.get_parameters()
        observations = np.zeros((5000, 1), dtype=int)
        L = emissions[0][:, observations[:, 0]].T

        alpha, c_scale = scaled_forward_table(pi, A, L)
        beta = scaled_backward_table(A, L, c_scale)

        np.testing.assert_allclose(alpha.sum(axis=1), np.ones(5000))
        assert np.all(c_scale > 0)
        assert np.all(np.isfinite(beta))
        np.testing.assert_allclose((alpha * beta[1:]).sum(axis=1), np.ones(5000))

    def test_viterbi_table_prefers_lowest_index_on_ties(self):
        pi = np.array([0.5, 0.5])
        A = np.full((2, 2), 0.5)
        L = np.full((3, 2), 0.5)

        delta, psi = viterbi_table(pi, A, L)

        np.testing.assert_array_equal(psi[1:], np.zeros((2, 2), dtype=int))
        assert delta[-1, 0] == delta[-1, 1]


class TestViterbi:
    """Test most-likely path decoding."""

    def test_constant_path_on_sticky_chain(self, two_state_model):
        sequence = [0, 0, 0, 0, 0]

        path = two_state_model.viterbi(sequence, two_state_model[0])

        assert [s.index for s in path] == [0, 0, 0, 0, 0]
        assert all(s is two_state_model[0] for s in path)

    def test_decode_constant_path(self, two_state_model):
        path = two_state_model.decode([0] * 6)

        assert [s.index for s in path] == [0] * 6

    def test_path_ends_in_final_state(self, two_state_model):
        path = two_state_model.viterbi([0, 0, 0], 1)

        assert [s.index for s in path] == [0, 0, 1]

    def test_switching_sequence(self, two_state_model):
        path = two_state_model.decode([0, 0, 0, 1, 1, 1])

        assert [s.index for s in path] == [0, 0, 0, 1, 1, 1]

    def test_single_point(self, two_state_model):
        path = two_state_model.viterbi([1], 1)

        assert [s.index for s in path] == [1]

    def test_matches_brute_force_best_path(self, three_state_model):
        sequence = [(0, 2), (1, 1), (1, 0), (0, 2)]
        states = three_state_model.states

        def path_probability(path):
            p = states[path[0]].initial_probability * states[path[0]].likelihood(sequence[0])
            for t in range(1, len(sequence)):
                p *= states[path[t-1]].transitions[path[t]] * states[path[t]].likelihood(sequence[t])
            return p

        for final in range(3):
            candidates = [p for p in itertools.product(range(3), repeat=len(sequence)) if p[-1] == final]
            best = max(candidates, key=path_probability)

            path = three_state_model.viterbi(sequence, final)
            assert tuple(s.index for s in path) == best

    def test_ties_resolved_by_lowest_index(self):
        model = Model([
            State(0.5, [0.5, 0.5], [[0.5, 0.5]]),
            State(0.5, [0.5, 0.5], [[0.5, 0.5]]),
        ])

        assert [s.index for s in model.viterbi([0, 1, 0], 1)] == [0, 0, 1]
        assert [s.index for s in model.decode([0, 1, 0])] == [0, 0, 0]

    def test_no_viable_path(self):
        model = Model([
            State(0.5, [0.5, 0.5], [[1.0, 0.0]]),
            State(0.5, [0.5, 0.5], [[0.0, 1.0]]),
        ])

        with pytest.raises(NoViablePathError):
            model.viterbi([0, 0], 1)

    def test_decode_long_sequence(self, two_state_model):
        path = two_state_model.decode([0] * 2000)

        assert [s.index for s in path] == [0] * 2000

    def test_viterbi_long_sequence_switches_once(self, two_state_model):
        sequence = [0] * 1000 + [1] * 1000

        path = two_state_model.viterbi(sequence, 1)

        assert [s.index for s in path] == sequence

    def test_viterbi_foreign_state_raises(self, two_state_model, three_state_model):
        with pytest.raises(UnknownStateError):
            two_state_model.viterbi([0], three_state_model[0])

    def test_decode_impossible_sequence(self):
        model = Model([State(1.0, [1.0], [[1.0, 0.0]])])

        with pytest.raises(NoViablePathError):
            model.decode([0, 1])

    def test_empty_sequence_raises(self, two_state_model):
        with pytest.raises(EmptySequenceError):
            two_state_model.viterbi([], 0)
