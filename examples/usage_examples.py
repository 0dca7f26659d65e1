"""
Examples of using the Dexter HMM engine.

This file demonstrates building models, scoring and decoding sequences,
training with Baum-Welch, configuration and error handling.
"""

from dexter_hmm.hmm import Model, State


def example_two_state_training():
    """Train the sticky two-state model on a run-structured sequence."""
    print("Example: Two-state training")
    print("-" * 40)

    model = Model([
        State(0.5, [0.9, 0.1], [[0.9, 0.1]]),
        State(0.5, [0.1, 0.9], [[0.1, 0.9]]),
    ])

    sequence = [0, 0, 0, 1, 1, 1]

    # One Baum-Welch iteration per call; the caller decides when to stop
    for _ in range(10):
        model.train(sequence)

    print(f"P(0 0 0 1 1 1) = {model.probability([0, 0, 0, 1, 1, 1]):.6e}")
    print(f"P(1 1 1 0 0 0) = {model.probability([1, 1, 1, 0, 0, 0]):.6e}")
    print()


def example_multidimensional_decoding():
    """Decode a sequence of two-dimensional points."""
    print("Example: Multivariate emissions and Viterbi")
    print("-" * 40)

    model = Model.from_parameters(
        pi=[0.6, 0.4],
        transitions=[[0.8, 0.2], [0.3, 0.7]],
        emissions=[
            [[0.9, 0.1], [0.7, 0.2, 0.1]],
            [[0.2, 0.8], [0.1, 0.3, 0.6]],
        ]
    )

    sequence = [(0, 0), (0, 1), (1, 2), (1, 2), (0, 0)]

    path = model.decode(sequence)
    ending_in_one = model.viterbi(sequence, model[1])

    print(f"Most likely path: {[s.index for s in path]}")
    print(f"Most likely path ending in state 1: {[s.index for s in ending_in_one]}")
    print()


def example_trainer():
    """Train to convergence with ModelTrainer."""
    from dexter_hmm.train import ModelTrainer

    print("Example: ModelTrainer")
    print("-" * 40)

    model = Model.random(n_states=3, symbols_per_dimension=4, random_state=42)
    sequence = [0, 1, 1, 2, 3, 3, 2, 1, 0, 0]

    trainer = ModelTrainer(max_iterations=200, convergence_tolerance=1e-6)
    stats = trainer.fit(model, sequence)

    print(f"Converged: {stats['converged']} after {stats['iterations']} iterations")
    print(f"Log-likelihood: {stats['initial_log_likelihood']:.4f} -> {stats['final_log_likelihood']:.4f}")
    print()


def example_custom_configuration():
    """Example of custom configuration."""
    from dexter_hmm.config import get_config, set_config, update_config

    print("Example: Custom Configuration")
    print("-" * 40)

    print(f"Current max iterations: {get_config('training', 'max_iterations')}")

    set_config('training', 'max_iterations', 300)
    update_config({
        'training': {
            'convergence_tolerance': 1e-8
        },
        'logging': {
            'level': 'DEBUG'
        }
    })

    print("Configuration updated:")
    print("- Training max iterations: 300")
    print("- Convergence tolerance: 1e-8")
    print()


def example_error_handling():
    """Example of proper error handling."""
    from dexter_hmm.exceptions import (
        DegenerateDistributionError,
        DimensionMismatchError,
        EmptySequenceError,
        NoViablePathError
    )

    print("Example: Error Handling")
    print("-" * 40)

    model = Model([State(1.0, [1.0], [[1.0, 0.0]])])

    for sequence in ([], [2], [0, 1]):
        try:
            model.train(sequence)
            model.decode(sequence)
        except EmptySequenceError as e:
            print(f"Empty sequence: {e}")
        except DimensionMismatchError as e:
            print(f"Dimension mismatch: {e}")
        except DegenerateDistributionError as e:
            print(f"Degenerate distribution: {e}")
        except NoViablePathError as e:
            print(f"No viable path: {e}")

    print()


if __name__ == "__main__":
    print("Dexter HMM Usage Examples")
    print("=" * 50)
    print()

    example_two_state_training()
    example_multidimensional_decoding()
    example_trainer()
    example_custom_configuration()
    example_error_handling()

    print("CLI equivalents:")
    print("- dexter-hmm example")
    print("- dexter-hmm fit '0 1 1 2 3 3 2 1 0 0' --states 3 --seed 42")
