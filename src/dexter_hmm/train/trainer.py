"""
ModelTrainer for iterative Baum-Welch training.

Model.train performs exactly one EM iteration. This module drives repeated
iterations with an iteration budget and log-likelihood convergence monitoring.
"""

import time
from typing import Any, Dict, Optional

from ..config import get_config
from ..hmm.model import Model
from ..logger import get_training_logger

logger = get_training_logger()


class ModelTrainer:
    """
    Run Baum-Welch iterations on a model until convergence or budget.

    Convergence is declared when the log-likelihood improvement between two
    consecutive iterations drops below convergence_tolerance.
    """

    def __init__(self,
                 max_iterations: Optional[int] = None,
                 convergence_tolerance: Optional[float] = None,
                 monotonicity_tolerance: Optional[float] = None):
        """
        Initialize ModelTrainer, falling back to the 'training' config section.

        Args:
            max_iterations: Maximum Baum-Welch iterations
            convergence_tolerance: Log-likelihood improvement threshold
            monotonicity_tolerance: Allowed log-likelihood decrease before warning
        """
        if max_iterations is None:
            max_iterations = get_config('training', 'max_iterations')
        if convergence_tolerance is None:
            convergence_tolerance = get_config('training', 'convergence_tolerance')
        if monotonicity_tolerance is None:
            monotonicity_tolerance = get_config('training', 'monotonicity_tolerance')

        if max_iterations < 0:
            raise ValueError(f"max_iterations must be non-negative, got {max_iterations}")

        self.max_iterations = max_iterations
        self.convergence_tolerance = convergence_tolerance
        self.monotonicity_tolerance = monotonicity_tolerance

        logger.debug(f"ModelTrainer initialized: max_iterations={max_iterations}, "
                     f"convergence_tolerance={convergence_tolerance}")

    def fit(self, model: Model, sequence, verbose: bool = False) -> Dict[str, Any]:
        """
        Train the model in place on one observation sequence.

        Args:
            model: Model to train
            sequence: Observation sequence
            verbose: Log progress at INFO level

        Returns:
            Dictionary with training statistics:
            - 'converged': Whether training converged
            - 'iterations': Number of iterations performed
            - 'initial_log_likelihood': Log-likelihood before training
            - 'final_log_likelihood': Log-likelihood after training
            - 'log_likelihood_history': Log-likelihoods, initial value first
            - 'improvement_history': Improvement per iteration
            - 'training_time': Wall-clock seconds

        Raises:
            EmptySequenceError, DimensionMismatchError,
            DegenerateDistributionError: Propagated from Model.train
        """
        log_likelihood_history = []
        improvement_history = []
        converged = False

        start_time = time.time()

        prev_log_likelihood = model.log_probability(sequence)
        log_likelihood_history.append(prev_log_likelihood)

        if verbose:
            logger.info(f"Starting training of {model!r} on {len(sequence)} points")
            logger.info(f"Initial log-likelihood: {prev_log_likelihood:.6f}")

        for iteration in range(self.max_iterations):
            model.train(sequence)

            current_log_likelihood = model.log_probability(sequence)
            improvement = current_log_likelihood - prev_log_likelihood
            log_likelihood_history.append(current_log_likelihood)
            improvement_history.append(improvement)

            if verbose:
                logger.info(f"Iteration {iteration + 1}: log_likelihood={current_log_likelihood:.6f}, "
                            f"improvement={improvement:.6f}")

            # EM never decreases the likelihood beyond rounding
            if improvement < -self.monotonicity_tolerance:
                logger.warning(f"Log-likelihood decreased by {-improvement:.6e} at iteration {iteration + 1}")

            if abs(improvement) < self.convergence_tolerance:
                converged = True
                if verbose:
                    logger.info(f"Converged after {iteration + 1} iterations "
                                f"(improvement {improvement:.6e} < tolerance {self.convergence_tolerance})")
                break

            prev_log_likelihood = current_log_likelihood

        if not converged and verbose:
            logger.info(f"Training stopped after {self.max_iterations} iterations without convergence")

        training_stats = {
            'converged': converged,
            'iterations': len(improvement_history),
            'initial_log_likelihood': log_likelihood_history[0],
            'final_log_likelihood': log_likelihood_history[-1],
            'log_likelihood_history': log_likelihood_history,
            'improvement_history': improvement_history,
            'training_time': time.time() - start_time
        }

        logger.debug(f"Training completed: converged={converged}, iterations={len(improvement_history)}")

        return training_stats
