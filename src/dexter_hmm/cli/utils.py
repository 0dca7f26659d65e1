"""
CLI utility functions.

Parsing of command-line sequences and rich rendering of models and results.
"""

from typing import Dict, List, Tuple, Any

from rich.console import Console
from rich.table import Table

from ..hmm.model import Model
from .errors import SequenceParseError, handle_cli_error

console = Console()


def handle_error(error: Exception, operation: str, debug: bool = False) -> None:
    """Handle and display errors consistently."""
    handle_cli_error(error, operation, debug)


def parse_sequence(text: str) -> List[Tuple[int, ...]]:
    """
    Parse a sequence written as whitespace-separated points.

    Dimensions within a point are separated by commas, so "0,1 1,1 2,0" is
    three two-dimensional points and "0 0 1" is three one-dimensional points.
    """
    points = []
    for token in text.split():
        try:
            point = tuple(int(symbol) for symbol in token.split(','))
        except ValueError:
            raise SequenceParseError(
                f"Invalid point '{token}'",
                suggestions=["Write symbols as integers, e.g. '0 1 1' or '0,2 1,2'"]
            )
        points.append(point)

    if not points:
        raise SequenceParseError("Sequence is empty", suggestions=["Pass at least one point, e.g. '0 0 1 1'"])

    return points


def infer_symbols_per_dimension(points: List[Tuple[int, ...]]) -> List[int]:
    """Smallest vocabulary that covers every symbol in the points."""
    n_dimensions = len(points[0])
    if any(len(point) != n_dimensions for point in points):
        raise SequenceParseError(
            "Points have different numbers of dimensions",
            suggestions=["Give every point the same number of comma-separated symbols"]
        )

    return [max(point[d] for point in points) + 1 for d in range(n_dimensions)]


def parameters_table(model: Model) -> Table:
    """Initial and transition probabilities, one row per state."""
    pi, A, _ = model.get_parameters()

    table = Table(title="Initial and Transition Probabilities")
    table.add_column("State", style="cyan")
    table.add_column("Initial", style="magenta")
    for j in range(model.n_states):
        table.add_column(f"→ {j}", style="green")

    for i in range(model.n_states):
        table.add_row(str(i), f"{pi[i]:.4f}", *[f"{p:.4f}" for p in A[i]])

    return table


def emissions_table(model: Model, dimension: int) -> Table:
    _, _, emissions = model.get_parameters()
    B = emissions[dimension]

    table = Table(title=f"Emission Probabilities (dimension {dimension})")
    table.add_column("State", style="cyan")
    for v in range(B.shape[1]):
        table.add_column(f"symbol {v}", style="yellow")

    for i in range(model.n_states):
        table.add_row(str(i), *[f"{p:.4f}" for p in B[i]])

    return table


def history_table(training_stats: Dict[str, Any]) -> Table:
    table = Table(title="Training Results")
    table.add_column("Iteration", style="cyan")
    table.add_column("Log-Likelihood", style="yellow")
    table.add_column("Improvement", style="green")

    history = training_stats['log_likelihood_history']
    table.add_row("0", f"{history[0]:.6f}", "-")
    for i, improvement in enumerate(training_stats['improvement_history'], start=1):
        table.add_row(str(i), f"{history[i]:.6f}", f"{improvement:.3e}")

    return table


def print_model(model: Model) -> None:
    console.print(parameters_table(model))
    for d in range(model.n_dimensions):
        console.print(emissions_table(model, d))
