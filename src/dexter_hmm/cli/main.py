"""
Main CLI application for Dexter HMM.

Provides command-line access to training, scoring and decoding of small
discrete HMMs on sequences typed at the shell.
"""

import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import get_config, load_config_file
from ..exceptions import NoViablePathError
from ..hmm import Model, State
from ..logger import set_log_level
from ..train import ModelTrainer
from .utils import (
    handle_error,
    history_table,
    infer_symbols_per_dimension,
    parse_sequence,
    print_model,
)

console = Console()

app = typer.Typer(
    name="dexter-hmm",
    help="Discrete Hidden Markov Models: Baum-Welch training, likelihoods and Viterbi decoding",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True
)


def _build_and_train(points, n_states: int, iterations: Optional[int],
                     tolerance: Optional[float], seed: Optional[int]):
    model = Model.random(n_states, infer_symbols_per_dimension(points), random_state=seed)
    trainer = ModelTrainer(max_iterations=iterations, convergence_tolerance=tolerance)
    training_stats = trainer.fit(model, points)
    return model, training_stats


def _format_path(path) -> str:
    return " ".join(str(state.index) for state in path)


def _decoded_path(model: Model, points) -> str:
    try:
        return _format_path(model.decode(points))
    except NoViablePathError:
        return "-"


@app.command("version")
def show_version():
    """Show Dexter HMM version information."""
    from .. import __version__

    console.print(Panel.fit(
        f"[bold]Dexter HMM Version {__version__}[/bold]\n"
        f"Discrete Hidden Markov Models\n"
        f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        border_style="blue"
    ))


@app.command("example")
def run_example(
    iterations: int = typer.Option(
        10,
        "--iterations",
        "-i",
        help="Number of Baum-Welch iterations"
    )
):
    """
    Train the two-state example model on 0 0 0 1 1 1.

    Both states start with 0.9 self-transition and mirror-image emissions.
    After training, the run-structured sequence is more likely than its
    reverse.
    """
    try:
        model = Model([
            State(0.5, [0.9, 0.1], [[0.9, 0.1]]),
            State(0.5, [0.1, 0.9], [[0.1, 0.9]]),
        ])
        sequence = [0, 0, 0, 1, 1, 1]
        reverse = [1, 1, 1, 0, 0, 0]

        for _ in range(iterations):
            model.train(sequence)

        table = Table(title=f"Probabilities after {iterations} iterations")
        table.add_column("Sequence", style="cyan")
        table.add_column("Probability", style="yellow")
        table.add_column("Viterbi Path", style="green")
        for seq in (sequence, reverse):
            table.add_row(" ".join(map(str, seq)), f"{model.probability(seq):.6e}",
                          _decoded_path(model, seq))

        console.print(table)
        print_model(model)

    except Exception as e:
        handle_error(e, "example")


@app.command("fit")
def fit_model(
    sequence: str = typer.Argument(
        ...,
        help="Points separated by spaces, dimensions by commas, e.g. '0 0 1 1' or '0,1 1,1'"
    ),
    n_states: int = typer.Option(
        2,
        "--states",
        "-s",
        help="Number of hidden states"
    ),
    iterations: Optional[int] = typer.Option(
        None,
        "--iterations",
        "-i",
        help="Maximum Baum-Welch iterations (default from config)"
    ),
    tolerance: Optional[float] = typer.Option(
        None,
        "--tolerance",
        "-t",
        help="Log-likelihood convergence tolerance (default from config)"
    ),
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        help="Random seed for parameter initialization"
    )
):
    """
    Train a randomly initialized model on SEQUENCE and show the result.

    Examples:
    ```
    dexter-hmm fit "0 0 0 1 1 1" --states 2 --seed 7
    dexter-hmm fit "0,2 0,2 1,0 1,1" --iterations 50
    ```
    """
    try:
        points = parse_sequence(sequence)

        console.print(Panel.fit(
            f"[bold]Model Training[/bold]\n"
            f"Points: {len(points)}\n"
            f"Dimensions: {len(points[0])}\n"
            f"States: {n_states}\n"
            f"Max Iterations: {iterations if iterations is not None else get_config('training', 'max_iterations')}",
            border_style="blue"
        ))

        model, training_stats = _build_and_train(points, n_states, iterations, tolerance, seed)

        console.print(history_table(training_stats))
        print_model(model)

        status = "[green]converged[/green]" if training_stats['converged'] else "[yellow]not converged[/yellow]"
        console.print(f"Training {status} after {training_stats['iterations']} iterations")
        console.print(f"Log-likelihood: {model.log_probability(points):.6f}")
        console.print(f"Viterbi path: {_format_path(model.decode(points))}")

    except Exception as e:
        handle_error(e, "fit")


@app.command("compare")
def compare_sequences(
    sequence: str = typer.Argument(
        ...,
        help="Training sequence"
    ),
    queries: List[str] = typer.Option(
        ...,
        "--query",
        "-q",
        help="Sequence to score after training (can be used multiple times)"
    ),
    n_states: int = typer.Option(2, "--states", "-s", help="Number of hidden states"),
    iterations: Optional[int] = typer.Option(None, "--iterations", "-i", help="Maximum Baum-Welch iterations"),
    tolerance: Optional[float] = typer.Option(None, "--tolerance", "-t", help="Convergence tolerance"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for parameter initialization")
):
    """
    Train on SEQUENCE, then rank it and every --query by probability.
    """
    try:
        points = parse_sequence(sequence)
        query_points = [parse_sequence(q) for q in queries]

        model, _ = _build_and_train(points, n_states, iterations, tolerance, seed)

        rows = [(sequence, model.log_probability(points))]
        rows += [(q, model.log_probability(p)) for q, p in zip(queries, query_points)]
        rows.sort(key=lambda row: row[1], reverse=True)

        table = Table(title="Sequence Log-Likelihoods")
        table.add_column("Rank", style="cyan")
        table.add_column("Sequence", style="magenta")
        table.add_column("Log-Likelihood", style="yellow")
        for rank, (text, log_likelihood) in enumerate(rows, start=1):
            table.add_row(str(rank), text, f"{log_likelihood:.6f}")

        console.print(table)

    except Exception as e:
        handle_error(e, "compare")


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        help="Suppress all log output except errors"
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to JSON configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False
    )
):
    """
    Dexter HMM: discrete Hidden Markov Models from scratch.
    """
    if config_file:
        load_config_file(str(config_file))

    if quiet:
        set_log_level('ERROR')
    elif verbose:
        set_log_level('DEBUG')
    else:
        set_log_level(get_config('logging', 'level') or 'INFO')


if __name__ == "__main__":
    app()
