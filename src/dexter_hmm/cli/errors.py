"""
Error handling for CLI commands.

Maps engine exceptions to exit codes and renders them with helpful suggestions.
"""

import traceback
from typing import List, Optional
import logging

import typer
from rich.console import Console

from ..exceptions import (
    DegenerateDistributionError,
    DimensionMismatchError,
    EmptySequenceError,
    ModelConstructionError,
    NoViablePathError,
    UnknownStateError,
)

console = Console()
logger = logging.getLogger(__name__)


EXIT_CODES = {
    "success": 0,
    "general_error": 1,
    "invalid_usage": 2,
    "input_error": 10,
    "model_error": 11
}


class DexterHMMCLIError(Exception):
    """Base exception for CLI-specific errors."""

    def __init__(self, message: str, exit_code: int = 1, suggestions: Optional[list] = None):
        self.message = message
        self.exit_code = exit_code
        self.suggestions = suggestions or []
        super().__init__(message)


class SequenceParseError(DexterHMMCLIError):
    """Command-line sequence could not be parsed."""

    def __init__(self, message: str, suggestions: Optional[list] = None):
        super().__init__(message, EXIT_CODES["input_error"], suggestions)


def suggestions_for(error: Exception) -> List[str]:
    """Suggestions for known engine errors."""
    if isinstance(error, DexterHMMCLIError):
        return error.suggestions
    if isinstance(error, EmptySequenceError):
        return ["Pass at least one point, e.g. '0 0 1 1'"]
    if isinstance(error, DimensionMismatchError):
        return ["Every point needs the same number of comma-separated symbols",
                "Symbols must be non-negative integers"]
    if isinstance(error, DegenerateDistributionError):
        return ["Training needs a sequence of at least two points",
                "Try another --seed or fewer --states"]
    if isinstance(error, NoViablePathError):
        return ["The sequence is impossible under the model; try another --seed"]
    if isinstance(error, ModelConstructionError):
        return ["Use --states with a positive value"]
    return []


def exit_code_for(error: Exception) -> int:
    if isinstance(error, DexterHMMCLIError):
        return error.exit_code
    if isinstance(error, (EmptySequenceError, DimensionMismatchError, UnknownStateError)):
        return EXIT_CODES["input_error"]
    if isinstance(error, (DegenerateDistributionError, NoViablePathError, ModelConstructionError)):
        return EXIT_CODES["model_error"]
    return EXIT_CODES["general_error"]


def format_error_message(error: Exception, operation: str, debug: bool = False) -> str:
    """Format error message with context and suggestions."""
    error_type = type(error).__name__

    message_parts = [
        f"[red]Error during {operation}:[/red]",
        f"[red]{error_type}: {error}[/red]"
    ]

    suggestions = suggestions_for(error)
    if suggestions:
        message_parts.append("")
        message_parts.append("[yellow]Suggestions:[/yellow]")
        for suggestion in suggestions:
            message_parts.append(f"  • {suggestion}")

    if debug:
        message_parts.append("")
        message_parts.append("[dim]Debug information:[/dim]")
        message_parts.append(f"[dim]{traceback.format_exc()}[/dim]")

    return "\n".join(message_parts)


def handle_cli_error(error: Exception, operation: str, debug: bool = False) -> None:
    """Display an error with rich formatting and exit with its exit code."""
    console.print(format_error_message(error, operation, debug))
    console.print(f"\n[dim]For more help, run: dexter-hmm {operation.split()[0]} --help[/dim]")

    logger.error(f"CLI error in {operation}: {error}", exc_info=debug)

    raise typer.Exit(exit_code_for(error))