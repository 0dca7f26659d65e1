"""
Logging infrastructure for Dexter HMM.

Provides a package-level logger with console output and optional file output.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .config import get_config

ROOT_LOGGER_NAME = 'dexter_hmm'


class DexterHMMLogger:
    """Centralized logger for the dexter_hmm package."""

    def __init__(self):
        self._loggers = {}
        self._file_handler: Optional[logging.FileHandler] = None
        self._setup_root_logger()

    def _setup_root_logger(self):
        """Configure the package root logger with settings from config."""
        log_level = get_config('logging', 'level') or 'INFO'
        log_format = get_config('logging', 'format')
        file_logging = get_config('logging', 'file_logging') or False
        log_file = get_config('logging', 'log_file') or 'dexter_hmm.log'

        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.setLevel(getattr(logging, log_level.upper()))
        root_logger.handlers.clear()

        formatter = logging.Formatter(log_format)
        self._formatter = formatter

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, log_level.upper()))
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        if file_logging:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_path)
            file_handler.setLevel(getattr(logging, log_level.upper()))
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            self._file_handler = file_handler

        # Prevent propagation to avoid duplicate messages
        root_logger.propagate = False

    def get_logger(self, name: str) -> logging.Logger:
        """Get or create a logger with the specified name."""
        if name.startswith(ROOT_LOGGER_NAME):
            full_name = name
        else:
            full_name = f'{ROOT_LOGGER_NAME}.{name}'

        if full_name not in self._loggers:
            self._loggers[full_name] = logging.getLogger(full_name)

        return self._loggers[full_name]

    def set_level(self, level: str):
        """Set logging level for all loggers."""
        log_level = getattr(logging, level.upper())

        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.setLevel(log_level)

        for handler in root_logger.handlers:
            handler.setLevel(log_level)

    def enable_file_logging(self, log_file: Optional[str] = None):
        """Enable file logging with optional custom log file path."""
        if log_file is None:
            log_file = get_config('logging', 'log_file') or 'dexter_hmm.log'

        root_logger = logging.getLogger(ROOT_LOGGER_NAME)

        # Only our own handler counts; test runners may attach file handlers too
        if self._file_handler is not None and self._file_handler in root_logger.handlers:
            return

        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(root_logger.level)
        file_handler.setFormatter(self._formatter)

        root_logger.addHandler(file_handler)
        self._file_handler = file_handler

    def disable_file_logging(self):
        """Disable file logging by removing the handler added by this manager."""
        if self._file_handler is None:
            return

        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.removeHandler(self._file_handler)
        self._file_handler.close()
        self._file_handler = None


# Global logger manager instance
_logger_manager = DexterHMMLogger()


def get_logger(name: str = 'main') -> logging.Logger:
    """Get a logger instance for the specified module/component."""
    return _logger_manager.get_logger(name)


def set_log_level(level: str):
    """Set global logging level."""
    _logger_manager.set_level(level)


def enable_file_logging(log_file: Optional[str] = None):
    """Enable file logging globally."""
    _logger_manager.enable_file_logging(log_file)


def disable_file_logging():
    """Disable file logging globally."""
    _logger_manager.disable_file_logging()


def get_hmm_logger() -> logging.Logger:
    """Get logger for HMM engine components."""
    return get_logger('hmm')


def get_training_logger() -> logging.Logger:
    """Get logger for training components."""
    return get_logger('training')
