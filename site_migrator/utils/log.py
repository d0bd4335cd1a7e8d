"""
Logging utilities for the site migrator.

Provides colorful CLI logging using the rich library, plus the
``(level, stage, message)`` sink the pipeline stages report through.
"""

import logging
from typing import Callable, Optional, Union

from rich.console import Console
from rich.logging import RichHandler

# Global console instance
console = Console()

# Logger instances cache
_loggers: dict = {}

ROOT_LOGGER = "site_migrator"

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# Signature of a log sink: (level, stage, message)
LogSink = Callable[[str, str, str], None]


def setup_logger(
    name: str = ROOT_LOGGER,
    level: int = logging.INFO,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Set up and configure a logger with rich formatting.

    Args:
        name: Logger name
        level: Logging level (default: INFO)
        log_file: Optional file path to write logs

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear existing handlers
    logger.handlers.clear()

    console_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    # File handler if specified
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    _loggers[name] = logger
    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """
    Get a logger instance.

    Stage loggers are children of the root migrator logger, so a single
    ``setup_logger()`` call configures all of them.

    Args:
        name: Logger name (a stage name such as ``"fetcher"``)

    Returns:
        Logger instance
    """
    if name in _loggers:
        return _loggers[name]
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def logging_sink(level: Union[str, int], stage: str, message: str) -> None:
    """
    Default sink: route a stage event to the stage's logger.

    Args:
        level: Level name ('debug', 'info', 'warning', 'error') or number
        stage: Pipeline stage reporting the event
        message: Event text
    """
    if isinstance(level, str):
        level = LEVELS.get(level.lower(), logging.INFO)
    get_logger(stage).log(level, message)


class StageLogger:
    """Logger-like facade that forwards every call to a sink."""

    def __init__(self, stage: str, sink: Optional[LogSink] = None):
        self.stage = stage
        self.sink = sink or logging_sink

    def debug(self, message: str) -> None:
        self.sink("debug", self.stage, message)

    def info(self, message: str) -> None:
        self.sink("info", self.stage, message)

    def warning(self, message: str) -> None:
        self.sink("warning", self.stage, message)

    def error(self, message: str) -> None:
        self.sink("error", self.stage, message)


def print_status(message: str, style: str = "bold blue") -> None:
    """
    Print a styled status message.

    Args:
        message: Message to print
        style: Rich style string
    """
    console.print(f"[{style}]{message}[/{style}]")


def print_error(message: str) -> None:
    """Print an error message."""
    print_status(f"❌ {message}", "bold red")


def print_success(message: str) -> None:
    """Print a success message."""
    print_status(f"✅ {message}", "bold green")


def print_warning(message: str) -> None:
    """Print a warning message."""
    print_status(f"⚠️ {message}", "bold yellow")


def print_info(message: str) -> None:
    """Print an info message."""
    print_status(f"ℹ️ {message}", "bold cyan")
