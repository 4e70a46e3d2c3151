# filename: src/ffm_pipeline/utils/logging.py
"""
Logging utilities.

This module provides the logger setup shared by the command-line entry points
and a helper that writes a configuration record to the log.

Purpose:
    To configure console (and optional file) logging once, at the entry point,
    so that every module can simply use `logging.getLogger(__name__)`. The
    configuration builder reports the effective bit precisions and its
    warnings through these loggers.

FFM Pipeline Fit:
    `setup_logger` is called by `cli.build` and `cli.inspect` before anything
    else; `log_config` records the exact configuration of a run.
"""

import logging                          # Python's standard logging library.
import sys                              # Default stream of the console handler.
from pathlib import Path
from typing import Any, Optional, TextIO, Union


DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(
    name: Optional[str] = None,
    log_file: Optional[Union[str, Path]] = None,
    log_level: Union[str, int] = logging.INFO,
    format_string: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure and return a logger with a console and an optional file handler.

    Args:
        name: The name of the logger. If `None`, the root logger is configured.
        log_file: Optional path of a file that receives the same messages; its
                  parent directory is created if needed.
        log_level: The minimum level to emit, as a name ("INFO") or a number.
        format_string: Optional format; defaults to `DEFAULT_FORMAT`.
        stream: Stream of the console handler; defaults to `sys.stdout`.

    Returns:
        The configured `logging.Logger` instance.
    """
    if isinstance(log_level, str):
        log_level = log_level.upper()

    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    # Clear existing handlers to prevent duplicate messages if called multiple times.
    logger.handlers = []

    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Retrieve a logger by name (the root logger when `name` is None)."""
    return logging.getLogger(name)


def log_config(
    config: Union[dict, Any],
    logger: Optional[logging.Logger] = None,
) -> None:
    """
    Log a configuration record key by key.

    Args:
        config: A dictionary, or an object with a `to_dict` method such as
                `ModelInstance`.
        logger: The logger to use; the root logger when `None`.
    """
    if logger is None:
        logger = logging.getLogger()

    if hasattr(config, "to_dict"):
        config_dict = config.to_dict()
    else:
        config_dict = config

    logger.info("Configuration:")
    for key, value in config_dict.items():
        logger.info(f"  {key}: {value}")
