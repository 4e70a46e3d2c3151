# filename: src/ffm_pipeline/utils/__init__.py
"""
Utility functions shared across the FFM pipeline.
"""

from ffm_pipeline.utils.logging import (
    setup_logger,
    get_logger,
    log_config,
)

__all__ = [
    "setup_logger",
    "get_logger",
    "log_config",
]
