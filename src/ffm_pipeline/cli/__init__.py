# filename: src/ffm_pipeline/cli/__init__.py
"""
Command-line interface for the FFM pipeline.

Re-exports the `click` commands so they can be registered as console scripts:
`ffm-build` builds and saves a model configuration from options, and
`ffm-inspect` loads, validates and prints a saved one.
"""

from ffm_pipeline.cli.build import build_command
from ffm_pipeline.cli.inspect import inspect_command

__all__ = [
    "build_command",   # Options -> validated, saved ModelInstance.
    "inspect_command", # Saved ModelInstance -> validated YAML on stdout.
]
