# filename: src/ffm_pipeline/__init__.py
"""
FFM Pipeline

Model configuration for an online hashed linear / field-aware factorization
machine learner in the style of Vowpal Wabbit.

This `__init__.py` re-exports the pieces most callers need: the
`ModelInstance` configuration and its value types, the `ConfigBuilder` that
creates one from named options, the namespace registries it resolves letters
against, and the functions that save and load the configuration next to a
trained model.
"""

from ffm_pipeline.config import (
    ConfigBuilder,
    ConfigError,
    FeatureComboDesc,
    ModelInstance,
    OptionSource,
    Optimizer,
    load_config,
    save_config,
)
from ffm_pipeline.namespaces import NamespaceMap, NamespaceResolver, NamespaceTransforms

__version__ = "0.1.0"

__all__ = [
    "ConfigBuilder",       # Named options -> ModelInstance.
    "ConfigError",         # Base class of every configuration error.
    "FeatureComboDesc",    # One --keep / --interactions term.
    "ModelInstance",       # The model configuration.
    "OptionSource",        # Read-only view over named options.
    "Optimizer",           # SGD or Adagrad.
    "load_config",
    "save_config",
    "NamespaceMap",        # Namespace letter -> index registry.
    "NamespaceResolver",
    "NamespaceTransforms",
]
