# filename: src/ffm_pipeline/config/__init__.py
"""
Configuration modules for the FFM pipeline.

This `__init__.py` file serves as the public API for the `ffm_pipeline.config`
package. It re-exports the configuration dataclasses, the builder that folds
named options onto them, the mini-language parsers and the persistence
helpers, so callers can import from `ffm_pipeline.config` directly.

FFM Pipeline Fit:
    The training engine consumes a `ModelInstance`; the CLI produces one with
    `ConfigBuilder` and stores it with `save_config`. This package is the only
    place where command-line options are interpreted.
"""

from ffm_pipeline.config.config import (
    FFM_MAX_K,
    L2_EPSILON,
    OPTIMIZER_CONSTRUCTION_DEFAULT,
    OPTIMIZER_DESERIALIZE_MISSING_DEFAULT,
    RECORD_MISSING_DEFAULTS,
    FeatureComboDesc,
    FieldGroup,
    ModelInstance,
    Optimizer,
)
from ffm_pipeline.config.errors import (
    BoundsError,
    ConfigError,
    ConsistencyError,
    FormatError,
    NamespaceLookupError,
    NamespaceMapError,
    NumericParseError,
    RecordError,
    RestrictedValueError,
)
from ffm_pipeline.config.options import OptionSource, get_float_namespaces
from ffm_pipeline.config.combo import parse_feature_combo_desc, parse_ffm_field, parse_lrqfa
from ffm_pipeline.config.builder import BUILD_STEPS, ConfigBuilder, build_model_instance
from ffm_pipeline.config.utils import config_to_yaml, load_config, save_config, validate_config

__all__ = [
    # Data model
    "FFM_MAX_K",
    "L2_EPSILON",
    "OPTIMIZER_CONSTRUCTION_DEFAULT",
    "OPTIMIZER_DESERIALIZE_MISSING_DEFAULT",
    "RECORD_MISSING_DEFAULTS",
    "FeatureComboDesc",
    "FieldGroup",
    "ModelInstance",
    "Optimizer",
    # Errors
    "BoundsError",
    "ConfigError",
    "ConsistencyError",
    "FormatError",
    "NamespaceLookupError",
    "NamespaceMapError",
    "NumericParseError",
    "RecordError",
    "RestrictedValueError",
    # Options and parsing
    "OptionSource",
    "get_float_namespaces",
    "parse_feature_combo_desc",
    "parse_ffm_field",
    "parse_lrqfa",
    # Building
    "BUILD_STEPS",
    "ConfigBuilder",
    "build_model_instance",
    # Persistence
    "config_to_yaml",
    "load_config",
    "save_config",
    "validate_config",
]
