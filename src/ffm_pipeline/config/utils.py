# filename: src/ffm_pipeline/config/utils.py
"""
Utilities for persisting and checking model configurations.

This module provides helper functions for saving a `ModelInstance` next to a
trained model, loading it back without re-parsing any command-line options,
and re-checking the invariants of a loaded record.

Purpose:
    A trained model is only usable together with the exact configuration it
    was trained with (hashing space sizes, feature combinations, FFM fields).
    These functions:
    1. **Standardize I/O:** One way to write and read the record, as YAML or
       JSON, chosen by file extension.
    2. **Ensure Correctness:** `validate_config` catches records that were
       edited by hand or written by another tool.

FFM Pipeline Fit:
    `cli.build` saves the freshly built configuration with `save_config`;
    `cli.inspect` and the prediction side load it with `load_config`.
"""

import json                                         # For reading and writing JSON records.
import logging                                      # For logging messages.
from pathlib import Path                            # For handling filesystem paths.
from typing import Union

import yaml                                         # For reading and writing YAML records.
from omegaconf import OmegaConf                     # For rendering records as YAML.

from ffm_pipeline.config.config import FFM_MAX_K, ModelInstance
from ffm_pipeline.config.errors import BoundsError, RecordError


logger = logging.getLogger(__name__) # Initialize a logger for this module.


def load_config(config_path: Union[str, Path]) -> ModelInstance:
    """
    Load a saved `ModelInstance` from a YAML or JSON file.

    Args:
        config_path: Path to the record (e.g. 'model/model_config.yaml').

    Returns:
        The `ModelInstance` described by the file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file extension is not supported (neither .yaml/.yml nor .json).
        RecordError: If the file content is not a valid record.
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    if config_path.suffix in (".yaml", ".yml"):
        with open(config_path, "r") as f:
            record = yaml.safe_load(f)
    elif config_path.suffix == ".json":
        with open(config_path, "r") as f:
            record = json.load(f)
    else:
        raise ValueError(f"Unsupported configuration file format: {config_path.suffix}. "
                         "Only .yaml, .yml, and .json are supported.")

    if not isinstance(record, dict):
        raise RecordError(f"Configuration file does not contain a record: {config_path}")

    return ModelInstance.from_dict(record)


def save_config(config: ModelInstance, config_path: Union[str, Path]) -> None:
    """
    Save a `ModelInstance` to a YAML or JSON file.

    Args:
        config: The `ModelInstance` to save.
        config_path: Destination path; parent directories are created if needed.

    Raises:
        ValueError: If the file extension is not supported.
    """
    config_path = Path(config_path)
    if config_path.suffix not in (".yaml", ".yml", ".json"):
        raise ValueError(f"Unsupported configuration file format: {config_path.suffix}. "
                         "Only .yaml, .yml, and .json are supported for saving.")
    config_path.parent.mkdir(parents=True, exist_ok=True)

    record = config.to_dict()

    if config_path.suffix == ".json":
        with open(config_path, "w") as f:
            json.dump(record, f, indent=2)
    else:
        with open(config_path, "w") as f:
            yaml.safe_dump(record, f, default_flow_style=False, sort_keys=False)

    logger.info(f"Configuration saved to {config_path}")


def config_to_yaml(config: ModelInstance) -> str:
    """Render the record of `config` as YAML text."""
    return OmegaConf.to_yaml(OmegaConf.create(config.to_dict()))


def validate_config(config: ModelInstance) -> None:
    """
    Re-check the invariants of a (typically loaded) `ModelInstance`.

    Raises:
        BoundsError: If `ffm_k` exceeds `FFM_MAX_K` or `ffm_init_zero_band`
            lies outside [0, 1].
        RecordError: If a feature combination has no namespaces.
    """
    if config.ffm_k > FFM_MAX_K:
        raise BoundsError(f"Maximum ffm_k is: {FFM_MAX_K}, passed: {config.ffm_k}", option="ffm_k", value=config.ffm_k)

    if not 0.0 <= config.ffm_init_zero_band <= 1.0:
        raise BoundsError(
            f"ffm_init_zero_band must be between 0.0 and 1.0, got: {config.ffm_init_zero_band}",
            option="ffm_init_zero_band",
            value=config.ffm_init_zero_band,
        )

    for position, desc in enumerate(config.feature_combo_descs):
        if not desc.feature_indices:
            raise RecordError(f"Feature combination #{position} has no namespaces", option="feature_combo_descs")

    if config.ffm_k > 0 and not config.ffm_fields:
        logger.warning("ffm_k is set but no FFM fields are defined; the FFM part will be empty.")

    logger.info("Configuration validated successfully.")
