# filename: src/ffm_pipeline/config/config.py
"""
Configuration dataclasses for the hashed linear / field-aware FM learner.

This module defines `ModelInstance`, the complete set of hyperparameters and
feature-combination rules the training engine consumes, together with the
small value types it is made of.

Purpose:
    To hold, in one place, every setting that shapes the trained model:
    learning rates and their decay, hashing space sizes, the namespace
    combinations that become features, the field-aware factorization machine
    (FFM) fields and rank, weight initialization and the optimizer.

    Because the same `ModelInstance` is saved next to the trained weights and
    loaded back for prediction, it also defines the persisted record format:
    1. **Construction defaults:** what `new_empty()` starts from before the
       command line is folded on top of it.
    2. **Record defaults:** what a saved record that predates a field gets
       when the field is absent. These are NOT the construction defaults
       (e.g. `optimizer` is SGD when constructed, Adagrad when missing from
       a record) and must stay that way for old models to load unchanged.

FFM Pipeline Fit:
    `ConfigBuilder` (config/builder.py) produces a `ModelInstance` from named
    options; `save_config`/`load_config` (config/utils.py) persist it; the
    training engine reads it and never mutates it.
"""

import logging                                                      # For warnings about unknown record keys.
from dataclasses import dataclass, field, fields                    # Dataclass machinery for the configuration.
from enum import Enum                                               # Closed set of optimizers.
from typing import Any, Dict, List, Mapping, Tuple

from ffm_pipeline.config.errors import RecordError
from ffm_pipeline.namespaces.transforms import NamespaceResolver, NamespaceTransforms
from ffm_pipeline.namespaces.vwmap import NamespaceMap


logger = logging.getLogger(__name__)

FFM_MAX_K = 128     # Largest supported FFM rank (latent vector length).
L2_EPSILON = 1e-8   # |l2| above this is rejected; only l2 == 0 is supported.


@dataclass(frozen=True)
class FeatureComboDesc:
    """
    One `--keep` / `--interactions` term.

    `feature_indices` keeps the namespace letters' order as written on the
    command line; the engine combines features in that order, so it must not
    be sorted. Duplicates are allowed (`AA` squares namespace A).
    """

    feature_indices: Tuple[int, ...]
    weight: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        return {"feature_indices": list(self.feature_indices), "weight": self.weight}

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "FeatureComboDesc":
        return cls(
            feature_indices=tuple(int(i) for i in record["feature_indices"]),
            weight=float(record.get("weight", 1.0)),
        )


# One FFM field: the namespace indices whose features share a field.
FieldGroup = List[int]


class Optimizer(Enum):
    """Gradient update strategy."""

    SGD = 1
    ADAGRAD = 2

    @property
    def record_name(self) -> str:
        return _OPTIMIZER_RECORD_NAMES[self]

    @classmethod
    def from_record(cls, name: str) -> "Optimizer":
        for optimizer, record_name in _OPTIMIZER_RECORD_NAMES.items():
            if name == record_name:
                return optimizer
        raise RecordError(f"Unknown optimizer in saved configuration: \"{name}\"", option="optimizer", value=name)


_OPTIMIZER_RECORD_NAMES = {Optimizer.SGD: "SGD", Optimizer.ADAGRAD: "Adagrad"}

OPTIMIZER_CONSTRUCTION_DEFAULT = Optimizer.SGD
OPTIMIZER_DESERIALIZE_MISSING_DEFAULT = Optimizer.ADAGRAD


@dataclass
class ModelInstance:
    """
    Full configuration of one model.

    Field defaults are the construction defaults (mostly those of Vowpal
    Wabbit). After `ConfigBuilder.build` returns, the instance is treated as
    immutable; the builder itself only ever derives new instances with
    `dataclasses.replace`.
    """

    # Base (linear) part
    learning_rate: float = 0.5                 # Vowpal Wabbit default.
    minimum_learning_rate: float = 0.0
    power_t: float = 0.5                       # Learning rate decay exponent.
    bit_precision: int = 18                    # Base hashing space is 2**bit_precision weights.
    hash_mask: int = 0                         # DEPRECATED, UNUSED. Kept for record compatibility.
    add_constant_feature: bool = True          # Always-on bias feature.
    feature_combo_descs: List[FeatureComboDesc] = field(default_factory=list)

    # Field-aware factorization machine part
    ffm_fields: List[FieldGroup] = field(default_factory=list)
    ffm_k: int = 0                             # FFM rank, at most FFM_MAX_K.
    ffm_bit_precision: int = 18
    ffm_separate_vectors: bool = False         # DEPRECATED, UNUSED. Kept for record compatibility.
    fastmath: bool = True

    ffm_k_threshold: float = 0.0
    ffm_init_center: float = 0.0
    ffm_init_width: float = 0.0
    ffm_init_zero_band: float = 0.0            # From 0.0 to 1.0, share of ffm_init_width.
    ffm_init_acc_gradient: float = 0.0
    init_acc_gradient: float = 1.0

    ffm_learning_rate: float = 0.5
    ffm_power_t: float = 0.5

    optimizer: Optimizer = OPTIMIZER_CONSTRUCTION_DEFAULT

    transform_namespaces: NamespaceTransforms = field(default_factory=NamespaceTransforms)

    @classmethod
    def new_empty(cls) -> "ModelInstance":
        """An instance with every construction default."""
        return cls()

    def create_feature_combo_desc(self, namespace_map: NamespaceMap, s: str) -> FeatureComboDesc:
        """Parse one `--keep`/`--interactions` string against this instance's transforms."""
        from ffm_pipeline.config.combo import parse_feature_combo_desc

        return parse_feature_combo_desc(s, NamespaceResolver(namespace_map, self.transform_namespaces))

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the instance into a plain record (JSON/YAML types only).

        Every dataclass field is written, deprecated ones included, so that the
        record reconstructs the instance field for field.
        """
        record: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "feature_combo_descs":
                value = [desc.to_dict() for desc in value]
            elif f.name == "ffm_fields":
                value = [list(group) for group in value]
            elif f.name == "optimizer":
                value = value.record_name
            elif f.name == "transform_namespaces":
                value = value.to_list()
            record[f.name] = value
        return record

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "ModelInstance":
        """
        Rebuild an instance from a saved record.

        Fields added after the first record version fall back to
        `RECORD_MISSING_DEFAULTS`; the remaining fields are required.

        Raises:
            RecordError: If a required field is missing or a value has the
                wrong shape.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(record) - known)
        if unknown:
            logger.warning(f"Ignoring unknown fields in saved configuration: {', '.join(unknown)}")

        values: Dict[str, Any] = {}
        for name in known:
            if name in record:
                values[name] = record[name]
            elif name in RECORD_MISSING_DEFAULTS:
                values[name] = RECORD_MISSING_DEFAULTS[name]
            else:
                raise RecordError(f"Saved configuration is missing required field \"{name}\"", option=name)

        try:
            values["feature_combo_descs"] = [FeatureComboDesc.from_dict(d) for d in values["feature_combo_descs"]]
            values["ffm_fields"] = [[int(i) for i in group] for group in values["ffm_fields"]]
        except (KeyError, TypeError, ValueError) as e:
            raise RecordError(f"Invalid feature combination or field record: {e}") from e

        if not isinstance(values["optimizer"], Optimizer):
            values["optimizer"] = Optimizer.from_record(values["optimizer"])
        if not isinstance(values["transform_namespaces"], NamespaceTransforms):
            values["transform_namespaces"] = NamespaceTransforms.from_list(values["transform_namespaces"])

        return cls(**values)


# Defaults for fields absent from a saved record. Not the construction defaults.
RECORD_MISSING_DEFAULTS: Dict[str, Any] = {
    "minimum_learning_rate": 0.0,
    "ffm_k": 0,
    "ffm_bit_precision": 0,
    "ffm_separate_vectors": False,
    "fastmath": False,
    "ffm_k_threshold": 0.0,
    "ffm_init_center": 0.0,
    "ffm_init_width": 0.0,
    "ffm_init_zero_band": 0.0,
    "ffm_init_acc_gradient": 0.0,
    "init_acc_gradient": 0.0,
    "ffm_learning_rate": 0.0, # Only used for learning; a loaded model predicts the same.
    "ffm_power_t": 0.0,
    "optimizer": OPTIMIZER_DESERIALIZE_MISSING_DEFAULT,
}
