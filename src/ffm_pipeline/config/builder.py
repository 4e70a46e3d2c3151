# filename: src/ffm_pipeline/config/builder.py
"""
Building a `ModelInstance` from named options.

This module folds command-line style options onto a default `ModelInstance`,
applying the fallbacks and cross-option checks that keep the configuration
consistent.

Purpose:
    Many options interact: `--vwcompat` demands other options and forbids
    some, `--ffm_learning_rate` falls back to `--learning_rate`,
    `--keep T` only resolves once `--transform_namespace T=...` has been
    registered. Getting the order wrong silently yields a different model,
    so the order is spelled out as data: `BUILD_STEPS` is an ordered tuple of
    named steps, each taking the configuration so far and returning a new
    one (via `dataclasses.replace`) or raising a `ConfigError`.

    The order of the steps, not the order of the options on the command line,
    decides the result:
    1. **Mode first:** `vwcompat` checks its preconditions before anything
       else is read.
    2. **Transforms before letters:** transformed namespaces are registered
       before any combo or field string is resolved.
    3. **Base before FFM:** every FFM parameter that falls back to its base
       counterpart is read after the base value is final.

FFM Pipeline Fit:
    `cli.build` calls `ConfigBuilder.build` once at startup and hands the
    result to the training engine, or saves it with `config.utils.save_config`.
    The first error aborts the build; the caller never sees a partial
    configuration.
"""

import logging                                          # For the bit precision notices and debug tracing.
from dataclasses import dataclass, replace              # Steps derive new instances with `replace`.
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from ffm_pipeline.config.combo import (
    check_ffm_k,
    parse_feature_combo_desc,
    parse_ffm_field,
    parse_lrqfa,
)
from ffm_pipeline.config.config import L2_EPSILON, ModelInstance, Optimizer
from ffm_pipeline.config.errors import BoundsError, ConsistencyError, RestrictedValueError
from ffm_pipeline.config.options import OptionSource, parse_float
from ffm_pipeline.namespaces.transforms import NamespaceResolver
from ffm_pipeline.namespaces.vwmap import NamespaceMap


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildContext:
    """Read-only inputs shared by all build steps."""

    options: OptionSource
    namespace_map: NamespaceMap
    vwcompat: bool = False

    def resolver(self, instance: ModelInstance) -> NamespaceResolver:
        return NamespaceResolver(self.namespace_map, instance.transform_namespaces)


Step = Callable[[ModelInstance, BuildContext], ModelInstance]


def _apply_vwcompat(instance: ModelInstance, context: BuildContext) -> ModelInstance:
    if not context.vwcompat:
        return instance
    options = context.options

    if not options.is_present("keep"):
        raise ConsistencyError(
            "--vwcompat requires at least one --keep parameter, we do not implicitly take all features available",
            option="keep",
        )

    # Vowpal Wabbit treats numeric strings as precomputed hashes unless told otherwise.
    hash_value = options.value_of("hash")
    if hash_value is None:
        raise ConsistencyError("--vwcompat requires use of --hash all", option="hash")
    if hash_value != "all":
        raise ConsistencyError(
            f"--vwcompat requires use of --hash all, got: --hash {hash_value}", option="hash", value=hash_value
        )

    # --sgd turns off adaptive, invariant and normalized updates in Vowpal Wabbit.
    if not options.is_present("sgd"):
        raise ConsistencyError("--vwcompat requires use of --sgd", option="sgd")

    return replace(instance, fastmath=False, init_acc_gradient=0.0)


def _apply_transform_namespaces(instance: ModelInstance, context: BuildContext) -> ModelInstance:
    definitions = context.options.values_of("transform_namespace")
    if not definitions:
        return instance
    transforms = instance.transform_namespaces.copy()
    for definition in definitions:
        transforms.add_transform_namespace(context.namespace_map, definition)
    return replace(instance, transform_namespaces=transforms)


def _apply_feature_combos(instance: ModelInstance, context: BuildContext) -> ModelInstance:
    resolver = context.resolver(instance)
    combo_descs = list(instance.feature_combo_descs)
    # "keep" holds single-namespace terms and "interactions" crosses, but both are parsed alike.
    for option in ("keep", "interactions"):
        for value in context.options.values_of(option) or []:
            combo_descs.append(parse_feature_combo_desc(value, resolver, option))
    return replace(instance, feature_combo_descs=combo_descs)


def _apply_lrqfa(instance: ModelInstance, context: BuildContext) -> ModelInstance:
    value = context.options.value_of("lrqfa")
    if value is None:
        return instance
    ffm_fields, ffm_k = parse_lrqfa(value, context.resolver(instance))
    return replace(instance, ffm_fields=instance.ffm_fields + ffm_fields, ffm_k=ffm_k)


def _apply_ffm_k(instance: ModelInstance, context: BuildContext) -> ModelInstance:
    ffm_k = context.options.unsigned_of("ffm_k", np.uint32)
    if ffm_k is None:
        return instance
    return replace(instance, ffm_k=check_ffm_k(ffm_k))


def _apply_ffm_init(instance: ModelInstance, context: BuildContext) -> ModelInstance:
    options = context.options
    changes = {}
    for name in ("ffm_init_center", "ffm_init_width", "ffm_k_threshold"):
        value = options.float_of(name)
        if value is not None:
            changes[name] = value

    zero_band = options.float_of("ffm_init_zero_band")
    if zero_band is not None:
        if not 0.0 <= zero_band <= 1.0:
            raise BoundsError(
                f"--ffm_init_zero_band must be between 0.0 and 1.0, passed: {zero_band}",
                option="ffm_init_zero_band",
                value=zero_band,
            )
        changes["ffm_init_zero_band"] = zero_band

    return replace(instance, **changes)


def _apply_init_acc_gradient(instance: ModelInstance, context: BuildContext) -> ModelInstance:
    raw = context.options.value_of("init_acc_gradient")
    if raw is None:
        return instance
    if context.vwcompat:
        raise ConsistencyError(
            "Initial accumulated gradient is not supported in --vwcompat mode",
            option="init_acc_gradient",
            value=raw,
        )
    return replace(instance, init_acc_gradient=parse_float(raw, "init_acc_gradient"))


def _apply_ffm_init_acc_gradient(instance: ModelInstance, context: BuildContext) -> ModelInstance:
    value = context.options.float_of("ffm_init_acc_gradient")
    if value is None:
        value = instance.init_acc_gradient
    return replace(instance, ffm_init_acc_gradient=value)


def _apply_ffm_fields(instance: ModelInstance, context: BuildContext) -> ModelInstance:
    values = context.options.values_of("ffm_field")
    if not values:
        return instance
    resolver = context.resolver(instance)
    return replace(instance, ffm_fields=instance.ffm_fields + [parse_ffm_field(v, resolver) for v in values])


def _read_bit_precision(options: OptionSource, name: str, dtype: type) -> Optional[int]:
    bits = options.unsigned_of(name, dtype)
    if bits is not None and bits == 0:
        raise BoundsError(f"--{name} must be positive, passed: {bits}", option=name, value=bits)
    return bits


def _apply_bit_precision(instance: ModelInstance, context: BuildContext) -> ModelInstance:
    changes = {}

    ffm_bits = _read_bit_precision(context.options, "ffm_bit_precision", np.uint32)
    if ffm_bits is not None:
        changes["ffm_bit_precision"] = ffm_bits
        logger.info(f"FFM num weight bits = {ffm_bits}")

    bits = _read_bit_precision(context.options, "bit_precision", np.uint8)
    if bits is not None:
        changes["bit_precision"] = bits
        logger.info(f"Num weight bits = {bits}")

    return replace(instance, **changes)


def _apply_learning_rates(instance: ModelInstance, context: BuildContext) -> ModelInstance:
    learning_rate = context.options.float_of("learning_rate")
    if learning_rate is None:
        learning_rate = instance.learning_rate
    ffm_learning_rate = context.options.float_of("ffm_learning_rate")
    if ffm_learning_rate is None:
        ffm_learning_rate = learning_rate
    return replace(instance, learning_rate=learning_rate, ffm_learning_rate=ffm_learning_rate)


def _apply_minimum_learning_rate_and_power_t(instance: ModelInstance, context: BuildContext) -> ModelInstance:
    changes = {}
    for name in ("minimum_learning_rate", "power_t"):
        value = context.options.float_of(name)
        if value is not None:
            changes[name] = value
    return replace(instance, **changes)


def _apply_ffm_power_t(instance: ModelInstance, context: BuildContext) -> ModelInstance:
    ffm_power_t = context.options.float_of("ffm_power_t")
    if ffm_power_t is None:
        ffm_power_t = instance.power_t
    return replace(instance, ffm_power_t=ffm_power_t)


def _apply_restricted_values(instance: ModelInstance, context: BuildContext) -> ModelInstance:
    options = context.options
    for name in ("link", "loss_function"):
        value = options.value_of(name)
        if value is not None and value != "logistic":
            raise RestrictedValueError(f"--{name} only supports 'logistic'", option=name, value=value)

    l2 = options.float_of("l2")
    if l2 is not None and abs(l2) > L2_EPSILON:
        raise RestrictedValueError("--l2 can only be 0.0", option="l2", value=l2)
    return instance


def _apply_noconstant(instance: ModelInstance, context: BuildContext) -> ModelInstance:
    if context.options.is_present("noconstant"):
        return replace(instance, add_constant_feature=False)
    return instance


def _apply_optimizer(instance: ModelInstance, context: BuildContext) -> ModelInstance:
    options = context.options
    optimizer = instance.optimizer
    # TODO: decide whether --sgd together with --adaptive should be rejected; today --adaptive wins.
    if options.is_present("sgd") and options.is_present("adaptive"):
        logger.warning("Both --sgd and --adaptive given, using Adagrad")
    if options.is_present("sgd"):
        optimizer = Optimizer.SGD
    if options.is_present("adaptive"):
        optimizer = Optimizer.ADAGRAD
    return replace(instance, optimizer=optimizer)


# Order matters: see the module docstring.
BUILD_STEPS: Tuple[Tuple[str, Step], ...] = (
    ("vwcompat", _apply_vwcompat),
    ("transform_namespace", _apply_transform_namespaces),
    ("keep/interactions", _apply_feature_combos),
    ("lrqfa", _apply_lrqfa),
    ("ffm_k", _apply_ffm_k),
    ("ffm_init", _apply_ffm_init),
    ("init_acc_gradient", _apply_init_acc_gradient),
    ("ffm_init_acc_gradient", _apply_ffm_init_acc_gradient),
    ("ffm_field", _apply_ffm_fields),
    ("bit_precision", _apply_bit_precision),
    ("learning_rate", _apply_learning_rates),
    ("minimum_learning_rate/power_t", _apply_minimum_learning_rate_and_power_t),
    ("ffm_power_t", _apply_ffm_power_t),
    ("link/loss_function/l2", _apply_restricted_values),
    ("noconstant", _apply_noconstant),
    ("optimizer", _apply_optimizer),
)


class ConfigBuilder:
    """
    Folds named options onto a default `ModelInstance`.

    Attributes:
        namespace_map (NamespaceMap): Registry the namespace letters resolve against.
        steps (Sequence[Tuple[str, Step]]): The ordered build steps, `BUILD_STEPS` by default.
    """

    def __init__(self, namespace_map: NamespaceMap, steps: Sequence[Tuple[str, Step]] = BUILD_STEPS):
        self.namespace_map = namespace_map
        self.steps = tuple(steps)

    def build(self, options: OptionSource) -> ModelInstance:
        """
        Build a `ModelInstance` from `options`.

        Raises:
            ConfigError: The first validation failure; no instance is returned.
        """
        context = BuildContext(
            options=options,
            namespace_map=self.namespace_map,
            vwcompat=options.is_present("vwcompat"),
        )
        instance = ModelInstance.new_empty()
        for name, step in self.steps:
            logger.debug(f"Applying configuration step: {name}")
            instance = step(instance, context)
        return instance


def build_model_instance(options: OptionSource, namespace_map: NamespaceMap) -> ModelInstance:
    """Shorthand for `ConfigBuilder(namespace_map).build(options)`."""
    return ConfigBuilder(namespace_map).build(options)
