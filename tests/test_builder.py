import logging

import pytest

from ffm_pipeline.config import (
    FFM_MAX_K,
    BoundsError,
    ConfigBuilder,
    ConsistencyError,
    FeatureComboDesc,
    ModelInstance,
    NamespaceLookupError,
    NumericParseError,
    OptionSource,
    Optimizer,
    RestrictedValueError,
    build_model_instance,
)


def build(vw_map, **options):
    return ConfigBuilder(vw_map).build(OptionSource(options))


VWCOMPAT_OPTIONS = {"vwcompat": True, "keep": ["A"], "hash": "all", "sgd": True}


def test_no_options_gives_defaults(vw_map):
    mi = build(vw_map)
    assert mi.learning_rate == 0.5
    assert mi.ffm_learning_rate == 0.5
    assert mi.power_t == 0.5
    assert mi.ffm_power_t == 0.5
    assert mi.bit_precision == 18
    assert mi.ffm_bit_precision == 18
    assert mi.add_constant_feature is True
    assert mi.fastmath is True
    assert mi.init_acc_gradient == 1.0
    # Falls back to init_acc_gradient, not to the construction default of 0.0.
    assert mi.ffm_init_acc_gradient == 1.0
    assert mi.optimizer == Optimizer.SGD
    assert mi.feature_combo_descs == []
    assert mi.ffm_fields == []


def test_keep_and_interactions_share_one_list(vw_map):
    mi = build(vw_map, keep=["A", "B"], interactions=["BA:1.5", "CC"])
    assert mi.feature_combo_descs == [
        FeatureComboDesc((0,), 1.0),
        FeatureComboDesc((1,), 1.0),
        FeatureComboDesc((1, 0), 1.5),
        FeatureComboDesc((2, 2), 1.0),
    ]


def test_unknown_namespace_aborts_build(vw_map):
    with pytest.raises(NamespaceLookupError) as excinfo:
        build(vw_map, keep=["A"], interactions=["AB", "AZ:2"])
    assert excinfo.value.option == "interactions"
    assert '"AZ:2"' in str(excinfo.value)


@pytest.mark.parametrize("option, value", [("lrqfa", "AZ-4"), ("ffm_field", ["A", "BZ"])])
def test_unknown_ffm_namespace_aborts_build(vw_map, option, value):
    with pytest.raises(NamespaceLookupError) as excinfo:
        build(vw_map, **{option: value})
    assert excinfo.value.option == option
    assert excinfo.value.namespace_char == "Z"


def test_build_is_idempotent(vw_map):
    options = OptionSource({
        "keep": ["A"],
        "interactions": ["AB:0.5"],
        "transform_namespace": ["T=BinnerSqrt(C)(20.0)"],
        "lrqfa": "AB-4",
        "ffm_field": ["CT"],
        "learning_rate": "0.1",
        "adaptive": True,
    })
    builder = ConfigBuilder(vw_map)
    assert builder.build(options) == builder.build(options)


def test_ffm_learning_rate_falls_back_to_learning_rate(vw_map):
    mi = build(vw_map, learning_rate="0.3")
    assert mi.learning_rate == 0.3
    assert mi.ffm_learning_rate == 0.3


def test_explicit_ffm_learning_rate_wins(vw_map):
    mi = build(vw_map, learning_rate="0.3", ffm_learning_rate="0.05")
    assert mi.ffm_learning_rate == 0.05


def test_ffm_power_t_falls_back_to_power_t(vw_map):
    assert build(vw_map, power_t="0.25").ffm_power_t == 0.25
    assert build(vw_map, power_t="0.25", ffm_power_t="0.0").ffm_power_t == 0.0


def test_minimum_learning_rate(vw_map):
    assert build(vw_map, minimum_learning_rate="0.001").minimum_learning_rate == 0.001


def test_vwcompat_requires_keep(vw_map):
    options = dict(VWCOMPAT_OPTIONS)
    del options["keep"]
    with pytest.raises(ConsistencyError, match="at least one --keep"):
        build(vw_map, **options)


def test_vwcompat_requires_hash_all(vw_map):
    options = dict(VWCOMPAT_OPTIONS)
    del options["hash"]
    with pytest.raises(ConsistencyError) as missing:
        build(vw_map, **options)

    options["hash"] = "strings"
    with pytest.raises(ConsistencyError) as wrong:
        build(vw_map, **options)

    assert "--hash all" in str(missing.value)
    assert "strings" in str(wrong.value)
    assert str(missing.value) != str(wrong.value)


def test_vwcompat_requires_sgd(vw_map):
    options = dict(VWCOMPAT_OPTIONS)
    del options["sgd"]
    with pytest.raises(ConsistencyError, match="--sgd"):
        build(vw_map, **options)


def test_vwcompat_overrides_defaults(vw_map):
    mi = build(vw_map, **VWCOMPAT_OPTIONS)
    assert mi.fastmath is False
    assert mi.init_acc_gradient == 0.0
    assert mi.ffm_init_acc_gradient == 0.0
    assert mi.optimizer == Optimizer.SGD


def test_vwcompat_forbids_init_acc_gradient(vw_map):
    with pytest.raises(ConsistencyError, match="not supported in --vwcompat mode"):
        build(vw_map, init_acc_gradient="0.5", **VWCOMPAT_OPTIONS)


def test_init_acc_gradients(vw_map):
    mi = build(vw_map, init_acc_gradient="0.25")
    assert mi.init_acc_gradient == 0.25
    assert mi.ffm_init_acc_gradient == 0.25

    mi = build(vw_map, init_acc_gradient="0.25", ffm_init_acc_gradient="2.0")
    assert mi.ffm_init_acc_gradient == 2.0


def test_ffm_k_bound(vw_map):
    assert build(vw_map, ffm_k=str(FFM_MAX_K)).ffm_k == FFM_MAX_K
    with pytest.raises(BoundsError):
        build(vw_map, ffm_k=str(FFM_MAX_K + 1))


def test_ffm_k_overrides_lrqfa(vw_map):
    mi = build(vw_map, lrqfa="AB-4", ffm_k="16")
    assert mi.ffm_fields == [[0], [1]]
    assert mi.ffm_k == 16


def test_lrqfa_and_ffm_field_groups_are_appended(vw_map):
    mi = build(vw_map, lrqfa="AB-4", ffm_field=["BC", "A"])
    assert mi.ffm_fields == [[0], [1], [1, 2], [0]]
    assert mi.ffm_k == 4


def test_ffm_init_parameters(vw_map):
    mi = build(vw_map, ffm_init_center="0.1", ffm_init_width="0.2",
               ffm_init_zero_band="0.5", ffm_k_threshold="0.01")
    assert mi.ffm_init_center == 0.1
    assert mi.ffm_init_width == 0.2
    assert mi.ffm_init_zero_band == 0.5
    assert mi.ffm_k_threshold == 0.01

    with pytest.raises(BoundsError):
        build(vw_map, ffm_init_zero_band="1.5")


def test_bit_precision_is_logged(vw_map, caplog):
    caplog.set_level(logging.INFO, logger="ffm_pipeline.config.builder")
    mi = build(vw_map, bit_precision="20", ffm_bit_precision="22")
    assert mi.bit_precision == 20
    assert mi.ffm_bit_precision == 22
    assert "FFM num weight bits = 22" in caplog.text
    assert "Num weight bits = 20" in caplog.text


@pytest.mark.parametrize("value", ["0", "-1", "256", "eighteen"])
def test_bad_bit_precision(vw_map, value):
    with pytest.raises((BoundsError, NumericParseError)):
        build(vw_map, bit_precision=value)


def test_bad_number_names_option(vw_map):
    with pytest.raises(NumericParseError) as excinfo:
        build(vw_map, learning_rate="fast")
    assert excinfo.value.option == "learning_rate"
    assert "fast" in str(excinfo.value)


@pytest.mark.parametrize("option", ["link", "loss_function"])
def test_only_logistic_is_supported(vw_map, option):
    assert build(vw_map, **{option: "logistic"}).learning_rate == 0.5
    with pytest.raises(RestrictedValueError, match="only supports 'logistic'"):
        build(vw_map, **{option: "squared"})


def test_l2_must_be_zero(vw_map):
    build(vw_map, l2="0.0")
    with pytest.raises(RestrictedValueError, match="--l2"):
        build(vw_map, l2="0.1")


def test_noconstant(vw_map):
    assert build(vw_map, noconstant=True).add_constant_feature is False


def test_optimizer_flags(vw_map, caplog):
    assert build(vw_map, sgd=True).optimizer == Optimizer.SGD
    assert build(vw_map, adaptive=True).optimizer == Optimizer.ADAGRAD

    caplog.set_level(logging.WARNING, logger="ffm_pipeline.config.builder")
    assert build(vw_map, sgd=True, adaptive=True).optimizer == Optimizer.ADAGRAD
    assert "Both --sgd and --adaptive" in caplog.text


def test_transformed_namespaces_resolve(vw_map):
    mi = build(vw_map, transform_namespace=["T=BinnerSqrt(A)(20.0, 1.0)"], keep=["T"], interactions=["AT"])
    assert mi.feature_combo_descs == [FeatureComboDesc((3,)), FeatureComboDesc((0, 3))]
    assert len(mi.transform_namespaces) == 1


def test_first_error_wins(vw_map):
    # vwcompat preconditions are checked before the combo strings are parsed.
    with pytest.raises(ConsistencyError):
        build(vw_map, vwcompat=True, interactions=["AX"])


def test_build_model_instance_shorthand(vw_map):
    options = OptionSource({"keep": ["C"]})
    assert build_model_instance(options, vw_map) == ConfigBuilder(vw_map).build(options)


def test_custom_steps(vw_map):
    builder = ConfigBuilder(vw_map, steps=[])
    assert builder.build(OptionSource({"learning_rate": "0.1"})) == ModelInstance.new_empty()
