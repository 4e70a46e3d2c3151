import json

import pytest
import yaml

from ffm_pipeline.config import (
    FFM_MAX_K,
    OPTIMIZER_CONSTRUCTION_DEFAULT,
    OPTIMIZER_DESERIALIZE_MISSING_DEFAULT,
    BoundsError,
    ConfigBuilder,
    FeatureComboDesc,
    ModelInstance,
    OptionSource,
    Optimizer,
    RecordError,
    load_config,
    save_config,
    validate_config,
)


@pytest.fixture
def built(vw_map):
    return ConfigBuilder(vw_map).build(OptionSource({
        "keep": ["A", "B"],
        "interactions": ["AB:0.3"],
        "transform_namespace": ["T=BinnerSqrt(C)(20.0)"],
        "lrqfa": "AT-8",
        "learning_rate": "0.1",
        "bit_precision": "22",
        "adaptive": True,
        "noconstant": True,
    }))


def test_optimizer_defaults_differ():
    assert OPTIMIZER_CONSTRUCTION_DEFAULT == Optimizer.SGD
    assert OPTIMIZER_DESERIALIZE_MISSING_DEFAULT == Optimizer.ADAGRAD
    assert ModelInstance.new_empty().optimizer == Optimizer.SGD

    record = ModelInstance.new_empty().to_dict()
    del record["optimizer"]
    assert ModelInstance.from_dict(record).optimizer == Optimizer.ADAGRAD


def test_record_uses_plain_types(built):
    record = built.to_dict()
    assert record["optimizer"] == "Adagrad"
    assert record["feature_combo_descs"][2]["feature_indices"] == [0, 1]
    assert record["ffm_fields"] == [[0], [3]]
    assert record["transform_namespaces"][0]["to_namespace"] == "T"
    assert "hash_mask" in record and "ffm_separate_vectors" in record
    json.dumps(record)


def test_dict_round_trip(built):
    assert ModelInstance.from_dict(built.to_dict()) == built


@pytest.mark.parametrize("filename", ["model_config.yaml", "model_config.yml", "model_config.json"])
def test_file_round_trip(built, tmp_path, filename):
    path = tmp_path / "model" / filename
    save_config(built, path)
    assert load_config(path) == built


def test_unsupported_extension(built, tmp_path):
    with pytest.raises(ValueError, match="Unsupported"):
        save_config(built, tmp_path / "model_config.toml")
    (tmp_path / "model_config.toml").write_text("")
    with pytest.raises(ValueError, match="Unsupported"):
        load_config(tmp_path / "model_config.toml")


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "model_config.yaml")


def test_old_record_gets_missing_defaults(tmp_path):
    old_record = {
        "learning_rate": 0.2,
        "power_t": 0.5,
        "bit_precision": 18,
        "hash_mask": 0,
        "add_constant_feature": True,
        "feature_combo_descs": [{"feature_indices": [0], "weight": 1.0}],
        "ffm_fields": [],
        "transform_namespaces": [],
    }
    path = tmp_path / "model_config.yaml"
    path.write_text(yaml.safe_dump(old_record))

    mi = load_config(path)
    assert mi.learning_rate == 0.2
    assert mi.feature_combo_descs == [FeatureComboDesc((0,), 1.0)]
    assert mi.optimizer == Optimizer.ADAGRAD
    assert mi.fastmath is False
    assert mi.init_acc_gradient == 0.0
    assert mi.ffm_bit_precision == 0
    assert mi.ffm_learning_rate == 0.0


def test_missing_required_field():
    record = ModelInstance.new_empty().to_dict()
    del record["bit_precision"]
    with pytest.raises(RecordError, match="bit_precision"):
        ModelInstance.from_dict(record)


def test_unknown_fields_are_ignored(caplog):
    record = ModelInstance.new_empty().to_dict()
    record["some_future_field"] = 1
    assert ModelInstance.from_dict(record) == ModelInstance.new_empty()
    assert "some_future_field" in caplog.text


def test_bad_optimizer_name():
    record = ModelInstance.new_empty().to_dict()
    record["optimizer"] = "Adam"
    with pytest.raises(RecordError):
        ModelInstance.from_dict(record)


def test_validate_config(built):
    validate_config(built)

    record = built.to_dict()
    record["ffm_k"] = FFM_MAX_K + 1
    with pytest.raises(BoundsError):
        validate_config(ModelInstance.from_dict(record))

    record = built.to_dict()
    record["feature_combo_descs"].append({"feature_indices": [], "weight": 1.0})
    with pytest.raises(RecordError):
        validate_config(ModelInstance.from_dict(record))
