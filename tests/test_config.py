"""
Tests for configuration loading and validation.
"""

import logging

import pytest
import yaml

from twpipe.config import DEFAULT_DEVICE, DEFAULT_SEED, load_config, normalize_config, validate_config
from twpipe.errors import UnknownVariant


class TestLoadConfig:

    def test_load(self, tmp_path):
        path = tmp_path / "run.yaml"
        path.write_text("model: out.json\npostagger:\n  train: true\n  name: char-gru\n", encoding="utf-8")
        config = load_config(str(path))
        assert config["model"] == "out.json"
        assert config["postagger"] == {"train": True, "name": "char-gru"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("postagger: [unclosed\n", encoding="utf-8")
        with pytest.raises(yaml.YAMLError):
            load_config(str(path))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(str(path)) == {}


class TestNormalizeConfig:

    def test_defaults(self):
        config = normalize_config({})
        assert config["seed"] == DEFAULT_SEED
        assert config["device"] == DEFAULT_DEVICE
        for stage in ("tokenizer", "postagger", "parser"):
            assert config[stage] == {"train": False}

    def test_embedding_dim_reaches_embedding_stages(self):
        original = {"embedding-dim": 100, "parser": {"embedding-dim": 50}}
        config = normalize_config(original)
        assert config["postagger"]["embedding-dim"] == 100
        assert config["parser"]["embedding-dim"] == 50
        assert "embedding-dim" not in config["tokenizer"]
        assert original == {"embedding-dim": 100, "parser": {"embedding-dim": 50}}


class TestValidateConfig:

    def test_valid(self):
        validate_config({"postagger": {"train": True, "name": "char-lstm-crf", "char-dim": 16}})

    def test_not_a_mapping(self):
        with pytest.raises(ValueError):
            validate_config(["postagger"])

    def test_section_not_a_mapping(self):
        with pytest.raises(ValueError):
            validate_config({"parser": "gru-biaffine"})

    def test_train_without_name(self):
        with pytest.raises(ValueError):
            validate_config({"tokenizer": {"train": True}})

    def test_unknown_variant(self):
        with pytest.raises(UnknownVariant):
            validate_config({"parser": {"train": True, "name": "transformer"}})

    def test_unknown_variant_of_untrained_stage_is_ignored(self):
        validate_config({"parser": {"train": False, "name": "transformer"}})

    def test_unknown_keys_warn(self, caplog):
        with caplog.at_level(logging.WARNING, logger="twpipe.config"):
            validate_config({"epochs": 3, "postagger": {"n-tags": 12, "tag-dim": 8}})
        assert "epochs" in caplog.text
        assert "n-tags" in caplog.text
        assert "tag-dim" not in caplog.text
