"""
Tests for the command line interface.
"""

import pytest
import yaml
from click.testing import CliRunner

from twpipe.runner import cli
from twpipe.utils.model_store import ModelStore

from conftest import STAGE_HYPERPARAMS


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "run.yaml"
    config = {"postagger": {"train": True, "name": "char-gru-wcluster", **STAGE_HYPERPARAMS["postagger"]}}
    path.write_text(yaml.safe_dump(config), encoding="utf-8")
    return path


class TestList:

    def test_all_stages(self, runner):
        result = runner.invoke(cli, ["list"])
        assert result.exit_code == 0
        assert "segmental-lstm" in result.output
        assert "char-lstm-crf" in result.output
        assert "lstm-biaffine" in result.output

    def test_single_stage(self, runner):
        result = runner.invoke(cli, ["list", "--stage", "parser"])
        assert result.exit_code == 0
        assert "gru-biaffine" in result.output
        assert "char-gru" not in result.output


class TestTrainAndLoad:

    def test_train_then_load(self, runner, config_file, conllu_file, cluster_file, tmp_path):
        model = tmp_path / "model.json"
        result = runner.invoke(cli, [
            "train",
            "--config", str(config_file),
            "--input-file", str(conllu_file),
            "--cluster", str(cluster_file),
            "--model", str(model),
        ])
        assert result.exit_code == 0, result.output
        assert "char-gru-wcluster" in result.output
        assert ModelStore.load(model).has_stage("postagger")

        result = runner.invoke(cli, ["load", "--model", str(model)])
        assert result.exit_code == 0, result.output
        assert "POSTAGGER: char-gru-wcluster" in result.output
        assert "n-clusters" in result.output

    def test_load_missing_stage(self, runner, config_file, conllu_file, cluster_file, tmp_path):
        model = tmp_path / "model.json"
        runner.invoke(cli, [
            "train",
            "--config", str(config_file),
            "--input-file", str(conllu_file),
            "--cluster", str(cluster_file),
            "--model", str(model),
        ])
        result = runner.invoke(cli, ["load", "--model", str(model), "--parse"])
        assert result.exit_code != 0
        assert "Loading failed" in result.output

    def test_train_without_model_path(self, runner, config_file, conllu_file):
        result = runner.invoke(cli, ["train", "--config", str(config_file), "--input-file", str(conllu_file)])
        assert result.exit_code == 2
        assert "No model path" in result.output

    def test_missing_config(self, runner, conllu_file, tmp_path):
        result = runner.invoke(cli, [
            "train",
            "--config", str(tmp_path / "missing.yaml"),
            "--input-file", str(conllu_file),
            "--model", str(tmp_path / "model.json"),
        ])
        assert result.exit_code != 0
        assert isinstance(result.exception, FileNotFoundError)


class TestTrainOptions:

    def _write_config(self, tmp_path, name, **extra):
        path = tmp_path / f"{name}.yaml"
        config = dict(extra, postagger={"train": True, "name": name, **STAGE_HYPERPARAMS["postagger"]})
        path.write_text(yaml.safe_dump(config), encoding="utf-8")
        return path

    def test_pretrained_embeddings(self, runner, conllu_file, tmp_path):
        vectors = tmp_path / "vectors.txt"
        vectors.write_text("dog 0.1 0.2 0.3\ncat 1 2 3\n", encoding="utf-8")
        model = tmp_path / "model.json"
        result = runner.invoke(cli, [
            "train",
            "--config", str(self._write_config(tmp_path, "char-gru", **{"embedding-dim": 3})),
            "--input-file", str(conllu_file),
            "--embedding", str(vectors),
            "--model", str(model),
        ])
        assert result.exit_code == 0, result.output
        assert "Pretrained embeddings: 2 words, 3 dimensions" in result.output
        assert dict(ModelStore.load(model).fields("postagger"))["embedding-dim"] == "3"

    def test_embeddings_without_dimension(self, runner, conllu_file, tmp_path):
        vectors = tmp_path / "vectors.txt"
        vectors.write_text("dog 0.1 0.2 0.3\n", encoding="utf-8")
        result = runner.invoke(cli, [
            "train",
            "--config", str(self._write_config(tmp_path, "char-gru")),
            "--input-file", str(conllu_file),
            "--embedding", str(vectors),
            "--model", str(tmp_path / "model.json"),
        ])
        assert result.exit_code == 2

    def test_cluster_variant_without_cluster_file(self, runner, conllu_file, tmp_path):
        model = tmp_path / "model.json"
        result = runner.invoke(cli, [
            "train",
            "--config", str(self._write_config(tmp_path, "char-lstm-wcluster")),
            "--input-file", str(conllu_file),
            "--model", str(model),
        ])
        assert result.exit_code != 0
        assert "Training failed" in result.output
        assert not model.exists()
