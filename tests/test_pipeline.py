"""
Tests for the pipeline driver.
"""

import pytest
import torch

from twpipe.errors import CorruptModelArtifact, InvalidHyperparameter, VocabularyMismatch
from twpipe.pipeline import Pipeline
from twpipe.utils.alphabet import ALPHABET_STAGE, Vocabulary
from twpipe.utils.data_utils import load_clusters, read_conllu
from twpipe.utils.model_store import ModelStore

from conftest import STAGE_HYPERPARAMS


def stage_config(name, train=True, **overrides):
    return {"train": train, "name": name, **overrides}


@pytest.fixture
def sentences(conllu_file):
    return list(read_conllu(conllu_file))


@pytest.fixture
def corpus_vocabulary(sentences):
    return Vocabulary.from_sentences(sentences)


@pytest.fixture
def config():
    return {
        "seed": 7,
        "postagger": stage_config("char-lstm-crf", **STAGE_HYPERPARAMS["postagger"]),
        "parser": stage_config("gru-biaffine", **STAGE_HYPERPARAMS["parser"]),
    }


class TestTrain:

    def test_train_records_selected_stages(self, config, sentences, corpus_vocabulary, tmp_path):
        path = tmp_path / "model.json"
        calls = []

        def fit(stage, engine, data):
            calls.append((stage, len(data)))

        pipeline = Pipeline(config, ModelStore(path), corpus_vocabulary)
        assert pipeline.stages_to_train() == ["postagger", "parser"]
        engines = pipeline.train(sentences, fit=fit)

        assert list(engines) == ["postagger", "parser"]
        assert calls == [("postagger", 2), ("parser", 2)]
        assert path.exists()
        assert ModelStore.load(path).stages() == [ALPHABET_STAGE, "postagger", "parser"]

    def test_train_without_path_stays_in_memory(self, config, corpus_vocabulary):
        store = ModelStore()
        Pipeline(config, store, corpus_vocabulary).train()
        assert store.path is None
        assert store.has_stage("parser")

    def test_train_requires_vocabulary(self, config):
        with pytest.raises(ValueError):
            Pipeline(config, ModelStore()).train()

    def test_nothing_to_train(self, corpus_vocabulary):
        store = ModelStore()
        assert Pipeline({}, store, corpus_vocabulary).train() == {}
        assert store.stages() == [ALPHABET_STAGE]


class TestLoad:

    @pytest.fixture
    def artifact(self, config, corpus_vocabulary, tmp_path):
        path = tmp_path / "model.json"
        Pipeline(config, ModelStore(path), corpus_vocabulary).train()
        return path

    def test_load_restores_vocabulary_and_stages(self, artifact, corpus_vocabulary):
        pipeline = Pipeline({}, ModelStore.load(artifact))
        engines = pipeline.load(["parser"])

        # the tokenizer was never trained and is skipped
        assert list(engines) == ["postagger", "parser"]
        assert pipeline.vocabulary.size_of("words") == corpus_vocabulary.size_of("words")
        assert pipeline.builder("parser").variant.name == "gru-biaffine"
        assert not engines["parser"].training

    def test_requested_stage_missing(self, artifact):
        with pytest.raises(CorruptModelArtifact) as excinfo:
            Pipeline({}, ModelStore.load(artifact)).load(["tokenizer"])
        assert excinfo.value.stage == "tokenizer"

    def test_mismatching_vocabulary(self, artifact):
        other = Vocabulary.from_sentences([])
        with pytest.raises(VocabularyMismatch):
            Pipeline({}, ModelStore.load(artifact), other).load(["postagger"])

    def test_artifact_without_alphabet(self):
        store = ModelStore()
        with pytest.raises(CorruptModelArtifact):
            Pipeline({}, store).load(["postagger"])


class TestRequiredStages:

    def test_earlier_stages_are_implied(self):
        assert Pipeline.required_stages(["parser"]) == ["tokenizer", "postagger", "parser"]
        assert Pipeline.required_stages(["tokenizer"]) == ["tokenizer"]
        assert Pipeline.required_stages([]) == []

    def test_unknown_stage(self):
        with pytest.raises(ValueError):
            Pipeline.required_stages(["lemmatizer"])


class TestEmbeddings:

    VECTORS = {"dog": [1.0, 2.0, 3.0], "cats": [4.0, 5.0, 6.0]}

    def test_embed_sentence(self, sentences, corpus_vocabulary):
        pipeline = Pipeline({"embedding-dim": 3}, ModelStore(), corpus_vocabulary, self.VECTORS)
        vectors = pipeline.embed(sentences[0])
        assert vectors.shape == (4, 3)
        assert vectors[1].tolist() == [1.0, 2.0, 3.0]
        assert vectors[0].tolist() == [0.0, 0.0, 0.0]
        # falls back to the lowercased form
        assert pipeline.embed(sentences[1])[0].tolist() == [4.0, 5.0, 6.0]

    def test_embeddings_feed_the_postagger(self, sentences, corpus_vocabulary):
        config = {
            "embedding-dim": 3,
            "postagger": stage_config("char-gru", **STAGE_HYPERPARAMS["postagger"]),
        }
        pipeline = Pipeline(config, ModelStore(), corpus_vocabulary, self.VECTORS)
        seen = []

        def fit(stage, engine, data):
            sentence = data[0]
            forms = [token.form for token in sentence.tokens]
            width = max(len(form) for form in forms)
            chars = torch.tensor([
                [corpus_vocabulary["characters"].get(ch) for ch in form] + [0] * (width - len(form))
                for form in forms
            ])
            lengths = torch.tensor([len(form) for form in forms])
            seen.append(engine(chars, lengths, embeddings=pipeline.embed(sentence)).shape)

        pipeline.train(sentences, fit=fit)
        assert seen == [(4, corpus_vocabulary.size_of("tags"))]
        assert dict(pipeline.store.fields("postagger"))["embedding-dim"] == "3"

    def test_embeddings_need_a_dimension(self, corpus_vocabulary):
        with pytest.raises(ValueError):
            Pipeline({}, ModelStore(), corpus_vocabulary, self.VECTORS)

    def test_embeddings_of_the_wrong_width(self, corpus_vocabulary):
        with pytest.raises(ValueError):
            Pipeline({"embedding-dim": 4}, ModelStore(), corpus_vocabulary, self.VECTORS)


class TestEmptyVocabularyCategory:

    def test_cluster_variant_without_clusters(self, sentences, corpus_vocabulary):
        config = {"postagger": stage_config("char-gru-wcluster", **STAGE_HYPERPARAMS["postagger"])}
        store = ModelStore()
        with pytest.raises(InvalidHyperparameter) as excinfo:
            Pipeline(config, store, corpus_vocabulary).train(sentences)
        assert excinfo.value.field == "n-clusters"
        assert not store.has_stage("postagger")

    def test_cluster_variant_with_clusters(self, sentences, cluster_file):
        vocabulary = Vocabulary.from_sentences(sentences, clusters=load_clusters(cluster_file))
        config = {"postagger": stage_config("char-gru-wcluster", **STAGE_HYPERPARAMS["postagger"])}
        store = ModelStore()
        Pipeline(config, store, vocabulary).train(sentences)
        assert dict(store.fields("postagger"))["n-clusters"] == "6"
