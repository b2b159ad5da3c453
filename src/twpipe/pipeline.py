"""
Pipeline Driver

Owns the vocabulary, the model store and one builder per stage for the
duration of a run. Training records every trained stage into a single
artifact; loading reconstructs the requested stages from it.
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

import torch
import torch.nn as nn
from transformers import set_seed
from transformers.utils import logging

from .builders import BUILDERS, StageModelBuilder
from .config import normalize_config
from .errors import CorruptModelArtifact, InvalidHyperparameter
from .registry.variants import STAGES
from .utils.alphabet import ALPHABET_STAGE, Vocabulary
from .utils.codec import coerce_uint
from .utils.data_utils import Sentence
from .utils.model_store import ModelStore

logger = logging.get_logger(__name__)

# fit(stage, engine, sentences): the external training loop
FitFunction = Callable[[str, nn.Module, Optional[Sequence[Sentence]]], None]


class Pipeline:
    """Tokenizer -> postagger -> parser driver around one model artifact."""

    def __init__(self,
                 config: Optional[Dict[str, Any]],
                 store: ModelStore,
                 vocabulary: Optional[Vocabulary] = None,
                 embeddings: Optional[Mapping[str, Sequence[float]]] = None):
        """
        Initialize the pipeline.

        Args:
            config: Run configuration (see :mod:`twpipe.config`)
            store: Fresh store for training, loaded store for inference
            vocabulary: Vocabulary of this run; when loading and not given,
                it is restored from the artifact
            embeddings: Pretrained word vectors of width ``embedding-dim``

        Raises:
            ValueError: If embeddings are given without a matching ``embedding-dim``
        """
        self.config = normalize_config(config or {})
        self.store = store
        self.vocabulary = vocabulary
        self.embedding_dim = coerce_uint(self.config.get("embedding-dim"), field="embedding-dim")
        self.embeddings = dict(embeddings or {})
        if self.embeddings:
            if self.embedding_dim == 0:
                raise ValueError("Pretrained embeddings need a non-zero embedding-dim")
            for word, vector in self.embeddings.items():
                if len(vector) != self.embedding_dim:
                    raise ValueError(f"Embedding of '{word}' has {len(vector)} dimensions, "
                                     f"expected {self.embedding_dim}")
        self.device = self.config["device"]
        self.builders: Dict[str, StageModelBuilder] = {}
        self.engines: Dict[str, nn.Module] = {}

    def stages_to_train(self) -> List[str]:
        return [stage for stage in STAGES if self.config[stage].get("train")]

    def builder(self, stage: str) -> StageModelBuilder:
        if stage not in self.builders:
            self.builders[stage] = BUILDERS[stage](self.config[stage], self.vocabulary, self.store)
        return self.builders[stage]

    def embed(self, sentence: Sentence) -> torch.Tensor:
        """
        Pretrained vectors for the words of a sentence, the ``embeddings``
        input of the postagger and parser engines.

        Words without a vector (tried as written, then lowercased) get zeros.

        Returns:
            (n_words, embedding_dim) tensor
        """
        vectors = torch.zeros(len(sentence.tokens), self.embedding_dim)
        for i, token in enumerate(sentence.tokens):
            vector = self.embeddings.get(token.form, self.embeddings.get(token.form.lower()))
            if vector is not None:
                vectors[i] = torch.tensor(vector)
        return vectors.to(self.device)

    def _check_vocabulary(self, builder: StageModelBuilder) -> None:
        used = builder.hyperparams
        for field, category in builder.schema.vocabulary:
            if field in used and self.vocabulary.is_empty(category):
                raise InvalidHyperparameter(
                    f"variant '{builder.variant.name}' needs {category}, but the vocabulary has none",
                    stage=builder.stage, field=field,
                )

    def train(self,
              sentences: Optional[Sequence[Sentence]] = None,
              fit: Optional[FitFunction] = None) -> Dict[str, nn.Module]:
        """
        Build, record and (optionally) fit every stage marked for training.

        Args:
            sentences: Training sentences handed to ``fit``
            fit: External training loop; without it the engines are saved
                with their initial parameters

        Returns:
            Mapping stage -> engine

        Raises:
            ValueError: If no vocabulary was given
        """
        if self.vocabulary is None:
            raise ValueError("Training requires a vocabulary")

        stages = self.stages_to_train()
        if not stages:
            logger.warning("No stage is marked for training")

        set_seed(self.config["seed"])
        self.vocabulary.to_store(self.store)

        for stage in stages:
            logger.info(f"Going to train {stage}")
            builder = self.builder(stage)
            self._check_vocabulary(builder)
            builder.serialize()
            engine = builder.build(self.device)
            if fit is not None:
                fit(stage, engine, sentences)
            builder.save_parameters(engine)
            self.engines[stage] = engine

        if self.store.path is not None:
            self.store.flush()
        return dict(self.engines)

    @staticmethod
    def required_stages(requested: Iterable[str]) -> List[str]:
        """Every stage up to the last requested one, in pipeline order."""
        requested = set(requested)
        unknown = requested - set(STAGES)
        if unknown:
            raise ValueError(f"Unknown stages {sorted(unknown)}. Available: {list(STAGES)}")
        if not requested:
            return []
        last = max(STAGES.index(stage) for stage in requested)
        return list(STAGES[:last + 1])

    def load(self, requested: Iterable[str]) -> Dict[str, nn.Module]:
        """
        Reconstruct the requested stages and the earlier stages present in the artifact.

        Raises:
            CorruptModelArtifact: If a requested stage is not in the artifact
        """
        requested = list(requested)
        if self.vocabulary is None:
            if not self.store.has_stage(ALPHABET_STAGE):
                raise CorruptModelArtifact("artifact has no alphabet", stage=ALPHABET_STAGE)
            self.vocabulary = Vocabulary.from_store(self.store)

        for stage in self.required_stages(requested):
            if not self.store.has_stage(stage):
                if stage in requested:
                    raise CorruptModelArtifact(f"artifact has no {stage} model", stage=stage,
                                               actual=self.store.stages())
                logger.warning(f"Artifact has no {stage} model, skipping it")
                continue
            self.engines[stage] = self.builder(stage).reconstruct(self.device)
        return dict(self.engines)
