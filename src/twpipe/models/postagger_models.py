"""
Postagger Engines

Character-level word encoders feeding a sentence-level recurrent encoder and
a tag scorer, with optional CRF output layer and optional word-cluster
encoder. One constructor per catalogued postagger variant.
"""

from typing import List, Mapping, Optional

import torch
import torch.nn as nn
import torch.nn.functional as F
from torchcrf import CRF

from .layers import CharacterEncoder, SequenceEncoder, mlp
from ..registry.engine_registry import register_postagger
from ..registry.variants import PostagVariant


class CharacterPostagModel(nn.Module):
    """Character-based POS tagger over a single sentence."""

    def __init__(self,
                 rnn_type: str,
                 n_chars: int,
                 char_dim: int,
                 char_hidden_dim: int,
                 char_n_layers: int,
                 embedding_dim: int,
                 word_hidden_dim: int,
                 word_n_layers: int,
                 tag_dim: int,
                 n_tags: int,
                 use_crf: bool = False,
                 n_clusters: int = 0,
                 cluster_dim: int = 0,
                 cluster_hidden_dim: int = 0,
                 cluster_n_layers: int = 0):
        super().__init__()
        self.embedding_dim = embedding_dim
        self.char_encoder = CharacterEncoder(rnn_type, n_chars, char_dim, char_hidden_dim, char_n_layers)

        input_dim = self.char_encoder.output_dim + embedding_dim
        self.cluster_embedding = None
        self.cluster_encoder = None
        if n_clusters > 0:
            self.cluster_embedding = nn.Embedding(n_clusters, cluster_dim, padding_idx=0)
            self.cluster_encoder = SequenceEncoder(rnn_type, cluster_dim, cluster_hidden_dim, cluster_n_layers)
            input_dim += self.cluster_encoder.output_dim

        self.word_encoder = SequenceEncoder(rnn_type, input_dim, word_hidden_dim, word_n_layers)
        self.scorer = mlp(self.word_encoder.output_dim, tag_dim, n_tags)
        self.crf = CRF(n_tags, batch_first=True) if use_crf else None

    def forward(self,
                chars: torch.Tensor,
                char_lengths: torch.Tensor,
                embeddings: Optional[torch.Tensor] = None,
                clusters: Optional[torch.Tensor] = None) -> torch.Tensor:
        """
        Score every tag for every word of one sentence.

        Args:
            chars: (n_words, max_chars) character ids
            char_lengths: (n_words,) characters per word
            embeddings: (n_words, embedding_dim) pretrained word vectors
            clusters: (n_words,) cluster ids, required by cluster variants

        Returns:
            (n_words, n_tags) emission scores
        """
        features = [self.char_encoder(chars, char_lengths)]
        if self.embedding_dim > 0:
            if embeddings is None:
                embeddings = features[0].new_zeros(chars.size(0), self.embedding_dim)
            features.append(embeddings)
        if self.cluster_encoder is not None:
            if clusters is None:
                raise ValueError("This postagger variant needs cluster ids")
            features.append(self.cluster_encoder(self.cluster_embedding(clusters)))
        hidden = self.word_encoder(torch.cat(features, dim=-1))
        return self.scorer(hidden)

    def loss(self, emissions: torch.Tensor, tags: torch.Tensor) -> torch.Tensor:
        """Negative log-likelihood of the gold tags (CRF) or token cross entropy."""
        if self.crf is not None:
            return -self.crf(emissions.unsqueeze(0), tags.unsqueeze(0), reduction="sum")
        return F.cross_entropy(emissions, tags)

    def decode(self, emissions: torch.Tensor) -> List[int]:
        """Best tag sequence: Viterbi with a CRF, independent argmax otherwise."""
        if self.crf is not None:
            return self.crf.decode(emissions.unsqueeze(0))[0]
        return emissions.argmax(dim=-1).tolist()


def _create(hp: Mapping[str, int], rnn_type: str, use_crf: bool = False,
            use_cluster: bool = False) -> CharacterPostagModel:
    cluster = {}
    if use_cluster:
        cluster = dict(
            n_clusters=hp["n-clusters"],
            cluster_dim=hp["cluster-dim"],
            cluster_hidden_dim=hp["cluster-hidden-dim"],
            cluster_n_layers=hp["cluster-n-layers"],
        )
    return CharacterPostagModel(
        rnn_type=rnn_type,
        n_chars=hp["n-chars"],
        char_dim=hp["char-dim"],
        char_hidden_dim=hp["char-hidden-dim"],
        char_n_layers=hp["char-n-layers"],
        embedding_dim=hp.get("embedding-dim", 0),
        word_hidden_dim=hp["word-hidden-dim"],
        word_n_layers=hp["word-n-layers"],
        tag_dim=hp["tag-dim"],
        n_tags=hp["n-tags"],
        use_crf=use_crf,
        **cluster,
    )


@register_postagger(PostagVariant.CHAR_GRU)
def create_char_gru(hp: Mapping[str, int]) -> CharacterPostagModel:
    return _create(hp, "gru")


@register_postagger(PostagVariant.CHAR_LSTM)
def create_char_lstm(hp: Mapping[str, int]) -> CharacterPostagModel:
    return _create(hp, "lstm")


@register_postagger(PostagVariant.CHAR_GRU_CRF)
def create_char_gru_crf(hp: Mapping[str, int]) -> CharacterPostagModel:
    return _create(hp, "gru", use_crf=True)


@register_postagger(PostagVariant.CHAR_LSTM_CRF)
def create_char_lstm_crf(hp: Mapping[str, int]) -> CharacterPostagModel:
    return _create(hp, "lstm", use_crf=True)


@register_postagger(PostagVariant.CHAR_GRU_CLUSTER)
def create_char_gru_wcluster(hp: Mapping[str, int]) -> CharacterPostagModel:
    return _create(hp, "gru", use_cluster=True)


@register_postagger(PostagVariant.CHAR_LSTM_CLUSTER)
def create_char_lstm_wcluster(hp: Mapping[str, int]) -> CharacterPostagModel:
    return _create(hp, "lstm", use_cluster=True)
