"""
Parser Engines

Graph-based dependency parser: character, word, POS tag (and optionally
pretrained) features, a bidirectional sentence encoder and biaffine arc and
label scorers.
"""

from typing import Mapping, Optional, Tuple

import torch
import torch.nn as nn
import torch.nn.functional as F

from .layers import Biaffine, CharacterEncoder, SequenceEncoder, mlp
from ..registry.engine_registry import register_parser
from ..registry.variants import ParseVariant


class BiaffineParseModel(nn.Module):
    """Biaffine dependency parser over a single sentence."""

    def __init__(self,
                 rnn_type: str,
                 n_chars: int,
                 char_dim: int,
                 char_hidden_dim: int,
                 char_n_layers: int,
                 n_words: int,
                 word_dim: int,
                 n_tags: int,
                 tag_dim: int,
                 embedding_dim: int,
                 word_hidden_dim: int,
                 word_n_layers: int,
                 arc_dim: int,
                 label_dim: int,
                 n_deprels: int):
        super().__init__()
        self.embedding_dim = embedding_dim
        self.char_encoder = CharacterEncoder(rnn_type, n_chars, char_dim, char_hidden_dim, char_n_layers)
        self.word_embedding = nn.Embedding(n_words, word_dim, padding_idx=0)
        self.tag_embedding = nn.Embedding(n_tags, tag_dim)

        input_dim = self.char_encoder.output_dim + word_dim + tag_dim + embedding_dim
        self.root = nn.Parameter(torch.zeros(input_dim))
        self.encoder = SequenceEncoder(rnn_type, input_dim, word_hidden_dim, word_n_layers)

        self.arc_dep = mlp(self.encoder.output_dim, arc_dim)
        self.arc_head = mlp(self.encoder.output_dim, arc_dim)
        self.label_dep = mlp(self.encoder.output_dim, label_dim)
        self.label_head = mlp(self.encoder.output_dim, label_dim)
        self.arc_attention = Biaffine(arc_dim, bias_x=True, bias_y=False)
        self.label_attention = Biaffine(label_dim, n_out=n_deprels)

    def forward(self,
                chars: torch.Tensor,
                char_lengths: torch.Tensor,
                words: torch.Tensor,
                tags: torch.Tensor,
                embeddings: Optional[torch.Tensor] = None) -> Tuple[torch.Tensor, torch.Tensor]:
        """
        Score every (dependent, head) pair of one sentence.

        Returns:
            arc scores (n_words, n_words + 1) and label scores
            (n_words, n_words + 1, n_deprels); head 0 is the artificial root
        """
        features = [self.char_encoder(chars, char_lengths), self.word_embedding(words), self.tag_embedding(tags)]
        if self.embedding_dim > 0:
            if embeddings is None:
                embeddings = features[0].new_zeros(words.size(0), self.embedding_dim)
            features.append(embeddings)
        inputs = torch.cat([self.root.unsqueeze(0), torch.cat(features, dim=-1)], dim=0)

        hidden = self.encoder(inputs)
        dependents = hidden[1:]
        arc_scores = self.arc_attention(self.arc_dep(dependents), self.arc_head(hidden))
        label_scores = self.label_attention(self.label_dep(dependents), self.label_head(hidden))
        return arc_scores, label_scores

    def loss(self, arc_scores: torch.Tensor, label_scores: torch.Tensor,
             heads: torch.Tensor, deprels: torch.Tensor) -> torch.Tensor:
        positions = torch.arange(heads.size(0), device=heads.device)
        arc_loss = F.cross_entropy(arc_scores, heads)
        label_loss = F.cross_entropy(label_scores[positions, heads], deprels)
        return arc_loss + label_loss


def _create(hp: Mapping[str, int], rnn_type: str) -> BiaffineParseModel:
    return BiaffineParseModel(
        rnn_type=rnn_type,
        n_chars=hp["n-chars"],
        char_dim=hp["char-dim"],
        char_hidden_dim=hp["char-hidden-dim"],
        char_n_layers=hp["char-n-layers"],
        n_words=hp["n-words"],
        word_dim=hp["word-dim"],
        n_tags=hp["n-tags"],
        tag_dim=hp["tag-dim"],
        embedding_dim=hp.get("embedding-dim", 0),
        word_hidden_dim=hp["word-hidden-dim"],
        word_n_layers=hp["word-n-layers"],
        arc_dim=hp["arc-dim"],
        label_dim=hp["label-dim"],
        n_deprels=hp["n-deprels"],
    )


@register_parser(ParseVariant.GRU_BIAFFINE)
def create_gru_biaffine(hp: Mapping[str, int]) -> BiaffineParseModel:
    return _create(hp, "gru")


@register_parser(ParseVariant.LSTM_BIAFFINE)
def create_lstm_biaffine(hp: Mapping[str, int]) -> BiaffineParseModel:
    return _create(hp, "lstm")
