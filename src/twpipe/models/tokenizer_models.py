"""
Tokenizer Engines

Character-level tokenizers: linear models label every character, segmental
models score whole candidate tokens from span and duration features.
"""

from typing import Mapping

import torch
import torch.nn as nn
import torch.nn.functional as F

from .layers import SequenceEncoder, mlp
from ..registry.engine_registry import register_tokenizer
from ..registry.variants import TokenizeVariant

# B: first character of a token, I: inside a token, O: outside any token
BOUNDARY_LABELS = ("B", "I", "O")
MAX_SEGMENT_LENGTH = 32


class LinearTokenizeModel(nn.Module):
    """Per-character boundary labeller."""

    def __init__(self, rnn_type: str, n_chars: int, char_dim: int, hidden_dim: int, n_layers: int):
        super().__init__()
        self.embedding = nn.Embedding(n_chars, char_dim, padding_idx=0)
        self.encoder = SequenceEncoder(rnn_type, char_dim, hidden_dim, n_layers)
        self.output = nn.Linear(self.encoder.output_dim, len(BOUNDARY_LABELS))

    def forward(self, chars: torch.Tensor) -> torch.Tensor:
        """(n_chars,) character ids -> (n_chars, n_labels) scores"""
        return self.output(self.encoder(self.embedding(chars)))

    def loss(self, scores: torch.Tensor, labels: torch.Tensor) -> torch.Tensor:
        return F.cross_entropy(scores, labels)


class SegmentalTokenizeModel(nn.Module):
    """Semi-Markov tokenizer scoring every segment up to MAX_SEGMENT_LENGTH characters."""

    def __init__(self, rnn_type: str, n_chars: int, char_dim: int, hidden_dim: int, n_layers: int,
                 seg_dim: int, dur_dim: int, max_segment_length: int = MAX_SEGMENT_LENGTH):
        super().__init__()
        self.max_segment_length = max_segment_length
        self.embedding = nn.Embedding(n_chars, char_dim, padding_idx=0)
        self.encoder = SequenceEncoder(rnn_type, char_dim, hidden_dim, n_layers)
        self.duration = nn.Embedding(max_segment_length, dur_dim)
        self.scorer = mlp(self.encoder.output_dim + dur_dim, seg_dim, 1)

    def forward(self, chars: torch.Tensor) -> torch.Tensor:
        """
        Score every segment of one character sequence.

        Args:
            chars: (n_chars,) character ids

        Returns:
            (n_chars, max_segment_length) where [i, k] scores the segment
            starting at i with length k + 1; impossible segments are -inf
        """
        outputs = self.encoder(self.embedding(chars))
        n, h = outputs.size(0), self.encoder.hidden_dim
        zero = outputs.new_zeros(1, h)
        forward_states = torch.cat([zero, outputs[:, :h]], dim=0)
        backward_states = torch.cat([outputs[:, h:], zero], dim=0)

        scores = outputs.new_full((n, self.max_segment_length), float("-inf"))
        for length in range(1, min(n, self.max_segment_length) + 1):
            starts = torch.arange(0, n - length + 1, device=chars.device)
            ends = starts + length
            span = torch.cat([
                forward_states[ends] - forward_states[starts],
                backward_states[starts] - backward_states[ends],
                self.duration(torch.full_like(starts, length - 1)),
            ], dim=-1)
            scores[starts, length - 1] = self.scorer(span).squeeze(-1)
        return scores

    def loss(self, scores: torch.Tensor, segment_lengths: torch.Tensor) -> torch.Tensor:
        """Negative log-likelihood of a gold segmentation under the semi-Markov model."""
        n = scores.size(0)
        # alpha[j]: log-sum of all segmentations of the first j characters
        alpha = [scores.new_zeros(())]
        for j in range(1, n + 1):
            candidates = [alpha[j - k] + scores[j - k, k - 1]
                          for k in range(1, min(j, self.max_segment_length) + 1)]
            alpha.append(torch.logsumexp(torch.stack(candidates), dim=0))

        gold, start = scores.new_zeros(()), 0
        for length in segment_lengths.tolist():
            gold = gold + scores[start, length - 1]
            start += length
        return alpha[n] - gold


def _create_linear(hp: Mapping[str, int], rnn_type: str) -> LinearTokenizeModel:
    return LinearTokenizeModel(rnn_type, hp["n-chars"], hp["char-dim"], hp["hidden-dim"], hp["n-layers"])


def _create_segmental(hp: Mapping[str, int], rnn_type: str) -> SegmentalTokenizeModel:
    return SegmentalTokenizeModel(rnn_type, hp["n-chars"], hp["char-dim"], hp["hidden-dim"], hp["n-layers"],
                                  hp["seg-dim"], hp["dur-dim"])


@register_tokenizer(TokenizeVariant.LINEAR_GRU)
def create_linear_gru(hp: Mapping[str, int]) -> LinearTokenizeModel:
    return _create_linear(hp, "gru")


@register_tokenizer(TokenizeVariant.LINEAR_LSTM)
def create_linear_lstm(hp: Mapping[str, int]) -> LinearTokenizeModel:
    return _create_linear(hp, "lstm")


@register_tokenizer(TokenizeVariant.SEGMENTAL_GRU)
def create_segmental_gru(hp: Mapping[str, int]) -> SegmentalTokenizeModel:
    return _create_segmental(hp, "gru")


@register_tokenizer(TokenizeVariant.SEGMENTAL_LSTM)
def create_segmental_lstm(hp: Mapping[str, int]) -> SegmentalTokenizeModel:
    return _create_segmental(hp, "lstm")
