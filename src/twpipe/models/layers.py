"""
Shared Network Building Blocks

Layer allocation helpers and the encoders reused by the tokenizer,
postagger and parser engines.
"""

from typing import Optional

import torch
import torch.nn as nn
from torch.nn.utils.rnn import pack_padded_sequence

RNN_TYPES = {
    "gru": nn.GRU,
    "lstm": nn.LSTM,
}


def allocate_rnn(kind: str, input_dim: int, hidden_dim: int, n_layers: int,
                 bidirectional: bool = True) -> nn.RNNBase:
    """
    Allocate a batch-first recurrent layer.

    Args:
        kind: ``gru`` or ``lstm``
        input_dim: Input feature width
        hidden_dim: Hidden width per direction
        n_layers: Number of stacked layers
        bidirectional: Run a backward pass as well

    Returns:
        Recurrent layer
    """
    if kind not in RNN_TYPES:
        raise ValueError(f"Unknown recurrent layer '{kind}'. Available: {list(RNN_TYPES)}")
    return RNN_TYPES[kind](input_dim, hidden_dim, num_layers=n_layers,
                           batch_first=True, bidirectional=bidirectional)


class CharacterEncoder(nn.Module):
    """Encode each word from its characters into the final fwd/bwd hidden states."""

    def __init__(self, rnn_type: str, n_chars: int, char_dim: int, hidden_dim: int, n_layers: int):
        super().__init__()
        self.embedding = nn.Embedding(n_chars, char_dim, padding_idx=0)
        self.rnn = allocate_rnn(rnn_type, char_dim, hidden_dim, n_layers)
        self.output_dim = 2 * hidden_dim

    def forward(self, chars: torch.Tensor, lengths: torch.Tensor) -> torch.Tensor:
        """
        Args:
            chars: (n_words, max_chars) character ids, 0-padded
            lengths: (n_words,) number of characters per word

        Returns:
            (n_words, 2 * hidden_dim) word representations
        """
        embedded = self.embedding(chars)
        packed = pack_padded_sequence(embedded, lengths.cpu(), batch_first=True, enforce_sorted=False)
        _, hidden = self.rnn(packed)
        if isinstance(hidden, tuple):
            hidden = hidden[0]
        return torch.cat([hidden[-2], hidden[-1]], dim=-1)


class SequenceEncoder(nn.Module):
    """Bidirectional recurrent encoder over a single sentence."""

    def __init__(self, rnn_type: str, input_dim: int, hidden_dim: int, n_layers: int):
        super().__init__()
        self.rnn = allocate_rnn(rnn_type, input_dim, hidden_dim, n_layers)
        self.hidden_dim = hidden_dim
        self.output_dim = 2 * hidden_dim

    def forward(self, inputs: torch.Tensor) -> torch.Tensor:
        """(seq_len, input_dim) -> (seq_len, 2 * hidden_dim)"""
        outputs, _ = self.rnn(inputs.unsqueeze(0))
        return outputs.squeeze(0)


class Biaffine(nn.Module):
    """Biaffine scorer: x_i^T W y_j (+ bias terms) for every pair (i, j)."""

    def __init__(self, in_dim: int, n_out: int = 1, bias_x: bool = True, bias_y: bool = True):
        super().__init__()
        self.n_out = n_out
        self.bias_x = bias_x
        self.bias_y = bias_y
        self.weight = nn.Parameter(torch.zeros(n_out, in_dim + bias_x, in_dim + bias_y))

    def forward(self, x: torch.Tensor, y: torch.Tensor) -> torch.Tensor:
        """
        Args:
            x: (n, in_dim) dependents
            y: (m, in_dim) heads

        Returns:
            (n, m) scores when n_out == 1, otherwise (n, m, n_out)
        """
        if self.bias_x:
            x = torch.cat([x, x.new_ones(x.size(0), 1)], dim=-1)
        if self.bias_y:
            y = torch.cat([y, y.new_ones(y.size(0), 1)], dim=-1)
        scores = torch.einsum("xi,oij,yj->xyo", x, self.weight, y)
        return scores.squeeze(-1) if self.n_out == 1 else scores


def mlp(input_dim: int, hidden_dim: int, output_dim: Optional[int] = None) -> nn.Sequential:
    """One tanh hidden layer, optionally followed by a linear projection."""
    layers = [nn.Linear(input_dim, hidden_dim), nn.Tanh()]
    if output_dim is not None:
        layers.append(nn.Linear(hidden_dim, output_dim))
    return nn.Sequential(*layers)


def count_parameters(module: nn.Module) -> int:
    return sum(p.numel() for p in module.parameters())
