"""
Engine Parameter (De)serialization

Converts an engine's trained parameters to and from the opaque blob kept
in the model store.
"""

import io
import pickle
from typing import Optional, Union

import torch
import torch.nn as nn

from ..errors import CorruptModelArtifact


def save_parameters(engine: nn.Module) -> bytes:
    """Serialize the engine's state dict."""
    buffer = io.BytesIO()
    torch.save(engine.state_dict(), buffer)
    return buffer.getvalue()


def load_parameters(engine: nn.Module,
                    blob: bytes,
                    stage: Optional[str] = None,
                    device: Optional[Union[str, torch.device]] = None) -> nn.Module:
    """
    Load a parameter blob into an already shaped engine, in place.

    Args:
        engine: Freshly constructed engine with the recorded architecture
        blob: Output of :func:`save_parameters`
        stage: Stage name, for error reporting
        device: Where to map the tensors

    Returns:
        The same engine, now holding trained parameters

    Raises:
        CorruptModelArtifact: If the blob is truncated, unreadable or does
            not match the engine's parameter names and shapes
    """
    try:
        state = torch.load(io.BytesIO(blob), map_location=device or "cpu", weights_only=True)
    except (RuntimeError, EOFError, OSError, KeyError, ValueError, pickle.UnpicklingError) as e:
        raise CorruptModelArtifact(f"unreadable parameter blob: {e}", stage=stage, field="parameters") from e
    if not isinstance(state, dict):
        raise CorruptModelArtifact("parameter blob is not a state dict", stage=stage, field="parameters",
                                   actual=type(state).__name__)
    try:
        engine.load_state_dict(state, strict=True)
    except RuntimeError as e:
        raise CorruptModelArtifact(f"parameters do not fit the recorded architecture: {e}",
                                   stage=stage, field="parameters") from e
    return engine
