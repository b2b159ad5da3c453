"""
Engine Implementations

This module contains the network architectures of every pipeline stage.
Import all model files to register their engine constructors.
"""

# Import model implementations to register them
from . import tokenizer_models
from . import postagger_models
from . import parser_models

__all__ = [
    'tokenizer_models',
    'postagger_models',
    'parser_models',
]
