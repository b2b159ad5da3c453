"""
twpipe

Tokenizer -> postagger -> parser pipeline of neural sequence models, with a
closed variant registry per stage and a single persisted artifact from which
every trained stage is rebuilt exactly.
"""

from .builders import BUILDERS, ParseModelBuilder, PostagModelBuilder, StageModelBuilder, TokenizeModelBuilder
from .errors import (
    CorruptModelArtifact,
    InvalidHyperparameter,
    TwpipeError,
    UnknownVariant,
    UnreachableVariant,
    VocabularyMismatch,
)
from .pipeline import Pipeline
from .registry import CATALOGS, STAGES
from .utils import ModelStore, Vocabulary

__version__ = "0.1.0"

__all__ = [
    'BUILDERS',
    'StageModelBuilder',
    'TokenizeModelBuilder',
    'PostagModelBuilder',
    'ParseModelBuilder',
    'TwpipeError',
    'UnknownVariant',
    'InvalidHyperparameter',
    'VocabularyMismatch',
    'CorruptModelArtifact',
    'UnreachableVariant',
    'Pipeline',
    'CATALOGS',
    'STAGES',
    'ModelStore',
    'Vocabulary',
]
