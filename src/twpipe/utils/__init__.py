"""
Pipeline Utilities

Model store, hyperparameter codec, vocabulary and corpus readers.
"""

from .alphabet import Alphabet, Vocabulary
from .codec import coerce_uint, decode_uint, encode_uint
from .data_utils import Sentence, Token, load_clusters, load_embeddings, read_conllu
from .model_store import FieldNotFound, ModelStore, ModelStoreError

__all__ = [
    'Alphabet',
    'Vocabulary',
    'coerce_uint',
    'decode_uint',
    'encode_uint',
    'Sentence',
    'Token',
    'load_clusters',
    'load_embeddings',
    'read_conllu',
    'FieldNotFound',
    'ModelStore',
    'ModelStoreError',
]
