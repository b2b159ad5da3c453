"""Tokenizer stage model builder."""

from .base import StageModelBuilder
from ..registry.engine_registry import tokenizer_registry
from ..registry.variants import TOKENIZER_CATALOG


class TokenizeModelBuilder(StageModelBuilder):
    """Builds, records and reconstructs tokenizer engines."""

    catalog = TOKENIZER_CATALOG
    registry = tokenizer_registry
