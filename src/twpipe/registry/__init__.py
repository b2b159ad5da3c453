"""
Registry System for Pipeline Stages

Variant catalogs map configuration names to architectures; engine
registries map each catalogued variant to the function that builds it.
"""

from .base import BaseRegistry
from .catalog import StageSchema, VariantCatalog, VariantDescriptor
from .engine_registry import (
    EngineRegistry,
    parser_registry,
    postagger_registry,
    tokenizer_registry,
)
from .variants import (
    CATALOGS,
    PARSER_CATALOG,
    POSTAGGER_CATALOG,
    STAGES,
    TOKENIZER_CATALOG,
    ParseVariant,
    PostagVariant,
    TokenizeVariant,
)

__all__ = [
    'BaseRegistry',
    'StageSchema',
    'VariantCatalog',
    'VariantDescriptor',
    'EngineRegistry',
    'tokenizer_registry',
    'postagger_registry',
    'parser_registry',
    'CATALOGS',
    'STAGES',
    'TOKENIZER_CATALOG',
    'POSTAGGER_CATALOG',
    'PARSER_CATALOG',
    'TokenizeVariant',
    'PostagVariant',
    'ParseVariant',
]
