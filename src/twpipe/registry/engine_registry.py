"""
Engine Registry

Per-stage dispatch tables from a variant tag to the function that allocates
that variant's network. Build and reconstruct both go through the same
table, so they can never disagree about which variants exist.
"""

from enum import Enum
from typing import Any, Callable, Hashable, Mapping, Optional

import torch.nn as nn

from .base import BaseRegistry
from .catalog import VariantCatalog
from .variants import PARSER_CATALOG, POSTAGGER_CATALOG, TOKENIZER_CATALOG
from ..errors import UnreachableVariant


class EngineRegistry(BaseRegistry):
    """Registry of engine constructors for one pipeline stage."""

    def __init__(self, stage: str, catalog: Optional[VariantCatalog] = None):
        super().__init__()
        self.stage = stage
        self.catalog = catalog

    def register(self, key: Hashable, description: Optional[str] = None) -> Callable:
        """Register an engine constructor; the description defaults to the catalog entry's."""
        if description is None:
            description = self._catalog_description(key)
        return super().register(key, description)

    def _catalog_description(self, tag: Hashable) -> str:
        if self.catalog is not None:
            for descriptor in self.catalog.values():
                if descriptor.tag == tag:
                    return descriptor.description
        return ""

    def validate_component_exists(self, key: Hashable) -> None:
        """
        Raises:
            UnreachableVariant: If no constructor is registered for the tag
        """
        if key not in self._components:
            raise UnreachableVariant(
                f"no engine constructor registered for variant tag {key!r}",
                stage=self.stage,
                expected=[str(k) for k in self._components],
            )

    def validate_component_output(self, output: Any, key: Hashable) -> Any:
        """
        Validate that an engine constructor returned a torch module.

        Raises:
            ValueError: If output is not an nn.Module
        """
        if not isinstance(output, nn.Module):
            raise ValueError(
                f"Engine constructor for '{key}' must return nn.Module. "
                f"Got: {type(output)}"
            )
        return output

    def create_engine(self, tag: Enum, hyperparams: Mapping[str, int]) -> nn.Module:
        """
        Allocate a fresh, untrained engine for a variant tag.

        Args:
            tag: Variant tag from the stage catalog
            hyperparams: Fully resolved hyperparameter set

        Returns:
            Untrained engine

        Raises:
            UnreachableVariant: If the tag has no constructor
        """
        self.validate_component_exists(tag)
        engine_func = self.get(tag)
        return self.validate_component_output(engine_func(hyperparams), tag)

    def check_exhaustive(self, catalog: VariantCatalog) -> None:
        """
        Raises:
            UnreachableVariant: If some catalogued tag has no constructor
        """
        missing = [str(tag) for tag in catalog.tags() if tag not in self._components]
        if missing:
            raise UnreachableVariant("catalog variants without engine constructors",
                                     stage=self.stage, actual=missing)


# Global engine registry instances
tokenizer_registry = EngineRegistry("tokenizer", TOKENIZER_CATALOG)
postagger_registry = EngineRegistry("postagger", POSTAGGER_CATALOG)
parser_registry = EngineRegistry("parser", PARSER_CATALOG)


def register_tokenizer(tag: Enum, description: Optional[str] = None) -> Callable:
    """Convenience function to register a tokenizer engine."""
    return tokenizer_registry.register(tag, description)


def register_postagger(tag: Enum, description: Optional[str] = None) -> Callable:
    """Convenience function to register a postagger engine."""
    return postagger_registry.register(tag, description)


def register_parser(tag: Enum, description: Optional[str] = None) -> Callable:
    """Convenience function to register a parser engine."""
    return parser_registry.register(tag, description)
