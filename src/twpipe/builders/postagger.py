"""Postagger stage model builder."""

from .base import StageModelBuilder
from ..registry.engine_registry import postagger_registry
from ..registry.variants import POSTAGGER_CATALOG


class PostagModelBuilder(StageModelBuilder):
    """Builds, records and reconstructs postagger engines."""

    catalog = POSTAGGER_CATALOG
    registry = postagger_registry
