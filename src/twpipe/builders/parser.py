"""Parser stage model builder."""

from .base import StageModelBuilder
from ..registry.engine_registry import parser_registry
from ..registry.variants import PARSER_CATALOG


class ParseModelBuilder(StageModelBuilder):
    """Builds, records and reconstructs parser engines."""

    catalog = PARSER_CATALOG
    registry = parser_registry
