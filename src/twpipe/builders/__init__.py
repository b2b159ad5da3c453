"""
Stage Model Builders

One builder per pipeline stage. Importing this package also imports the
engine implementations so every variant constructor is registered.
"""

from .. import models  # noqa: F401  register engine constructors
from .base import StageModelBuilder
from .tokenizer import TokenizeModelBuilder
from .postagger import PostagModelBuilder
from .parser import ParseModelBuilder
from ..registry.variants import PARSER, POSTAGGER, TOKENIZER

BUILDERS = {
    TOKENIZER: TokenizeModelBuilder,
    POSTAGGER: PostagModelBuilder,
    PARSER: ParseModelBuilder,
}

__all__ = [
    'StageModelBuilder',
    'TokenizeModelBuilder',
    'PostagModelBuilder',
    'ParseModelBuilder',
    'BUILDERS',
]
