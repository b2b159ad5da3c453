"""
Stage Variants

Catalogs of every architecture the tokenizer, postagger and parser stages
can be configured with, and the persisted field layout of each stage.
"""

from enum import Enum

from .catalog import StageSchema, VariantCatalog
from ..utils.alphabet import CHARACTERS, CLUSTERS, DEPRELS, TAGS, WORDS

TOKENIZER = "tokenizer"
POSTAGGER = "postagger"
PARSER = "parser"

STAGES = (TOKENIZER, POSTAGGER, PARSER)


class TokenizeVariant(Enum):
    LINEAR_GRU = "linear-gru"
    LINEAR_LSTM = "linear-lstm"
    SEGMENTAL_GRU = "segmental-gru"
    SEGMENTAL_LSTM = "segmental-lstm"


class PostagVariant(Enum):
    CHAR_GRU = "char-gru"
    CHAR_LSTM = "char-lstm"
    CHAR_GRU_CRF = "char-gru-crf"
    CHAR_LSTM_CRF = "char-lstm-crf"
    CHAR_GRU_CLUSTER = "char-gru-wcluster"
    CHAR_LSTM_CLUSTER = "char-lstm-wcluster"


class ParseVariant(Enum):
    GRU_BIAFFINE = "gru-biaffine"
    LSTM_BIAFFINE = "lstm-biaffine"


TOKENIZER_SCHEMA = StageSchema(
    stage=TOKENIZER,
    fields=("n-chars", "char-dim", "hidden-dim", "n-layers"),
    groups=(("segmental", ("seg-dim", "dur-dim")),),
    vocabulary=(("n-chars", CHARACTERS),),
)

POSTAGGER_SCHEMA = StageSchema(
    stage=POSTAGGER,
    fields=("n-chars", "char-dim", "char-hidden-dim", "char-n-layers",
            "word-hidden-dim", "word-n-layers", "tag-dim", "n-tags", "embedding-dim"),
    groups=(("cluster", ("n-clusters", "cluster-dim", "cluster-hidden-dim", "cluster-n-layers")),),
    vocabulary=(("n-chars", CHARACTERS), ("n-tags", TAGS), ("n-clusters", CLUSTERS)),
    optional=frozenset({"embedding-dim"}),
)

PARSER_SCHEMA = StageSchema(
    stage=PARSER,
    fields=("n-chars", "char-dim", "char-hidden-dim", "char-n-layers",
            "n-words", "word-dim", "n-tags", "tag-dim", "embedding-dim",
            "word-hidden-dim", "word-n-layers", "arc-dim", "label-dim", "n-deprels"),
    vocabulary=(("n-chars", CHARACTERS), ("n-words", WORDS), ("n-tags", TAGS), ("n-deprels", DEPRELS)),
    optional=frozenset({"embedding-dim"}),
)

TOKENIZER_CATALOG = VariantCatalog(TOKENIZER_SCHEMA, [
    TOKENIZER_SCHEMA.variant("linear-gru", TokenizeVariant.LINEAR_GRU,
                             description="Character GRU with per-character boundary labels"),
    TOKENIZER_SCHEMA.variant("linear-lstm", TokenizeVariant.LINEAR_LSTM,
                             description="Character LSTM with per-character boundary labels"),
    TOKENIZER_SCHEMA.variant("segmental-gru", TokenizeVariant.SEGMENTAL_GRU, groups=("segmental",),
                             description="Character GRU scoring whole segments with duration features"),
    TOKENIZER_SCHEMA.variant("segmental-lstm", TokenizeVariant.SEGMENTAL_LSTM, groups=("segmental",),
                             description="Character LSTM scoring whole segments with duration features"),
])

POSTAGGER_CATALOG = VariantCatalog(POSTAGGER_SCHEMA, [
    POSTAGGER_SCHEMA.variant("char-gru", PostagVariant.CHAR_GRU,
                             description="Character GRU word encoder, softmax output"),
    POSTAGGER_SCHEMA.variant("char-lstm", PostagVariant.CHAR_LSTM,
                             description="Character LSTM word encoder, softmax output"),
    POSTAGGER_SCHEMA.variant("char-gru-crf", PostagVariant.CHAR_GRU_CRF,
                             description="Character GRU word encoder, CRF output"),
    POSTAGGER_SCHEMA.variant("char-lstm-crf", PostagVariant.CHAR_LSTM_CRF,
                             description="Character LSTM word encoder, CRF output"),
    POSTAGGER_SCHEMA.variant("char-gru-wcluster", PostagVariant.CHAR_GRU_CLUSTER, groups=("cluster",),
                             description="Character GRU word encoder with word-cluster encoder"),
    POSTAGGER_SCHEMA.variant("char-lstm-wcluster", PostagVariant.CHAR_LSTM_CLUSTER, groups=("cluster",),
                             description="Character LSTM word encoder with word-cluster encoder"),
])

PARSER_CATALOG = VariantCatalog(PARSER_SCHEMA, [
    PARSER_SCHEMA.variant("gru-biaffine", ParseVariant.GRU_BIAFFINE,
                          description="GRU sentence encoder with biaffine arc and label scorers"),
    PARSER_SCHEMA.variant("lstm-biaffine", ParseVariant.LSTM_BIAFFINE,
                          description="LSTM sentence encoder with biaffine arc and label scorers"),
])

CATALOGS = {
    TOKENIZER: TOKENIZER_CATALOG,
    POSTAGGER: POSTAGGER_CATALOG,
    PARSER: PARSER_CATALOG,
}
