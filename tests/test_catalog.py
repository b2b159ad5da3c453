"""
Tests for the variant catalogs and engine registries.
"""

from enum import Enum

import pytest
import torch.nn as nn

from twpipe import builders  # noqa: F401  registers engine constructors
from twpipe.errors import UnknownVariant, UnreachableVariant
from twpipe.registry.engine_registry import EngineRegistry, postagger_registry, parser_registry, tokenizer_registry
from twpipe.registry.catalog import VariantCatalog
from twpipe.registry.variants import (
    CATALOGS,
    POSTAGGER_CATALOG,
    POSTAGGER_SCHEMA,
    TOKENIZER_CATALOG,
    PostagVariant,
    TokenizeVariant,
)


class TestVariantCatalog:

    def test_lookup(self):
        descriptor = POSTAGGER_CATALOG.lookup("char-lstm-crf")
        assert descriptor.tag is PostagVariant.CHAR_LSTM_CRF
        assert descriptor.groups == ()

    def test_unknown_variant(self):
        with pytest.raises(UnknownVariant) as excinfo:
            POSTAGGER_CATALOG.lookup("char-transformer")
        assert excinfo.value.name == "char-transformer"
        assert "char-transformer" in str(excinfo.value)
        assert "char-gru" in excinfo.value.available

    def test_unknown_variant_is_a_value_error(self):
        with pytest.raises(ValueError):
            TOKENIZER_CATALOG.lookup(None)

    def test_catalog_is_read_only(self):
        with pytest.raises(TypeError):
            POSTAGGER_CATALOG["char-transformer"] = None

    def test_expected_variants(self):
        assert list(CATALOGS["tokenizer"]) == ["linear-gru", "linear-lstm", "segmental-gru", "segmental-lstm"]
        assert list(CATALOGS["postagger"]) == [
            "char-gru", "char-lstm", "char-gru-crf", "char-lstm-crf", "char-gru-wcluster", "char-lstm-wcluster",
        ]
        assert list(CATALOGS["parser"]) == ["gru-biaffine", "lstm-biaffine"]

    def test_required_hyperparams(self):
        plain = POSTAGGER_CATALOG.lookup("char-gru")
        clustered = POSTAGGER_CATALOG.lookup("char-gru-wcluster")
        assert "char-hidden-dim" in plain.required_hyperparams
        assert "n-tags" in plain.required_hyperparams
        assert "embedding-dim" not in plain.required_hyperparams
        assert "cluster-dim" not in plain.required_hyperparams
        assert {"n-clusters", "cluster-dim", "cluster-hidden-dim", "cluster-n-layers"} <= clustered.required_hyperparams

    def test_segmental_fields_follow_base_fields(self):
        descriptor = TOKENIZER_CATALOG.lookup("segmental-lstm")
        assert TOKENIZER_CATALOG.schema.fields_for(descriptor) == (
            "n-chars", "char-dim", "hidden-dim", "n-layers", "seg-dim", "dur-dim",
        )
        linear = TOKENIZER_CATALOG.lookup("linear-lstm")
        assert "seg-dim" not in TOKENIZER_CATALOG.schema.fields_for(linear)

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError):
            VariantCatalog(POSTAGGER_SCHEMA, [
                POSTAGGER_SCHEMA.variant("char-gru", PostagVariant.CHAR_GRU),
                POSTAGGER_SCHEMA.variant("char-gru", PostagVariant.CHAR_LSTM),
            ])


class TestEngineRegistry:

    @pytest.mark.parametrize("registry,stage", [
        (tokenizer_registry, "tokenizer"),
        (postagger_registry, "postagger"),
        (parser_registry, "parser"),
    ])
    def test_registries_cover_catalogs(self, registry, stage):
        registry.check_exhaustive(CATALOGS[stage])
        assert len(registry) == len(CATALOGS[stage])

    def test_double_registration_rejected(self):
        with pytest.raises(ValueError):
            tokenizer_registry.register(TokenizeVariant.LINEAR_GRU)(lambda hp: nn.Linear(1, 1))

    def test_missing_constructor_is_unreachable(self):
        registry = EngineRegistry("tokenizer")
        with pytest.raises(UnreachableVariant):
            registry.create_engine(TokenizeVariant.LINEAR_GRU, {})
        with pytest.raises(UnreachableVariant):
            registry.check_exhaustive(TOKENIZER_CATALOG)

    def test_constructor_must_return_module(self):
        registry = EngineRegistry("tokenizer")
        registry.register(TokenizeVariant.LINEAR_GRU)(lambda hp: "not a module")
        with pytest.raises(ValueError):
            registry.create_engine(TokenizeVariant.LINEAR_GRU, {})

    def test_list_components(self):
        components = postagger_registry.list_components()
        assert PostagVariant.CHAR_LSTM_CRF in components
        assert "CRF" in components[PostagVariant.CHAR_LSTM_CRF]

    @pytest.mark.parametrize("registry,stage", [
        (tokenizer_registry, "tokenizer"),
        (postagger_registry, "postagger"),
        (parser_registry, "parser"),
    ])
    def test_descriptions_come_from_catalog(self, registry, stage):
        components = registry.list_components()
        for descriptor in CATALOGS[stage].values():
            assert components[descriptor.tag] == descriptor.description

    def test_explicit_description_wins(self):
        registry = EngineRegistry("tokenizer", TOKENIZER_CATALOG)
        registry.register(TokenizeVariant.LINEAR_GRU, "custom")(lambda hp: nn.Linear(1, 1))
        registry.register(TokenizeVariant.LINEAR_LSTM)(lambda hp: nn.Linear(1, 1))
        components = registry.list_components()
        assert components[TokenizeVariant.LINEAR_GRU] == "custom"
        assert components[TokenizeVariant.LINEAR_LSTM] == TOKENIZER_CATALOG.lookup("linear-lstm").description

    def test_catalog_variant_without_constructor(self):
        class ExtraVariant(Enum):
            CHAR_TRANSFORMER = "char-transformer"

        catalog = VariantCatalog(POSTAGGER_SCHEMA, [
            POSTAGGER_SCHEMA.variant("char-transformer", ExtraVariant.CHAR_TRANSFORMER),
        ])
        with pytest.raises(UnreachableVariant):
            postagger_registry.check_exhaustive(catalog)
