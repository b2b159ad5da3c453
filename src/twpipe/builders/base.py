"""
Stage Model Builder

Resolves a stage's variant and hyperparameters, then either builds a fresh
engine (training), records the hyperparameters in the model store, or
rebuilds the exact recorded engine and loads its trained parameters
(inference).
"""

from typing import Any, Dict, Mapping, Optional, Union

import torch
import torch.nn as nn
from transformers.utils import logging

from ..errors import CorruptModelArtifact, InvalidHyperparameter, UnknownVariant, VocabularyMismatch
from ..models.layers import count_parameters
from ..models.serialization import load_parameters, save_parameters
from ..registry.catalog import VariantCatalog, VariantDescriptor
from ..registry.engine_registry import EngineRegistry
from ..utils.codec import coerce_uint, decode_uint, encode_uint
from ..utils.model_store import FieldNotFound, ModelStore

logger = logging.get_logger(__name__)

NAME_FIELD = "name"

Device = Optional[Union[str, torch.device]]


class StageModelBuilder:
    """
    Variant selection and hyperparameter lifecycle for one pipeline stage.

    Subclasses bind a stage catalog and its engine registry. Hyperparameters
    come from the stage's configuration section (absent keys are 0) and, for
    vocabulary sizes, from the vocabulary passed in.
    """

    catalog: VariantCatalog
    registry: EngineRegistry

    def __init__(self,
                 config: Optional[Mapping[str, Any]] = None,
                 vocabulary: Any = None,
                 store: Optional[ModelStore] = None):
        """
        Initialize the builder.

        Args:
            config: Stage configuration section; ``name`` selects the variant
            vocabulary: Object with ``size_of(category)``; None means every
                vocabulary size is unknown (0)
            store: Model store to serialize into or reconstruct from

        Raises:
            UnknownVariant: If ``name`` is given and not catalogued
            InvalidHyperparameter: If a configured value is not an unsigned integer
        """
        self.registry.check_exhaustive(self.catalog)
        self.schema = self.catalog.schema
        self.stage = self.schema.stage
        self.config = dict(config or {})
        self.vocabulary = vocabulary
        self.store = store

        self.model_name: Optional[str] = self.config.get(NAME_FIELD)
        self.variant: Optional[VariantDescriptor] = None
        if self.model_name is not None:
            self.variant = self.catalog.lookup(self.model_name)

        self._values: Dict[str, int] = self._resolve()

    def _all_fields(self):
        fields = list(self.schema.fields)
        for _, group in self.schema.groups:
            fields.extend(group)
        return fields

    def _resolve(self) -> Dict[str, int]:
        # vocabulary sizes are always resolved for the consistency check;
        # configured values only for fields the selected variant uses
        vocabulary_fields = self.schema.vocabulary_fields()
        used = set(self.schema.fields_for(self.variant)) if self.variant is not None else set()
        values = {}
        for field in self._all_fields():
            if field in vocabulary_fields:
                size = self.vocabulary.size_of(vocabulary_fields[field]) if self.vocabulary is not None else 0
                values[field] = coerce_uint(size, self.stage, field)
            elif field in used:
                values[field] = coerce_uint(self.config.get(field), self.stage, field)
            else:
                values[field] = 0
        return values

    @property
    def hyperparams(self) -> Dict[str, int]:
        """The selected variant's hyperparameters, in persisted field order."""
        variant = self._require_variant()
        return {field: self._values[field] for field in self.schema.fields_for(variant)}

    def _require_variant(self) -> VariantDescriptor:
        if self.variant is None:
            raise UnknownVariant(self.model_name, stage=self.stage, available=list(self.catalog))
        return self.variant

    def validate(self) -> None:
        """
        Raises:
            InvalidHyperparameter: If a hyperparameter the variant requires is zero
        """
        variant = self._require_variant()
        for field in self.schema.fields_for(variant):
            if field in variant.required_hyperparams and self._values[field] == 0:
                raise InvalidHyperparameter(
                    f"variant '{variant.name}' requires a non-zero value",
                    stage=self.stage, field=field, actual=0,
                )

    # ------------------------------------------------------------------
    # training path

    def build(self, device: Device = None) -> nn.Module:
        """
        Construct a fresh, untrained engine for the selected variant.

        Raises:
            UnknownVariant: If no variant has been selected
            InvalidHyperparameter: If a required hyperparameter is zero
            UnreachableVariant: If the variant has no engine constructor
        """
        self.validate()
        variant = self._require_variant()
        engine = self.registry.create_engine(variant.tag, self.hyperparams)
        if device is not None:
            engine = engine.to(device)
        logger.info(f"[{self.stage}] built {variant.name} engine with {count_parameters(engine):,} parameters")
        return engine

    def serialize(self) -> None:
        """
        Append the variant name and hyperparameters to the model store.

        Raises:
            ValueError: If the builder has no store
        """
        store = self._require_store()
        self.validate()
        variant = self._require_variant()
        store.put(self.stage, NAME_FIELD, variant.name)
        store.put_many(self.stage, [(field, encode_uint(self._values[field])) for field in self.schema.fields])
        for group in variant.groups:
            store.put_many(self.stage, [
                (field, encode_uint(self._values[field])) for field in self.schema.group_fields(group)
            ])
        logger.info(f"[{self.stage}] recorded hyperparameters of {variant.name}")

    def save_parameters(self, engine: nn.Module) -> None:
        """Append the engine's trained parameters to the model store."""
        self._require_store().put_parameters(self.stage, save_parameters(engine))

    # ------------------------------------------------------------------
    # inference path

    def reconstruct(self, device: Device = None) -> nn.Module:
        """
        Rebuild the recorded engine and load its trained parameters.

        Returns:
            Engine in eval mode holding the trained parameters

        Raises:
            UnknownVariant: If the recorded variant is not catalogued
            VocabularyMismatch: If a recorded vocabulary size disagrees with
                a non-zero size from the current vocabulary
            CorruptModelArtifact: If a field or the parameter blob is missing
                or malformed
        """
        store = self._require_store()
        variant = self.catalog.lookup(self._read(store, NAME_FIELD))

        recorded = {}
        for field in self.schema.fields_for(variant):
            recorded[field] = decode_uint(self._read(store, field), self.stage, field)

        for field, category in self.schema.vocabulary:
            if field not in recorded:
                continue
            expected = self._values[field]
            if expected == 0:
                logger.info(f"[{self.stage}] adopting recorded {field}={recorded[field]}")
            elif expected != recorded[field]:
                raise VocabularyMismatch(
                    f"recorded {category} size does not match the current vocabulary",
                    stage=self.stage, field=field, expected=expected, actual=recorded[field],
                )

        self.variant = variant
        self.model_name = variant.name
        self._values.update(recorded)

        engine = self.build(device)
        try:
            blob = store.get_parameters(self.stage)
        except FieldNotFound as e:
            raise CorruptModelArtifact("missing trained parameters", stage=self.stage, field="parameters") from e
        load_parameters(engine, blob, stage=self.stage, device=device)
        engine.eval()
        logger.info(f"[{self.stage}] reconstructed {variant.name} from {store.path}")
        return engine

    def _read(self, store: ModelStore, field: str) -> str:
        try:
            return store.get(self.stage, field)
        except FieldNotFound as e:
            raise CorruptModelArtifact("missing field in model artifact", stage=self.stage, field=field) from e

    def _require_store(self) -> ModelStore:
        if self.store is None:
            raise ValueError(f"{self.__class__.__name__} for '{self.stage}' has no model store")
        return self.store

    def describe(self) -> Dict[str, Any]:
        """Summary of the resolved variant, used for reporting."""
        variant = self._require_variant()
        return {"stage": self.stage, "name": variant.name, "hyperparams": self.hyperparams}

    def __repr__(self) -> str:
        name = self.variant.name if self.variant is not None else None
        return f"{self.__class__.__name__}(stage={self.stage}, variant={name})"
