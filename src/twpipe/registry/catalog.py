"""
Variant Catalog

Closed, per-stage mapping from a configuration name (e.g. ``char-lstm-crf``)
to the variant tag and the hyperparameters that variant requires. Adding an
architecture means adding a descriptor here and registering an engine
constructor for its tag.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Iterator, Mapping, Tuple

from ..errors import UnknownVariant


@dataclass(frozen=True)
class VariantDescriptor:
    """Immutable description of one architecture of a stage."""

    name: str
    tag: Enum
    required_hyperparams: FrozenSet[str]
    groups: Tuple[str, ...] = ()
    description: str = ""


@dataclass(frozen=True)
class StageSchema:
    """
    Persisted layout of a stage namespace.

    Attributes:
        stage: Namespace in the model store
        fields: Numeric fields every variant writes, in write order
        groups: Conditional records as (group name, fields) pairs, written
            after ``fields`` only by variants that use the group
        vocabulary: (field, vocabulary category) pairs for sizes derived
            from the vocabulary
        optional: Fields that may legitimately be zero
    """

    stage: str
    fields: Tuple[str, ...]
    groups: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()
    vocabulary: Tuple[Tuple[str, str], ...] = ()
    optional: FrozenSet[str] = frozenset()

    def group_fields(self, group: str) -> Tuple[str, ...]:
        for name, fields in self.groups:
            if name == group:
                return fields
        raise KeyError(f"Stage '{self.stage}' has no field group '{group}'")

    def fields_for(self, descriptor: VariantDescriptor) -> Tuple[str, ...]:
        """Numeric fields of a variant in the fixed write/read order."""
        fields = list(self.fields)
        for group in descriptor.groups:
            fields.extend(self.group_fields(group))
        return tuple(fields)

    def vocabulary_fields(self) -> Dict[str, str]:
        return dict(self.vocabulary)

    def variant(self, name: str, tag: Enum, groups: Iterable[str] = (), description: str = "") -> VariantDescriptor:
        """Create a descriptor whose required set is every non-optional field it writes."""
        groups = tuple(groups)
        fields = list(self.fields)
        for group in groups:
            fields.extend(self.group_fields(group))
        required = frozenset(f for f in fields if f not in self.optional)
        return VariantDescriptor(name=name, tag=tag, required_hyperparams=required,
                                 groups=groups, description=description)


class VariantCatalog(Mapping):
    """Read-only mapping name -> VariantDescriptor for one stage."""

    def __init__(self, schema: StageSchema, descriptors: Iterable[VariantDescriptor]):
        self.schema = schema
        entries = {}
        for descriptor in descriptors:
            if descriptor.name in entries:
                raise ValueError(f"Duplicate variant '{descriptor.name}' for stage '{schema.stage}'")
            entries[descriptor.name] = descriptor
        self._entries = MappingProxyType(entries)

    @property
    def stage(self) -> str:
        return self.schema.stage

    def lookup(self, name: str) -> VariantDescriptor:
        """
        Resolve a configuration name.

        Raises:
            UnknownVariant: If the name is not catalogued
        """
        try:
            return self._entries[name]
        except (KeyError, TypeError):
            raise UnknownVariant(name, stage=self.stage, available=list(self._entries)) from None

    def tags(self) -> Tuple[Enum, ...]:
        return tuple(descriptor.tag for descriptor in self._entries.values())

    def __getitem__(self, name: str) -> VariantDescriptor:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.stage}: {list(self._entries)})"
