"""
Alphabets and Vocabulary

Symbol <-> id maps discovered from the training corpus (or restored from a
model artifact), and the read-only vocabulary that stage model builders
consult for their size hyperparameters.
"""

import json
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from transformers.utils import logging

from ..errors import CorruptModelArtifact
from .data_utils import Sentence
from .model_store import FieldNotFound, ModelStore

logger = logging.get_logger(__name__)

PAD = "<pad>"
UNK = "<unk>"
ROOT = "<root>"

ALPHABET_STAGE = "alphabet"

CHARACTERS = "characters"
WORDS = "words"
TAGS = "tags"
DEPRELS = "deprels"
CLUSTERS = "clusters"

CATEGORIES = (CHARACTERS, WORDS, TAGS, DEPRELS, CLUSTERS)


class Alphabet:
    """Ordered mapping between symbols and consecutive integer ids."""

    def __init__(self, reserved: Sequence[str] = ()):
        self._index: Dict[str, int] = {}
        self._symbols: List[str] = []
        self.frozen = False
        for symbol in reserved:
            self.add(symbol)
        self.n_reserved = len(self._symbols)

    def add(self, symbol: str) -> int:
        if symbol in self._index:
            return self._index[symbol]
        if self.frozen:
            raise ValueError(f"Cannot add '{symbol}' to a frozen alphabet")
        self._index[symbol] = len(self._symbols)
        self._symbols.append(symbol)
        return self._index[symbol]

    def get(self, symbol: str, default: Optional[int] = None) -> Optional[int]:
        return self._index.get(symbol, default)

    def symbol(self, index: int) -> str:
        return self._symbols[index]

    def symbols(self) -> List[str]:
        return list(self._symbols)

    def freeze(self) -> "Alphabet":
        self.frozen = True
        return self

    def __len__(self) -> int:
        return len(self._symbols)

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._index


class Vocabulary:
    """
    Read-only vocabulary shared by every pipeline stage.

    Populated once, either by scanning training sentences or by restoring
    the alphabets persisted in a model artifact, then frozen.
    """

    def __init__(self, alphabets: Optional[Mapping[str, Alphabet]] = None):
        self.alphabets: Dict[str, Alphabet] = {
            CHARACTERS: Alphabet(reserved=(PAD, UNK)),
            WORDS: Alphabet(reserved=(PAD, UNK, ROOT)),
            TAGS: Alphabet(),
            DEPRELS: Alphabet(),
            CLUSTERS: Alphabet(reserved=(PAD, UNK)),
        }
        if alphabets:
            for category, alphabet in alphabets.items():
                if category not in self.alphabets:
                    raise ValueError(f"Unknown vocabulary category '{category}'. Available: {list(CATEGORIES)}")
                self.alphabets[category] = alphabet

    def size_of(self, category: str) -> int:
        """
        Number of distinct symbols in a category.

        Args:
            category: One of characters, words, tags, deprels, clusters

        Returns:
            Alphabet size, including reserved entries
        """
        if category not in self.alphabets:
            raise ValueError(f"Unknown vocabulary category '{category}'. Available: {list(CATEGORIES)}")
        return len(self.alphabets[category])

    def is_empty(self, category: str) -> bool:
        """True when a category holds nothing beyond its reserved entries."""
        alphabet = self[category]
        return len(alphabet) <= alphabet.n_reserved

    def __getitem__(self, category: str) -> Alphabet:
        return self.alphabets[category]

    def freeze(self) -> "Vocabulary":
        for alphabet in self.alphabets.values():
            alphabet.freeze()
        return self

    @classmethod
    def from_sentences(cls,
                       sentences: Iterable[Sentence],
                       clusters: Optional[Mapping[str, str]] = None) -> "Vocabulary":
        """
        Scan training sentences and build a frozen vocabulary.

        Args:
            sentences: Training sentences
            clusters: Optional word -> cluster-id mapping

        Returns:
            Frozen vocabulary
        """
        vocabulary = cls()
        n_sentences = 0
        for sentence in sentences:
            n_sentences += 1
            for token in sentence.tokens:
                vocabulary[WORDS].add(token.form)
                for ch in token.form:
                    vocabulary[CHARACTERS].add(ch)
                if token.upos is not None:
                    vocabulary[TAGS].add(token.upos)
                if token.deprel is not None:
                    vocabulary[DEPRELS].add(token.deprel)
        if clusters:
            for cluster in clusters.values():
                vocabulary[CLUSTERS].add(cluster)

        logger.info(
            f"Vocabulary from {n_sentences} sentences: "
            + ", ".join(f"{category}={vocabulary.size_of(category)}" for category in CATEGORIES)
        )
        return vocabulary.freeze()

    def to_store(self, store: ModelStore) -> None:
        """Persist every alphabet under the ``alphabet`` namespace."""
        store.put_many(ALPHABET_STAGE, [
            (category, json.dumps(self.alphabets[category].symbols(), ensure_ascii=False))
            for category in CATEGORIES
        ])

    @classmethod
    def from_store(cls, store: ModelStore) -> "Vocabulary":
        """
        Restore a frozen vocabulary from a model artifact.

        Raises:
            CorruptModelArtifact: If an alphabet field is missing or malformed
        """
        alphabets = {}
        for category in CATEGORIES:
            try:
                symbols = json.loads(store.get(ALPHABET_STAGE, category))
            except FieldNotFound as e:
                raise CorruptModelArtifact("missing alphabet", stage=ALPHABET_STAGE, field=category) from e
            except json.JSONDecodeError as e:
                raise CorruptModelArtifact(f"malformed alphabet: {e}", stage=ALPHABET_STAGE, field=category) from e
            if not isinstance(symbols, list) or not all(isinstance(s, str) for s in symbols):
                raise CorruptModelArtifact("alphabet must be a list of strings", stage=ALPHABET_STAGE, field=category)
            alphabet = Alphabet()
            for symbol in symbols:
                alphabet.add(symbol)
            alphabets[category] = alphabet.freeze()
        return cls(alphabets)

    def __repr__(self) -> str:
        sizes = ", ".join(f"{category}={self.size_of(category)}" for category in CATEGORIES)
        return f"{self.__class__.__name__}({sizes})"
