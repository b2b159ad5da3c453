"""
Corpus Utilities

Readers for CoNLL-U training data, Brown-cluster files and word2vec-style
text embeddings.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

from tqdm import tqdm


@dataclass
class Token:
    form: str
    upos: Optional[str] = None
    head: Optional[int] = None
    deprel: Optional[str] = None


@dataclass
class Sentence:
    tokens: List[Token] = field(default_factory=list)
    text: Optional[str] = None

    def __len__(self) -> int:
        return len(self.tokens)


def _optional(value: str) -> Optional[str]:
    return None if value == "_" else value


def read_conllu(path: Union[str, Path], show_progress: bool = False) -> Iterator[Sentence]:
    """
    Read sentences from a CoNLL-U file.

    Multiword-token ranges (``1-2``) and empty nodes (``1.1``) are skipped.

    Args:
        path: CoNLL-U file
        show_progress: Display a tqdm progress bar over lines

    Yields:
        Sentences in file order

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If a token line has fewer than 8 columns
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Corpus file not found: {path}")

    sentence = Sentence()
    with open(path, "r", encoding="utf-8") as f:
        lines = tqdm(f, desc=f"Reading {path.name}", unit=" lines") if show_progress else f
        for lineno, line in enumerate(lines, start=1):
            line = line.strip()
            if not line:
                if sentence.tokens:
                    yield sentence
                sentence = Sentence()
                continue
            if line.startswith("#"):
                if line.startswith("# text = "):
                    sentence.text = line[len("# text = "):]
                continue

            columns = line.split("\t")
            if len(columns) < 8:
                raise ValueError(f"{path}:{lineno}: expected at least 8 columns, got {len(columns)}")
            if "-" in columns[0] or "." in columns[0]:
                continue
            head = columns[6]
            sentence.tokens.append(Token(
                form=columns[1],
                upos=_optional(columns[3]),
                head=int(head) if head.isdigit() else None,
                deprel=_optional(columns[7]),
            ))
    if sentence.tokens:
        yield sentence


def load_clusters(path: Union[str, Path]) -> Dict[str, str]:
    """
    Load a Brown-cluster file with lines ``bits<TAB>word[<TAB>count]``.

    Returns:
        Mapping word -> cluster bit string
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Cluster file not found: {path}")

    clusters = {}
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.rstrip("\n")
            if not line:
                continue
            columns = line.split("\t")
            if len(columns) < 2:
                raise ValueError(f"{path}:{lineno}: expected '<bits>\\t<word>'")
            clusters[columns[1]] = columns[0]
    return clusters


def load_embeddings(path: Union[str, Path], dim: int) -> Dict[str, List[float]]:
    """
    Load word2vec text-format embeddings of a fixed width.

    A leading ``<count> <dim>`` header line is tolerated.

    Raises:
        ValueError: If a vector has the wrong width
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Embedding file not found: {path}")

    embeddings = {}
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            parts = line.rstrip().split(" ")
            if lineno == 1 and len(parts) == 2:
                continue
            if len(parts) < 2:
                continue
            word, values = parts[0], parts[1:]
            if len(values) != dim:
                raise ValueError(f"{path}:{lineno}: expected {dim} dimensions, got {len(values)}")
            embeddings[word] = [float(v) for v in values]
    return embeddings

