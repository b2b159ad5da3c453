"""
Shared fixtures for the twpipe tests.
"""

import pytest

from twpipe.registry.variants import PARSER, POSTAGGER, TOKENIZER
from twpipe.utils.model_store import ModelStore


class StaticVocabulary:
    """Vocabulary stand-in with fixed category sizes."""

    def __init__(self, **sizes):
        self.sizes = sizes

    def size_of(self, category):
        return self.sizes.get(category, 0)


SIZES = dict(characters=50, words=40, tags=12, deprels=7, clusters=9)

STAGE_HYPERPARAMS = {
    TOKENIZER: {
        "char-dim": 8, "hidden-dim": 8, "n-layers": 1,
        "seg-dim": 8, "dur-dim": 4,
    },
    POSTAGGER: {
        "char-dim": 8, "char-hidden-dim": 8, "char-n-layers": 1,
        "word-hidden-dim": 8, "word-n-layers": 1, "tag-dim": 8,
        "cluster-dim": 4, "cluster-hidden-dim": 4, "cluster-n-layers": 1,
    },
    PARSER: {
        "char-dim": 8, "char-hidden-dim": 8, "char-n-layers": 1,
        "word-dim": 8, "tag-dim": 4, "word-hidden-dim": 8, "word-n-layers": 1,
        "arc-dim": 8, "label-dim": 8,
    },
}

CONLLU = """# text = The dog barks .
1\tThe\tthe\tDET\t_\t_\t2\tdet\t_\t_
2\tdog\tdog\tNOUN\t_\t_\t3\tnsubj\t_\t_
3\tbarks\tbark\tVERB\t_\t_\t0\troot\t_\t_
4\t.\t.\tPUNCT\t_\t_\t3\tpunct\t_\t_

# text = Cats sleep.
1\tCats\tcat\tNOUN\t_\t_\t2\tnsubj\t_\t_
2-3\tsleep.\t_\t_\t_\t_\t_\t_\t_\t_
2\tsleep\tsleep\tVERB\t_\t_\t0\troot\t_\t_
3\t.\t.\tPUNCT\t_\t_\t2\tpunct\t_\t_
"""

CLUSTERS = "0010\tThe\t10\n0011\tdog\t4\n0110\tbarks\t2\n0111\tCats\t1\n"


@pytest.fixture
def vocabulary():
    return StaticVocabulary(**SIZES)


@pytest.fixture
def store():
    return ModelStore()


@pytest.fixture
def conllu_file(tmp_path):
    path = tmp_path / "train.conllu"
    path.write_text(CONLLU, encoding="utf-8")
    return path


@pytest.fixture
def cluster_file(tmp_path):
    path = tmp_path / "clusters.txt"
    path.write_text(CLUSTERS, encoding="utf-8")
    return path
