import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# name -> content; "sub/" entries exercise the recursive walk
TOY_FILES = {
    "cats.txt": "Cat cat CAT dog",
    "dogs.txt": "dog dog bird",
    "notes/tensor.txt": "What is a tensor? A tensor is an array",
    "notes/empty.txt": "",
    "notes/deep/mixed.txt": "e-mail c3po R2D2 hello, world",
}


def write_tree(root, files):
    for rel, text in files.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
    return root


@pytest.fixture
def corpus_dir(tmp_path):
    return write_tree(tmp_path / "corpus", TOY_FILES)


@pytest.fixture
def other_corpus_dir(tmp_path):
    return write_tree(tmp_path / "other", {"a.txt": "alpha beta", "b.txt": "beta gamma gamma"})


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"
