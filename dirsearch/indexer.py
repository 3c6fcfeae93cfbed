"""
dirsearch/indexer.py

Per-document term counting.

    Indexer.index_text(path, text) -> Document   (text already extracted)
    Indexer.index_path(path)       -> Document   (extract, then count)

A Document is created once and never mutated afterwards. An empty file gives a
Document with an empty counts table; an unreadable file raises PathUnreadable
instead of producing an empty table, so the aggregator can tell the two apart.
"""

from collections import Counter
from dataclasses import dataclass, field

from dirsearch.parser import Parser
from dirsearch.extract import Extractor


@dataclass(frozen=True)
class Document:
    path: str
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def n_tokens(self) -> int:
        return sum(self.counts.values())


class Indexer:
    """
    One configurable indexer for every file type: the format-specific part
    lives in the Extractor (suffix -> reader), the counting is shared.
    """

    def __init__(self, extractor: Extractor | None = None, parser: Parser | None = None):
        self.extractor = extractor if extractor is not None else Extractor()
        self.parser = parser if parser is not None else Parser()

    def count_terms(self, text: str) -> dict[str, int]:
        return dict(Counter(self.parser.iter_tokens(text)))

    def index_text(self, path: str, text: str) -> Document:
        return Document(path=path, counts=self.count_terms(text))

    def index_path(self, path: str) -> Document:
        """
        Raises:
            PathUnreadable: the extractor could not produce text for `path`.
        """
        text = self.extractor.read(path)
        return self.index_text(path, text)


if __name__ == "__main__":
    import sys

    indexer = Indexer()
    for p in sys.argv[1:]:
        doc = indexer.index_path(p)
        top = sorted(doc.counts.items(), key=lambda kv: (-kv[1], kv[0]))[:10]
        print(f"{p}: {doc.n_tokens} tokens, {len(doc.counts)} terms, top={top}")
