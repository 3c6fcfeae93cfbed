"""
dirsearch/corpus.py

CorpusIndex: the built, in-memory index for one root.

    root                 : str, the root string the index was built for
    overall_counts       : term -> total occurrences over all documents
    per_document_counts  : path -> {term: count}

Invariants (checked by check()):
    overall_counts[t] == sum(per_document_counts[d].get(t, 0) for d)   for every t
    no zero / negative counts are stored

The document set is frozen at build time; there is no add/remove. Equality is
mapping equality, key order is irrelevant.
"""

from collections import Counter
from dataclasses import dataclass, field

from dirsearch.errors import IndexInvariantError

FORMAT_VERSION = 1


@dataclass
class CorpusIndex:
    root: str
    overall_counts: dict[str, int] = field(default_factory=dict)
    per_document_counts: dict[str, dict[str, int]] = field(default_factory=dict)

    @classmethod
    def from_documents(cls, root: str, documents) -> "CorpusIndex":
        """Build from an iterable of Document (single-threaded reference path)."""
        overall = Counter()
        per_doc = {}
        for doc in documents:
            per_doc[doc.path] = dict(doc.counts)
            overall.update(doc.counts)
        return cls(root=root, overall_counts=dict(overall), per_document_counts=per_doc)

    @property
    def n_documents(self) -> int:
        return len(self.per_document_counts)

    @property
    def n_terms(self) -> int:
        return len(self.overall_counts)

    @property
    def is_empty(self) -> bool:
        return not self.per_document_counts

    def documents(self) -> list[str]:
        return sorted(self.per_document_counts)

    def count_in_document(self, path: str, term: str) -> int:
        return self.per_document_counts.get(path, {}).get(term, 0)

    def check(self) -> "CorpusIndex":
        """Raise IndexInvariantError if the two tables disagree; returns self otherwise."""
        summed = Counter()
        for path, counts in self.per_document_counts.items():
            for term, n in counts.items():
                if n <= 0:
                    raise IndexInvariantError(f"non-positive count {n} for {term!r} in {path}")
            summed.update(counts)
        if dict(summed) != self.overall_counts:
            diff = set(summed.items()) ^ set(self.overall_counts.items())
            sample = sorted(diff)[:5]
            raise IndexInvariantError(f"overall_counts disagrees with per-document sums, e.g. {sample}")
        return self

    def to_dict(self) -> dict:
        return {
            "format": FORMAT_VERSION,
            "root": self.root,
            "overall_counts": dict(self.overall_counts),
            "per_document_counts": {p: dict(c) for p, c in self.per_document_counts.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CorpusIndex":
        """
        Inverse of to_dict(). Raises KeyError / ValueError on malformed input;
        the store turns those into CacheCorrupt.
        """
        if data.get("format") != FORMAT_VERSION:
            raise ValueError(f"unsupported index format {data.get('format')!r}")
        return cls(
            root=data["root"],
            overall_counts=dict(data["overall_counts"]),
            per_document_counts={p: dict(c) for p, c in data["per_document_counts"].items()},
        )
