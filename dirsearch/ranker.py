# dirsearch/ranker.py

from dirsearch.corpus import CorpusIndex
from dirsearch.parser import Parser
from dirsearch.paths import TOP_K


class Ranker:
    """
    Corpus-normalized term-frequency ranker.

        score(d) = sum over query tokens t of  count(d, t) / overall(t)

    Requirements / assumptions:
    - `index` is a built CorpusIndex and is never mutated, so one Ranker can
      serve concurrent queries without locking.
    - Query text goes through the same Parser as the documents did.
    - A term missing from overall_counts (or with total 0) contributes 0.
    - Repeated query tokens count once per occurrence ("cat cat" doubles cat).

    Every document is a candidate, including those with score 0, unless
    drop_zero=True. Ties are broken by path ascending so results are stable.
    """

    def __init__(self, index: CorpusIndex, topk: int = TOP_K, drop_zero: bool = False, parser: Parser | None = None):
        self.index = index
        self.topk = topk
        self.drop_zero = drop_zero
        self.parser = parser if parser is not None else Parser()

    def score(self, query: str):
        """
        Score every document for a raw query string.

        Returns:
            A list of (path, score) sorted by score descending, then path ascending.
        """
        overall = self.index.overall_counts
        # (term, corpus total) for every query token the corpus knows; unknown terms add 0
        weighted = [(t, overall[t]) for t in self.parser.tokenize(query) if overall.get(t, 0) > 0]

        scores = {}
        for path, counts in self.index.per_document_counts.items():
            s = 0.0
            for term, total in weighted:
                s += counts.get(term, 0) / total
            scores[path] = s

        ranked = sorted(scores.items(), key=lambda x: (-x[1], x[0]))
        if self.drop_zero:
            ranked = [(p, s) for p, s in ranked if s > 0]
        return ranked

    def search(self, query: str, topk: int | None = None):
        """Top-k (path, score) pairs; all of them if the corpus is smaller than k."""
        k = self.topk if topk is None else topk
        if k < 0:
            raise ValueError(f"topk must be >= 0, got {k}")
        return self.score(query)[:k]


if __name__ == "__main__":
    import sys
    from dirsearch.build_index_mp import build_corpus_index

    root, query = sys.argv[1], " ".join(sys.argv[2:])
    ranker = Ranker(build_corpus_index(root))
    print(f"\nQuery: {query}")
    for path, score in ranker.search(query):
        print(f"  {score:.3f}\t{path}")
