# dirsearch/searcher.py
from dirsearch.cache import IndexCache, open_cache
from dirsearch.corpus import CorpusIndex
from dirsearch.paths import CACHE_DIR, TOP_K
from dirsearch.ranker import Ranker
from dirsearch.utils import log


class Searcher:
    """
    Cached directory searcher.

    - Resolves a root to its CorpusIndex through an IndexCache (single- or
      multi-slot), building it on a miss.
    - Keeps the indices it has resolved in memory for the session, so repeated
      queries on the same root do not reload the blob.
    - Ranks with Ranker (count / corpus count, top-k).

    Typical usage:
        with Searcher(cache_dir="data/cache", max_workers=4) as s:
            for path, score in s.search("docs/", "what is a tensor"):
                print(path, score)
    """

    def __init__(self, cache: IndexCache | None = None, policy: str = "multi", cache_dir: str = CACHE_DIR,
                 topk: int = TOP_K, drop_zero: bool = False, verbose: bool = True, **build_options):
        if cache is None:
            cache = open_cache(policy, cache_dir, verbose=verbose, **build_options)
        self.cache = cache
        self.topk = topk
        self.drop_zero = drop_zero
        self.verbose = verbose
        self._rankers: dict[str, Ranker] = {}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def ranker_for(self, root) -> Ranker:
        key = str(root)
        ranker = self._rankers.get(key)
        if ranker is None:
            index = self.cache.get_or_build(root)
            ranker = Ranker(index, topk=self.topk, drop_zero=self.drop_zero)
            self._rankers[key] = ranker
            log("Searcher", f"ready: {key} | docs={index.n_documents} terms={index.n_terms}", self.verbose)
        return ranker

    def load(self, root) -> CorpusIndex:
        return self.ranker_for(root).index

    def search(self, root, query: str, topk: int | None = None):
        """
        Returns:
            list[(path, score)] sorted by score desc, path asc; at most topk items.
        """
        return self.ranker_for(root).search(query, topk=topk)

    def close(self) -> int:
        self._rankers.clear()
        return self.cache.close()
