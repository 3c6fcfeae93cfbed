"""
dirsearch/cache.py

Index cache: avoid re-walking and re-indexing a root that was already built.

Two policies, same interface (get_or_build / flush / close / roots):

SingleSlotCache
    At most one persisted index, tagged with the root it was built for.
    Files in cache_dir:
        root.pkl    -> {"format": 1, "root": <root>}   (the tag)
        counts.pkl  -> CorpusIndex blob
    Same root as the tag -> return stored index. Any other root (even one
    character off) -> full rebuild, overwrite blob and tag.

MultiSlotCache
    root -> handle mapping, one blob per root.
    Files in cache_dir:
        cache.pkl             -> {"format": 1, "caches": {root: handle}}
        indexes/000000.pkl    -> CorpusIndex blob
        indexes/000001.pkl    ...
    Known root -> load its blob (CacheCorrupt if that fails, never rebuilt).
    New root   -> build, allocate next handle, write blob, insert, flush mapping.
    A cached root is never rebuilt, even if its files changed since: the cache
    has no freshness check. Use a fresh cache_dir to force a rebuild.

Root identity is the exact string given (os.fspath), no normalization.

Persistence is explicit: the mapping is written whenever it changes and once
more by close(). Both are also available through `with MultiSlotCache(...) as c:`.
Write errors propagate to the caller.
"""

import os
import pickle
import threading
from functools import partial

from dirsearch.build_index_mp import build_corpus_index
from dirsearch.corpus import CorpusIndex
from dirsearch.errors import CacheCorrupt, CacheMappingMissing
from dirsearch.paths import (
    CACHE_DIR,
    CACHE_MAP_NAME,
    SINGLE_INDEX_NAME,
    SINGLE_ROOT_NAME,
)
from dirsearch.store import BlobStore, load_index, load_mapping, write_index, write_mapping
from dirsearch.utils import log

HANDLE_SUFFIX = ".pkl"
ROOT_TAG_FORMAT = 1


class IndexCache:
    """
    Shared plumbing: builder, per-root build locks, counters, lifecycle.

    builder(root) -> CorpusIndex. Default is build_corpus_index with
    `build_options` (max_workers, batch_size, on_error, extractor).

    Two callers asking for the *same* root are serialized on that root's lock,
    so a root is built at most once even under concurrent requests.
    """

    def __init__(self, cache_dir: str = CACHE_DIR, builder=None, verbose: bool = True, **build_options):
        self.cache_dir = os.fspath(cache_dir)
        self.verbose = verbose
        if builder is None:
            builder = partial(build_corpus_index, verbose=verbose, **build_options)
        self.builder = builder
        self.hits = 0
        self.builds = 0
        self.closed = False
        self._lock = threading.Lock()
        self._root_locks: dict[str, threading.Lock] = {}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _root_lock(self, root: str) -> threading.Lock:
        with self._lock:
            lock = self._root_locks.get(root)
            if lock is None:
                lock = self._root_locks[root] = threading.Lock()
            return lock

    def _check_open(self):
        if self.closed:
            raise RuntimeError(f"{type(self).__name__} is closed")

    def _count(self, counter: str) -> None:
        # per-root locks do not cover the shared counters
        with self._lock:
            setattr(self, counter, getattr(self, counter) + 1)

    def _build(self, root: str) -> CorpusIndex:
        index = self.builder(root)
        self._count("builds")
        return index

    def get_or_build(self, root) -> CorpusIndex:
        raise NotImplementedError

    def roots(self) -> list[str]:
        raise NotImplementedError

    def flush(self) -> int:
        raise NotImplementedError

    def close(self) -> int:
        """Final flush. Returns what flush() returns; safe to call twice."""
        if self.closed:
            return 0
        n = self.flush()
        self.closed = True
        return n


class SingleSlotCache(IndexCache):

    def __init__(self, cache_dir: str = CACHE_DIR, builder=None, verbose: bool = True, **build_options):
        super().__init__(cache_dir, builder=builder, verbose=verbose, **build_options)
        self.store = BlobStore(self.cache_dir)
        self._tag = self._load_tag()
        self._index: CorpusIndex | None = None

    def _load_tag(self) -> str | None:
        if not self.store.exists(SINGLE_ROOT_NAME):
            return None
        try:
            payload = pickle.loads(self.store.read(SINGLE_ROOT_NAME))
            if payload.get("format") != ROOT_TAG_FORMAT:
                raise ValueError(f"unsupported root tag format {payload.get('format')!r}")
            return payload["root"]
        except Exception as e:
            raise CacheCorrupt(SINGLE_ROOT_NAME, f"{type(e).__name__}: {e}") from e

    def _write_tag(self, root: str) -> None:
        payload = {"format": ROOT_TAG_FORMAT, "root": root}
        self.store.write(SINGLE_ROOT_NAME, pickle.dumps(payload, protocol=pickle.HIGHEST_PROTOCOL))

    @property
    def tag(self) -> str | None:
        return self._tag

    def get_or_build(self, root) -> CorpusIndex:
        self._check_open()
        root = os.fspath(root)
        # one slot -> one lock; a rebuild for root B must not race a load for root A
        with self._root_lock(""):
            if self._tag == root:
                if self._index is None:
                    index = load_index(self.store, SINGLE_INDEX_NAME)
                    if index.root != root:
                        raise CacheCorrupt(SINGLE_INDEX_NAME, f"tagged {root!r} but holds {index.root!r}")
                    self._index = index
                self._count("hits")
                log("Cache", f"hit {root}", self.verbose)
                return self._index

            log("Cache", f"miss {root} (slot holds {self._tag!r}), rebuilding", self.verbose)
            index = self._build(root)
            # drop the tag first so a crash mid-write never pairs the old tag with a new blob
            if self.store.exists(SINGLE_ROOT_NAME):
                self.store.remove(SINGLE_ROOT_NAME)
            self._tag = None
            write_index(self.store, SINGLE_INDEX_NAME, index)
            self._write_tag(root)
            self._tag = root
            self._index = index
            return index

    def roots(self) -> list[str]:
        return [self._tag] if self._tag is not None else []

    def flush(self) -> int:
        # blob + tag are written synchronously on every rebuild; nothing is pending
        return len(self.roots())


class MultiSlotCache(IndexCache):

    def __init__(self, cache_dir: str = CACHE_DIR, builder=None, verbose: bool = True, **build_options):
        super().__init__(cache_dir, builder=builder, verbose=verbose, **build_options)
        self.map_path = os.path.join(self.cache_dir, CACHE_MAP_NAME)
        self.store = BlobStore(os.path.join(self.cache_dir, "indexes"))
        try:
            self.caches = load_mapping(self.map_path)
            log("Cache", f"mapping loaded: {len(self.caches)} roots from {self.map_path}", self.verbose)
        except CacheMappingMissing:
            self.caches = {}
            log("Cache", f"no mapping at {self.map_path}, starting empty", self.verbose)
        self._next_handle = self._scan_next_handle()

    def _scan_next_handle(self) -> int:
        numbers = []
        for name in list(self.store.handles()) + list(self.caches.values()):
            stem, suffix = os.path.splitext(name)
            if suffix == HANDLE_SUFFIX and stem.isdigit():
                numbers.append(int(stem))
        return max(numbers) + 1 if numbers else 0

    def _allocate_handle(self) -> str:
        # caller holds self._lock
        handle = f"{self._next_handle:06d}{HANDLE_SUFFIX}"
        self._next_handle += 1
        return handle

    def handle_for(self, root) -> str | None:
        with self._lock:
            return self.caches.get(os.fspath(root))

    def get_or_build(self, root) -> CorpusIndex:
        self._check_open()
        root = os.fspath(root)
        with self._root_lock(root):
            handle = self.handle_for(root)
            if handle is not None:
                index = load_index(self.store, handle)
                if index.root != root:
                    raise CacheCorrupt(handle, f"mapped to {root!r} but holds {index.root!r}")
                self._count("hits")
                log("Cache", f"hit {root} -> {handle}", self.verbose)
                return index

            log("Cache", f"miss {root}, building", self.verbose)
            index = self._build(root)
            with self._lock:
                handle = self._allocate_handle()
                write_index(self.store, handle, index)
                self.caches[root] = handle
                log("Cache", f"stored {root} -> {handle}", self.verbose)
            self.flush()
            return index

    def roots(self) -> list[str]:
        with self._lock:
            return sorted(self.caches)

    def flush(self) -> int:
        """Write the root -> handle mapping. Returns the number of entries written."""
        with self._lock:
            snapshot = dict(self.caches)
        write_mapping(self.map_path, snapshot)
        log("Cache", f"mapping flushed: {len(snapshot)} roots -> {self.map_path}", self.verbose)
        return len(snapshot)


POLICIES = {
    "single": SingleSlotCache,
    "multi": MultiSlotCache,
}


def open_cache(policy: str = "multi", cache_dir: str = CACHE_DIR, **kwargs) -> IndexCache:
    try:
        cls = POLICIES[policy]
    except KeyError:
        raise ValueError(f"policy must be one of {sorted(POLICIES)}, got {policy!r}") from None
    return cls(cache_dir, **kwargs)
