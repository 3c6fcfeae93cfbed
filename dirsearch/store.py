"""
dirsearch/store.py

Durable storage for the index cache.

BlobStore is an opaque byte store over one directory:
    write(handle, data) / read(handle) / exists(handle) / handles()
A handle is a plain file name inside that directory. Writes go to a temp file
first and are moved into place with os.replace, so a reader never sees half a blob.

On top of it, pickle (de)serialization for the two things the cache persists:
    CorpusIndex            -> dict produced by CorpusIndex.to_dict()
    root -> handle mapping -> {"format": 1, "caches": {...}}

Stored as pickle files for simplicity. Every load failure of something the
cache believes valid surfaces as CacheCorrupt; nothing falls back to an empty
structure.
"""

import os
import pickle
import tempfile

from dirsearch.corpus import CorpusIndex
from dirsearch.errors import CacheCorrupt, CacheMappingMissing
from dirsearch.utils import ensure_dir

MAPPING_FORMAT = 1


class BlobStore:
    """
    Typical usage:
        store = BlobStore("data/cache/indexes")
        store.write("000000.pkl", payload)
        payload = store.read("000000.pkl")
    """

    def __init__(self, directory: str):
        self.directory = os.fspath(directory)
        ensure_dir(self.directory)

    def path_for(self, handle: str) -> str:
        if os.path.basename(handle) != handle or handle in ("", ".", ".."):
            raise ValueError(f"invalid handle {handle!r}")
        return os.path.join(self.directory, handle)

    def write(self, handle: str, data: bytes) -> None:
        path = self.path_for(handle)
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=".tmp-", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise

    def read(self, handle: str) -> bytes:
        with open(self.path_for(handle), "rb") as f:
            return f.read()

    def exists(self, handle: str) -> bool:
        return os.path.isfile(self.path_for(handle))

    def remove(self, handle: str) -> None:
        os.remove(self.path_for(handle))

    def handles(self) -> list[str]:
        return sorted(
            name for name in os.listdir(self.directory)
            if not name.startswith(".tmp-") and os.path.isfile(os.path.join(self.directory, name))
        )


# --- CorpusIndex <-> bytes ---

def serialize_index(index: CorpusIndex) -> bytes:
    return pickle.dumps(index.to_dict(), protocol=pickle.HIGHEST_PROTOCOL)


def deserialize_index(data: bytes, handle: str = "<bytes>") -> CorpusIndex:
    try:
        return CorpusIndex.from_dict(pickle.loads(data))
    except Exception as e:
        # unpickling garbage can raise almost anything (UnpicklingError, EOFError, KeyError, ...)
        raise CacheCorrupt(handle, f"{type(e).__name__}: {e}") from e


def write_index(store: BlobStore, handle: str, index: CorpusIndex) -> None:
    store.write(handle, serialize_index(index))


def load_index(store: BlobStore, handle: str) -> CorpusIndex:
    """
    Load a CorpusIndex from a handle the caller believes valid.
    A missing or unreadable blob is CacheCorrupt as well: a dangling handle is corruption.
    """
    try:
        data = store.read(handle)
    except OSError as e:
        raise CacheCorrupt(handle, str(e)) from e
    return deserialize_index(data, handle)


# --- root -> handle mapping <-> bytes ---

def serialize_mapping(caches: dict[str, str]) -> bytes:
    return pickle.dumps({"format": MAPPING_FORMAT, "caches": dict(caches)}, protocol=pickle.HIGHEST_PROTOCOL)


def deserialize_mapping(data: bytes, handle: str = "<bytes>") -> dict[str, str]:
    try:
        payload = pickle.loads(data)
        if payload.get("format") != MAPPING_FORMAT:
            raise ValueError(f"unsupported mapping format {payload.get('format')!r}")
        caches = payload["caches"]
        if not all(isinstance(k, str) and isinstance(v, str) for k, v in caches.items()):
            raise ValueError("mapping entries must be str -> str")
        return dict(caches)
    except Exception as e:
        raise CacheCorrupt(handle, f"{type(e).__name__}: {e}") from e


def write_mapping(path: str, caches: dict[str, str]) -> None:
    directory, name = os.path.split(os.path.abspath(path))
    BlobStore(directory).write(name, serialize_mapping(caches))


def load_mapping(path: str) -> dict[str, str]:
    """
    Raises:
        CacheMappingMissing: no mapping file yet (bootstrap)
        CacheCorrupt: the file exists but cannot be deserialized
    """
    if not os.path.exists(path):
        raise CacheMappingMissing(path)
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise CacheCorrupt(path, str(e)) from e
    return deserialize_mapping(data, path)
