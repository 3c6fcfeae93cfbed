"""
dirsearch/errors.py

Exceptions raised by the indexing pipeline and the index cache.

    DirsearchError
      ├── PathUnreadable       content extraction failed for one document
      ├── RootNotFound         the root cannot be walked at all
      ├── CacheCorrupt         a persisted blob/mapping cannot be deserialized
      ├── CacheMappingMissing  no mapping on disk yet (bootstrap, caught internally)
      └── IndexInvariantError  overall/per-document tables disagree
"""


class DirsearchError(Exception):
    """Base class for every error raised by dirsearch."""


class PathUnreadable(DirsearchError):
    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        msg = f"unreadable document: {path}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)

    def __reduce__(self):
        # keep (path, reason) intact when crossing a process boundary
        return (self.__class__, (self.path, self.reason))


class RootNotFound(DirsearchError):
    def __init__(self, root: str):
        self.root = root
        super().__init__(f"root is not a readable directory: {root}")

    def __reduce__(self):
        return (self.__class__, (self.root,))


class CacheCorrupt(DirsearchError):
    """
    A handle that the cache believes valid could not be deserialized.
    Fatal: never retried and never replaced with an empty index.
    """

    def __init__(self, handle: str, reason: str = ""):
        self.handle = handle
        self.reason = reason
        msg = f"corrupt cache entry: {handle}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)

    def __reduce__(self):
        return (self.__class__, (self.handle, self.reason))


class CacheMappingMissing(DirsearchError):
    """No mapping file exists yet. The multi-slot cache treats this as an empty cache."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"no cache mapping at {path}")

    def __reduce__(self):
        return (self.__class__, (self.path,))


class IndexInvariantError(DirsearchError):
    pass
