# tests/test_store.py
import pickle

import pytest

from dirsearch.build_index_mp import build_corpus_index
from dirsearch.corpus import CorpusIndex
from dirsearch.errors import CacheCorrupt, CacheMappingMissing, IndexInvariantError
from dirsearch.ranker import Ranker
from dirsearch.store import (
    BlobStore,
    deserialize_index,
    load_index,
    load_mapping,
    serialize_index,
    write_index,
    write_mapping,
)

QUERIES = ["cat", "dog bird", "what is a tensor", "nothing here", "", "CAT Dog c3po"]


@pytest.fixture
def built(corpus_dir):
    return build_corpus_index(str(corpus_dir), max_workers=0, verbose=False)


def test_index_round_trip(built):
    again = deserialize_index(serialize_index(built))
    assert again == built
    again.check()


def test_round_trip_preserves_rankings(built):
    again = deserialize_index(serialize_index(built))
    for q in QUERIES:
        assert Ranker(again).search(q) == Ranker(built).search(q)


def test_empty_index_round_trip():
    empty = CorpusIndex(root="/nowhere")
    assert deserialize_index(serialize_index(empty)) == empty


def test_garbage_bytes_are_corrupt():
    with pytest.raises(CacheCorrupt) as ei:
        deserialize_index(b"definitely not a pickle", "000003.pkl")
    assert ei.value.handle == "000003.pkl"


def test_wrong_format_is_corrupt():
    data = pickle.dumps({"format": 99, "root": "x", "overall_counts": {}, "per_document_counts": {}})
    with pytest.raises(CacheCorrupt):
        deserialize_index(data)


def test_blob_store_write_read(tmp_path):
    store = BlobStore(str(tmp_path / "blobs"))
    store.write("000000.pkl", b"abc")
    store.write("000000.pkl", b"overwritten")
    assert store.read("000000.pkl") == b"overwritten"
    assert store.exists("000000.pkl")
    assert store.handles() == ["000000.pkl"]


def test_blob_store_rejects_path_handles(tmp_path):
    store = BlobStore(str(tmp_path))
    with pytest.raises(ValueError):
        store.write("../escape.pkl", b"x")


def test_dangling_handle_is_corrupt(tmp_path):
    store = BlobStore(str(tmp_path))
    with pytest.raises(CacheCorrupt):
        load_index(store, "000042.pkl")


def test_write_then_load_index(tmp_path, built):
    store = BlobStore(str(tmp_path))
    write_index(store, "000000.pkl", built)
    assert load_index(store, "000000.pkl") == built


def test_mapping_round_trip(tmp_path):
    path = str(tmp_path / "cache.pkl")
    write_mapping(path, {"/a": "000000.pkl", "/b": "000001.pkl"})
    assert load_mapping(path) == {"/a": "000000.pkl", "/b": "000001.pkl"}


def test_missing_mapping_is_bootstrap(tmp_path):
    with pytest.raises(CacheMappingMissing):
        load_mapping(str(tmp_path / "cache.pkl"))


def test_corrupt_mapping_is_not_silently_empty(tmp_path):
    path = tmp_path / "cache.pkl"
    path.write_bytes(b"\x00\x01garbage")
    with pytest.raises(CacheCorrupt):
        load_mapping(str(path))


def test_check_detects_mismatch():
    bad = CorpusIndex("r", {"a": 2}, {"x": {"a": 1}})
    with pytest.raises(IndexInvariantError):
        bad.check()


def test_check_rejects_zero_counts():
    bad = CorpusIndex("r", {}, {"x": {"a": 0}})
    with pytest.raises(IndexInvariantError):
        bad.check()


def test_from_documents_matches_builder(corpus_dir, built):
    from dirsearch.indexer import Indexer

    indexer = Indexer()
    docs = [indexer.index_path(p) for p in built.documents()]
    assert CorpusIndex.from_documents(str(corpus_dir), docs) == built
