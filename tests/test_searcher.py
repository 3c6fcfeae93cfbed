# tests/test_searcher.py
import io

import pytest

from dirsearch import cli
from dirsearch.cache import MultiSlotCache, SingleSlotCache
from dirsearch.searcher import Searcher


@pytest.fixture
def searcher(cache_dir):
    s = Searcher(cache_dir=str(cache_dir), verbose=False, max_workers=0)
    yield s
    s.close()


def test_search_ranks_documents(searcher, corpus_dir):
    results = searcher.search(str(corpus_dir), "tensor array")
    assert results[0][0].endswith("tensor.txt")
    assert results[0][1] == pytest.approx(2.0)


def test_search_reuses_loaded_index(searcher, corpus_dir):
    searcher.search(str(corpus_dir), "cat")
    searcher.search(str(corpus_dir), "dog")
    assert searcher.cache.builds == 1
    assert searcher.cache.hits == 0


def test_searcher_topk(cache_dir, corpus_dir):
    with Searcher(cache_dir=str(cache_dir), topk=2, verbose=False, max_workers=0) as s:
        assert len(s.search(str(corpus_dir), "cat")) == 2
        assert len(s.search(str(corpus_dir), "cat", topk=4)) == 4
        with pytest.raises(ValueError):
            s.search(str(corpus_dir), "cat", topk=-1)


def test_searcher_policy(cache_dir):
    assert isinstance(Searcher(policy="single", cache_dir=str(cache_dir), verbose=False).cache, SingleSlotCache)
    assert isinstance(Searcher(cache_dir=str(cache_dir), verbose=False).cache, MultiSlotCache)


def test_second_session_hits_cache(cache_dir, corpus_dir):
    with Searcher(cache_dir=str(cache_dir), verbose=False, max_workers=0) as s:
        first = s.search(str(corpus_dir), "what is a tensor")
    with Searcher(cache_dir=str(cache_dir), verbose=False, max_workers=0) as s:
        assert s.search(str(corpus_dir), "what is a tensor") == first
        assert s.cache.builds == 0 and s.cache.hits == 1


# --- CLI ---

def test_cli_index(cache_dir, corpus_dir, capsys):
    rc = cli.main(["--cache-dir", str(cache_dir), "--workers", "0", "--quiet", "index", str(corpus_dir)])
    assert rc == 0
    out = capsys.readouterr().out
    assert "docs=5" in out and "terms=12" in out


def test_cli_search(cache_dir, corpus_dir, capsys):
    rc = cli.main(["--cache-dir", str(cache_dir), "--workers", "0", "--quiet", "--topk", "2",
                   "search", str(corpus_dir), "dog"])
    assert rc == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("[1] ") and "dogs.txt" in lines[0]
    assert lines[0].endswith("0.6667")


def test_cli_missing_root(cache_dir, tmp_path, capsys):
    rc = cli.main(["--cache-dir", str(cache_dir), "--quiet", "index", str(tmp_path / "nope")])
    assert rc == 1
    assert "error:" in capsys.readouterr().err


def test_cli_rejects_bad_topk(cache_dir, corpus_dir):
    with pytest.raises(SystemExit) as ei:
        cli.main(["--cache-dir", str(cache_dir), "--topk", "0", "index", str(corpus_dir)])
    assert ei.value.code == 2


def test_shell_loop(searcher, corpus_dir):
    stdin = io.StringIO("cat\nunicorn\n\n")
    out = io.StringIO()
    cli.run_shell(searcher, str(corpus_dir), topk=1, stdin=stdin, out=out)
    text = out.getvalue()
    assert text.count("Search> ") == 3
    assert "cats.txt  1.0000" in text


def test_print_results_empty():
    out = io.StringIO()
    cli.print_results([], out=out)
    assert out.getvalue() == "No results found.\n"


def test_cli_corrupt_mapping(cache_dir, corpus_dir, capsys):
    cache_dir.mkdir(parents=True)
    (cache_dir / "cache.pkl").write_bytes(b"junk")
    rc = cli.main(["--cache-dir", str(cache_dir), "--quiet", "index", str(corpus_dir)])
    assert rc == 1
    assert "corrupt cache entry" in capsys.readouterr().err


def test_cli_raw_text_skips_cleanup(tmp_path, capsys):
    root = tmp_path / "lig"
    root.mkdir()
    (root / "a.txt").write_text("ﬁle", encoding="utf-8")
    base = ["--workers", "0", "--quiet", "--topk", "1"]

    assert cli.main(["--cache-dir", str(tmp_path / "c1")] + base + ["search", str(root), "file"]) == 0
    assert capsys.readouterr().out.strip().endswith("1.0000")

    assert cli.main(["--cache-dir", str(tmp_path / "c2"), "--raw-text"] + base + ["search", str(root), "file"]) == 0
    assert capsys.readouterr().out.strip().endswith("0.0000")
