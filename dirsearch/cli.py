# dirsearch/cli.py
"""
Command-line entry point.

    python -m dirsearch.cli index  ROOT
    python -m dirsearch.cli search ROOT what is a tensor
    python -m dirsearch.cli shell  ROOT          # type queries, empty line or :q to quit

Results go to stdout as "[rank] path  score"; progress lines go to stderr
(silence with --quiet).
"""

import argparse
import sys

from dirsearch.build_index_mp import ON_ERROR_CHOICES
from dirsearch.cache import POLICIES
from dirsearch.errors import DirsearchError
from dirsearch.extract import Extractor
from dirsearch.paths import CACHE_DIR, DEFAULT_BATCH_SIZE, DEFAULT_ON_ERROR, TOP_K
from dirsearch.searcher import Searcher

QUIT_WORDS = ("", ":q")


def print_results(results, out=None):
    out = out or sys.stdout
    if not results:
        print("No results found.", file=out)
        return
    for rank, (path, score) in enumerate(results, start=1):
        print(f"[{rank}] {path}  {score:.4f}", file=out)


def run_shell(searcher: Searcher, root: str, topk: int, stdin=None, out=None) -> None:
    stdin = stdin or sys.stdin
    out = out or sys.stdout
    searcher.load(root)
    while True:
        print("Search> ", end="", file=out, flush=True)
        line = stdin.readline()
        if not line or line.strip() in QUIT_WORDS:
            break
        print_results(searcher.search(root, line, topk=topk), out=out)


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="dirsearch", description="Index a directory tree and rank its documents for a query.")
    ap.add_argument("--cache-dir", default=CACHE_DIR, help="Where indices and the cache mapping live")
    ap.add_argument("--policy", choices=sorted(POLICIES), default="multi", help="single: one cached root; multi: one per root")
    ap.add_argument("--workers", type=int, default=None, help="#processes; default: os.cpu_count(), 0 = in-process")
    ap.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE, help="Docs per worker task")
    ap.add_argument("--on-error", choices=ON_ERROR_CHOICES, default=DEFAULT_ON_ERROR, help="Unreadable file: skip it or abort")
    ap.add_argument("--raw-text", action="store_true", help="Count terms on the raw file text (skip html/ftfy cleanup)")
    ap.add_argument("--topk", type=int, default=TOP_K, help="Results per query")
    ap.add_argument("--quiet", action="store_true", help="Less logging.")

    sub = ap.add_subparsers(dest="command", required=True)
    p_index = sub.add_parser("index", help="Build (or load) the index for ROOT")
    p_index.add_argument("root")
    p_search = sub.add_parser("search", help="Run one query against ROOT")
    p_search.add_argument("root")
    p_search.add_argument("query", nargs="*", help="Whitespace-separated terms")
    p_shell = sub.add_parser("shell", help="Interactive query loop over ROOT")
    p_shell.add_argument("root")
    return ap


def main(argv=None) -> int:
    ap = build_arg_parser()
    args = ap.parse_args(argv)
    if args.topk <= 0:
        ap.error("--topk must be positive")

    try:
        # opening the cache reads the mapping, which can already raise CacheCorrupt
        with Searcher(
            policy=args.policy,
            cache_dir=args.cache_dir,
            topk=args.topk,
            verbose=not args.quiet,
            max_workers=args.workers,
            batch_size=args.batch_size,
            on_error=args.on_error,
            extractor=Extractor(clean=not args.raw_text),
        ) as searcher:
            if args.command == "index":
                index = searcher.load(args.root)
                print(f"root={index.root} docs={index.n_documents} terms={index.n_terms}")
            elif args.command == "search":
                print_results(searcher.search(args.root, " ".join(args.query)))
            else:
                run_shell(searcher, args.root, args.topk)
    except DirsearchError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
