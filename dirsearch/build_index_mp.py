# dirsearch/build_index_mp.py
"""
Build a CorpusIndex for a root in parallel (multiprocessing).

Why processes, not threads?
- Extraction (pdfplumber, ftfy) and counting are CPU-bound.
- The GIL prevents true parallelism with threads for CPU-bound work.

Design:
- Main process enumerates the root, sorts the paths and packs batches
  (batch_size paths each).
- Each batch is submitted to a worker process:
    worker(batch_paths, extractor) -> BatchResult(documents, partial_overall, failures)
  where every worker keeps its *own* partial overall Counter. Nothing is shared
  between workers, so there is no lock and no global accumulator.
- Main process reduces all BatchResults in batch order, in a single
  non-concurrent step. Counter addition is commutative/associative, so the
  result does not depend on which worker finished first.

Failure policy (on_error):
- "skip": an unreadable document is left out of *every* table and reported.
- "fail": the build raises PathUnreadable for the first unreadable path
  (in sorted path order, so the error is deterministic too).

How to use:
python -m dirsearch.build_index_mp ROOT --workers 4 --batch-size 64
"""

from __future__ import annotations
import argparse
from collections import Counter
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from dirsearch.corpus import CorpusIndex
from dirsearch.errors import PathUnreadable
from dirsearch.extract import Extractor, enumerate_files
from dirsearch.indexer import Indexer
from dirsearch.paths import DEFAULT_BATCH_SIZE, DEFAULT_ON_ERROR
from dirsearch.utils import log

ON_ERROR_CHOICES = ("skip", "fail")


@dataclass
class BatchResult:
    documents: Dict[str, Dict[str, int]] = field(default_factory=dict)
    overall: Counter = field(default_factory=Counter)
    failures: List[Tuple[str, str]] = field(default_factory=list)


@dataclass
class BuildReport:
    root: str
    n_paths: int = 0
    n_indexed: int = 0
    skipped: List[Tuple[str, str]] = field(default_factory=list)  # (path, reason)


def _worker_index_batch(batch_paths: List[str], extractor: Optional[Extractor] = None) -> BatchResult:
    """
    Worker process:
    - extracts + counts each path of the batch
    - folds the batch into a local partial overall Counter
    A failing path contributes to neither table; it is returned in `failures`.
    """
    indexer = Indexer(extractor=extractor)
    result = BatchResult()
    for path in batch_paths:
        try:
            doc = indexer.index_path(path)
        except PathUnreadable as e:
            result.failures.append((path, e.reason or str(e)))
            continue
        result.documents[doc.path] = doc.counts
        result.overall.update(doc.counts)
    return result


def make_batches(paths: List[str], batch_size: int) -> List[List[str]]:
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    return [paths[i:i + batch_size] for i in range(0, len(paths), batch_size)]


def reduce_batches(root: str, results: List[BatchResult]) -> Tuple[CorpusIndex, List[Tuple[str, str]]]:
    """Single-threaded merge of per-worker partials, in the given order."""
    overall = Counter()
    per_doc: Dict[str, Dict[str, int]] = {}
    failures: List[Tuple[str, str]] = []
    for r in results:
        overall.update(r.overall)
        per_doc.update(r.documents)
        failures.extend(r.failures)
    index = CorpusIndex(root=root, overall_counts=dict(overall), per_document_counts=per_doc)
    return index, sorted(failures)


def build_corpus_index_with_report(
    root: str,
    paths: Optional[List[str]] = None,
    max_workers: int | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    on_error: str = DEFAULT_ON_ERROR,
    extractor: Optional[Extractor] = None,
    verbose: bool = True,
) -> Tuple[CorpusIndex, BuildReport]:
    """
    Parallel corpus builder.

    Args:
        root: root string; becomes CorpusIndex.root verbatim.
        paths: documents to index; default enumerate_files(root).
        max_workers: pool size; None -> os.cpu_count(), 0 -> run in-process.
        batch_size: paths per worker task. Larger -> fewer tasks, more work per task.
        on_error: "skip" or "fail".
        extractor: Extractor used by every worker; must be picklable when
                   max_workers != 0.

    Returns:
        (CorpusIndex, BuildReport)
    """
    if on_error not in ON_ERROR_CHOICES:
        raise ValueError(f"on_error must be one of {ON_ERROR_CHOICES}, got {on_error!r}")

    root = str(root)
    if paths is None:
        paths = enumerate_files(root, verbose=verbose)
    paths = sorted(set(paths))
    report = BuildReport(root=root, n_paths=len(paths))

    if not paths:
        log("Build", f"empty corpus under {root}", verbose)
        return CorpusIndex(root=root), report

    batches = make_batches(paths, batch_size)
    log("Build", f"indexing {len(paths)} docs under {root} | batches={len(batches)} workers={max_workers}", verbose)

    if max_workers == 0:
        results = [_worker_index_batch(b, extractor) for b in batches]
    else:
        with ProcessPoolExecutor(max_workers=max_workers) as ex:
            # ex.map keeps submission order, so the merge below is in batch order
            results = list(ex.map(_worker_index_batch, batches, [extractor] * len(batches)))

    index, failures = reduce_batches(root, results)

    if failures and on_error == "fail":
        path, reason = failures[0]
        raise PathUnreadable(path, reason)

    for path, reason in failures:
        log("Build", f"skipped {path}: {reason}", verbose)

    index.check()
    report.n_indexed = index.n_documents
    report.skipped = failures
    log("Build", f"done | docs={index.n_documents} terms={index.n_terms} skipped={len(failures)}", verbose)
    return index, report


def build_corpus_index(root: str, **kwargs) -> CorpusIndex:
    index, _ = build_corpus_index_with_report(root, **kwargs)
    return index


def main():
    ap = argparse.ArgumentParser(description="Build a term-count index for a directory tree (multiprocessing).")
    ap.add_argument("root", help="Directory to index")
    ap.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE, help="Docs per worker task")
    ap.add_argument("--workers", type=int, default=None, help="#processes; default: os.cpu_count(), 0 = in-process")
    ap.add_argument("--on-error", choices=ON_ERROR_CHOICES, default=DEFAULT_ON_ERROR)
    ap.add_argument("--quiet", action="store_true", help="Less logging.")
    args = ap.parse_args()

    index, report = build_corpus_index_with_report(
        args.root,
        max_workers=args.workers,
        batch_size=args.batch_size,
        on_error=args.on_error,
        verbose=not args.quiet,
    )
    print(f"docs={index.n_documents} terms={index.n_terms} skipped={len(report.skipped)}")


if __name__ == "__main__":
    main()
