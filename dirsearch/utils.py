# dirsearch/utils.py

import os
import sys


def log(tag: str, msg: str, verbose: bool = True) -> None:
    """Progress line on stderr, e.g. `[Build] indexed 12 docs`. Stdout is left to the CLI."""
    if verbose:
        print(f"[{tag}] {msg}", file=sys.stderr)


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)
