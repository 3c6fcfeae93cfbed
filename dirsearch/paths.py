# dirsearch/paths.py

import os

# --- Base data paths ---
DATA_DIR = "data"

# --- Index cache (multi-slot: mapping file + one pickle per root) ---
CACHE_DIR = os.path.join(DATA_DIR, "cache")
CACHE_MAP_NAME = "cache.pkl"                        # root -> handle mapping
INDEX_CACHE_DIR = os.path.join(CACHE_DIR, "indexes")

# --- Single-slot cache (last built root + its counts) ---
SINGLE_ROOT_NAME = "root.pkl"
SINGLE_INDEX_NAME = "counts.pkl"

# --- Indexing ---
DEFAULT_BATCH_SIZE = 64       # documents per worker task
DEFAULT_ON_ERROR = "skip"     # "skip" | "fail"
PDF_SUFFIXES = (".pdf",)

# --- Ranking ---
TOP_K = 10
