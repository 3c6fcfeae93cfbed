#!/usr/bin/env python3
"""
Flask web application for the directory search engine.
"""

import time
from flask import Flask, request, jsonify
from dirsearch.errors import DirsearchError
from dirsearch.paths import CACHE_DIR, TOP_K
from dirsearch.searcher import Searcher

app = Flask(__name__)

# Global searcher instance
searcher = None


def initialize_searcher(cache_dir=CACHE_DIR, policy="multi", **build_options):
    """Initialize the search engine (idempotent)."""
    global searcher
    if searcher is None:
        print("Initializing search engine...")
        searcher = Searcher(policy=policy, cache_dir=cache_dir, **build_options)
        print("Search engine initialized successfully")
    return searcher


def shutdown_searcher():
    """Flush the cache mapping and drop the global searcher."""
    global searcher
    if searcher is not None:
        searcher.close()
        searcher = None


@app.route('/search', methods=['POST'])
def search():
    """Handle search requests: {"root": ..., "query": ..., "topk": 10}."""
    data = request.get_json(silent=True) or {}
    root = str(data.get('root', '')).strip()
    query = str(data.get('query', '')).strip()
    topk = data.get('topk', TOP_K)

    if not root:
        return jsonify({'error': 'Missing root'}), 400
    # the library would rank every document 0.0 for an empty query; the web layer refuses it
    if not query:
        return jsonify({'error': 'Empty query'}), 400
    if not isinstance(topk, int) or isinstance(topk, bool) or topk <= 0:
        return jsonify({'error': 'topk must be a positive integer'}), 400

    s = initialize_searcher()
    try:
        # Perform search with timing
        start_time = time.perf_counter()
        results = s.search(root, query, topk=topk)
        end_time = time.perf_counter()
    except DirsearchError as e:
        print(f"Search error: {e}")
        return jsonify({'error': f'Search failed: {e}'}), 500

    search_time = (end_time - start_time) * 1000  # Convert to milliseconds

    formatted_results = [{'path': path, 'score': score} for path, score in results]

    return jsonify({
        'results': formatted_results,
        'searchTime': search_time,
        'totalResults': len(formatted_results),
        'query': query,
        'root': root,
    })


@app.route('/health')
def health():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'searcher_initialized': searcher is not None,
        'cache_policy': type(searcher.cache).__name__ if searcher is not None else None,
        'cached_roots': searcher.cache.roots() if searcher is not None else [],
    })


if __name__ == '__main__':
    # Initialize the search engine
    initialize_searcher()
    try:
        app.run(debug=True, host='0.0.0.0', port=5001)
    finally:
        shutdown_searcher()
