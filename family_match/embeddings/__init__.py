"""
Query embeddings for semantic activity search.

Responsibilities:
- Load a lightweight sentence-transformer model on first use.
- Encode family search-query text at request time.
- Precompute embeddings for every stored activity candidate (offline).
"""
