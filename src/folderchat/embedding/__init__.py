"""Sentence-transformer embeddings."""
