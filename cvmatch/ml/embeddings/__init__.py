"""
Document embedding for semantic similarity.

Components:
- EmbeddingModel: Async wrapper for a sentence-transformers model
"""

from .embedding_model import (
    EmbeddingModel,
    get_embedding_model,
)

__all__ = [
    "EmbeddingModel",
    "get_embedding_model",
]
