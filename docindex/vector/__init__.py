from .embedder import Embedding, VectorEmbedder
from .similarity import cosine_similarity, rank
from .vocabulary import Vocabulary

__all__ = [
    "Embedding",
    "VectorEmbedder",
    "Vocabulary",
    "cosine_similarity",
    "rank",
]
