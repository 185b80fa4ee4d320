"""
Cosine similarity and ranking.

Candidates are store rows (dicts) carrying at least `vector` and, for
vectors written by the indexer, the `epoch` of the vocabulary they were
built under.
"""

from typing import Dict, List, Optional, Sequence

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity as _pairwise_cosine

from docindex.errors import ConfigurationError, DimensionMismatch, EpochMismatch
from docindex.utils.logging_utils import get_component_logger


logger = get_component_logger("Similarity", component="retrieval")


def cosine_similarity(a, b) -> float:

    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)

    if a.shape[0] != b.shape[0]:
        raise DimensionMismatch(a.shape[0], b.shape[0])

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)

    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.clip(np.dot(a, b) / (norm_a * norm_b), -1.0, 1.0))


def _comparable(
    query: np.ndarray,
    candidates: Sequence[Dict],
    epoch: Optional[str],
    on_stale: str
) -> List[Dict]:

    kept = []
    stale = 0

    for candidate in candidates:

        dimensions = len(candidate["vector"])
        candidate_epoch = candidate.get("epoch")

        problem = None
        if dimensions != len(query):
            problem = DimensionMismatch(len(query), dimensions)
        elif epoch and candidate_epoch and candidate_epoch != epoch:
            problem = EpochMismatch(epoch, candidate_epoch, dimensions)

        if problem is None:
            kept.append(candidate)
        elif on_stale == "skip":
            stale += 1
        else:
            raise problem

    if stale:
        logger.warning(f"Skipped {stale} embeddings from another vocabulary epoch")

    return kept


def rank(
    query: np.ndarray,
    candidates: Sequence[Dict],
    top_k: int = 10,
    min_similarity: float = 0.1,
    epoch: Optional[str] = None,
    on_stale: str = "error"
) -> List[Dict]:
    """Score every candidate, filter, sort descending, truncate.

    Ties keep candidate order. Returns candidate dicts (without the
    vector) with a `similarity` key added.
    """

    if top_k < 0:
        raise ConfigurationError(f"top_k must be >= 0, got {top_k}")

    query = np.asarray(query, dtype=np.float64)
    candidates = _comparable(query, candidates, epoch, on_stale)

    if not candidates:
        return []

    if len(query) == 0 or not np.any(query):
        scores = np.zeros(len(candidates))
    else:
        matrix = np.vstack([np.asarray(c["vector"], dtype=np.float64) for c in candidates])
        scores = np.clip(_pairwise_cosine(query.reshape(1, -1), matrix)[0], -1.0, 1.0)

    scored = [
        (float(score), candidate)
        for score, candidate in zip(scores, candidates)
        if score >= min_similarity
    ]

    scored.sort(key=lambda pair: pair[0], reverse=True)

    results = []
    for score, candidate in scored[:top_k]:
        result = {k: v for k, v in candidate.items() if k != "vector"}
        result["similarity"] = score
        results.append(result)

    logger.debug(
        f"Ranked {len(candidates)} candidates → {len(results)} results "
        f"(top_k={top_k}, min_similarity={min_similarity})"
    )

    return results
