"""
DocIndex — Vector Embedder (TF-IDF)

Responsibilities:
- Build the corpus vocabulary and IDF table from a batch of chunks
- Prune the vocabulary once, before any chunk is vectorized
- Convert chunks and queries into fixed-length TF-IDF vectors
- Optional enhanced vectors (TF-IDF + 15 structural features)
- Embedding statistics

Two phases, in order, per batch:
    build_vocabulary(chunks) → embed_chunks(chunks)

Query embedding reuses the loaded vocabulary and never rebuilds it.
"""

import math
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from docindex.chunking.types import Chunk
from docindex.config.settings import EmbedderConfig
from docindex.errors import VocabularyNotLoaded
from docindex.utils.logging_utils import get_component_logger
from docindex.vector.tokenizer import is_term, tokenize
from docindex.vector.vocabulary import Vocabulary


logger = get_component_logger("VectorEmbedder", component="ingestion")

FEATURE_COUNT = 15


@dataclass(frozen=True)
class Embedding:
    chunk_id: str
    vector: np.ndarray
    magnitude: float
    dimensions: int
    method: str
    non_zero_count: int
    epoch: str
    metadata: Dict[str, Any] = field(default_factory=dict)


def _text_of(item: Union[Chunk, str]) -> str:
    return item if isinstance(item, str) else item.content


class VectorEmbedder:
    """
    TF-IDF embedder over an explicit Vocabulary value.
    """

    def __init__(
        self,
        config: Optional[EmbedderConfig] = None,
        vocabulary: Optional[Vocabulary] = None
    ):
        self.config = config or EmbedderConfig()
        self.vocabulary = vocabulary

        logger.debug(
            f"Embedder ready (cap={self.config.vocabulary_cap}, "
            f"method={self.config.method}, normalize={self.config.normalize})"
        )

    # =====================================================
    # VOCABULARY
    # =====================================================

    def build_vocabulary(self, chunks: Sequence[Union[Chunk, str]]) -> Vocabulary:

        logger.info(f"Building vocabulary from {len(chunks)} chunks...")

        terms: Dict[str, int] = {}
        doc_counts: Counter = Counter()

        for item in chunks:
            for term in dict.fromkeys(t for t in tokenize(_text_of(item)) if is_term(t)):
                if term not in terms:
                    terms[term] = len(terms)
                doc_counts[term] += 1

        total = len(chunks)
        idf = {term: math.log(total / doc_counts[term]) for term in terms}

        cap = self.config.vocabulary_cap

        if len(terms) > cap:
            # stable sort keeps insertion order among equal scores
            kept = sorted(terms, key=lambda t: idf[t], reverse=True)[:cap]
            terms = {term: i for i, term in enumerate(kept)}
            idf = {term: idf[term] for term in kept}
            logger.info(f"Pruned vocabulary to {cap} highest-IDF terms")

        self.vocabulary = Vocabulary(terms=terms, idf=idf, document_count=total)

        logger.info(
            f"Vocabulary built: {self.vocabulary.size} terms from {total} chunks "
            f"(epoch {self.vocabulary.epoch})"
        )

        return self.vocabulary

    def load_vocabulary(self, vocabulary: Vocabulary):
        self.vocabulary = vocabulary
        logger.info(
            f"Loaded vocabulary: {vocabulary.size} terms (epoch {vocabulary.epoch})"
        )

    def _require_vocabulary(self) -> Vocabulary:
        if self.vocabulary is None:
            raise VocabularyNotLoaded()
        return self.vocabulary

    # =====================================================
    # VECTORS
    # =====================================================

    def _tfidf(self, text: str) -> np.ndarray:

        vocabulary = self._require_vocabulary()

        tokens = tokenize(text)
        vector = np.zeros(vocabulary.size, dtype=np.float64)

        if not tokens:
            return vector

        # stop words and short tokens still count toward the tf denominator
        counts = Counter(t for t in tokens if t in vocabulary)

        for term, count in counts.items():
            vector[vocabulary.terms[term]] = (count / len(tokens)) * vocabulary.idf[term]

        return vector

    def embed(self, text: str) -> np.ndarray:
        """Plain TF-IDF vector of length vocabulary.size."""
        return self._normalize(self._tfidf(text))

    def embed_enhanced(self, text: str, content_type: str = "text") -> np.ndarray:
        """TF-IDF block followed by FEATURE_COUNT structural features."""

        features = np.asarray(semantic_features(text, content_type), dtype=np.float64)
        return self._normalize(np.concatenate([self._tfidf(text), features]))

    def _normalize(self, vector: np.ndarray) -> np.ndarray:
        if not self.config.normalize:
            return vector
        magnitude = float(np.linalg.norm(vector))
        if magnitude == 0:
            return vector
        return vector / magnitude

    def embed_query(self, text: str) -> np.ndarray:

        if self._require_vocabulary().size == 0:
            raise VocabularyNotLoaded("Vocabulary is empty. Index some documents first.")

        logger.debug(f"Embedding query: {text!r}")

        if self.config.enhanced:
            return self.embed_enhanced(text, "text")
        return self.embed(text)

    def embed_chunks(self, chunks: Sequence[Chunk]) -> List[Embedding]:

        vocabulary = self._require_vocabulary()

        logger.info(f"Generating embeddings for {len(chunks)} chunks...")

        embeddings = []

        for i, chunk in enumerate(chunks, start=1):

            if self.config.enhanced:
                vector = self.embed_enhanced(
                    chunk.content,
                    chunk.metadata.get("content_type", "text")
                )
            else:
                vector = self.embed(chunk.content)

            embeddings.append(Embedding(
                chunk_id=chunk.id,
                vector=vector,
                magnitude=float(np.linalg.norm(vector)),
                dimensions=len(vector),
                method=self.config.method,
                non_zero_count=int(np.count_nonzero(vector)),
                epoch=vocabulary.epoch
            ))

            if i % 100 == 0:
                logger.debug(f"Progress: {i}/{len(chunks)} embeddings generated")

        logger.info(f"Generated {len(embeddings)} embeddings")

        return embeddings

    # =====================================================
    # STATS
    # =====================================================

    def embedding_stats(self, embeddings: Sequence[Embedding]) -> Dict:

        if not embeddings:
            return {"count": 0}

        dimensions = embeddings[0].dimensions
        avg_non_zero = sum(e.non_zero_count for e in embeddings) / len(embeddings)

        return {
            "count": len(embeddings),
            "dimensions": dimensions,
            "vocabulary_size": self.vocabulary.size if self.vocabulary else 0,
            "average_magnitude": sum(e.magnitude for e in embeddings) / len(embeddings),
            "average_non_zero_elements": avg_non_zero,
            "sparsity": 1 - avg_non_zero / dimensions if dimensions else 1.0
        }


# =====================================================
# STRUCTURAL FEATURES
# =====================================================

_WORD = re.compile(r"\w+")
_SENTENCE_END = re.compile(r"[.!?]+")
_CLAUSE = re.compile(r"[,;:]")
_CODE_KEYWORD = re.compile(r"function|def|class")
_BRACKET = re.compile(r"[{}\[\]]")
_COMMENT = re.compile(r"//|/\*|\*")
_MD_HEADER = re.compile(r"^#{1,6}", re.MULTILINE)
_MD_LINK = re.compile(r"\[.+?\]\(.+?\)")


def semantic_features(text: str, content_type: str = "text") -> List[float]:

    length = max(len(text), 1)

    def density(pattern, scale=1.0):
        return len(pattern.findall(text)) / length * scale

    features = [
        math.log(len(text) + 1) / 10,
        math.log(len(_WORD.findall(text)) + 1) / 10,
        density(_SENTENCE_END),
        density(_CLAUSE),
        text.count("\n") / length,
        1.0 if content_type == "code" else 0.0,
        1.0 if content_type == "markdown" else 0.0,
        1.0 if content_type == "text" else 0.0,
    ]

    if content_type == "code":
        features += [density(_CODE_KEYWORD, 10), density(_BRACKET, 10), density(_COMMENT, 10)]
    else:
        features += [0.0, 0.0, 0.0]

    if content_type == "markdown":
        features += [density(_MD_HEADER, 10), density(_MD_LINK, 10), text.count("```") / length * 10]
    else:
        features += [0.0, 0.0, 0.0]

    features += [0.0] * (FEATURE_COUNT - len(features))
    return features
