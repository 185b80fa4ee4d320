"""Tokenization shared by vocabulary building, vectorization and queries."""

import re
from typing import List


STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "should",
    "could", "may", "might", "must", "can", "this", "that", "these", "those",
    "i", "you", "he", "she", "it", "we", "they", "me", "him", "her", "us", "them",
})

MIN_TERM_LENGTH = 3

_NON_WORD = re.compile(r"[^\w\s]")


def tokenize(text: str) -> List[str]:
    """Every token of the text, qualifying or not."""
    return _NON_WORD.sub(" ", text.lower()).split()


def is_term(token: str) -> bool:
    """Whether a token may enter the vocabulary."""
    return len(token) >= MIN_TERM_LENGTH and token not in STOP_WORDS
