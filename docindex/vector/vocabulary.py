"""
Vocabulary value object.

An ordered term → dense index mapping plus the IDF table it was built
with. Every vocabulary carries an epoch: a hash of its contents that is
stored next to each vector so that vectors from different builds are
never compared silently.
"""

import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Tuple


@dataclass(frozen=True)
class Vocabulary:

    terms: Dict[str, int]
    idf: Dict[str, float]
    document_count: int
    epoch: str = field(default="")

    def __post_init__(self):
        if not self.epoch:
            object.__setattr__(self, "epoch", self.compute_epoch())

    @property
    def size(self) -> int:
        return len(self.terms)

    def __contains__(self, term: str) -> bool:
        return term in self.terms

    def compute_epoch(self) -> str:
        payload = json.dumps(
            {
                "terms": list(self.terms.items()),
                "idf": [round(self.idf.get(t, 0.0), 12) for t in self.terms],
                "document_count": self.document_count
            },
            separators=(",", ":")
        )
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]

    # -------------------------------------------------
    # Persistence
    # -------------------------------------------------

    def to_rows(self) -> List[Tuple[str, int, float, int, str]]:
        """(term, term_index, idf_score, document_count, epoch) per term."""
        return [
            (term, index, self.idf.get(term, 0.0), self.document_count, self.epoch)
            for term, index in self.terms.items()
        ]

    @classmethod
    def from_rows(cls, rows: Iterable) -> "Vocabulary":
        rows = sorted(rows, key=lambda r: r[1])

        if not rows:
            return cls(terms={}, idf={}, document_count=0)

        terms = {r[0]: r[1] for r in rows}
        idf = {r[0]: r[2] for r in rows}
        epoch = rows[0][4] if len(rows[0]) > 4 else ""

        return cls(terms=terms, idf=idf, document_count=rows[0][3], epoch=epoch)

    def to_dict(self) -> Dict:
        return {
            "vocabulary": list(self.terms.items()),
            "idf_scores": list(self.idf.items()),
            "document_count": self.document_count,
            "epoch": self.epoch,
            "exported_at": datetime.now(timezone.utc).isoformat()
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Vocabulary":
        return cls(
            terms={term: int(index) for term, index in data["vocabulary"]},
            idf={term: float(score) for term, score in data["idf_scores"]},
            document_count=int(data["document_count"]),
            epoch=data.get("epoch", "")
        )
