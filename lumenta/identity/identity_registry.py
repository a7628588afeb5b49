"""FAISS-backed registry of known identity embeddings.

Embeddings are L2-normalized before insertion into an inner-product index, so
search scores are cosine similarities. The registry is small and in-memory;
removal rebuilds the index from the stored vectors.
"""

import logging
from typing import Dict, List, Optional

import faiss
import numpy as np

from lumenta.identity.base_identity import IdentityMatch

logger = logging.getLogger(__name__)


def l2_normalize(v: np.ndarray) -> np.ndarray:
    v = np.asarray(v, dtype=np.float32).reshape(-1)
    norm = np.linalg.norm(v)
    if norm == 0:
        return v
    return v / norm


class IdentityRegistry:
    def __init__(self, threshold: float = 0.6):
        # matches must be strictly above this cosine similarity
        self.threshold = threshold
        self.dim: Optional[int] = None
        self.index = None
        self.vectors: Dict[str, np.ndarray] = {}
        # faiss internal position -> identity name
        self.index_to_identity: List[str] = []

    def __len__(self):
        return len(self.vectors)

    def add(self, identity: str, embedding: np.ndarray):
        """Register (or replace) the reference embedding for an identity."""
        vec = l2_normalize(embedding)
        if self.dim is None:
            self.dim = vec.shape[0]
        elif vec.shape[0] != self.dim:
            raise ValueError(
                f"Embedding dim {vec.shape[0]} does not match registry dim {self.dim}"
            )

        replacing = identity in self.vectors
        self.vectors[identity] = vec
        if replacing:
            self._rebuild_index()
            return

        if self.index is None:
            self.index = faiss.IndexFlatIP(self.dim)
        self.index.add(vec.reshape(1, -1))
        self.index_to_identity.append(identity)

    def remove(self, identity: str) -> bool:
        """Drop an identity. Returns False if it was not registered."""
        if identity not in self.vectors:
            return False
        del self.vectors[identity]
        self._rebuild_index()
        return True

    def best_match(
        self, embedding: np.ndarray, threshold: Optional[float] = None
    ) -> Optional[IdentityMatch]:
        """Highest-similarity identity, if it beats the threshold."""
        if self.index is None or self.index.ntotal == 0:
            return None

        threshold = self.threshold if threshold is None else threshold
        query = l2_normalize(embedding)
        if query.shape[0] != self.dim:
            logger.debug(
                f"Query dim {query.shape[0]} != registry dim {self.dim}, no match"
            )
            return None

        scores, ids = self.index.search(query.reshape(1, -1), 1)
        idx = int(ids[0, 0])
        similarity = float(scores[0, 0])
        if idx < 0 or similarity <= threshold:
            return None

        return IdentityMatch(
            identity=self.index_to_identity[idx],
            similarity=similarity,
            threshold=threshold,
        )

    def _rebuild_index(self):
        if not self.vectors:
            self.index = None
            self.index_to_identity = []
            self.dim = None
            return

        names = list(self.vectors.keys())
        stacked = np.vstack([self.vectors[n].reshape(1, -1) for n in names]).astype(
            np.float32
        )
        self.index = faiss.IndexFlatIP(stacked.shape[1])
        self.index.add(stacked)
        self.index_to_identity = names
