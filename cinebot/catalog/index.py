"""FAISS-backed nearest-neighbour search over precomputed movie embeddings."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Literal, Sequence, get_args

import faiss  # type: ignore
import numpy as np

MetricName = Literal["cosine", "euclidean", "manhattan", "dot"]
SUPPORTED_METRICS: tuple[str, ...] = get_args(MetricName)


def similarity_from_distance(distance: float, metric: str) -> float:
    """Map an index distance back to a similarity where higher is closer."""

    if metric == "cosine":
        return 1.0 - distance
    if metric == "dot":
        return -distance
    return 1.0 / (1.0 + distance)


def _check_metric(metric: str) -> str:
    if metric not in SUPPORTED_METRICS:
        raise ValueError(f"Unsupported distance metric: {metric}")
    return metric


def _flat_index(dimension: int, metric: str) -> faiss.Index:
    if metric in ("cosine", "dot"):
        return faiss.IndexFlatIP(dimension)
    if metric == "euclidean":
        return faiss.IndexFlatL2(dimension)
    return faiss.IndexFlat(dimension, faiss.METRIC_L1)


def _to_distance(score: float, metric: str) -> float:
    if metric == "cosine":
        return 1.0 - score
    if metric == "dot":
        return -score
    if metric == "euclidean":
        return math.sqrt(max(score, 0.0))
    return score


class FaissMovieIndex:
    """Search movie ids by embedding.

    The index is built for one metric. Cosine indexes store L2-normalised
    vectors in an inner-product index and report ``1 - cosine``; euclidean and
    manhattan report the plain L2 and L1 distances; dot reports the negated
    inner product so that smaller is always closer.

    Searching with another metric builds a flat index for it from the stored
    vectors on first use. For a cosine index those vectors are unit length.
    """

    def __init__(
        self,
        index_path: Path | None = None,
        *,
        metric: str = "cosine",
        index: faiss.Index | None = None,
    ) -> None:
        self.index_path = Path(index_path) if index_path else None
        self.metric = _check_metric(metric)
        self._index = index
        self._derived: dict[str, faiss.Index] = {}
        self._logger = logging.getLogger("cinebot.index")

    @classmethod
    def build(
        cls,
        ids: Sequence[int],
        vectors: Sequence[Sequence[float]] | np.ndarray,
        *,
        metric: str = "cosine",
    ) -> "FaissMovieIndex":
        _check_metric(metric)
        matrix = np.asarray(vectors, dtype=np.float32)
        if matrix.ndim != 2 or matrix.shape[0] != len(ids):
            raise ValueError("vectors must be a 2-D array with one row per id")
        matrix = np.ascontiguousarray(matrix)
        if metric == "cosine":
            faiss.normalize_L2(matrix)

        index = faiss.IndexIDMap(_flat_index(matrix.shape[1], metric))
        index.add_with_ids(matrix, np.asarray(ids, dtype=np.int64))
        return cls(metric=metric, index=index)

    def _ensure_index(self) -> faiss.Index | None:
        if self._index is not None:
            return self._index
        if self.index_path is None or not self.index_path.exists():
            return None
        self._index = faiss.read_index(str(self.index_path))
        self._logger.info("Loaded FAISS index with %d vectors from %s", self._index.ntotal, self.index_path)
        return self._index

    def _index_for(self, metric: str) -> faiss.Index | None:
        primary = self._ensure_index()
        if primary is None or metric == self.metric:
            return primary
        derived = self._derived.get(metric)
        if derived is not None:
            return derived

        vectors = np.ascontiguousarray(primary.index.reconstruct_n(0, primary.ntotal), dtype=np.float32)
        ids = faiss.vector_to_array(primary.id_map).astype(np.int64)
        if metric == "cosine":
            faiss.normalize_L2(vectors)
        derived = faiss.IndexIDMap(_flat_index(primary.d, metric))
        derived.add_with_ids(vectors, ids)
        self._derived[metric] = derived
        self._logger.info("Built %s view over %d vectors", metric, derived.ntotal)
        return derived

    def save(self, path: Path) -> None:
        index = self._ensure_index()
        if index is None:
            raise RuntimeError("No index to save")
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        faiss.write_index(index, str(path))

    @property
    def ready(self) -> bool:
        return self.size > 0

    @property
    def size(self) -> int:
        index = self._ensure_index()
        return int(index.ntotal) if index is not None else 0

    def search(self, vector: Sequence[float], k: int, metric: str | None = None) -> list[tuple[int, float]]:
        """Return up to ``k`` ``(movie_id, distance)`` pairs, closest first."""

        metric = _check_metric(metric or self.metric)
        index = self._index_for(metric)
        if index is None or index.ntotal == 0 or k <= 0:
            return []

        query = np.asarray([vector], dtype=np.float32)
        if query.shape[1] != index.d:
            raise ValueError(f"query dimension {query.shape[1]} does not match index dimension {index.d}")
        query = np.ascontiguousarray(query)
        if metric == "cosine":
            faiss.normalize_L2(query)

        scores, ids = index.search(query, min(k, index.ntotal))
        results = [
            (int(movie_id), _to_distance(float(score), metric))
            for movie_id, score in zip(ids[0], scores[0], strict=True)
            if movie_id >= 0
        ]
        results.sort(key=lambda pair: pair[1])
        return results
