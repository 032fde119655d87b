"""Deterministic offline embedder.

Used when no embedding API key is configured. Tokens are hashed into a
fixed number of buckets (signed feature hashing) and the resulting vector is
L2-normalised, so texts sharing words land near each other under cosine
similarity. Quality is far below a learned model but the output is stable
across processes, which keeps persisted vectors reusable.
"""

from __future__ import annotations

import hashlib
import re
import unicodedata

import numpy as np

_TOKEN_RE = re.compile(r"[a-z0-9]+")


class HashingEmbedder:
    def __init__(self, dimensions: int = 256) -> None:
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        return [self._embed(t) for t in texts]

    async def embed_query(self, query: str) -> list[float]:
        return self._embed(query)

    def _embed(self, text: str) -> list[float]:
        vec = np.zeros(self._dimensions, dtype=np.float64)
        for token in self._tokenize(text):
            digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
            value = int.from_bytes(digest, "big")
            bucket = value % self._dimensions
            sign = 1.0 if (value >> 63) & 1 == 0 else -1.0
            vec[bucket] += sign
        norm = np.linalg.norm(vec)
        if norm > 0:
            vec /= norm
        return vec.tolist()

    @staticmethod
    def _tokenize(text: str) -> list[str]:
        normalized = unicodedata.normalize("NFKD", text.lower())
        ascii_text = normalized.encode("ascii", "ignore").decode("ascii")
        return _TOKEN_RE.findall(ascii_text)
