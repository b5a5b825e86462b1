"""Cosine similarity and vector (de)serialisation helpers.

Functions:
    cosine_similarity(a, b, strict): Symmetric similarity of two vectors in [-1, 1].
    encode_vector(values): Pack a vector as float32 bytes for storage.
    decode_vector(blob, dim): Unpack stored float32 bytes.
"""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np
from numpy.typing import NDArray

from memoir.core.errors import DimensionMismatch

VectorLike = Union[Sequence[float], NDArray[np.floating]]


def cosine_similarity(a: VectorLike, b: VectorLike, *, strict: bool = False) -> float:
    """Return the cosine similarity of *a* and *b*.

    When either magnitude is zero the divisor is clamped to 1, so the degenerate
    case scores 0. Vectors of different length are compared over their shared
    prefix unless *strict* is set, in which case ``DimensionMismatch`` is raised.
    """

    left = np.asarray(a, dtype=np.float64).ravel()
    right = np.asarray(b, dtype=np.float64).ravel()
    if left.shape[0] != right.shape[0]:
        if strict:
            raise DimensionMismatch(
                f"cannot compare vectors of length {left.shape[0]} and {right.shape[0]}"
            )
        size = min(left.shape[0], right.shape[0])
        left = left[:size]
        right = right[:size]

    divisor = float(np.linalg.norm(left) * np.linalg.norm(right))
    if divisor == 0.0:
        divisor = 1.0
    score = float(np.dot(left, right)) / divisor
    return float(np.clip(score, -1.0, 1.0))


def encode_vector(values: VectorLike) -> bytes:
    return np.asarray(values, dtype=np.float32).tobytes()


def decode_vector(blob: bytes, dim: int | None = None) -> NDArray[np.float32]:
    arr = np.frombuffer(blob, dtype=np.float32)
    if dim and arr.size > dim:
        arr = arr[:dim]
    return arr.astype(np.float32, copy=False)
