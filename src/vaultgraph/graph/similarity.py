"""Vector similarity and the similarity to link-thickness mapping."""

from collections.abc import Sequence

import numpy as np

from vaultgraph.errors import DimensionMismatchError

# Thresholds this close to 1 leave no range to remap
THRESHOLD_EPSILON = 1e-9

# Hue range for link colouring: 0 = red (weak), 120 = green (strong)
MAX_HUE = 120.0


def cosine_similarity(vec1: Sequence[float] | np.ndarray, vec2: Sequence[float] | np.ndarray) -> float:
    """Compute cosine similarity between two vectors.

    Raises DimensionMismatchError if the lengths differ. A zero-magnitude
    vector has no direction, so its similarity with anything is 0.0.
    """
    a = np.asarray(vec1, dtype=np.float64)
    b = np.asarray(vec2, dtype=np.float64)
    if a.shape[0] != b.shape[0]:
        raise DimensionMismatchError(a.shape[0], b.shape[0])

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


def thickness_from_similarity(
    similarity: float,
    threshold: float,
    min_thickness: float,
    max_thickness: float,
) -> float:
    """Linearly remap a similarity in [threshold, 1] onto [min, max] thickness."""
    if threshold >= 1.0 - THRESHOLD_EPSILON:
        return max_thickness

    normalized = (similarity - threshold) / (1.0 - threshold)
    thickness = min_thickness + normalized * (max_thickness - min_thickness)
    return min(max(thickness, min_thickness), max_thickness)


def similarity_hue(similarity: float) -> float:
    """HSL hue for a similarity value, red for 0 and green for 1."""
    return min(max(similarity * MAX_HUE, 0.0), MAX_HUE)
