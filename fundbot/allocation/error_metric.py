"""
fundbot/allocation/error_metric.py
----------------------------------

Divergence between a candidate fractional allocation and the ideal one.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np


def allocation_error(
    candidate_fractions: Sequence[float],
    ideal_fractions: Sequence[float],
) -> Optional[float]:
    """
    Mean of the squared element-wise differences.

    Returns None when either side is empty: nothing to compare is not the
    same thing as a perfect match.
    """
    if len(candidate_fractions) == 0 or len(ideal_fractions) == 0:
        return None
    if len(candidate_fractions) != len(ideal_fractions):
        raise ValueError(
            f"allocation_error: length mismatch "
            f"({len(candidate_fractions)} vs {len(ideal_fractions)})"
        )

    diff = np.asarray(candidate_fractions, dtype=float) - np.asarray(ideal_fractions, dtype=float)
    return float(np.mean(diff * diff))
