"""
Local Summary
=============

Summary computed without any external service. Used whenever the
summarizer fails, so the user always gets some text.

Fields are taken from the FIRST sample of the snapshot; only scalar
numbers that fit a float count (booleans are excluded). Later samples
that lack a field or hold a non-number there are skipped for that field.
"""

import math
from numbers import Real
from typing import Dict, List, Sequence

import numpy as np

from aiduino.models.sample import Sample


NO_DATA_MESSAGE = "No data available to summarize yet."


def _is_number(value: object) -> bool:
    if not isinstance(value, Real) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except OverflowError:
        # Integers beyond float range
        return False


def numeric_fields(samples: Sequence[Sample]) -> Dict[str, List[float]]:
    """
    Collect numeric values per field, keyed by the first sample's fields.

    Returns:
        Ordered mapping field -> values across the snapshot
    """
    if not samples:
        return {}

    columns: Dict[str, List[float]] = {
        key: [] for key, value in samples[0].data.items() if _is_number(value)
    }
    for sample in samples:
        for key, values in columns.items():
            value = sample.data.get(key)
            if _is_number(value):
                values.append(float(value))
    return columns


def local_summary(samples: Sequence[Sample]) -> str:
    """
    Render min/avg/max for every numeric field of the snapshot.

    Example:
        >>> local_summary([Sample(1, {"t": 10}), Sample(2, {"t": 20})])
        'Local summary of 2 samples: t min 10.0, avg 15.0, max 20.0.'
    """
    if not samples:
        return NO_DATA_MESSAGE

    columns = numeric_fields(samples)
    noun = "sample" if len(samples) == 1 else "samples"
    if not columns:
        return f"Received {len(samples)} {noun} with no numeric fields to summarize."

    parts = []
    for key, values in columns.items():
        arr = np.asarray(values, dtype=float)
        parts.append(
            f"{key} min {arr.min():.1f}, avg {arr.mean():.1f}, max {arr.max():.1f}"
        )
    return f"Local summary of {len(samples)} {noun}: " + "; ".join(parts) + "."
