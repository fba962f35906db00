"""
Field Optimizer - filter, deduplicate, rank and cap field candidates
"""

import logging
from typing import Dict, List

from .models import DetectedField

logger = logging.getLogger(__name__)

DEFAULT_MAX_FIELDS = 20


def optimize_fields(
    candidates: List[DetectedField],
    confidence_threshold: float = 0.7,
    max_fields: int = DEFAULT_MAX_FIELDS
) -> List[DetectedField]:
    """
    Reduce candidates to the fields shown to the user

    1. Drop candidates below confidence_threshold * 100
    2. Keep the highest-confidence candidate per (type, name); ties keep the first
    3. Sort by confidence, descending (stable)
    4. Truncate to max_fields

    Pure and idempotent: optimize_fields(optimize_fields(x)) == optimize_fields(x)
    """
    floor = confidence_threshold * 100
    best: Dict[str, DetectedField] = {}

    for candidate in candidates:
        if candidate.confidence < floor:
            continue

        current = best.get(candidate.key)
        if current is None or candidate.confidence > current.confidence:
            best[candidate.key] = candidate

    ranked = sorted(best.values(), key=lambda f: f.confidence, reverse=True)
    result = ranked[:max_fields]

    logger.debug(f"   Optimized {len(candidates)} candidates to {len(result)} fields")
    return result
