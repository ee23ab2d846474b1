"""Slot allocation between fixed and randomly rotated games."""

from __future__ import annotations

import random
from typing import List, Optional, Sequence


def allocate(
    fixed: Sequence[int],
    pool: Sequence[int],
    max_concurrent: int,
    rng: Optional[random.Random] = None,
) -> List[int]:
    """
    Build the active set for one rotation.

    Fixed items always come first. When there are at least ``max_concurrent``
    of them the result is the first ``max_concurrent`` fixed items and nothing
    is drawn from the pool. Otherwise the remaining slots are filled with a
    uniform sample, without replacement, of pool items that are not fixed.

    A new list is returned on every call and the inputs are never modified.
    """
    if max_concurrent <= 0:
        raise ValueError(f"max_concurrent must be positive, got {max_concurrent}")

    fixed_items = list(dict.fromkeys(fixed))
    if len(fixed_items) >= max_concurrent:
        return fixed_items[:max_concurrent]

    fixed_lookup = set(fixed_items)
    candidates = [item for item in dict.fromkeys(pool) if item not in fixed_lookup]
    remaining = max_concurrent - len(fixed_items)

    sampler = rng or random
    sample = sampler.sample(candidates, min(remaining, len(candidates)))
    return fixed_items + sample
