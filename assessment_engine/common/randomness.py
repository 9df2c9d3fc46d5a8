"""Random sources and shuffling shared by the sequencer and the editors."""

import os
import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar('T')

SEED_ENV_VAR = "ENGINE_SEED"


def make_rng(seed: Optional[int] = None) -> random.Random:
    """
    Build a random source.

    An explicit ``seed`` wins; otherwise ``ENGINE_SEED`` is honoured when it
    holds an integer; otherwise the source is unseeded.
    """
    if seed is None:
        env_seed = os.environ.get(SEED_ENV_VAR)
        if env_seed is not None:
            try:
                seed = int(env_seed)
            except ValueError:
                seed = None
    return random.Random(seed)


def fisher_yates(items: Sequence[T], rng: random.Random) -> List[T]:
    """Return a uniformly shuffled copy of ``items``."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled
