"""
Seeding helpers: global seeds for reproducible runs, explicit NumPy
Generators for every random routine, and a determinism banner for the
run summary.
"""

from __future__ import annotations

import os
import random

import numpy as np


def seed_everything(seed: int | None):
    if seed is None:
        return
    # Environment seeds
    os.environ["PYTHONHASHSEED"] = str(seed)

    # Python/NumPy global seeds; samplers below still take explicit generators
    random.seed(seed)
    np.random.seed(seed)


def make_rng(seed: int | np.random.Generator | None = None) -> np.random.Generator:
    """Return a NumPy Generator; pass-through when one is supplied already."""
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


def determinism_banner(seed: int | None) -> dict:
    """Return a dict describing active determinism settings for auditing."""
    return {
        "seed": seed,
        "pythonhashseed": os.environ.get("PYTHONHASHSEED"),
        "numpy_bit_generator": type(np.random.default_rng(seed).bit_generator).__name__,
        "seeded": seed is not None,
    }
