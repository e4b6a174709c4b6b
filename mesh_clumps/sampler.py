"""
Randomised vertex visiting order.
"""

from typing import Iterator, Optional

import numpy as np


class VertexSampler:
    """
    Permutation of all vertex indices, visited once each.

    The sampler owns its random generator, built with
    numpy.random.default_rng(seed), so runs never share or disturb global
    random state. With a seed, the order is
    default_rng(seed).permutation(num_vertices) and is reproducible.
    """

    def __init__(self, num_vertices: int, seed: Optional[int] = None):
        if num_vertices < 0:
            raise ValueError(f'num_vertices must be >= 0, got {num_vertices}')
        self.num_vertices = int(num_vertices)
        self.seed = seed
        self._rng = np.random.default_rng(seed)
        self._order = None

    def order(self) -> np.ndarray:
        """The visiting order. Drawn on first use, then fixed."""
        if self._order is None:
            self._order = self._rng.permutation(self.num_vertices)
        return self._order

    def __iter__(self) -> Iterator[int]:
        return (int(i) for i in self.order())

    def __len__(self) -> int:
        return self.num_vertices
