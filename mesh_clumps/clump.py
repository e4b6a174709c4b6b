"""
Sphere and clump containers.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np

# Fixed-point format of the x,y,z,r text export
EXPORT_FORMAT = '%10f'


def separation(point: np.ndarray, positions: np.ndarray, radii: np.ndarray) -> float:
    """
    Smallest signed distance from point to the surface of any sphere.

    Negative when the point is inside a sphere; inf when there are none.
    """
    if len(radii) == 0:
        return float('inf')
    distances = np.linalg.norm(np.asarray(positions) - np.asarray(point, dtype=float), axis=1)
    return float(np.min(distances - radii))


@dataclass
class Sphere:
    """Represents a single sphere in 3D space."""
    center: np.ndarray  # [x, y, z]
    radius: float
    vertex_index: Optional[int] = None  # mesh vertex the sphere was grown from

    def __post_init__(self):
        self.center = np.asarray(self.center, dtype=float)
        self.radius = float(self.radius)

    def contains_point(self, point: np.ndarray) -> bool:
        """Check if a point is inside the sphere."""
        return np.linalg.norm(point - self.center) <= self.radius

    def distance_to_point(self, point: np.ndarray) -> float:
        """Signed distance from sphere surface to point (negative inside)."""
        return float(np.linalg.norm(point - self.center) - self.radius)

    def volume(self) -> float:
        """Calculate sphere volume."""
        return (4/3) * np.pi * (self.radius ** 3)


@dataclass
class Clump:
    """
    Ordered collection of spheres approximating a particle.

    Spheres are kept in the order they were accepted. Summaries (count,
    smallest and largest radius) are computed from the current contents on
    every access.
    """
    spheres: List[Sphere] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.spheres)

    def __iter__(self):
        return iter(self.spheres)

    def append(self, sphere: Sphere):
        self.spheres.append(sphere)

    @property
    def num_spheres(self) -> int:
        return len(self.spheres)

    @property
    def positions(self) -> np.ndarray:
        """(K, 3) sphere centres."""
        if not self.spheres:
            return np.zeros((0, 3))
        return np.array([s.center for s in self.spheres])

    @property
    def radii(self) -> np.ndarray:
        return np.array([s.radius for s in self.spheres], dtype=float)

    @property
    def vertex_indices(self) -> List[Optional[int]]:
        return [s.vertex_index for s in self.spheres]

    @property
    def min_index(self) -> Optional[int]:
        """Index of the smallest sphere (first one on ties)."""
        return int(np.argmin(self.radii)) if self.spheres else None

    @property
    def max_index(self) -> Optional[int]:
        """Index of the largest sphere (first one on ties)."""
        return int(np.argmax(self.radii)) if self.spheres else None

    @property
    def min_radius(self) -> Optional[float]:
        return self.spheres[self.min_index].radius if self.spheres else None

    @property
    def max_radius(self) -> Optional[float]:
        return self.spheres[self.max_index].radius if self.spheres else None

    def summary(self) -> Dict[str, Any]:
        return {
            'num_spheres': self.num_spheres,
            'min_radius': self.min_radius,
            'min_index': self.min_index,
            'max_radius': self.max_radius,
            'max_index': self.max_index,
        }

    def total_volume(self) -> float:
        """Sum of sphere volumes (overlaps counted more than once)."""
        return sum(s.volume() for s in self.spheres)

    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """Get bounding box of all spheres."""
        if not self.spheres:
            return np.zeros(3), np.zeros(3)

        centers = self.positions
        radii = self.radii

        min_bounds = (centers - radii[:, None]).min(axis=0)
        max_bounds = (centers + radii[:, None]).max(axis=0)

        return min_bounds, max_bounds

    def contains_point(self, point: np.ndarray) -> bool:
        """Check if point is inside any sphere."""
        return self.distance_to_point(point) <= 0

    def distance_to_point(self, point: np.ndarray) -> float:
        """Get minimum signed distance from point to any sphere surface."""
        return separation(point, self.positions, self.radii)

    def to_array(self) -> np.ndarray:
        """(K, 4) array of x, y, z, r rows."""
        return np.column_stack([self.positions, self.radii]) if self.spheres \
            else np.zeros((0, 4))

    def save(self, filepath: Union[str, Path]):
        """
        Write the clump as plain text, one 'x,y,z,r' line per sphere.

        Values are fixed-point with six decimals; there is no header.
        """
        np.savetxt(str(filepath), self.to_array(), fmt=EXPORT_FORMAT, delimiter=',')

    @classmethod
    def load(cls, filepath: Union[str, Path]) -> 'Clump':
        """Read a clump written by save()."""
        data = np.loadtxt(str(filepath), delimiter=',', ndmin=2)
        if data.size == 0:
            return cls()
        if data.shape[1] != 4:
            raise ValueError(f'{filepath}: expected 4 columns (x,y,z,r), got {data.shape[1]}')
        spheres = [Sphere(center=row[:3], radius=row[3]) for row in data]
        return cls(spheres=spheres, metadata={'source_file': str(filepath)})
