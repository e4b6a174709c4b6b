"""
Tangent sphere growth.

A sphere anchored at a surface vertex p is grown along the inward normal n:
for radius r its centre is p + r * n, so every candidate passes through p.
The radius is increased in steps until some mesh vertex falls inside the
sphere. Each vertex q with (q - p) . n > 0 lies on exactly one such sphere,
of radius

    radius = |q - p|^2 / (2 * (q - p) . n)

and the contact vertex is the one with the smallest of these radii. The
corrected sphere through p and that vertex therefore has no vertex inside
it, and the step size only controls how fast contact is detected, not the
precision of the result.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .errors import GrowthError

logger = logging.getLogger(__name__)

# Upper bound on radii x vertices evaluated in one block
_BLOCK_ELEMENTS = 2 ** 20
_MAX_BLOCK_RADII = 256


def potential(points: np.ndarray, center: np.ndarray, radius: float) -> np.ndarray:
    """
    Spherical potential (|v - c| / r)^2 - 1 of each point.

    Negative inside the sphere, zero on its surface, positive outside.
    """
    points = np.atleast_2d(np.asarray(points, dtype=float))
    distance = np.linalg.norm(points - np.asarray(center, dtype=float), axis=1)
    return (distance / radius) ** 2 - 1.0


@dataclass(frozen=True, eq=False)
class GrowthResult:
    """Tangent sphere grown from one vertex."""
    center: np.ndarray
    radius: float
    contact_index: int     # mesh vertex that stopped the growth
    search_radius: float   # stepped radius at which contact was detected
    iterations: int


class TangentSphereGrower:
    """
    Grows tangent spheres inside a vertex cloud.

    Args:
        vertices: (N, 3) mesh vertex positions
        min_radius: Starting radius of every search (rmin)
        radius_step: Radius increment per search iteration (rstep)
        max_radius: Search gives up beyond this radius. Defaults to the
            bounding box diagonal, which no inscribed sphere can reach.
    """

    def __init__(self, vertices: np.ndarray,
                 min_radius: float,
                 radius_step: float,
                 max_radius: Optional[float] = None):
        self.vertices = np.asarray(vertices, dtype=float)
        self.min_radius = float(min_radius)
        self.radius_step = float(radius_step)
        if max_radius is None:
            diagonal = np.linalg.norm(self.vertices.max(axis=0) - self.vertices.min(axis=0))
            max_radius = max(float(diagonal), self.min_radius)
        self.max_radius = float(max_radius)
        self.tolerance = self.min_radius / 1000.0

        self._num_steps = int(np.floor(
            (self.max_radius - self.min_radius) / self.radius_step)) + 1
        self._block = max(1, min(_MAX_BLOCK_RADII, _BLOCK_ELEMENTS // len(self.vertices)))

    def grow(self, point: np.ndarray, normal: np.ndarray,
             vertex_index: Optional[int] = None) -> GrowthResult:
        """
        Grow the tangent sphere anchored at point along normal.

        Radii rmin, rmin + rstep, ... are tried in order. The search stops at
        the first radius whose minimum potential over all vertices is
        <= -tolerance. The contact point is then the vertex with the smallest
        tangent radius (lowest index on ties), which need not be the vertex
        with the lowest potential at that step.

        Raises:
            GrowthError: if no vertex is reached before max_radius
        """
        point = np.asarray(point, dtype=float)
        normal = np.asarray(normal, dtype=float)
        length = np.linalg.norm(normal)
        if not length > 0:
            raise GrowthError(f'Vertex {vertex_index} has a zero normal',
                              vertex_index=vertex_index, radius=self.min_radius)
        normal = normal / length

        # With a unit normal, |v - (p + r n)|^2 / r^2 - 1 == (|v - p|^2 - 2 r (v - p).n) / r^2
        offsets = self.vertices - point
        sq_dist = np.einsum('ij,ij->i', offsets, offsets)
        along = offsets @ normal
        tangent = np.full(len(along), np.inf)
        ahead = along > 0
        tangent[ahead] = sq_dist[ahead] / (2.0 * along[ahead])

        for start in range(0, self._num_steps, self._block):
            steps = np.arange(start, min(start + self._block, self._num_steps))
            radii = self.min_radius + steps * self.radius_step
            potentials = (sq_dist[None, :] - 2.0 * radii[:, None] * along[None, :]) \
                / radii[:, None] ** 2
            hits = np.flatnonzero(potentials.min(axis=1) <= -self.tolerance)
            if hits.size == 0:
                continue

            row = hits[0]
            # Any vertex inside the stepped sphere has a tangent radius below it
            contact = int(np.argmin(tangent))
            radius = float(tangent[contact])
            if radius < self.min_radius:
                logger.debug(f'Vertex {vertex_index}: tangent radius {radius:.6g} '
                             f'below min_radius {self.min_radius:.6g}')
            return GrowthResult(
                center=point + radius * normal,
                radius=radius,
                contact_index=contact,
                search_radius=float(radii[row]),
                iterations=int(steps[row]) + 1,
            )

        raise GrowthError(
            f'No contact from vertex {vertex_index} before radius {self.max_radius:.6g}; '
            f'is its normal pointing out of the solid?',
            vertex_index=vertex_index, radius=self.max_radius)
