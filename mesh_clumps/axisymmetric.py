"""
Axisymmetric clumps (Favier et al., 1999).

Spheres are centred on the X axis and sized from a radius profile, so the
particle is a solid of revolution around X.
"""

from typing import Tuple

import numpy as np

from .clump import Clump, Sphere
from .errors import ParameterError


def clump_from_profile(x, radii) -> Clump:
    """
    Build a clump with one sphere per profile sample.

    Args:
        x: Sphere centre positions along the X axis
        radii: Sphere radius at each position; samples with radius <= 0 are dropped

    Returns:
        Clump ordered along the profile
    """
    x = np.asarray(x, dtype=float).ravel()
    radii = np.asarray(radii, dtype=float).ravel()
    if x.shape != radii.shape:
        raise ParameterError(f'Profile positions {x.shape} and radii {radii.shape} differ')

    keep = radii > 0
    spheres = [Sphere(center=[xi, 0.0, 0.0], radius=ri) for xi, ri in zip(x[keep], radii[keep])]
    return Clump(spheres=spheres, metadata={'method': 'favier', 'num_spheres': len(spheres)})


def spheroid_profile(length: float, minor_radius: float,
                     num_points: int = 28) -> Tuple[np.ndarray, np.ndarray]:
    """
    Profile of spheres tangent to a prolate spheroid.

    The spheroid has semi-axes a = length / 2 along X and b = minor_radius.
    A sphere centred at x on the axis touches the surface when
    r^2 = b^2 (a^2 - b^2 - x^2) / (a^2 - b^2); positions where this is not
    positive are dropped.
    """
    a = length / 2.0
    b = minor_radius
    if not a > b > 0:
        raise ParameterError(f'Need length / 2 > minor_radius > 0, got a={a}, b={b}')
    if num_points < 1:
        raise ParameterError(f'num_points must be >= 1, got {num_points}')

    x = np.linspace(-a, a, num_points)
    focal_sq = a ** 2 - b ** 2
    r_sq = b ** 2 / focal_sq * (focal_sq - x ** 2)
    keep = r_sq > 0
    return x[keep], np.sqrt(r_sq[keep])


def cylinder_profile(length: float, radius: float,
                     num_points: int = 25) -> Tuple[np.ndarray, np.ndarray]:
    """Equal spheres spread over [0, length] along X."""
    if not length > 0 or not radius > 0:
        raise ParameterError(f'length and radius must be > 0, got {length}, {radius}')
    x = np.linspace(0.0, length, num_points)
    return x, np.full_like(x, radius)
