"""
Visualization utilities for meshes and clumps.
"""

from typing import Optional

import numpy as np
import matplotlib.pyplot as plt

from .clump import Clump
from .mesh import Mesh


def _set_equal_aspect(ax, min_bounds: np.ndarray, max_bounds: np.ndarray):
    max_range = (max_bounds - min_bounds).max()
    center = (min_bounds + max_bounds) / 2

    ax.set_xlim(center[0] - max_range/2, center[0] + max_range/2)
    ax.set_ylim(center[1] - max_range/2, center[1] + max_range/2)
    ax.set_zlim(center[2] - max_range/2, center[2] + max_range/2)


def visualize_clump(clump: Clump,
                    mesh: Optional[Mesh] = None,
                    show_mesh: bool = True,
                    show_normals: bool = False,
                    alpha: float = 0.7,
                    mesh_alpha: float = 0.2,
                    resolution: int = 20,
                    figsize: tuple = (10, 8),
                    seed: Optional[int] = None,
                    show: bool = False):
    """
    Plot the spheres of a clump with an optional translucent mesh overlay.

    Args:
        clump: Clump to draw
        mesh: Optional particle mesh
        show_mesh: Whether to draw the mesh surface
        show_normals: Draw the inward vertex normals (they should all point
            into the particle)
        alpha: Transparency of spheres
        mesh_alpha: Transparency of the mesh
        resolution: Number of longitude samples per sphere
        figsize: Figure size
        seed: Seed for the random sphere colours
        show: Call plt.show() before returning

    Returns:
        (fig, ax)
    """
    fig = plt.figure(figsize=figsize)
    ax = fig.add_subplot(111, projection='3d')

    rng = np.random.default_rng(seed)
    u = np.linspace(0, 2 * np.pi, resolution)
    v = np.linspace(0, np.pi, max(resolution // 2, 3))
    unit_x = np.outer(np.cos(u), np.sin(v))
    unit_y = np.outer(np.sin(u), np.sin(v))
    unit_z = np.outer(np.ones(np.size(u)), np.cos(v))

    for sphere in clump.spheres:
        x = sphere.center[0] + sphere.radius * unit_x
        y = sphere.center[1] + sphere.radius * unit_y
        z = sphere.center[2] + sphere.radius * unit_z
        ax.plot_surface(x, y, z, color=rng.random(3), alpha=alpha, edgecolor='none')

    if mesh is not None and show_mesh and len(mesh.faces):
        vertices = mesh.vertices
        ax.plot_trisurf(vertices[:, 0], vertices[:, 1], vertices[:, 2],
                        triangles=mesh.faces, color='g', alpha=mesh_alpha,
                        edgecolor='none')

    if mesh is not None and show_normals:
        scale = 0.05 * mesh.extent
        ax.quiver(*mesh.vertices.T, *(mesh.normals * scale).T, color='k', linewidth=0.5)

    ax.set_xlabel('X')
    ax.set_ylabel('Y')
    ax.set_zlabel('Z')
    ax.set_title(f'Clump ({len(clump)} spheres)')

    if mesh is not None:
        min_bounds, max_bounds = mesh.bounds
    else:
        min_bounds, max_bounds = clump.bounds()
    if np.any(max_bounds > min_bounds):
        _set_equal_aspect(ax, min_bounds, max_bounds)

    plt.tight_layout()
    if show:
        plt.show()
    return fig, ax
