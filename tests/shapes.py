"""
Small meshes with known tangent spheres, built with radial inward normals.
"""

import numpy as np
import trimesh

from mesh_clumps import Mesh

# Regular tetrahedron inscribed in the sphere of radius sqrt(3)
TETRAHEDRON = np.array([
    [1.0, 1.0, 1.0],
    [1.0, -1.0, -1.0],
    [-1.0, 1.0, -1.0],
    [-1.0, -1.0, 1.0],
])
TETRAHEDRON_FACES = np.array([[0, 1, 2], [0, 3, 1], [0, 2, 3], [1, 3, 2]])


def radial_normals(vertices: np.ndarray) -> np.ndarray:
    """Unit normals pointing from every vertex to the origin."""
    return -vertices / np.linalg.norm(vertices, axis=1)[:, None]


def tetrahedron_mesh(outward=()) -> Mesh:
    normals = radial_normals(TETRAHEDRON)
    for index in outward:
        normals[index] *= -1
    return Mesh(vertices=TETRAHEDRON, faces=TETRAHEDRON_FACES, normals=normals)


def cube_mesh() -> Mesh:
    """Corners of [-1, 1]^3."""
    box = trimesh.creation.box(extents=(2.0, 2.0, 2.0))
    vertices = np.array(box.vertices)
    return Mesh(vertices=vertices, faces=box.faces, normals=radial_normals(vertices))


def octahedron_with_twin(offset: float = 1e-3) -> Mesh:
    """
    Unit octahedron plus a seventh vertex a small distance from vertex 0,
    sharing its normal.
    """
    vertices = np.array([
        [1.0, 0.0, 0.0],
        [-1.0, 0.0, 0.0],
        [0.0, 1.0, 0.0],
        [0.0, -1.0, 0.0],
        [0.0, 0.0, 1.0],
        [0.0, 0.0, -1.0],
        [1.0, offset, 0.0],
    ])
    normals = radial_normals(vertices[:6])
    normals = np.vstack([normals, normals[0]])
    return Mesh(vertices=vertices, faces=np.zeros((0, 3), dtype=int), normals=normals)
