"""
Example usage scripts for mesh_clumps library.
"""

import numpy as np
import trimesh


def example_basic_generation():
    """Clump of an ellipsoid built in memory."""
    from mesh_clumps import ClumpGenerator

    print("=== Basic Generation Example ===\n")

    ellipsoid = trimesh.creation.icosphere(subdivisions=3)
    ellipsoid.apply_scale([1.0, 0.6, 0.4])

    generator = ClumpGenerator({
        'min_separation': 0.05,
        'min_radius': 0.02,
        'radius_step': 0.01,
        'target_coverage': 0.3,
        'seed': 5,
    })
    mesh, clump = generator.generate(ellipsoid)

    print(f"Generated {len(clump)} spheres from {mesh.num_vertices} vertices")
    print(f"Radius range: {clump.min_radius:.4f} to {clump.max_radius:.4f}")
    print(f"Particle volume: {mesh.rigid_body.volume:.4f}")

    print("\nFirst 3 spheres:")
    for i, sphere in enumerate(clump.spheres[:3]):
        print(f"  {i+1}. Center: {sphere.center}, Radius: {sphere.radius:.4f}")

    return clump


def example_voxel_input():
    """Clump of a voxelised cube, exported as x,y,z,r text."""
    from mesh_clumps import ClumpGenerator, VoxelRecord

    print("\n=== Voxel Input Example ===\n")

    img = np.zeros((12, 12, 12), dtype=bool)
    img[2:10, 2:10, 2:10] = True

    generator = ClumpGenerator({
        'min_separation': 0.2,
        'min_radius': 0.1,
        'radius_step': 0.05,
        'target_coverage': 1.0,
        'seed': 1,
        'output': 'voxel_cube_clump.txt',
    })
    mesh, clump = generator.generate(VoxelRecord(img=img, voxel_size=0.5))

    print(f"Generated {len(clump)} spheres, written to voxel_cube_clump.txt")
    return clump


def example_axisymmetric():
    """Spheroid clump from a radius profile."""
    from mesh_clumps.axisymmetric import clump_from_profile, spheroid_profile

    print("\n=== Axisymmetric Example ===\n")

    x, r = spheroid_profile(length=1.5, minor_radius=0.5, num_points=28)
    clump = clump_from_profile(x, r)
    clump.save('spheroid_clump.txt')

    print(f"Generated {len(clump)} spheres along the X axis")
    return clump


if __name__ == '__main__':
    example_basic_generation()
    example_voxel_input()
    example_axisymmetric()
