import os
import tempfile
import unittest
from types import SimpleNamespace

import numpy as np
import trimesh
from scipy.io import savemat

from mesh_clumps import (
    InvalidInputError,
    Mesh,
    MeshFile,
    MeshRecord,
    TriangulationRecord,
    VoxelFile,
    VoxelRecord,
    as_source,
    load_mesh,
)
from tests.shapes import TETRAHEDRON, TETRAHEDRON_FACES, radial_normals


def voxel_cube(size: int = 4, padding: int = 1) -> np.ndarray:
    img = np.zeros((size + 2 * padding,) * 3, dtype=bool)
    img[padding:padding + size, padding:padding + size, padding:padding + size] = True
    return img


class TestMesh(unittest.TestCase):

    def test_valid(self):
        mesh = Mesh(vertices=TETRAHEDRON, faces=TETRAHEDRON_FACES,
                    normals=radial_normals(TETRAHEDRON))
        self.assertEqual(mesh.num_vertices, 4)
        np.testing.assert_allclose(mesh.bounds, [[-1, -1, -1], [1, 1, 1]])
        self.assertAlmostEqual(mesh.extent, 2.0 * np.sqrt(3.0))

    def test_normals_are_unit(self):
        mesh = Mesh(vertices=TETRAHEDRON, faces=TETRAHEDRON_FACES, normals=-3.0 * TETRAHEDRON)
        np.testing.assert_allclose(np.linalg.norm(mesh.normals, axis=1), np.ones(4))

    def test_read_only(self):
        mesh = Mesh(vertices=TETRAHEDRON, faces=TETRAHEDRON_FACES,
                    normals=radial_normals(TETRAHEDRON))
        with self.assertRaises(ValueError):
            mesh.vertices[0, 0] = 5.0
        # The caller's array is copied, not frozen
        source = TETRAHEDRON.copy()
        Mesh(vertices=source, faces=TETRAHEDRON_FACES, normals=radial_normals(source))
        source[0, 0] = 5.0

    def test_invalid(self):
        normals = radial_normals(TETRAHEDRON)
        cases = [
            dict(vertices=TETRAHEDRON[:, :2], faces=TETRAHEDRON_FACES, normals=normals),
            dict(vertices=np.zeros((0, 3)), faces=[], normals=np.zeros((0, 3))),
            dict(vertices=TETRAHEDRON, faces=TETRAHEDRON_FACES, normals=normals[:3]),
            dict(vertices=TETRAHEDRON, faces=[[0, 1, 4]], normals=normals),
            dict(vertices=TETRAHEDRON, faces=[[0, 1, -1]], normals=normals),
            dict(vertices=TETRAHEDRON, faces=[[0, 1]], normals=normals),
        ]
        for case in cases:
            with self.subTest(case=case):
                with self.assertRaises(InvalidInputError):
                    Mesh(**case)

    def test_centered(self):
        shifted = TETRAHEDRON + [1.0, 2.0, 3.0]
        mesh = Mesh(vertices=shifted, faces=TETRAHEDRON_FACES,
                    normals=radial_normals(TETRAHEDRON))
        np.testing.assert_allclose(mesh.centered().vertices, TETRAHEDRON, atol=1e-12)


class TestAsSource(unittest.TestCase):

    def test_mappings(self):
        self.assertIsInstance(as_source({'vertices': TETRAHEDRON, 'faces': TETRAHEDRON_FACES}),
                              MeshRecord)
        record = as_source({'Vertices': TETRAHEDRON, 'Faces': TETRAHEDRON_FACES})
        self.assertIsInstance(record, MeshRecord)
        self.assertIs(record.vertices, TETRAHEDRON)
        self.assertIsInstance(as_source({'img': voxel_cube(), 'voxel_size': 0.5}), VoxelRecord)

    def test_incomplete_mappings(self):
        for value in ({'img': voxel_cube()}, {'vertices': TETRAHEDRON}, {'points': TETRAHEDRON}):
            with self.subTest(keys=sorted(value)):
                with self.assertRaises(InvalidInputError):
                    as_source(value)

    def test_paths(self):
        self.assertIsInstance(as_source('particle.stl'), MeshFile)
        self.assertIsInstance(as_source('particle.OBJ'), MeshFile)
        self.assertIsInstance(as_source('particle.mat'), VoxelFile)
        self.assertIsInstance(as_source('particle.npz'), VoxelFile)
        with self.assertRaises(InvalidInputError):
            as_source('particle.xyz')

    def test_objects(self):
        self.assertIsInstance(as_source(trimesh.creation.box()), MeshRecord)
        triangulation = SimpleNamespace(points=TETRAHEDRON, connectivity_list=TETRAHEDRON_FACES)
        self.assertIsInstance(as_source(triangulation), TriangulationRecord)
        matlab_style = SimpleNamespace(Points=TETRAHEDRON, ConnectivityList=TETRAHEDRON_FACES)
        self.assertIsInstance(as_source(matlab_style), TriangulationRecord)
        source = MeshFile('a.stl')
        self.assertIs(as_source(source), source)

    def test_unrecognised(self):
        for value in (42, None, [1, 2, 3], object()):
            with self.assertRaises(InvalidInputError):
                as_source(value)


class TestLoadMesh(unittest.TestCase):

    def test_record_keeps_vertex_order(self):
        sphere = trimesh.creation.icosphere(subdivisions=1)
        mesh = load_mesh(MeshRecord(vertices=sphere.vertices, faces=sphere.faces))
        np.testing.assert_allclose(mesh.vertices, sphere.vertices)
        self.assertEqual(mesh.normals.shape, mesh.vertices.shape)

    def test_normals_point_inward(self):
        sphere = trimesh.creation.icosphere(subdivisions=2)
        for faces in (sphere.faces, sphere.faces[:, ::-1]):
            mesh = load_mesh({'vertices': sphere.vertices, 'faces': faces})
            inward = np.einsum('ij,ij->i', mesh.normals, mesh.vertices)
            self.assertTrue(np.all(inward < 0))
            self.assertGreater(mesh.rigid_body.volume, 0)

    def test_rigid_body(self):
        box = trimesh.creation.box(extents=(2.0, 2.0, 2.0))
        mesh = load_mesh(box)
        rigid_body = mesh.rigid_body
        self.assertAlmostEqual(rigid_body.volume, 8.0)
        np.testing.assert_allclose(rigid_body.centroid, np.zeros(3), atol=1e-12)
        np.testing.assert_allclose(rigid_body.inertia, np.eye(3) * 16.0 / 3.0, atol=1e-9)
        np.testing.assert_allclose(rigid_body.principal_inertia, [16.0 / 3.0] * 3)
        self.assertEqual(rigid_body.principal_axes.shape, (3, 3))
        self.assertEqual(len(rigid_body.to_dict()['inertia']), 3)

    def test_center(self):
        box = trimesh.creation.box(extents=(1.0, 2.0, 3.0))
        box.apply_translation([1.0, -2.0, 0.5])
        mesh = load_mesh(box, center=True)
        np.testing.assert_allclose(mesh.rigid_body.centroid, np.zeros(3), atol=1e-12)
        np.testing.assert_allclose(mesh.bounds, [[-0.5, -1.0, -1.5], [0.5, 1.0, 1.5]])

    def test_triangulation(self):
        triangulation = SimpleNamespace(Points=TETRAHEDRON, ConnectivityList=TETRAHEDRON_FACES)
        mesh = load_mesh(triangulation)
        self.assertEqual(mesh.num_vertices, 4)
        np.testing.assert_allclose(mesh.normals, radial_normals(TETRAHEDRON), atol=1e-9)

    def test_mesh_file(self):
        sphere = trimesh.creation.icosphere(subdivisions=1)
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'sphere.stl')
            sphere.export(path)
            mesh = load_mesh(path)
        # STL triangles are stored separately; shared vertices are merged on load
        self.assertEqual(mesh.num_vertices, len(sphere.vertices))
        self.assertEqual(len(mesh.faces), len(sphere.faces))

    def test_missing_file(self):
        with self.assertRaises(InvalidInputError):
            load_mesh('/nonexistent/particle.stl')
        with self.assertRaises(InvalidInputError):
            load_mesh('/nonexistent/particle.mat')

    def test_bad_record(self):
        with self.assertRaises(InvalidInputError):
            load_mesh(MeshRecord(vertices=TETRAHEDRON, faces=[[0, 1, 2, 3]]))

        faces = TETRAHEDRON_FACES.copy()
        faces[0, 2] = 9
        with self.assertRaises(InvalidInputError):
            load_mesh({'vertices': TETRAHEDRON, 'faces': faces})
        faces[0, 2] = -1
        with self.assertRaises(InvalidInputError):
            load_mesh({'vertices': TETRAHEDRON, 'faces': faces})

        vertices = TETRAHEDRON.copy()
        vertices[0, 0] = np.nan
        with self.assertRaises(InvalidInputError):
            load_mesh({'vertices': vertices, 'faces': TETRAHEDRON_FACES})
        triangulation = SimpleNamespace(points=vertices, connectivity_list=TETRAHEDRON_FACES)
        with self.assertRaises(InvalidInputError):
            load_mesh(triangulation)


class TestVoxels(unittest.TestCase):

    def test_voxel_record(self):
        mesh = load_mesh(VoxelRecord(img=voxel_cube(padding=0), voxel_size=0.5))
        np.testing.assert_allclose(mesh.bounds, [[-0.25] * 3, [1.75] * 3], atol=1e-9)
        self.assertGreater(mesh.rigid_body.volume, 0)
        self.assertLess(mesh.rigid_body.volume, 8.0)

    def test_anisotropic_voxel_size(self):
        record = VoxelRecord(img=voxel_cube(padding=0), voxel_size=[1.0, 1.0, 2.0])
        np.testing.assert_allclose(record.spacing(), [1.0, 1.0, 2.0])
        lower, upper = load_mesh(record).bounds
        np.testing.assert_allclose(upper - lower, [4.0, 4.0, 8.0], atol=1e-9)

    def test_invalid_voxels(self):
        cases = [
            VoxelRecord(img=np.zeros((4, 4, 4), dtype=bool), voxel_size=1.0),
            VoxelRecord(img=np.ones((4, 4)), voxel_size=1.0),
            VoxelRecord(img=voxel_cube(), voxel_size=[1.0, 2.0]),
            VoxelRecord(img=voxel_cube(), voxel_size=-1.0),
        ]
        for record in cases:
            with self.assertRaises(InvalidInputError):
                load_mesh(record)

    def test_npz_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'cube.npz')
            np.savez(path, img=voxel_cube(), voxel_size=0.5)
            record = VoxelFile(path).read()
            mesh = load_mesh(path)
        self.assertEqual(record.img.shape, (6, 6, 6))
        self.assertEqual(float(record.voxel_size), 0.5)
        self.assertGreater(mesh.num_vertices, 0)

    def test_mat_file_struct(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'cube.mat')
            savemat(path, {'particle': {'img': voxel_cube().astype(np.uint8),
                                        'voxel_size': np.array([0.5, 0.5, 0.5])}})
            record = VoxelFile(path).read()
            mesh = load_mesh(path)
        self.assertEqual(record.img.shape, (6, 6, 6))
        np.testing.assert_allclose(record.spacing(), [0.5, 0.5, 0.5])
        lower, upper = mesh.bounds
        np.testing.assert_allclose(upper - lower, [2.0, 2.0, 2.0], atol=1e-9)

    def test_mat_file_missing_fields(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'bad.mat')
            savemat(path, {'particle': {'img': voxel_cube().astype(np.uint8)}})
            with self.assertRaises(InvalidInputError):
                VoxelFile(path).read()


if __name__ == '__main__':
    unittest.main()
