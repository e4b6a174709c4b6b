import unittest

import numpy as np

from mesh_clumps import ParameterError
from mesh_clumps.axisymmetric import clump_from_profile, cylinder_profile, spheroid_profile


class TestProfiles(unittest.TestCase):

    def test_spheroid_widest_at_middle(self):
        x, r = spheroid_profile(length=2.0, minor_radius=0.5, num_points=29)
        middle = np.argmin(np.abs(x))
        self.assertAlmostEqual(x[middle], 0.0)
        self.assertAlmostEqual(r[middle], 0.5)
        self.assertEqual(r.argmax(), middle)
        np.testing.assert_allclose(r, r[::-1])

    def test_spheroid_spheres_inside(self):
        a, b = 1.5, 0.4
        x, r = spheroid_profile(length=2 * a, minor_radius=b, num_points=40)
        self.assertTrue(np.all(r > 0))
        # Tips of the spheroid admit no sphere
        self.assertTrue(np.all(np.abs(x) < a))
        # Sphere extent along the axis never leaves the spheroid
        self.assertTrue(np.all(np.abs(x) + r <= a + 1e-12))

    def test_spheroid_invalid(self):
        for length, minor in ((1.0, 0.5), (1.0, 0.6), (1.0, 0.0), (-1.0, 0.2)):
            with self.subTest(length=length, minor=minor):
                with self.assertRaises(ParameterError):
                    spheroid_profile(length, minor)
        with self.assertRaises(ParameterError):
            spheroid_profile(2.0, 0.5, num_points=0)

    def test_cylinder(self):
        x, r = cylinder_profile(length=3.0, radius=0.25, num_points=4)
        np.testing.assert_allclose(x, [0.0, 1.0, 2.0, 3.0])
        np.testing.assert_allclose(r, np.full(4, 0.25))
        with self.assertRaises(ParameterError):
            cylinder_profile(0.0, 0.25)


class TestClumpFromProfile(unittest.TestCase):

    def test_spheres_on_axis(self):
        clump = clump_from_profile([0.0, 0.5, 1.0], [0.2, 0.3, 0.2])
        self.assertEqual(clump.num_spheres, 3)
        np.testing.assert_allclose(clump.positions[:, 1:], np.zeros((3, 2)))
        np.testing.assert_allclose(clump.positions[:, 0], [0.0, 0.5, 1.0])
        self.assertEqual(clump.max_index, 1)
        self.assertEqual(clump.metadata['method'], 'favier')

    def test_drops_empty_samples(self):
        clump = clump_from_profile([0.0, 0.5, 1.0], [0.0, 0.3, -0.1])
        self.assertEqual(clump.num_spheres, 1)
        self.assertAlmostEqual(clump.radii[0], 0.3)

    def test_mismatched_profile(self):
        with self.assertRaises(ParameterError):
            clump_from_profile([0.0, 1.0], [0.5])


if __name__ == '__main__':
    unittest.main()
