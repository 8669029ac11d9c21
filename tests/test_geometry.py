"""
Tests for the geometric primitives of the voting pipeline.
"""

import os
import sys
import unittest

import numpy as np

# Add the project root directory to the Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hough_voting.pipeline.geometry import (
    create_3d_bbox,
    has_crossing_lines,
    least_squares_center,
    point_to_line,
    project_bbox,
    rect_iou,
    rotation_to_quaternion,
    triangulate_center,
    triangulate_centers,
)


class TestPointToLine(unittest.TestCase):
    """Test point-to-line distances."""

    def test_point_on_line(self):
        """A point on the line has zero distance."""
        distance = point_to_line(np.array([3.0, 3.0]), np.array([1.0, 1.0]), np.array([0.0, 0.0]))
        self.assertAlmostEqual(float(distance), 0.0)

    def test_known_distance(self):
        distance = point_to_line(np.array([2.0, 5.0]), np.array([1.0, 0.0]), np.array([0.0, 1.0]))
        self.assertAlmostEqual(float(distance), 4.0)

    def test_vote_length_does_not_matter(self):
        short = point_to_line(np.array([2.0, 5.0]), np.array([0.5, 0.5]), np.array([0.0, 1.0]))
        long = point_to_line(np.array([2.0, 5.0]), np.array([10.0, 10.0]), np.array([0.0, 1.0]))
        self.assertAlmostEqual(float(short), float(long))

    def test_zero_vote(self):
        """A zero vote never counts as close."""
        distance = point_to_line(np.array([0.0, 0.0]), np.array([0.0, 0.0]), np.array([0.0, 0.0]))
        self.assertTrue(np.isinf(distance))

    def test_broadcast(self):
        votes = np.array([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])
        pixels = np.array([[0.0, 2.0], [3.0, 0.0], [0.0, 0.0]])
        distances = point_to_line(np.array([2.0, 2.0]), votes, pixels)
        np.testing.assert_allclose(distances, [0.0, 1.0, 0.0], atol=1e-12)


class TestCenterEstimation(unittest.TestCase):
    """Test triangulation and least-squares centers."""

    def test_triangulate(self):
        center = triangulate_center(
            np.array([1.0, 1.0]), np.array([0.0, 0.0]), np.array([-1.0, 1.0]), np.array([4.0, 0.0])
        )
        np.testing.assert_allclose(center, [2.0, 2.0])

    def test_parallel_votes(self):
        """Parallel vote lines do not define a center."""
        center = triangulate_center(
            np.array([1.0, 1.0]), np.array([0.0, 0.0]), np.array([-1.0, -1.0]), np.array([3.0, 3.0])
        )
        self.assertIsNone(center)

    def test_zero_vote(self):
        center = triangulate_center(
            np.array([0.0, 0.0]), np.array([0.0, 0.0]), np.array([1.0, 1.0]), np.array([3.0, 0.0])
        )
        self.assertIsNone(center)

    def test_triangulate_batch(self):
        """Batched intersection agrees with pairwise triangulation."""
        votes1 = np.array([[1.0, 1.0], [1.0, 1.0], [0.0, 0.0], [2.0, 0.0]])
        pixels1 = np.array([[0.0, 0.0], [0.0, 0.0], [0.0, 0.0], [0.0, 5.0]])
        votes2 = np.array([[-1.0, 1.0], [-1.0, -1.0], [1.0, 1.0], [0.0, -3.0]])
        pixels2 = np.array([[4.0, 0.0], [3.0, 3.0], [3.0, 0.0], [7.0, 9.0]])

        centers, valid = triangulate_centers(votes1, pixels1, votes2, pixels2)
        np.testing.assert_array_equal(valid, [True, False, False, True])
        np.testing.assert_allclose(centers[0], [2.0, 2.0])
        np.testing.assert_allclose(centers[3], [7.0, 5.0])
        self.assertTrue(np.all(np.isnan(centers[~valid])))

        for i in np.flatnonzero(valid):
            expected = triangulate_center(votes1[i], pixels1[i], votes2[i], pixels2[i])
            np.testing.assert_allclose(centers[i], expected)

    def test_crossing_lines(self):
        self.assertTrue(has_crossing_lines(np.array([[1.0, 0.0], [0.0, 0.0], [1.0, 1.0]])))
        # parallel and anti-parallel votes, plus a zero vote
        self.assertFalse(has_crossing_lines(np.array([[1.0, 0.0], [-3.0, 0.0], [0.0, 0.0]])))
        self.assertFalse(has_crossing_lines(np.array([[0.5, 2.0]])))
        self.assertFalse(has_crossing_lines(np.zeros((0, 2))))

    def test_least_squares_center(self):
        """Lines through a common point recover that point."""
        rng = np.random.default_rng(7)
        pixels = rng.uniform(0, 50, size=(40, 2))
        votes = (np.array([20.0, 30.0]) - pixels) * rng.uniform(0.1, 3.0, size=(40, 1))
        center = least_squares_center(votes, pixels)
        np.testing.assert_allclose(center, [20.0, 30.0], atol=1e-8)

    def test_least_squares_with_noise(self):
        rng = np.random.default_rng(3)
        pixels = rng.uniform(0, 100, size=(500, 2))
        votes = np.array([40.0, 60.0]) - pixels + rng.normal(0, 0.5, size=(500, 2))
        center = least_squares_center(votes, pixels)
        np.testing.assert_allclose(center, [40.0, 60.0], atol=0.5)


class TestBoxes(unittest.TestCase):
    """Test 3D boxes, projection and IoU."""

    def test_create_3d_bbox(self):
        corners = create_3d_bbox(np.array([1.0, 2.0, 3.0]))
        self.assertEqual(corners.shape, (8, 3))
        np.testing.assert_allclose(corners.max(axis=0), [1.0, 2.0, 3.0])
        np.testing.assert_allclose(corners.min(axis=0), [-1.0, -2.0, -3.0])
        np.testing.assert_allclose(corners.mean(axis=0), [0.0, 0.0, 0.0])
        self.assertEqual(len({tuple(c) for c in corners}), 8)

    def test_rect_iou(self):
        self.assertAlmostEqual(rect_iou((0, 0, 10, 10), (0, 0, 10, 10)), 1.0)
        self.assertAlmostEqual(rect_iou((0, 0, 10, 10), (5, 0, 10, 10)), 50 / 150)
        self.assertEqual(rect_iou((0, 0, 10, 10), (20, 20, 5, 5)), 0.0)
        self.assertEqual(rect_iou((0, 0, 0, 0), (0, 0, 0, 0)), 0.0)

    def test_project_bbox_centered(self):
        """A box straight ahead projects symmetrically around the principal point."""
        camera_matrix = np.array([[500.0, 0, 320.0], [0, 500.0, 240.0], [0, 0, 1]])
        corners = create_3d_bbox(np.array([0.1, 0.1, 0.1]))
        x, y, w, h = project_bbox(corners, np.zeros(3), np.array([0.0, 0.0, 2.0]), camera_matrix, 640, 480)
        self.assertAlmostEqual(x + w / 2, 320.0, delta=1.0)
        self.assertAlmostEqual(y + h / 2, 240.0, delta=1.0)
        self.assertGreater(w, 0)
        self.assertGreater(h, 0)

    def test_project_bbox_clipped(self):
        camera_matrix = np.array([[500.0, 0, 320.0], [0, 500.0, 240.0], [0, 0, 1]])
        corners = create_3d_bbox(np.array([1.0, 1.0, 0.1]))
        x, y, w, h = project_bbox(corners, np.zeros(3), np.array([0.0, 0.0, 1.0]), camera_matrix, 640, 480)
        self.assertEqual((x, y), (0.0, 0.0))
        self.assertLessEqual(x + w, 640)
        self.assertLessEqual(y + h, 480)

    def test_project_bbox_behind_camera(self):
        camera_matrix = np.eye(3)
        corners = create_3d_bbox(np.array([1.0, 1.0, 1.0]))
        rect = project_bbox(corners, np.zeros(3), np.array([0.0, 0.0, 0.5]), camera_matrix, 4, 4)
        self.assertEqual(rect, (0.0, 0.0, 0.0, 0.0))


class TestQuaternion(unittest.TestCase):
    def test_identity(self):
        np.testing.assert_allclose(rotation_to_quaternion(np.zeros(3)), [1.0, 0.0, 0.0, 0.0])

    def test_rotation_about_z(self):
        w, x, y, z = rotation_to_quaternion(np.array([0.0, 0.0, np.pi / 2]))
        np.testing.assert_allclose([w, x, y, z], [np.cos(np.pi / 4), 0, 0, np.sin(np.pi / 4)])


if __name__ == "__main__":
    unittest.main()
