"""
Tests for pixel indexing, vote access and 3D box catalogs.
"""

import os
import sys
import unittest

import numpy as np

# Add the project root directory to the Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hough_voting.pipeline.extents import Extent3DCatalog
from hough_voting.pipeline.pixel_index import ClassPixelIndex, VoteMap
from tests.helpers import make_vote_image


class TestClassPixelIndex(unittest.TestCase):
    """Test the per-class pixel partition."""

    def setUp(self):
        self.label = np.array(
            [
                [0, 1, 1, 0],
                [2, 1, 0, 0],
                [2, 2, 0, 3],
                [0, 0, 0, 0],
            ],
            dtype=np.int32,
        )

    def test_partition(self):
        """Every foreground pixel appears in exactly one class list."""
        index = ClassPixelIndex(self.label, num_classes=4, min_area=0)
        all_pixels = np.concatenate([index.pixels(c) for c in (1, 2, 3)])
        self.assertEqual(len(all_pixels), np.count_nonzero(self.label))
        self.assertEqual(len(set(all_pixels.tolist())), len(all_pixels))
        for class_id in (1, 2, 3):
            for flat in index.pixels(class_id):
                self.assertEqual(self.label.ravel()[flat], class_id)

    def test_scan_order(self):
        index = ClassPixelIndex(self.label, num_classes=4, min_area=0)
        np.testing.assert_array_equal(index.pixels(1), [1, 2, 5])
        np.testing.assert_array_equal(index.pixels(2), [4, 8, 9])

    def test_min_area(self):
        """Classes below the minimum area are excluded."""
        index = ClassPixelIndex(self.label, num_classes=4, min_area=2)
        self.assertEqual(index.class_ids, [1, 2])
        index = ClassPixelIndex(self.label, num_classes=4, min_area=4)
        self.assertEqual(index.class_ids, [])
        self.assertEqual(len(index), 0)

    def test_background_only(self):
        index = ClassPixelIndex(np.zeros((3, 3), dtype=np.int32), num_classes=3, min_area=0)
        self.assertEqual(index.class_ids, [])

    def test_invalid_labels(self):
        with self.assertRaises(ValueError):
            ClassPixelIndex(self.label, num_classes=3, min_area=0)
        with self.assertRaises(ValueError):
            ClassPixelIndex(np.zeros(5, dtype=np.int32), num_classes=2, min_area=0)


class TestVoteMap(unittest.TestCase):
    """Test vote access with the interleaved channel layout."""

    def test_layout(self):
        vertex = np.zeros((2, 3, 6), dtype=np.float32)
        vertex[1, 2, 4] = 7.0  # x vote of class 2 at pixel (2, 1)
        vertex[1, 2, 5] = -3.0
        votes = VoteMap(vertex)
        self.assertEqual(votes.num_classes, 3)
        np.testing.assert_allclose(votes.vote(2, 2, 1), [7.0, -3.0])
        np.testing.assert_allclose(votes.votes(2, np.array([5])), [[7.0, -3.0]])

    def test_pixel_coordinates(self):
        votes = VoteMap(np.zeros((2, 3, 2)))
        np.testing.assert_allclose(votes.pixel_coordinates(np.array([0, 4, 5])), [[0, 0], [1, 1], [2, 1]])

    def test_bounds(self):
        votes = VoteMap(np.zeros((2, 3, 4)))
        with self.assertRaises(IndexError):
            votes.vote(0, 3, 0)
        with self.assertRaises(IndexError):
            votes.votes(2, np.array([0]))
        with self.assertRaises(IndexError):
            votes.votes(1, np.array([6]))

    def test_invalid_shape(self):
        with self.assertRaises(ValueError):
            VoteMap(np.zeros((2, 3, 3)))

    def test_votes_point_to_center(self):
        label, vertex, centers = make_vote_image(8, 8, [(1, 2, 2, 5, 5)], num_classes=2)
        votes = VoteMap(vertex)
        index = ClassPixelIndex(label, 2, 0)
        points = votes.pixel_coordinates(index.pixels(1))
        np.testing.assert_allclose(points + votes.votes(1, index.pixels(1)), [centers[1]] * 16)


class TestExtent3DCatalog(unittest.TestCase):
    def test_corners(self):
        catalog = Extent3DCatalog(np.array([[0, 0, 0], [0.1, 0.2, 0.3]]))
        self.assertEqual(len(catalog), 2)
        corners = catalog.corners(1)
        self.assertEqual(corners.shape, (8, 3))
        np.testing.assert_allclose(np.abs(corners), [[0.1, 0.2, 0.3]] * 8)

    def test_read_only(self):
        catalog = Extent3DCatalog(np.ones((2, 3)))
        with self.assertRaises(ValueError):
            catalog.corners(1)[0, 0] = 5.0

    def test_invalid_shape(self):
        with self.assertRaises(ValueError):
            Extent3DCatalog(np.ones((2, 2)))


if __name__ == "__main__":
    unittest.main()
