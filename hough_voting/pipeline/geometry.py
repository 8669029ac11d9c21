"""
Geometric primitives for the Hough voting pipeline.

This module provides point-to-line distances for vote lines, closed-form
least-squares centers from sets of vote lines, projection of 3D boxes into
clipped 2D rectangles and the IoU between rectangles.
"""

from typing import Optional, Tuple

import cv2
import numpy as np
from scipy.spatial.transform import Rotation as R

# Rect as (x, y, width, height)
Rect = Tuple[float, float, float, float]

_SINGULAR_EPS = 1e-9


def point_to_line(
    point: np.ndarray, direction: np.ndarray, origin: np.ndarray
) -> np.ndarray:
    """
    Perpendicular distance from point(s) to the line(s) through origin with the given direction.

    All arguments broadcast against each other, so a single hypothesis center can be
    tested against many vote lines at once. A zero direction yields an infinite distance.

    Args:
        point: Point(s) (..., 2)
        direction: Line direction(s) (..., 2), i.e. the votes
        origin: Point(s) on the line(s) (..., 2), i.e. the pixel positions

    Returns:
        Distance(s) (...)
    """
    point = np.asarray(point, dtype=np.float64)
    direction = np.asarray(direction, dtype=np.float64)
    origin = np.asarray(origin, dtype=np.float64)

    n1 = -direction[..., 1]
    n2 = direction[..., 0]
    norm = np.sqrt(n1 * n1 + n2 * n2)
    residual = np.abs(n1 * (point[..., 0] - origin[..., 0]) + n2 * (point[..., 1] - origin[..., 1]))

    with np.errstate(divide="ignore", invalid="ignore"):
        distance = residual / norm
    return np.where(norm > 0, distance, np.inf)


def least_squares_center(votes: np.ndarray, pixels: np.ndarray) -> Optional[np.ndarray]:
    """
    Point minimizing the sum of squared perpendicular distances to all vote lines.

    Each correspondence defines the line through its pixel along its vote. Lines with
    a zero vote are ignored.

    Args:
        votes: Line directions (K, 2)
        pixels: Points on the lines (K, 2)

    Returns:
        Center (2,), or None if the lines do not determine a unique point
    """
    votes = np.asarray(votes, dtype=np.float64).reshape(-1, 2)
    pixels = np.asarray(pixels, dtype=np.float64).reshape(-1, 2)

    normals = np.stack([-votes[:, 1], votes[:, 0]], axis=1)
    norms = np.linalg.norm(normals, axis=1)
    valid = norms > 0
    if np.count_nonzero(valid) < 2:
        return None

    normals = normals[valid] / norms[valid, None]
    offsets = np.sum(normals * pixels[valid], axis=1)

    # normal equations of n_i . c = n_i . p_i
    ata = normals.T @ normals
    if abs(np.linalg.det(ata)) < _SINGULAR_EPS:
        return None
    return np.linalg.solve(ata, normals.T @ offsets)


def triangulate_center(
    vote1: np.ndarray, pixel1: np.ndarray, vote2: np.ndarray, pixel2: np.ndarray
) -> Optional[np.ndarray]:
    """Intersect the vote lines of two pixels (None for parallel or empty votes)."""
    return least_squares_center(np.stack([vote1, vote2]), np.stack([pixel1, pixel2]))


def triangulate_centers(
    votes1: np.ndarray, pixels1: np.ndarray, votes2: np.ndarray, pixels2: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Intersect many pairs of vote lines at once.

    Solves the same normal equations as triangulate_center for every pair, so a
    pair is valid exactly when triangulate_center would return a finite center.

    Args:
        votes1: Line directions of the first pixels (B, 2)
        pixels1: First pixels (B, 2)
        votes2: Line directions of the second pixels (B, 2)
        pixels2: Second pixels (B, 2)

    Returns:
        Tuple of (centers (B, 2), valid (B,)); centers of invalid pairs are NaN
    """
    votes1 = np.asarray(votes1, dtype=np.float64).reshape(-1, 2)
    votes2 = np.asarray(votes2, dtype=np.float64).reshape(-1, 2)
    pixels1 = np.asarray(pixels1, dtype=np.float64).reshape(-1, 2)
    pixels2 = np.asarray(pixels2, dtype=np.float64).reshape(-1, 2)

    norm1 = np.linalg.norm(votes1, axis=1)
    norm2 = np.linalg.norm(votes2, axis=1)
    nonzero = (norm1 > 0) & (norm2 > 0)

    with np.errstate(divide="ignore", invalid="ignore"):
        n1 = np.stack([-votes1[:, 1], votes1[:, 0]], axis=1) / norm1[:, None]
        n2 = np.stack([-votes2[:, 1], votes2[:, 0]], axis=1) / norm2[:, None]

        a = n1[:, 0] ** 2 + n2[:, 0] ** 2
        b = n1[:, 0] * n1[:, 1] + n2[:, 0] * n2[:, 1]
        d = n1[:, 1] ** 2 + n2[:, 1] ** 2
        det = a * d - b * b

        o1 = np.sum(n1 * pixels1, axis=1)
        o2 = np.sum(n2 * pixels2, axis=1)
        rhs_x = n1[:, 0] * o1 + n2[:, 0] * o2
        rhs_y = n1[:, 1] * o1 + n2[:, 1] * o2

        centers = np.stack([d * rhs_x - b * rhs_y, a * rhs_y - b * rhs_x], axis=1) / det[:, None]

    valid = nonzero & (np.abs(det) >= _SINGULAR_EPS) & np.all(np.isfinite(centers), axis=1)
    centers[~valid] = np.nan
    return centers, valid


def has_crossing_lines(votes: np.ndarray) -> bool:
    """
    Whether some pair of the given vote lines can be intersected.

    Zero votes never take part in a pair. Returns False when fewer than two usable
    votes exist or when all of them are parallel.
    """
    votes = np.asarray(votes, dtype=np.float64).reshape(-1, 2)
    norms = np.linalg.norm(votes, axis=1)
    votes = votes[norms > 0] / norms[norms > 0, None]
    if len(votes) < 2:
        return False

    # sin^2 of the angle to the first line; a pair crossing at sin^2 >= eps forces
    # some line to be at least half that angle away from the first one
    cross = votes[0, 0] * votes[:, 1] - votes[0, 1] * votes[:, 0]
    return bool(np.max(cross * cross) >= _SINGULAR_EPS / 4)


def create_3d_bbox(extent: np.ndarray) -> np.ndarray:
    """
    Create the 8 corners of a box centered at the object origin.

    Args:
        extent: Half-extents (x, y, z)

    Returns:
        8x3 array of 3D bounding box corners
    """
    ex, ey, ez = np.asarray(extent, dtype=np.float64).reshape(3)
    return np.array(
        [
            [ex, ey, ez],
            [ex, ey, -ez],
            [ex, -ey, ez],
            [ex, -ey, -ez],
            [-ex, ey, ez],
            [-ex, ey, -ez],
            [-ex, -ey, ez],
            [-ex, -ey, -ez],
        ],
        dtype=np.float64,
    )


def project_bbox(
    bbox_3d: np.ndarray,
    rvec: np.ndarray,
    tvec: np.ndarray,
    camera_matrix: np.ndarray,
    image_width: int,
    image_height: int,
) -> Rect:
    """
    Project a 3D box under a pose and return its enclosing rect clipped to the image.

    Args:
        bbox_3d: 8x3 array of box corners in object coordinates
        rvec: Rotation vector
        tvec: Translation vector
        camera_matrix: Camera intrinsic matrix
        image_width: Image width in pixels
        image_height: Image height in pixels

    Returns:
        Rect (x, y, width, height); an empty rect if the box is behind the camera
    """
    rvec = np.asarray(rvec, dtype=np.float64).reshape(3, 1)
    tvec = np.asarray(tvec, dtype=np.float64).reshape(3, 1)

    # points at or behind the image plane have no meaningful projection
    rmat, _ = cv2.Rodrigues(rvec)
    depths = (np.asarray(bbox_3d, dtype=np.float64) @ rmat.T + tvec.T)[:, 2]
    if np.any(depths <= 0):
        return (0.0, 0.0, 0.0, 0.0)

    image_points, _ = cv2.projectPoints(
        np.asarray(bbox_3d, dtype=np.float64), rvec, tvec, camera_matrix, None
    )
    image_points = image_points.reshape(-1, 2)
    if not np.all(np.isfinite(image_points)):
        return (0.0, 0.0, 0.0, 0.0)

    min_x = int(np.clip(image_points[:, 0].min(), 0, image_width - 1))
    max_x = int(np.clip(image_points[:, 0].max(), 0, image_width - 1))
    min_y = int(np.clip(image_points[:, 1].min(), 0, image_height - 1))
    max_y = int(np.clip(image_points[:, 1].max(), 0, image_height - 1))

    return (float(min_x), float(min_y), float(max_x - min_x + 1), float(max_y - min_y + 1))


def rect_iou(rect_a: Rect, rect_b: Rect) -> float:
    """Intersection over union of two (x, y, width, height) rects."""
    ax, ay, aw, ah = rect_a
    bx, by, bw, bh = rect_b

    inter_w = min(ax + aw, bx + bw) - max(ax, bx)
    inter_h = min(ay + ah, by + bh) - max(ay, by)
    if inter_w <= 0 or inter_h <= 0:
        return 0.0

    intersection = inter_w * inter_h
    union = aw * ah + bw * bh - intersection
    if union <= 0:
        return 0.0
    return float(intersection / union)


def rotation_to_quaternion(rvec: np.ndarray) -> Tuple[float, float, float, float]:
    """
    Convert rotation vector to a unit quaternion.

    Args:
        rvec: Rotation vector

    Returns:
        Quaternion as (w, x, y, z)
    """
    x, y, z, w = R.from_rotvec(np.asarray(rvec, dtype=np.float64).reshape(3)).as_quat()
    return float(w), float(x), float(y), float(z)
