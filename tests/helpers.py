"""Synthetic inputs shared by the test modules."""

import numpy as np


def make_vote_image(height, width, objects, num_classes):
    """
    Build a label map and a vote map for rectangular objects.

    Args:
        height: Image height
        width: Image width
        objects: List of (class_id, x1, y1, x2, y2) with inclusive pixel bounds
        num_classes: Number of classes including background

    Returns:
        Tuple of (label (H, W) int32, vertex (H, W, 2 * num_classes) float32, centers dict)
    """
    label = np.zeros((height, width), dtype=np.int32)
    vertex = np.zeros((height, width, 2 * num_classes), dtype=np.float32)
    centers = {}

    for class_id, x1, y1, x2, y2 in objects:
        cx, cy = (x1 + x2) / 2.0, (y1 + y2) / 2.0
        centers[class_id] = (cx, cy)
        label[y1 : y2 + 1, x1 : x2 + 1] = class_id
        ys, xs = np.mgrid[y1 : y2 + 1, x1 : x2 + 1]
        vertex[y1 : y2 + 1, x1 : x2 + 1, 2 * class_id] = cx - xs
        vertex[y1 : y2 + 1, x1 : x2 + 1, 2 * class_id + 1] = cy - ys

    return label, vertex, centers


def make_meta_data(fx, fy, px, py):
    """Flat meta data record starting with the intrinsic matrix."""
    meta = np.zeros(48, dtype=np.float32)
    meta[:9] = [fx, 0, px, 0, fy, py, 0, 0, 1]
    return meta
