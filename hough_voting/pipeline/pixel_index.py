"""
Per-class pixel indexing for the Hough voting pipeline.

This module partitions the foreground pixels of a label map by class and
provides bounds-checked access to the per-pixel, per-class votes.
"""

from typing import Dict, List

import numpy as np


class VoteMap:
    """
    Read-only view of the votes of one image.

    The vote array has shape (height, width, 2 * num_classes); channels 2c and
    2c + 1 hold the x and y components of the vote of class c.
    """

    def __init__(self, vertex_map: np.ndarray) -> None:
        """
        Args:
            vertex_map: Vote array (height, width, 2 * num_classes)
        """
        vertex_map = np.asarray(vertex_map)
        if vertex_map.ndim != 3 or vertex_map.shape[2] % 2 != 0:
            raise ValueError(
                f"vote map must have shape (height, width, 2 * num_classes), got {vertex_map.shape}"
            )
        self.height, self.width = vertex_map.shape[:2]
        self.num_classes = vertex_map.shape[2] // 2
        self._votes = vertex_map.reshape(self.height * self.width, self.num_classes, 2)

    def votes(self, class_id: int, indices: np.ndarray) -> np.ndarray:
        """
        Votes of one class at the given flat pixel indices.

        Args:
            class_id: Class whose vote channels are read
            indices: Flat pixel indices (y * width + x)

        Returns:
            Votes (K, 2) as float64
        """
        if not 0 <= class_id < self.num_classes:
            raise IndexError(f"class {class_id} out of range [0, {self.num_classes})")
        indices = np.asarray(indices, dtype=np.intp)
        if indices.size and (indices.min() < 0 or indices.max() >= self.height * self.width):
            raise IndexError("pixel index out of range")
        return self._votes[indices, class_id].astype(np.float64)

    def vote(self, class_id: int, x: int, y: int) -> np.ndarray:
        """Vote of one class at pixel (x, y)."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} image")
        return self.votes(class_id, np.array([y * self.width + x]))[0]

    def pixel_coordinates(self, indices: np.ndarray) -> np.ndarray:
        """Convert flat indices to (x, y) coordinates (K, 2)."""
        indices = np.asarray(indices, dtype=np.intp)
        return np.stack([indices % self.width, indices // self.width], axis=-1).astype(np.float64)


class ClassPixelIndex:
    """Flat pixel indices of every non-background class that covers enough pixels."""

    def __init__(self, label_map: np.ndarray, num_classes: int, min_area: int) -> None:
        """
        Args:
            label_map: Class ID per pixel (height, width), 0 is background
            num_classes: Number of classes including background
            min_area: Classes with fewer pixels are excluded
        """
        label_map = np.asarray(label_map)
        if label_map.ndim != 2:
            raise ValueError(f"label map must be 2-dimensional, got shape {label_map.shape}")
        if label_map.size and (label_map.min() < 0 or label_map.max() >= num_classes):
            raise ValueError(
                f"labels must lie in [0, {num_classes}), "
                f"got [{label_map.min()}, {label_map.max()}]"
            )

        self.height, self.width = label_map.shape
        self.min_area = min_area

        flat = label_map.ravel()
        # stable sort keeps scan order inside every class
        order = np.argsort(flat, kind="stable")
        counts = np.bincount(flat, minlength=num_classes)
        bounds = np.concatenate(([0], np.cumsum(counts)))

        self.labels: Dict[int, np.ndarray] = {}
        self.class_ids: List[int] = []
        for class_id in range(1, num_classes):
            pixels = order[bounds[class_id] : bounds[class_id + 1]]
            self.labels[class_id] = pixels
            if len(pixels) >= min_area and len(pixels) > 0:
                self.class_ids.append(class_id)

    def __len__(self) -> int:
        return len(self.class_ids)

    def pixels(self, class_id: int) -> np.ndarray:
        """Flat pixel indices of a class in scan order."""
        return self.labels.get(class_id, np.zeros(0, dtype=np.intp))

    def count(self, class_id: int) -> int:
        return len(self.pixels(class_id))
