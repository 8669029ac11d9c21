"""Canonical 3D bounding boxes per class."""

from typing import List

import numpy as np

from .geometry import create_3d_bbox


class Extent3DCatalog:
    """Eight-corner 3D box of every class, derived once from the extents input."""

    def __init__(self, extents: np.ndarray) -> None:
        """
        Args:
            extents: Half-extents per class (num_classes, 3)
        """
        extents = np.asarray(extents, dtype=np.float64)
        if extents.ndim != 2 or extents.shape[1] != 3:
            raise ValueError(f"extents must have shape (num_classes, 3), got {extents.shape}")
        self._boxes: List[np.ndarray] = [create_3d_bbox(extent) for extent in extents]
        for box in self._boxes:
            box.setflags(write=False)

    def __len__(self) -> int:
        return len(self._boxes)

    def corners(self, class_id: int) -> np.ndarray:
        """8x3 box corners of a class."""
        return self._boxes[class_id]
